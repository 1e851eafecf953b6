"""Entry point for whatsapp-autoreply."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from whatsapp_autoreply.ai_reply import AIReplyGenerator
from whatsapp_autoreply.config import Config, load_config
from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.gateway import BookingGateway
from whatsapp_autoreply.handler import MessageHandler, send_bulk
from whatsapp_autoreply.menu import DEFAULT_TEST_PHONE, MenuEngine
from whatsapp_autoreply.pipeline import ReplyPipeline
from whatsapp_autoreply.transport import ConsoleTransport

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="whatsapp-autoreply",
        description="Auto-reply to WhatsApp messages with keyword, live booking and AI answers.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to config YAML (default: ~/.config/whatsapp-autoreply/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--mode",
        choices=["ai", "menu"],
        default=None,
        help="Reply strategy (default: from config)",
    )
    parser.add_argument(
        "--phone",
        default=DEFAULT_TEST_PHONE,
        help="Sender phone number for console messages",
    )
    parser.add_argument(
        "--test",
        metavar="MESSAGE",
        default=None,
        help="Print the menu engine's reply to MESSAGE and exit",
    )
    parser.add_argument(
        "--send",
        metavar="NUMBER",
        nargs="+",
        default=None,
        help="Send --text to each NUMBER and exit",
    )
    parser.add_argument("--text", default=None, help="Message text for --send")
    return parser.parse_args(argv)


def build_strategy(config: Config, context: AutoReplyContext):
    """Create the reply strategy selected by ``config.mode``."""
    gateway = BookingGateway(config.gateway)
    if config.mode == "menu":
        return MenuEngine(context, gateway=gateway)
    return ReplyPipeline(context, gateway=gateway, generator=AIReplyGenerator(config.ai))


async def run_test_reply(config: Config, message: str, phone: str) -> None:
    engine = MenuEngine(AutoReplyContext.from_config(config), gateway=BookingGateway(config.gateway))
    decision = await engine.test_reply(message, phone)
    print(f"Reason: {decision.reason}")
    print(decision.reply if decision.reply is not None else "(no reply)")


async def run_console(
    transport: ConsoleTransport, handler: MessageHandler
) -> None:
    loop = asyncio.get_running_loop()

    # Graceful shutdown on SIGTERM / SIGINT.
    def _shutdown(sig: signal.Signals) -> None:
        logger.info("Received %s — shutting down", sig.name)
        transport.close()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _shutdown, sig)
    try:
        async for event in transport.events():
            handler.dispatch(event)
        await handler.drain()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        level=getattr(logging, args.log_level),
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        logger.error("Config file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    if args.mode:
        config.mode = args.mode

    logger.info("Configuration loaded successfully (mode=%s)", config.mode)

    if args.test is not None:
        asyncio.run(run_test_reply(config, args.test, args.phone))
        return

    transport = ConsoleTransport(args.phone)

    if args.send:
        if not args.text:
            logger.error("--send requires --text")
            sys.exit(1)
        results = asyncio.run(send_bulk(transport, args.send, args.text, delay=config.bulk_delay))
        if not all(r.success for r in results):
            sys.exit(1)
        return

    context = AutoReplyContext.from_config(config)
    handler = MessageHandler(build_strategy(config, context), context)

    logger.info("Starting whatsapp-autoreply on the console as %s", transport.phone)
    asyncio.run(run_console(transport, handler))


if __name__ == "__main__":
    main()
