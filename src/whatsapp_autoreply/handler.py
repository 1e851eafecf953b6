"""Effectful shell around a reply strategy: send the reply, mark the cooldown."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.models import ReplyDecision, SendResult
from whatsapp_autoreply.phone import is_valid_phone_number, normalize_phone_number
from whatsapp_autoreply.ports import IncomingEvent, MessageSender, ReplyStrategy

logger = logging.getLogger(__name__)


class MessageHandler:
    """Runs each inbound event through the strategy in its own task.

    One failing event is logged and dropped; it never stops the others.
    Sends are attempted once, and only a successful send starts the
    sender's cooldown.
    """

    def __init__(self, strategy: ReplyStrategy, context: AutoReplyContext) -> None:
        self.strategy = strategy
        self.context = context
        self._tasks: set[asyncio.Task] = set()

    def dispatch(self, event: IncomingEvent) -> asyncio.Task:
        """Schedule handling of ``event`` without waiting for it."""
        task = asyncio.create_task(self.handle(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all dispatched events to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def handle(self, event: IncomingEvent) -> ReplyDecision | None:
        try:
            return await self._handle(event)
        except Exception:
            logger.exception("Error handling message")
            return None

    async def _handle(self, event: IncomingEvent) -> ReplyDecision:
        message = event.message
        logger.info("Message from %s: %s", message.sender, message.body[:100])

        decision = await self.strategy.resolve(message, get_contact=event.get_contact)
        if decision.is_silent:
            logger.info("No reply to %s (%s)", message.sender, decision.reason)
            return decision

        try:
            sent = await event.reply(decision.reply)
        except Exception:
            logger.exception("Failed to send reply to %s", message.sender)
            return decision

        if not sent:
            logger.error("Transport rejected reply to %s", message.sender)
            return decision

        self.context.cooldowns.mark_replied(message.sender)
        logger.info("Replied to %s (%s)", message.sender, decision.reason)
        return decision


async def send_bulk(
    sender: MessageSender,
    recipients: Iterable[str],
    text: str,
    *,
    delay: float = 1,
) -> list[SendResult]:
    """Send ``text`` to each recipient in turn, pausing ``delay`` seconds between sends.

    Invalid numbers are skipped and a failed recipient does not stop the
    batch; the outcome of every recipient is reported in order.
    """
    results: list[SendResult] = []
    attempted = 0
    for phone in recipients:
        if not is_valid_phone_number(phone):
            results.append(SendResult(phone=phone, success=False, error="Invalid phone number"))
            continue

        if attempted and delay > 0:
            await asyncio.sleep(delay)
        attempted += 1

        try:
            ok = await sender.send_message(normalize_phone_number(phone), text)
        except Exception as exc:
            logger.error("Bulk send to %s failed: %s", phone, exc)
            results.append(SendResult(phone=phone, success=False, error=str(exc)))
            continue

        results.append(
            SendResult(phone=phone, success=bool(ok), error=None if ok else "Send rejected")
        )

    sent = sum(1 for r in results if r.success)
    logger.info("Bulk send finished: %d/%d delivered", sent, len(results))
    return results
