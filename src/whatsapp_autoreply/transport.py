"""Transport adapters: raw WhatsApp events in, reply text out.

The production WhatsApp Web client lives outside this package; it feeds
raw message dicts through :func:`parse_event`. :class:`ConsoleTransport`
is a local stand-in used by the CLI, reading inbound messages from stdin
and printing replies.
"""

from __future__ import annotations

import asyncio
import collections
import logging
import sys
import threading
import time
from typing import TextIO

from whatsapp_autoreply.models import InboundMessage
from whatsapp_autoreply.phone import from_whatsapp_id, normalize_phone_number

logger = logging.getLogger(__name__)

GROUP_SUFFIX = "@g.us"


def parse_event(event: dict) -> InboundMessage | None:
    """Convert a raw client ``message`` event into an :class:`InboundMessage`.

    Returns ``None`` when the event lacks a sender or a text body.
    """
    chat_id = event.get("from")
    if not chat_id:
        logger.debug("Event missing 'from'; dropping")
        return None

    body = event.get("body")
    if not isinstance(body, str):
        logger.debug("Event from %s has no text body; dropping", chat_id)
        return None

    timestamp = event.get("timestamp")
    return InboundMessage(
        sender=from_whatsapp_id(chat_id),
        body=body,
        is_from_self=bool(event.get("fromMe")),
        is_group_origin=chat_id.endswith(GROUP_SUFFIX),
        timestamp=float(timestamp) if timestamp is not None else None,
    )


class ConsoleEvent:
    """An inbound console line, answerable through its transport."""

    def __init__(self, message: InboundMessage, transport: ConsoleTransport) -> None:
        self.message = message
        self._transport = transport

    async def reply(self, text: str) -> bool:
        return await self._transport.send_message(self.message.sender, text)

    async def get_contact(self) -> dict | None:
        return {"display_name": self._transport.display_name}


class ConsoleTransport:
    """Reads one message per stdin line and prints outgoing messages.

    Lines are read on a daemon thread so a blocked read never keeps the
    process alive; :meth:`close` ends :meth:`events` even while a read is
    pending.
    """

    def __init__(
        self,
        phone: str,
        *,
        display_name: str | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.phone = normalize_phone_number(phone) or phone
        self.display_name = display_name
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._closed = False
        self._lines: asyncio.Queue[str | None] | None = None
        self._reader: threading.Thread | None = None
        # Recent outbound messages, newest last.
        self.sent: collections.deque[tuple[str, str]] = collections.deque(maxlen=100)

    async def send_message(self, phone: str, text: str) -> bool:
        if self._closed:
            logger.error("Transport closed; cannot send to %s", phone)
            return False
        self._stdout.write(f"\n[to {phone}]\n{text}\n\n")
        self._stdout.flush()
        self.sent.append((phone, text))
        return True

    def _read_lines(self, loop: asyncio.AbstractEventLoop, lines: asyncio.Queue) -> None:
        try:
            for line in iter(self._stdin.readline, ""):
                loop.call_soon_threadsafe(lines.put_nowait, line)
            loop.call_soon_threadsafe(lines.put_nowait, None)
        except RuntimeError:
            # Event loop already closed.
            return

    async def events(self):
        """Yield one event per input line until EOF or :meth:`close`."""
        if self._closed:
            return
        self._lines = asyncio.Queue()
        self._reader = threading.Thread(
            target=self._read_lines,
            args=(asyncio.get_running_loop(), self._lines),
            name="console-stdin",
            daemon=True,
        )
        self._reader.start()

        while not self._closed:
            line = await self._lines.get()
            if line is None or self._closed:
                return
            body = line.rstrip("\n")
            if not body.strip():
                continue
            message = InboundMessage(sender=self.phone, body=body, timestamp=time.time())
            yield ConsoleEvent(message, self)

    def close(self) -> None:
        """Stop reading input. Must be called from the event loop's thread."""
        logger.info("Closing console transport")
        self._closed = True
        if self._lines is not None:
            self._lines.put_nowait(None)
