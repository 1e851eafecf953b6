"""Ports (interfaces) between the reply engine and its collaborators.

The engine only relies on these contracts, so tests can substitute fakes
and the real gateway / AI / WhatsApp clients stay swappable.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol

from whatsapp_autoreply.models import InboundMessage, ReplyDecision

# Async callable returning the sender's contact info ({"display_name": ...}).
ContactLookup = Callable[[], Awaitable[Optional[dict]]]


class DataGateway(Protocol):
    """Live booking data. Every lookup returns a payload dict or ``None``."""

    async def lookup_booking(self, phone: str) -> Optional[dict[str, Any]]:
        ...

    async def check_availability(
        self, route_id: int = 1, date: Optional[str] = None
    ) -> Optional[dict[str, Any]]:
        ...

    async def get_schedule(self) -> Optional[dict[str, Any]]:
        ...


class ReplyGenerator(Protocol):
    """Free-form reply generation. ``generate_reply`` returns ``None`` on failure."""

    def is_enabled(self) -> bool:
        ...

    async def generate_reply(
        self,
        text: str,
        sender_name: Optional[str] = None,
        live_data: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        ...


class IncomingEvent(Protocol):
    """One inbound message as delivered by the transport."""

    message: InboundMessage

    async def reply(self, text: str) -> bool:
        ...

    async def get_contact(self) -> Optional[dict]:
        ...


class MessageSender(Protocol):
    """Outbound-only side of the transport, used for direct and bulk sends."""

    async def send_message(self, phone: str, text: str) -> bool:
        ...


class ReplyStrategy(Protocol):
    """Decides what (if anything) to answer to an inbound message."""

    async def resolve(
        self, message: InboundMessage, get_contact: Optional[ContactLookup] = None
    ) -> ReplyDecision:
        ...
