"""Layered reply resolution: live data, then AI, then keywords, then default.

Stages, first terminal decision wins:

  1-3. pre-filter (self / group / disabled / cooldown)   -> silence
  4.   exact match on a no-reply keyword                 -> silence
  5.   live booking data (if enabled)                    -> reply, or fall through
  6.   AI generation (if enabled and configured)         -> reply, or fall through
  7.   keyword rules                                     -> reply / silence / fall through
  8.   configured default message                        -> reply (silence if empty)

Collaborator failures at stages 5 and 6 are logged and treated as the
stage declining; they never abort resolution.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Any, Awaitable, Callable

from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.filters import pre_filter
from whatsapp_autoreply.gateway import (
    format_availability_response,
    format_booking_response,
    format_schedule_response,
)
from whatsapp_autoreply.intents import (
    OUTBOUND_ROUTE_ID,
    LiveIntent,
    classify_live_intent,
    extract_date,
    extract_route,
)
from whatsapp_autoreply.models import InboundMessage, MatchKind, ReplyDecision
from whatsapp_autoreply.ports import ContactLookup, DataGateway, ReplyGenerator

logger = logging.getLogger(__name__)


async def fetch_quietly(label: str, call: Awaitable[Any]) -> Any:
    """Await a collaborator call, turning any exception into ``None``."""
    try:
        return await call
    except Exception:
        logger.warning("%s failed; continuing without it", label, exc_info=True)
        return None


def _usable(payload: Any) -> bool:
    return isinstance(payload, dict) and bool(payload.get("success"))


class ReplyPipeline:
    """AI-layered reply strategy."""

    def __init__(
        self,
        context: AutoReplyContext,
        *,
        gateway: DataGateway | None = None,
        generator: ReplyGenerator | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.context = context
        self.gateway = gateway
        self.generator = generator
        self._today = today

    async def resolve(
        self, message: InboundMessage, get_contact: ContactLookup | None = None
    ) -> ReplyDecision:
        blocked = pre_filter(message, self.context)
        if blocked is not None:
            return blocked

        text = message.normalized_text

        # Checked before any remote call so no-reply phrases cost nothing.
        if self.context.keywords.is_suppressed(text):
            return ReplyDecision.silence(f"keyword:{text}")

        if self.context.use_gateway and self.gateway is not None:
            decision = await self._live_data_reply(message.sender, text)
            if decision is not None:
                return decision

        if self.context.use_ai and self._generator_ready():
            decision = await self._ai_reply(message, get_contact)
            if decision is not None:
                return decision

        match = self.context.keywords.resolve(text)
        if match.kind is MatchKind.REPLY:
            return ReplyDecision.text(match.reply, f"keyword:{match.keyword}")
        if match.kind is MatchKind.SUPPRESS:
            return ReplyDecision.silence(f"keyword:{match.keyword}")

        if self.context.default_message:
            return ReplyDecision.text(self.context.default_message, "default")
        return ReplyDecision.silence("default")

    # -- live data -----------------------------------------------------------

    async def _live_data_reply(self, sender: str, text: str) -> ReplyDecision | None:
        intent = classify_live_intent(text)
        if intent is None:
            return None

        if intent is LiveIntent.BOOKING:
            logger.info("Looking up booking for %s", sender)
            payload = await fetch_quietly("Booking lookup", self.gateway.lookup_booking(sender))
            formatter = format_booking_response
        elif intent is LiveIntent.AVAILABILITY:
            route_id = extract_route(text)
            date = extract_date(text, self._today())
            logger.info("Checking availability - route %d, date %s", route_id, date)
            payload = await fetch_quietly(
                "Availability check", self.gateway.check_availability(route_id, date)
            )
            formatter = format_availability_response
        else:
            logger.info("Getting schedule")
            payload = await fetch_quietly("Schedule fetch", self.gateway.get_schedule())
            formatter = format_schedule_response

        if not _usable(payload):
            logger.info("No live %s data; falling through", intent.value)
            return None

        try:
            reply = formatter(payload)
        except (TypeError, AttributeError, ValueError):
            logger.warning("Malformed live %s data; falling through", intent.value, exc_info=True)
            return None
        if not reply:
            return None
        return ReplyDecision.text(reply, f"live:{intent.value}")

    # -- AI ------------------------------------------------------------------

    def _generator_ready(self) -> bool:
        if self.generator is None:
            return False
        try:
            return bool(self.generator.is_enabled())
        except Exception:
            logger.warning("AI availability check failed; skipping AI", exc_info=True)
            return False

    async def _sender_name(self, get_contact: ContactLookup | None) -> str | None:
        if get_contact is None:
            return None
        contact = await fetch_quietly("Contact fetch", get_contact())
        if not contact:
            return None
        return contact.get("display_name") or contact.get("pushname") or contact.get("name")

    async def _live_context(self, sender: str) -> dict[str, Any] | None:
        if not self.context.use_gateway or self.gateway is None:
            return None

        booking, availability, schedule = await asyncio.gather(
            fetch_quietly("Booking lookup", self.gateway.lookup_booking(sender)),
            fetch_quietly(
                "Availability check",
                self.gateway.check_availability(OUTBOUND_ROUTE_ID, self._today().isoformat()),
            ),
            fetch_quietly("Schedule fetch", self.gateway.get_schedule()),
        )
        live_data = {
            key: payload
            for key, payload in (
                ("booking", booking),
                ("availability_today", availability),
                ("schedule", schedule),
            )
            if _usable(payload)
        }
        return live_data or None

    async def _ai_reply(
        self, message: InboundMessage, get_contact: ContactLookup | None
    ) -> ReplyDecision | None:
        sender_name = await self._sender_name(get_contact)
        live_data = await self._live_context(message.sender)

        reply = await fetch_quietly(
            "AI generation",
            self.generator.generate_reply(message.body.strip(), sender_name, live_data),
        )
        if not reply:
            logger.info("No AI reply for %s; falling back to keywords", message.sender)
            return None
        return ReplyDecision.text(reply, "ai")
