"""Menu-driven reply strategy for the Supra Travels booking bot.

Deterministic: numbered options, canned texts and substring intents, no
AI and no keyword table. Ordinary text always gets an answer; only
acknowledgement words ("ok", "fine", ...) are left unanswered.
"""

from __future__ import annotations

import datetime
import logging
from typing import Callable

from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.filters import pre_filter
from whatsapp_autoreply.gateway import (
    SUPPORT_PHONE,
    format_availability_response,
    format_booking_response,
    format_schedule_response,
)
from whatsapp_autoreply.intents import (
    extract_date,
    extract_route,
    is_availability_query,
    is_booking_query,
    is_contact_query,
    is_greeting,
    is_new_booking_query,
    is_schedule_query,
)
from whatsapp_autoreply.models import InboundMessage, ReplyDecision
from whatsapp_autoreply.pipeline import fetch_quietly
from whatsapp_autoreply.ports import ContactLookup, DataGateway

logger = logging.getLogger(__name__)

MAIN_MENU = """\
🙏 *Welcome to Supra Travels!*

Please reply with a number:

1️⃣ Check my booking status
2️⃣ Book a new ticket
3️⃣ Check seat availability
4️⃣ Bus schedule & timings
5️⃣ Contact support

🌐 Website: supratravels.gt.tc"""

NEW_BOOKING_TEXT = f"""\
🎫 *Book Your Bus Ticket Now!*

🌐 *Online Booking:*
https://supratravels.gt.tc/booking.php

📍 Route: Bangalore ⇄ Hosadurga
💰 Round-trip: Just ₹999!

📞 *Or Call to Book:*
{SUPPORT_PHONE}

We're here to help! 🙏"""

CONTACT_TEXT = f"""\
📞 *Contact Supra Travels*

☎️ Phone: {SUPPORT_PHONE}
📧 Email: info@supratravels.in

📍 Address:
Supra Tour and Travels Pvt Ltd
Hosadurga, Chitradurga District
Karnataka - 577527

🌐 supratravels.gt.tc

We're available 7 AM - 10 PM daily! 🙏"""

THANK_YOU_TEXT = "🙏 Thank you for choosing Supra Travels! Safe travels! 🚌"

NOT_UNDERSTOOD_TEXT = f"🤔 I didn't understand that. Let me help you!\n\n{MAIN_MENU}"

BOOKING_UNAVAILABLE_TEXT = (
    f"❌ Sorry, couldn't check booking status right now.\n\n📞 Please call: {SUPPORT_PHONE}"
)
AVAILABILITY_UNAVAILABLE_TEXT = (
    f"❌ Couldn't check availability right now.\n\n📞 Please call: {SUPPORT_PHONE}"
)
SCHEDULE_UNAVAILABLE_TEXT = f"❌ Couldn't get schedule right now.\n\n📞 Please call: {SUPPORT_PHONE}"

COURTESY_WORDS = frozenset({"thanks", "thank you", "thankyou", "tq", "ty"})
FILLER_WORDS = frozenset(
    {"ok", "okay", "yes", "no", "hmm", "k", "fine", "good", "nice", "great"}
) | COURTESY_WORDS

MENU_OPTIONS = ("1", "2", "3", "4", "5")

DEFAULT_TEST_PHONE = "9999999999"


def _format(formatter: Callable[[dict], str], data: dict, fallback: str) -> str:
    try:
        return formatter(data)
    except (TypeError, AttributeError, ValueError):
        logger.warning("Malformed gateway payload; sending fallback text", exc_info=True)
        return fallback


class MenuEngine:
    """Menu reply strategy; :meth:`test_reply` runs it without a transport."""

    def __init__(
        self,
        context: AutoReplyContext,
        *,
        gateway: DataGateway | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.context = context
        self.gateway = gateway
        self._today = today

    async def resolve(
        self, message: InboundMessage, get_contact: ContactLookup | None = None
    ) -> ReplyDecision:
        blocked = pre_filter(message, self.context)
        if blocked is not None:
            return blocked
        return await self.decide(message.body, message.sender)

    async def test_reply(self, message: str, phone: str = DEFAULT_TEST_PHONE) -> ReplyDecision:
        """Answer ``message`` as if ``phone`` sent it, skipping the live-chat gates."""
        return await self.decide(message, phone)

    async def decide(self, text: str, phone: str) -> ReplyDecision:
        stripped = text.strip()
        lowered = stripped.lower()

        if lowered in FILLER_WORDS:
            if lowered in COURTESY_WORDS:
                return ReplyDecision.text(THANK_YOU_TEXT, "Thank you response")
            return ReplyDecision.silence("Acknowledgement word - no reply")

        if stripped in MENU_OPTIONS:
            reply = await self.menu_option(stripped, phone)
            return ReplyDecision.text(reply, f"Menu option {stripped}")

        if is_greeting(lowered):
            return ReplyDecision.text(MAIN_MENU, "Greeting detected")
        if is_booking_query(lowered):
            return ReplyDecision.text(await self.lookup_booking(phone), "Booking query detected")
        if is_availability_query(lowered):
            return ReplyDecision.text(
                await self.check_availability(lowered), "Availability query detected"
            )
        if is_schedule_query(lowered):
            return ReplyDecision.text(await self.schedule(), "Schedule query detected")
        if is_new_booking_query(lowered):
            return ReplyDecision.text(NEW_BOOKING_TEXT, "New booking query detected")
        if is_contact_query(lowered):
            return ReplyDecision.text(CONTACT_TEXT, "Contact/help query detected")

        return ReplyDecision.text(NOT_UNDERSTOOD_TEXT, "Default response")

    async def menu_option(self, option: str, phone: str) -> str:
        if option == "1":
            return await self.lookup_booking(phone)
        if option == "2":
            return NEW_BOOKING_TEXT
        if option == "3":
            return await self.check_availability("today")
        if option == "4":
            return await self.schedule()
        return CONTACT_TEXT

    # -- live lookups --------------------------------------------------------

    async def lookup_booking(self, phone: str) -> str:
        logger.info("Looking up booking for %s", phone)
        if self.gateway is not None:
            data = await fetch_quietly("Booking lookup", self.gateway.lookup_booking(phone))
            if data:
                return _format(format_booking_response, data, BOOKING_UNAVAILABLE_TEXT)
        return BOOKING_UNAVAILABLE_TEXT

    async def check_availability(self, query: str) -> str:
        route_id = extract_route(query)
        date = extract_date(query, self._today())
        logger.info("Checking availability - route %d, date %s", route_id, date)
        if self.gateway is not None:
            data = await fetch_quietly(
                "Availability check", self.gateway.check_availability(route_id, date)
            )
            if data:
                return _format(format_availability_response, data, AVAILABILITY_UNAVAILABLE_TEXT)
        return AVAILABILITY_UNAVAILABLE_TEXT

    async def schedule(self) -> str:
        logger.info("Getting schedule")
        if self.gateway is not None:
            data = await fetch_quietly("Schedule fetch", self.gateway.get_schedule())
            if data:
                return _format(format_schedule_response, data, SCHEDULE_UNAVAILABLE_TEXT)
        return SCHEDULE_UNAVAILABLE_TEXT
