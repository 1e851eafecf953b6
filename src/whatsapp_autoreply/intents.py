"""Substring-trigger intent detection shared by both reply strategies.

All predicates expect text that is already lower-cased and trimmed.
"""

from __future__ import annotations

import datetime
from enum import Enum

GREETINGS = ("hi", "hello", "hey", "hii", "hiii", "namaste", "namaskar", "namaskara", "ನಮಸ್ಕಾರ")

BOOKING_TRIGGERS = (
    "booking",
    "booked",
    "my booking",
    "my ticket",
    "reservation",
    "ticket status",
    "booking status",
    "check booking",
    "my seat",
)

AVAILABILITY_TRIGGERS = (
    "available",
    "availability",
    "seats available",
    "how many seats",
    "seats left",
    "is there seat",
    "any seat",
)

SCHEDULE_TRIGGERS = (
    "schedule",
    "timing",
    "timings",
    "time",
    "departure",
    "arrive",
    "when does",
    "what time",
    "bus time",
)

NEW_BOOKING_TRIGGERS = (
    "book",
    "new booking",
    "book ticket",
    "book seat",
    "want to book",
    "need ticket",
    "book bus",
)

CONTACT_TRIGGERS = ("contact", "call", "phone", "number", "help", "support", "address", "office")

# The live-data stage also reacts to the bare nouns.
LIVE_BOOKING_TRIGGERS = BOOKING_TRIGGERS + ("ticket",)
LIVE_AVAILABILITY_TRIGGERS = AVAILABILITY_TRIGGERS + ("seat",)

OUTBOUND_ROUTE_ID = 1  # Bangalore -> Hosadurga
RETURN_ROUTE_ID = 2  # Hosadurga -> Bangalore
RETURN_ORIGIN = "hosadurga"


class LiveIntent(Enum):
    BOOKING = "booking"
    AVAILABILITY = "availability"
    SCHEDULE = "schedule"


def _contains_any(text: str, triggers: tuple[str, ...]) -> bool:
    return any(trigger in text for trigger in triggers)


def is_greeting(text: str) -> bool:
    return text in GREETINGS or any(text.startswith(g + " ") for g in GREETINGS)


def is_booking_query(text: str) -> bool:
    return _contains_any(text, BOOKING_TRIGGERS)


def is_availability_query(text: str) -> bool:
    return _contains_any(text, AVAILABILITY_TRIGGERS)


def is_schedule_query(text: str) -> bool:
    return _contains_any(text, SCHEDULE_TRIGGERS)


def is_new_booking_query(text: str) -> bool:
    return _contains_any(text, NEW_BOOKING_TRIGGERS)


def is_contact_query(text: str) -> bool:
    return _contains_any(text, CONTACT_TRIGGERS)


def classify_live_intent(text: str) -> LiveIntent | None:
    """Pick the live-data lookup a message asks for, if any."""
    if _contains_any(text, LIVE_BOOKING_TRIGGERS):
        return LiveIntent.BOOKING
    if _contains_any(text, LIVE_AVAILABILITY_TRIGGERS):
        return LiveIntent.AVAILABILITY
    if _contains_any(text, SCHEDULE_TRIGGERS):
        return LiveIntent.SCHEDULE
    return None


def extract_date(text: str, today: datetime.date) -> str:
    """ISO travel date: tomorrow if the text says so, otherwise today."""
    if "tomorrow" in text:
        return (today + datetime.timedelta(days=1)).isoformat()
    return today.isoformat()


def extract_route(text: str, return_origin: str = RETURN_ORIGIN) -> int:
    """Route id: the return leg when the text starts the trip at ``return_origin``."""
    if f"from {return_origin}" in text or f"{return_origin} to" in text:
        return RETURN_ROUTE_ID
    return OUTBOUND_ROUTE_ID
