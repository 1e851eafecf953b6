"""Phone number and WhatsApp chat-id helpers."""

import os
import re

_NON_DIGITS_EXCEPT_PLUS = re.compile(r"[^\d+]")
_NON_DIGITS = re.compile(r"\D")


def default_country_code() -> str:
    return os.environ.get("DEFAULT_COUNTRY_CODE", "91")


def normalize_phone_number(phone) -> str | None:
    """Return digits-only phone with country code, or None for empty input.

    Ten-digit numbers are assumed to be local and get the default
    country code prefixed.
    """
    if not phone:
        return None

    cleaned = _NON_DIGITS_EXCEPT_PLUS.sub("", str(phone))
    cleaned = cleaned.lstrip("+").replace("+", "")

    if len(cleaned) == 10:
        cleaned = default_country_code() + cleaned

    return cleaned or None


def to_whatsapp_id(phone) -> str | None:
    normalized = normalize_phone_number(phone)
    if not normalized:
        return None
    return f"{normalized}@c.us"


def from_whatsapp_id(chat_id: str | None) -> str | None:
    if not chat_id:
        return None
    return chat_id.replace("@c.us", "").replace("@s.whatsapp.net", "")


def is_valid_phone_number(phone) -> bool:
    normalized = normalize_phone_number(phone)
    if not normalized:
        return False
    return 10 <= len(normalized) <= 15


def local_number(phone: str, digits: int = 10) -> str:
    """Strip everything but digits and keep the trailing local part."""
    cleaned = _NON_DIGITS.sub("", phone)
    if len(cleaned) > digits:
        cleaned = cleaned[-digits:]
    return cleaned
