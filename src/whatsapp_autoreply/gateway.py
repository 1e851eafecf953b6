"""Client for the Supra Travels booking API and WhatsApp reply formatting.

Lookups never raise: transport errors, non-2xx statuses and malformed
payloads are logged and reported as ``None`` so the reply pipeline can
fall through to its next stage.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Any

import requests

from whatsapp_autoreply.config import GatewayConfig
from whatsapp_autoreply.phone import local_number

logger = logging.getLogger(__name__)

SUPPORT_PHONE = "+91 96860 20017"
BOOKING_URL = "supratravels.gt.tc/booking.php"
SITE_URL = "supratravels.gt.tc"


def today() -> str:
    return datetime.date.today().isoformat()


class BookingGateway:
    """Thin async wrapper around the PHP ``bot.php`` endpoint."""

    def __init__(self, config: GatewayConfig) -> None:
        self._config = config

    def _get(self, action: str, params: dict[str, Any]) -> dict[str, Any] | None:
        query = {"action": action, "api_key": self._config.api_key, **params}
        logger.debug("API request: %s %s", action, params)
        try:
            resp = requests.get(
                self._config.url,
                params=query,
                headers={"X-API-Key": self._config.api_key},
                timeout=self._config.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            logger.error("Booking API error (%s): %s", action, exc)
            return None
        except ValueError as exc:
            logger.error("Booking API returned invalid JSON (%s): %s", action, exc)
            return None

        if not isinstance(data, dict):
            logger.error("Booking API returned %s for %s", type(data).__name__, action)
            return None

        logger.debug("API response: %s %s", action, data)
        return data

    async def _request(self, action: str, **params: Any) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get, action, params)

    async def get_routes(self) -> dict[str, Any] | None:
        return await self._request("routes")

    async def get_schedule(self) -> dict[str, Any] | None:
        return await self._request("schedule")

    async def check_availability(
        self, route_id: int = 1, date: str | None = None
    ) -> dict[str, Any] | None:
        """Seat availability for a route (1: Bangalore->Hosadurga, 2: reverse)."""
        return await self._request("availability", route=route_id, date=date or today())

    async def lookup_booking(self, phone: str) -> dict[str, Any] | None:
        return await self._request("booking", phone=local_number(phone))

    async def get_pricing(self) -> dict[str, Any] | None:
        return await self._request("pricing")


# -- formatting ---------------------------------------------------------------
#
# Formatters raise ValueError when a successful payload has the wrong shape;
# callers treat that the same as a failed lookup.


def _entries(data: dict, key: str) -> list[dict]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"'{key}' must be a list, got {type(items).__name__}")
    entries = [item for item in items if isinstance(item, dict)]
    if len(entries) < len(items):
        logger.warning("Skipping %d malformed '%s' entries", len(items) - len(entries), key)
    return entries


def format_booking_response(data: dict | None) -> str:
    if not data or not data.get("success"):
        return (
            "❌ Sorry, couldn't check booking status. "
            f"Please try again later or call {SUPPORT_PHONE}."
        )

    if not data.get("found"):
        return (
            "❌ No booking found for this phone number.\n\n"
            f"🎫 To book: {BOOKING_URL}\n"
            f"📞 Call: {SUPPORT_PHONE}"
        )

    bookings = _entries(data, "bookings")
    if not bookings:
        raise ValueError("booking reported found but no booking records were returned")

    lines = [f"✅ Found {len(bookings)} booking(s):", ""]
    for booking in bookings:
        lines.append(f"📋 *Booking #{booking.get('id')}*")
        lines.append(f"👤 {booking.get('name')}")
        lines.append(f"🛣️ {booking.get('route')}")
        lines.append(f"📅 {booking.get('date')}")
        lines.append(f"🪑 Seats: {booking.get('seats')}")
        lines.append(f"💰 ₹{booking.get('amount')}")
        lines.append(f"📊 Status: {booking.get('status')}")
        if booking.get("transaction_id"):
            lines.append(f"🔢 Txn: {booking['transaction_id']}")
        lines.append("")

    lines.append(f"Need help? Call {SUPPORT_PHONE}")
    return "\n".join(lines)


def format_availability_response(data: dict | None) -> str:
    if not data or not data.get("success"):
        return "❌ Couldn't check availability. Please try again later."

    raw_available = data.get("available") or 0
    if isinstance(raw_available, bool):
        raise ValueError(f"'available' must be a number, got {raw_available!r}")
    try:
        available = int(raw_available)
    except (TypeError, ValueError):
        raise ValueError(f"'available' must be a number, got {raw_available!r}") from None

    lines = [
        "🚌 *Seat Availability*",
        "",
        f"🛣️ Route: {data.get('route')}",
        f"📅 Date: {data.get('date')}",
        f"🪑 Available: {available} / {data.get('total_seats')} seats",
        f"📊 Status: {data.get('status')}",
        "",
    ]
    if available > 0:
        lines.append(f"🎫 Book now: {BOOKING_URL}")
    else:
        lines.append(f"😔 Fully booked! Try another date or call {SUPPORT_PHONE}")
    return "\n".join(lines)


def format_schedule_response(data: dict | None) -> str:
    if not data or not data.get("success"):
        return "❌ Couldn't get schedule. Please try again later."

    lines = [f"🕐 *Today's Schedule ({data.get('date')})*", ""]
    for trip in _entries(data, "schedule"):
        lines.append(f"🚌 {trip.get('route')}")
        lines.append(f"   ⏰ Departure: {trip.get('departure')}")
        lines.append(f"   ⏱️ Arrival: {trip.get('arrival')}")
        if trip.get("bus"):
            lines.append(f"   🚍 Bus: {trip['bus']}")
        lines.append("")

    lines.append(f"🎫 Book: {SITE_URL}")
    return "\n".join(lines)
