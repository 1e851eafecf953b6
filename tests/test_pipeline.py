"""Tests for the layered reply resolution pipeline."""

import asyncio
import datetime
from unittest.mock import AsyncMock, MagicMock

from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.models import InboundMessage
from whatsapp_autoreply.pipeline import ReplyPipeline, fetch_quietly

SENDER = "919876543210"
TODAY = datetime.date(2026, 10, 18)

BOOKING = {
    "success": True,
    "found": True,
    "count": 1,
    "bookings": [
        {
            "id": 7,
            "name": "Ravi Kumar",
            "route": "Bangalore → Hosadurga",
            "date": "2026-10-20",
            "seats": "5",
            "amount": 499,
            "status": "confirmed",
        }
    ],
}
AVAILABILITY = {
    "success": True,
    "route": "Bangalore → Hosadurga",
    "date": "2026-10-18",
    "available": 9,
    "total_seats": 40,
    "status": "open",
}
SCHEDULE = {
    "success": True,
    "date": "2026-10-18",
    "schedule": [{"route": "Bangalore → Hosadurga", "departure": "22:00", "arrival": "03:30"}],
}


def make_msg(body: str, **overrides) -> InboundMessage:
    defaults = dict(sender=SENDER, body=body)
    defaults.update(overrides)
    return InboundMessage(**defaults)


def make_context(**overrides) -> AutoReplyContext:
    defaults = dict(
        default_message="Thanks for your message!",
        cooldown=60,
        keywords={"hi": "Hello!", "ok": None, "my booking": "Call us for bookings"},
    )
    defaults.update(overrides)
    return AutoReplyContext(**defaults)


def make_gateway(booking=None, availability=None, schedule=None) -> MagicMock:
    gateway = MagicMock()
    gateway.lookup_booking = AsyncMock(return_value=booking)
    gateway.check_availability = AsyncMock(return_value=availability)
    gateway.get_schedule = AsyncMock(return_value=schedule)
    return gateway


def make_generator(reply=None, enabled=True) -> MagicMock:
    generator = MagicMock()
    generator.is_enabled.return_value = enabled
    generator.generate_reply = AsyncMock(return_value=reply)
    return generator


def make_pipeline(context=None, gateway=None, generator=None) -> ReplyPipeline:
    return ReplyPipeline(
        context or make_context(),
        gateway=gateway,
        generator=generator,
        today=lambda: TODAY,
    )


def resolve(pipeline, body, get_contact=None, **overrides):
    return asyncio.run(pipeline.resolve(make_msg(body, **overrides), get_contact))


# ── Gates ──────────────────────────────────────────────────────────


class TestGates:
    def test_self_message_is_silent(self):
        gateway = make_gateway(booking=BOOKING)
        decision = resolve(make_pipeline(gateway=gateway), "my booking", is_from_self=True)
        assert decision.is_silent
        assert decision.reason == "self"
        gateway.lookup_booking.assert_not_called()

    def test_group_message_is_silent(self):
        assert resolve(make_pipeline(), "hi", is_group_origin=True).reason == "group"

    def test_disabled(self):
        assert resolve(make_pipeline(make_context(enabled=False)), "hi").reason == "disabled"

    def test_cooldown(self):
        context = make_context()
        context.cooldowns.mark_replied(SENDER)
        generator = make_generator(reply="AI")
        decision = resolve(make_pipeline(context, generator=generator), "hi")
        assert decision.reason == "cooldown"
        generator.generate_reply.assert_not_called()


# ── Explicit no-reply ──────────────────────────────────────────────


class TestSuppress:
    def test_no_reply_keyword_skips_remote_calls(self):
        context = make_context()
        context.set_keyword("booking", None)
        gateway = make_gateway(booking=BOOKING)
        generator = make_generator(reply="AI reply")

        decision = resolve(make_pipeline(context, gateway, generator), "Booking")

        assert decision.is_silent
        assert decision.reason == "keyword:booking"
        gateway.lookup_booking.assert_not_called()
        gateway.check_availability.assert_not_called()
        gateway.get_schedule.assert_not_called()
        generator.generate_reply.assert_not_called()

    def test_prefix_no_reply_keyword_silences_at_keyword_stage(self):
        decision = resolve(make_pipeline(), "ok see you")
        assert decision.is_silent
        assert decision.reason == "keyword:ok"


# ── Live data ──────────────────────────────────────────────────────


class TestLiveData:
    def test_live_booking_beats_keyword(self):
        gateway = make_gateway(booking=BOOKING)
        decision = resolve(make_pipeline(gateway=gateway), "my booking")

        assert decision.reason == "live:booking"
        assert "Ravi Kumar" in decision.reply
        assert "Status: confirmed" in decision.reply
        gateway.lookup_booking.assert_awaited_once_with(SENDER)

    def test_failed_lookup_falls_back_to_keyword(self):
        gateway = make_gateway(booking=None)
        decision = resolve(make_pipeline(gateway=gateway), "my booking")
        assert decision.reply == "Call us for bookings"
        assert decision.reason == "keyword:my booking"

    def test_raising_lookup_falls_back_to_keyword(self):
        gateway = make_gateway()
        gateway.lookup_booking.side_effect = RuntimeError("boom")
        decision = resolve(make_pipeline(gateway=gateway), "my booking")
        assert decision.reply == "Call us for bookings"

    def test_unsuccessful_payload_falls_through(self):
        gateway = make_gateway(booking={"success": False})
        decision = resolve(make_pipeline(gateway=gateway), "my booking")
        assert decision.reason == "keyword:my booking"

    def test_malformed_booking_records_fall_through(self):
        gateway = make_gateway(booking={"success": True, "found": True, "bookings": ["oops"]})
        decision = resolve(make_pipeline(gateway=gateway), "my booking")
        assert decision.reply == "Call us for bookings"
        assert decision.reason == "keyword:my booking"

    def test_malformed_availability_falls_through_to_default(self):
        gateway = make_gateway(availability={"success": True, "available": "plenty"})
        decision = resolve(make_pipeline(gateway=gateway), "seats available")
        assert decision.reply == "Thanks for your message!"
        assert decision.reason == "default"

    def test_numeric_string_availability_is_used(self):
        gateway = make_gateway(availability={**AVAILABILITY, "available": "3"})
        decision = resolve(make_pipeline(gateway=gateway), "seats available")
        assert decision.reason == "live:availability"
        assert "Available: 3 / 40" in decision.reply

    def test_malformed_schedule_falls_through(self):
        gateway = make_gateway(schedule={"success": True, "schedule": "22:00"})
        decision = resolve(make_pipeline(gateway=gateway), "bus timings?")
        assert decision.reason == "default"

    def test_availability_tomorrow_fully_booked(self):
        full = {**AVAILABILITY, "date": "2026-10-19", "available": 0, "status": "full"}
        gateway = make_gateway(availability=full)

        decision = resolve(make_pipeline(gateway=gateway), "seats available tomorrow")

        assert decision.reason == "live:availability"
        assert "Fully booked" in decision.reply
        assert "booking.php" not in decision.reply
        gateway.check_availability.assert_awaited_once_with(1, "2026-10-19")

    def test_availability_return_route(self):
        gateway = make_gateway(availability=AVAILABILITY)
        resolve(make_pipeline(gateway=gateway), "any seat from hosadurga")
        gateway.check_availability.assert_awaited_once_with(2, "2026-10-18")

    def test_schedule(self):
        gateway = make_gateway(schedule=SCHEDULE)
        decision = resolve(make_pipeline(gateway=gateway), "bus timings?")
        assert decision.reason == "live:schedule"
        assert "Departure: 22:00" in decision.reply

    def test_no_intent_skips_lookups(self):
        gateway = make_gateway(booking=BOOKING)
        resolve(make_pipeline(gateway=gateway), "hi")
        gateway.lookup_booking.assert_not_called()

    def test_gateway_disabled(self):
        gateway = make_gateway(booking=BOOKING)
        context = make_context(use_gateway=False)
        decision = resolve(make_pipeline(context, gateway=gateway), "my booking")
        assert decision.reason == "keyword:my booking"
        gateway.lookup_booking.assert_not_called()


# ── AI ─────────────────────────────────────────────────────────────


class TestAI:
    def test_ai_reply_wins_over_keyword(self):
        generator = make_generator(reply="Hello from AI")
        decision = resolve(make_pipeline(generator=generator), "hi")
        assert decision.reply == "Hello from AI"
        assert decision.reason == "ai"

    def test_ai_receives_name_and_live_context(self):
        gateway = make_gateway(booking=BOOKING, availability=AVAILABILITY, schedule=SCHEDULE)
        generator = make_generator(reply="Grounded answer")
        get_contact = AsyncMock(return_value={"display_name": "Ravi"})

        resolve(make_pipeline(gateway=gateway, generator=generator), "  Namaste  ", get_contact)

        generator.generate_reply.assert_awaited_once_with(
            "Namaste",
            "Ravi",
            {"booking": BOOKING, "availability_today": AVAILABILITY, "schedule": SCHEDULE},
        )
        gateway.check_availability.assert_awaited_once_with(1, "2026-10-18")

    def test_live_context_failures_are_independent(self):
        gateway = make_gateway(availability=AVAILABILITY, schedule={"success": False})
        gateway.lookup_booking.side_effect = RuntimeError("timeout")
        generator = make_generator(reply="ok")

        resolve(make_pipeline(gateway=gateway, generator=generator), "hello there")

        live_data = generator.generate_reply.await_args[0][2]
        assert live_data == {"availability_today": AVAILABILITY}

    def test_no_live_context_passes_none(self):
        generator = make_generator(reply="ok")
        resolve(make_pipeline(make_context(use_gateway=False), make_gateway(), generator), "hello")
        assert generator.generate_reply.await_args[0][2] is None

    def test_contact_failure_is_tolerated(self):
        generator = make_generator(reply="ok")
        get_contact = AsyncMock(side_effect=RuntimeError("no contact"))
        decision = resolve(make_pipeline(generator=generator), "hello", get_contact)
        assert decision.reason == "ai"
        assert generator.generate_reply.await_args[0][1] is None

    def test_ai_failure_falls_back_to_keyword(self):
        generator = make_generator(reply=None)
        decision = resolve(make_pipeline(generator=generator), "hi")
        assert decision.reason == "keyword:hi"

    def test_ai_exception_falls_back_to_default(self):
        generator = make_generator()
        generator.generate_reply.side_effect = RuntimeError("quota")
        decision = resolve(make_pipeline(generator=generator), "what's up")
        assert decision.reason == "default"

    def test_unconfigured_generator_not_called(self):
        generator = make_generator(reply="AI", enabled=False)
        decision = resolve(make_pipeline(generator=generator), "hi")
        assert decision.reason == "keyword:hi"
        generator.generate_reply.assert_not_called()

    def test_ai_toggle_off(self):
        generator = make_generator(reply="AI")
        decision = resolve(make_pipeline(make_context(use_ai=False), generator=generator), "hi")
        assert decision.reason == "keyword:hi"
        generator.generate_reply.assert_not_called()

    def test_raising_enabled_check_skips_ai(self):
        generator = make_generator(reply="AI")
        generator.is_enabled.side_effect = RuntimeError("no key store")
        decision = resolve(make_pipeline(generator=generator), "hi")
        assert decision.reason == "keyword:hi"
        generator.generate_reply.assert_not_called()


# ── Keywords and default ───────────────────────────────────────────


class TestKeywordAndDefault:
    def test_keyword_prefix(self):
        decision = resolve(make_pipeline(), "Hi, anyone there?")
        assert decision.reply == "Hello!"

    def test_default_message(self):
        decision = resolve(make_pipeline(), "where are you located")
        assert decision.reply == "Thanks for your message!"
        assert decision.reason == "default"

    def test_empty_default_is_silence(self):
        decision = resolve(make_pipeline(make_context(default_message="")), "random text")
        assert decision.is_silent
        assert decision.reason == "default"


class TestFetchQuietly:
    def test_passes_result_through(self):
        async def ok():
            return {"success": True}

        assert asyncio.run(fetch_quietly("x", ok())) == {"success": True}

    def test_exception_becomes_none(self):
        async def broken():
            raise ValueError("bad")

        assert asyncio.run(fetch_quietly("x", broken())) is None
