"""Tests for substring intent detection and date/route extraction."""

import datetime

import pytest

from whatsapp_autoreply.intents import (
    LiveIntent,
    classify_live_intent,
    extract_date,
    extract_route,
    is_availability_query,
    is_booking_query,
    is_contact_query,
    is_greeting,
    is_new_booking_query,
    is_schedule_query,
)

TODAY = datetime.date(2026, 10, 18)


class TestGreeting:
    @pytest.mark.parametrize("text", ["hi", "hello", "namaste", "hey there", "ನಮಸ್ಕಾರ"])
    def test_greetings(self, text):
        assert is_greeting(text)

    @pytest.mark.parametrize("text", ["hiking trip", "this is hi", "history"])
    def test_not_greetings(self, text):
        assert not is_greeting(text)


class TestMenuPredicates:
    def test_booking(self):
        assert is_booking_query("what is my booking status")
        assert not is_booking_query("i want to book")

    def test_availability(self):
        assert is_availability_query("how many seats left today")

    def test_schedule(self):
        assert is_schedule_query("what time does the bus leave")

    def test_new_booking(self):
        assert is_new_booking_query("i want to book")

    def test_contact(self):
        assert is_contact_query("need help")


class TestClassifyLiveIntent:
    def test_booking(self):
        assert classify_live_intent("where is my ticket") is LiveIntent.BOOKING

    def test_reservation(self):
        assert classify_live_intent("reservation for friday") is LiveIntent.BOOKING

    def test_availability(self):
        assert classify_live_intent("seats available tomorrow") is LiveIntent.AVAILABILITY

    def test_bare_seat(self):
        assert classify_live_intent("any free seat") is LiveIntent.AVAILABILITY

    def test_schedule(self):
        assert classify_live_intent("bus timings please") is LiveIntent.SCHEDULE

    def test_booking_wins_over_availability(self):
        assert classify_live_intent("is my seat booked") is LiveIntent.BOOKING

    def test_no_intent(self):
        assert classify_live_intent("hello there") is None


class TestExtractDate:
    def test_default_today(self):
        assert extract_date("seats available", TODAY) == "2026-10-18"

    def test_tomorrow(self):
        assert extract_date("seats available tomorrow", TODAY) == "2026-10-19"

    def test_tomorrow_across_month(self):
        assert extract_date("tomorrow", datetime.date(2026, 10, 31)) == "2026-11-01"


class TestExtractRoute:
    def test_default_outbound(self):
        assert extract_route("seats from bangalore") == 1

    def test_from_return_origin(self):
        assert extract_route("seats from hosadurga tomorrow") == 2

    def test_return_origin_to(self):
        assert extract_route("hosadurga to bangalore seats") == 2

    def test_custom_origin(self):
        assert extract_route("from mysore", return_origin="mysore") == 2
