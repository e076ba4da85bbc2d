"""
Unit tests for the business-rule checks. No database or HTTP involved.
"""

from datetime import datetime, timezone, timedelta

import pytest

from booknest.services.validation import (
    as_utc,
    validate_capacity_change,
    validate_event_date,
    validate_reservation_request,
    validate_seat_request,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
TOMORROW = NOW + timedelta(days=1)
YESTERDAY = NOW - timedelta(days=1)


def test_as_utc_treats_naive_as_utc():
    naive = datetime(2026, 6, 1, 12, 0)
    assert as_utc(naive) == NOW
    assert as_utc(naive).tzinfo is timezone.utc


def test_as_utc_converts_offsets():
    paris = timezone(timedelta(hours=2))
    assert as_utc(datetime(2026, 6, 1, 14, 0, tzinfo=paris)) == NOW


def test_event_date_in_future():
    assert validate_event_date(TOMORROW, now=NOW)


def test_event_date_in_past():
    result = validate_event_date(YESTERDAY, now=NOW)
    assert not result
    assert result.code == "past_event"


@pytest.mark.parametrize("seats", [1, 5, 10])
def test_seat_request_in_range(seats):
    assert validate_seat_request(seats)


@pytest.mark.parametrize("seats", [0, -3, 11])
def test_seat_request_out_of_range(seats):
    result = validate_seat_request(seats)
    assert not result
    assert result.code == "invalid_seat_count"


def test_capacity_growth():
    assert validate_capacity_change(200, max_participants=100, available_seats=40)


def test_capacity_shrink_to_reserved():
    assert validate_capacity_change(60, max_participants=100, available_seats=40)


def test_capacity_shrink_below_reserved():
    result = validate_capacity_change(59, max_participants=100, available_seats=40)
    assert not result
    assert result.code == "capacity_below_reserved"
    assert "60" in result.reason


def test_capacity_must_be_positive():
    result = validate_capacity_change(0, max_participants=10, available_seats=10)
    assert result.code == "invalid_capacity"


def test_reservation_request_ok():
    assert validate_reservation_request("PUBLISHED", TOMORROW, 10, 3, now=NOW)


def test_reservation_request_exact_fit():
    assert validate_reservation_request("PUBLISHED", TOMORROW, 3, 3, now=NOW)


@pytest.mark.parametrize("status", ["DRAFT", "CANCELLED"])
def test_reservation_request_unpublished(status):
    result = validate_reservation_request(status, TOMORROW, 10, 1, now=NOW)
    assert result.code == "not_published"


def test_reservation_request_past_event():
    result = validate_reservation_request("PUBLISHED", YESTERDAY, 10, 1, now=NOW)
    assert result.code == "past_event"


def test_reservation_request_insufficient_seats():
    result = validate_reservation_request("PUBLISHED", TOMORROW, 2, 3, now=NOW)
    assert result.code == "insufficient_seats"
    assert "only 2 seat(s)" in result.reason


def test_reservation_request_rule_order():
    """Seat count is checked first, then status, then date, then capacity."""
    assert validate_reservation_request("DRAFT", YESTERDAY, 0, 11, now=NOW).code == "invalid_seat_count"
    assert validate_reservation_request("DRAFT", YESTERDAY, 0, 1, now=NOW).code == "not_published"
    assert validate_reservation_request("PUBLISHED", YESTERDAY, 0, 1, now=NOW).code == "past_event"
