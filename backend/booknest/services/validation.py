"""
Business-rule checks run before anything is written.

Each check returns a ValidationResult instead of raising, so callers decide
how to surface the failure (services turn it into a 400) and the rules can be
unit-tested without a database or HTTP layer.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from booknest.models.enums import EventStatus
from booknest.models.reservation import MAX_SEATS_PER_RESERVATION


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str, code: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, code=code)

    def __bool__(self) -> bool:
        return self.ok


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def validate_event_date(date: datetime, now: Optional[datetime] = None) -> ValidationResult:
    if as_utc(date) < _now(now):
        return ValidationResult.failure("Event date cannot be in the past", "past_event")
    return ValidationResult.success()


def validate_capacity_change(
    new_max_participants: int,
    max_participants: int,
    available_seats: int,
) -> ValidationResult:
    if new_max_participants < 1:
        return ValidationResult.failure("Capacity must be at least 1", "invalid_capacity")
    reserved = max_participants - available_seats
    if new_max_participants < reserved:
        return ValidationResult.failure(
            f"Cannot reduce capacity below {reserved} (seats already reserved)",
            "capacity_below_reserved",
        )
    return ValidationResult.success()


def validate_seat_request(number_of_seats: int) -> ValidationResult:
    if not 1 <= number_of_seats <= MAX_SEATS_PER_RESERVATION:
        return ValidationResult.failure(
            f"Number of seats must be between 1 and {MAX_SEATS_PER_RESERVATION}",
            "invalid_seat_count",
        )
    return ValidationResult.success()


def validate_reservation_request(
    event_status: str,
    event_date: datetime,
    available_seats: int,
    number_of_seats: int,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Checks, in order: seat count range, event published, event not past,
    enough seats. The first failing rule wins.
    """
    seats_check = validate_seat_request(number_of_seats)
    if not seats_check:
        return seats_check

    if event_status != EventStatus.PUBLISHED.value:
        return ValidationResult.failure("Cannot reserve an event that is not published", "not_published")

    if as_utc(event_date) < _now(now):
        return ValidationResult.failure("Cannot reserve a past event", "past_event")

    if available_seats < number_of_seats:
        return ValidationResult.failure(
            f"Insufficient seats: only {available_seats} seat(s) available",
            "insufficient_seats",
        )

    return ValidationResult.success()
