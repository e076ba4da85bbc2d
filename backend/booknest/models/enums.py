"""
Status and role enumerations shared by models, schemas and services.
Stored as plain strings; CHECK constraints on each table pin the allowed values.
"""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    PARTICIPANT = "PARTICIPANT"


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REFUSED = "REFUSED"


# Statuses whose seats are held against the event's counter
SEAT_HOLDING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


def sql_in(enum_cls: type[enum.Enum]) -> str:
    return ", ".join(f"'{member.value}'" for member in enum_cls)
