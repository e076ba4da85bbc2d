"""
Reservation model: one user's claim on some of an event's seats.

Key design decisions:
- Partial unique index on (user_id, event_id) WHERE status <> 'CANCELLED'
  rejects duplicate active reservations at the storage tier, including two
  concurrent inserts that both passed the application-level check.
- Records are never deleted by reservation operations; status moves instead.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from booknest.db.base import Base, TimestampMixin
from booknest.models.enums import ReservationStatus, sql_in

MAX_SEATS_PER_RESERVATION = 10

_ACTIVE_ONLY = text(f"status <> '{ReservationStatus.CANCELLED.value}'")


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ReservationStatus.CONFIRMED.value, index=True)
    number_of_seats = Column(Integer, nullable=False, default=1)
    reservation_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="reservations")
    event = relationship("Event", back_populates="reservations")

    __table_args__ = (
        Index(
            "uq_reservations_user_event_active",
            "user_id",
            "event_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        CheckConstraint(
            f"number_of_seats BETWEEN 1 AND {MAX_SEATS_PER_RESERVATION}",
            name="check_reservation_seats_range",
        ),
        CheckConstraint(f"status IN ({sql_in(ReservationStatus)})", name="check_reservation_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, user={self.user_id}, event={self.event_id}, "
            f"seats={self.number_of_seats}, status={self.status})>"
        )
