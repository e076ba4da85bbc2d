"""
Event model with seat inventory tracking.

- `available_seats` is the authoritative live counter. It is only ever moved
  by conditional UPDATEs (see event_service.reserve_seats / release_seats),
  and CHECK constraints keep it within 0..max_participants at the DB level.
- `version` is bumped on every counter or capacity change; capacity edits use
  it as an optimistic lock so a concurrent reservation is never overwritten.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from booknest.db.base import Base, TimestampMixin
from booknest.models.enums import EventStatus, sql_in


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    max_participants = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    version = Column(Integer, nullable=False, default=1)

    creator = relationship("User", back_populates="events")
    reservations = relationship("Reservation", back_populates="event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("max_participants > 0", name="check_max_participants_positive"),
        CheckConstraint("available_seats <= max_participants", name="check_available_lte_max"),
        CheckConstraint(f"status IN ({sql_in(EventStatus)})", name="check_event_status"),
        Index("ix_events_date", "date"),
        Index("ix_events_status_date", "status", "date"),
        Index("ix_events_created_by", "created_by"),
    )

    @property
    def reserved_seats(self) -> int:
        return self.max_participants - self.available_seats

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title={self.title}, status={self.status}, "
            f"available={self.available_seats}/{self.max_participants})>"
        )
