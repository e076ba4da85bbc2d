"""
Event registry: event CRUD plus the seat counter primitives.

SEAT COUNTER
============

`available_seats` must always equal max_participants minus the seats held by
PENDING/CONFIRMED reservations. Two rules keep it that way:

  1. Reservations move the counter only through reserve_seats/release_seats,
     each a single conditional UPDATE:

       UPDATE events SET available_seats = available_seats - :k
       WHERE id = :id AND available_seats >= :k

     The check and the write happen in one statement, so two requests racing
     for the last seat can't both succeed; the loser sees rowcount == 0.

  2. Capacity edits recompute the counter from the current reserved count and
     write it back guarded by the `version` column (optimistic lock). A seat
     change that lands between our read and our write bumps the version, our
     UPDATE matches nothing, and we re-read and retry.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from booknest.models.enums import EventStatus
from booknest.models.event import Event
from booknest.models.reservation import Reservation
from booknest.schemas.event import EventCreate, EventUpdate
from booknest.services.validation import as_utc, validate_capacity_change, validate_event_date
from booknest.core.logging import get_logger
from booknest.core.metrics import event_update_retries, record_seats

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _ensure_owner(event: Event, requester_id: int, action: str) -> None:
    if event.created_by != requester_id:
        logger.warning("event_forbidden", event_id=event.id, user_id=requester_id, action=action)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not allowed to {action} this event",
        )


async def create_event(db: AsyncSession, event_data: EventCreate, owner_id: int) -> Event:
    """Create a new DRAFT event with full seat availability."""
    check = validate_event_date(event_data.date)
    if not check:
        raise _bad_request(check.reason)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=as_utc(event_data.date),
        location=event_data.location,
        max_participants=event_data.max_participants,
        available_seats=event_data.max_participants,
        status=EventStatus.DRAFT.value,
        created_by=owner_id,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, title=event.title, seats=event.max_participants)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID with its live seat counter."""
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


async def list_events(
    db: AsyncSession,
    status_filter: Optional[EventStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Event], int]:
    """List events matching the filters, ordered by date ascending."""
    query = select(Event)

    if status_filter is not None:
        query = query.where(Event.status == status_filter.value)
    if start_date is not None:
        query = query.where(Event.date >= as_utc(start_date))
    if end_date is not None:
        query = query.where(Event.date <= as_utc(end_date))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def update_event(
    db: AsyncSession,
    event_id: int,
    update_data: EventUpdate,
    requester_id: int,
) -> Event:
    """
    Apply a partial update. Capacity changes keep already-reserved seats:
    new available = new max - (old max - old available).
    """
    changes = update_data.model_dump(exclude_unset=True, exclude_none=True)

    if "date" in changes:
        check = validate_event_date(changes["date"])
        if not check:
            raise _bad_request(check.reason)
        changes["date"] = as_utc(changes["date"])
    if "status" in changes:
        changes["status"] = changes["status"].value

    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        event = await get_event(db, event_id)
        _ensure_owner(event, requester_id, "modify")

        values = dict(changes)
        if "max_participants" in values:
            check = validate_capacity_change(
                values["max_participants"], event.max_participants, event.available_seats
            )
            if not check:
                raise _bad_request(check.reason)
            values["available_seats"] = values["max_participants"] - event.reserved_seats

        if not values:
            return event

        current_version = event.version
        result = await db.execute(
            update(Event)
            .where(Event.id == event_id, Event.version == current_version)
            .values(**values, version=Event.version + 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 1:
            await db.refresh(event)
            logger.info(
                "event_updated",
                event_id=event.id,
                fields=sorted(changes),
                max_participants=event.max_participants,
                available_seats=event.available_seats,
                attempt=attempt,
            )
            return event

        logger.info("event_update_retry", event_id=event_id, attempt=attempt, reason="version_conflict")
        event_update_retries.inc()

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Event was modified concurrently. Please try again.",
    )


async def delete_event(db: AsyncSession, event_id: int, requester_id: int) -> None:
    """Delete an event and the reservations attached to it."""
    event = await get_event(db, event_id)
    _ensure_owner(event, requester_id, "delete")

    removed = await db.execute(
        delete(Reservation)
        .where(Reservation.event_id == event_id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(event)
    await db.flush()

    logger.info("event_deleted", event_id=event_id, reservations_removed=removed.rowcount)


async def update_event_status(
    db: AsyncSession,
    event_id: int,
    new_status: EventStatus,
    requester_id: int,
) -> Event:
    """Set the event status. Any status may follow any other."""
    event = await get_event(db, event_id)
    _ensure_owner(event, requester_id, "modify")

    previous = event.status
    await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(status=new_status.value, version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(event)

    logger.info("event_status_changed", event_id=event_id, previous=previous, status=event.status)
    return event


async def reserve_seats(db: AsyncSession, event_id: int, seats: int) -> bool:
    """
    Atomically debit `seats` from the counter.
    Returns False (and changes nothing) if fewer than `seats` remain.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_seats >= seats)
        .values(
            available_seats=Event.available_seats - seats,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    record_seats("debit", seats)
    return True


async def release_seats(db: AsyncSession, event_id: int, seats: int) -> bool:
    """
    Atomically credit `seats` back to the counter, never past max_participants.
    Returns False if the credit would overflow (counter out of sync).
    """
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.available_seats + seats <= Event.max_participants,
        )
        .values(
            available_seats=Event.available_seats + seats,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.error("seat_release_overflow", event_id=event_id, seats=seats)
        return False

    record_seats("credit", seats)
    return True
