"""
Reservation ledger: creates reservations and drives every status transition,
keeping the owning event's seat counter in step.

LIFECYCLE
=========

    create ──> CONFIRMED  (RESERVATION_AUTO_CONFIRM=true, default)
           └─> PENDING    (RESERVATION_AUTO_CONFIRM=false, awaits an admin)

    PENDING   ──confirm──>      CONFIRMED   seats unchanged (already held)
    PENDING   ──refuse──>       REFUSED     seats released
    CONFIRMED ──refuse──>       REFUSED     seats released
    PENDING/CONFIRMED ──cancel / admin-cancel──> CANCELLED   seats released

Seats are debited when the reservation is created, whatever its initial
status, so PENDING and CONFIRMED both hold seats and every exit to
CANCELLED/REFUSED gives them back exactly once.

CONCURRENCY
===========

- The debit is a conditional UPDATE (event_service.reserve_seats): two
  requests racing for the last seat can't both win.
- Duplicate active reservations are caught first by a lookup (clean 409) and,
  for concurrent inserts, by the partial unique index on (user_id, event_id).
- The insert and the counter update share the request transaction; if either
  fails, get_db rolls both back.
- Status transitions are guarded UPDATEs (WHERE status = <expected>), so two
  admins refusing the same reservation can't both release its seats.
"""

from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from booknest.models.enums import ReservationStatus, SEAT_HOLDING_STATUSES
from booknest.models.reservation import Reservation
from booknest.schemas.reservation import ReservationStats
from booknest.services.event_service import get_event, reserve_seats, release_seats
from booknest.services.validation import validate_reservation_request
from booknest.core.config import get_settings
from booknest.core.logging import get_logger
from booknest.core.metrics import record_rejection, record_transition
from booknest.core.security import TokenData

logger = get_logger(__name__)

_HOLDING = {s.value for s in SEAT_HOLDING_STATUSES}


def _initial_status() -> ReservationStatus:
    if get_settings().RESERVATION_AUTO_CONFIRM:
        return ReservationStatus.CONFIRMED
    return ReservationStatus.PENDING


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _duplicate() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="You already have an active reservation for this event",
    )


async def _find_active(db: AsyncSession, user_id: int, event_id: int) -> Optional[Reservation]:
    result = await db.execute(
        select(Reservation).where(
            Reservation.user_id == user_id,
            Reservation.event_id == event_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
    )
    return result.scalars().first()


async def create_reservation(
    db: AsyncSession,
    event_id: int,
    number_of_seats: int,
    user_id: int,
) -> Reservation:
    """
    Reserve seats on a published, upcoming event.

    400: event not published, in the past, or not enough seats
    404: event missing
    409: the user already holds a non-cancelled reservation for the event
    """
    event = await get_event(db, event_id)

    check = validate_reservation_request(
        event_status=event.status,
        event_date=event.date,
        available_seats=event.available_seats,
        number_of_seats=number_of_seats,
    )
    if not check:
        logger.warning(
            "reservation_rejected",
            event_id=event_id,
            user_id=user_id,
            reason=check.code,
            requested=number_of_seats,
            available=event.available_seats,
        )
        record_rejection(check.code)
        raise _bad_request(check.reason)

    if await _find_active(db, user_id, event_id):
        logger.warning("reservation_rejected", event_id=event_id, user_id=user_id, reason="duplicate")
        record_rejection("duplicate")
        raise _duplicate()

    # The counter may have moved since we read it; the conditional debit decides
    if not await reserve_seats(db, event_id, number_of_seats):
        logger.warning(
            "reservation_rejected",
            event_id=event_id,
            user_id=user_id,
            reason="insufficient_seats",
            requested=number_of_seats,
        )
        record_rejection("insufficient_seats")
        raise _bad_request("Insufficient seats available")

    initial = _initial_status()
    reservation = Reservation(
        event_id=event_id,
        user_id=user_id,
        number_of_seats=number_of_seats,
        status=initial.value,
    )
    db.add(reservation)
    try:
        await db.flush()
    except IntegrityError:
        # Concurrent duplicate hit the unique index; get_db rolls back the debit
        logger.warning("reservation_rejected", event_id=event_id, user_id=user_id, reason="duplicate_race")
        record_rejection("duplicate")
        raise _duplicate()
    await db.refresh(reservation)

    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        event_id=event_id,
        user_id=user_id,
        seats=number_of_seats,
        status=reservation.status,
    )
    record_transition("created")
    return reservation


async def get_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()

    if not reservation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reservation {reservation_id} not found",
        )
    return reservation


async def get_reservation_for(db: AsyncSession, reservation_id: int, requester: TokenData) -> Reservation:
    """Owners see their own reservations; admins see any."""
    reservation = await get_reservation(db, reservation_id)
    if reservation.user_id != requester.user_id and not requester.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to view this reservation",
        )
    return reservation


async def _transition(
    db: AsyncSession,
    reservation: Reservation,
    new_status: ReservationStatus,
    transition: str,
) -> Reservation:
    """
    Move `reservation` to `new_status`, releasing its seats if it held them.
    The UPDATE is guarded on the status we read, so only one concurrent
    caller can perform a given transition.
    """
    previous = reservation.status
    result = await db.execute(
        update(Reservation)
        .where(Reservation.id == reservation.id, Reservation.status == previous)
        .values(status=new_status.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Reservation was modified concurrently. Please try again.",
        )

    released = 0
    if previous in _HOLDING and new_status.value not in _HOLDING:
        if await release_seats(db, reservation.event_id, reservation.number_of_seats):
            released = reservation.number_of_seats

    await db.refresh(reservation)

    logger.info(
        f"reservation_{transition}",
        reservation_id=reservation.id,
        event_id=reservation.event_id,
        user_id=reservation.user_id,
        previous=previous,
        status=reservation.status,
        seats_released=released,
    )
    record_transition(transition)
    return reservation


async def cancel_reservation(db: AsyncSession, reservation_id: int, user_id: int) -> Reservation:
    """Cancel one's own reservation and give its seats back."""
    reservation = await get_reservation(db, reservation_id)

    if reservation.user_id != user_id:
        logger.warning("reservation_cancel_forbidden", reservation_id=reservation_id, user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to cancel this reservation",
        )

    if reservation.status == ReservationStatus.CANCELLED.value:
        raise _bad_request("Reservation is already cancelled")
    if reservation.status == ReservationStatus.REFUSED.value:
        raise _bad_request("Reservation has been refused and cannot be cancelled")

    return await _transition(db, reservation, ReservationStatus.CANCELLED, "cancelled")


async def confirm_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    """Admin: approve a PENDING reservation. Its seats are already held."""
    reservation = await get_reservation(db, reservation_id)

    if reservation.status != ReservationStatus.PENDING.value:
        raise _bad_request(f"Only pending reservations can be confirmed (current: {reservation.status})")

    return await _transition(db, reservation, ReservationStatus.CONFIRMED, "confirmed")


async def refuse_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    """Admin: refuse a reservation, releasing its seats if it held any."""
    reservation = await get_reservation(db, reservation_id)

    if reservation.status not in _HOLDING:
        raise _bad_request(f"Reservation cannot be refused (current: {reservation.status})")

    return await _transition(db, reservation, ReservationStatus.REFUSED, "refused")


async def admin_cancel_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    """Admin: cancel any reservation, releasing its seats if it held any."""
    reservation = await get_reservation(db, reservation_id)

    if reservation.status == ReservationStatus.CANCELLED.value:
        raise _bad_request("Reservation is already cancelled")

    return await _transition(db, reservation, ReservationStatus.CANCELLED, "admin_cancelled")


async def find_my_reservations(db: AsyncSession, user_id: int) -> list[Reservation]:
    """All of a user's reservations, newest first."""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.user_id == user_id)
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def find_by_event(db: AsyncSession, event_id: int) -> list[Reservation]:
    """Non-cancelled reservations for an event, newest first."""
    await get_event(db, event_id)

    result = await db.execute(
        select(Reservation)
        .where(
            Reservation.event_id == event_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_reservation_stats(db: AsyncSession, event_id: int) -> ReservationStats:
    """Count and seat total over an event's non-cancelled reservations."""
    await get_event(db, event_id)

    result = await db.execute(
        select(
            func.count(Reservation.id),
            func.coalesce(func.sum(Reservation.number_of_seats), 0),
        ).where(
            Reservation.event_id == event_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
    )
    total_reservations, total_seats = result.one()

    return ReservationStats(
        event_id=event_id,
        total_reservations=total_reservations,
        total_seats_reserved=total_seats,
    )
