"""
Reservation endpoints. Participants manage their own reservations; admins
review, confirm, refuse and cancel any of them.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booknest.db.session import get_db, run_after_commit
from booknest.schemas.reservation import ReservationCreate, ReservationResponse, ReservationStats
from booknest.services.reservation_service import (
    create_reservation,
    find_my_reservations,
    get_reservation_for,
    cancel_reservation,
    find_by_event,
    get_reservation_stats,
    confirm_reservation,
    refuse_reservation,
    admin_cancel_reservation,
)
from booknest.services.cache_service import invalidate_event_cache
from booknest.core.security import TokenData, get_current_user, get_current_user_id, require_admin

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation_endpoint(
    reservation_data: ReservationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve seats on a published event.
    The seat debit is a single conditional update, so the event can't be overbooked.
    """
    reservation = await create_reservation(
        db, reservation_data.event_id, reservation_data.number_of_seats, user_id
    )
    run_after_commit(db, invalidate_event_cache)
    return reservation


@router.get("/me", response_model=list[ReservationResponse])
async def my_reservations(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await find_my_reservations(db, user_id)


@router.get("/event/{event_id}", response_model=list[ReservationResponse])
async def event_reservations(
    event_id: int,
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Non-cancelled reservations for an event."""
    return await find_by_event(db, event_id)


@router.get("/event/{event_id}/stats", response_model=ReservationStats)
async def event_reservation_stats(
    event_id: int,
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await get_reservation_stats(db, event_id)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation_endpoint(
    reservation_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_reservation_for(db, reservation_id, current_user)


@router.patch("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation_endpoint(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel your own reservation; its seats go back to the event."""
    reservation = await cancel_reservation(db, reservation_id, user_id)
    run_after_commit(db, invalidate_event_cache)
    return reservation


@router.patch("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation_endpoint(
    reservation_id: int,
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await confirm_reservation(db, reservation_id)


@router.patch("/{reservation_id}/refuse", response_model=ReservationResponse)
async def refuse_reservation_endpoint(
    reservation_id: int,
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    reservation = await refuse_reservation(db, reservation_id)
    run_after_commit(db, invalidate_event_cache)
    return reservation


@router.patch("/{reservation_id}/admin-cancel", response_model=ReservationResponse)
async def admin_cancel_reservation_endpoint(
    reservation_id: int,
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    reservation = await admin_cancel_reservation(db, reservation_id)
    run_after_commit(db, invalidate_event_cache)
    return reservation
