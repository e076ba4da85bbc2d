"""
Event endpoints. Reads are public; writes require an admin who owns the event.
Listings are cached in Redis and invalidated on every write.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from booknest.db.session import get_db, run_after_commit
from booknest.models.enums import EventStatus
from booknest.schemas.event import (
    EventCreate,
    EventUpdate,
    EventStatusUpdate,
    EventResponse,
    EventListResponse,
)
from booknest.services.event_service import (
    create_event,
    get_event,
    list_events,
    update_event,
    delete_event,
    update_event_status,
)
from booknest.services.cache_service import (
    get_cached_events,
    set_cached_events,
    invalidate_event_cache,
    make_event_list_key,
)
from booknest.core.config import get_settings
from booknest.core.security import TokenData, require_admin
from booknest.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event in DRAFT status."""
    event = await create_event(db, event_data, admin.user_id)
    run_after_commit(db, invalidate_event_cache)
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.EVENTS_PAGE_SIZE, ge=1, le=settings.EVENTS_MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """
    List events ordered by date, optionally filtered by status and date range.
    Served from cache when possible.
    """
    cache_key = make_event_list_key(
        status_filter.value if status_filter else None, start_date, end_date, page, page_size
    )
    cached = await get_cached_events(cache_key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, status_filter, start_date, end_date, page, page_size)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(cache_key, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event. Never cached (live seat counter)."""
    return await get_event(db, event_id)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    update_data: EventUpdate,
    admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await update_event(db, event_id, update_data, admin.user_id)
    run_after_commit(db, invalidate_event_cache)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await delete_event(db, event_id, admin.user_id)
    run_after_commit(db, invalidate_event_cache)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status_endpoint(
    event_id: int,
    status_data: EventStatusUpdate,
    admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await update_event_status(db, event_id, status_data.status, admin.user_id)
    run_after_commit(db, invalidate_event_cache)
    return event
