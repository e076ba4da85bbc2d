"""
Pydantic schemas for reservation-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from booknest.models.enums import ReservationStatus
from booknest.models.reservation import MAX_SEATS_PER_RESERVATION


class ReservationCreate(BaseModel):
    event_id: int
    number_of_seats: int = Field(default=1, ge=1, le=MAX_SEATS_PER_RESERVATION)


class ReservationResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    status: ReservationStatus
    number_of_seats: int
    reservation_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationStats(BaseModel):
    event_id: int
    total_reservations: int = 0
    total_seats_reserved: int = 0
