"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from booknest.models.enums import EventStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    date: datetime
    location: str = Field(..., min_length=1, max_length=255)
    max_participants: int = Field(..., ge=1, le=100000)

    @field_validator("title", "description", "location", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    max_participants: Optional[int] = Field(None, ge=1, le=100000)
    status: Optional[EventStatus] = None

    @field_validator("title", "description", "location", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    date: datetime
    location: str
    max_participants: int
    available_seats: int
    status: EventStatus
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
