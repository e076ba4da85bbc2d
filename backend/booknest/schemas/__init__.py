from booknest.schemas.user import (
    UserCreate, UserLogin, UserUpdate, UserResponse, Token, AuthResponse, RegisterResponse,
)
from booknest.schemas.event import (
    EventCreate, EventUpdate, EventStatusUpdate, EventResponse, EventListResponse,
)
from booknest.schemas.reservation import ReservationCreate, ReservationResponse, ReservationStats

__all__ = [
    "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "Token", "AuthResponse", "RegisterResponse",
    "EventCreate", "EventUpdate", "EventStatusUpdate", "EventResponse", "EventListResponse",
    "ReservationCreate", "ReservationResponse", "ReservationStats",
]
