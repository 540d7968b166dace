from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.event import (
    ImageRef,
    EventCreate,
    EventUpdate,
    EventStatusUpdate,
    EventResponse,
    EventListResponse,
)
from app.schemas.booking import (
    BookingResponse,
    ReservationCreate,
    ReservationResponse,
    ReservationConfirm,
    ReservationConfirmResponse,
)
from app.schemas.admin import AdminStats

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "ImageRef", "EventCreate", "EventUpdate", "EventStatusUpdate",
    "EventResponse", "EventListResponse",
    "BookingResponse", "ReservationCreate", "ReservationResponse",
    "ReservationConfirm", "ReservationConfirmResponse",
    "AdminStats",
]
