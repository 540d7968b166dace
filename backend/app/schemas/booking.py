"""
Pydantic schemas for reservation and booking request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from app.models.booking import BookingStatus


class ReservationCreate(BaseModel):
    event_id: int


class ReservationResponse(BaseModel):
    session_id: str
    payment_url: str
    booking_id: int


class ReservationConfirm(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=255)


class ReservationConfirmResponse(BaseModel):
    success: bool = True
    booking_id: int
    status: BookingStatus


class BookingResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    amount: float
    currency: str
    status: BookingStatus
    session_id: str
    created_at: datetime

    model_config = {"from_attributes": True}
