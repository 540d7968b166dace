"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, Field

from app.models.event import EventStatus, MAX_TOTAL_SEATS


def _assume_utc(value: datetime) -> datetime:
    # Naive datetimes (and SQLite reads) are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


class ImageRef(BaseModel):
    public_id: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2048)


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    date: UtcDatetime
    location: str = Field(..., min_length=1, max_length=200)
    total_seats: int = Field(..., gt=0, le=MAX_TOTAL_SEATS)
    ticket_price: float = Field(..., ge=0)
    primary_image: ImageRef
    secondary_images: list[ImageRef] = Field(default_factory=list, max_length=10)


class EventUpdate(BaseModel):
    """Partial update: only fields that are present are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    date: Optional[UtcDatetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    total_seats: Optional[int] = Field(None, gt=0, le=MAX_TOTAL_SEATS)
    ticket_price: Optional[float] = Field(None, ge=0)
    primary_image: Optional[ImageRef] = None
    secondary_images: Optional[list[ImageRef]] = Field(None, max_length=10)
    status: Optional[EventStatus] = None


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    date: UtcDatetime
    location: str
    total_seats: int
    available_seats: int
    ticket_price: float
    primary_image: ImageRef
    secondary_images: list[ImageRef]
    status: EventStatus
    is_sold_out: bool
    created_by: int
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    total_pages: int
    page: int
    page_size: int
    cached: bool = False
