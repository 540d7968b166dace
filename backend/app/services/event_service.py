"""
Event inventory store: CRUD for events plus the conditional seat decrement.

SEAT ACCOUNTING
===============

`available_seats` changes in exactly two ways:

  1. Reset to `total_seats` whenever an administrator writes `total_seats`
     (create, or an update that carries the field).
  2. Decremented by one through decrement_available_seat(), a single
     conditional UPDATE:

       UPDATE events SET available_seats = available_seats - 1
       WHERE id = :event_id AND available_seats > 0
       RETURNING ...

     The guard is evaluated by the database at write time. Two concurrent
     confirmations on the last seat cannot both match: the second one blocks
     on the row lock, re-checks the guard after the first commits, and
     matches nothing. No read-then-write window exists.

Admin writes are plain overwrites. An admin resetting `total_seats` while a
confirmation is in flight is not synchronized; whichever commits last wins.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.event import Event, EventStatus
from app.schemas.event import EventCreate, EventUpdate
from app.core.exceptions import EventNotFoundError, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

STATUS_ALL = "all"


def _ensure_future(date: datetime) -> None:
    if date <= datetime.now(timezone.utc):
        raise ValidationError("Event date must be in the future")


async def create_event(db: AsyncSession, event_data: EventCreate, created_by: int) -> Event:
    """Create a new event with full seat availability."""
    _ensure_future(event_data.date)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=event_data.date,
        location=event_data.location,
        total_seats=event_data.total_seats,
        available_seats=event_data.total_seats,  # All seats available initially
        ticket_price=event_data.ticket_price,
        primary_image=event_data.primary_image.model_dump(),
        secondary_images=[img.model_dump() for img in event_data.secondary_images],
        status=EventStatus.ACTIVE.value,
        created_by=created_by,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, title=event.title, seats=event.total_seats)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise EventNotFoundError(event_id)
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 10,
    status: str = EventStatus.ACTIVE.value,
    newest_first: bool = False,
) -> tuple[list[Event], int]:
    """
    List events with pagination.
    Public listing: active events by date ascending (ix_events_status_date).
    Admin listing: every status, most recently created first.
    """
    query = select(Event)

    if status != STATUS_ALL:
        query = query.where(Event.status == status)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    if newest_first:
        ordering = (Event.created_at.desc(), Event.id.desc())
    else:
        ordering = (Event.date.asc(), Event.id.asc())

    events_query = (
        query
        .order_by(*ordering)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
    """
    Apply a partial update.
    Writing `total_seats` (even with the same value) resets `available_seats`.
    """
    event = await get_event(db, event_id)
    changes = event_data.model_dump(exclude_unset=True)

    if changes.get("date") is not None:
        _ensure_future(changes["date"])

    for field, value in changes.items():
        if value is None:
            # Explicit nulls cannot clear required columns
            raise ValidationError(f"Field '{field}' cannot be null")
        if field == "status":
            value = EventStatus(value).value
        setattr(event, field, value)

    if "total_seats" in changes:
        event.available_seats = event.total_seats

    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_updated",
        event_id=event.id,
        fields=sorted(changes),
        seats_reset="total_seats" in changes,
    )
    return event


async def update_event_status(db: AsyncSession, event_id: int, status: EventStatus) -> Event:
    event = await get_event(db, event_id)
    event.status = EventStatus(status).value
    await db.flush()
    await db.refresh(event)

    logger.info("event_status_changed", event_id=event.id, status=event.status)
    return event


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """
    Delete an event that has never been booked.
    Bookings are permanent and reference their event, so booked events
    must be cancelled through the status endpoint instead.
    """
    event = await get_event(db, event_id)

    booking_count = (
        await db.execute(
            select(func.count()).select_from(Booking).where(Booking.event_id == event_id)
        )
    ).scalar()
    if booking_count:
        raise ValidationError("Event has bookings; cancel it instead of deleting")

    await db.delete(event)
    await db.flush()

    logger.info("event_deleted", event_id=event_id)


async def decrement_available_seat(db: AsyncSession, event_id: int) -> Optional[Event]:
    """
    Take one seat if, and only if, one is left at the moment of the write.
    Returns the post-update event, or None when no seat was available
    (or the event does not exist).
    """
    stmt = (
        update(Event)
        .where(Event.id == event_id, Event.available_seats > 0)
        .values(available_seats=Event.available_seats - 1)
        .returning(Event)
    )
    result = await db.execute(stmt, execution_options={"populate_existing": True})
    event = result.scalar_one_or_none()

    if event is None:
        logger.info("seat_decrement_rejected", event_id=event_id)
    else:
        logger.debug("seat_decremented", event_id=event_id, available=event.available_seats)
    return event
