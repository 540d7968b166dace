"""
Event endpoints: public browsing (cached listing) and admin management.
Every admin mutation invalidates the listing cache and broadcasts
`catalog-changed` so browsing clients refresh.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.event import EventStatus
from app.models.user import User
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventStatusUpdate,
    EventResponse,
    EventListResponse,
)
from app.services import event_service
from app.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache
from app.services.interfaces.notifier import Notifier
from app.services.providers import get_notifier
from app.core.security import require_admin
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])

STATUS_FILTER_PATTERN = "^(all|active|cancelled|completed)$"


async def _catalog_changed(db: AsyncSession, notifier: Notifier) -> None:
    # Commit before telling clients to re-fetch
    await db.commit()
    await invalidate_event_cache()
    await notifier.catalog_changed()


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status_filter: str = Query(EventStatus.ACTIVE.value, alias="status", pattern=STATUS_FILTER_PATTERN),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination, soonest first.
    Results are cached in Redis for 5 minutes and invalidated on catalog
    changes and confirmed reservations.
    """
    cached = await get_cached_events(page, page_size, status_filter)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await event_service.list_events(db, page, page_size, status_filter)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "total_pages": event_service.total_pages(total, page_size),
        "page": page,
        "page_size": page_size,
        "cached": False,
    }

    await set_cached_events(page, page_size, status_filter, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (shows the live seat count)."""
    return await event_service.get_event(db, event_id)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Create a new event. Admin only."""
    event = await event_service.create_event(db, event_data, admin.id)
    await _catalog_changed(db, notifier)
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Update any subset of event fields. Admin only.
    Sending `total_seats` resets `available_seats` to the new total.
    """
    event = await event_service.update_event(db, event_id, event_data)
    await _catalog_changed(db, notifier)
    return event


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status_endpoint(
    event_id: int,
    status_data: EventStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Activate, cancel or complete an event. Admin only."""
    event = await event_service.update_event_status(db, event_id, status_data.status)
    await _catalog_changed(db, notifier)
    return event


@router.delete("/{event_id}")
async def delete_event_endpoint(
    event_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Delete an event without bookings. Admin only."""
    await event_service.delete_event(db, event_id)
    await _catalog_changed(db, notifier)
    return {"message": "Event deleted successfully", "event_id": event_id}
