"""
Admin dashboard endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.admin import AdminStats
from app.schemas.event import EventListResponse, EventResponse
from app.services import admin_service, event_service
from app.core.security import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=AdminStats)
async def stats(db: AsyncSession = Depends(get_db)):
    """Totals for the dashboard. Bookings counts paid bookings only."""
    return await admin_service.get_stats(db)


@router.get("/events", response_model=EventListResponse)
async def list_all_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status_filter: str = Query("all", alias="status", pattern="^(all|active|cancelled|completed)$"),
    db: AsyncSession = Depends(get_db),
):
    """Every event regardless of status, newest first. Never cached."""
    events, total = await event_service.list_events(
        db, page, page_size, status_filter, newest_first=True
    )
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        total_pages=event_service.total_pages(total, page_size),
        page=page,
        page_size=page_size,
    )
