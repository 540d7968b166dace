"""
Admin dashboard statistics.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.models.event import Event
from app.models.user import User


async def get_stats(db: AsyncSession) -> dict:
    """Totals for users, events and paid bookings."""
    total_users = (await db.execute(select(func.count()).select_from(User))).scalar()
    total_events = (await db.execute(select(func.count()).select_from(Event))).scalar()
    total_bookings = (
        await db.execute(
            select(func.count())
            .select_from(Booking)
            .where(Booking.status == BookingStatus.PAID.value)
        )
    ).scalar()

    return {
        "total_users": total_users,
        "total_events": total_events,
        "total_bookings": total_bookings,
    }
