"""
Booking ledger: one record per checkout attempt, keyed by payment session.

Lifecycle:
  pending --paid--> paid      (terminal)
  pending --lost--> failed    (terminal)

Transitions are conditional UPDATEs guarded on `status = 'pending'`, so a
booking can leave `pending` exactly once even when two confirmations for
the same session race. The caller learns whether its transition applied
from the return value.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.core.exceptions import ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.PAID, BookingStatus.FAILED}),
    BookingStatus.PAID: frozenset(),
    BookingStatus.FAILED: frozenset(),
}


def validate_transition(from_status: BookingStatus, to_status: BookingStatus) -> None:
    if to_status not in ALLOWED_TRANSITIONS[BookingStatus(from_status)]:
        raise ValidationError(f"Invalid booking transition {from_status} -> {to_status}")


async def create_pending_booking(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    amount: float,
    currency: str,
    session_id: str,
) -> Booking:
    booking = Booking(
        user_id=user_id,
        event_id=event_id,
        amount=amount,
        currency=currency,
        status=BookingStatus.PENDING.value,
        session_id=session_id,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)

    logger.info(
        "booking_pending",
        booking_id=booking.id,
        user_id=user_id,
        event_id=event_id,
        session_id=session_id,
    )
    return booking


async def get_booking_by_session(db: AsyncSession, session_id: str, refresh: bool = False) -> Booking | None:
    """Look up the booking for a payment session. `refresh` bypasses the identity map."""
    stmt = select(Booking).where(Booking.session_id == session_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def transition_status(
    db: AsyncSession,
    booking: Booking,
    to_status: BookingStatus,
) -> bool:
    """
    Move a pending booking to a terminal status.
    Returns False if the booking was no longer pending at write time.
    """
    validate_transition(BookingStatus.PENDING, to_status)

    result = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking.id,
            Booking.status == BookingStatus.PENDING.value,
        )
        .values(status=to_status.value)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        logger.info(
            "booking_transition_skipped",
            booking_id=booking.id,
            to_status=to_status.value,
            reason="not_pending",
        )
        return False

    await db.refresh(booking)
    logger.info("booking_transitioned", booking_id=booking.id, status=to_status.value)
    return True


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings for a user."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
