"""
Reservation endpoints: start a checkout, confirm a paid checkout.

`POST /reservations/confirm` is public: it is hit by the checkout success
redirect and may be hit again by retries. It is idempotent per session.
"""

from fastapi import APIRouter, Depends, status

from app.models.user import User
from app.schemas.booking import (
    ReservationCreate,
    ReservationResponse,
    ReservationConfirm,
    ReservationConfirmResponse,
)
from app.services.cache_service import invalidate_event_cache
from app.services.providers import get_reservation_coordinator
from app.services.reservation_service import ReservationCoordinator
from app.core.security import get_current_user
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def initiate_reservation_endpoint(
    reservation: ReservationCreate,
    user: User = Depends(get_current_user),
    coordinator: ReservationCoordinator = Depends(get_reservation_coordinator),
):
    """
    Open a checkout session for one seat.

    Seats are checked but not held: the seat is taken when the paid
    session is confirmed.
    """
    session = await coordinator.initiate_reservation(user.id, reservation.event_id)
    return ReservationResponse(
        session_id=session.session_id,
        payment_url=session.payment_url,
        booking_id=session.booking_id,
    )


@router.post("/confirm", response_model=ReservationConfirmResponse)
async def confirm_reservation_endpoint(
    confirmation: ReservationConfirm,
    coordinator: ReservationCoordinator = Depends(get_reservation_coordinator),
):
    """
    Confirm a checkout session after payment.

    Takes one seat atomically and marks the booking paid. If the last seat
    went to another buyer, the booking is marked failed and 400 is returned.
    """
    booking = await coordinator.confirm_reservation(confirmation.session_id)
    # available_seats changed (or, for a repeat call, already had)
    await invalidate_event_cache()
    return ReservationConfirmResponse(booking_id=booking.id, status=booking.status)
