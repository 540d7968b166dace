"""
Reservation coordinator: checkout initiation and payment confirmation.

FLOW
====

  initiate_reservation(user, event)
    1. Event must exist, be active, and have seats (optimistic check only)
    2. Open a checkout session with the payment gateway
    3. Record a `pending` booking keyed by the session id
    Seats are NOT held here. An abandoned checkout leaves a pending booking
    and no inventory impact.

  confirm_reservation(session_id)          (client redirect and/or callback)
    1. Booking must exist; `paid` returns immediately, `failed` is reported
    2. Gateway must report the session as settled
    3. One transaction:
         conditional decrement of the event (available_seats > 0)
           matched  -> booking pending -> paid
           no match -> booking pending -> failed, NoSeatsAvailable
    4. After commit, broadcast the new seat count and a stats refresh

CONCURRENCY
===========

Shoppers racing for the last seat may all start checkout; the decrement
guard picks the winner at confirmation. Losers end `failed` with settled
payments, which the refund process reconciles.

Duplicate confirmations of one session (redirect + webhook, client retry)
are absorbed two ways: a booking that is already `paid` short-circuits, and
for calls that overlap, the booking transition itself is guarded on
`status = 'pending'`. If our decrement matched but the transition did not,
another call already settled this booking, so we roll back (returning the
seat) and report the booking's final state.

No retries happen here. Store and gateway failures propagate; the
transaction is rolled back, so a partial paid transition is never stored.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    BookingNotFoundError,
    EventNotActiveError,
    EventNotFoundError,
    NoSeatsAvailableError,
    PaymentNotCompletedError,
    SoldOutError,
)
from app.core.logging import get_logger
from app.core.metrics import confirmation_latency, record_confirmation, record_initiation
from app.models.booking import Booking, BookingStatus
from app.models.event import EventStatus
from app.services import booking_service, event_service
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.payment_gateway import CheckoutRequest, PaymentGateway

logger = get_logger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class ReservationSession:
    session_id: str
    payment_url: str
    booking_id: int


class ReservationCoordinator:
    """Drives a booking from checkout to paid/failed. One instance per request."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway, notifier: Notifier):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier

    async def initiate_reservation(self, user_id: int, event_id: int) -> ReservationSession:
        try:
            event = await event_service.get_event(self.db, event_id)
        except EventNotFoundError:
            record_initiation("not_found")
            raise

        if event.status != EventStatus.ACTIVE:
            record_initiation("not_active")
            raise EventNotActiveError(event.id, event.status)

        if event.available_seats <= 0:
            record_initiation("sold_out")
            logger.warning("reservation_rejected_sold_out", event_id=event.id, user_id=user_id)
            raise SoldOutError(event.id)

        try:
            session = await self.gateway.create_session(
                CheckoutRequest(
                    amount=event.ticket_price,
                    currency=settings.PAYMENT_CURRENCY,
                    product_name=event.title,
                    product_description=event.description,
                    success_url=f"{settings.FRONTEND_BASE_URL}/success?session_id={{CHECKOUT_SESSION_ID}}",
                    cancel_url=f"{settings.FRONTEND_BASE_URL}/cancel",
                    metadata={"event_id": str(event.id), "user_id": str(user_id)},
                )
            )
        except Exception:
            record_initiation("error")
            raise

        booking = await booking_service.create_pending_booking(
            self.db,
            user_id=user_id,
            event_id=event.id,
            amount=event.ticket_price,
            currency=settings.PAYMENT_CURRENCY,
            session_id=session.session_id,
        )
        await self.db.commit()

        record_initiation("created")
        logger.info(
            "reservation_initiated",
            booking_id=booking.id,
            event_id=event.id,
            user_id=user_id,
            session_id=session.session_id,
        )
        return ReservationSession(
            session_id=session.session_id,
            payment_url=session.payment_url,
            booking_id=booking.id,
        )

    async def confirm_reservation(self, session_id: str) -> Booking:
        with confirmation_latency.time():
            return await self._confirm(session_id)

    async def _confirm(self, session_id: str) -> Booking:
        booking = await booking_service.get_booking_by_session(self.db, session_id)
        if booking is None:
            record_confirmation("not_found")
            raise BookingNotFoundError(session_id)

        if booking.is_terminal:
            return self._report_terminal(booking)

        settlement = await self.gateway.get_session_settlement(session_id)
        if not settlement.settled:
            record_confirmation("unsettled")
            logger.info("reservation_payment_unsettled", booking_id=booking.id, session_id=session_id)
            raise PaymentNotCompletedError(session_id)

        try:
            event = await event_service.decrement_available_seat(self.db, booking.event_id)
            outcome = BookingStatus.PAID if event is not None else BookingStatus.FAILED
            applied = await booking_service.transition_status(self.db, booking, outcome)
            if applied:
                await self.db.commit()
            else:
                # Rolls back our decrement, if any
                await self.db.rollback()
        except Exception:
            await self.db.rollback()
            raise

        if not applied:
            # A concurrent confirmation of this session settled it first
            return await self._report_current(session_id)

        if outcome == BookingStatus.FAILED:
            record_confirmation("failed")
            logger.warning(
                "reservation_failed_no_seats",
                booking_id=booking.id,
                event_id=booking.event_id,
                session_id=session_id,
                amount=booking.amount,
                currency=booking.currency,
                action="refund_required",
            )
            raise NoSeatsAvailableError(booking.event_id)

        record_confirmation("paid")
        logger.info(
            "reservation_confirmed",
            booking_id=booking.id,
            event_id=booking.event_id,
            session_id=session_id,
            available_seats=event.available_seats,
        )
        await self.notifier.inventory_changed(booking.event_id, event.available_seats)
        await self.notifier.stats_changed()
        return booking

    async def _report_current(self, session_id: str) -> Booking:
        booking = await booking_service.get_booking_by_session(self.db, session_id, refresh=True)
        return self._report_terminal(booking)

    def _report_terminal(self, booking: Booking) -> Booking:
        if booking.status == BookingStatus.PAID:
            record_confirmation("already_paid")
            logger.info("reservation_already_confirmed", booking_id=booking.id)
            return booking

        record_confirmation("failed")
        raise NoSeatsAvailableError(booking.event_id)
