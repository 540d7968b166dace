"""
Stripe Checkout implementation of the payment gateway.

The Stripe SDK is synchronous, so each call runs in a worker thread to keep
the event loop free. The coordinator never sees payment-method details: it
gets a session id + URL on creation and a settled/not-settled answer later.

Settlement:
  A Checkout Session is settled when `payment_status` is "paid", or
  "no_payment_required" (zero-amount sessions). "unpaid" means the customer
  has not finished, or an async payment method is still processing.
"""

import asyncio

import stripe

from app.core.config import get_settings
from app.core.exceptions import UpstreamError
from app.core.logging import get_logger
from app.core.metrics import record_gateway_error
from app.services.interfaces.payment_gateway import (
    CheckoutRequest,
    CheckoutSession,
    PaymentGateway,
    SessionSettlement,
)

logger = get_logger(__name__)
settings = get_settings()

SETTLED_PAYMENT_STATUSES = frozenset({"paid", "no_payment_required"})

# Stripe rejects product descriptions longer than this on some surfaces
MAX_DESCRIPTION_LENGTH = 250


def to_minor_units(amount: float) -> int:
    """Convert a decimal price to the integer cents Stripe expects."""
    return int(round(amount * 100))


class StripeGateway(PaymentGateway):
    """Hosted checkout through Stripe Checkout Sessions."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def create_session(self, request: CheckoutRequest) -> CheckoutSession:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": request.currency,
                            "unit_amount": to_minor_units(request.amount),
                            "product_data": {
                                "name": request.product_name,
                                "description": request.product_description[:MAX_DESCRIPTION_LENGTH],
                            },
                        },
                        "quantity": 1,
                    }
                ],
                success_url=request.success_url,
                cancel_url=request.cancel_url,
                metadata=request.metadata,
            )
        except stripe.StripeError as e:
            record_gateway_error("create_session")
            logger.error("checkout_session_failed", error=str(e), error_type=type(e).__name__)
            raise UpstreamError("Payment provider unavailable") from e

        logger.info("checkout_session_created", session_id=session.id, metadata=request.metadata)
        return CheckoutSession(session_id=session.id, payment_url=session.url)

    async def get_session_settlement(self, session_id: str) -> SessionSettlement:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve,
                session_id,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            record_gateway_error("retrieve_session")
            logger.error(
                "checkout_session_lookup_failed",
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError("Payment provider unavailable") from e

        settled = session.payment_status in SETTLED_PAYMENT_STATUSES
        logger.debug("checkout_session_status", session_id=session_id, payment_status=session.payment_status)
        return SessionSettlement(session_id=session_id, settled=settled)
