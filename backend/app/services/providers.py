"""
Dependency providers for the payment gateway, the notifier and the
reservation coordinator.

Routes depend on these functions rather than on concrete classes, so tests
(and alternative deployments) swap implementations through
`app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_db
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.payment_gateway import PaymentGateway
from app.services.payment_service import StripeGateway
from app.services.realtime_service import notifier as realtime_notifier
from app.services.reservation_service import ReservationCoordinator

settings = get_settings()

# Singleton instance
_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """Get payment gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway(api_key=settings.STRIPE_SECRET_KEY)
    return _gateway


def get_notifier() -> Notifier:
    return realtime_notifier


def get_reservation_coordinator(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
) -> ReservationCoordinator:
    return ReservationCoordinator(db, gateway, notifier)
