"""
Service interfaces for dependency inversion.
Allows swapping implementations (and test doubles) without changing
business logic.
"""

from .payment_gateway import (
    CheckoutRequest,
    CheckoutSession,
    PaymentGateway,
    SessionSettlement,
)
from .notifier import Notifier

__all__ = [
    'CheckoutRequest',
    'CheckoutSession',
    'PaymentGateway',
    'SessionSettlement',
    'Notifier',
]
