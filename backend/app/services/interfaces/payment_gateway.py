"""
Payment gateway interface.
The reservation coordinator only needs two things from a hosted checkout
provider: open a session, and ask whether that session was paid.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    payment_url: str


@dataclass(frozen=True)
class SessionSettlement:
    session_id: str
    settled: bool


@dataclass(frozen=True)
class CheckoutRequest:
    amount: float
    currency: str
    product_name: str
    product_description: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)


class PaymentGateway(ABC):
    """
    Interface for hosted checkout providers.

    Implementations:
    - StripeGateway: Stripe Checkout Sessions

    Implementations raise UpstreamError when the provider cannot be reached
    or rejects the request.
    """

    @abstractmethod
    async def create_session(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Open a checkout session.

        Args:
            request: Amount, currency, product text, redirects and metadata

        Returns:
            The provider's session id and the URL the user pays at
        """
        pass

    @abstractmethod
    async def get_session_settlement(self, session_id: str) -> SessionSettlement:
        """
        Report whether the session's payment has been captured.

        Args:
            session_id: Session id returned by create_session
        """
        pass
