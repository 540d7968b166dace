"""
Domain errors raised by the service layer.

Each error carries a kind (surfaced to clients as the `error` field),
a user-safe message and the HTTP status it maps to. Services raise these;
the handler registered in app.main renders them as JSON.
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    SOLD_OUT = "SoldOut"
    NO_SEATS_AVAILABLE = "NoSeatsAvailable"
    PAYMENT_NOT_COMPLETED = "PaymentNotCompleted"
    VALIDATION_ERROR = "ValidationError"
    UPSTREAM_ERROR = "UpstreamError"


class AppError(Exception):
    """Base class for structured failures returned to the caller."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__("Booking not found")
        self.session_id = session_id


class SoldOutError(AppError):
    kind = ErrorKind.SOLD_OUT
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, event_id: int) -> None:
        super().__init__("Event is sold out")
        self.event_id = event_id


class NoSeatsAvailableError(AppError):
    kind = ErrorKind.NO_SEATS_AVAILABLE
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, event_id: int) -> None:
        super().__init__("No seats available")
        self.event_id = event_id


class PaymentNotCompletedError(AppError):
    kind = ErrorKind.PAYMENT_NOT_COMPLETED
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, session_id: str) -> None:
        super().__init__("Payment not completed")
        self.session_id = session_id


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class EventNotActiveError(ValidationError):
    def __init__(self, event_id: int, event_status: str) -> None:
        super().__init__(f"Event is {event_status} and not open for booking")
        self.event_id = event_id


class UpstreamError(AppError):
    """A collaborator (payment gateway, data store) could not be reached."""

    kind = ErrorKind.UPSTREAM_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
