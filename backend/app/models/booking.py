"""
Booking model: one record per checkout attempt.

Key design decisions:
- Unique index on `session_id`: exactly one booking per payment session,
  and the lookup key used by confirmation
- Status moves pending -> paid or pending -> failed, once; the transition
  is applied with a `WHERE status = 'pending'` guard (booking_service)
- No uniqueness on (user_id, event_id): abandoned checkouts stay pending
  and the user may start another one
- Bookings are never deleted
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String

from app.db.base import Base, TimestampMixin


class BookingStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    session_id = Column(String(255), nullable=False, unique=True, index=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_booking_amount_non_negative"),
        CheckConstraint("status IN ('pending', 'paid', 'failed')", name="check_booking_status"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (BookingStatus.PAID, BookingStatus.FAILED)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, session={self.session_id}, event={self.event_id}, status={self.status})>"
