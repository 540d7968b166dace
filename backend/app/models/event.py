"""
Event model with seat inventory tracking.

Key design decisions:
- `available_seats` is denormalized (avoids COUNT query on bookings) and is
  only ever decremented through a single conditional UPDATE
  (see event_service.decrement_available_seat)
- CHECK constraints keep 0 <= available_seats <= total_seats at the DB level
- Image references are stored as JSON ({public_id, url}); uploading is the
  client's concern
- Index on (status, date) serves the public listing
"""

from enum import Enum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)

from app.db.base import Base, TimestampMixin


class EventStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


MAX_TOTAL_SEATS = 10000


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(200), nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    ticket_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    primary_image = Column(JSON, nullable=False)
    secondary_images = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=EventStatus.ACTIVE.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        CheckConstraint(
            f"total_seats > 0 AND total_seats <= {MAX_TOTAL_SEATS}",
            name="check_total_seats_range",
        ),
        CheckConstraint("ticket_price >= 0", name="check_ticket_price_non_negative"),
        CheckConstraint(
            "status IN ('active', 'cancelled', 'completed')",
            name="check_event_status",
        ),
        Index("ix_events_status_date", "status", "date"),
    )

    @property
    def is_sold_out(self) -> bool:
        return self.available_seats <= 0

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, available={self.available_seats}/{self.total_seats})>"
