"""
Pydantic schemas for the admin dashboard.
"""

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_users: int
    total_events: int
    total_bookings: int
