from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BookingStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    in_progress = "in-progress"
    completed = "completed"
    cancelled = "cancelled"
    rejected = "rejected"
    upcoming = "upcoming"


@dataclass(frozen=True)
class Booking:
    id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM, 24h
    customer_name: str = ""
    service_name: str = ""
    price: float = 0.0
    duration: int | None = None  # minutes
    status: str = BookingStatus.pending.value
    customer_id: str | None = None
    service_id: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.pending.value
