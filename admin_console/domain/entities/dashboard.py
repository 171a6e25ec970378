from __future__ import annotations

from dataclasses import dataclass

from admin_console.domain.entities.booking import Booking
from admin_console.domain.entities.category import Category


@dataclass(frozen=True)
class DashboardStats:
    total_bookings: int = 0
    pending_bookings: int = 0
    today_revenue: float = 0.0
    active_services: int = 0


@dataclass(frozen=True)
class DashboardSnapshot:
    stats: DashboardStats = DashboardStats()
    categories: tuple[Category, ...] = ()
    today_bookings: tuple[Booking, ...] = ()
    loading: bool = True
    refreshing: bool = False
    category_edit_target: str | None = None  # category id being edited
    last_refresh_error: str | None = None
