"""
Pure derivation of the dashboard view from the latest slot contents.

Every function here recomputes from the full record set it is given; nothing
is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from admin_console.application.utils.schedule import sort_by_time_of_day
from admin_console.domain.entities.booking import Booking
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.dashboard import DashboardStats
from admin_console.domain.entities.service import ById, ByName, Service


@dataclass(frozen=True)
class AggregationState:
    all_bookings: tuple[Booking, ...] = ()
    today_bookings: tuple[Booking, ...] | None = None  # None while the slot is not populated
    today_scope: str | None = None  # date the today-bookings slot was filtered by
    active_services: tuple[Service, ...] = ()


def today_scoped_bookings(state: AggregationState, today: str) -> tuple[Booking, ...]:
    """
    Pick the single source for today's bookings.

    The today-bookings slot wins once populated for the current date, even
    when empty. Before that, or after the date rolled over, all-bookings is
    filtered by `today` instead.
    """
    if state.today_bookings is not None and state.today_scope == today:
        return state.today_bookings
    return tuple(booking for booking in state.all_bookings if booking.date == today)


def today_revenue(bookings: Iterable[Booking]) -> float:
    return sum((booking.price for booking in bookings), 0.0)


def aggregate(state: AggregationState, today: str) -> DashboardStats:
    todays = today_scoped_bookings(state, today)
    return DashboardStats(
        total_bookings=len(state.all_bookings),
        pending_bookings=sum(1 for booking in todays if booking.is_pending),
        today_revenue=today_revenue(todays),
        active_services=sum(1 for service in state.active_services if service.is_active),
    )


def todays_schedule(state: AggregationState, today: str) -> tuple[Booking, ...]:
    return tuple(sort_by_time_of_day(today_scoped_bookings(state, today)))


def category_matches(category: Category, service: Service) -> bool:
    ref = service.category
    if isinstance(ref, ById):
        return ref.id == category.id
    if isinstance(ref, ByName):
        return ref.name == category.name
    return False


def count_services_by_category(
    categories: Iterable[Category],
    services: Iterable[Service],
) -> tuple[Category, ...]:
    services = tuple(services)
    return tuple(
        replace(category, service_count=sum(1 for service in services if category_matches(category, service)))
        for category in categories
    )


def with_zero_counts(categories: Iterable[Category]) -> tuple[Category, ...]:
    return tuple(replace(category, service_count=0) for category in categories)
