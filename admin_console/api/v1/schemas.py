from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from admin_console.domain.entities.booking import Booking
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.dashboard import DashboardSnapshot, DashboardStats


class CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatsSchema(CamelSchema):
    total_bookings: int
    pending_bookings: int
    today_revenue: float
    active_services: int

    @classmethod
    def from_entity(cls, stats: DashboardStats) -> StatsSchema:
        return cls(
            total_bookings=stats.total_bookings,
            pending_bookings=stats.pending_bookings,
            today_revenue=stats.today_revenue,
            active_services=stats.active_services,
        )


class CategorySchema(CamelSchema):
    id: str
    name: str
    is_active: bool
    slug: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    service_count: int = 0

    @classmethod
    def from_entity(cls, category: Category) -> CategorySchema:
        return cls(
            id=category.id,
            name=category.name,
            is_active=category.is_active,
            slug=category.slug,
            created_at=category.created_at,
            updated_at=category.updated_at,
            service_count=category.service_count,
        )


class BookingSchema(CamelSchema):
    id: str
    date: str
    time: str
    customer_name: str
    service_name: str
    price: float
    duration: int | None = None
    status: str
    customer_id: str | None = None
    service_id: str | None = None

    @classmethod
    def from_entity(cls, booking: Booking) -> BookingSchema:
        return cls(
            id=booking.id,
            date=booking.date,
            time=booking.time,
            customer_name=booking.customer_name,
            service_name=booking.service_name,
            price=booking.price,
            duration=booking.duration,
            status=booking.status,
            customer_id=booking.customer_id,
            service_id=booking.service_id,
        )


class DashboardSchema(CamelSchema):
    stats: StatsSchema
    categories: list[CategorySchema] = Field(default_factory=list)
    today_bookings: list[BookingSchema] = Field(default_factory=list)
    loading: bool
    refreshing: bool
    category_edit_target: str | None = None
    last_refresh_error: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: DashboardSnapshot) -> DashboardSchema:
        return cls(
            stats=StatsSchema.from_entity(snapshot.stats),
            categories=[CategorySchema.from_entity(c) for c in snapshot.categories],
            today_bookings=[BookingSchema.from_entity(b) for b in snapshot.today_bookings],
            loading=snapshot.loading,
            refreshing=snapshot.refreshing,
            category_edit_target=snapshot.category_edit_target,
            last_refresh_error=snapshot.last_refresh_error,
        )


class RefreshResponseSchema(CamelSchema):
    success: bool
    error: str | None = None


class EditTargetRequestSchema(CamelSchema):
    category_id: str | None = None


class CategoryNameSchema(CamelSchema):
    name: str


class CategoryStatusSchema(CamelSchema):
    is_active: bool
