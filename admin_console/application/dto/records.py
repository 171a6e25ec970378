from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from admin_console.application.utils.schedule import coerce_price
from admin_console.application.utils.timestamps import normalize_timestamp
from admin_console.domain.entities.booking import Booking, BookingStatus
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.service import ById, ByName, CategoryRef, Service

logger = logging.getLogger(__name__)


class _RecordDTO(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class BookingRecordDTO(_RecordDTO):
    date: str = ""
    time: str = ""
    customer_name: str = Field(default="", alias="customerName")
    service_name: str = Field(default="", alias="serviceName")
    price: Any = None
    duration: Any = None
    status: str = BookingStatus.pending.value
    customer_id: str | None = Field(default=None, alias="customerId")
    service_id: str | None = Field(default=None, alias="serviceId")

    @field_validator("date", "time", "customer_name", "service_name", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> Any:
        text = _as_text(value)
        return "" if text is None else text

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        text = _as_text(value)
        return BookingStatus.pending.value if text in (None, "") else text

    @field_validator("customer_id", "service_id", mode="before")
    @classmethod
    def _stringify_refs(cls, value: Any) -> Any:
        return _as_text(value)

    def to_entity(self) -> Booking:
        return Booking(
            id=self.id,
            date=self.date,
            time=self.time,
            customer_name=self.customer_name,
            service_name=self.service_name,
            price=coerce_price(self.price),
            duration=_coerce_duration(self.duration),
            status=self.status,
            customer_id=self.customer_id,
            service_id=self.service_id,
        )


class ServiceRecordDTO(_RecordDTO):
    name: str = ""
    is_active: bool = Field(default=True, alias="isActive")
    category: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, value: Any) -> Any:
        text = _as_text(value)
        return "" if text is None else text

    def to_entity(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            is_active=self.is_active,
            category=resolve_category_ref(self.category),
        )


class CategoryRecordDTO(_RecordDTO):
    name: str
    is_active: bool = Field(default=True, alias="isActive")
    slug: str | None = None
    created_at: Any = Field(default=None, alias="createdAt")
    updated_at: Any = Field(default=None, alias="updatedAt")

    def to_entity(self) -> Category:
        return Category(
            id=self.id,
            name=self.name,
            is_active=self.is_active,
            slug=self.slug,
            created_at=normalize_timestamp(self.created_at),
            updated_at=normalize_timestamp(self.updated_at),
        )


def resolve_category_ref(value: Any) -> CategoryRef | None:
    """
    Resolve the two category shapes services carry.

    Current records hold {"id": ..., "name": ...}; legacy records hold the
    bare category name. Anything else references no category.
    """
    if isinstance(value, dict):
        ref_id = value.get("id")
        if ref_id is None or ref_id == "":
            return None
        return ById(str(ref_id))
    if isinstance(value, str):
        return ByName(value)
    return None


def ingest_bookings(records: Iterable[Any]) -> tuple[Booking, ...]:
    return _ingest(records, BookingRecordDTO, "booking")


def ingest_services(records: Iterable[Any]) -> tuple[Service, ...]:
    return _ingest(records, ServiceRecordDTO, "service")


def ingest_categories(records: Iterable[Any]) -> tuple[Category, ...]:
    return _ingest(records, CategoryRecordDTO, "category")


def _ingest(records: Iterable[Any], dto: type[_RecordDTO], kind: str) -> tuple[Any, ...]:
    entities: list[Any] = []
    for raw in records or []:
        try:
            entities.append(dto.model_validate(raw).to_entity())
        except ValidationError as e:
            record_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(
                "Skipping malformed %s record",
                kind,
                extra={"record_id": record_id, "error": str(e).splitlines()[0]},
            )
    return tuple(entities)


def _coerce_duration(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        minutes = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return minutes if minutes >= 0 else None


def _as_text(value: Any) -> str | None:
    # Projected text fields accept numbers; other shapes read as missing.
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None
