"""
Tests for the ingestion boundary: record validation, category references
and timestamp normalization.
"""

from __future__ import annotations

from datetime import datetime, timezone

from admin_console.application.dto.records import (
    ingest_bookings,
    ingest_categories,
    ingest_services,
    resolve_category_ref,
)
from admin_console.application.utils.schedule import coerce_price, minutes_of_day, slugify
from admin_console.application.utils.timestamps import normalize_timestamp
from admin_console.domain.entities.service import ById, ByName


def test_malformed_records_are_skipped_not_raised():
    """Test that records without an id are skipped without raising."""
    bookings = ingest_bookings(
        [
            {"id": "ok", "date": "2026-10-19", "time": "09:00"},
            {"date": "2026-10-19"},  # no id
            "not a record",
            {"id": "also-ok", "date": None, "time": None, "status": None},
        ]
    )
    assert [b.id for b in bookings] == ["ok", "also-ok"]
    assert bookings[1].status == "pending"
    assert bookings[1].date == ""


def test_booking_fields_map_from_camel_case():
    """Test that booking fields map from their camelCase names."""
    (booking,) = ingest_bookings(
        [
            {
                "id": 7,
                "date": "2026-10-19",
                "time": "10:30",
                "customerName": "Jane",
                "serviceName": "Facial",
                "price": "120.50",
                "duration": "45",
                "status": "in-progress",
                "customerId": "u1",
                "serviceId": "s9",
            }
        ]
    )
    assert booking.id == "7"
    assert booking.customer_name == "Jane"
    assert booking.service_name == "Facial"
    assert booking.price == 120.5
    assert booking.duration == 45
    assert booking.status == "in-progress"
    assert not booking.is_pending


def test_negative_or_garbage_duration_is_absent():
    """Test that unusable durations read as absent."""
    bookings = ingest_bookings(
        [
            {"id": "1", "duration": -5},
            {"id": "2", "duration": "long"},
            {"id": "3", "duration": True},
        ]
    )
    assert [b.duration for b in bookings] == [None, None, None]


def test_category_reference_shapes():
    """Test that category references resolve to ById, ByName or nothing."""
    assert resolve_category_ref({"id": "c1", "name": "Hair"}) == ById("c1")
    assert resolve_category_ref({"id": 3}) == ById("3")
    assert resolve_category_ref("Hair") == ByName("Hair")
    assert resolve_category_ref({"name": "Hair"}) is None
    assert resolve_category_ref({"id": ""}) is None
    assert resolve_category_ref(None) is None
    assert resolve_category_ref(["Hair"]) is None


def test_services_resolve_category_at_ingestion():
    """Test that services carry a resolved category reference."""
    services = ingest_services(
        [
            {"id": "s1", "category": {"id": "c1"}},
            {"id": "s2", "category": "Hair", "isActive": False},
        ]
    )
    assert services[0].category == ById("c1")
    assert services[1].category == ByName("Hair")
    assert services[1].is_active is False


def test_category_timestamps_are_normalized():
    """Test that every timestamp encoding becomes an aware UTC datetime."""
    categories = ingest_categories(
        [
            {"id": "a", "name": "A", "createdAt": {"seconds": 1700000000, "nanoseconds": 500000000}},
            {"id": "b", "name": "B", "createdAt": {"_seconds": 1700000000, "_nanoseconds": 0}},
            {"id": "c", "name": "C", "createdAt": "2023-11-14T22:13:20Z"},
            {"id": "d", "name": "D", "createdAt": 1700000000000},
            {"id": "e", "name": "E", "createdAt": 1700000000, "updatedAt": "yesterday"},
        ]
    )
    expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert categories[0].created_at == expected.replace(microsecond=500000)
    for category in categories[1:]:
        assert category.created_at == expected
    assert categories[4].updated_at is None
    assert all(c.service_count == 0 for c in categories)


def test_normalize_timestamp_edge_cases():
    """Test that naive datetimes read as UTC and unusable values as None."""
    naive = datetime(2026, 10, 19, 8, 0)
    assert normalize_timestamp(naive) == naive.replace(tzinfo=timezone.utc)
    assert normalize_timestamp(None) is None
    assert normalize_timestamp(True) is None
    assert normalize_timestamp("") is None
    assert normalize_timestamp({"nanoseconds": 5}) is None


def test_coerce_price():
    """Test that prices coerce to floats with garbage as zero."""
    assert coerce_price("50") == 50.0
    assert coerce_price(" 12.5 ") == 12.5
    assert coerce_price(None) == 0.0
    assert coerce_price("abc") == 0.0
    assert coerce_price(float("nan")) == 0.0
    assert coerce_price("inf") == 0.0
    assert coerce_price([1]) == 0.0
    assert coerce_price(False) == 0.0


def test_minutes_of_day():
    """Test that HH:MM parses to minutes and bad times to None."""
    assert minutes_of_day("00:00") == 0
    assert minutes_of_day("9:05") == 545
    assert minutes_of_day("23:59") == 1439
    assert minutes_of_day("24:00") is None
    assert minutes_of_day("12:60") is None
    assert minutes_of_day("noon") is None
    assert minutes_of_day(None) is None


def test_slugify():
    """Test that names slugify to lowercase with dashes."""
    assert slugify("  Hair   Care ") == "hair-care"


def test_numeric_fields_keep_the_booking():
    """Test that numeric values in text fields are stringified, not dropped."""
    bookings = ingest_bookings(
        [
            {"id": 5, "date": 20261019, "time": "09:00", "status": 3, "customerId": 42, "serviceId": 7.5},
            {"id": "b6", "customerName": 12, "customerId": {"ref": "u1"}},
        ]
    )
    assert [b.id for b in bookings] == ["5", "b6"]
    first, second = bookings
    assert first.customer_id == "42"
    assert first.service_id == "7.5"
    assert first.status == "3"
    assert first.date == "20261019"
    assert second.customer_name == "12"
    assert second.customer_id is None


def test_numeric_service_name_keeps_the_service():
    """Test that a numeric service name is stringified."""
    (service,) = ingest_services([{"id": 9, "name": 101, "category": "Hair"}])
    assert service.id == "9"
    assert service.name == "101"
    assert service.category == ByName("Hair")
