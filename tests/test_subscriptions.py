"""
Tests for the live subscription manager.
"""

from __future__ import annotations

import asyncio

import pytest

from admin_console.application.exceptions import SubscriptionSetupError
from admin_console.application.ports.document_store import Filter
from admin_console.application.use_cases.subscriptions import SubscriptionManager
from admin_console.infrastructure.store.memory_store import InMemoryDocumentStore
from fakes import FakeClock, SilentDocumentStore


def test_delivers_full_snapshots_in_order():
    """Test that each delivery hands over the full snapshot in arrival order."""

    async def scenario():
        store = InMemoryDocumentStore(seed={"services": [{"id": "s1", "isActive": True}]})
        manager = SubscriptionManager(store)
        received: list[list[str]] = []

        await manager.subscribe(
            "active-services",
            "services",
            [Filter("isActive", True)],
            lambda records: received.append(sorted(r["id"] for r in records)),
        )
        await asyncio.sleep(0)
        await store.create("services", {"id": "s2", "isActive": True})
        await store.create("services", {"id": "s3", "isActive": False})
        await asyncio.sleep(0)
        return received

    received = asyncio.run(scenario())
    assert received[0] == ["s1"]
    assert received[-1] == ["s1", "s2"]
    assert all(snapshot[0] == "s1" for snapshot in received)


def test_one_live_subscription_per_key():
    """Test that a second subscription on the same key is refused."""

    async def scenario():
        manager = SubscriptionManager(SilentDocumentStore())
        await manager.subscribe("categories", "categories", [], lambda records: None)
        with pytest.raises(ValueError):
            await manager.subscribe("categories", "categories", [], lambda records: None)
        assert manager.active_keys == ["categories"]

    asyncio.run(scenario())


def test_unsubscribe_is_idempotent_and_frees_the_key():
    """Test that unsubscribing twice is harmless and frees the key."""

    async def scenario():
        store = SilentDocumentStore()
        manager = SubscriptionManager(store)
        unsubscribe = await manager.subscribe("categories", "categories", [], lambda records: None)

        unsubscribe()
        unsubscribe()
        assert store.unsubscribed == ["categories"]
        assert not manager.is_active("categories")

        await manager.subscribe("categories", "categories", [], lambda records: None)
        assert manager.is_active("categories")

    asyncio.run(scenario())


def test_late_push_after_unsubscribe_is_dropped():
    """Test that a push arriving after unsubscribe never reaches the handler."""

    async def scenario():
        store = SilentDocumentStore()
        manager = SubscriptionManager(store)
        received: list[list[dict]] = []
        unsubscribe = await manager.subscribe("categories", "categories", [], received.append)

        store.push("categories", [], [{"id": "c1", "name": "Hair"}])
        unsubscribe()
        store.push("categories", [], [{"id": "c2", "name": "Nails"}])
        return received

    received = asyncio.run(scenario())
    assert received == [[{"id": "c1", "name": "Hair"}]]


def test_setup_failure_raises_and_releases_key():
    """Test that a failed setup raises SubscriptionSetupError and frees the key."""

    async def scenario():
        store = SilentDocumentStore()
        store.fail_subscribe(lambda collection, filters: collection == "bookings")
        manager = SubscriptionManager(store)
        with pytest.raises(SubscriptionSetupError):
            await manager.subscribe("all-bookings", "bookings", [], lambda records: None)
        assert not manager.is_active("all-bookings")

    asyncio.run(scenario())


def test_stale_keys_track_silence():
    """Test that keys go stale after the silence window and recover on delivery."""

    async def scenario():
        clock = FakeClock()
        store = SilentDocumentStore()
        manager = SubscriptionManager(store, clock=clock.monotonic)
        await manager.subscribe("categories", "categories", [], lambda records: None)
        await manager.subscribe("all-bookings", "bookings", [], lambda records: None)

        clock.advance(100)
        store.push("categories", [], [])
        clock.advance(50)
        assert manager.stale_keys(120) == ["all-bookings"]
        assert manager.deliveries("categories") == 1

        manager.touch("all-bookings")
        assert manager.stale_keys(120) == []

    asyncio.run(scenario())


def test_unsubscribe_all_closes_transport_streams():
    """Test that unsubscribe_all closes every transport stream."""

    async def scenario():
        store = InMemoryDocumentStore()
        manager = SubscriptionManager(store)
        await manager.subscribe("categories", "categories", [], lambda records: None)
        await manager.subscribe("all-bookings", "bookings", [], lambda records: None)
        assert store.listener_count == 2
        manager.unsubscribe_all()
        assert store.listener_count == 0
        assert manager.active_keys == []

    asyncio.run(scenario())
