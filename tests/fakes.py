"""
Shared fakes for the dashboard tests: fault-injecting document stores,
a controllable network status source and a fixed clock.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from admin_console.application.exceptions import DocumentStoreError
from admin_console.application.ports.document_store import Filter, Record, SnapshotHandler, Unsubscribe
from admin_console.application.ports.network_status import NetworkStatusPort, StatusListener
from admin_console.application.use_cases.reconciliation import ReconciledView, ReconciliationCoordinator
from admin_console.application.use_cases.subscriptions import SubscriptionManager
from admin_console.infrastructure.store.memory_store import InMemoryDocumentStore

UTC = ZoneInfo("UTC")
TODAY = "2026-10-19"
TOMORROW = "2026-10-20"


class FakeClock:
    """Wall clock and monotonic clock the tests can move by hand."""

    def __init__(self, now: datetime | None = None) -> None:
        self.current = now or datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        self.ticks = 0.0

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.ticks += seconds


class FlakyDocumentStore(InMemoryDocumentStore):
    """In-memory store whose reads and subscriptions fail on demand."""

    def __init__(self, seed: dict[str, list[Record]] | None = None) -> None:
        super().__init__(seed=seed)
        self.fetch_failures: list[Callable[[str, list[Filter]], bool]] = []
        self.subscribe_failures: list[Callable[[str, list[Filter]], bool]] = []
        self.fetch_calls: list[tuple[str, tuple[Filter, ...]]] = []

    def fail_fetch(self, predicate: Callable[[str, list[Filter]], bool]) -> None:
        self.fetch_failures.append(predicate)

    def fail_subscribe(self, predicate: Callable[[str, list[Filter]], bool]) -> None:
        self.subscribe_failures.append(predicate)

    async def fetch_all(self, collection: str, filters: list[Filter]) -> list[Record]:
        self.fetch_calls.append((collection, tuple(filters)))
        if any(predicate(collection, filters) for predicate in self.fetch_failures):
            raise DocumentStoreError(f"fetch of {collection} failed")
        return await super().fetch_all(collection, filters)

    async def fetch_by_date_filter(self, collection: str, date: str) -> list[Record]:
        return await self.fetch_all(collection, [Filter("date", date)])

    async def subscribe(self, collection: str, filters: list[Filter], on_update: SnapshotHandler) -> Unsubscribe:
        if any(predicate(collection, filters) for predicate in self.subscribe_failures):
            raise DocumentStoreError(f"listen on {collection} failed")
        return await super().subscribe(collection, filters, on_update)


class SilentDocumentStore(FlakyDocumentStore):
    """Live queries open fine but never deliver; only one-shot reads move data."""

    def __init__(self, seed: dict[str, list[Record]] | None = None) -> None:
        super().__init__(seed=seed)
        self.handlers: dict[str, SnapshotHandler] = {}
        self.unsubscribed: list[str] = []

    async def subscribe(self, collection: str, filters: list[Filter], on_update: SnapshotHandler) -> Unsubscribe:
        if any(predicate(collection, filters) for predicate in self.subscribe_failures):
            raise DocumentStoreError(f"listen on {collection} failed")
        key = _handler_key(collection, filters)
        self.handlers[key] = on_update

        def unsubscribe() -> None:
            self.unsubscribed.append(key)

        return unsubscribe

    def push(self, collection: str, filters: list[Filter], records: list[Record]) -> None:
        """Deliver a snapshot through a captured handler, as a late transport would."""
        self.handlers[_handler_key(collection, filters)](records)


def _handler_key(collection: str, filters: list[Filter]) -> str:
    parts = [collection] + [f"{f.field}{f.op}{f.value}" for f in filters]
    return "|".join(parts)


class FakeNetwork(NetworkStatusPort):
    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.listeners: list[StatusListener] = []
        self.started = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False
        self.listeners.clear()

    def is_online(self) -> bool:
        return self.online

    def add_listener(self, callback: StatusListener) -> Callable[[], None]:
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback) if callback in self.listeners else None

    def set_online(self, online: bool) -> None:
        self.online = online
        for listener in list(self.listeners):
            listener(online)


def sample_seed(today: str = TODAY) -> dict[str, list[Record]]:
    return {
        "bookings": [
            {"id": "b1", "date": today, "time": "14:05", "customerName": "Alice", "serviceName": "Cut",
             "price": "50", "status": "pending"},
            {"id": "b2", "date": today, "time": "09:00", "customerName": "Bob", "serviceName": "Color",
             "price": None, "status": "accepted"},
            {"id": "b3", "date": today, "time": "09:00", "customerName": "Cara", "serviceName": "Nails",
             "price": 75, "status": "pending"},
            {"id": "b4", "date": "2026-10-01", "time": "11:00", "customerName": "Dan", "serviceName": "Cut",
             "price": 40, "status": "completed"},
        ],
        "services": [
            {"id": "s1", "name": "Cut", "isActive": True, "category": {"id": "c1", "name": "Hair"}},
            {"id": "s2", "name": "Color", "isActive": True, "category": "Hair"},
            {"id": "s3", "name": "Gel", "isActive": True, "category": "Nails"},
            {"id": "s4", "name": "Perm", "isActive": False, "category": {"id": "c1"}},
        ],
        "categories": [
            {"id": "c1", "name": "Hair", "isActive": True, "createdAt": {"seconds": 1700000000, "nanoseconds": 0}},
            {"id": "c2", "name": "Nails", "isActive": False, "createdAt": "2026-01-01T10:00:00Z"},
        ],
    }


def make_coordinator(
    store,
    clock: FakeClock,
    views: list[ReconciledView] | None = None,
    liveness_seconds: float = 0.0,
    on_change=None,
    **kwargs,
) -> ReconciliationCoordinator:
    sink = on_change or (views.append if views is not None else (lambda view: None))
    return ReconciliationCoordinator(
        store=store,
        subscriptions=SubscriptionManager(store, clock=clock.monotonic),
        on_change=sink,
        timezone=UTC,
        now=clock.now,
        clock=clock.monotonic,
        liveness_seconds=liveness_seconds,
        watchdog_interval_seconds=0,
        **kwargs,
    )


async def drain(coordinator: ReconciliationCoordinator | None = None, rounds: int = 5) -> None:
    """Let queued pushes run, then wait for enrichment to finish."""
    for _ in range(rounds):
        await asyncio.sleep(0)
    if coordinator is not None:
        await coordinator.settle()
        for _ in range(rounds):
            await asyncio.sleep(0)
