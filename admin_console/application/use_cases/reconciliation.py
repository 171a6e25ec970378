from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable
from zoneinfo import ZoneInfo

from admin_console.application.dto.records import (
    ingest_bookings,
    ingest_categories,
    ingest_services,
)
from admin_console.application.exceptions import (
    RefreshError,
    SubscriptionSetupError,
    TransientFetchError,
)
from admin_console.application.ports.document_store import DocumentStorePort, Filter, Record
from admin_console.application.use_cases.aggregate import AggregationState, aggregate, todays_schedule
from admin_console.application.use_cases.enrichment import CategoryEnricher, default_strategies
from admin_console.application.use_cases.subscriptions import SubscriptionManager
from admin_console.application.utils.schedule import today_iso
from admin_console.domain.entities.booking import Booking
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.dashboard import DashboardStats
from admin_console.domain.entities.service import Service
from admin_console.domain.entities.slot import Slot, SourceKey


SERVICES_WATCH_KEY = "services-watch"


@dataclass(frozen=True)
class Collections:
    bookings: str = "bookings"
    services: str = "services"
    categories: str = "categories"


@dataclass(frozen=True)
class SourceDefinition:
    key: SourceKey
    collection: str
    filters: tuple[Filter, ...] = ()
    ingest: Callable[[Iterable[Any]], tuple[Any, ...]] = ingest_bookings
    baseline: bool = False  # eagerly fetched on start
    date_scoped: bool = False  # filtered by the current calendar day


@dataclass(frozen=True)
class ReconciledView:
    stats: DashboardStats
    categories: tuple[Category, ...]
    today_bookings: tuple[Booking, ...]
    loading: bool


# Events dispatched to the coordinator. Each one is applied synchronously,
# so updates to a slot land in the order their callbacks fire.


@dataclass(frozen=True)
class SlotUpdated:
    key: SourceKey
    records: list[Record]
    origin: str  # "fetch" or "push"
    scope: str | None = None


@dataclass(frozen=True)
class FetchFailed:
    key: SourceKey
    error: TransientFetchError


def build_sources(collections: Collections) -> dict[SourceKey, SourceDefinition]:
    return {
        SourceKey.all_bookings: SourceDefinition(
            key=SourceKey.all_bookings,
            collection=collections.bookings,
            ingest=ingest_bookings,
            baseline=True,
        ),
        SourceKey.today_bookings: SourceDefinition(
            key=SourceKey.today_bookings,
            collection=collections.bookings,
            ingest=ingest_bookings,
            date_scoped=True,
        ),
        SourceKey.active_services: SourceDefinition(
            key=SourceKey.active_services,
            collection=collections.services,
            filters=(Filter("isActive", True),),
            ingest=ingest_services,
            baseline=True,
        ),
        SourceKey.categories: SourceDefinition(
            key=SourceKey.categories,
            collection=collections.categories,
            ingest=ingest_categories,
            baseline=True,
        ),
    }


class ReconciliationCoordinator:
    """
    Owns every slot of a dashboard session and the live streams feeding them.

    One-shot fetches and live pushes both write slots, last write wins.
    After each accepted write the whole view is recomputed and handed to
    `on_change`. Category service counts are attached asynchronously through
    the enrichment fallback chain.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        subscriptions: SubscriptionManager,
        on_change: Callable[[ReconciledView], None],
        timezone: ZoneInfo,
        collections: Collections | None = None,
        enricher: CategoryEnricher | None = None,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
        liveness_seconds: float = 0.0,
        watchdog_interval_seconds: float = 30.0,
    ) -> None:
        self._store = store
        self._subscriptions = subscriptions
        self._on_change = on_change
        self._tz = timezone
        self._collections = collections or Collections()
        self._sources = build_sources(self._collections)
        self._enricher = enricher or CategoryEnricher(default_strategies(self._load_all_services))
        self._now = now or (lambda: datetime.now(self._tz))
        self._clock = clock
        self._liveness_seconds = liveness_seconds
        self._watchdog_interval = watchdog_interval_seconds

        self._slots = {key: Slot(key) for key in self._sources}
        self._categories: tuple[Category, ...] = ()
        self._enrichment_generation = 0
        self._today_subscription_scope: str | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._watchdog: asyncio.Task[None] | None = None
        self._started = False
        self._closed = False
        self._handlers: dict[type, Callable[[Any], None]] = {
            SlotUpdated: self._on_slot_updated,
            FetchFailed: self._on_fetch_failed,
        }
        self._logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Issue the baseline fetches and open every live subscription, concurrently."""
        if self._closed:
            raise RuntimeError("Coordinator was torn down; build a new one for a new session")
        if self._started:
            return
        self._started = True

        baseline = [source for source in self._sources.values() if source.baseline]
        for source in baseline:
            self._slots[source.key].begin_loading()
        self._publish()

        await asyncio.gather(
            *(self._baseline_fetch(source) for source in baseline),
            *(self._open_subscription(source) for source in self._sources.values()),
            self._open_services_watch(),
        )

        if self._watchdog_interval > 0:
            self._watchdog = asyncio.get_running_loop().create_task(self._run_watchdog())

    async def close(self) -> None:
        """Tear the session down: close streams, cancel background work, empty every slot."""
        if self._closed:
            return
        self._closed = True
        self._subscriptions.unsubscribe_all()

        pending = list(self._tasks)
        if self._watchdog is not None:
            pending.append(self._watchdog)
            self._watchdog = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for slot in self._slots.values():
            slot.reset()
        self._categories = ()
        self._logger.info("Dashboard session torn down")

    @property
    def closed(self) -> bool:
        return self._closed

    def slot(self, key: SourceKey) -> Slot:
        return self._slots[key]

    @property
    def loading(self) -> bool:
        return any(
            not self._slots[source.key].is_populated for source in self._sources.values() if source.baseline
        )

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    def today(self) -> str:
        return today_iso(self._tz, self._now())

    def view(self) -> ReconciledView:
        today = self.today()
        today_slot = self._slots[SourceKey.today_bookings]
        state = AggregationState(
            all_bookings=self._slots[SourceKey.all_bookings].records,
            today_bookings=today_slot.records if today_slot.is_populated else None,
            today_scope=today_slot.scope,
            active_services=self._slots[SourceKey.active_services].records,
        )
        return ReconciledView(
            stats=aggregate(state, today),
            categories=self._categories,
            today_bookings=todays_schedule(state, today),
            loading=self.loading,
        )

    def dispatch(self, event: SlotUpdated | FetchFailed) -> None:
        if self._closed:
            self._logger.debug(
                "Discarding update after teardown",
                extra={"source": event.key.value, "event": type(event).__name__},
            )
            return
        self._handlers[type(event)](event)

    def _on_slot_updated(self, event: SlotUpdated) -> None:
        source = self._sources[event.key]
        records = source.ingest(event.records)
        self._slots[event.key].populate(records, origin=event.origin, at=self._clock(), scope=event.scope)
        self._logger.debug(
            "Slot updated",
            extra={"source": event.key.value, "count": len(records), "reason": event.origin},
        )
        if event.key in (SourceKey.categories, SourceKey.active_services):
            self._schedule_enrichment()
        self._publish()

    def _on_fetch_failed(self, event: FetchFailed) -> None:
        slot = self._slots[event.key]
        self._logger.warning(
            "One-shot fetch failed",
            extra={"source": event.key.value, "error": str(event.error.cause)},
        )
        if slot.is_populated:
            return
        source = self._sources[event.key]
        slot.populate((), origin="fallback", at=self._clock(), scope=self.today() if source.date_scoped else None)
        if event.key is SourceKey.categories:
            self._schedule_enrichment()
        self._publish()

    def _publish(self) -> None:
        self._on_change(self.view())

    async def _fetch(self, source: SourceDefinition, today: str) -> list[Record]:
        if source.date_scoped:
            return await self._store.fetch_by_date_filter(source.collection, today)
        return await self._store.fetch_all(source.collection, list(source.filters))

    async def _baseline_fetch(self, source: SourceDefinition) -> None:
        today = self.today()
        try:
            records = await self._fetch(source, today)
        except Exception as e:
            self.dispatch(FetchFailed(source.key, TransientFetchError(source.key.value, e)))
            return
        self.dispatch(SlotUpdated(source.key, records, origin="fetch", scope=today if source.date_scoped else None))

    async def refresh(self) -> None:
        """
        Re-run every one-shot fetch concurrently.

        Successful sub-fetches are applied even when others fail; any failure
        is reported once as RefreshError after the successful ones landed.
        """
        if self._closed:
            raise RuntimeError("Cannot refresh a torn-down dashboard session")

        today = self.today()
        sources = list(self._sources.values())
        results = await asyncio.gather(*(self._fetch(source, today) for source in sources), return_exceptions=True)

        failures: dict[str, BaseException] = {}
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures[source.key.value] = result
                self._logger.warning("Refresh fetch failed", extra={"source": source.key.value, "error": str(result)})
                continue
            self.dispatch(SlotUpdated(source.key, result, origin="fetch", scope=today if source.date_scoped else None))

        await self.settle()
        if failures:
            raise RefreshError(failures)

    async def settle(self) -> None:
        """Wait for in-flight enrichment to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _open_subscription(self, source: SourceDefinition) -> None:
        filters = list(source.filters)
        scope: str | None = None
        if source.date_scoped:
            scope = self.today()
            filters.append(Filter("date", scope))

        def on_update(records: list[Record]) -> None:
            self.dispatch(SlotUpdated(source.key, records, origin="push", scope=scope))

        try:
            await self._subscriptions.subscribe(source.key.value, source.collection, filters, on_update)
        except SubscriptionSetupError as e:
            self._logger.warning("Live subscription unavailable", extra={"source": source.key.value, "error": str(e)})
            return
        if self._closed:
            self._subscriptions.unsubscribe(source.key.value)
            return
        if source.date_scoped:
            self._today_subscription_scope = scope

    async def _open_services_watch(self) -> None:
        # Counts cover inactive services, which the active-services stream never reports.
        def on_update(records: list[Record]) -> None:
            if not self._closed:
                self._schedule_enrichment()

        try:
            await self._subscriptions.subscribe(SERVICES_WATCH_KEY, self._collections.services, [], on_update)
        except SubscriptionSetupError as e:
            self._logger.warning(
                "Live subscription unavailable", extra={"source": SERVICES_WATCH_KEY, "error": str(e)}
            )
            return
        if self._closed:
            self._subscriptions.unsubscribe(SERVICES_WATCH_KEY)

    def _schedule_enrichment(self) -> None:
        self._enrichment_generation += 1
        task = asyncio.get_running_loop().create_task(self._enrich(self._enrichment_generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _enrich(self, generation: int) -> None:
        categories = self._slots[SourceKey.categories].records
        outcome = await self._enricher.enrich(categories)
        if self._closed or generation != self._enrichment_generation:
            self._logger.debug("Discarding superseded category enrichment", extra={"strategy": outcome.strategy})
            return
        if outcome.degraded:
            self._logger.warning(
                "Published categories with degraded enrichment",
                extra={"strategy": outcome.strategy, "count": len(outcome.categories)},
            )
        self._categories = outcome.categories
        self._publish()

    async def _load_all_services(self) -> tuple[Service, ...]:
        # Counts cover active and inactive services alike.
        records = await self._store.fetch_all(self._collections.services, [])
        return ingest_services(records)

    async def _run_watchdog(self) -> None:
        while not self._closed:
            await asyncio.sleep(self._watchdog_interval)
            try:
                await self.check_liveness()
            except Exception:
                self._logger.exception("Liveness check failed")

    async def check_liveness(self) -> None:
        """
        Rescope today's stream after midnight, reopen streams whose setup
        failed, and re-fetch slots whose stream has gone silent.
        """
        if self._closed:
            return
        today = self.today()
        today_key = SourceKey.today_bookings.value
        if self._today_subscription_scope is not None and self._today_subscription_scope != today:
            self._logger.info("Calendar day rolled over; rescoping today's bookings", extra={"reason": today})
            self._subscriptions.unsubscribe(today_key)
            self._today_subscription_scope = None
            self._publish()

        for source in self._sources.values():
            if not self._subscriptions.is_active(source.key.value):
                await self._open_subscription(source)
        if not self._subscriptions.is_active(SERVICES_WATCH_KEY):
            await self._open_services_watch()

        if self._liveness_seconds <= 0:
            return
        for key in self._subscriptions.stale_keys(self._liveness_seconds):
            if key == SERVICES_WATCH_KEY:
                self._subscriptions.touch(key)
                self._schedule_enrichment()
                continue
            source = self._sources[SourceKey(key)]
            self._logger.warning("Live subscription silent; re-fetching", extra={"source": key})
            self._subscriptions.touch(key)
            await self._baseline_fetch(source)
