from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable

from admin_console.application.exceptions import CategoryNotFoundError, RefreshError
from admin_console.application.ports.network_status import NetworkStatusPort
from admin_console.application.ports.notifier import NotifierPort
from admin_console.application.use_cases.reconciliation import ReconciledView, ReconciliationCoordinator
from admin_console.domain.entities.booking import Booking
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.dashboard import DashboardSnapshot, DashboardStats

CoordinatorFactory = Callable[[Callable[[ReconciledView], None]], ReconciliationCoordinator]
SnapshotListener = Callable[[DashboardSnapshot], None]


class DashboardStore:
    """
    Latest dashboard snapshot for the presentation layer.

    Every change publishes a new frozen DashboardSnapshot; readers never see
    a partially applied update.
    """

    def __init__(
        self,
        coordinator_factory: CoordinatorFactory,
        notifier: NotifierPort,
        network: NetworkStatusPort | None = None,
    ) -> None:
        self._snapshot = DashboardSnapshot()
        self._coordinator = coordinator_factory(self._apply_view)
        self._notifier = notifier
        self._network = network
        self._listeners: list[SnapshotListener] = []
        self._refresh_lock = asyncio.Lock()
        self._remove_network_listener: Callable[[], None] | None = None
        self._was_online = True
        self._tasks: set[asyncio.Task[Any]] = set()
        self._logger = logging.getLogger(__name__)

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    @property
    def stats(self) -> DashboardStats:
        return self._snapshot.stats

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._snapshot.categories

    @property
    def today_bookings(self) -> tuple[Booking, ...]:
        return self._snapshot.today_bookings

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    @property
    def refreshing(self) -> bool:
        return self._snapshot.refreshing

    @property
    def coordinator(self) -> ReconciliationCoordinator:
        return self._coordinator

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self) -> None:
        if self._network is not None and self._remove_network_listener is None:
            self._was_online = self._network.is_online()
            self._remove_network_listener = self._network.add_listener(self._on_network_change)
        await self._coordinator.start()

    async def close(self) -> None:
        if self._remove_network_listener is not None:
            self._remove_network_listener()
            self._remove_network_listener = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._coordinator.close()
        self._publish(DashboardSnapshot())

    async def refresh(self) -> bool:
        """Re-run every one-shot fetch. Concurrent calls run one after another."""
        async with self._refresh_lock:
            if self._coordinator.closed:
                self._logger.warning("Refresh requested after the dashboard session ended")
                self._notifier.error("Refresh failed", "The dashboard session has ended.")
                return False
            self._publish(replace(self._snapshot, refreshing=True, last_refresh_error=None))
            try:
                await self._coordinator.refresh()
            except RefreshError as e:
                self._logger.error("Dashboard refresh failed", extra={"error": str(e)})
                self._notifier.error("Refresh failed", "Some dashboard data could not be reloaded.")
                self._publish(replace(self._snapshot, last_refresh_error=str(e)))
                return False
            finally:
                self._publish(replace(self._snapshot, refreshing=False))
            self._notifier.success("Dashboard refreshed!")
            return True

    def set_category_edit_target(self, category: Category | str | None) -> None:
        if category is None:
            self._publish(replace(self._snapshot, category_edit_target=None))
            return
        category_id = category.id if isinstance(category, Category) else category
        if not any(existing.id == category_id for existing in self._snapshot.categories):
            raise CategoryNotFoundError(f"Unknown category: {category_id}")
        self._publish(replace(self._snapshot, category_edit_target=category_id))

    def _apply_view(self, view: ReconciledView) -> None:
        edit_target = self._snapshot.category_edit_target
        if edit_target is not None and not any(c.id == edit_target for c in view.categories):
            edit_target = None
        self._publish(
            replace(
                self._snapshot,
                stats=view.stats,
                categories=view.categories,
                today_bookings=view.today_bookings,
                loading=view.loading,
                category_edit_target=edit_target,
            )
        )

    def _publish(self, snapshot: DashboardSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self._logger.warning("Snapshot listener failed", extra={"error": str(e)})

    def _on_network_change(self, online: bool) -> None:
        reconnected = online and not self._was_online
        self._was_online = online
        if not reconnected or self._coordinator.closed:
            return
        self._logger.info("Network restored; refreshing dashboard")
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
