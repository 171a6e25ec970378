from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi import Request

from admin_console.application.ports.document_store import DocumentStorePort
from admin_console.application.ports.network_status import NetworkStatusPort
from admin_console.application.ports.notifier import NotifierPort
from admin_console.application.use_cases.category_admin import CategoryAdminUseCase
from admin_console.application.use_cases.dashboard_store import DashboardStore
from admin_console.application.use_cases.reconciliation import (
    Collections,
    ReconciledView,
    ReconciliationCoordinator,
)
from admin_console.application.use_cases.subscriptions import SubscriptionManager
from admin_console.application.utils.schedule import safe_timezone
from admin_console.core.config import settings
from admin_console.domain.entities.slot import SourceKey
from admin_console.infrastructure.network.network_monitor import NetworkStatusMonitor
from admin_console.infrastructure.notifications.log_notifier import LoggingNotifier
from admin_console.infrastructure.store.http_store import HttpDocumentStore
from admin_console.infrastructure.store.memory_store import InMemoryDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class Container:
    document_store: DocumentStorePort
    network: NetworkStatusPort
    notifier: NotifierPort
    dashboard: DashboardStore
    category_admin: CategoryAdminUseCase

    async def start(self) -> None:
        await self.network.start()
        await self.dashboard.start()

    async def shutdown(self) -> None:
        await self.dashboard.close()
        await self.network.stop()
        if isinstance(self.document_store, HttpDocumentStore):
            await self.document_store.aclose()


def get_collections() -> Collections:
    return Collections(
        bookings=settings.BOOKINGS_COLLECTION,
        services=settings.SERVICES_COLLECTION,
        categories=settings.CATEGORIES_COLLECTION,
    )


def get_document_store() -> DocumentStorePort:
    if not settings.DOCUMENT_STORE_BASE_URL or settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using InMemoryDocumentStore (ENV=%s)", settings.ENV)
        return InMemoryDocumentStore()
    logger.info("Using HttpDocumentStore at %s", settings.DOCUMENT_STORE_BASE_URL)
    return HttpDocumentStore()


def get_network_monitor() -> NetworkStatusPort:
    return NetworkStatusMonitor(
        probe_url=settings.NETWORK_PROBE_URL,
        interval_seconds=settings.NETWORK_PROBE_INTERVAL_SECONDS,
    )


def get_notifier() -> NotifierPort:
    return LoggingNotifier()


def build_dashboard(
    store: DocumentStorePort,
    notifier: NotifierPort,
    network: NetworkStatusPort | None = None,
    collections: Collections | None = None,
    now: Callable[[], datetime] | None = None,
) -> DashboardStore:
    tz = safe_timezone(settings.BUSINESS_TIMEZONE)

    def coordinator_factory(on_change: Callable[[ReconciledView], None]) -> ReconciliationCoordinator:
        return ReconciliationCoordinator(
            store=store,
            subscriptions=SubscriptionManager(store),
            on_change=on_change,
            timezone=tz,
            collections=collections or get_collections(),
            now=now,
            liveness_seconds=settings.SUBSCRIPTION_LIVENESS_SECONDS,
            watchdog_interval_seconds=settings.WATCHDOG_INTERVAL_SECONDS,
        )

    return DashboardStore(coordinator_factory, notifier=notifier, network=network)


def build_container(
    store: DocumentStorePort | None = None,
    network: NetworkStatusPort | None = None,
    notifier: NotifierPort | None = None,
    now: Callable[[], datetime] | None = None,
) -> Container:
    store = store or get_document_store()
    network = network or get_network_monitor()
    notifier = notifier or get_notifier()
    collections = get_collections()
    dashboard = build_dashboard(store, notifier, network=network, collections=collections, now=now)
    category_admin = CategoryAdminUseCase(
        store=store,
        collection=collections.categories,
        current_categories=lambda: dashboard.coordinator.slot(SourceKey.categories).records,
    )
    return Container(
        document_store=store,
        network=network,
        notifier=notifier,
        dashboard=dashboard,
        category_admin=category_admin,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_dashboard(request: Request) -> DashboardStore:
    return get_container(request).dashboard


def get_category_admin(request: Request) -> CategoryAdminUseCase:
    return get_container(request).category_admin
