from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from admin_console.application.exceptions import SubscriptionSetupError
from admin_console.application.ports.document_store import (
    DocumentStorePort,
    Filter,
    Record,
    SnapshotHandler,
    Unsubscribe,
)


@dataclass
class _Subscription:
    key: str
    collection: str
    filters: tuple[Filter, ...]
    opened_at: float
    active: bool = True
    last_activity_at: float | None = None
    deliveries: int = 0
    transport_unsubscribe: Unsubscribe | None = field(default=None, repr=False)


class SubscriptionManager:
    """
    Owns the live subscriptions of one dashboard session, one per source key.

    Every delivery hands the handler the full current record set of the
    stream. Pushes that arrive after a key was unsubscribed are dropped here,
    before they can reach the handler.
    """

    def __init__(self, store: DocumentStorePort, clock: Callable[[], float] = time.monotonic) -> None:
        self._store = store
        self._clock = clock
        self._active: dict[str, _Subscription] = {}
        self._logger = logging.getLogger(__name__)

    async def subscribe(
        self,
        key: str,
        collection: str,
        filters: list[Filter],
        on_update: SnapshotHandler,
    ) -> Unsubscribe:
        if key in self._active:
            raise ValueError(f"A live subscription is already open for {key}")

        subscription = _Subscription(
            key=key,
            collection=collection,
            filters=tuple(filters),
            opened_at=self._clock(),
        )
        # Reserve the key before the first suspension point.
        self._active[key] = subscription

        def deliver(records: list[Record]) -> None:
            if not subscription.active:
                self._logger.debug("Dropping push after unsubscribe", extra={"source": key})
                return
            subscription.last_activity_at = self._clock()
            subscription.deliveries += 1
            on_update(list(records))

        def unsubscribe() -> None:
            self._close(subscription)

        try:
            transport_unsubscribe = await self._store.subscribe(collection, list(filters), deliver)
        except Exception as e:
            self._close(subscription)
            raise SubscriptionSetupError(f"Could not open live subscription for {key}: {e}") from e

        subscription.transport_unsubscribe = transport_unsubscribe
        if not subscription.active:
            # Unsubscribed while the transport was still opening.
            transport_unsubscribe()
        else:
            self._logger.info("Live subscription opened", extra={"source": key, "collection": collection})
        return unsubscribe

    def is_active(self, key: str) -> bool:
        return key in self._active

    @property
    def active_keys(self) -> list[str]:
        return list(self._active)

    def deliveries(self, key: str) -> int:
        subscription = self._active.get(key)
        return subscription.deliveries if subscription else 0

    def stale_keys(self, max_silence_seconds: float) -> list[str]:
        """Keys whose stream has been silent for longer than `max_silence_seconds`."""
        now = self._clock()
        stale: list[str] = []
        for key, subscription in self._active.items():
            last = subscription.last_activity_at or subscription.opened_at
            if now - last > max_silence_seconds:
                stale.append(key)
        return stale

    def touch(self, key: str) -> None:
        """Restart the silence timer for `key` without a delivery."""
        subscription = self._active.get(key)
        if subscription is not None:
            subscription.last_activity_at = self._clock()

    def unsubscribe(self, key: str) -> None:
        subscription = self._active.get(key)
        if subscription is not None:
            self._close(subscription)

    def unsubscribe_all(self) -> None:
        for subscription in list(self._active.values()):
            self._close(subscription)

    def _close(self, subscription: _Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        if self._active.get(subscription.key) is subscription:
            del self._active[subscription.key]
        if subscription.transport_unsubscribe is None:
            return
        try:
            subscription.transport_unsubscribe()
        except Exception as e:
            self._logger.warning(
                "Transport unsubscribe failed",
                extra={"source": subscription.key, "error": str(e)},
            )
