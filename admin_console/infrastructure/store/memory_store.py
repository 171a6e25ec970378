from __future__ import annotations

import asyncio
import copy
import itertools
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from admin_console.application.exceptions import DocumentStoreError
from admin_console.application.ports.document_store import (
    DocumentStorePort,
    Filter,
    Record,
    SnapshotHandler,
    Unsubscribe,
)


@dataclass
class _Listener:
    collection: str
    filters: tuple[Filter, ...]
    on_update: SnapshotHandler


class InMemoryDocumentStore(DocumentStorePort):
    """
    Document store kept in process memory.

    Live queries behave like a real-time backend: the first snapshot and
    every later change are delivered on the event loop after the call that
    caused them returns, always as the full matching set.
    """

    def __init__(
        self,
        seed: dict[str, list[Record]] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self._listeners: dict[int, _Listener] = {}
        self._listener_ids = itertools.count(1)
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)
        for collection, records in (seed or {}).items():
            for record in records:
                doc_id = str(record.get("id") or uuid.uuid4().hex)
                self._collections.setdefault(collection, {})[doc_id] = {**copy.deepcopy(record), "id": doc_id}

    async def fetch_by_date_filter(self, collection: str, date: str) -> list[Record]:
        return self._query(collection, (Filter("date", date),))

    async def fetch_all(self, collection: str, filters: list[Filter]) -> list[Record]:
        return self._query(collection, tuple(filters))

    async def subscribe(self, collection: str, filters: list[Filter], on_update: SnapshotHandler) -> Unsubscribe:
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = _Listener(collection, tuple(filters), on_update)
        asyncio.get_running_loop().call_soon(self._deliver, listener_id)

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    async def create(self, collection: str, data: Record) -> Record:
        doc_id = str(data.get("id") or uuid.uuid4().hex)
        docs = self._collections.setdefault(collection, {})
        if doc_id in docs:
            raise DocumentStoreError(f"Document {collection}/{doc_id} already exists")
        stamp = self._now()
        record = {**copy.deepcopy(data), "id": doc_id, "createdAt": stamp, "updatedAt": stamp}
        docs[doc_id] = record
        self._notify(collection)
        return copy.deepcopy(record)

    async def update(self, collection: str, doc_id: str, data: Record) -> Record:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentStoreError(f"Document {collection}/{doc_id} not found")
        changes = {**copy.deepcopy(data), "updatedAt": self._now()}
        docs[doc_id].update(changes)
        self._notify(collection)
        return {"id": doc_id, **copy.deepcopy(changes)}

    async def delete(self, collection: str, doc_id: str) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentStoreError(f"Document {collection}/{doc_id} not found")
        del docs[doc_id]
        self._notify(collection)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _query(self, collection: str, filters: tuple[Filter, ...]) -> list[Record]:
        docs = self._collections.get(collection, {})
        return [
            copy.deepcopy(record)
            for record in docs.values()
            if all(f.matches(record) for f in filters)
        ]

    def _notify(self, collection: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        for listener_id, listener in list(self._listeners.items()):
            if listener.collection == collection:
                loop.call_soon(self._deliver, listener_id)

    def _deliver(self, listener_id: int) -> None:
        listener = self._listeners.get(listener_id)
        if listener is None:
            return
        records = self._query(listener.collection, listener.filters)
        try:
            listener.on_update(records)
        except Exception:
            self._logger.exception("Snapshot handler failed", extra={"collection": listener.collection})
