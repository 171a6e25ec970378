from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

Record = dict[str, Any]
SnapshotHandler = Callable[[list[Record]], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class Filter:
    field: str
    value: Any
    op: str = "=="

    def matches(self, record: Record) -> bool:
        if self.op != "==":
            raise ValueError(f"Unsupported filter operator: {self.op}")
        return record.get(self.field) == self.value


class DocumentStorePort(ABC):
    @abstractmethod
    async def fetch_by_date_filter(self, collection: str, date: str) -> list[Record]:
        """One-shot read of every record whose `date` field equals `date`."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_all(self, collection: str, filters: list[Filter]) -> list[Record]:
        """One-shot read of every record matching all filters."""
        raise NotImplementedError

    @abstractmethod
    async def subscribe(self, collection: str, filters: list[Filter], on_update: SnapshotHandler) -> Unsubscribe:
        """Open a live query. `on_update` receives the full matching set on every change."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, collection: str, data: Record) -> Record:
        """Insert a document. Returns the stored record including its id."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Record) -> Record:
        """Merge `data` into an existing document. Returns the merged fields."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError
