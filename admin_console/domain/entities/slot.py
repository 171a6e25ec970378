from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from admin_console.application.exceptions import SlotTransitionError


class SourceKey(str, Enum):
    all_bookings = "all-bookings"
    today_bookings = "today-bookings"
    active_services = "active-services"
    categories = "categories"


class SlotStatus(str, Enum):
    empty = "empty"
    loading = "loading"
    populated = "populated"


@dataclass
class Slot:
    """
    Latest snapshot of one named source.

    Empty -> Loading -> Populated, Populated -> Populated on every update.
    Only reset() (session teardown) returns a slot to Empty.
    """

    key: SourceKey
    status: SlotStatus = SlotStatus.empty
    records: tuple[Any, ...] = ()
    scope: str | None = None  # e.g. the date today-bookings was filtered by
    generation: int = 0
    updated_at: float | None = None
    origin: str | None = None  # "fetch" or "push"

    def begin_loading(self) -> None:
        if self.status is SlotStatus.populated:
            return
        if self.status is SlotStatus.loading:
            return
        self._move(SlotStatus.loading)

    def populate(self, records: tuple[Any, ...], origin: str, at: float, scope: str | None = None) -> None:
        if self.status is SlotStatus.empty:
            self._move(SlotStatus.loading)
        if self.status is SlotStatus.loading:
            self._move(SlotStatus.populated)
        self.records = records
        self.origin = origin
        self.updated_at = at
        self.scope = scope
        self.generation += 1

    def reset(self) -> None:
        self.status = SlotStatus.empty
        self.records = ()
        self.scope = None
        self.origin = None
        self.updated_at = None

    @property
    def is_populated(self) -> bool:
        return self.status is SlotStatus.populated

    def _move(self, target: SlotStatus) -> None:
        allowed = {
            SlotStatus.empty: {SlotStatus.loading},
            SlotStatus.loading: {SlotStatus.populated},
            SlotStatus.populated: set(),
        }
        if target not in allowed[self.status]:
            raise SlotTransitionError(f"{self.key.value}: {self.status.value} -> {target.value}")
        self.status = target
