from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ByName:
    """Legacy category reference: the bare category name."""
    name: str


@dataclass(frozen=True)
class ById:
    """Structured category reference: the category document id."""
    id: str


CategoryRef = ByName | ById


@dataclass(frozen=True)
class Service:
    id: str
    name: str = ""
    is_active: bool = True
    category: CategoryRef | None = None
