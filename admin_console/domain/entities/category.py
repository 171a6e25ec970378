from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    is_active: bool = True
    slug: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    service_count: int = 0  # derived, never stored upstream
