from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from admin_console.application.exceptions import EnrichmentError
from admin_console.application.use_cases.aggregate import count_services_by_category, with_zero_counts
from admin_console.domain.entities.category import Category
from admin_console.domain.entities.service import Service

ServicesLoader = Callable[[], Awaitable[tuple[Service, ...]]]


@dataclass(frozen=True)
class FallbackStrategy:
    name: str
    run: Callable[[tuple[Category, ...]], Awaitable[tuple[Category, ...]]]


@dataclass(frozen=True)
class EnrichmentOutcome:
    categories: tuple[Category, ...]
    strategy: str
    errors: tuple[EnrichmentError, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


class CategoryEnricher:
    """Attach service counts to categories, trying each strategy in order until one succeeds."""

    def __init__(self, strategies: Sequence[FallbackStrategy]) -> None:
        if not strategies:
            raise ValueError("At least one enrichment strategy is required")
        self._strategies = tuple(strategies)
        self._logger = logging.getLogger(__name__)

    async def enrich(self, categories: tuple[Category, ...]) -> EnrichmentOutcome:
        errors: list[EnrichmentError] = []
        for strategy in self._strategies:
            try:
                enriched = await strategy.run(categories)
            except Exception as e:
                error = EnrichmentError(f"{strategy.name}: {e}")
                error.__cause__ = e
                errors.append(error)
                self._logger.warning(
                    "Category enrichment strategy failed",
                    extra={"strategy": strategy.name, "error": str(e)},
                )
                continue
            return EnrichmentOutcome(categories=enriched, strategy=strategy.name, errors=tuple(errors))

        self._logger.error("Every category enrichment strategy failed", extra={"count": len(errors)})
        return EnrichmentOutcome(categories=(), strategy="none", errors=tuple(errors))


def default_strategies(load_services: ServicesLoader) -> list[FallbackStrategy]:
    """Full service counts, then zero counts, then an empty category list."""

    async def with_service_counts(categories: tuple[Category, ...]) -> tuple[Category, ...]:
        services = await load_services()
        return count_services_by_category(categories, services)

    async def zero_counts(categories: tuple[Category, ...]) -> tuple[Category, ...]:
        return with_zero_counts(categories)

    async def empty(categories: tuple[Category, ...]) -> tuple[Category, ...]:
        return ()

    return [
        FallbackStrategy("service_counts", with_service_counts),
        FallbackStrategy("zero_counts", zero_counts),
        FallbackStrategy("empty", empty),
    ]
