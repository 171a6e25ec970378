from __future__ import annotations


class DashboardError(RuntimeError):
    """Base class for errors raised inside the dashboard core."""
    pass


class DocumentStoreError(DashboardError):
    """Raised when the document store adapter fails (network errors, bad responses)."""
    pass


class TransientFetchError(DashboardError):
    """Raised when a one-shot fetch for a slot rejects."""

    def __init__(self, source: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Fetch failed for {source}: {cause}")
        self.source = source
        self.cause = cause


class EnrichmentError(DashboardError):
    """Raised when category service counts cannot be computed."""
    pass


class RefreshError(DashboardError):
    """Raised when one or more sub-fetches of a manual refresh fail."""

    def __init__(self, failures: dict[str, BaseException]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f"Refresh failed for: {names}")
        self.failures = dict(failures)


class SubscriptionSetupError(DashboardError):
    """Raised when a live subscription cannot be opened."""
    pass


class SlotTransitionError(DashboardError):
    """Raised on an illegal slot state transition."""
    pass


class CategoryValidationError(ValueError):
    """Raised when category admin input is invalid."""
    pass


class CategoryNotFoundError(LookupError):
    pass
