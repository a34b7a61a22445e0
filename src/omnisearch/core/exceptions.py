"""Coordinator-level exceptions surfaced to callers."""

from __future__ import annotations


class SearchError(Exception):
    """Base exception for search errors surfaced to callers."""


class QueryValidationError(SearchError):
    """Raised when query parameters are malformed. Maps to HTTP 400.

    Raised before any provider is touched.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid search query")


class RateLimitExceededError(SearchError):
    """Raised when a caller's window budget is exhausted. Maps to HTTP 429."""

    def __init__(self, endpoint: str, limit: int, window_seconds: float, retry_after: float) -> None:
        self.endpoint = endpoint
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"Search rate limit exceeded for {endpoint}: {limit} requests per "
            f"{window_seconds:g}s. Retry in {self.retry_after:.0f}s."
        )
