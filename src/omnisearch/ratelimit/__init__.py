"""Per-user request budgets for the search endpoints."""

from omnisearch.ratelimit.limiter import EndpointClass, SearchRateLimiter

__all__ = ["EndpointClass", "SearchRateLimiter"]
