"""OmniSearch Python SDK — Async and sync clients for the OmniSearch REST API.

The server trusts identity headers set by an upstream auth gateway. Services
sitting behind that gateway pass the caller's identity when building a client.

Usage::

    # Async
    async with AsyncOmniSearchClient("http://localhost:8080", user_id="u-1") as client:
        page = await client.search("widget", entity_types=["products"])

    # Sync (wraps async client internally)
    client = OmniSearchClient("http://localhost:8080", user_id="u-1")
    hits = client.quick_search("widget")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar, cast

import httpx

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Response types (plain dicts mirroring the server JSON)
# ═══════════════════════════════════════════════════════════════════════════════

SearchPage = dict[str, Any]
"""Paginated search response dict (mirrors ``PaginatedSearchResult`` JSON)."""

SearchHit = dict[str, Any]
"""A single result item dict (mirrors ``SearchResultItem`` JSON)."""


def _identity_headers(user_id: str | None, role: str | None, permissions: Iterable[str] | None) -> dict[str, str]:
    headers: dict[str, str] = {}
    if user_id:
        headers["X-User-Id"] = user_id
    if role:
        headers["X-User-Role"] = role
    if permissions:
        headers["X-User-Permissions"] = ",".join(permissions)
    return headers


# ═══════════════════════════════════════════════════════════════════════════════
# Async client
# ═══════════════════════════════════════════════════════════════════════════════


class AsyncOmniSearchClient:
    """Async Python client for the OmniSearch API.

    Args:
        base_url: OmniSearch server URL, e.g. ``"http://localhost:8080"``.
        user_id: Caller identity forwarded in ``X-User-Id``.
        role: Caller role forwarded in ``X-User-Role``.
        permissions: Caller permissions forwarded in ``X-User-Permissions``.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        async with AsyncOmniSearchClient(
            "http://localhost:8080",
            user_id="admin-1",
            role="ADMIN",
            permissions=["*:*"],
        ) as client:
            page = await client.search("spring sale", sort_by="date")
            for item in page["results"]:
                print(item["entityType"], item["title"])
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        user_id: str | None = None,
        role: str | None = None,
        permissions: Iterable[str] | None = None,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {**_identity_headers(user_id, role, permissions), **httpx_kwargs.pop("headers", {})}
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers=headers,
            **httpx_kwargs,
        )

    async def __aenter__(self) -> AsyncOmniSearchClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Health ──

    async def health(self) -> dict[str, Any]:
        """Check server health.

        Returns:
            Health status dict.
        """
        resp = await self._client.get("/v1/health")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    async def provider_health(self) -> dict[str, Any]:
        """Check provider health.

        Returns:
            Per-entity-type health status dict.
        """
        resp = await self._client.get("/v1/health/providers")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    # ── Search ──

    async def search(
        self,
        query: str,
        *,
        entity_types: str | Iterable[str] = "all",
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "relevance",
    ) -> SearchPage:
        """Run a paginated federated search.

        Args:
            query: Search text.
            entity_types: ``"all"``, one type, or several types.
            page: 1-based page.
            limit: Page size (server default when None).
            sort_by: ``relevance``, ``date`` or ``name``.

        Returns:
            Paginated response dict with ``results``, ``total``, ``page``,
            ``limit`` and ``totalPages``.

        Raises:
            httpx.HTTPStatusError: On 400 (invalid query), 401 or 429.
        """
        types = entity_types if isinstance(entity_types, str) else ",".join(entity_types)
        params: dict[str, Any] = {"q": query, "type": types, "page": page, "sortBy": sort_by}
        if limit is not None:
            params["limit"] = limit
        resp = await self._client.get("/v1/search", params=params)
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    async def quick_search(self, query: str) -> list[SearchHit]:
        """Top results across every permitted entity type."""
        resp = await self._client.get("/v1/search/quick", params={"q": query})
        resp.raise_for_status()
        return cast(list[dict[str, Any]], resp.json())

    async def entity_types(self) -> list[dict[str, Any]]:
        """Entity types the caller may search."""
        resp = await self._client.get("/v1/search/types")
        resp.raise_for_status()
        return cast(list[dict[str, Any]], resp.json())


# ═══════════════════════════════════════════════════════════════════════════════
# Sync client (wraps AsyncOmniSearchClient)
# ═══════════════════════════════════════════════════════════════════════════════


class OmniSearchClient:
    """Synchronous Python client for the OmniSearch API.

    Wraps :class:`AsyncOmniSearchClient` using ``asyncio.run``.

    Args:
        base_url: OmniSearch server URL.
        user_id: Caller identity forwarded in ``X-User-Id``.
        role: Caller role forwarded in ``X-User-Role``.
        permissions: Caller permissions forwarded in ``X-User-Permissions``.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        user_id: str | None = None,
        role: str | None = None,
        permissions: Iterable[str] | None = None,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._base_url = base_url
        self._user_id = user_id
        self._role = role
        self._permissions = list(permissions) if permissions is not None else None
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # Already inside an event loop (e.g. Jupyter), run in a worker thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncOmniSearchClient:
        return AsyncOmniSearchClient(
            self._base_url,
            user_id=self._user_id,
            role=self._role,
            permissions=self._permissions,
            timeout=self._timeout,
            **self._httpx_kwargs,
        )

    def health(self) -> dict[str, Any]:
        """Check server health."""

        async def _call() -> dict[str, Any]:
            async with self._make_client() as c:
                return await c.health()

        return self._run(_call())

    def provider_health(self) -> dict[str, Any]:
        """Check provider health."""

        async def _call() -> dict[str, Any]:
            async with self._make_client() as c:
                return await c.provider_health()

        return self._run(_call())

    def search(
        self,
        query: str,
        *,
        entity_types: str | Iterable[str] = "all",
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "relevance",
    ) -> SearchPage:
        """Run a paginated federated search."""

        async def _call() -> SearchPage:
            async with self._make_client() as c:
                return await c.search(query, entity_types=entity_types, page=page, limit=limit, sort_by=sort_by)

        return self._run(_call())

    def quick_search(self, query: str) -> list[SearchHit]:
        """Top results across every permitted entity type."""

        async def _call() -> list[SearchHit]:
            async with self._make_client() as c:
                return await c.quick_search(query)

        return self._run(_call())

    def entity_types(self) -> list[dict[str, Any]]:
        """Entity types the caller may search."""

        async def _call() -> list[dict[str, Any]]:
            async with self._make_client() as c:
                return await c.entity_types()

        return self._run(_call())
