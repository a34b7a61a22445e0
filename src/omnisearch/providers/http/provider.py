"""HTTP provider — Delegates one entity type to a remote search service.

Lets a module that lives in another service take part in federated search
without OmniSearch knowing how it stores its data. The remote service must
expose two endpoints that apply its own row-level rules for the forwarded
caller:

  ``GET {base_url}/search?q=&page=&limit=&sortBy=``  → ``{"results": [...]}``
  ``GET {base_url}/count?q=``                       → ``{"count": n}``

Result items use the same camelCase shape OmniSearch itself returns. The
caller identity is forwarded in ``X-User-Id``, ``X-User-Role`` and
``X-User-Permissions`` headers.

Usage::

    provider = HttpSearchProvider(
        entity_type="orders",
        required_permission="orders:read",
        base_url="http://orders.internal/api/search",
    )
    await provider.initialize()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from omnisearch.models.context import PermissionContext
from omnisearch.models.query import SearchOptions
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.base.exceptions import ProviderConfigurationError, ProviderUnavailableError
from omnisearch.providers.base.provider import ProviderHealth, SearchProvider
from omnisearch.providers.scoring import RelevanceScorer

logger = logging.getLogger(__name__)


class HttpSearchProvider(SearchProvider):
    """Search provider backed by a remote HTTP search service.

    Args:
        entity_type: Entity type this provider registers under.
        required_permission: Permission needed to query it.
        base_url: Base URL of the remote search endpoints.
        api_key: Optional bearer token for the remote service.
        timeout: HTTP request timeout in seconds.
        primary_field: Field used when re-scoring raw records with ``score``.
        **kwargs: Extra keyword arguments stored for future use.

    Raises:
        ProviderConfigurationError: If ``entity_type`` or ``base_url`` is missing.
    """

    def __init__(
        self,
        entity_type: str = "",
        required_permission: str | None = None,
        base_url: str = "",
        api_key: str | None = None,
        timeout: float = 10.0,
        primary_field: str = "title",
        **kwargs: Any,
    ) -> None:
        if not entity_type:
            raise ProviderConfigurationError("HttpSearchProvider requires an entity_type")
        if not base_url:
            raise ProviderConfigurationError(f"HttpSearchProvider '{entity_type}' requires a base_url")
        self._entity_type = entity_type
        self._required_permission = required_permission or f"{entity_type}:read"
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._scorer = RelevanceScorer(primary=primary_field)
        self._extra_kwargs = kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def entity_type(self) -> str:
        return self._entity_type

    @property
    def required_permission(self) -> str:
        return self._required_permission

    async def initialize(self) -> None:
        """Create the ``httpx.AsyncClient``."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
        )
        logger.info("HTTP provider '%s' targeting %s", self._entity_type, self._base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Search ───────────────────────────────────────────────────────────

    async def search(
        self,
        ctx: PermissionContext,
        query: str,
        options: SearchOptions,
    ) -> list[SearchResultItem]:
        params = {
            "q": query,
            "page": options.page,
            "limit": options.limit,
            "sortBy": options.sort_by.value,
        }
        data = await self._get_json("/search", params, ctx)
        raw_items = data.get("results", []) if isinstance(data, Mapping) else []

        items: list[SearchResultItem] = []
        for raw in raw_items[: options.limit]:
            try:
                item = SearchResultItem.model_validate({**raw, "entityType": self._entity_type})
            except (ValidationError, TypeError):
                logger.warning("Dropping malformed result from provider '%s': %r", self._entity_type, raw)
                continue
            items.append(item)
        return items

    async def count(self, ctx: PermissionContext, query: str) -> int:
        data = await self._get_json("/count", {"q": query}, ctx)
        try:
            return max(0, int(data["count"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailableError(self._entity_type, f"invalid count response: {data!r}") from e

    def score(self, record: Mapping[str, Any], query: str) -> float:
        """Score a raw remote record; the remote service normally scores its own results."""
        return self._scorer.score(record, query)

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> ProviderHealth:
        if not self._client:
            return ProviderHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            resp = await self._client.get("/count", params={"q": "health"})
            latency_ms = int((time.monotonic() - start) * 1000)
            return ProviderHealth(
                status="healthy" if resp.status_code < 500 else "degraded",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"{self._base_url} returned HTTP {resp.status_code}",
            )
        except httpx.HTTPError as e:
            return ProviderHealth(status="unhealthy", message=str(e))

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _get_json(self, path: str, params: dict[str, Any], ctx: PermissionContext) -> Any:
        if not self._client:
            raise ProviderUnavailableError(self._entity_type, "client not initialized")

        headers = {
            "X-User-Id": ctx.user_id,
            "X-User-Role": ctx.role,
            "X-User-Permissions": ",".join(sorted(ctx.permissions)),
        }
        try:
            resp = await self._client.get(path, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(self._entity_type, str(e)) from e
        except ValueError as e:
            raise ProviderUnavailableError(self._entity_type, f"invalid JSON: {e}") from e
