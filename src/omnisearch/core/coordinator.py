"""Search Coordinator — Fans a query out to providers and merges the answers.

The coordinator owns the request lifecycle of both entry points:
  1. Validation: re-check query bounds against the live registry
  2. Type-level gate: keep only providers whose permission the caller holds
  3. Fan-out: call providers concurrently, each under its own timeout
  4. Merge: order the combined candidates and cut the requested page
  5. Audit: record searches whose candidates included sensitive entity types

A provider that fails or times out contributes nothing; the request still
succeeds with whatever the other providers returned.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, TypeVar

from omnisearch.core.exceptions import QueryValidationError
from omnisearch.core.ordering import sort_results
from omnisearch.core.validation import validate_query
from omnisearch.models.context import PermissionContext
from omnisearch.models.query import MAX_QUERY_LENGTH, SearchOptions, SearchQuery, SortBy
from omnisearch.models.result import PaginatedSearchResult, SearchResultItem
from omnisearch.observability.logging import get_audit_logger
from omnisearch.providers.base.provider import SearchProvider
from omnisearch.providers.base.registry import ProviderRegistry

if TYPE_CHECKING:
    from omnisearch.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchCoordinator:
    """Federated search over every registered provider.

    Attributes:
        settings: Application configuration.
        provider_registry: Registry of search providers.
    """

    def __init__(self, settings: Settings, registry: ProviderRegistry | None = None) -> None:
        self.settings = settings
        self.provider_registry = registry if registry is not None else ProviderRegistry()

    async def initialize(self) -> None:
        """Initialize every registered provider."""
        await self.provider_registry.initialize_all()
        logger.info(
            "Search coordinator initialized with %d providers: %s",
            len(self.provider_registry),
            ", ".join(sorted(self.provider_registry.all_types())) or "none",
        )

    async def shutdown(self) -> None:
        """Gracefully shut down all providers."""
        await self.provider_registry.shutdown_all()
        logger.info("Search coordinator shut down")

    # ── Permission gate ──────────────────────────────────────────────────

    def eligible_providers(self, ctx: PermissionContext, query: SearchQuery | None = None) -> list[SearchProvider]:
        """Providers the caller may query, in registry order.

        Args:
            ctx: The caller.
            query: Restricts the candidates to the requested entity types. All
                registered providers are candidates when None or ``all``.
        """
        if query is None or query.is_all_types:
            candidates = self.provider_registry.providers()
        else:
            wanted = query.entity_types
            candidates = [p for p in self.provider_registry.providers() if p.entity_type in wanted]

        permitted = [p for p in candidates if ctx.has_permission(p.required_permission)]
        if len(permitted) < len(candidates):
            logger.debug(
                "User %s lacks permission for: %s",
                ctx.user_id,
                ", ".join(p.entity_type for p in candidates if p not in permitted),
            )
        return permitted

    # ── Full search ──────────────────────────────────────────────────────

    async def search(self, ctx: PermissionContext, query: SearchQuery) -> PaginatedSearchResult:
        """Run a paginated search across the requested entity types.

        Args:
            ctx: The caller's identity and permissions.
            query: A parsed search query.

        Returns:
            One page of merged results with totals.

        Raises:
            QueryValidationError: If the query names unknown types or breaks bounds.
        """
        validate_query(query, self.provider_registry.all_types())

        providers = self.eligible_providers(ctx, query)
        if not providers:
            logger.info("No permitted providers for user %s, returning empty page", ctx.user_id)
            return PaginatedSearchResult.empty(query.page, query.limit)

        if query.single_type is not None:
            candidates, total = await self._search_single(ctx, query, providers[0])
            results = candidates
        else:
            candidates, total = await self._search_multi(ctx, query, providers)
            start = (query.page - 1) * query.limit
            results = candidates[start : start + query.limit]

        total_pages = math.ceil(total / query.limit) if total > 0 else 0
        logger.info(
            "Search '%s' for user %s over %d providers: %d of %d results (page %d/%d)",
            query.text,
            ctx.user_id,
            len(providers),
            len(results),
            total,
            query.page,
            total_pages,
        )
        self._audit(ctx, query.text, candidates, mode="search")

        return PaginatedSearchResult(
            results=results,
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages,
        )

    async def _search_single(
        self,
        ctx: PermissionContext,
        query: SearchQuery,
        provider: SearchProvider,
    ) -> tuple[list[SearchResultItem], int]:
        options = SearchOptions(page=query.page, limit=query.limit, sort_by=query.sort_by)
        items, total = await asyncio.gather(
            self._guarded(provider, "search", provider.search(ctx, query.text, options), []),
            self._guarded(provider, "count", provider.count(ctx, query.text), 0),
        )
        return list(items)[: query.limit], max(0, int(total))

    async def _search_multi(
        self,
        ctx: PermissionContext,
        query: SearchQuery,
        providers: Sequence[SearchProvider],
    ) -> tuple[list[SearchResultItem], int]:
        """Return every merged candidate in sort order, with the summed count."""
        # Every provider must supply enough candidates to fill the requested
        # page on its own, because the merge order is only known afterwards.
        fetch = min(query.page * query.limit, self.settings.search.max_candidates_per_provider)
        options = SearchOptions(page=1, limit=fetch, sort_by=query.sort_by)

        searches = [self._guarded(p, "search", p.search(ctx, query.text, options), []) for p in providers]
        counts = [self._guarded(p, "count", p.count(ctx, query.text), 0) for p in providers]
        gathered = await asyncio.gather(*searches, *counts)

        candidate_lists: list[list[SearchResultItem]] = gathered[: len(providers)]
        totals: list[int] = gathered[len(providers) :]

        merged = [item for items in candidate_lists for item in list(items)[:fetch]]
        return sort_results(merged, query.sort_by), sum(max(0, int(t)) for t in totals)

    # ── Quick search ─────────────────────────────────────────────────────

    async def quick_search(self, ctx: PermissionContext, text: str | None) -> list[SearchResultItem]:
        """Top results across every permitted entity type, for instant search.

        Args:
            ctx: The caller's identity and permissions.
            text: The search text. Blank text yields no results.

        Returns:
            At most ``search.quick_search_limit`` items, best first.

        Raises:
            QueryValidationError: If the text is longer than 200 characters.
        """
        text = (text or "").strip()
        if not text:
            return []
        if len(text) > MAX_QUERY_LENGTH:
            raise QueryValidationError([f"q: query cannot exceed {MAX_QUERY_LENGTH} characters"])

        providers = self.eligible_providers(ctx)
        if not providers:
            return []

        top_k = self.settings.search.quick_search_limit
        options = SearchOptions(page=1, limit=top_k, sort_by=SortBy.RELEVANCE)
        gathered = await asyncio.gather(
            *(self._guarded(p, "quick search", p.search(ctx, text, options), []) for p in providers)
        )

        merged = [item for items in gathered for item in list(items)[:top_k]]
        results = sort_results(merged, SortBy.RELEVANCE)[:top_k]
        logger.info("Quick search '%s' for user %s: %d results", text, ctx.user_id, len(results))
        self._audit(ctx, text, merged, mode="quick_search")
        return results

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _guarded(self, provider: SearchProvider, operation: str, call: Awaitable[T], default: T) -> T:
        """Await a provider call under the configured timeout.

        Timeouts and provider exceptions are logged and replaced by ``default``.
        Cancellation of the caller propagates.
        """
        timeout = self.settings.search.provider_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Provider '%s' %s timed out after %.2fs, skipping",
                provider.entity_type,
                operation,
                timeout,
            )
        except Exception as e:
            logger.warning(
                "Provider '%s' %s failed, skipping: %s",
                provider.entity_type,
                operation,
                e,
                exc_info=True,
            )
        return default

    def _audit(self, ctx: PermissionContext, text: str, results: Sequence[SearchResultItem], mode: str) -> None:
        sensitive = set(self.settings.search.sensitive_entity_types)
        hits = Counter(item.entity_type for item in results if item.entity_type in sensitive)
        if not hits:
            return
        audit = get_audit_logger()
        for entity_type, count in sorted(hits.items()):
            audit.info(
                "sensitive_search",
                mode=mode,
                user_id=ctx.user_id,
                role=ctx.role,
                entity_type=entity_type,
                query=text,
                result_count=count,
            )
