"""Search endpoints — Paginated federated search, quick search and type discovery.

Every endpoint reads the caller from the gateway identity headers. Both search
endpoints pass the per-user rate limiter before any validation or provider
work happens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from omnisearch.api.deps import get_coordinator, get_permission_context, get_rate_limiter
from omnisearch.core.coordinator import SearchCoordinator
from omnisearch.core.validation import parse_search_query
from omnisearch.models.context import PermissionContext
from omnisearch.models.result import PaginatedSearchResult, SearchResultItem
from omnisearch.providers.base.provider import SearchProviderDescriptor
from omnisearch.ratelimit.limiter import EndpointClass, SearchRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, str]] = {
    400: {"description": "Invalid query parameters"},
    401: {"description": "No authenticated user was forwarded"},
    429: {"description": "Per-user search rate limit exceeded; see the Retry-After header"},
}


@router.get(
    "/search",
    response_model=PaginatedSearchResult,
    response_model_by_alias=True,
    summary="Federated Search",
    description=(
        "Search every entity type the caller may read, or only the types named in `type` "
        "(`all`, one type, or a comma-separated list). Results are merged across types, "
        "ordered by `sortBy` and paginated."
    ),
    responses=_ERROR_RESPONSES,
)
async def search(
    q: str = Query(default="", description="Search text, 1-200 characters"),
    entity_type: str = Query(
        default="all",
        alias="type",
        description="Entity types: all, one type, or a comma-separated list",
    ),
    page: int = Query(default=1, description="1-based page"),
    limit: int | None = Query(default=None, description="Results per page, 1-100"),
    sort_by: str = Query(default="relevance", alias="sortBy", description="relevance, date or name"),
    ctx: PermissionContext = Depends(get_permission_context),
    coordinator: SearchCoordinator = Depends(get_coordinator),
    limiter: SearchRateLimiter = Depends(get_rate_limiter),
) -> PaginatedSearchResult:
    """Run a paginated search across entity types."""
    await limiter.check(ctx.user_id, EndpointClass.FULL_SEARCH)

    query = parse_search_query(
        q,
        entity_types=entity_type,
        page=page,
        limit=limit if limit is not None else coordinator.settings.search.default_limit,
        sort_by=sort_by,
        known_types=coordinator.provider_registry.all_types(),
    )
    return await coordinator.search(ctx, query)


@router.get(
    "/search/quick",
    response_model=list[SearchResultItem],
    response_model_by_alias=True,
    summary="Quick Search",
    description="Top matches across every entity type the caller may read, for instant search boxes.",
    responses=_ERROR_RESPONSES,
)
async def quick_search(
    q: str = Query(default="", description="Search text; blank returns no results"),
    ctx: PermissionContext = Depends(get_permission_context),
    coordinator: SearchCoordinator = Depends(get_coordinator),
    limiter: SearchRateLimiter = Depends(get_rate_limiter),
) -> list[SearchResultItem]:
    """Return the best few results across all permitted entity types."""
    await limiter.check(ctx.user_id, EndpointClass.QUICK_SEARCH)
    return await coordinator.quick_search(ctx, q)


@router.get(
    "/search/types",
    response_model=list[SearchProviderDescriptor],
    summary="Searchable Entity Types",
    description="Entity types registered on this server that the caller has permission to search.",
)
async def entity_types(
    ctx: PermissionContext = Depends(get_permission_context),
    coordinator: SearchCoordinator = Depends(get_coordinator),
) -> list[SearchProviderDescriptor]:
    """List the entity types visible to the caller."""
    return [provider.descriptor() for provider in coordinator.eligible_providers(ctx)]
