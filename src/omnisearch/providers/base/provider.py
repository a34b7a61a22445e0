"""Base search provider — Abstract interface for every entity-type adapter.

Every searchable entity type (products, posts, pages, users, ...) plugs into
OmniSearch by implementing this interface. A provider is responsible for:
  1. Identifying its entity type and the permission needed to query it
  2. Searching its own records, paginated within that type
  3. Counting matches under exactly the same filter as ``search``
  4. Scoring its candidates with the shared tiered-match policy
  5. Enforcing row-level visibility for the calling user
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from omnisearch.models.context import PermissionContext
from omnisearch.models.query import SearchOptions
from omnisearch.models.result import SearchResultItem

DESCRIPTION_MAX_LENGTH = 150


class SearchProviderDescriptor(BaseModel):
    """Registration identity of a provider."""

    entity_type: str = Field(description="Unique entity type key")
    required_permission: str = Field(description="Capability the caller must hold to query this type")


class ProviderHealth(BaseModel):
    """Health status of a search provider."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class SearchProvider(ABC):
    """Abstract base class for entity search providers.

    All providers must implement:
      - entity_type / required_permission: registration identity
      - search(): matching records for the caller, one page of one type
      - count(): total matches for the caller under the same filter
      - score(): tiered-match relevance of a single candidate

    Providers must be safe to call concurrently; the coordinator fans out to
    many providers at once and may call ``search`` and ``count`` in parallel.
    """

    @property
    @abstractmethod
    def entity_type(self) -> str:
        """Unique entity type (e.g., 'products', 'posts')."""

    @property
    @abstractmethod
    def required_permission(self) -> str:
        """Permission the caller needs before this provider is consulted (e.g., 'products:read')."""

    @abstractmethod
    async def search(
        self,
        ctx: PermissionContext,
        query: str,
        options: SearchOptions,
    ) -> list[SearchResultItem]:
        """Search records of this entity type visible to the caller.

        Args:
            ctx: The caller's identity and permissions.
            query: The search text.
            options: Page, page size and ordering within this type.

        Returns:
            At most ``options.limit`` result items.
        """

    @abstractmethod
    async def count(self, ctx: PermissionContext, query: str) -> int:
        """Count records matching ``query`` that the caller may see.

        Must apply the same filter as ``search`` (including row-level
        visibility) so that pagination totals stay consistent.
        """

    @abstractmethod
    def score(self, record: Mapping[str, Any], query: str) -> float:
        """Relevance of ``record`` for ``query`` under the tiered-match policy."""

    def descriptor(self) -> SearchProviderDescriptor:
        return SearchProviderDescriptor(
            entity_type=self.entity_type,
            required_permission=self.required_permission,
        )

    async def initialize(self) -> None:
        """Prepare connections or load data. Called once during startup."""

    async def shutdown(self) -> None:
        """Release resources. Called during application shutdown."""

    async def health_check(self) -> ProviderHealth:
        """Report provider health. In-process providers are always healthy."""
        return ProviderHealth(status="healthy")


def truncate_description(text: str | None, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Shorten long-form text for display, appending ``...`` when cut."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
