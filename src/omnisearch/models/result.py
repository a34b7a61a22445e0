"""Result models — The uniform item every provider returns and the paginated envelope.

Results are serialised with camelCase keys (``entityType``, ``relevanceScore``,
``totalPages``) because that is what the dashboard front end consumes. Python
code uses the snake_case attribute names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SearchResultItem(BaseModel):
    """A single search hit from one provider.

    Uniqueness is the pair ``(entity_type, id)``; ids are only unique within
    their own entity type, so results from different types are never merged.

    Example::

        SearchResultItem(
            id="product-1",
            entity_type="products",
            title="Test Product",
            description="Test description - $99.99",
            url="/dashboard/products/product-1",
            metadata={"status": "PUBLISHED", "price": 99.99, "sku": "TEST-001"},
            relevance_score=75,
        )
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Record identifier, unique within its entity type")
    entity_type: str = Field(description="Entity type of the provider that produced this item")
    title: str = Field(description="Display title")
    description: str = Field(default="", description="Pre-truncated display description")
    url: str = Field(description="Deep link to the record in the dashboard")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider-specific fields")
    relevance_score: float = Field(default=0.0, ge=0, description="Tiered-match relevance score")

    @property
    def key(self) -> tuple[str, str]:
        return self.entity_type, self.id


class PaginatedSearchResult(BaseModel):
    """Response envelope for a full search."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    results: list[SearchResultItem] = Field(default_factory=list, description="Items on this page")
    total: int = Field(default=0, ge=0, description="Total matches across the searched types")
    page: int = Field(ge=1, description="Current page")
    limit: int = Field(ge=1, description="Page size")
    total_pages: int = Field(default=0, ge=0, description="ceil(total / limit), 0 when total is 0")

    @classmethod
    def empty(cls, page: int, limit: int) -> PaginatedSearchResult:
        return cls(results=[], total=0, page=page, limit=limit, total_pages=0)
