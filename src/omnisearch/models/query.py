"""Query models — What a caller asks for and what each provider is asked for."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

MAX_QUERY_LENGTH = 200
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20

ALL_TYPES = "all"
"""Sentinel for ``SearchQuery.entity_types`` meaning every registered type."""

QueryText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_QUERY_LENGTH),
]


class SortBy(StrEnum):
    """Sort keys accepted by the search endpoint."""

    RELEVANCE = "relevance"
    DATE = "date"
    NAME = "name"


class SearchOptions(BaseModel):
    """Pagination and ordering passed to a single provider call.

    Unlike ``SearchQuery.limit`` this is not capped at 100: in multi-type mode
    the coordinator asks each provider for ``page * limit`` candidates.
    """

    page: int = Field(default=1, ge=1, description="1-based page within this provider's results")
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Maximum items to return")
    sort_by: SortBy = Field(default=SortBy.RELEVANCE, description="Ordering of the returned page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchQuery(BaseModel):
    """A validated full-search request.

    ``entity_types`` is either the ``"all"`` sentinel or a non-empty set of
    registered entity types. Whether those types are registered is checked
    against the live registry by ``omnisearch.core.validation``.
    """

    model_config = ConfigDict(frozen=True)

    text: QueryText = Field(description="Search text, 1-200 characters")
    entity_types: Literal["all"] | frozenset[str] = Field(
        default=ALL_TYPES,
        description="Entity types to search, or 'all'",
    )
    page: int = Field(default=1, ge=1, description="1-based result page")
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Results per page")
    sort_by: SortBy = Field(default=SortBy.RELEVANCE, description="relevance | date | name")

    @field_validator("entity_types", mode="before")
    @classmethod
    def _normalize_types(cls, v: object) -> object:
        if isinstance(v, str):
            return ALL_TYPES if v == ALL_TYPES else frozenset({v})
        if isinstance(v, (list, tuple, set, frozenset)):
            types = frozenset(str(t) for t in v)
            if not types:
                raise ValueError("entity_types must not be empty")
            return ALL_TYPES if ALL_TYPES in types else types
        return v

    @property
    def is_all_types(self) -> bool:
        return self.entity_types == ALL_TYPES

    @property
    def single_type(self) -> str | None:
        """The requested type when exactly one was named, else ``None``."""
        if self.is_all_types or len(self.entity_types) != 1:
            return None
        return next(iter(self.entity_types))
