"""Query validation — Fail fast, before any provider is touched.

``parse_search_query`` turns raw request parameters into a ``SearchQuery``;
``validate_query`` re-checks the bounds of an already-built query against
the live set of registered entity types. Both raise ``QueryValidationError``.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from pydantic import ValidationError

from omnisearch.core.exceptions import QueryValidationError
from omnisearch.models.query import ALL_TYPES, MAX_PAGE_SIZE, MAX_QUERY_LENGTH, SearchQuery, SortBy

_FIELD_LABELS = {"text": "q", "entity_types": "type", "sort_by": "sortBy"}


def split_entity_types(raw: str | None) -> str | frozenset[str]:
    """Parse the ``type`` parameter: ``all``, one type, or a comma-separated list."""
    if raw is None or not raw.strip():
        return ALL_TYPES
    types = frozenset(t.strip() for t in raw.split(",") if t.strip())
    if not types or ALL_TYPES in types:
        return ALL_TYPES
    return types


def parse_search_query(
    text: str | None,
    entity_types: str | None = ALL_TYPES,
    page: int = 1,
    limit: int = 20,
    sort_by: str | None = None,
    known_types: Collection[str] | None = None,
) -> SearchQuery:
    """Build a validated ``SearchQuery`` from raw request parameters.

    Args:
        text: The ``q`` parameter.
        entity_types: The ``type`` parameter (``all``, a type, or a comma list).
        page: 1-based page.
        limit: Page size, 1-100.
        sort_by: ``relevance``, ``date`` or ``name``; defaults to relevance.
        known_types: Registered entity types. When given, unknown types are rejected.

    Raises:
        QueryValidationError: With one message per invalid parameter.
    """
    data: dict[str, Any] = {
        "text": text or "",
        "entity_types": split_entity_types(entity_types),
        "page": page,
        "limit": limit,
        "sort_by": sort_by or SortBy.RELEVANCE,
    }
    try:
        query = SearchQuery(**data)
    except ValidationError as e:
        raise QueryValidationError(_messages(e)) from e

    if known_types is not None:
        validate_query(query, known_types)
    return query


def validate_query(query: SearchQuery, known_types: Collection[str]) -> None:
    """Re-check query bounds against the registered entity types.

    Raises:
        QueryValidationError: If any bound is violated.
    """
    errors: list[str] = []
    text = query.text.strip() if isinstance(query.text, str) else ""
    if not text:
        errors.append("q: query cannot be empty")
    elif len(text) > MAX_QUERY_LENGTH:
        errors.append(f"q: query cannot exceed {MAX_QUERY_LENGTH} characters")
    if query.page < 1:
        errors.append("page: must be at least 1")
    if not 1 <= query.limit <= MAX_PAGE_SIZE:
        errors.append(f"limit: must be between 1 and {MAX_PAGE_SIZE}")
    if query.sort_by not in set(SortBy):
        errors.append(f"sortBy: must be one of {', '.join(s.value for s in SortBy)}")
    if not query.is_all_types:
        unknown = sorted(set(query.entity_types) - set(known_types))
        if unknown:
            allowed = ", ".join(sorted(known_types)) or "none registered"
            errors.append(f"type: unknown entity type(s) {', '.join(unknown)}; expected all or one of: {allowed}")
    if errors:
        raise QueryValidationError(errors)


def _messages(error: ValidationError) -> list[str]:
    messages: list[str] = []
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "query"
        messages.append(f"{_FIELD_LABELS.get(field, field)}: {item['msg']}")
    return messages
