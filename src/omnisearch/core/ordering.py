"""Ordering helpers for merged result lists."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any

from omnisearch.models.query import SortBy
from omnisearch.models.result import SearchResultItem

DATE_METADATA_KEY = "date"


def coerce_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of a provider-supplied date to an aware datetime.

    Accepts ``datetime``, ``date``, ISO-8601 strings (including a trailing
    ``Z``) and UNIX timestamps. Naive values are taken as UTC.
    """
    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        with contextlib.suppress(OverflowError, OSError, ValueError):
            parsed = datetime.fromtimestamp(value, tz=UTC)
    elif isinstance(value, str) and value:
        with contextlib.suppress(ValueError):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def sort_results(items: Iterable[SearchResultItem], sort_by: SortBy) -> list[SearchResultItem]:
    """Order merged results by the requested key.

    All orderings are stable, so items that tie keep the relative order in
    which their providers returned them.

    - ``relevance``: descending ``relevance_score``
    - ``date``: descending ``metadata["date"]``; undated items go last
    - ``name``: ascending ``title``, case-insensitive
    """
    items = list(items)
    if sort_by == SortBy.DATE:
        dated = [(coerce_datetime(item.metadata.get(DATE_METADATA_KEY)), item) for item in items]
        with_date = [pair for pair in dated if pair[0] is not None]
        without_date = [item for when, item in dated if when is None]
        with_date.sort(key=lambda pair: pair[0], reverse=True)  # type: ignore[arg-type,return-value]
        return [item for _, item in with_date] + without_date
    if sort_by == SortBy.NAME:
        return sorted(items, key=lambda item: item.title.casefold())
    return sorted(items, key=lambda item: item.relevance_score, reverse=True)
