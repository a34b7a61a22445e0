"""In-memory record provider — Searches a list of records held in process.

This is the base for the built-in entity providers. It implements the full
provider contract on top of a plain list of mapping records:

  - the scorer's substring predicate is the search filter
  - ``is_visible`` is the row-level gate for the calling user
  - ``format_result`` maps a record to a ``SearchResultItem``

Records are supplied at construction time, either directly or loaded from a
YAML / JSON seed file with :func:`load_records`.

Usage::

    provider = ProductsSearchProvider(records=load_records("seed/products.yaml"))
    items = await provider.search(ctx, "widget", SearchOptions(limit=10))
"""

from __future__ import annotations

import json
import logging
from abc import abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from omnisearch.core.ordering import sort_results
from omnisearch.models.context import PermissionContext
from omnisearch.models.query import SearchOptions
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.base.exceptions import ProviderConfigurationError
from omnisearch.providers.base.provider import SearchProvider
from omnisearch.providers.scoring import RelevanceScorer

logger = logging.getLogger(__name__)

PUBLISHED = "PUBLISHED"


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """Load records from a YAML or JSON file.

    The file must contain a list of mappings, or a mapping with a ``records``
    key holding that list.

    Raises:
        FileNotFoundError: If the file does not exist.
        ProviderConfigurationError: If the content is not a list of mappings.
    """
    import yaml  # type: ignore[import-untyped]

    seed_path = Path(path)
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")

    with open(seed_path, encoding="utf-8") as f:
        if seed_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or []

    if isinstance(data, Mapping):
        data = data.get("records", [])
    if not isinstance(data, list) or not all(isinstance(r, Mapping) for r in data):
        raise ProviderConfigurationError(f"Seed file {seed_path} must contain a list of records")
    return [dict(r) for r in data]


class RecordSearchProvider(SearchProvider):
    """Search provider over an in-memory list of records.

    Subclasses declare their entity type, permission, scorer field layout and
    result formatting; searching, counting, ordering and paging are shared.

    Attributes:
        scorer: Field layout for the tiered-match policy.
        date_field: Record field exposed as ``metadata["date"]`` for ``sort_by=date``.
        url_prefix: Dashboard path prefix for deep links.

    Args:
        records: The records to search. Each must have an ``id``.
        required_permission: Override of the default permission name.
        seed_path: Optional YAML / JSON file to load records from.
        **kwargs: Extra keyword arguments stored for subclasses.
    """

    scorer: RelevanceScorer
    date_field: str = "created_at"
    url_prefix: str = "/dashboard"

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]] | None = None,
        *,
        required_permission: str | None = None,
        seed_path: str | Path | None = None,
        **kwargs: Any,
    ) -> None:
        self._records: list[dict[str, Any]] = [dict(r) for r in records or []]
        self._seed_path = seed_path
        self._permission_override = required_permission
        self._extra_kwargs = kwargs

    @property
    def required_permission(self) -> str:
        return self._permission_override or self.default_permission

    @property
    def default_permission(self) -> str:
        return f"{self.entity_type}:read"

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    async def initialize(self) -> None:
        """Load records from the seed file, if one was configured."""
        if self._seed_path:
            self._records.extend(load_records(self._seed_path))
            logger.info("Loaded %d %s records from %s", len(self._records), self.entity_type, self._seed_path)

    # ── Row-level gate & formatting ──────────────────────────────────────

    def is_visible(self, ctx: PermissionContext, record: Mapping[str, Any]) -> bool:
        """Whether the caller may see ``record``. Everything is visible by default."""
        return True

    @abstractmethod
    def format_result(self, record: Mapping[str, Any], score: float) -> SearchResultItem:
        """Map a record to a search result item."""

    def entity_url(self, record_id: str) -> str:
        return f"{self.url_prefix}/{self.entity_type}/{record_id}"

    # ── Contract ─────────────────────────────────────────────────────────

    def score(self, record: Mapping[str, Any], query: str) -> float:
        return self.scorer.score(record, query)

    async def search(
        self,
        ctx: PermissionContext,
        query: str,
        options: SearchOptions,
    ) -> list[SearchResultItem]:
        # Order formatted items so date and name keys match the coordinator merge
        items = [self.format_result(r, self.score(r, query)) for r in self._candidates(ctx, query)]
        ordered = sort_results(items, options.sort_by)
        return ordered[options.offset : options.offset + options.limit]

    async def count(self, ctx: PermissionContext, query: str) -> int:
        return len(self._candidates(ctx, query))

    # ── Helpers ──────────────────────────────────────────────────────────

    def _candidates(self, ctx: PermissionContext, query: str) -> list[dict[str, Any]]:
        return [r for r in self._records if self.is_visible(ctx, r) and self.scorer.matches(r, query)]

