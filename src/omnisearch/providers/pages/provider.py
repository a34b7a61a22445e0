"""CMS pages provider."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from omnisearch.models.context import PermissionContext
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.base.provider import truncate_description
from omnisearch.providers.memory.provider import PUBLISHED, RecordSearchProvider
from omnisearch.providers.scoring import RelevanceScorer


class PagesSearchProvider(RecordSearchProvider):
    """Search provider for custom CMS pages.

    Non-privileged callers only see published pages.
    """

    scorer = RelevanceScorer(
        primary="title",
        secondary=("slug",),
        long_form={"meta_description": 25, "content": 20},
    )
    date_field = "updated_at"

    @property
    def entity_type(self) -> str:
        return "pages"

    def is_visible(self, ctx: PermissionContext, record: Mapping[str, Any]) -> bool:
        return ctx.is_privileged or record.get("status") == PUBLISHED

    def format_result(self, record: Mapping[str, Any], score: float) -> SearchResultItem:
        record_id = str(record["id"])
        return SearchResultItem(
            id=record_id,
            entity_type=self.entity_type,
            title=str(record.get("title") or "Untitled page"),
            description=truncate_description(record.get("meta_description") or record.get("content")),
            url=self.entity_url(record_id),
            metadata={
                "status": record.get("status"),
                "slug": record.get("slug"),
                "date": record.get(self.date_field) or record.get("created_at"),
            },
            relevance_score=score,
        )
