"""Blog posts provider.

Drafts are visible to their author and to administrators; everyone else only
sees published posts. The excerpt scores slightly higher than the body because
a match there is more specific.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from omnisearch.models.context import PermissionContext
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.base.provider import truncate_description
from omnisearch.providers.memory.provider import PUBLISHED, RecordSearchProvider
from omnisearch.providers.scoring import RelevanceScorer


class PostsSearchProvider(RecordSearchProvider):
    """Search provider for blog posts.

    Expected record fields: ``id``, ``title``, ``slug``, ``excerpt``,
    ``content``, ``status``, ``author_id``, ``author``, ``published_at``.
    """

    scorer = RelevanceScorer(
        primary="title",
        secondary=("slug",),
        long_form={"excerpt": 25, "content": 20},
    )
    date_field = "published_at"

    @property
    def entity_type(self) -> str:
        return "posts"

    @property
    def default_permission(self) -> str:
        return "blog:read"

    def is_visible(self, ctx: PermissionContext, record: Mapping[str, Any]) -> bool:
        if ctx.is_privileged or record.get("status") == PUBLISHED:
            return True
        return str(record.get("author_id", "")) == ctx.user_id

    def entity_url(self, record_id: str) -> str:
        return f"{self.url_prefix}/blog/{record_id}"

    def format_result(self, record: Mapping[str, Any], score: float) -> SearchResultItem:
        record_id = str(record["id"])
        return SearchResultItem(
            id=record_id,
            entity_type=self.entity_type,
            title=str(record.get("title") or "Untitled post"),
            description=truncate_description(record.get("excerpt") or record.get("content")),
            url=self.entity_url(record_id),
            metadata={
                "status": record.get("status"),
                "slug": record.get("slug"),
                "author": record.get("author"),
                "date": record.get(self.date_field) or record.get("created_at"),
            },
            relevance_score=score,
        )
