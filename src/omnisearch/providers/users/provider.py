"""Users provider — Dashboard accounts searchable by name and email.

Regular users can only find themselves; administrators can find everyone.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from omnisearch.models.context import PermissionContext
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.memory.provider import RecordSearchProvider
from omnisearch.providers.scoring import RelevanceScorer


class UsersSearchProvider(RecordSearchProvider):
    """Search provider for user accounts."""

    scorer = RelevanceScorer(primary="name", secondary=("email",))

    @property
    def entity_type(self) -> str:
        return "users"

    def is_visible(self, ctx: PermissionContext, record: Mapping[str, Any]) -> bool:
        return ctx.is_privileged or str(record.get("id")) == ctx.user_id

    def format_result(self, record: Mapping[str, Any], score: float) -> SearchResultItem:
        record_id = str(record["id"])
        email = str(record.get("email") or "")
        role = str(record.get("role") or "USER")
        return SearchResultItem(
            id=record_id,
            entity_type=self.entity_type,
            title=str(record.get("name") or email),
            description=f"{email} - {role}" if email else role,
            url=self.entity_url(record_id),
            metadata={
                "email": email,
                "role": role,
                "status": "Active" if record.get("is_active", True) else "Inactive",
                "date": record.get(self.date_field),
            },
            relevance_score=score,
        )
