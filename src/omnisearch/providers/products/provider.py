"""Products provider — Catalog products searchable by title, SKU and description.

Row-level rule: non-privileged callers only see ``PUBLISHED`` products;
administrators also see drafts and archived products.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from omnisearch.models.context import PermissionContext
from omnisearch.models.result import SearchResultItem
from omnisearch.providers.base.provider import truncate_description
from omnisearch.providers.memory.provider import PUBLISHED, RecordSearchProvider
from omnisearch.providers.scoring import RelevanceScorer

logger = logging.getLogger(__name__)


class ProductsSearchProvider(RecordSearchProvider):
    """Search provider for catalog products.

    Expected record fields: ``id``, ``title``, ``description``, ``sku``,
    ``price``, ``status``, ``created_at``.
    """

    scorer = RelevanceScorer(primary="title", secondary=("sku",), long_form={"description": 20})

    @property
    def entity_type(self) -> str:
        return "products"

    def is_visible(self, ctx: PermissionContext, record: Mapping[str, Any]) -> bool:
        return ctx.is_privileged or record.get("status") == PUBLISHED

    def format_result(self, record: Mapping[str, Any], score: float) -> SearchResultItem:
        record_id = str(record["id"])
        price = record.get("price")
        parts = [str(record["description"])] if record.get("description") else []
        if price is not None:
            try:
                parts.append(f"${float(price):.2f}")
            except (TypeError, ValueError):
                logger.warning("Product %s has a non-numeric price %r, omitting it", record_id, price)

        return SearchResultItem(
            id=record_id,
            entity_type=self.entity_type,
            title=str(record.get("title") or "Untitled product"),
            description=truncate_description(" - ".join(parts)),
            url=self.entity_url(record_id),
            metadata={
                "status": record.get("status"),
                "price": price,
                "sku": record.get("sku"),
                "date": record.get(self.date_field),
            },
            relevance_score=score,
        )
