"""Relevance scoring — The tiered-match policy shared by every provider.

Each provider scores its own records, but all of them must use the same tiers
so that scores are comparable once results from different entity types are
merged:

  ============================================  =======
  Match                                         Points
  ============================================  =======
  Primary field equals the query                100
  Primary field starts with the query           75
  Primary field contains the query              50
  Secondary identifier equals the query         90
  Secondary identifier contains the query       40
  Long-form field contains the query            20-25
  ============================================  =======

Matching is case-insensitive. Within one field only the best tier counts;
across fields points add up, so a record that matches on a title prefix *and*
in its description outranks one that only matches the title prefix.

Usage::

    scorer = RelevanceScorer(
        primary="title",
        secondary=("sku",),
        long_form={"description": 20},
    )
    scorer.matches(record, "widget")  # the provider's search predicate
    scorer.score(record, "widget")    # 75 + 20 for "Widget Pro" / "a widget"
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

PRIMARY_EXACT = 100
PRIMARY_PREFIX = 75
PRIMARY_CONTAINS = 50
SECONDARY_EXACT = 90
SECONDARY_CONTAINS = 40
LONG_FORM_MIN = 20
LONG_FORM_MAX = 25


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


def score_primary(value: Any, query: str) -> int:
    """Points for the primary display field (title / name)."""
    text, needle = _normalize(value), _normalize(query)
    if not text or not needle:
        return 0
    if text == needle:
        return PRIMARY_EXACT
    if text.startswith(needle):
        return PRIMARY_PREFIX
    if needle in text:
        return PRIMARY_CONTAINS
    return 0


def score_secondary(value: Any, query: str) -> int:
    """Points for a secondary identifying field (SKU, slug, email)."""
    text, needle = _normalize(value), _normalize(query)
    if not text or not needle:
        return 0
    if text == needle:
        return SECONDARY_EXACT
    if needle in text:
        return SECONDARY_CONTAINS
    return 0


def score_long_form(value: Any, query: str, points: int = LONG_FORM_MIN) -> int:
    """Points for a substring match in a long-form field (description, body)."""
    text, needle = _normalize(value), _normalize(query)
    if text and needle and needle in text:
        return points
    return 0


class RelevanceScorer:
    """Field layout of one entity type bound to the tiered-match policy.

    Args:
        primary: The primary display field (title or name).
        secondary: Identifying fields scored with the secondary tiers.
        long_form: Long-form fields mapped to their substring points, each in
            the 20-25 range. A more specific field (an excerpt) may be given
            more points than a less specific one (the full body).

    Raises:
        ValueError: If a long-form weight falls outside the policy range.
    """

    def __init__(
        self,
        primary: str,
        secondary: Sequence[str] = (),
        long_form: Mapping[str, int] | None = None,
    ) -> None:
        long_form = dict(long_form or {})
        for field, points in long_form.items():
            if not LONG_FORM_MIN <= points <= LONG_FORM_MAX:
                raise ValueError(
                    f"Long-form field '{field}' scores {points}; "
                    f"must be between {LONG_FORM_MIN} and {LONG_FORM_MAX}"
                )
        self.primary = primary
        self.secondary = tuple(secondary)
        self.long_form = long_form

    @property
    def fields(self) -> tuple[str, ...]:
        """Every field the scorer looks at, primary first."""
        return (self.primary, *self.secondary, *self.long_form)

    def matches(self, record: Mapping[str, Any], query: str) -> bool:
        """Case-insensitive substring match on any scored field."""
        needle = _normalize(query)
        if not needle:
            return False
        return any(needle in _normalize(record.get(field)) for field in self.fields)

    def score(self, record: Mapping[str, Any], query: str) -> float:
        """Additive tiered score of ``record``; never negative."""
        total = score_primary(record.get(self.primary), query)
        for field in self.secondary:
            total += score_secondary(record.get(field), query)
        for field, points in self.long_form.items():
            total += score_long_form(record.get(field), query, points)
        return float(max(total, 0))
