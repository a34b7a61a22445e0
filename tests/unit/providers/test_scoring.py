"""Tests for the tiered-match relevance policy."""

from __future__ import annotations

import pytest

from omnisearch.providers.scoring import (
    RelevanceScorer,
    score_long_form,
    score_primary,
    score_secondary,
)


class TestTierFunctions:
    def test_primary_tiers(self) -> None:
        assert score_primary("Widget", "widget") == 100
        assert score_primary("Widget Pro", "widget") == 75
        assert score_primary("Super Widget", "widget") == 50
        assert score_primary("Gadget", "widget") == 0

    def test_primary_handles_missing_value(self) -> None:
        assert score_primary(None, "widget") == 0
        assert score_primary("Widget", "") == 0

    def test_secondary_tiers(self) -> None:
        assert score_secondary("SKU-1", "sku-1") == 90
        assert score_secondary("SKU-100", "sku-1") == 40
        assert score_secondary("ABC", "sku") == 0

    def test_long_form(self) -> None:
        assert score_long_form("a long description", "LONG") == 20
        assert score_long_form("a long description", "long", 25) == 25
        assert score_long_form("a long description", "short") == 0


class TestRelevanceScorer:
    @pytest.fixture
    def scorer(self) -> RelevanceScorer:
        return RelevanceScorer(primary="title", secondary=("sku",), long_form={"description": 20})

    def test_fields(self, scorer: RelevanceScorer) -> None:
        assert scorer.fields == ("title", "sku", "description")

    def test_scores_add_across_fields(self, scorer: RelevanceScorer) -> None:
        record = {"title": "Widget Pro", "sku": "W-1", "description": "the best widget"}
        assert scorer.score(record, "widget") == 75 + 20

    def test_best_tier_only_within_field(self, scorer: RelevanceScorer) -> None:
        assert scorer.score({"title": "widget"}, "widget") == 100

    def test_never_negative(self, scorer: RelevanceScorer) -> None:
        assert scorer.score({}, "widget") == 0.0

    def test_matches_any_field(self, scorer: RelevanceScorer) -> None:
        assert scorer.matches({"title": "Gadget", "description": "no WIDGET here"}, "widget")
        assert not scorer.matches({"title": "Gadget"}, "widget")
        assert not scorer.matches({"title": "Gadget"}, "  ")

    def test_match_ranks_above_weaker_match(self, scorer: RelevanceScorer) -> None:
        exact = {"title": "Test Product"}
        partial = {"title": "Another Test Product"}
        assert scorer.score(exact, "test product") > scorer.score(partial, "test product")

    @pytest.mark.parametrize("points", [19, 26])
    def test_long_form_weight_out_of_range(self, points: int) -> None:
        with pytest.raises(ValueError, match="between 20 and 25"):
            RelevanceScorer(primary="title", long_form={"body": points})
