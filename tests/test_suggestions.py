"""
Tests for the category suggestion engine.

The engine is pure: every test builds its own history.
"""

import pytest

from budget_tracker.analytics import (
    CategorySuggester,
    build_cooccurrence_table,
    match_keyword_rules,
    suggest_category,
)
from budget_tracker.models import ExpenseCategory, SuggestionSource

from tests.conftest import make_expense


class TestCooccurrenceTable:
    """Tests for learning words from history."""

    def test_counts_words_per_category(self):
        history = [
            make_expense(description="Coffee beans", category="Groceries"),
            make_expense(description="coffee shop", category="Restaurants"),
            make_expense(description="COFFEE", category="Restaurants"),
        ]
        table = build_cooccurrence_table(history)
        assert table["coffee"] == {"Groceries": 1, "Restaurants": 2}
        assert table["beans"] == {"Groceries": 1}

    def test_ignores_short_words(self):
        """Words of two letters or fewer are not learned."""
        table = build_cooccurrence_table(
            [make_expense(description="gas at the BP station", category="Transportation")]
        )
        assert "at" not in table
        assert "bp" not in table
        assert "gas" in table
        assert "the" in table

    def test_empty_history(self):
        assert build_cooccurrence_table([]) == {}


class TestHistorySuggestions:
    """Tests for suggestions learned from past expenses."""

    def test_highest_score_wins(self):
        history = [
            make_expense(description="corner shop", category="Groceries"),
            make_expense(description="corner shop", category="Groceries"),
            make_expense(description="corner bar", category="Restaurants"),
        ]
        assert suggest_category("corner", history) == "Groceries"

    def test_scores_add_up_across_words(self):
        history = [
            make_expense(description="lunch", category="Restaurants"),
            make_expense(description="tesco", category="Groceries"),
            make_expense(description="tesco", category="Groceries"),
            make_expense(description="tesco meal deal lunch", category="Restaurants"),
        ]
        # lunch: Restaurants 2; tesco: Groceries 2, Restaurants 1
        assert suggest_category("tesco lunch", history) == "Restaurants"

    def test_tie_goes_to_first_encountered_category(self):
        """Ties resolve by accumulation order, not alphabetically."""
        history = [
            make_expense(description="market", category="Shopping"),
            make_expense(description="market", category="Groceries"),
        ]
        # Both categories score 1; Shopping was seen first
        assert suggest_category("market", history) == "Shopping"

    def test_tie_order_follows_description_words(self):
        history = [
            make_expense(description="bakery", category="Restaurants"),
            make_expense(description="flowers", category="Shopping"),
        ]
        assert suggest_category("flowers bakery", history) == "Shopping"
        assert suggest_category("bakery flowers", history) == "Restaurants"

    def test_history_beats_keyword_rules(self):
        history = [make_expense(description="pizza night", category="Entertainment")]
        assert suggest_category("pizza", history) == "Entertainment"

    def test_returns_freeform_categories(self):
        history = [make_expense(description="vet visit", category="Pets")]
        assert suggest_category("vet", history) == "Pets"

    def test_case_insensitive(self):
        history = [make_expense(description="Netto", category="Groceries")]
        assert suggest_category("NETTO run", history) == "Groceries"

    def test_explain_reports_history_source(self):
        history = [
            make_expense(description="corner shop", category="Groceries"),
            make_expense(description="corner shop", category="Groceries"),
        ]
        suggestion = CategorySuggester().explain("corner shop", history)
        assert suggestion.category == "Groceries"
        assert suggestion.source == SuggestionSource.HISTORY
        assert suggestion.score == 4
        assert suggestion.matched_words == ["corner", "shop"]


class TestKeywordRules:
    """Tests for the fixed keyword fallback."""

    @pytest.mark.parametrize("description,expected", [
        ("Walmart run", "Groceries"),
        ("fast food", "Groceries"),
        ("Cafe Nero", "Restaurants"),
        ("uber home", "Transportation"),
        ("electric bill", "Utilities"),
        ("Netflix subscription", "Entertainment"),
        ("tobacco", "Cigarettes"),
    ])
    def test_keyword_categories(self, description, expected):
        assert suggest_category(description, []) == expected

    def test_rule_priority(self):
        """Restaurants is checked before Transportation."""
        assert suggest_category("pizza and gas", []) == "Restaurants"

    def test_keywords_match_substrings(self):
        assert suggest_category("gasoline", []) == "Transportation"

    def test_match_keyword_rules_returns_keyword(self):
        assert match_keyword_rules("Movie tickets") == (ExpenseCategory.ENTERTAINMENT, "movie")
        assert match_keyword_rules("birthday present") is None

    def test_explain_reports_keyword_source(self):
        suggestion = CategorySuggester().explain("water bill", [])
        assert suggestion.category == "Utilities"
        assert suggestion.source == SuggestionSource.KEYWORD
        assert suggestion.matched_words == ["water"]


class TestFallback:
    """Tests for descriptions nothing matches."""

    def test_unknown_description_is_other(self):
        assert suggest_category("birthday present", []) == "Other"

    @pytest.mark.parametrize("description", [None, "", "   "])
    def test_empty_description_is_other(self, description):
        history = [make_expense(description="weekly shop", category="Groceries")]
        assert suggest_category(description, history) == "Other"

    def test_explain_reports_fallback_source(self):
        suggestion = CategorySuggester().explain("zzz", [])
        assert suggestion.source == SuggestionSource.FALLBACK
        assert suggestion.score == 0

    def test_history_is_not_mutated(self):
        history = [make_expense(description="corner shop", category="Groceries")]
        before = [e.model_dump() for e in history]
        suggest_category("corner", history)
        assert [e.model_dump() for e in history] == before


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
