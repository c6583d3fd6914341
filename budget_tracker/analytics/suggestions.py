"""
Category Suggestion Engine

Proposes a category for a new expense from its description.

HOW IT DECIDES:
1. Learn from the household's own history: every past description
   word longer than two letters votes for the category it was filed
   under, once per occurrence.
2. Words in the new description collect those votes. The category with
   the most votes wins; on a tie, the category that started collecting
   votes first wins (insertion order, NOT alphabetical).
3. With no overlap at all, fall back to a fixed keyword table, then to
   "Other".

The engine is a pure function of (description, history). It keeps no
state between calls and never raises.
"""

from typing import Iterable, Optional

from budget_tracker.models.insights import CategorySuggestion, SuggestionSource
from budget_tracker.models.ledger import Expense, ExpenseCategory


MIN_LEARNED_WORD_LENGTH = 3

# Checked in order against the lowercased description, first match wins.
KEYWORD_RULES: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.GROCERIES, ("walmart", "grocery", "food")),
    (ExpenseCategory.RESTAURANTS, ("restaurant", "cafe", "pizza")),
    (ExpenseCategory.TRANSPORTATION, ("uber", "gas", "fuel")),
    (ExpenseCategory.UTILITIES, ("electric", "water", "internet")),
    (ExpenseCategory.ENTERTAINMENT, ("movie", "netflix", "game")),
    (ExpenseCategory.CIGARETTES, ("cigarette", "smoke", "tobacco")),
)

FALLBACK_CATEGORY = ExpenseCategory.OTHER


def build_cooccurrence_table(history: Iterable[Expense]) -> dict[str, dict[str, int]]:
    """Count how often each description word was filed under each category."""
    table: dict[str, dict[str, int]] = {}
    for expense in history:
        for word in expense.description.lower().split():
            if len(word) < MIN_LEARNED_WORD_LENGTH:
                continue
            counts = table.setdefault(word, {})
            counts[expense.category] = counts.get(expense.category, 0) + 1
    return table


def match_keyword_rules(description: str) -> Optional[tuple[ExpenseCategory, str]]:
    """Return (category, keyword) for the first matching rule, if any."""
    text = description.lower()
    for category, keywords in KEYWORD_RULES:
        for keyword in keywords:
            if keyword in text:
                return category, keyword
    return None


class CategorySuggester:
    """
    Suggests categories from a household's expense history.

    Stateless: pass the current history to every call. The cached
    snapshot in the UI is refreshed wholesale, so there is nothing
    worth keeping here between keystrokes.
    """

    def explain(
        self,
        description: Optional[str],
        history: Iterable[Expense],
    ) -> CategorySuggestion:
        """Suggest a category and say where it came from."""
        description = description or ""
        table = build_cooccurrence_table(history)

        # dicts keep insertion order, which is what breaks ties below
        scores: dict[str, int] = {}
        matched: list[str] = []
        for word in description.lower().split():
            counts = table.get(word)
            if not counts:
                continue
            matched.append(word)
            for category, count in counts.items():
                scores[category] = scores.get(category, 0) + count

        if scores:
            best_category = None
            best_score = 0
            for category, score in scores.items():
                # strictly greater: an equal score never displaces an earlier category
                if score > best_score:
                    best_category, best_score = category, score
            return CategorySuggestion(
                category=best_category,
                source=SuggestionSource.HISTORY,
                score=best_score,
                matched_words=matched,
            )

        rule = match_keyword_rules(description)
        if rule is not None:
            category, keyword = rule
            return CategorySuggestion(
                category=category.value,
                source=SuggestionSource.KEYWORD,
                matched_words=[keyword],
            )

        return CategorySuggestion(
            category=FALLBACK_CATEGORY.value,
            source=SuggestionSource.FALLBACK,
        )

    def suggest(
        self,
        description: Optional[str],
        history: Iterable[Expense],
    ) -> str:
        return self.explain(description, history).category


def suggest_category(description: Optional[str], history: Iterable[Expense]) -> str:
    """Most likely category label for `description` given past expenses."""
    return CategorySuggester().suggest(description, history)
