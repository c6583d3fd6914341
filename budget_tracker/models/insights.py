"""
View Models for Charts, Insights and Suggestions

These are what the analytics engines return. They are computed from
scratch on every call and never stored.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from budget_tracker.models.ledger import Expense


class Granularity(str, Enum):
    """Chart bucket size."""
    DAILY = "daily"
    MONTHLY = "monthly"


class InsightsPeriod(str, Enum):
    """Window used to scope insight totals."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ExpenseBucket(BaseModel):
    """
    One bar of the spending chart.

    NOTE: total sums amounts across currencies without conversion.
    """

    key: str = Field(
        ...,
        description="YYYY-MM-DD for daily buckets, YYYY-MM for monthly"
    )
    total: Decimal = Field(
        default=Decimal("0"),
        description="Sum of amounts in the bucket"
    )
    count: int = Field(
        default=0,
        ge=0,
        description="Number of expenses in the bucket"
    )
    expenses: list[Expense] = Field(
        default_factory=list,
        description="The expenses in the bucket, in input order"
    )


class UserTotal(BaseModel):
    """Amount spent by one member in a period."""

    user: str
    amount: Decimal


class CategoryTotal(BaseModel):
    """Amount spent in one category in a period."""

    category: str
    amount: Decimal
    percentage: float = Field(
        default=0.0,
        ge=0.0,
        description="Share of the period (or currency group) total, 0-100"
    )


class PeriodInsights(BaseModel):
    """Spending breakdown for the current week or month."""

    period: InsightsPeriod
    period_start: datetime = Field(
        ...,
        description="Local midnight the period starts at (inclusive)"
    )
    currency: Optional[str] = Field(
        default=None,
        description="Set when the breakdown covers a single currency group"
    )
    by_user: list[UserTotal] = Field(default_factory=list)
    by_category: list[CategoryTotal] = Field(default_factory=list)
    total: Decimal = Field(default=Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.by_user


class SuggestionSource(str, Enum):
    """Where a suggested category came from."""
    HISTORY = "history"
    KEYWORD = "keyword"
    FALLBACK = "fallback"


class CategorySuggestion(BaseModel):
    """A suggested category, with enough detail to explain it to the user."""

    category: str
    source: SuggestionSource
    score: int = Field(
        default=0,
        ge=0,
        description="Winning co-occurrence count (history suggestions only)"
    )
    matched_words: list[str] = Field(
        default_factory=list,
        description="Description words that matched history or a keyword rule"
    )
