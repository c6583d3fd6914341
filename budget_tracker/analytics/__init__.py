"""Analytics package: category suggestions and spending aggregation."""

from budget_tracker.analytics.aggregation import (
    MAX_BUCKETS,
    bucket_expenses,
    bucket_key,
    compute_insights,
    compute_insights_by_currency,
    filter_period,
    period_start,
)
from budget_tracker.analytics.suggestions import (
    KEYWORD_RULES,
    CategorySuggester,
    build_cooccurrence_table,
    match_keyword_rules,
    suggest_category,
)

__all__ = [
    # Aggregation
    "MAX_BUCKETS",
    "bucket_expenses",
    "bucket_key",
    "compute_insights",
    "compute_insights_by_currency",
    "filter_period",
    "period_start",
    # Suggestions
    "KEYWORD_RULES",
    "CategorySuggester",
    "build_cooccurrence_table",
    "match_keyword_rules",
    "suggest_category",
]
