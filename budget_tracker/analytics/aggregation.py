"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and recomputed from
scratch on every call. The store delivers the whole expense list on
every change; this module turns that list into:

- chart series: expenses grouped into daily or monthly buckets
- period insights: this week's / month's totals by member and category
- the same insights split per currency, so amounts in different
  currencies are never added together

KNOWN SIMPLIFICATION: chart buckets add amounts regardless of
currency. Insights don't - use compute_insights_by_currency when a
household spends in more than one currency.

Ordering rules:
- buckets ascend by key and only the most recent `limit` are kept
- breakdowns descend by amount; equal amounts keep the order in which
  the member / category first appeared in the input
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from budget_tracker.models.insights import (
    CategoryTotal,
    ExpenseBucket,
    Granularity,
    InsightsPeriod,
    PeriodInsights,
    UserTotal,
)
from budget_tracker.models.ledger import DEFAULT_CURRENCY, Expense


MAX_BUCKETS = 30


def bucket_key(expense: Expense, granularity: Granularity) -> str:
    """Chart key for an expense: YYYY-MM-DD (daily) or YYYY-MM (monthly)."""
    if granularity == Granularity.DAILY:
        return expense.expense_date.isoformat()
    return expense.expense_date.strftime("%Y-%m")


def bucket_expenses(
    expenses: Iterable[Expense],
    granularity: Granularity,
    limit: int = MAX_BUCKETS,
) -> list[ExpenseBucket]:
    """
    Group expenses into chart buckets.

    Returns at most `limit` buckets, the most recent ones, in ascending
    key order. Empty input gives an empty list.
    """
    groups: dict[str, ExpenseBucket] = {}

    for expense in expenses:
        key = bucket_key(expense, granularity)
        if key not in groups:
            groups[key] = ExpenseBucket(key=key)
        bucket = groups[key]
        bucket.total += expense.amount
        bucket.count += 1
        bucket.expenses.append(expense)

    # Keys are zero-padded, so string order is chronological order
    buckets = sorted(groups.values(), key=lambda b: b.key)
    return buckets[max(len(buckets) - limit, 0):]


def period_start(period: InsightsPeriod, now: datetime) -> datetime:
    """
    Local midnight at which the current period begins.

    Weeks start on Monday. A Sunday is the last day of its week, so its
    period starts six days earlier rather than on the next day.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == InsightsPeriod.WEEKLY:
        return midnight - timedelta(days=now.weekday())
    return midnight.replace(day=1)


def filter_period(
    expenses: Iterable[Expense],
    start: datetime,
) -> list[Expense]:
    """Expenses dated on or after `start`."""
    start_date = start.date()
    return [e for e in expenses if e.expense_date >= start_date]


def _percentage(amount: Decimal, total: Decimal) -> float:
    if not total:
        return 0.0
    return float(amount / total * 100)


def _summarize(
    expenses: Sequence[Expense],
    period: InsightsPeriod,
    start: datetime,
    currency: Optional[str] = None,
) -> PeriodInsights:
    by_user: dict[str, Decimal] = {}
    by_category: dict[str, Decimal] = {}
    total = Decimal("0")

    for expense in expenses:
        by_user[expense.user] = by_user.get(expense.user, Decimal("0")) + expense.amount
        by_category[expense.category] = (
            by_category.get(expense.category, Decimal("0")) + expense.amount
        )
        total += expense.amount

    # sorted() is stable, so ties keep first-encountered order
    users = sorted(by_user.items(), key=lambda item: item[1], reverse=True)
    categories = sorted(by_category.items(), key=lambda item: item[1], reverse=True)

    return PeriodInsights(
        period=period,
        period_start=start,
        currency=currency,
        by_user=[UserTotal(user=user, amount=amount) for user, amount in users],
        by_category=[
            CategoryTotal(
                category=category,
                amount=amount,
                percentage=_percentage(amount, total),
            )
            for category, amount in categories
        ],
        total=total,
    )


def compute_insights(
    expenses: Iterable[Expense],
    period: InsightsPeriod,
    now: datetime,
) -> PeriodInsights:
    """
    Spending by member and by category since the start of the period.

    Amounts are summed across currencies; see compute_insights_by_currency.
    """
    start = period_start(period, now)
    return _summarize(filter_period(expenses, start), period, start)


def compute_insights_by_currency(
    expenses: Iterable[Expense],
    period: InsightsPeriod,
    now: datetime,
) -> dict[str, PeriodInsights]:
    """
    Period insights computed separately for each currency.

    Keys are currency codes in the order they first appear. Category
    percentages are relative to that currency's own total.
    """
    start = period_start(period, now)

    groups: dict[str, list[Expense]] = {}
    for expense in filter_period(expenses, start):
        groups.setdefault(expense.currency or DEFAULT_CURRENCY, []).append(expense)

    return {
        currency: _summarize(group, period, start, currency=currency)
        for currency, group in groups.items()
    }
