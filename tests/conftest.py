"""Shared fixtures for the test suite."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from budget_tracker.config import AppSettings
from budget_tracker.models import Expense


HOUSEHOLD_ID = UUID("11111111-1111-1111-1111-111111111111")


def make_expense(
    amount="10.00",
    description="Weekly shop",
    category="Groceries",
    expense_date=date(2024, 3, 13),
    user="A",
    currency="USD",
    household_id=HOUSEHOLD_ID,
) -> Expense:
    return Expense(
        id=uuid4(),
        household_id=household_id,
        amount=Decimal(str(amount)),
        description=description,
        category=category,
        expense_date=expense_date,
        user=user,
        currency=currency,
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        storage_backend="memory",
        default_currency="USD",
        max_chart_buckets=30,
        recent_expenses_limit=10,
        invite_code_attempts=5,
        max_expense_amount=100000.0,
        future_date_tolerance_days=1,
    )
