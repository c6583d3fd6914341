"""
Data Models Package

This package contains all Pydantic models used in the Household Budget Tracker.
All data flowing through the system must conform to these schemas.
"""

from budget_tracker.models.ledger import (
    DEFAULT_CURRENCY,
    Expense,
    ExpenseCategory,
    ExpenseFormInput,
    Household,
    NewExpense,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from budget_tracker.models.insights import (
    CategorySuggestion,
    CategoryTotal,
    ExpenseBucket,
    Granularity,
    InsightsPeriod,
    PeriodInsights,
    SuggestionSource,
    UserTotal,
)
from budget_tracker.models.state import AppState, View
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CURRENCY",
    "Expense",
    "ExpenseCategory",
    "ExpenseFormInput",
    "Household",
    "NewExpense",
    "ValidationIssue",
    "ValidationResult",
    "utc_now",
    # View models
    "CategorySuggestion",
    "CategoryTotal",
    "ExpenseBucket",
    "Granularity",
    "InsightsPeriod",
    "PeriodInsights",
    "SuggestionSource",
    "UserTotal",
    # Presentation state
    "AppState",
    "View",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
