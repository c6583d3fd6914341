"""
Core Ledger Models for Household Budget Tracker

These models define the records that live in the store:
households, the expenses they own, and the input used to create them.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are Decimal, never float. They are summed
but never converted between currencies.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_CURRENCY = "USD"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    The category labels offered in the add-expense form.

    Stored expenses keep the category as plain text, so a household
    can carry labels outside this set; the suggestion engine will
    happily return them.
    """
    GROCERIES = "Groceries"
    RESTAURANTS = "Restaurants"
    TRANSPORTATION = "Transportation"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    CIGARETTES = "Cigarettes"
    OTHER = "Other"

    @classmethod
    def labels(cls) -> list[str]:
        return [category.value for category in cls]


def _category_label(value: object) -> object:
    if isinstance(value, ExpenseCategory):
        return value.value
    return value


def _currency_code(value: object) -> object:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_CURRENCY
    if isinstance(value, str):
        return value.strip().upper()
    return value


# =============================================================================
# HOUSEHOLD
# =============================================================================

class Household(BaseModel):
    """
    A named group of people sharing one expense ledger.

    The invite code is random in [100000, 999999]. Uniqueness is
    expected, not enforced here - the household flow retries on a
    collision it can see.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique household ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Household display name"
    )
    invite_code: str = Field(
        ...,
        pattern=r"^\d{6}$",
        description="6-digit code other members use to join"
    )
    members: list[str] = Field(
        default_factory=list,
        description="Display names of members, in join order"
    )
    created_by: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name of the member who created it"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the household was created"
    )

    def add_member(self, name: str) -> bool:
        """Add a member if not already present. Returns True if added."""
        name = name.strip()
        if not name or name in self.members:
            return False
        self.members.append(name)
        return True

    @property
    def member_count(self) -> int:
        return len(self.members)


# =============================================================================
# EXPENSES
# =============================================================================

class NewExpense(BaseModel):
    """
    Validated input for a new expense.

    This is what the form produces after validation and what the
    store turns into an Expense (adding id and created_at).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Annotated[
        Decimal,
        Field(gt=0, decimal_places=2, description="Amount spent, in `currency`")
    ]
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was spent on"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category label"
    )
    expense_date: date = Field(
        ...,
        description="Calendar date of the expense"
    )
    user: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name of who spent it"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=3,
        max_length=3,
        description="ISO-4217 style currency code"
    )

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v: object) -> object:
        """Store enum members as their plain label."""
        return _category_label(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: object) -> object:
        """Missing currency means USD; codes are upper-cased."""
        return _currency_code(v)


class Expense(NewExpense):
    """
    A stored expense.

    Expenses are never edited or deleted. The list shown to users is
    ordered by expense_date descending, ties in insertion order.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    household_id: UUID = Field(
        ...,
        description="Household this expense belongs to"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created (not when the money was spent)"
    )

    @classmethod
    def from_new(cls, household_id: UUID, new_expense: NewExpense) -> "Expense":
        return cls(household_id=household_id, **new_expense.model_dump())


class ExpenseFormInput(BaseModel):
    """
    Raw add-expense form values, before validation.

    Everything is optional and loosely typed: the validator is what
    turns this into a NewExpense or explains why it can't.
    """

    amount: Optional[Union[str, int, float, Decimal]] = None
    description: Optional[str] = None
    category: Optional[str] = None
    expense_date: Optional[Union[date, str]] = None
    currency: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation of expense form input.

    Stage 1: Schema validation (required fields, parseable values)
    Stage 2: Semantic validation (future dates, unusual amounts)
    """

    validated_at: datetime = Field(
        default_factory=utc_now
    )

    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
