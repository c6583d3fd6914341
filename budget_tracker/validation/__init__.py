"""Input validation package."""

from budget_tracker.validation.validator import (
    NAME_MAX_LENGTH,
    ExpenseValidationError,
    ExpenseValidator,
    normalize_display_name,
    normalize_invite_code,
)

__all__ = [
    "NAME_MAX_LENGTH",
    "ExpenseValidationError",
    "ExpenseValidator",
    "normalize_display_name",
    "normalize_invite_code",
]
