"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount present, numeric (thousands separators allowed) and > 0
- Description and category present and short enough to store
- Date present and parseable
- Currency supported
- Anything failing here is an ERROR: the expense is not stored

STAGE 2 - SEMANTIC VALIDATION:
- Date far in the future
- Unusually large amount
- Category outside the standard list
- These are WARNINGS: shown to the user, never blocking

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to correct.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from budget_tracker.config import AppSettings, get_settings
from budget_tracker.currency import is_supported_currency, parse_amount
from budget_tracker.models.ledger import (
    DEFAULT_CURRENCY,
    ExpenseCategory,
    ExpenseFormInput,
    NewExpense,
    ValidationIssue,
    ValidationResult,
)


INVITE_CODE_LENGTH = 6
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200
CATEGORY_MAX_LENGTH = 50


class ExpenseValidationError(Exception):
    """Expense input failed validation; `result` says why."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Expense input is invalid")


def normalize_invite_code(code: Optional[str]) -> Optional[str]:
    """The trimmed code if it is exactly six digits, else None."""
    if code is None:
        return None
    code = code.strip()
    if len(code) != INVITE_CODE_LENGTH or not code.isdigit():
        return None
    return code


def normalize_display_name(name: Optional[str]) -> Optional[str]:
    """The trimmed name, or None if nothing is left."""
    if name is None:
        return None
    return name.strip() or None


def _parse_date(value: object) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class ExpenseValidator:
    """
    Validates add-expense form input through a two-stage pipeline.

    Stage 1: Schema validation (errors block saving)
    Stage 2: Semantic validation (warnings only)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        raw: ExpenseFormInput,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        amount = parse_amount(raw.amount)
        if raw.amount is None or str(raw.amount).strip() == "":
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount '{raw.amount}' is not a number",
                severity="error",
                suggested_fix="Enter digits only, e.g. 1,250.50",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        else:
            try:
                has_cents_only = amount == amount.quantize(Decimal("0.01"))
            except InvalidOperation:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message=f"Amount '{raw.amount}' is too large",
                    severity="error",
                ))
            else:
                if not has_cents_only:
                    issues.append(ValidationIssue(
                        field="amount",
                        issue_type="invalid_format",
                        message="Amount can have at most two decimal places",
                        severity="error",
                    ))

        if not (raw.description or "").strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Say what the money was spent on",
            ))
        elif len(raw.description.strip()) > DESCRIPTION_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description can be at most {DESCRIPTION_MAX_LENGTH} characters",
                severity="error",
            ))

        if not (raw.category or "").strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        elif len(raw.category.strip()) > CATEGORY_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=f"Category can be at most {CATEGORY_MAX_LENGTH} characters",
                severity="error",
            ))

        if raw.expense_date is None or raw.expense_date == "":
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif _parse_date(raw.expense_date) is None:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="invalid_format",
                message=f"Date '{raw.expense_date}' is not a valid date",
                severity="error",
                suggested_fix="Use the format YYYY-MM-DD",
            ))

        if raw.currency and not is_supported_currency(raw.currency):
            issues.append(ValidationIssue(
                field="currency",
                issue_type="unsupported",
                message=f"Currency '{raw.currency}' is not supported",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        raw: ExpenseFormInput,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Only runs on input that passed stage 1, so parsing can't fail here.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        amount = parse_amount(raw.amount)
        expense_date = _parse_date(raw.expense_date)

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Date ({expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        category = raw.category.strip()
        if category not in ExpenseCategory.labels():
            issues.append(ValidationIssue(
                field="category",
                issue_type="custom_value",
                message=f"'{category}' is not one of the standard categories",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        raw: ExpenseFormInput,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            raw: Form values as entered
            today: Reference date for the future-date check (default: today)

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(raw)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                raw, today or date.today()
            )
            all_issues.extend(semantic_issues)

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def to_new_expense(
        self,
        raw: ExpenseFormInput,
        user: str,
        today: Optional[date] = None,
    ) -> tuple[NewExpense, ValidationResult]:
        """
        Validate and build the NewExpense to store.

        Raises:
            ExpenseValidationError: If any error-level issue was found
        """
        result = self.validate(raw, today=today)
        if not result.is_valid:
            raise ExpenseValidationError(result)

        new_expense = NewExpense(
            amount=parse_amount(raw.amount),
            description=raw.description,
            category=raw.category,
            expense_date=_parse_date(raw.expense_date),
            user=user,
            currency=raw.currency or self._settings.default_currency or DEFAULT_CURRENCY,
        )
        return new_expense, result

    @staticmethod
    def validate_invite_code(code: Optional[str]) -> bool:
        return normalize_invite_code(code) is not None

    @staticmethod
    def validate_display_name(name: Optional[str]) -> bool:
        name = normalize_display_name(name)
        return name is not None and len(name) <= NAME_MAX_LENGTH

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Short message to show above the form."""
        if result.is_valid and not result.warnings:
            return "✅ Looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
