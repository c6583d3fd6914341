"""
Main Orchestrator for Household Budget Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Households (create with invite code → join by code)
2. Expenses (describe → suggest category → validate → save)
3. Dashboard (cached snapshot → chart buckets, insights, recent list)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is stored without passing validation
- The analytics engines only ever see the cached snapshot
- Every write is audited

The UI talks to these classes only; it never touches storage directly.
"""

import random
from datetime import datetime
from typing import NamedTuple, Optional
from uuid import UUID

import structlog

from budget_tracker.analytics import (
    CategorySuggester,
    bucket_expenses,
    bucket_key,
    compute_insights,
    compute_insights_by_currency,
)
from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.config import AppSettings, get_settings
from budget_tracker.models import (
    CategorySuggestion,
    Expense,
    ExpenseBucket,
    ExpenseFormInput,
    Granularity,
    Household,
    InsightsPeriod,
    PeriodInsights,
    ValidationResult,
)
from budget_tracker.services.storage import (
    DuplicateError,
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    GoogleSheetsHouseholdStorage,
    HouseholdStorageInterface,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryHouseholdStorage,
    StorageError,
    SubscriptionHub,
    Unsubscribe,
)
from budget_tracker.validation import (
    NAME_MAX_LENGTH,
    ExpenseValidationError,
    ExpenseValidator,
    normalize_display_name,
    normalize_invite_code,
)


logger = structlog.get_logger(__name__)

INVITE_CODE_MIN = 100000
INVITE_CODE_MAX = 999999


class HouseholdError(Exception):
    """Base exception for household actions the user can fix."""
    pass


class MissingUserNameError(HouseholdError):
    """The user didn't enter a display name."""
    pass


class NameTooLongError(HouseholdError):
    """A display or household name is longer than storage allows."""
    pass


class InvalidInviteCodeError(HouseholdError):
    """The invite code is malformed or doesn't belong to any household."""
    pass


def require_display_name(user_name: Optional[str]) -> str:
    """The trimmed display name; raises if it is blank or too long."""
    name = normalize_display_name(user_name)
    if name is None:
        raise MissingUserNameError("Please enter your name")
    if len(name) > NAME_MAX_LENGTH:
        raise NameTooLongError(f"Names can be at most {NAME_MAX_LENGTH} characters")
    return name


def generate_invite_code() -> str:
    """Random six-digit code, never starting with 0."""
    return str(random.randint(INVITE_CODE_MIN, INVITE_CODE_MAX))


class HouseholdFlow:
    """
    Orchestrates creating and joining households.

    Flow:
    1. Create → name + creator → new household with a fresh invite code
    2. Share → creator passes the code along outside the app
    3. Join → code + display name → member added (once)
    """

    def __init__(
        self,
        household_storage: HouseholdStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._household_storage = household_storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    async def create_household(
        self,
        name: str,
        user_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Household:
        """
        Create a household with the creator as its first member.

        Raises:
            MissingUserNameError: If user_name is blank
            NameTooLongError: If either name is too long
            HouseholdError: If the household name is blank
            DuplicateError: If no free invite code was found
        """
        correlation_id = correlation_id or create_correlation_id()
        user_name = require_display_name(user_name)

        household_name = (name or "").strip()
        if not household_name:
            raise HouseholdError("Please enter a household name")
        if len(household_name) > NAME_MAX_LENGTH:
            raise NameTooLongError(f"Names can be at most {NAME_MAX_LENGTH} characters")

        attempts = self._settings.invite_code_attempts
        for attempt in range(1, attempts + 1):
            invite_code = generate_invite_code()
            if await self._household_storage.get_household_by_invite_code(invite_code):
                logger.info("invite_code_collision", attempt=attempt)
                continue

            household = Household(
                name=household_name,
                invite_code=invite_code,
                members=[user_name],
                created_by=user_name,
            )
            try:
                household = await self._household_storage.create_household(household)
            except DuplicateError:
                # Someone else took the code between the check and the write
                logger.info("invite_code_collision", attempt=attempt)
                continue

            if self._audit_logger:
                await self._audit_logger.log_household_created(
                    household_id=household.id,
                    name=household.name,
                    created_by=user_name,
                    correlation_id=correlation_id,
                )
            return household

        raise DuplicateError(
            f"Could not find a free invite code after {attempts} attempts"
        )

    async def join_household(
        self,
        invite_code: str,
        user_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Household:
        """
        Join the household that owns `invite_code`.

        Joining twice under the same name is harmless: the member list
        is left as it is.

        Raises:
            NameTooLongError: If user_name is too long
            MissingUserNameError: If user_name is blank
            InvalidInviteCodeError: If the code is malformed or unknown
        """
        correlation_id = correlation_id or create_correlation_id()
        user_name = require_display_name(user_name)

        code = normalize_invite_code(invite_code)
        household = None
        if code is not None:
            household = await self._household_storage.get_household_by_invite_code(code)

        if household is None:
            if self._audit_logger:
                await self._audit_logger.log_invalid_invite_code(
                    invite_code=(invite_code or "").strip(),
                    member=user_name,
                    correlation_id=correlation_id,
                )
            raise InvalidInviteCodeError("Invalid invite code")

        added = household.add_member(user_name)
        if added:
            await self._household_storage.update_household(household)

        if self._audit_logger:
            await self._audit_logger.log_member_joined(
                household_id=household.id,
                member=user_name,
                already_member=not added,
                correlation_id=correlation_id,
            )

        return household


class ExpenseCache:
    """
    The open household's expense list, kept current by the store.

    Every notification carries the full list; the cache swaps its
    snapshot for it. Only one household is open at a time.
    """

    def __init__(self, expense_storage: ExpenseStorageInterface):
        self._expense_storage = expense_storage
        self._household_id: Optional[UUID] = None
        self._expenses: list[Expense] = []
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def household_id(self) -> Optional[UUID]:
        return self._household_id

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    @property
    def expenses(self) -> list[Expense]:
        """Current snapshot, date descending."""
        return list(self._expenses)

    def _on_snapshot(self, expenses: list[Expense]) -> None:
        self._expenses = list(expenses)

    async def open(self, household_id: UUID) -> None:
        """Subscribe to a household. Reopening the same one is a no-op."""
        if self.is_open and self._household_id == household_id:
            return
        self.close()
        self._household_id = household_id
        self._unsubscribe = await self._expense_storage.subscribe_to_expenses(
            household_id, self._on_snapshot
        )

    async def reload(self) -> None:
        """
        Re-read the open household from storage.

        Backends without server push (Google Sheets) only notify on
        their own writes; this picks up other members' changes.
        """
        if self._household_id is not None:
            self._on_snapshot(await self._expense_storage.list_expenses(self._household_id))

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._household_id = None
        self._expenses = []


class ExpenseFlow:
    """
    Orchestrates adding an expense.

    Flow:
    1. Describe → suggest a category from the household's history
    2. Submit → two-stage validation (errors block, warnings don't)
    3. Save → persist; subscribers get the new full list
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        cache: ExpenseCache,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._expense_storage = expense_storage
        self._cache = cache
        self._validator = validator or ExpenseValidator()
        self._suggester = CategorySuggester()
        self._audit_logger = audit_logger

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    async def _history(self, household_id: Optional[UUID]) -> list[Expense]:
        if household_id is None or household_id == self._cache.household_id:
            return self._cache.expenses
        return await self._expense_storage.list_expenses(household_id)

    async def explain_category(
        self,
        description: Optional[str],
        household_id: Optional[UUID] = None,
    ) -> CategorySuggestion:
        """Suggested category plus where it came from."""
        return self._suggester.explain(description, await self._history(household_id))

    async def suggest_category(
        self,
        description: Optional[str],
        household_id: Optional[UUID] = None,
    ) -> str:
        """
        Suggest a category for the form.

        Uses the cached history of the open household; any other
        household's history is read from storage.
        """
        suggestion = await self.explain_category(description, household_id)
        return suggestion.category

    async def add_expense(
        self,
        raw: ExpenseFormInput,
        household_id: UUID,
        user_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, ValidationResult]:
        """
        Validate and save an expense.

        Returns:
            (saved_expense, validation_result) - the result may carry warnings

        Raises:
            MissingUserNameError: If user_name is blank
            NameTooLongError: If user_name is too long
            ExpenseValidationError: If the input has errors
            StorageError: If the save failed
        """
        correlation_id = correlation_id or create_correlation_id()

        user = require_display_name(user_name)

        try:
            new_expense, result = self._validator.to_new_expense(raw, user)
        except ExpenseValidationError as e:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.result.issues
                    if i.severity == "error"
                ]
                await self._audit_logger.log_validation_failed(
                    household_id=household_id,
                    issues=issues,
                    user=user,
                    correlation_id=correlation_id,
                )
            raise

        try:
            expense = await self._expense_storage.add_expense(household_id, new_expense)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    household_id=household_id,
                    error_message=str(e),
                    user=user,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                household_id=household_id,
                amount=expense.amount,
                currency=expense.currency,
                category=expense.category,
                user=user,
                correlation_id=correlation_id,
            )

        return expense, result


class DashboardService:
    """
    Read-side views over the cached snapshot.

    Everything is recomputed on each call; nothing is stored.
    """

    def __init__(
        self,
        cache: ExpenseCache,
        settings: Optional[AppSettings] = None,
    ):
        self._cache = cache
        self._settings = settings or get_settings().app

    def series(self, granularity: Granularity) -> list[ExpenseBucket]:
        return bucket_expenses(
            self._cache.expenses,
            granularity,
            limit=self._settings.max_chart_buckets,
        )

    def daily_series(self) -> list[ExpenseBucket]:
        return self.series(Granularity.DAILY)

    def monthly_series(self) -> list[ExpenseBucket]:
        return self.series(Granularity.MONTHLY)

    def bucket_details(self, granularity: Granularity, key: str) -> list[Expense]:
        """Expenses in one chart bucket, date descending."""
        return [
            e for e in self._cache.expenses
            if bucket_key(e, granularity) == key
        ]

    def insights(
        self,
        period: InsightsPeriod,
        now: Optional[datetime] = None,
    ) -> PeriodInsights:
        return compute_insights(self._cache.expenses, period, now or datetime.now())

    def insights_by_currency(
        self,
        period: InsightsPeriod,
        now: Optional[datetime] = None,
    ) -> dict[str, PeriodInsights]:
        return compute_insights_by_currency(
            self._cache.expenses, period, now or datetime.now()
        )

    def recent_expenses(self, limit: Optional[int] = None) -> list[Expense]:
        """Newest expenses first."""
        if limit is None:
            limit = self._settings.recent_expenses_limit
        return self._cache.expenses[:limit]


class AppComponents(NamedTuple):
    household_flow: HouseholdFlow
    expense_flow: ExpenseFlow
    dashboard: DashboardService
    cache: ExpenseCache
    expense_storage: ExpenseStorageInterface
    audit_logger: AuditLogger
    settings: AppSettings
    sheets_client: Optional[GoogleSheetsClient]

    def with_new_cache(self) -> "AppComponents":
        """
        Same storage, fresh cache and read side.

        Each UI session opens its own household; storage is shared.
        """
        cache = ExpenseCache(self.expense_storage)
        return self._replace(
            cache=cache,
            expense_flow=ExpenseFlow(
                expense_storage=self.expense_storage,
                cache=cache,
                validator=self.expense_flow.validator,
                audit_logger=self.audit_logger,
            ),
            dashboard=DashboardService(cache, self.settings),
        )


def create_app_components(
    backend: Optional[str] = None,
    settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: "google_sheets" or "memory". Defaults to the
                 STORAGE_BACKEND setting.
        settings: Application settings (default: loaded from environment)

    If Google Sheets is requested but can't be configured, falls back to
    in-memory storage so the app still starts.
    """
    settings = settings or get_settings().app
    backend = backend or settings.storage_backend

    hub = SubscriptionHub()
    sheets_client = None
    household_storage = None
    expense_storage = None
    audit_storage = None

    if backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.get_spreadsheet()
            household_storage = GoogleSheetsHouseholdStorage(sheets_client, hub)
            expense_storage = GoogleSheetsExpenseStorage(sheets_client, hub)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend=backend, error=str(e))
            sheets_client = None

    if sheets_client is None:
        household_storage = InMemoryHouseholdStorage(hub)
        expense_storage = InMemoryExpenseStorage(hub)
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    cache = ExpenseCache(expense_storage)

    household_flow = HouseholdFlow(
        household_storage=household_storage,
        audit_logger=audit_logger,
        settings=settings,
    )
    expense_flow = ExpenseFlow(
        expense_storage=expense_storage,
        cache=cache,
        validator=ExpenseValidator(settings),
        audit_logger=audit_logger,
    )
    dashboard = DashboardService(cache, settings)

    return AppComponents(
        household_flow=household_flow,
        expense_flow=expense_flow,
        dashboard=dashboard,
        cache=cache,
        expense_storage=expense_storage,
        audit_logger=audit_logger,
        settings=settings,
        sheets_client=sheets_client,
    )
