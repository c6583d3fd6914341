"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the shared backend because:
1. Every household member can see the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a household)
- No transactions: invite code uniqueness is checked, not guaranteed
- No server push: subscribers hear about writes made through THIS
  process; call refresh() to pick up changes made elsewhere
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to a real document store later without changing the flows.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_tracker.config import get_settings
from budget_tracker.config.settings import GoogleSheetsSettings
from budget_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from budget_tracker.models.ledger import Expense, Household, NewExpense
from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpensesCallback,
    ExpenseStorageInterface,
    HouseholdCallback,
    HouseholdStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    Unsubscribe,
    sort_for_display,
)
from budget_tracker.services.storage.subscriptions import (
    EXPENSES_TOPIC,
    HOUSEHOLD_TOPIC,
    SubscriptionHub,
)


logger = structlog.get_logger(__name__)


# Column mappings for Households sheet
HOUSEHOLD_COLUMNS = [
    "id",
    "name",
    "invite_code",
    "members_json",
    "created_by",
    "created_at",
]

# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "household_id",
    "amount",
    "description",
    "category",
    "date",
    "user",
    "currency",
    "created_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "household_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "actor",
]


def _safe_getter(row: list):
    """Read cells of a possibly short row; missing cells are ""."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_households_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.households_sheet_name, HOUSEHOLD_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def append_row(self, sheet: gspread.Worksheet, row: list) -> None:
        sheet.append_row(row, value_input_option="RAW")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def read_rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        """All data rows (header excluded)."""
        return sheet.get_all_values()[1:]


class GoogleSheetsHouseholdStorage(HouseholdStorageInterface):
    """
    Google Sheets implementation of household storage.

    One household per row; members are JSON-serialized.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        hub: Optional[SubscriptionHub] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._hub = hub or SubscriptionHub()

    def _household_to_row(self, household: Household) -> list:
        return [
            str(household.id),
            household.name,
            household.invite_code,
            json.dumps(household.members),
            household.created_by,
            household.created_at.isoformat(),
        ]

    def _row_to_household(self, row: list) -> Household:
        safe_get = _safe_getter(row)
        return Household(
            id=UUID(safe_get(0)),
            name=safe_get(1),
            invite_code=safe_get(2),
            members=json.loads(safe_get(3) or "[]"),
            created_by=safe_get(4),
            created_at=datetime.fromisoformat(safe_get(5)),
        )

    def _load_all(self) -> list[tuple[int, Household]]:
        """(sheet row number, household) for every readable row."""
        sheet = self._client.get_households_sheet()
        households = []
        for idx, row in enumerate(self._client.read_rows(sheet), start=2):  # row 1 is header
            if not row or not row[0]:
                continue
            try:
                households.append((idx, self._row_to_household(row)))
            except Exception as e:
                logger.warning("malformed_household_row", row_number=idx, error=str(e))
        return households

    async def create_household(self, household: Household) -> Household:
        """Save a new household to Google Sheets."""
        try:
            for _, existing in self._load_all():
                if existing.id == household.id:
                    raise DuplicateError(f"Household already exists: {household.id}")
                if existing.invite_code == household.invite_code:
                    raise DuplicateError(f"Invite code already in use: {household.invite_code}")

            sheet = self._client.get_households_sheet()
            self._client.append_row(sheet, self._household_to_row(household))
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create household: {e}")

        self._hub.publish(HOUSEHOLD_TOPIC, household.id, household)
        return household

    async def get_household_by_id(self, household_id: UUID) -> Optional[Household]:
        try:
            for _, household in self._load_all():
                if household.id == household_id:
                    return household
            return None
        except Exception as e:
            raise StorageError(f"Failed to get household: {e}")

    async def get_household_by_invite_code(self, invite_code: str) -> Optional[Household]:
        code = invite_code.strip()
        try:
            for _, household in self._load_all():
                if household.invite_code == code:
                    return household
            return None
        except Exception as e:
            raise StorageError(f"Failed to find household: {e}")

    async def update_household(self, household: Household) -> bool:
        """Update an existing household."""
        try:
            sheet = self._client.get_households_sheet()
            for idx, existing in self._load_all():
                if existing.id == household.id:
                    new_row = self._household_to_row(household)
                    for col_idx, value in enumerate(new_row, start=1):
                        sheet.update_cell(idx, col_idx, value)
                    break
            else:
                raise NotFoundError(f"Household not found: {household.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update household: {e}")

        self._hub.publish(HOUSEHOLD_TOPIC, household.id, household)
        return True

    async def subscribe_to_household(
        self,
        household_id: UUID,
        callback: HouseholdCallback,
    ) -> Unsubscribe:
        self._hub.deliver(
            callback, await self.get_household_by_id(household_id), HOUSEHOLD_TOPIC, household_id
        )
        return self._hub.subscribe(HOUSEHOLD_TOPIC, household_id, callback)

    async def refresh(self, household_id: UUID) -> None:
        """Re-read the household and push it to subscribers."""
        if self._hub.has_subscribers(HOUSEHOLD_TOPIC, household_id):
            self._hub.publish(
                HOUSEHOLD_TOPIC, household_id, await self.get_household_by_id(household_id)
            )


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense storage.

    All households share one sheet; rows carry the household id.
    Row order is insertion order.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        hub: Optional[SubscriptionHub] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._hub = hub or SubscriptionHub()

    def _expense_to_row(self, expense: Expense) -> list:
        return [
            str(expense.id),
            str(expense.household_id),
            str(expense.amount),
            expense.description,
            expense.category,
            expense.expense_date.isoformat(),
            expense.user,
            expense.currency,
            expense.created_at.isoformat(),
        ]

    def _row_to_expense(self, row: list) -> Expense:
        safe_get = _safe_getter(row)
        return Expense(
            id=UUID(safe_get(0)),
            household_id=UUID(safe_get(1)),
            amount=Decimal(safe_get(2)),
            description=safe_get(3),
            category=safe_get(4),
            expense_date=date.fromisoformat(safe_get(5)),
            user=safe_get(6),
            currency=safe_get(7),
            created_at=datetime.fromisoformat(safe_get(8)),
        )

    async def add_expense(self, household_id: UUID, expense: NewExpense) -> Expense:
        """Append an expense row and notify subscribers."""
        stored = Expense.from_new(household_id, expense)
        try:
            sheet = self._client.get_expenses_sheet()
            self._client.append_row(sheet, self._expense_to_row(stored))
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

        try:
            await self.refresh(household_id)
        except StorageError as e:
            # The row is written; subscribers catch up on the next reload
            logger.warning(
                "expense_refresh_failed",
                household_id=str(household_id),
                expense_id=str(stored.id),
                error=str(e),
            )
        return stored

    async def list_expenses(self, household_id: UUID) -> list[Expense]:
        """List a household's expenses, newest date first."""
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = self._client.read_rows(sheet)
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

        wanted = str(household_id)
        expenses = []
        for idx, row in enumerate(all_rows, start=2):
            if not row or len(row) < 2 or row[1] != wanted:
                continue
            try:
                expenses.append(self._row_to_expense(row))
            except Exception as e:
                logger.warning("malformed_expense_row", row_number=idx, error=str(e))

        return sort_for_display(expenses)

    async def subscribe_to_expenses(
        self,
        household_id: UUID,
        callback: ExpensesCallback,
    ) -> Unsubscribe:
        self._hub.deliver(
            callback, await self.list_expenses(household_id), EXPENSES_TOPIC, household_id
        )
        return self._hub.subscribe(EXPENSES_TOPIC, household_id, callback)

    async def refresh(self, household_id: UUID) -> None:
        """Re-read the sheet and push the full list to subscribers."""
        if self._hub.has_subscribers(EXPENSES_TOPIC, household_id):
            self._hub.publish(EXPENSES_TOPIC, household_id, await self.list_expenses(household_id))


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        safe_get = _safe_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            household_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            actor=safe_get(11) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in self._client.read_rows(sheet):
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            self._client.append_row(sheet, event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_household(self, household_id: UUID) -> list[AuditEvent]:
        try:
            events = [e for e in self._read_events() if e.household_id == household_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
