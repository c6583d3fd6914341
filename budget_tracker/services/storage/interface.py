"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real document store later
2. Use in-memory storage for testing
3. Keep the flows and engines decoupled from storage implementation

SYNC MODEL: subscribers receive the household's FULL current record
set, once when they subscribe and again after every change. There is
no incremental diff; consumers replace their snapshot wholesale.
Concurrent edits are last-write-wins.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.ledger import Expense, Household, NewExpense


ExpensesCallback = Callable[[list[Expense]], None]
HouseholdCallback = Callable[[Optional[Household]], None]
Unsubscribe = Callable[[], None]


class HouseholdStorageInterface(ABC):
    """
    Abstract interface for household storage operations.

    Households are created, looked up by id or invite code, and updated
    when a member joins. They are never deleted.
    """

    @abstractmethod
    async def create_household(self, household: Household) -> Household:
        """
        Persist a new household.

        Raises:
            DuplicateError: If the id or invite code is already taken
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_household_by_id(self, household_id: UUID) -> Optional[Household]:
        """Retrieve a household by ID, or None."""
        pass

    @abstractmethod
    async def get_household_by_invite_code(self, invite_code: str) -> Optional[Household]:
        """Retrieve the household using this invite code, or None."""
        pass

    @abstractmethod
    async def update_household(self, household: Household) -> bool:
        """
        Replace a stored household (e.g. after a member joined).

        Raises:
            NotFoundError: If household doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def subscribe_to_household(
        self,
        household_id: UUID,
        callback: HouseholdCallback,
    ) -> Unsubscribe:
        """
        Receive the household now and after every change.

        The callback gets None if the household doesn't exist.
        Returns a function that cancels the subscription.
        """
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Expenses are append-only within the scope of this application.
    """

    @abstractmethod
    async def add_expense(self, household_id: UUID, expense: NewExpense) -> Expense:
        """
        Store a new expense for a household.

        The store assigns id and created_at and fills the default currency.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_expenses(self, household_id: UUID) -> list[Expense]:
        """
        All expenses of a household.

        Ordered by expense date descending; same-date expenses keep
        insertion order.
        """
        pass

    @abstractmethod
    async def subscribe_to_expenses(
        self,
        household_id: UUID,
        callback: ExpensesCallback,
    ) -> Unsubscribe:
        """
        Receive the household's full expense list now and after every change.

        Returns a function that cancels the subscription.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log. Returns True if logged."""
        pass

    @abstractmethod
    async def get_events_by_household(self, household_id: UUID) -> list[AuditEvent]:
        """All events for a household, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """The most recent audit events (newest first)."""
        pass


def sort_for_display(expenses: list[Expense]) -> list[Expense]:
    """Date descending; Python's sort is stable so ties keep insertion order."""
    return sorted(expenses, key=lambda e: e.expense_date, reverse=True)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
