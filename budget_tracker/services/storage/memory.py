"""
In-Memory Storage Implementation

Process-local storage with the same behaviour as the real backend:
full-snapshot notifications, date-descending expense lists, duplicate
invite code rejection. Used by the tests and whenever no external
backend is configured (data is lost on restart).

Records are copied on the way in and out so callers can't mutate
stored state behind the store's back.
"""

from typing import Optional
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.ledger import Expense, Household, NewExpense
from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpensesCallback,
    ExpenseStorageInterface,
    HouseholdCallback,
    HouseholdStorageInterface,
    NotFoundError,
    Unsubscribe,
    sort_for_display,
)
from budget_tracker.services.storage.subscriptions import (
    EXPENSES_TOPIC,
    HOUSEHOLD_TOPIC,
    SubscriptionHub,
)


class InMemoryHouseholdStorage(HouseholdStorageInterface):
    """Households keyed by id."""

    def __init__(self, hub: Optional[SubscriptionHub] = None):
        self._households: dict[UUID, Household] = {}
        self._hub = hub or SubscriptionHub()

    async def create_household(self, household: Household) -> Household:
        if household.id in self._households:
            raise DuplicateError(f"Household already exists: {household.id}")
        if await self.get_household_by_invite_code(household.invite_code):
            raise DuplicateError(f"Invite code already in use: {household.invite_code}")

        self._households[household.id] = household.model_copy(deep=True)
        self._publish(household.id)
        return household.model_copy(deep=True)

    async def get_household_by_id(self, household_id: UUID) -> Optional[Household]:
        household = self._households.get(household_id)
        return household.model_copy(deep=True) if household else None

    async def get_household_by_invite_code(self, invite_code: str) -> Optional[Household]:
        code = invite_code.strip()
        for household in self._households.values():
            if household.invite_code == code:
                return household.model_copy(deep=True)
        return None

    async def update_household(self, household: Household) -> bool:
        if household.id not in self._households:
            raise NotFoundError(f"Household not found: {household.id}")
        self._households[household.id] = household.model_copy(deep=True)
        self._publish(household.id)
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

    def _publish(self, household_id: UUID) -> None:
        household = self._households.get(household_id)
        self._hub.publish(
            HOUSEHOLD_TOPIC,
            household_id,
            household.model_copy(deep=True) if household else None,
        )


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Expenses per household, in insertion order."""

    def __init__(self, hub: Optional[SubscriptionHub] = None):
        self._expenses: dict[UUID, list[Expense]] = {}
        self._hub = hub or SubscriptionHub()

    async def add_expense(self, household_id: UUID, expense: NewExpense) -> Expense:
        stored = Expense.from_new(household_id, expense)
        self._expenses.setdefault(household_id, []).append(stored)
        self._hub.publish(EXPENSES_TOPIC, household_id, self._snapshot(household_id))
        return stored.model_copy()

    async def list_expenses(self, household_id: UUID) -> list[Expense]:
        return self._snapshot(household_id)

    async def subscribe_to_expenses(
        self,
        household_id: UUID,
        callback: ExpensesCallback,
    ) -> Unsubscribe:
        self._hub.deliver(callback, self._snapshot(household_id), EXPENSES_TOPIC, household_id)
        return self._hub.subscribe(EXPENSES_TOPIC, household_id, callback)

    def _snapshot(self, household_id: UUID) -> list[Expense]:
        return sort_for_display(
            [e.model_copy() for e in self._expenses.get(household_id, [])]
        )


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_household(self, household_id: UUID) -> list[AuditEvent]:
        events = [e for e in self._events if e.household_id == household_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
