"""
Tests for the storage backends.

The in-memory backend is tested directly. The Google Sheets backend
runs against a fake client that keeps rows in lists, so no network
calls are made.
"""

import asyncio
import gc
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_tracker.models import AuditEventBuilder, Household, NewExpense
from budget_tracker.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsExpenseStorage,
    GoogleSheetsHouseholdStorage,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryHouseholdStorage,
    NotFoundError,
    StorageError,
    SubscriptionHub,
)
from budget_tracker.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    EXPENSE_COLUMNS,
    HOUSEHOLD_COLUMNS,
)


def new_expense(amount="10.00", expense_date=date(2024, 3, 13), description="Shop", **kw):
    return NewExpense(
        amount=Decimal(amount),
        description=description,
        category=kw.get("category", "Groceries"),
        expense_date=expense_date,
        user=kw.get("user", "Sam"),
        currency=kw.get("currency", "USD"),
    )


def household(code="123456", name="Flat 4B"):
    return Household(name=name, invite_code=code, members=["Sam"], created_by="Sam")


class FakeSheet:
    def __init__(self, columns):
        self.rows = [list(columns)]

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = str(value)


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient; cells come back as strings."""

    def __init__(self):
        self.households = FakeSheet(HOUSEHOLD_COLUMNS)
        self.expenses = FakeSheet(EXPENSE_COLUMNS)
        self.audit = FakeSheet(AUDIT_COLUMNS)
        self.fail_writes = False
        self.fail_reads = False

    def get_households_sheet(self):
        return self.households

    def get_expenses_sheet(self):
        return self.expenses

    def get_audit_sheet(self):
        return self.audit

    def append_row(self, sheet, row):
        if self.fail_writes:
            raise RuntimeError("quota exceeded")
        sheet.rows.append([str(value) for value in row])

    def read_rows(self, sheet):
        if self.fail_reads:
            raise RuntimeError("read quota exceeded")
        return [list(row) for row in sheet.rows[1:]]


def run(coro):
    return asyncio.run(coro)


class TestSubscriptionHub:
    """Tests for snapshot delivery."""

    def test_publish_reaches_subscribers(self):
        hub = SubscriptionHub()
        household_id = uuid4()
        received = []
        hub.subscribe("expenses", household_id, received.append)
        assert hub.publish("expenses", household_id, ["snapshot"]) == 1
        assert received == [["snapshot"]]

    def test_topics_and_households_are_separate(self):
        hub = SubscriptionHub()
        received = []
        hub.subscribe("expenses", uuid4(), received.append)
        assert hub.publish("expenses", uuid4(), []) == 0
        assert received == []

    def test_unsubscribe(self):
        hub = SubscriptionHub()
        household_id = uuid4()
        received = []
        unsubscribe = hub.subscribe("expenses", household_id, received.append)
        unsubscribe()
        unsubscribe()  # second call is harmless
        hub.publish("expenses", household_id, [])
        assert received == []
        assert not hub.has_subscribers("expenses", household_id)

    def test_failing_subscriber_does_not_stop_others(self):
        hub = SubscriptionHub()
        household_id = uuid4()
        received = []

        def broken(_):
            raise RuntimeError("boom")

        hub.subscribe("expenses", household_id, broken)
        hub.subscribe("expenses", household_id, received.append)
        assert hub.publish("expenses", household_id, ["x"]) == 1
        assert received == [["x"]]

    def test_bound_method_subscription_dies_with_its_owner(self):
        class Listener:
            def __init__(self):
                self.received = []

            def on_snapshot(self, snapshot):
                self.received.append(snapshot)

        hub = SubscriptionHub()
        household_id = uuid4()
        listener = Listener()
        hub.subscribe("expenses", household_id, listener.on_snapshot)
        assert hub.publish("expenses", household_id, ["x"]) == 1
        assert listener.received == [["x"]]

        del listener
        gc.collect()
        assert not hub.has_subscribers("expenses", household_id)
        assert hub.publish("expenses", household_id, ["y"]) == 0


class TestInMemoryHouseholdStorage:
    """Tests for in-memory households."""

    def test_create_and_lookup(self):
        storage = InMemoryHouseholdStorage()
        created = run(storage.create_household(household()))
        assert run(storage.get_household_by_id(created.id)).name == "Flat 4B"
        assert run(storage.get_household_by_invite_code(" 123456 ")).id == created.id
        assert run(storage.get_household_by_invite_code("999999")) is None

    def test_duplicate_invite_code(self):
        storage = InMemoryHouseholdStorage()
        run(storage.create_household(household()))
        with pytest.raises(DuplicateError):
            run(storage.create_household(household(name="Other")))

    def test_returned_copies_are_detached(self):
        storage = InMemoryHouseholdStorage()
        created = run(storage.create_household(household()))
        created.add_member("Mallory")
        assert run(storage.get_household_by_id(created.id)).members == ["Sam"]

    def test_update(self):
        storage = InMemoryHouseholdStorage()
        created = run(storage.create_household(household()))
        created.add_member("Alex")
        assert run(storage.update_household(created)) is True
        assert run(storage.get_household_by_id(created.id)).members == ["Sam", "Alex"]

    def test_update_missing(self):
        with pytest.raises(NotFoundError):
            run(InMemoryHouseholdStorage().update_household(household()))

    def test_subscription_gets_current_then_updates(self):
        storage = InMemoryHouseholdStorage()
        created = run(storage.create_household(household()))
        received = []
        run(storage.subscribe_to_household(created.id, received.append))
        created.add_member("Alex")
        run(storage.update_household(created))
        assert [h.members for h in received] == [["Sam"], ["Sam", "Alex"]]

    def test_subscription_to_unknown_household(self):
        received = []
        run(InMemoryHouseholdStorage().subscribe_to_household(uuid4(), received.append))
        assert received == [None]


class TestInMemoryExpenseStorage:
    """Tests for in-memory expenses."""

    def test_add_assigns_identity(self):
        storage = InMemoryExpenseStorage()
        household_id = uuid4()
        expense = run(storage.add_expense(household_id, new_expense()))
        assert expense.household_id == household_id
        assert expense.id is not None

    def test_list_is_date_descending_ties_in_insertion_order(self):
        storage = InMemoryExpenseStorage()
        household_id = uuid4()
        run(storage.add_expense(household_id, new_expense(description="first", expense_date=date(2024, 3, 1))))
        run(storage.add_expense(household_id, new_expense(description="second", expense_date=date(2024, 3, 5))))
        run(storage.add_expense(household_id, new_expense(description="third", expense_date=date(2024, 3, 1))))
        listed = run(storage.list_expenses(household_id))
        assert [e.description for e in listed] == ["second", "first", "third"]

    def test_households_are_isolated(self):
        storage = InMemoryExpenseStorage()
        run(storage.add_expense(uuid4(), new_expense()))
        assert run(storage.list_expenses(uuid4())) == []

    def test_subscribers_get_full_snapshots(self):
        storage = InMemoryExpenseStorage()
        household_id = uuid4()
        run(storage.add_expense(household_id, new_expense(amount="1")))
        snapshots = []
        unsubscribe = run(storage.subscribe_to_expenses(household_id, snapshots.append))
        run(storage.add_expense(household_id, new_expense(amount="2")))
        unsubscribe()
        run(storage.add_expense(household_id, new_expense(amount="3")))

        assert [len(s) for s in snapshots] == [1, 2]
        assert {e.amount for e in snapshots[1]} == {Decimal("1"), Decimal("2")}

    def test_failing_subscriber_does_not_fail_the_write(self):
        storage = InMemoryExpenseStorage()
        household_id = uuid4()

        def broken(_):
            raise RuntimeError("boom")

        run(storage.subscribe_to_expenses(household_id, broken))
        run(storage.add_expense(household_id, new_expense()))
        assert len(run(storage.list_expenses(household_id))) == 1


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit log."""

    def test_events_by_household_and_recent(self):
        storage = InMemoryAuditStorage()
        household_id = uuid4()
        first = AuditEventBuilder.household_created(household_id, "Flat", "Sam")
        second = AuditEventBuilder.member_joined(household_id, "Alex", already_member=False)
        other = AuditEventBuilder.household_created(uuid4(), "Other", "Kim")
        for event in (first, second, other):
            run(storage.append_event(event))

        assert [e.event_id for e in run(storage.get_events_by_household(household_id))] == [
            first.event_id,
            second.event_id,
        ]
        assert run(storage.get_recent_events(limit=1))[0].event_id == other.event_id


class TestGoogleSheetsStorage:
    """Tests for the Google Sheets backend against a fake client."""

    def test_household_round_trip(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsHouseholdStorage(client)
        created = run(storage.create_household(household()))

        assert client.households.rows[1][2] == "123456"
        loaded = run(storage.get_household_by_invite_code("123456"))
        assert loaded.id == created.id
        assert loaded.members == ["Sam"]

    def test_household_duplicate_code(self):
        storage = GoogleSheetsHouseholdStorage(FakeSheetsClient())
        run(storage.create_household(household()))
        with pytest.raises(DuplicateError):
            run(storage.create_household(household()))

    def test_household_update_rewrites_row(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsHouseholdStorage(client)
        created = run(storage.create_household(household()))
        created.add_member("Alex")
        run(storage.update_household(created))

        assert len(client.households.rows) == 2
        assert run(storage.get_household_by_id(created.id)).members == ["Sam", "Alex"]

    def test_household_update_missing(self):
        storage = GoogleSheetsHouseholdStorage(FakeSheetsClient())
        with pytest.raises(NotFoundError):
            run(storage.update_household(household()))

    def test_expenses_filtered_and_sorted(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client)
        household_id = uuid4()
        run(storage.add_expense(household_id, new_expense(description="old", expense_date=date(2024, 1, 2))))
        run(storage.add_expense(uuid4(), new_expense(description="elsewhere")))
        run(storage.add_expense(household_id, new_expense(
            amount="1250.50", description="new", expense_date=date(2024, 2, 2), currency="EUR",
        )))

        listed = run(storage.list_expenses(household_id))
        assert [e.description for e in listed] == ["new", "old"]
        assert listed[0].amount == Decimal("1250.50")
        assert listed[0].currency == "EUR"
        assert client.expenses.rows[1][5] == "2024-01-02"

    def test_malformed_rows_are_skipped(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client)
        household_id = uuid4()
        client.expenses.rows.append(["bad", str(household_id), "not-a-number"])
        run(storage.add_expense(household_id, new_expense()))
        assert len(run(storage.list_expenses(household_id))) == 1

    def test_expense_subscribers_hear_own_writes(self):
        storage = GoogleSheetsExpenseStorage(FakeSheetsClient())
        household_id = uuid4()
        snapshots = []
        run(storage.subscribe_to_expenses(household_id, snapshots.append))
        run(storage.add_expense(household_id, new_expense()))
        assert [len(s) for s in snapshots] == [0, 1]

    def test_write_failure_raises_storage_error(self):
        client = FakeSheetsClient()
        client.fail_writes = True
        storage = GoogleSheetsExpenseStorage(client)
        with pytest.raises(StorageError):
            run(storage.add_expense(uuid4(), new_expense()))

    def test_refresh_failure_after_write_still_saves(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client)
        household_id = uuid4()
        snapshots = []
        run(storage.subscribe_to_expenses(household_id, snapshots.append))
        client.fail_reads = True

        stored = run(storage.add_expense(household_id, new_expense()))

        assert len(client.expenses.rows) == 2
        assert client.expenses.rows[1][0] == str(stored.id)
        assert [len(s) for s in snapshots] == [0]

    def test_audit_round_trip(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsAuditStorage(client)
        household_id = uuid4()
        event = AuditEventBuilder.expense_added(
            uuid4(), household_id, Decimal("12.50"), "USD", "Groceries", "Sam"
        )
        assert run(storage.append_event(event)) is True

        (loaded,) = run(storage.get_events_by_household(household_id))
        assert loaded.event_id == event.event_id
        assert loaded.details == {"amount": "12.50", "currency": "USD", "category": "Groceries"}
        assert loaded.actor == "Sam"

    def test_audit_write_failure_returns_false(self):
        client = FakeSheetsClient()
        client.fail_writes = True
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.system_error("test", "boom")
        assert run(storage.append_event(event)) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
