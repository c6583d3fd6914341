"""Tests for the audit logger."""

import asyncio
from decimal import Decimal
from uuid import uuid4

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.models import AuditEventBuilder, AuditEventType, AuditSeverity
from budget_tracker.services.storage import InMemoryAuditStorage


class BrokenAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class TestAuditLogger:
    """Tests for local + persisted audit logging."""

    def test_without_storage(self):
        """Local-only logging always succeeds."""
        logger = AuditLogger()
        assert logger.storage is None
        asyncio.run(logger.log_error("test", "something broke"))

    def test_persists_events(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        household_id = uuid4()
        correlation_id = create_correlation_id()

        async def scenario():
            await logger.log_household_created(household_id, "Flat 4B", "Sam", correlation_id)
            await logger.log_member_joined(household_id, "Alex", False, correlation_id)
            await logger.log_expense_added(
                uuid4(), household_id, Decimal("3.20"), "EUR", "Restaurants", "Alex", correlation_id
            )
            return await storage.get_events_by_household(household_id)

        events = asyncio.run(scenario())
        assert [e.event_type for e in events] == [
            AuditEventType.HOUSEHOLD_CREATED,
            AuditEventType.MEMBER_JOINED,
            AuditEventType.EXPENSE_ADDED,
        ]
        assert {e.correlation_id for e in events} == {correlation_id}

    def test_warning_and_error_events(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        async def scenario():
            await logger.log_invalid_invite_code("000000", "Alex")
            await logger.log_save_failed(uuid4(), "quota exceeded", user="Sam")
            await logger.log_external_service_error("google_sheets", "timeout")
            return await storage.get_recent_events()

        events = asyncio.run(scenario())
        assert [e.severity for e in events] == [
            AuditSeverity.ERROR,
            AuditSeverity.ERROR,
            AuditSeverity.WARNING,
        ]
        assert events[1].error_message == "quota exceeded"

    def test_storage_failure_is_swallowed(self):
        """A broken audit store never breaks the action being audited."""
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.system_error("test", "boom")
        event_logged = asyncio.run(logger.log(event))
        assert event_logged is False

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
