"""
Audit Models for Household Budget Tracker

Every write to a household's ledger is logged for audit purposes.
This provides:
1. A history of who created, joined and spent what
2. Debugging information when the store misbehaves
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budget_tracker.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Households
    HOUSEHOLD_CREATED = "household_created"
    MEMBER_JOINED = "member_joined"
    INVALID_INVITE_CODE = "invalid_invite_code"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    VALIDATION_FAILED = "validation_failed"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'household', 'expense')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    household_id: Optional[UUID] = Field(
        default=None,
        description="Household the event happened in"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one form submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    # Display name of whoever triggered it
    actor: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "household_id": str(self.household_id) if self.household_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "actor": self.actor,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         household_id, correlation_id, description, details_json,
         error_message, actor]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.household_id) if self.household_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            self.actor or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.household_created(household_id, name, "Sam")
        event = AuditEventBuilder.expense_added(expense_id, household_id, ...)
    """

    @staticmethod
    def household_created(
        household_id: UUID,
        name: str,
        created_by: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HOUSEHOLD_CREATED,
            entity_type="household",
            entity_id=household_id,
            household_id=household_id,
            correlation_id=correlation_id,
            description=f"Household created: {name}",
            details={"name": name},
            actor=created_by,
        )

    @staticmethod
    def member_joined(
        household_id: UUID,
        member: str,
        already_member: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_JOINED,
            entity_type="household",
            entity_id=household_id,
            household_id=household_id,
            correlation_id=correlation_id,
            description=(
                f"{member} reopened the household"
                if already_member
                else f"{member} joined the household"
            ),
            details={"already_member": already_member},
            actor=member,
        )

    @staticmethod
    def invalid_invite_code(
        invite_code: str,
        member: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_INVITE_CODE,
            severity=AuditSeverity.WARNING,
            entity_type="household",
            correlation_id=correlation_id,
            description="Join attempted with an unknown invite code",
            details={"invite_code": invite_code},
            actor=member,
        )

    @staticmethod
    def expense_added(
        expense_id: UUID,
        household_id: UUID,
        amount: Decimal,
        currency: str,
        category: str,
        user: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            household_id=household_id,
            correlation_id=correlation_id,
            description=f"Expense added: {amount} {currency} ({category})",
            details={
                "amount": str(amount),
                "currency": currency,
                "category": category,
            },
            actor=user,
        )

    @staticmethod
    def validation_failed(
        household_id: Optional[UUID],
        issues: list[dict],
        user: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            household_id=household_id,
            correlation_id=correlation_id,
            description=f"Expense input rejected with {len(issues)} issues",
            details={"issues": issues},
            actor=user,
        )

    @staticmethod
    def save_failed(
        household_id: UUID,
        error_message: str,
        user: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="expense",
            household_id=household_id,
            correlation_id=correlation_id,
            description="Expense could not be saved",
            error_message=error_message,
            actor=user,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
