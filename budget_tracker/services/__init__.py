"""Services package."""

from budget_tracker.services.storage import (
    AuditStorageInterface,
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
    NotFoundError,
    StorageConnectionError,
    StorageError,
    SubscriptionHub,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "ExpenseStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "GoogleSheetsHouseholdStorage",
    "HouseholdStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "InMemoryHouseholdStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "SubscriptionHub",
]
