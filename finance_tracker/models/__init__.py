"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the store must conform to these schemas.
"""

from finance_tracker.models.finance import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED,
    Balance,
    Category,
    CategoryBreakdown,
    CategorySlice,
    Filter,
    MonthlyBucket,
    MonthlySeries,
    TimeWindow,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    new_id,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "DEFAULT_CATEGORIES",
    "UNCATEGORIZED",
    "Balance",
    "Category",
    "CategoryBreakdown",
    "CategorySlice",
    "Filter",
    "MonthlyBucket",
    "MonthlySeries",
    "TimeWindow",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "new_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
