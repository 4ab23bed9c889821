"""
Audit Models for Finance Tracker

Every store action that touches remote storage is recorded, so a failed
save or an unexpected delete can be reconstructed afterwards.

Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loading
    DATA_LOADED = "data_loaded"
    CATEGORIES_SEEDED = "categories_seeded"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    STORE_ACTION_FAILED = "store_action_failed"


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

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('transaction' or 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved("transaction", txn.id, txn.title)
        event = AuditEventBuilder.store_action_failed("add_transaction", str(exc))
    """

    _SAVED = {
        "transaction": AuditEventType.TRANSACTION_CREATED,
        "category": AuditEventType.CATEGORY_CREATED,
    }
    _UPDATED = {
        "transaction": AuditEventType.TRANSACTION_UPDATED,
        "category": AuditEventType.CATEGORY_UPDATED,
    }
    _DELETED = {
        "transaction": AuditEventType.TRANSACTION_DELETED,
        "category": AuditEventType.CATEGORY_DELETED,
    }

    @staticmethod
    def data_loaded(transaction_count: int, category_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description=(
                f"Loaded {transaction_count} transactions "
                f"and {category_count} categories"
            ),
            details={
                "transaction_count": transaction_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def categories_seeded(category_ids: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SEEDED,
            entity_type="category",
            description=f"Seeded {len(category_ids)} default categories",
            details={"category_ids": category_ids},
        )

    @classmethod
    def record_saved(cls, entity_type: str, entity_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=cls._SAVED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.title()} saved: {name}",
            is_user_action=True,
        )

    @classmethod
    def record_updated(cls, entity_type: str, entity_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=cls._UPDATED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.title()} updated: {name}",
            is_user_action=True,
        )

    @classmethod
    def record_deleted(cls, entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=cls._DELETED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.title()} deleted: {entity_id}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(entity_type: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            description=f"{entity_type.title()} rejected by validation",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def store_action_failed(
        action: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_id=entity_id,
            description=f"Store action failed: {action}",
            details={"action": action},
            error_message=error_message,
        )
