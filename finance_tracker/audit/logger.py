"""
Audit Logger

Every store action is logged. This provides:
1. Traceability of what was saved, edited and deleted
2. Debugging capability when a remote call fails

The audit logger:
- Is async so it fits inside store actions
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from typing import Optional

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_data_loaded(self, transaction_count: int, category_count: int) -> None:
        await self.log(AuditEventBuilder.data_loaded(transaction_count, category_count))

    async def log_categories_seeded(self, category_ids: list[str]) -> None:
        await self.log(AuditEventBuilder.categories_seeded(category_ids))

    async def log_saved(self, entity_type: str, entity_id: str, name: str) -> None:
        """Log a created transaction or category."""
        await self.log(AuditEventBuilder.record_saved(entity_type, entity_id, name))

    async def log_updated(self, entity_type: str, entity_id: str, name: str) -> None:
        await self.log(AuditEventBuilder.record_updated(entity_type, entity_id, name))

    async def log_deleted(self, entity_type: str, entity_id: str) -> None:
        await self.log(AuditEventBuilder.record_deleted(entity_type, entity_id))

    async def log_validation_failed(self, entity_type: str, issues: list[dict]) -> None:
        await self.log(AuditEventBuilder.validation_failed(entity_type, issues))

    async def log_action_failed(
        self,
        action: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a store action whose remote call failed."""
        await self.log(
            AuditEventBuilder.store_action_failed(action, error_message, entity_id)
        )
