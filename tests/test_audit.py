"""Tests for the audit logger and audit storage."""

import asyncio

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from finance_tracker.services.storage import GoogleSheetsAuditStorage, InMemoryAuditStorage


class BrokenAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class FakeAuditSheet:
    def __init__(self):
        self.values = [["event_id"]]
        self.fail = False

    def append_row(self, row, value_input_option=None):
        if self.fail:
            raise RuntimeError("quota exceeded")
        self.values.append(list(row))

    def get_all_values(self):
        return [list(r) for r in self.values]


class FakeAuditClient:
    def __init__(self):
        self.sheet = FakeAuditSheet()

    def get_audit_sheet(self):
        return self.sheet


class TestAuditLogger:
    """Tests for the central audit logger."""

    def test_logs_to_storage(self):
        storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(storage)
        asyncio.run(audit_logger.log_saved("transaction", "t-1", "Lunch"))
        asyncio.run(audit_logger.log_deleted("category", "4"))

        assert [e.event_type for e in storage.events] == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.CATEGORY_DELETED,
        ]

    def test_without_storage_only_logs_locally(self):
        event = AuditEventBuilder.data_loaded(0, 8)
        assert asyncio.run(AuditLogger().log(event)) is True

    def test_storage_failure_does_not_raise(self):
        audit_logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.store_action_failed("add_transaction", "boom")
        assert asyncio.run(audit_logger.log(event)) is False

    def test_action_failed_event(self):
        storage = InMemoryAuditStorage()
        asyncio.run(AuditLogger(storage).log_action_failed("add_transaction", "offline", "t-1"))
        event = storage.events[0]
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_id == "t-1"


class TestGoogleSheetsAuditStorage:
    """Tests for the audit worksheet."""

    def test_append_and_read_back(self):
        client = FakeAuditClient()
        storage = GoogleSheetsAuditStorage(client)
        first = AuditEventBuilder.record_saved("category", "9", "Gifts")
        second = AuditEventBuilder.categories_seeded(["1", "2"])

        assert asyncio.run(storage.append_event(first)) is True
        assert asyncio.run(storage.append_event(second)) is True

        events = asyncio.run(storage.get_recent_events(limit=10))
        assert {e.event_id for e in events} == {first.event_id, second.event_id}
        seeded = next(e for e in events if e.event_id == second.event_id)
        assert seeded.details == {"category_ids": ["1", "2"]}
        assert seeded.is_user_action is False

    def test_append_failure_returns_false(self):
        client = FakeAuditClient()
        client.sheet.fail = True
        event = AuditEventBuilder.data_loaded(1, 1)
        assert asyncio.run(GoogleSheetsAuditStorage(client).append_event(event)) is False

    def test_timestamps_survive_the_sheet_with_timezone(self):
        client = FakeAuditClient()
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.record_deleted("transaction", "t-1")
        asyncio.run(storage.append_event(event))

        restored = asyncio.run(storage.get_recent_events())[0]
        assert restored.timestamp == event.timestamp
        assert restored.timestamp.utcoffset() is not None
