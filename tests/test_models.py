"""
Tests for Finance Tracker

Test strategy:
1. Unit tests for individual components (models, aggregation, filtering, validators)
2. Store tests against the in-memory backend
3. No real API calls in tests (Google Sheets is replaced by fakes)
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from finance_tracker.models.finance import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED,
    Category,
    Filter,
    MonthlyBucket,
    MonthlySeries,
    TimeWindow,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction and category models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        transaction = Transaction(
            title="Lunch",
            amount=Decimal("12.50"),
            date=date(2024, 3, 5),
            type=TransactionType.EXPENSE,
            category_id="2",
        )
        assert transaction.title == "Lunch"
        assert transaction.amount == Decimal("12.50")
        assert transaction.description is None
        assert transaction.id

    def test_generated_ids_are_unique(self):
        """Two new transactions never share an id."""
        kwargs = dict(
            title="Coffee",
            amount=Decimal("3"),
            date=date(2024, 3, 5),
            type=TransactionType.EXPENSE,
            category_id="2",
        )
        assert Transaction(**kwargs).id != Transaction(**kwargs).id

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from the title."""
        transaction = Transaction(
            title="  Rent  ",
            amount=Decimal("900"),
            date=date(2024, 3, 1),
            type=TransactionType.EXPENSE,
            category_id="6",
        )
        assert transaction.title == "Rent"

    def test_transaction_rejects_non_positive_amount(self):
        """Amounts must be strictly positive; direction lives in the type."""
        for amount in (Decimal("0"), Decimal("-10")):
            with pytest.raises(ValueError):
                Transaction(
                    title="Test",
                    amount=amount,
                    date=date(2024, 3, 1),
                    type=TransactionType.EXPENSE,
                    category_id="2",
                )

    def test_blank_description_becomes_none(self):
        transaction = Transaction(
            title="Bus",
            amount=Decimal("2"),
            date=date(2024, 3, 1),
            type=TransactionType.EXPENSE,
            category_id="3",
            description="   ",
        )
        assert transaction.description is None

    def test_category_rejects_bad_color(self):
        """Test that colours must be #RRGGBB."""
        with pytest.raises(ValueError):
            Category(name="Food", type=TransactionType.EXPENSE, color="red")

    def test_default_categories(self):
        """Test the seeded category set."""
        assert len(DEFAULT_CATEGORIES) == 8
        assert [c.id for c in DEFAULT_CATEGORIES] == [str(i) for i in range(1, 9)]
        income = {c.name for c in DEFAULT_CATEGORIES if c.type == TransactionType.INCOME}
        assert income == {"Salary", "Freelance"}

    def test_uncategorized_is_not_a_default(self):
        assert UNCATEGORIZED.name == "Uncategorized"
        assert UNCATEGORIZED.id not in {c.id for c in DEFAULT_CATEGORIES}

    def test_draft_from_transaction(self):
        """Editing prefills every field, id included."""
        transaction = Transaction(
            title="Salary",
            amount=Decimal("5000"),
            date=date(2024, 3, 1),
            type=TransactionType.INCOME,
            category_id="1",
        )
        draft = TransactionDraft.from_transaction(transaction)
        assert draft.id == transaction.id
        assert draft.type == TransactionType.INCOME
        assert draft.amount == Decimal("5000")


class TestFilterModel:
    """Tests for the client-only filter."""

    def test_empty_filter_is_inactive(self):
        assert not Filter().is_active

    def test_blank_strings_are_unset(self):
        criteria = Filter(category_id="", search_query="   ")
        assert criteria.category_id is None
        assert criteria.search_query is None
        assert not criteria.is_active

    def test_any_field_makes_it_active(self):
        assert Filter(type=TransactionType.INCOME).is_active
        assert Filter(end_date=date(2024, 1, 1)).is_active


class TestChartModels:
    """Tests for the derived chart structures."""

    def test_time_window_months(self):
        assert TimeWindow.SIX_MONTHS.months == 6
        assert TimeWindow.QUARTER.months == 3
        assert TimeWindow.YEAR.months == 12
        assert TimeWindow.SIX_MONTHS.label == "6 Months"

    def test_monthly_series_rejects_gaps(self):
        """Buckets must be contiguous months, oldest first."""
        with pytest.raises(ValueError):
            MonthlySeries(buckets=(
                MonthlyBucket(month_start=date(2024, 1, 1), label="Jan 2024"),
                MonthlyBucket(month_start=date(2024, 3, 1), label="Mar 2024"),
            ))

    def test_monthly_series_across_year_end(self):
        series = MonthlySeries(buckets=(
            MonthlyBucket(month_start=date(2023, 12, 1), label="Dec 2023"),
            MonthlyBucket(month_start=date(2024, 1, 1), label="Jan 2024"),
        ))
        assert series.labels == ["Dec 2023", "Jan 2024"]
        assert series.income_values == [Decimal("0"), Decimal("0")]


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction saved: Lunch",
        )
        assert isinstance(event.event_id, UUID)
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_timestamp_is_utc(self):
        """Audit timestamps carry a UTC offset, like stored created_at values."""
        event = AuditEventBuilder.data_loaded(0, 8)
        assert event.timestamp.utcoffset() == timedelta(0)

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id="3",
            description="Category deleted: 3",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "category_deleted"
        assert log_dict["entity_id"] == "3"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to a spreadsheet row."""
        event = AuditEventBuilder.data_loaded(4, 8)
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[2] == "data_loaded"
        assert '"transaction_count": 4' in row[7]

    def test_audit_event_builder_record_saved(self):
        event = AuditEventBuilder.record_saved("transaction", "abc", "Lunch")
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.is_user_action
        assert "Lunch" in event.description

    def test_audit_event_builder_store_action_failed(self):
        event = AuditEventBuilder.store_action_failed("delete_category", "boom", "4")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
        assert event.details == {"action": "delete_category"}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="title",
                    issue_type="missing",
                    message="Title is required",
                    severity="error",
                ),
                ValidationIssue(
                    field="title",
                    issue_type="too_long",
                    message="Second error",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 2
        assert result.errors_by_field() == {"title": "Title is required"}

    def test_validation_result_warnings_only(self):
        """Test result with only warnings."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message="Category is for income",
                    severity="warning",
                ),
            ],
        )
        assert not result.has_errors
        assert result.warnings == ["Category is for income"]
