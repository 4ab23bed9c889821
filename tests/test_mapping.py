"""Tests for converting between stored rows and models."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from finance_tracker.models.finance import Category, Transaction, TransactionType
from finance_tracker.services.storage.mapping import (
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
    MalformedRowError,
    category_to_record,
    record_to_category,
    record_to_row,
    record_to_transaction,
    row_to_record,
    transaction_to_record,
)


@pytest.fixture
def transaction():
    return Transaction(
        id="t-1",
        title="Electricity",
        amount=Decimal("1234.50"),
        date=date(2024, 2, 29),
        type=TransactionType.EXPENSE,
        category_id="6",
        description="February bill",
    )


class TestTransactionMapping:
    """Tests for transaction records."""

    def test_record_uses_snake_case_columns(self, transaction):
        record = transaction_to_record(transaction)
        assert list(record) == TRANSACTION_COLUMNS
        assert record["category_id"] == "6"
        assert record["amount"] == "1234.50"
        assert record["date"] == "2024-02-29"
        assert record["type"] == "expense"

    def test_model_survives_the_trip(self, transaction):
        created = datetime(2024, 3, 1, tzinfo=timezone.utc)
        record = transaction_to_record(transaction, created_at=created, user_id="u-1")
        assert record["created_at"] == created.isoformat()
        assert record_to_transaction(record) == transaction

    def test_missing_description_is_none(self, transaction):
        record = transaction_to_record(transaction.model_copy(update={"description": None}))
        assert record["description"] == ""
        assert record_to_transaction(record).description is None

    def test_large_amount_is_not_scientific(self, transaction):
        record = transaction_to_record(
            transaction.model_copy(update={"amount": Decimal("1E+7")})
        )
        assert record["amount"] == "10000000"

    @pytest.mark.parametrize(
        "column, value",
        [
            ("amount", "twelve"),
            ("amount", "-5"),
            ("date", "29/02/2024"),
            ("type", "transfer"),
            ("title", ""),
        ],
    )
    def test_malformed_rows_are_rejected(self, transaction, column, value):
        record = transaction_to_record(transaction)
        record[column] = value
        with pytest.raises(MalformedRowError):
            record_to_transaction(record)


class TestCategoryMapping:
    """Tests for category records."""

    def test_model_survives_the_trip(self):
        category = Category(id="9", name="Gifts", type=TransactionType.EXPENSE, color="#112233")
        record = category_to_record(category)
        assert list(record) == CATEGORY_COLUMNS
        assert record_to_category(record) == category

    def test_bad_color_is_malformed(self):
        with pytest.raises(MalformedRowError):
            record_to_category({"id": "9", "name": "Gifts", "type": "expense", "color": "blue"})


class TestRows:
    """Tests for positional worksheet rows."""

    def test_short_rows_are_padded(self):
        record = row_to_record(["1", "Salary", "income", "#38B2AC"], CATEGORY_COLUMNS)
        assert record["user_id"] == ""
        assert record_to_category(record).name == "Salary"

    def test_row_follows_column_order(self, transaction):
        row = record_to_row(transaction_to_record(transaction), TRANSACTION_COLUMNS)
        assert row[:3] == ["t-1", "Electricity", "1234.50"]
        assert len(row) == len(TRANSACTION_COLUMNS)
