"""Tests for form validation."""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models.finance import (
    DEFAULT_CATEGORIES,
    TransactionDraft,
    TransactionType,
)
from finance_tracker.validation import CategoryValidator, TransactionValidator


@pytest.fixture
def validator():
    return TransactionValidator()


def valid_draft(**overrides):
    values = dict(
        title="Lunch",
        amount=Decimal("12"),
        date=date(2024, 3, 1),
        type=TransactionType.EXPENSE,
        category_id="2",
    )
    values.update(overrides)
    return TransactionDraft(**values)


class TestTransactionValidator:
    """Tests for transaction drafts."""

    def test_valid_draft(self, validator):
        result = validator.validate(valid_draft(), DEFAULT_CATEGORIES)
        assert result.is_valid
        assert result.issues == []

    def test_empty_draft_reports_every_required_field(self, validator):
        result = validator.validate(TransactionDraft())
        assert not result.is_valid
        assert result.errors_by_field() == {
            "title": "Title is required",
            "amount": "Amount is required",
            "date": "Date is required",
            "category_id": "Category is required",
        }

    def test_zero_amount_is_rejected(self, validator):
        result = validator.validate(valid_draft(amount=Decimal("0")))
        assert result.errors_by_field() == {"amount": "Amount must be greater than 0"}

    def test_category_of_other_type_only_warns(self, validator):
        result = validator.validate(valid_draft(category_id="1"), DEFAULT_CATEGORIES)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "Salary" in result.warnings[0]

    def test_deleted_category_only_warns(self, validator):
        result = validator.validate(valid_draft(category_id="gone"), DEFAULT_CATEGORIES)
        assert result.is_valid
        assert result.warnings == ["Selected category no longer exists"]

    def test_to_transaction_assigns_an_id(self, validator):
        transaction = validator.to_transaction(valid_draft(description=""))
        assert transaction.id
        assert transaction.description is None

    def test_to_transaction_keeps_id_when_editing(self, validator):
        transaction = validator.to_transaction(valid_draft(id="existing"))
        assert transaction.id == "existing"

    def test_to_transaction_rejects_invalid_draft(self, validator):
        with pytest.raises(ValueError, match="Title is required"):
            validator.to_transaction(valid_draft(title=""))


class TestCategoryValidator:
    """Tests for category input."""

    def test_valid_category(self):
        category = CategoryValidator().to_category("Gifts", TransactionType.EXPENSE, "#123abc")
        assert category.name == "Gifts"
        assert category.id

    def test_name_and_color_required(self):
        result = CategoryValidator().validate("  ", TransactionType.EXPENSE, "nope")
        assert set(result.errors_by_field()) == {"name", "color"}

    def test_duplicate_name_warns(self):
        result = CategoryValidator().validate(
            "food", TransactionType.EXPENSE, "#000000", DEFAULT_CATEGORIES
        )
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_renaming_itself_is_not_a_duplicate(self):
        result = CategoryValidator().validate(
            "Food", TransactionType.EXPENSE, "#000000", DEFAULT_CATEGORIES, category_id="2"
        )
        assert result.warnings == []
