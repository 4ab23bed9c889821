"""
Wire Mapping

Pure conversions between stored rows and in-memory models.

Rows are keyed by snake_case column names (`category_id`, `created_at`,
`user_id`). Every value is written as text so any table store can hold it.
Mapping a model to a record and back yields an equal model; only the
server-assigned `created_at` and the unused `user_id` are dropped on the
way in.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import ValidationError

from finance_tracker.models.finance import Category, Transaction, TransactionType


TRANSACTION_COLUMNS = [
    "id",
    "title",
    "amount",
    "date",
    "type",
    "category_id",
    "description",
    "created_at",
    "user_id",
]

CATEGORY_COLUMNS = [
    "id",
    "name",
    "type",
    "color",
    "user_id",
]


class MalformedRowError(ValueError):
    """A stored row can't be turned into a model."""
    pass


def _text(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _required(record: Mapping[str, Any], key: str) -> str:
    value = _text(record, key)
    if not value:
        raise MalformedRowError(f"Missing required column: {key}")
    return value


def format_amount(amount: Decimal) -> str:
    """Plain decimal notation, never scientific."""
    return format(amount, "f")


# =============================================================================
# TRANSACTIONS
# =============================================================================

def transaction_to_record(
    transaction: Transaction,
    created_at: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> dict[str, str]:
    """Convert a Transaction to a stored record."""
    return {
        "id": transaction.id,
        "title": transaction.title,
        "amount": format_amount(transaction.amount),
        "date": transaction.date.isoformat(),
        "type": transaction.type.value,
        "category_id": transaction.category_id,
        "description": transaction.description or "",
        "created_at": created_at.isoformat() if created_at else "",
        "user_id": user_id or "",
    }


def record_to_transaction(record: Mapping[str, Any]) -> Transaction:
    """
    Convert a stored record to a Transaction.

    Raises:
        MalformedRowError: If a column is missing or unparseable
    """
    try:
        return Transaction(
            id=_required(record, "id"),
            title=_required(record, "title"),
            amount=Decimal(_required(record, "amount")),
            date=date.fromisoformat(_required(record, "date")),
            type=TransactionType(_required(record, "type")),
            category_id=_required(record, "category_id"),
            description=_text(record, "description") or None,
        )
    except (InvalidOperation, ValidationError, ValueError) as e:
        if isinstance(e, MalformedRowError):
            raise
        raise MalformedRowError(f"Invalid transaction row: {e}") from e


# =============================================================================
# CATEGORIES
# =============================================================================

def category_to_record(
    category: Category,
    user_id: Optional[str] = None,
) -> dict[str, str]:
    """Convert a Category to a stored record."""
    return {
        "id": category.id,
        "name": category.name,
        "type": category.type.value,
        "color": category.color,
        "user_id": user_id or "",
    }


def record_to_category(record: Mapping[str, Any]) -> Category:
    """
    Convert a stored record to a Category.

    Raises:
        MalformedRowError: If a column is missing or unparseable
    """
    try:
        return Category(
            id=_required(record, "id"),
            name=_required(record, "name"),
            type=TransactionType(_required(record, "type")),
            color=_required(record, "color"),
        )
    except (ValidationError, ValueError) as e:
        if isinstance(e, MalformedRowError):
            raise
        raise MalformedRowError(f"Invalid category row: {e}") from e


# =============================================================================
# ROWS (positional cells, as a worksheet holds them)
# =============================================================================

def record_to_row(record: Mapping[str, Any], columns: Sequence[str]) -> list[str]:
    """Order a record's values by column."""
    return [_text(record, column) for column in columns]


def row_to_record(row: Sequence[Any], columns: Sequence[str]) -> dict[str, str]:
    """Key a positional row by column. Short rows are padded with blanks."""
    padded = list(row) + [""] * (len(columns) - len(row))
    return {
        column: str(value) if value is not None else ""
        for column, value in zip(columns, padded)
    }
