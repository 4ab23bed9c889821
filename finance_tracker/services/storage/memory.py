"""
In-Memory Storage Implementation

Same contract as the Google Sheets backend, kept in process memory.
Used by the test suite and when the app runs with
APP storage_backend=memory (nothing survives a restart).

Records are held in their wire form, so every read goes through the same
mapping a remote backend uses.
"""

from datetime import datetime, timezone
from typing import Optional

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.finance import Category, Transaction
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.services.storage.mapping import (
    category_to_record,
    record_to_category,
    record_to_transaction,
    transaction_to_record,
)


class _FailureSwitch:
    """Lets a test make the next calls fail like an unreachable backend."""

    def __init__(self):
        self.fail_with: Optional[str] = None

    def _check(self, operation: str) -> None:
        if self.fail_with is not None:
            raise StorageError(f"Failed to {operation}: {self.fail_with}")


class InMemoryTransactionStorage(_FailureSwitch, TransactionStorageInterface):
    """Transactions kept as wire records, in insertion order."""

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        super().__init__()
        self._rows: list[dict[str, str]] = []
        for transaction in transactions or []:
            self._rows.append(
                transaction_to_record(transaction, created_at=datetime.now(timezone.utc))
            )

    def _index(self, transaction_id: str) -> Optional[int]:
        for idx, row in enumerate(self._rows):
            if row["id"] == transaction_id:
                return idx
        return None

    async def list_transactions(
        self,
        order_by_date_desc: bool = True,
    ) -> list[Transaction]:
        self._check("list transactions")
        transactions = [record_to_transaction(row) for row in self._rows]
        if order_by_date_desc:
            transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def insert_transaction(self, transaction: Transaction) -> Transaction:
        self._check("save transaction")
        if self._index(transaction.id) is not None:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        record = transaction_to_record(transaction, created_at=datetime.now(timezone.utc))
        self._rows.append(record)
        return record_to_transaction(record)

    async def update_transaction(
        self,
        transaction_id: str,
        transaction: Transaction,
    ) -> Transaction:
        self._check("update transaction")
        idx = self._index(transaction_id)
        if idx is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        record = transaction_to_record(transaction.model_copy(update={"id": transaction_id}))
        record["created_at"] = self._rows[idx]["created_at"]
        record["user_id"] = self._rows[idx]["user_id"]
        self._rows[idx] = record
        return record_to_transaction(record)

    async def delete_transaction(self, transaction_id: str) -> None:
        self._check("delete transaction")
        idx = self._index(transaction_id)
        if idx is not None:
            del self._rows[idx]


class InMemoryCategoryStorage(_FailureSwitch, CategoryStorageInterface):
    """
    Categories kept as wire records, in insertion order.

    With `enforce_references` set, deleting a category that a transaction
    still uses fails the way a foreign-key constraint would.
    """

    def __init__(
        self,
        categories: Optional[list[Category]] = None,
        transactions: Optional[InMemoryTransactionStorage] = None,
        enforce_references: bool = False,
    ):
        super().__init__()
        self._rows: list[dict[str, str]] = [
            category_to_record(category) for category in categories or []
        ]
        self._transactions = transactions
        self._enforce_references = enforce_references

    def _index(self, category_id: str) -> Optional[int]:
        for idx, row in enumerate(self._rows):
            if row["id"] == category_id:
                return idx
        return None

    async def list_categories(self) -> list[Category]:
        self._check("list categories")
        return [record_to_category(row) for row in self._rows]

    async def insert_category(self, category: Category) -> Category:
        self._check("save category")
        if self._index(category.id) is not None:
            raise DuplicateError(f"Category already exists: {category.id}")
        record = category_to_record(category)
        self._rows.append(record)
        return record_to_category(record)

    async def update_category(self, category_id: str, category: Category) -> Category:
        self._check("update category")
        idx = self._index(category_id)
        if idx is None:
            raise NotFoundError(f"Category not found: {category_id}")
        record = category_to_record(
            category.model_copy(update={"id": category_id}),
            user_id=self._rows[idx]["user_id"] or None,
        )
        self._rows[idx] = record
        return record_to_category(record)

    async def delete_category(self, category_id: str) -> None:
        self._check("delete category")
        if self._enforce_references and self._transactions is not None:
            in_use = [
                t for t in await self._transactions.list_transactions()
                if t.category_id == category_id
            ]
            if in_use:
                raise StorageError(
                    f"Category {category_id} is referenced by {len(in_use)} transactions"
                )
        idx = self._index(category_id)
        if idx is not None:
            del self._rows[idx]


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
