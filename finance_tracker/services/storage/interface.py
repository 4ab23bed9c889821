"""
Abstract Storage Interface

We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for testing
3. Keep the store decoupled from storage implementation

The interface is intentionally simple - list, insert, update, delete per
entity kind. Filtering and aggregation happen in Python on the loaded lists.
"""

from abc import ABC, abstractmethod

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.finance import Category, Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_transactions(
        self,
        order_by_date_desc: bool = True,
    ) -> list[Transaction]:
        """
        List all transactions.

        Args:
            order_by_date_desc: Sort newest first. Otherwise storage order.

        Raises:
            StorageError: If the listing fails
        """
        pass

    @abstractmethod
    async def insert_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert a new transaction.

        Returns:
            The transaction as stored

        Raises:
            DuplicateError: If the id is already taken
            StorageError: If insert fails
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        transaction: Transaction,
    ) -> Transaction:
        """
        Replace the stored fields of an existing transaction.

        The stored record keeps `transaction_id` even if `transaction.id`
        differs.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        """
        Delete a transaction by ID. Deleting a missing id is a no-op.

        Raises:
            StorageError: If delete fails
        """
        pass


class CategoryStorageInterface(ABC):
    """
    Abstract interface for category storage operations.

    Deleting a category does not cascade to transactions; a backend may
    refuse the delete (e.g. a foreign-key violation) by raising StorageError.
    """

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """List all categories in storage order."""
        pass

    @abstractmethod
    async def insert_category(self, category: Category) -> Category:
        """Insert a new category and return it as stored."""
        pass

    @abstractmethod
    async def update_category(self, category_id: str, category: Category) -> Category:
        """Replace the stored fields of an existing category."""
        pass

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a category by ID."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get the most recent audit events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
