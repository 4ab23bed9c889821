"""
Services Package

External services used by the Finance Tracker. Currently only storage.
"""

from finance_tracker.services.storage import (
    CategoryStorageInterface,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "CategoryStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
]
