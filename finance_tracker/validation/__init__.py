"""Validation package."""

from finance_tracker.validation.validator import CategoryValidator, TransactionValidator

__all__ = ["CategoryValidator", "TransactionValidator"]
