"""
Form Validation

Drafts are checked before they reach the store, so a missing title or a
zero amount never costs a remote call.

Errors block submission. Warnings (a category of the wrong type, a
duplicate category name) are shown but don't block - nothing downstream
enforces category consistency either.

Validation NEVER silently fixes issues. It reports them to the form.
"""

import re
from collections.abc import Sequence
from typing import Optional

from pydantic import ValidationError

from finance_tracker.models.finance import (
    Category,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    new_id,
)


HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _result(issues: list[ValidationIssue]) -> ValidationResult:
    return ValidationResult(
        is_valid=not any(issue.severity == "error" for issue in issues),
        issues=issues,
    )


class TransactionValidator:
    """Validates transaction drafts submitted by the add/edit form."""

    def validate(
        self,
        draft: TransactionDraft,
        categories: Sequence[Category] = (),
    ) -> ValidationResult:
        """
        Check required fields and category consistency.

        Args:
            draft: The submitted form values
            categories: Known categories, for the consistency warnings
        """
        issues = []

        if not draft.title:
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Title is required",
                severity="error",
            ))

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than 0",
                severity="error",
            ))

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        if not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        elif categories:
            category = next((c for c in categories if c.id == draft.category_id), None)
            if category is None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_reference",
                    message="Selected category no longer exists",
                    severity="warning",
                ))
            elif category.type != draft.type:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message=(
                        f"Category '{category.name}' is for {category.type.value}, "
                        f"not {draft.type.value}"
                    ),
                    severity="warning",
                ))

        return _result(issues)

    def to_transaction(
        self,
        draft: TransactionDraft,
        categories: Sequence[Category] = (),
    ) -> Transaction:
        """
        Build the Transaction for a valid draft.

        A draft without an id gets a new one; an edited draft keeps its id.

        Raises:
            ValueError: If the draft has validation errors
        """
        result = self.validate(draft, categories)
        if result.has_errors:
            raise ValueError(
                "; ".join(result.errors_by_field().values())
            )
        try:
            return Transaction(
                id=draft.id or new_id(),
                title=draft.title,
                amount=draft.amount,
                date=draft.date,
                type=draft.type,
                category_id=draft.category_id,
                description=draft.description,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid transaction: {e}") from e


class CategoryValidator:
    """Validates category form input."""

    def validate(
        self,
        name: Optional[str],
        category_type: TransactionType,
        color: Optional[str],
        existing: Sequence[Category] = (),
        category_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Args:
            existing: Current categories, for the duplicate-name warning
            category_id: Id of the category being edited, if any
        """
        issues = []
        name = (name or "").strip()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
            ))
        elif any(
            c.name.lower() == name.lower() and c.type == category_type and c.id != category_id
            for c in existing
        ):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A {category_type.value} category named '{name}' already exists",
                severity="warning",
            ))

        if not color or not HEX_COLOR.match(color):
            issues.append(ValidationIssue(
                field="color",
                issue_type="invalid_format",
                message="Colour must look like #RRGGBB",
                severity="error",
            ))

        return _result(issues)

    def to_category(
        self,
        name: Optional[str],
        category_type: TransactionType,
        color: Optional[str],
        existing: Sequence[Category] = (),
        category_id: Optional[str] = None,
    ) -> Category:
        """
        Build the Category for valid input.

        Raises:
            ValueError: If the input has validation errors
        """
        result = self.validate(name, category_type, color, existing, category_id)
        if result.has_errors:
            raise ValueError("; ".join(result.errors_by_field().values()))
        return Category(
            id=category_id or new_id(),
            name=name,
            type=category_type,
            color=color,
        )
