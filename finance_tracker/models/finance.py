"""
Core Data Models for Finance Tracker

These models define the schemas for everything the store holds and
everything the aggregator produces:
1. Transactions and categories (persisted)
2. Filters (client-only, never persisted)
3. Typed chart structures (derived, never persisted)

We use Pydantic v2 so malformed rows coming back from storage fail loudly
instead of silently turning into zero amounts or empty dates.
"""

import datetime as dt
from collections import Counter
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def new_id() -> str:
    """Generate a stable identifier for a new record."""
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement. Categories are typed the same way."""
    INCOME = "income"
    EXPENSE = "expense"


class TimeWindow(str, Enum):
    """
    Contiguous calendar-month range used for aggregation.

    The window always ends with the current month.
    """
    SIX_MONTHS = "six_months"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def months(self) -> int:
        return {
            TimeWindow.SIX_MONTHS: 6,
            TimeWindow.QUARTER: 3,
            TimeWindow.YEAR: 12,
        }[self]

    @property
    def label(self) -> str:
        return {
            TimeWindow.SIX_MONTHS: "6 Months",
            TimeWindow.QUARTER: "Quarter",
            TimeWindow.YEAR: "Year",
        }[self]


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class Category(BaseModel):
    """
    A user-defined label/colour grouping for transactions.

    Categories are typed: an income category should only be used by
    income transactions. Nothing enforces that at storage level.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: TransactionType
    color: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Display colour as #RRGGBB"
    )


class Transaction(BaseModel):
    """
    A single dated money movement.

    Amounts are always positive; the direction lives in `type`.
    Edits keep the same `id`, so the record is replaced in place.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short title shown in lists"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the movement"
    )
    type: TransactionType
    category_id: str = Field(
        ...,
        min_length=1,
        description="Reference into the category set (not enforced)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Optional free text"
    )

    @field_validator('description')
    @classmethod
    def empty_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        """A blank description is the same as no description."""
        if v is not None and not v.strip():
            return None
        return v


# Seeded on first run when the remote store has no categories
DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Salary", type=TransactionType.INCOME, color="#38B2AC"),
    Category(id="2", name="Food", type=TransactionType.EXPENSE, color="#F56565"),
    Category(id="3", name="Transportation", type=TransactionType.EXPENSE, color="#ED8936"),
    Category(id="4", name="Entertainment", type=TransactionType.EXPENSE, color="#9F7AEA"),
    Category(id="5", name="Shopping", type=TransactionType.EXPENSE, color="#4299E1"),
    Category(id="6", name="Bills", type=TransactionType.EXPENSE, color="#48BB78"),
    Category(id="7", name="Freelance", type=TransactionType.INCOME, color="#805AD5"),
    Category(id="8", name="Other", type=TransactionType.EXPENSE, color="#A0AEC0"),
)

# Shown for transactions whose category no longer exists.
# Never persisted and never part of the store's category list.
UNCATEGORIZED = Category(
    id="uncategorized",
    name="Uncategorized",
    type=TransactionType.EXPENSE,
    color="#A0AEC0",
)


# =============================================================================
# FILTER (client-only)
# =============================================================================

class Filter(BaseModel):
    """
    Query shape for the transactions view.

    Every field is optional; an unset field places no constraint.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Optional[TransactionType] = None
    category_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    search_query: Optional[str] = None

    @field_validator('category_id', 'search_query')
    @classmethod
    def blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def is_active(self) -> bool:
        """Does any field constrain the result?"""
        return any(
            value is not None
            for value in (
                self.type,
                self.category_id,
                self.start_date,
                self.end_date,
                self.search_query,
            )
        )


# =============================================================================
# DERIVED (chart) STRUCTURES
# =============================================================================

class Balance(BaseModel):
    """Income minus expense over a set of transactions."""
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class MonthlyBucket(BaseModel):
    """Income and expense sums for one calendar month."""
    model_config = ConfigDict(frozen=True)

    month_start: dt.date
    label: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class MonthlySeries(BaseModel):
    """Contiguous monthly buckets, oldest first."""
    model_config = ConfigDict(frozen=True)

    buckets: tuple[MonthlyBucket, ...] = ()

    @model_validator(mode='after')
    def validate_contiguous(self) -> 'MonthlySeries':
        for previous, current in zip(self.buckets, self.buckets[1:]):
            expected = (previous.month_start.replace(day=28) + dt.timedelta(days=4)).replace(day=1)
            if current.month_start != expected:
                raise ValueError("Monthly buckets must be contiguous and ordered oldest first")
        return self

    @property
    def labels(self) -> list[str]:
        return [bucket.label for bucket in self.buckets]

    @property
    def income_values(self) -> list[Decimal]:
        return [bucket.income for bucket in self.buckets]

    @property
    def expense_values(self) -> list[Decimal]:
        return [bucket.expense for bucket in self.buckets]


class CategorySlice(BaseModel):
    """Expense total for one category."""
    model_config = ConfigDict(frozen=True)

    category_id: str
    label: str
    color: str
    amount: Decimal


class CategoryBreakdown(BaseModel):
    """Expense totals per category, largest first."""
    model_config = ConfigDict(frozen=True)

    slices: tuple[CategorySlice, ...] = ()

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self.slices]

    @property
    def display_labels(self) -> list[str]:
        """
        Labels that are unique per slice.

        Category names may repeat, so a repeated name gets a short id suffix.
        """
        counts = Counter(s.label for s in self.slices)
        return [
            s.label if counts[s.label] == 1 else f"{s.label} ({s.category_id[:8]})"
            for s in self.slices
        ]

    @property
    def colors(self) -> list[str]:
        return [s.color for s in self.slices]

    @property
    def amounts(self) -> list[Decimal]:
        return [s.amount for s in self.slices]

    @property
    def total(self) -> Decimal:
        return sum(self.amounts, Decimal("0"))


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction as submitted by a form.

    All fields are optional because the user may leave any of them blank.
    It must pass validation before it becomes a Transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    title: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    type: TransactionType = TransactionType.EXPENSE
    category_id: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> 'TransactionDraft':
        """Prefill a draft for editing an existing transaction."""
        return cls(**transaction.model_dump())


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'type_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a draft before submission.

    Errors block submission; warnings are shown but don't block.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def errors_by_field(self) -> dict[str, str]:
        """First error message per field, for inline form feedback."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors
