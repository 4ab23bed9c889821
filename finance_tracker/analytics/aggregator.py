"""
Aggregation

Pure functions that derive balances and chart data from the transaction
list. Nothing here touches storage or the store; views call these on every
render with whatever the store currently holds.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from finance_tracker.analytics.filters import resolve_category
from finance_tracker.models.finance import (
    Balance,
    Category,
    CategoryBreakdown,
    CategorySlice,
    MonthlyBucket,
    MonthlySeries,
    TimeWindow,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")

WindowLike = Union[TimeWindow, int]


def _months(window: WindowLike) -> int:
    months = window.months if isinstance(window, TimeWindow) else int(window)
    if months < 1:
        raise ValueError("Window must cover at least one month")
    return months


def add_months(month_start: date, months: int) -> date:
    """First day of the month `months` away from `month_start` (may be negative)."""
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def window_start(window: WindowLike, today: Optional[date] = None) -> date:
    """First day of the earliest month in the window ending with today's month."""
    today = today or date.today()
    return add_months(today.replace(day=1), -(_months(window) - 1))


def balance(transactions: Iterable[Transaction]) -> Balance:
    """
    Income minus expense.

    Empty input gives all zeros.
    """
    income = ZERO
    expense = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount
    return Balance(total=income - expense, income=income, expense=expense)


def monthly_series(
    transactions: Iterable[Transaction],
    window: WindowLike = TimeWindow.SIX_MONTHS,
    today: Optional[date] = None,
) -> MonthlySeries:
    """
    Income and expense per calendar month across the window.

    Always one bucket per month, oldest first, ending with the current
    month. Months without transactions are zero. Transactions outside the
    window are ignored.
    """
    first = window_start(window, today)
    months = _months(window)
    starts = [add_months(first, offset) for offset in range(months)]

    income = {start: ZERO for start in starts}
    expense = {start: ZERO for start in starts}
    for transaction in transactions:
        key = transaction.date.replace(day=1)
        if key not in income:
            continue
        if transaction.type == TransactionType.INCOME:
            income[key] += transaction.amount
        else:
            expense[key] += transaction.amount

    return MonthlySeries(
        buckets=tuple(
            MonthlyBucket(
                month_start=start,
                label=start.strftime("%b %Y"),
                income=income[start],
                expense=expense[start],
            )
            for start in starts
        )
    )


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: Sequence[Category],
    window: WindowLike = TimeWindow.SIX_MONTHS,
    today: Optional[date] = None,
) -> CategoryBreakdown:
    """
    Expense totals per category within the window.

    Only expenses dated from the start of the window up to and including
    today count. Categories without activity are left out. Ids that no
    longer match a category fall back to the "Uncategorized" label and
    colour. Largest slice first.
    """
    today = today or date.today()
    start = window_start(window, today)

    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        if not start <= transaction.date <= today:
            continue
        totals[transaction.category_id] = totals.get(transaction.category_id, ZERO) + transaction.amount

    slices = []
    for category_id, amount in totals.items():
        category = resolve_category(categories, category_id)
        slices.append(
            CategorySlice(
                category_id=category_id,
                label=category.name,
                color=category.color,
                amount=amount,
            )
        )
    slices.sort(key=lambda s: (-s.amount, s.label))
    return CategoryBreakdown(slices=tuple(slices))
