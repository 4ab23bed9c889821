"""Balance, chart and filter computations over the transaction list."""

from finance_tracker.analytics.aggregator import (
    add_months,
    balance,
    category_breakdown,
    monthly_series,
    window_start,
)
from finance_tracker.analytics.filters import (
    apply_filters,
    build_predicates,
    matches,
    resolve_category,
)

__all__ = [
    "add_months",
    "apply_filters",
    "balance",
    "build_predicates",
    "category_breakdown",
    "matches",
    "monthly_series",
    "resolve_category",
    "window_start",
]
