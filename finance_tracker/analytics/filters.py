"""
Transaction Filtering

The transactions view narrows the list with a Filter. Each set field adds
one predicate; all predicates must hold. Unset fields place no constraint,
so the order the predicates run in never changes the result.
"""

from collections.abc import Callable, Iterable, Sequence

from finance_tracker.models.finance import UNCATEGORIZED, Category, Filter, Transaction


Predicate = Callable[[Transaction], bool]


def build_predicates(criteria: Filter) -> list[Predicate]:
    """One predicate per set filter field."""
    predicates: list[Predicate] = []

    if criteria.type is not None:
        predicates.append(lambda t: t.type == criteria.type)

    if criteria.category_id is not None:
        predicates.append(lambda t: t.category_id == criteria.category_id)

    # Both date bounds are inclusive
    if criteria.start_date is not None:
        predicates.append(lambda t: t.date >= criteria.start_date)

    if criteria.end_date is not None:
        predicates.append(lambda t: t.date <= criteria.end_date)

    if criteria.search_query is not None:
        query = criteria.search_query.lower()
        predicates.append(
            lambda t: query in t.title.lower()
            or (t.description is not None and query in t.description.lower())
        )

    return predicates


def matches(transaction: Transaction, criteria: Filter) -> bool:
    return all(predicate(transaction) for predicate in build_predicates(criteria))


def apply_filters(transactions: Iterable[Transaction], criteria: Filter) -> list[Transaction]:
    """Transactions matching every set field, newest first."""
    predicates = build_predicates(criteria)
    filtered = [t for t in transactions if all(p(t) for p in predicates)]
    filtered.sort(key=lambda t: t.date, reverse=True)
    return filtered


def resolve_category(categories: Sequence[Category], category_id: str) -> Category:
    """The category with this id, or the Uncategorized placeholder."""
    for category in categories:
        if category.id == category_id:
            return category
    return UNCATEGORIZED
