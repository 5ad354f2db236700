"""Category ordering strategies for matrix layout.

ShortLex orders strings by length first and lexicographically second, so
short (broad) category ids lead the matrix and longer (nested) ids follow.
"""

from collections.abc import Iterable, Sequence

from trustdebt.errors import ConfigurationError
from trustdebt.models.category import CategorySet

ORDERINGS = ("config", "shortlex")


def shortlex_key(value: str) -> tuple[int, str]:
    """Sort key for ShortLex ordering."""
    return (len(value), value)


def shortlex_order(ids: Iterable[str]) -> list[str]:
    """Return ids in ShortLex order."""
    return sorted(ids, key=shortlex_key)


def validate_shortlex(ids: Sequence[str]) -> list[str]:
    """Check that ids are in ShortLex order.

    Returns:
        Descriptions of every adjacent pair that is out of order (empty if valid)
    """
    violations = []
    for previous, current in zip(ids, ids[1:]):
        if shortlex_key(previous) > shortlex_key(current):
            violations.append(f"'{previous}' should come after '{current}'")
    return violations


def apply_ordering(categories: CategorySet, ordering: str) -> CategorySet:
    """Reorder a category set according to the configured strategy.

    Args:
        categories: Category set in document order
        ordering: "config" (keep document order) or "shortlex"

    Raises:
        ConfigurationError: If the strategy is unknown
    """
    if ordering == "config":
        return categories
    if ordering == "shortlex":
        return categories.reordered(shortlex_order(categories.ids))
    raise ConfigurationError(f"Unknown ordering: {ordering}. Valid: {list(ORDERINGS)}")
