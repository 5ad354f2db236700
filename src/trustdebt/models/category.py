"""Category taxonomy entities.

A category is a named, keyword-defined semantic bucket. Categories form a
hierarchy through `parent_id`; the depth of each node is derived from its
parent chain when the set is loaded.

The category document is YAML (JSON is accepted, being a YAML subset):

    categories:
      - id: measurement
        name: Measurement
        weight: 40
        keywords: [measure, analyze, score]
      - id: drift
        name: Drift Detection
        parent: measurement
        weight: 20
        keywords: [drift, divergence, gap]

Validation Rules:
    - id is a non-empty string, unique within the set
    - keywords is a non-empty list of non-empty strings
    - weight is a number > 0
    - parent (optional) references another category; no cycles
"""

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from trustdebt.errors import ConfigurationError


@dataclass(frozen=True)
class Category:
    """A named, keyword-defined category.

    Attributes:
        id: Unique identifier within the category set
        name: Human-readable name
        keywords: Keyword set used for similarity scoring
        weight: Importance weight (> 0)
        parent_id: Identifier of the parent category (None for roots)
        depth: Distance from the root of the hierarchy (roots are 0)
    """

    id: str
    name: str
    keywords: frozenset[str]
    weight: float
    parent_id: str | None = None
    depth: int = 0

    def __post_init__(self) -> None:
        """Validate category invariants."""
        if not self.id or not self.id.strip():
            raise ConfigurationError("Category id cannot be empty")
        if not self.keywords:
            raise ConfigurationError(f"Category '{self.id}' has no keywords")
        if any(not k.strip() for k in self.keywords):
            raise ConfigurationError(f"Category '{self.id}' has an empty keyword")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int | float):
            raise ConfigurationError(f"Category '{self.id}' weight must be a number")
        if not math.isfinite(self.weight) or self.weight <= 0:
            raise ConfigurationError(
                f"Category '{self.id}' weight must be > 0 (got {self.weight})"
            )
        if self.depth < 0:
            raise ConfigurationError(f"Category '{self.id}' depth must be >= 0")

    @property
    def sorted_keywords(self) -> list[str]:
        """Keywords in deterministic order."""
        return sorted(self.keywords)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "parent": self.parent_id,
            "keywords": self.sorted_keywords,
            "weight": self.weight,
            "depth": self.depth,
        }


class CategorySet:
    """Ordered, validated collection of categories.

    The order of the set is the order of matrix rows and columns. It is
    fixed at construction; `reordered` returns a new set.
    """

    def __init__(self, categories: Sequence[Category]) -> None:
        """Initialize and validate the category set.

        Args:
            categories: Categories in matrix order

        Raises:
            ConfigurationError: If the set is empty, ids collide, a parent is
                unknown, or the parent graph contains a cycle
        """
        if not categories:
            raise ConfigurationError("Category set is empty")

        self._categories: tuple[Category, ...] = tuple(categories)
        self._index: dict[str, int] = {}

        for position, category in enumerate(self._categories):
            if category.id in self._index:
                raise ConfigurationError(f"Duplicate category id: '{category.id}'")
            self._index[category.id] = position

        for category in self._categories:
            if category.parent_id is not None and category.parent_id not in self._index:
                raise ConfigurationError(
                    f"Category '{category.id}' references unknown parent "
                    f"'{category.parent_id}'"
                )
        _check_acyclic(self._categories)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __getitem__(self, position: int) -> Category:
        return self._categories[position]

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._index

    @property
    def ids(self) -> list[str]:
        """Category ids in matrix order."""
        return [c.id for c in self._categories]

    def get(self, category_id: str) -> Category:
        """Look up a category by id.

        Raises:
            KeyError: If no category has this id
        """
        return self._categories[self._index[category_id]]

    def index_of(self, category_id: str) -> int:
        """Return the matrix position of a category."""
        return self._index[category_id]

    def children_of(self, category_id: str) -> list[Category]:
        """Return direct children of a category, in set order."""
        return [c for c in self._categories if c.parent_id == category_id]

    def reordered(self, ids: Sequence[str]) -> "CategorySet":
        """Return a new set with the given id order.

        Args:
            ids: Every category id exactly once

        Raises:
            ConfigurationError: If ids is not a permutation of the set's ids
        """
        if sorted(ids) != sorted(self._index):
            raise ConfigurationError("Reordering must list every category exactly once")
        return CategorySet([self.get(category_id) for category_id in ids])

    def to_list(self) -> list[dict[str, Any]]:
        """Convert to list of dictionaries for serialization."""
        return [c.to_dict() for c in self._categories]


def _check_acyclic(categories: Sequence[Category]) -> None:
    parents = {c.id: c.parent_id for c in categories}
    for category in categories:
        seen = {category.id}
        current = category.parent_id
        while current is not None:
            if current in seen:
                raise ConfigurationError(
                    f"Category hierarchy contains a cycle through '{category.id}'"
                )
            seen.add(current)
            current = parents.get(current)


def _compute_depths(entries: list[dict[str, Any]]) -> dict[str, int]:
    parents = {e["id"]: e.get("parent") for e in entries}
    depths: dict[str, int] = {}
    for category_id in parents:
        depth = 0
        current = parents[category_id]
        visited = {category_id}
        while current is not None and current in parents and current not in visited:
            visited.add(current)
            depth += 1
            current = parents[current]
        depths[category_id] = depth
    return depths


def _parse_entry(entry: Any, position: int, source: str | None) -> dict[str, Any]:
    """Schema-check one raw category entry."""
    where = f"categories[{position}]"
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where} must be a mapping", source)

    category_id = entry.get("id")
    if not isinstance(category_id, str) or not category_id.strip():
        raise ConfigurationError(f"{where}.id must be a non-empty string", source)

    name = entry.get("name", category_id)
    if not isinstance(name, str):
        raise ConfigurationError(f"{where}.name must be a string", source)

    keywords = entry.get("keywords")
    if not isinstance(keywords, list) or not keywords:
        raise ConfigurationError(f"{where}.keywords must be a non-empty list", source)
    if not all(isinstance(k, str) and k.strip() for k in keywords):
        raise ConfigurationError(f"{where}.keywords must contain non-empty strings", source)

    if "weight" not in entry:
        raise ConfigurationError(f"{where}.weight is required", source)
    weight = entry["weight"]
    if isinstance(weight, bool) or not isinstance(weight, int | float):
        raise ConfigurationError(f"{where}.weight must be a number", source)

    parent = entry.get("parent", entry.get("parent_id"))
    if parent is not None and not isinstance(parent, str):
        raise ConfigurationError(f"{where}.parent must be a string", source)

    return {
        "id": category_id.strip(),
        "name": name.strip(),
        "keywords": [k.strip().lower() for k in keywords],
        "weight": float(weight),
        "parent": parent.strip() if parent else None,
    }


def categories_from_data(data: Any, source: str | None = None) -> CategorySet:
    """Build a validated CategorySet from a parsed category document.

    Args:
        data: Either a mapping with a `categories` list, or the list itself
        source: Document name used in error messages

    Returns:
        CategorySet in document order

    Raises:
        ConfigurationError: If the document does not match the schema
    """
    if isinstance(data, dict):
        entries = data.get("categories")
    else:
        entries = data

    if not isinstance(entries, list):
        raise ConfigurationError("Category document must contain a 'categories' list", source)
    if not entries:
        raise ConfigurationError("Category document lists no categories", source)

    parsed = [_parse_entry(entry, i, source) for i, entry in enumerate(entries)]
    depths = _compute_depths(parsed)

    try:
        categories = [
            Category(
                id=e["id"],
                name=e["name"],
                keywords=frozenset(e["keywords"]),
                weight=e["weight"],
                parent_id=e["parent"],
                depth=depths[e["id"]],
            )
            for e in parsed
        ]
        return CategorySet(categories)
    except ConfigurationError as e:
        if e.source is None and source is not None:
            raise ConfigurationError(str(e), source) from e
        raise


def load_categories(path: Path) -> CategorySet:
    """Load and validate a category document from disk.

    Args:
        path: Path to a YAML or JSON category document

    Returns:
        Validated CategorySet

    Raises:
        ConfigurationError: If the file is missing, unparsable, or invalid
    """
    if not path.exists():
        raise ConfigurationError(f"Category file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse category file: {e}", str(path)) from e

    return categories_from_data(data, source=str(path))
