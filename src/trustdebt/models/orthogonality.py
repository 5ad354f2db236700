"""Orthogonality entities.

- OrthogonalityMatrix: symmetric N×N keyword-independence matrix
- FailedPair: category pair below the independence threshold
- ValidationResult: outcome of validating an OrthogonalityMatrix
- RefinementSuggestion: advisory keyword change for a failing pair
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class OrthogonalityMatrix:
    """Symmetric keyword-independence matrix over a fixed category order.

    Attributes:
        category_ids: Category ids in row/column order
        values: Row-major N×N values; 1.0 means fully independent
    """

    category_ids: tuple[str, ...]
    values: tuple[tuple[float, ...], ...]

    @property
    def size(self) -> int:
        """Number of categories."""
        return len(self.category_ids)

    def get(self, first: str, second: str) -> float:
        """Return orthogonality between two categories by id."""
        i = self.category_ids.index(first)
        j = self.category_ids.index(second)
        return self.values[i][j]

    def off_diagonal(self) -> list[float]:
        """Upper-triangle values (each unordered pair once)."""
        n = self.size
        return [self.values[i][j] for i in range(n) for j in range(i + 1, n)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "categories": list(self.category_ids),
            "values": [list(row) for row in self.values],
        }


@dataclass(frozen=True)
class FailedPair:
    """A category pair whose orthogonality is below the threshold.

    Attributes:
        first: Category id with the lower matrix index
        second: Category id with the higher matrix index
        orthogonality: Measured orthogonality of the pair
        shared_keywords: Normalized keywords present in both categories
    """

    first: str
    second: str
    orthogonality: float
    shared_keywords: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "first": self.first,
            "second": self.second,
            "orthogonality": self.orthogonality,
            "shared_keywords": list(self.shared_keywords),
        }


@dataclass
class ValidationResult:
    """Outcome of orthogonality validation.

    Violations are collected here rather than raised; the caller decides
    whether to warn or abort.

    Attributes:
        threshold: Minimum acceptable off-diagonal orthogonality
        symmetric: Whether the matrix is symmetric within tolerance
        diagonal_ok: Whether every diagonal entry equals 1.0
        failed_pairs: Pairs below the threshold, in matrix order
        average_orthogonality: Mean off-diagonal orthogonality (1.0 if N < 2)
        minimum_orthogonality: Smallest off-diagonal orthogonality (1.0 if N < 2)
    """

    threshold: float
    symmetric: bool = True
    diagonal_ok: bool = True
    failed_pairs: list[FailedPair] = field(default_factory=list)
    average_orthogonality: float = 1.0
    minimum_orthogonality: float = 1.0

    @property
    def passed(self) -> bool:
        """Return True if the matrix satisfies every check."""
        return self.symmetric and self.diagonal_ok and not self.failed_pairs

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "threshold": self.threshold,
            "passed": self.passed,
            "symmetric": self.symmetric,
            "diagonal_ok": self.diagonal_ok,
            "failed_pairs": [p.to_dict() for p in self.failed_pairs],
            "average_orthogonality": self.average_orthogonality,
            "minimum_orthogonality": self.minimum_orthogonality,
        }


@dataclass(frozen=True)
class RefinementSuggestion:
    """Advisory keyword change that would raise a pair's orthogonality.

    Attributes:
        action: "remove", "substitute" or "add"
        category_id: Category whose keywords would change
        pair: The failing pair this suggestion addresses
        keyword: Keyword to remove or replace (None for additions)
        replacement: Keyword to introduce (None for removals)
        estimated_orthogonality: Pair orthogonality after the change
        improvement: Estimated gain over the current orthogonality
    """

    action: str
    category_id: str
    pair: tuple[str, str]
    keyword: str | None
    replacement: str | None
    estimated_orthogonality: float
    improvement: float

    def describe(self) -> str:
        """One-line human-readable description."""
        if self.action == "remove":
            change = f"remove '{self.keyword}' from {self.category_id}"
        elif self.action == "substitute":
            change = f"replace '{self.keyword}' with '{self.replacement}' in {self.category_id}"
        else:
            change = f"add '{self.replacement}' to {self.category_id}"
        return (
            f"{change} ({self.pair[0]}/{self.pair[1]}: "
            f"{self.estimated_orthogonality:.2f}, +{self.improvement:.2f})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "action": self.action,
            "category": self.category_id,
            "pair": list(self.pair),
            "keyword": self.keyword,
            "replacement": self.replacement,
            "estimated_orthogonality": self.estimated_orthogonality,
            "improvement": self.improvement,
        }
