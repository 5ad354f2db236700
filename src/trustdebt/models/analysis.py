"""Analysis result entities.

This module contains entities related to analysis results:
- Grade: Ordinal trust debt grade (AAA best ... D worst)
- AnalysisWarning: Recoverable problem recorded during a run
- DriftEntry: One ranked matrix cell with its explanation
- AsymmetryRatio: Upper/lower triangle ratio with an explicit undefined state
- AnalysisResult: Terminal output of one analysis run
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from trustdebt.errors import DegenerateRatioError
from trustdebt.models.orthogonality import ValidationResult

UNDEFINED = "undefined"


class Grade(Enum):
    """Ordinal trust debt grade, best first."""

    AAA = "AAA"
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def rank(self) -> int:
        """Position in the ordering (0 = best)."""
        return list(Grade).index(self)

    @classmethod
    def parse(cls, value: str) -> "Grade":
        """Parse a grade label (case-insensitive).

        Raises:
            ValueError: If the label is not a known grade
        """
        try:
            return cls(value.strip().upper())
        except ValueError:
            valid = [g.value for g in cls]
            raise ValueError(f"Invalid grade: {value}. Valid: {valid}") from None


class DiagonalHealth(Enum):
    """Self-consistency label derived from the mean diagonal coherence."""

    HEALTHY = "healthy"
    WARNING = "warning"


@dataclass
class AnalysisWarning:
    """Recoverable problem encountered during analysis.

    Attributes:
        component: Component that reported it (extraction, orthogonality, matrix)
        message: Problem description
        source: Document path, "git" or category pair, if applicable
    """

    component: str
    message: str
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "source": self.source,
        }


@dataclass(frozen=True)
class DriftEntry:
    """A matrix cell ranked by its debt contribution.

    Attributes:
        from_category: Row category id (implementation side)
        to_category: Column category id (documentation side)
        debt: Trust debt units of the cell
        intent: Intent value of the cell
        reality: Reality value of the cell
        is_diagonal: Whether this is a self-consistency cell
        triangle: "diagonal", "upper" or "lower"
        dominant_side: "intent", "reality" or "balanced"
    """

    from_category: str
    to_category: str
    debt: float
    intent: float
    reality: float
    is_diagonal: bool
    triangle: str
    dominant_side: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "from": self.from_category,
            "to": self.to_category,
            "debt": self.debt,
            "intent": self.intent,
            "reality": self.reality,
            "is_diagonal": self.is_diagonal,
            "triangle": self.triangle,
            "dominant_side": self.dominant_side,
        }


@dataclass(frozen=True)
class AsymmetryRatio:
    """Ratio of reality-dominant (upper) to intent-dominant (lower) debt.

    A zero lower sum is a degenerate case: the ratio is reported as
    "undefined" and `value` raises instead of returning Infinity or NaN.

    Attributes:
        upper_sum: Sum of upper-triangle debt
        lower_sum: Sum of lower-triangle debt
        healthy_min: Lower bound of the healthy band
        healthy_max: Upper bound of the healthy band
    """

    upper_sum: float
    lower_sum: float
    healthy_min: float = 1.2
    healthy_max: float = 2.0

    @property
    def is_defined(self) -> bool:
        """Return True unless the lower sum is zero."""
        return self.lower_sum != 0

    @property
    def value(self) -> float:
        """Numeric ratio.

        Raises:
            DegenerateRatioError: If the lower sum is zero
        """
        if not self.is_defined:
            raise DegenerateRatioError(self.upper_sum, self.lower_sum)
        return self.upper_sum / self.lower_sum

    @property
    def value_or_none(self) -> float | None:
        """Numeric ratio, or None when undefined."""
        return self.value if self.is_defined else None

    @property
    def is_healthy(self) -> bool:
        """Return True if the ratio lies within the healthy band."""
        return self.is_defined and self.healthy_min <= self.value <= self.healthy_max

    @property
    def interpretation(self) -> str:
        """Human-readable reading of the ratio."""
        if not self.is_defined:
            if self.upper_sum == 0:
                return "Undefined (no directional drift in either triangle)"
            return "Undefined (no intent-dominant drift; building without documenting)"
        ratio = self.value
        if ratio < 1.0:
            return "Over-documenting (more documentation than implementation)"
        if self.healthy_min <= ratio <= self.healthy_max:
            return "Balanced development"
        if ratio > self.healthy_max:
            return "Under-documenting (building without documentation)"
        return "Slightly under-documented"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ratio": self.value if self.is_defined else UNDEFINED,
            "upper_sum": self.upper_sum,
            "lower_sum": self.lower_sum,
            "healthy_range": [self.healthy_min, self.healthy_max],
            "healthy": self.is_healthy,
            "interpretation": self.interpretation,
        }


@dataclass
class AnalysisResult:
    """Terminal output of one analysis run.

    Freshly constructed per run and handed to report collaborators; it has
    no persisted identity.

    Attributes:
        total_debt: Calibrated (final) trust debt
        raw_debt: Uncalibrated sum of all matrix cells
        category_breakdown: Debt per row category
        worst_drifts: All cells, highest debt first
        orthogonality: Mean off-diagonal orthogonality of the category set
        diagonal_health: Self-consistency label
        grade: Grade derived from total_debt
        diagonal_sum: Debt on the diagonal
        asymmetry: Upper/lower triangle ratio
        validation: Orthogonality validation outcome
        calibration: Calibration factors applied to raw_debt
        unmeasured_categories: Categories with zero intent and zero reality
        warnings: Recoverable problems recorded during the run
        commit_count: Commits in the Reality corpus
        document_count: Documents in the Intent corpus
        git_ref: Commit SHA at analysis time
        timestamp: Analysis timestamp (UTC)
    """

    total_debt: float
    raw_debt: float
    category_breakdown: dict[str, float]
    worst_drifts: list[DriftEntry]
    orthogonality: float
    diagonal_health: DiagonalHealth
    grade: Grade
    diagonal_sum: float
    asymmetry: AsymmetryRatio
    validation: ValidationResult
    calibration: dict[str, float] = field(default_factory=dict)
    mean_diagonal_coherence: float = 1.0
    unmeasured_categories: list[str] = field(default_factory=list)
    warnings: list[AnalysisWarning] = field(default_factory=list)
    commit_count: int = 0
    document_count: int = 0
    git_ref: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def upper_sum(self) -> float:
        """Reality-dominant debt."""
        return self.asymmetry.upper_sum

    @property
    def lower_sum(self) -> float:
        """Intent-dominant debt."""
        return self.asymmetry.lower_sum

    def add_warning(self, warning: AnalysisWarning) -> None:
        """Add a recoverable warning."""
        self.warnings.append(warning)

    def has_warnings(self) -> bool:
        """Check if any warnings were recorded."""
        return len(self.warnings) > 0

    def get_warnings_by_component(self, component: str) -> list[AnalysisWarning]:
        """Get warnings for a specific component."""
        return [w for w in self.warnings if w.component == component]

    def exceeds(self, threshold: float) -> bool:
        """Return True if total debt is above a CI threshold."""
        return self.total_debt > threshold

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_debt": self.total_debt,
            "raw_debt": self.raw_debt,
            "grade": self.grade.value,
            "category_breakdown": dict(self.category_breakdown),
            "worst_drifts": [d.to_dict() for d in self.worst_drifts],
            "orthogonality": self.orthogonality,
            "diagonal_health": self.diagonal_health.value,
            "mean_diagonal_coherence": self.mean_diagonal_coherence,
            "diagonal_sum": self.diagonal_sum,
            "upper_sum": self.upper_sum,
            "lower_sum": self.lower_sum,
            "asymmetry": self.asymmetry.to_dict(),
            "validation": self.validation.to_dict(),
            "calibration": dict(self.calibration),
            "unmeasured_categories": list(self.unmeasured_categories),
            "warnings": [w.to_dict() for w in self.warnings],
            "commit_count": self.commit_count,
            "document_count": self.document_count,
            "git_ref": self.git_ref,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to JSON."""
        return json.dumps(self.to_dict(), indent=indent)
