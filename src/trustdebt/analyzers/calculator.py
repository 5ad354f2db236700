"""Trust debt aggregation.

Turns a TrustDebtMatrix into an AnalysisResult:
- raw debt as the sum of the diagonal, upper and lower triangles
- calibrated debt: raw * (1 - sophistication_discount) / process_health_factor
  * spec_age_factor, where spec_age_factor = 1 + spec_age_rate * days since
  the oldest documentation source was last modified
- grade from an ascending threshold table
- per-category breakdown (by row), worst-drift ranking
- asymmetry ratio (upper / lower) with an explicit undefined state
- diagonal health from the mean self-consistency of each category

The calibration defaults (0.30, 0.8 and the matrix unit scale of 100) are
placeholders carried over from early tuning and have no empirical basis;
override them in configuration. spec_age_rate defaults to 0, which leaves
debt independent of document age.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from trustdebt.errors import ConfigurationError
from trustdebt.models.analysis import (
    AnalysisResult,
    AnalysisWarning,
    AsymmetryRatio,
    DiagonalHealth,
    DriftEntry,
    Grade,
)
from trustdebt.models.category import Category
from trustdebt.models.matrix import Triangle, TrustDebtMatrix
from trustdebt.models.orthogonality import ValidationResult
from trustdebt.models.signals import DocumentSource

if TYPE_CHECKING:
    from trustdebt.config import TrustDebtConfig

logger = logging.getLogger(__name__)

DEFAULT_SOPHISTICATION_DISCOUNT = 0.30
DEFAULT_PROCESS_HEALTH_FACTOR = 0.8
DEFAULT_COHERENCE_THRESHOLD = 0.7
DEFAULT_SPEC_AGE_RATE = 0.0

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class GradeThreshold:
    """A grade awarded when debt is strictly below `below`."""

    grade: Grade
    below: float


class GradeTable:
    """Ascending debt thresholds mapped to grades.

    Thresholds must be strictly ascending and grades strictly worsening, so
    more debt can never earn a better grade. Debt at or above the last
    threshold receives the fallback grade.
    """

    def __init__(self, thresholds: Sequence[GradeThreshold], fallback: Grade = Grade.D) -> None:
        """Initialize and validate the table.

        Raises:
            ConfigurationError: If thresholds are not ascending or grades not monotonic
        """
        self.thresholds = tuple(thresholds)
        self.fallback = fallback

        previous: GradeThreshold | None = None
        for entry in self.thresholds:
            if previous is not None:
                if entry.below <= previous.below:
                    raise ConfigurationError(
                        f"Grade thresholds must be ascending: {entry.below} after {previous.below}"
                    )
                if entry.grade.rank <= previous.grade.rank:
                    raise ConfigurationError(
                        f"Grade {entry.grade.value} cannot follow {previous.grade.value}"
                    )
            previous = entry

        if previous is not None and fallback.rank <= previous.grade.rank:
            raise ConfigurationError(
                f"Fallback grade {fallback.value} must be worse than {previous.grade.value}"
            )

    @classmethod
    def default(cls) -> "GradeTable":
        """Five-tier table: AAA < 100 <= A < 500 <= B < 1000 <= C < 5000 <= D."""
        return cls(
            [
                GradeThreshold(Grade.AAA, 100),
                GradeThreshold(Grade.A, 500),
                GradeThreshold(Grade.B, 1000),
                GradeThreshold(Grade.C, 5000),
            ],
            fallback=Grade.D,
        )

    @classmethod
    def from_entries(cls, entries: Sequence[dict[str, Any]], fallback: str = "D") -> "GradeTable":
        """Build a table from `{grade, below}` mappings.

        Raises:
            ConfigurationError: If an entry is malformed
        """
        thresholds = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict) or "grade" not in entry or "below" not in entry:
                raise ConfigurationError(
                    f"grading.thresholds[{position}] needs 'grade' and 'below'"
                )
            try:
                grade = Grade.parse(str(entry["grade"]))
                below = float(entry["below"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"grading.thresholds[{position}]: {e}") from e
            thresholds.append(GradeThreshold(grade, below))

        try:
            fallback_grade = Grade.parse(fallback)
        except ValueError as e:
            raise ConfigurationError(f"grading.fallback: {e}") from e
        return cls(thresholds, fallback=fallback_grade)

    def grade_for(self, debt: float) -> Grade:
        """Return the grade for a debt value."""
        for entry in self.thresholds:
            if debt < entry.below:
                return entry.grade
        return self.fallback

    def to_list(self) -> list[dict[str, Any]]:
        """Convert to list of dictionaries for serialization."""
        return [{"grade": t.grade.value, "below": t.below} for t in self.thresholds]


class TrustDebtCalculator:
    """Aggregates a matrix into an AnalysisResult."""

    def __init__(
        self,
        grade_table: GradeTable | None = None,
        sophistication_discount: float = DEFAULT_SOPHISTICATION_DISCOUNT,
        process_health_factor: float = DEFAULT_PROCESS_HEALTH_FACTOR,
        spec_age_rate: float = DEFAULT_SPEC_AGE_RATE,
        coherence_threshold: float = DEFAULT_COHERENCE_THRESHOLD,
        asymmetry_healthy_min: float = 1.2,
        asymmetry_healthy_max: float = 2.0,
        worst_drift_limit: int | None = None,
    ) -> None:
        """Initialize the calculator.

        Raises:
            ConfigurationError: If a calibration value is out of range
        """
        if not 0 <= sophistication_discount < 1:
            raise ConfigurationError(
                f"sophistication_discount must be in [0, 1), got {sophistication_discount}"
            )
        if process_health_factor <= 0:
            raise ConfigurationError(
                f"process_health_factor must be > 0, got {process_health_factor}"
            )
        if spec_age_rate < 0:
            raise ConfigurationError(f"spec_age_rate must be >= 0, got {spec_age_rate}")
        if asymmetry_healthy_min > asymmetry_healthy_max:
            raise ConfigurationError("asymmetry_healthy_min must not exceed asymmetry_healthy_max")
        if worst_drift_limit is not None and worst_drift_limit < 0:
            raise ConfigurationError("worst_drift_limit must be >= 0")

        self.grade_table = grade_table or GradeTable.default()
        self.sophistication_discount = sophistication_discount
        self.process_health_factor = process_health_factor
        self.spec_age_rate = spec_age_rate
        self.coherence_threshold = coherence_threshold
        self.asymmetry_healthy_min = asymmetry_healthy_min
        self.asymmetry_healthy_max = asymmetry_healthy_max
        self.worst_drift_limit = worst_drift_limit

    @classmethod
    def from_config(cls, config: "TrustDebtConfig") -> "TrustDebtCalculator":
        """Create a calculator from loaded configuration."""
        return cls(
            grade_table=GradeTable.from_entries(
                config.grading.thresholds, fallback=config.grading.fallback
            ),
            sophistication_discount=config.calibration.sophistication_discount,
            process_health_factor=config.calibration.process_health_factor,
            spec_age_rate=config.calibration.spec_age_rate,
            coherence_threshold=config.health.coherence_threshold,
            asymmetry_healthy_min=config.health.asymmetry_healthy_min,
            asymmetry_healthy_max=config.health.asymmetry_healthy_max,
            worst_drift_limit=config.report.worst_drift_limit,
        )

    @staticmethod
    def spec_age_days(
        documents: Sequence[DocumentSource],
        as_of: datetime | None = None,
    ) -> float:
        """Days since the oldest documentation source was last modified.

        Returns 0 when there are no documents or every timestamp is in the future.
        """
        if not documents:
            return 0.0
        as_of = as_of or datetime.now(UTC)
        oldest = min(d.last_modified for d in documents)
        return max(0.0, (as_of - oldest).total_seconds() / SECONDS_PER_DAY)

    def spec_age_factor(self, spec_age_days: float) -> float:
        """Multiplier for stale documentation (1.0 means no penalty)."""
        return 1 + self.spec_age_rate * max(0.0, spec_age_days)

    def calibrate(self, raw_debt: float, spec_age_days: float = 0.0) -> float:
        """Apply the calibration factors to raw debt."""
        return (
            raw_debt
            * (1 - self.sophistication_discount)
            / self.process_health_factor
            * self.spec_age_factor(spec_age_days)
        )

    def rank_drifts(self, matrix: TrustDebtMatrix) -> list[DriftEntry]:
        """All cells ordered by debt, highest first (ties by row, then column)."""
        ordered = sorted(
            matrix.cells,
            key=lambda c: (-c.trust_debt_units, c.row_index, c.col_index),
        )
        if self.worst_drift_limit is not None:
            ordered = ordered[: self.worst_drift_limit]
        return [
            DriftEntry(
                from_category=c.row_category,
                to_category=c.col_category,
                debt=c.trust_debt_units,
                intent=c.intent_value,
                reality=c.reality_value,
                is_diagonal=c.is_diagonal,
                triangle=c.triangle.value,
                dominant_side=c.dominant_side,
            )
            for c in ordered
        ]

    def calculate(
        self,
        matrix: TrustDebtMatrix,
        categories: Sequence[Category],
        validation: ValidationResult | None = None,
        documents: Sequence[DocumentSource] = (),
        as_of: datetime | None = None,
    ) -> AnalysisResult:
        """Aggregate a matrix into an AnalysisResult.

        Args:
            matrix: Built Intent/Reality matrix
            categories: Categories in matrix order
            validation: Orthogonality validation of the category set
            documents: Intent documents, used for the spec-age factor
            as_of: Reference time for document age (defaults to now)

        Returns:
            AnalysisResult (extraction metadata is filled in by the caller)
        """
        if tuple(c.id for c in categories) != matrix.category_ids:
            raise ValueError("Category order does not match the matrix")

        diagonal_sum = sum(c.trust_debt_units for c in matrix.cells_in(Triangle.DIAGONAL))
        upper_sum = sum(c.trust_debt_units for c in matrix.cells_in(Triangle.UPPER))
        lower_sum = sum(c.trust_debt_units for c in matrix.cells_in(Triangle.LOWER))
        raw_debt = diagonal_sum + upper_sum + lower_sum
        age_days = self.spec_age_days(documents, as_of)
        total_debt = self.calibrate(raw_debt, age_days)

        breakdown = {c.id: 0.0 for c in categories}
        for cell in matrix.cells:
            breakdown[cell.row_category] += cell.trust_debt_units

        diagonal = matrix.diagonal
        if diagonal:
            coherence = sum(1 - abs(c.intent_value - c.reality_value) for c in diagonal) / len(
                diagonal
            )
        else:
            coherence = 1.0
        health = (
            DiagonalHealth.HEALTHY if coherence > self.coherence_threshold else DiagonalHealth.WARNING
        )

        asymmetry = AsymmetryRatio(
            upper_sum=upper_sum,
            lower_sum=lower_sum,
            healthy_min=self.asymmetry_healthy_min,
            healthy_max=self.asymmetry_healthy_max,
        )

        validation = validation or ValidationResult(threshold=0.0)
        result = AnalysisResult(
            total_debt=total_debt,
            raw_debt=raw_debt,
            category_breakdown=breakdown,
            worst_drifts=self.rank_drifts(matrix),
            orthogonality=validation.average_orthogonality,
            diagonal_health=health,
            grade=self.grade_table.grade_for(total_debt),
            diagonal_sum=diagonal_sum,
            asymmetry=asymmetry,
            validation=validation,
            calibration={
                "unit_scale": matrix.unit_scale,
                "sophistication_discount": self.sophistication_discount,
                "process_health_factor": self.process_health_factor,
                "spec_age_rate": self.spec_age_rate,
                "spec_age_days": age_days,
                "spec_age_factor": self.spec_age_factor(age_days),
            },
            mean_diagonal_coherence=coherence,
        )

        for category_id in matrix.category_ids:
            if (
                matrix.intent_scores.get(category_id, 0.0) == 0
                and matrix.reality_scores.get(category_id, 0.0) == 0
            ):
                result.unmeasured_categories.append(category_id)
                result.add_warning(
                    AnalysisWarning(
                        component="matrix",
                        message="Category has no intent and no reality signal",
                        source=category_id,
                    )
                )

        if not asymmetry.is_defined:
            logger.debug("Asymmetry ratio undefined (lower triangle is zero)")
        logger.debug(
            "Debt: raw %.2f (diagonal %.2f, upper %.2f, lower %.2f), final %.2f, grade %s",
            raw_debt,
            diagonal_sum,
            upper_sum,
            lower_sum,
            total_debt,
            result.grade.value,
        )
        return result
