"""Unit tests for trust debt aggregation, calibration and grading."""

import json
from datetime import UTC, datetime, timedelta

import pytest
import yaml

from tests.fixtures import make_category
from trustdebt.analyzers.calculator import GradeTable, GradeThreshold, TrustDebtCalculator
from trustdebt.analyzers.matrix_builder import MatrixBuilder
from trustdebt.config import create_default_categories
from trustdebt.errors import ConfigurationError, DegenerateRatioError
from trustdebt.models.analysis import AsymmetryRatio, DiagonalHealth, Grade
from trustdebt.models.category import Category, categories_from_data
from trustdebt.models.matrix import TrustDebtMatrix
from trustdebt.models.signals import DocumentSource


class TestAggregation:
    """Tests for triangle sums and totals on the synthetic 3×3 matrix."""

    def test_raw_debt_is_sum_of_triangles(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test raw = diagonal + upper + lower, each cell counted once."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.diagonal_sum == pytest.approx(6)
        assert result.upper_sum == pytest.approx(60)
        assert result.lower_sum == pytest.approx(30)
        assert result.raw_debt == pytest.approx(96)
        assert result.raw_debt == pytest.approx(
            result.diagonal_sum + result.upper_sum + result.lower_sum
        )
        assert result.raw_debt == pytest.approx(sum(c.trust_debt_units for c in matrix))

    def test_default_calibration(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test final = raw * (1 - 0.30) / 0.8."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.total_debt == pytest.approx(96 * 0.7 / 0.8)
        assert result.calibration == {
            "unit_scale": 1.0,
            "sophistication_discount": 0.30,
            "process_health_factor": 0.8,
            "spec_age_rate": 0.0,
            "spec_age_days": 0.0,
            "spec_age_factor": 1.0,
        }

    def test_custom_calibration(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that calibration factors are inputs."""
        matrix, categories = synthetic_matrix
        calculator = TrustDebtCalculator(sophistication_discount=0.0, process_health_factor=1.0)

        result = calculator.calculate(matrix, categories)

        assert result.total_debt == pytest.approx(result.raw_debt)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"sophistication_discount": 1.0},
            {"sophistication_discount": -0.1},
            {"process_health_factor": 0},
            {"spec_age_rate": -0.01},
            {"asymmetry_healthy_min": 3.0, "asymmetry_healthy_max": 2.0},
            {"worst_drift_limit": -1},
        ],
    )
    def test_invalid_settings(self, kwargs: dict) -> None:
        """Test that out-of-range settings are configuration errors."""
        with pytest.raises(ConfigurationError):
            TrustDebtCalculator(**kwargs)

    def test_category_breakdown_by_row(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that each category owns the debt of its row."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.category_breakdown == pytest.approx({"a": 31, "b": 37, "c": 28})
        assert sum(result.category_breakdown.values()) == pytest.approx(result.raw_debt)

    def test_category_order_must_match(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that categories must be passed in matrix order."""
        matrix, categories = synthetic_matrix

        with pytest.raises(ValueError):
            TrustDebtCalculator().calculate(matrix, list(reversed(categories)))


class TestWorstDrifts:
    """Tests for the drift ranking."""

    def test_sorted_with_tie_break(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test descending debt with ties broken by row, then column."""
        matrix, categories = synthetic_matrix

        drifts = TrustDebtCalculator().calculate(matrix, categories).worst_drifts

        assert len(drifts) == 9
        assert [(d.from_category, d.to_category) for d in drifts[:5]] == [
            ("b", "c"),
            ("a", "c"),
            ("c", "b"),
            ("a", "b"),
            ("c", "a"),
        ]
        assert drifts[0].triangle == "upper"
        assert drifts[2].triangle == "lower"

    def test_diagonal_flag(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that diagonal cells are tagged."""
        matrix, categories = synthetic_matrix

        drifts = TrustDebtCalculator().calculate(matrix, categories).worst_drifts

        diagonal = [d for d in drifts if d.is_diagonal]
        assert {(d.from_category, d.to_category) for d in diagonal} == {
            ("a", "a"), ("b", "b"), ("c", "c"),
        }

    def test_limit(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test the optional drift limit."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator(worst_drift_limit=2).calculate(matrix, categories)

        assert len(result.worst_drifts) == 2


class TestAsymmetry:
    """Tests for the asymmetry ratio."""

    def test_balanced_ratio(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test upper / lower within the healthy band."""
        matrix, categories = synthetic_matrix

        asymmetry = TrustDebtCalculator().calculate(matrix, categories).asymmetry

        assert asymmetry.value == pytest.approx(2.0)
        assert asymmetry.is_healthy
        assert asymmetry.interpretation == "Balanced development"

    def test_undefined_when_lower_is_zero(self) -> None:
        """Test the explicit undefined state instead of Infinity."""
        categories = [make_category("a", ["x"]), make_category("b", ["y"])]
        matrix = MatrixBuilder().build_from_scores(
            categories,
            intent={"a": 0.0, "b": 0.0},
            reality={"a": 0.2, "b": 0.8},
        )

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.lower_sum == 0
        assert result.upper_sum > 0
        assert not result.asymmetry.is_defined
        assert result.asymmetry.value_or_none is None
        with pytest.raises(DegenerateRatioError):
            _ = result.asymmetry.value
        assert result.to_dict()["asymmetry"]["ratio"] == "undefined"
        json.loads(result.to_json())

    @pytest.mark.parametrize(
        "upper,lower,expected",
        [
            (1.0, 2.0, "Over-documenting"),
            (1.5, 1.0, "Balanced"),
            (3.0, 1.0, "Under-documenting"),
            (1.1, 1.0, "Slightly under-documented"),
        ],
    )
    def test_interpretation_bands(self, upper: float, lower: float, expected: str) -> None:
        """Test each interpretation band."""
        assert AsymmetryRatio(upper, lower).interpretation.startswith(expected)


class TestDiagonalHealth:
    """Tests for diagonal health."""

    def test_coherent_diagonal_is_healthy(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that equal intent and reality is healthy."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.mean_diagonal_coherence == pytest.approx(1.0)
        assert result.diagonal_health is DiagonalHealth.HEALTHY

    def test_divergent_diagonal_warns(self) -> None:
        """Test that large self-inconsistency is a warning."""
        categories = [make_category("a", ["x"]), make_category("b", ["y"])]
        matrix = MatrixBuilder().build_from_scores(
            categories,
            intent={"a": 0.9, "b": 0.0},
            reality={"a": 0.1, "b": 0.6},
        )

        result = TrustDebtCalculator().calculate(matrix, categories)

        # coherence: (0.2 + 0.4) / 2 = 0.3
        assert result.mean_diagonal_coherence == pytest.approx(0.3)
        assert result.diagonal_health is DiagonalHealth.WARNING


class TestUnmeasuredCategories:
    """Tests for categories with no signal."""

    def test_zero_signal_category_warns(self) -> None:
        """Test that a category with no intent and no reality is reported."""
        categories = [make_category("a", ["x"]), make_category("b", ["y"])]
        matrix = MatrixBuilder().build_from_scores(
            categories,
            intent={"a": 0.5, "b": 0.0},
            reality={"a": 0.5, "b": 0.0},
        )

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.unmeasured_categories == ["b"]
        assert result.get_warnings_by_component("matrix")[0].source == "b"


class TestGradeTable:
    """Tests for grading."""

    @pytest.mark.parametrize(
        "debt,grade",
        [
            (0, Grade.AAA),
            (99.9, Grade.AAA),
            (100, Grade.A),
            (499, Grade.A),
            (500, Grade.B),
            (999, Grade.B),
            (1000, Grade.C),
            (4999, Grade.C),
            (5000, Grade.D),
            (1e9, Grade.D),
        ],
    )
    def test_default_table(self, debt: float, grade: Grade) -> None:
        """Test the default five-tier boundaries."""
        assert GradeTable.default().grade_for(debt) is grade

    def test_monotonic(self) -> None:
        """Test that more debt never earns a better grade."""
        table = GradeTable.default()
        ranks = [table.grade_for(d).rank for d in range(0, 6000, 25)]

        assert ranks == sorted(ranks)

    def test_four_tier_table(self) -> None:
        """Test an alternative table through configuration entries."""
        table = GradeTable.from_entries(
            [
                {"grade": "A", "below": 501},
                {"grade": "B", "below": 1501},
                {"grade": "C", "below": 3001},
            ],
            fallback="D",
        )

        assert table.grade_for(500) is Grade.A
        assert table.grade_for(1500) is Grade.B
        assert table.grade_for(3001) is Grade.D

    def test_descending_thresholds_rejected(self) -> None:
        """Test that thresholds must ascend."""
        with pytest.raises(ConfigurationError, match="ascending"):
            GradeTable([GradeThreshold(Grade.AAA, 500), GradeThreshold(Grade.A, 100)])

    def test_non_monotonic_grades_rejected(self) -> None:
        """Test that grades must worsen as thresholds rise."""
        with pytest.raises(ConfigurationError, match="cannot follow"):
            GradeTable([GradeThreshold(Grade.B, 100), GradeThreshold(Grade.A, 500)])

    def test_fallback_must_be_worst(self) -> None:
        """Test that the fallback grade is worse than every tier."""
        with pytest.raises(ConfigurationError, match="Fallback"):
            GradeTable([GradeThreshold(Grade.AAA, 100)], fallback=Grade.AAA)

    def test_malformed_entry(self) -> None:
        """Test that entries need grade and below."""
        with pytest.raises(ConfigurationError):
            GradeTable.from_entries([{"grade": "A"}])

    def test_unknown_grade(self) -> None:
        """Test that unknown grade labels are rejected."""
        with pytest.raises(ConfigurationError):
            GradeTable.from_entries([{"grade": "Z", "below": 10}])

    def test_result_grade(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that the result grade follows the calibrated total."""
        matrix, categories = synthetic_matrix

        result = TrustDebtCalculator().calculate(matrix, categories)

        assert result.total_debt < 100
        assert result.grade is Grade.AAA


class TestStarterCategoryGrades:
    """Tests that the starter category set spans the grade table."""

    @pytest.fixture
    def starter_categories(self) -> list[Category]:
        """Categories written by `trustdebt init`."""
        return list(categories_from_data(yaml.safe_load(create_default_categories())))

    def test_documented_but_unbuilt_grades_d(self, starter_categories: list[Category]) -> None:
        """Test that full intent with no reality reaches the worst grade."""
        matrix = MatrixBuilder().build_from_scores(
            starter_categories,
            intent={c.id: 1.0 for c in starter_categories},
            reality={c.id: 0.0 for c in starter_categories},
        )

        result = TrustDebtCalculator().calculate(matrix, starter_categories)

        # diagonal alone: 100 * (30 + 20 + 20 + 15 + 15) = 10000
        assert result.diagonal_sum == pytest.approx(10_000)
        assert result.total_debt >= 5000
        assert result.grade is Grade.D

    def test_single_drifting_category_grades_c(self, starter_categories: list[Category]) -> None:
        """Test that one fully drifted heavy category lands in the middle tiers."""
        intent = {c.id: 0.5 for c in starter_categories}
        reality = dict(intent)
        intent["measurement"] = 1.0
        reality["measurement"] = 0.0

        matrix = MatrixBuilder().build_from_scores(starter_categories, intent, reality)
        result = TrustDebtCalculator().calculate(matrix, starter_categories)

        assert result.grade in (Grade.B, Grade.C)

    def test_aligned_scores_grade_aaa(self, starter_categories: list[Category]) -> None:
        """Test that matching intent and reality keeps the best grade."""
        scores = {c.id: 0.5 for c in starter_categories}

        matrix = MatrixBuilder().build_from_scores(starter_categories, scores, dict(scores))
        result = TrustDebtCalculator().calculate(matrix, starter_categories)

        assert result.total_debt == 0.0
        assert result.grade is Grade.AAA


class TestSpecAge:
    """Tests for the documentation age factor."""

    AS_OF = datetime(2024, 6, 11, tzinfo=UTC)

    def _document(self, path: str, days_old: float) -> DocumentSource:
        return DocumentSource(
            path=path,
            weight=1,
            content="",
            last_modified=self.AS_OF - timedelta(days=days_old),
        )

    def test_age_from_oldest_document(self) -> None:
        """Test that age is measured from the least recently changed document."""
        documents = [self._document("README.md", 2), self._document("docs/a.md", 10)]

        assert TrustDebtCalculator.spec_age_days(documents, self.AS_OF) == pytest.approx(10)
        assert TrustDebtCalculator.spec_age_days([], self.AS_OF) == 0.0

    def test_future_timestamps_clamped(self) -> None:
        """Test that documents modified after the reference time count as new."""
        documents = [self._document("README.md", -3)]

        assert TrustDebtCalculator.spec_age_days(documents, self.AS_OF) == 0.0

    def test_neutral_by_default(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test that stale documents change nothing at the default rate."""
        matrix, categories = synthetic_matrix
        documents = [self._document("README.md", 365)]

        result = TrustDebtCalculator().calculate(
            matrix, categories, documents=documents, as_of=self.AS_OF
        )

        assert result.total_debt == pytest.approx(96 * 0.7 / 0.8)
        assert result.calibration["spec_age_days"] == pytest.approx(365)
        assert result.calibration["spec_age_factor"] == 1.0

    def test_rate_scales_total(
        self,
        synthetic_matrix: tuple[TrustDebtMatrix, list[Category]],
    ) -> None:
        """Test final = raw * (1 - d) / p * (1 + rate * days)."""
        matrix, categories = synthetic_matrix
        documents = [self._document("README.md", 10)]
        calculator = TrustDebtCalculator(spec_age_rate=0.02)

        result = calculator.calculate(matrix, categories, documents=documents, as_of=self.AS_OF)

        assert result.total_debt == pytest.approx(96 * 0.7 / 0.8 * 1.2)
        assert result.calibration["spec_age_rate"] == 0.02
        assert result.calibration["spec_age_factor"] == pytest.approx(1.2)
        assert result.raw_debt == pytest.approx(96)
