"""Unit tests for the analysis pipeline with git extraction stubbed out."""

import threading
from datetime import UTC, datetime
from pathlib import Path

import pytest

from trustdebt.config import OrthogonalityConfig, TrustDebtConfig
from trustdebt.errors import AnalysisCancelled, OrthogonalityViolation
from trustdebt.models.category import CategorySet
from trustdebt.models.signals import CommitRecord, DocumentSpec
from trustdebt.pipeline import AnalysisContext, AnalysisPipeline, PipelineStage

COMMITS = [
    CommitRecord(hash="c1", message="Add cache for database rows", timestamp=datetime.now(UTC)),
    CommitRecord(hash="c2", message="Measure score output", timestamp=datetime.now(UTC)),
]


@pytest.fixture
def docs_repo(tmp_path: Path) -> Path:
    """Repository root holding a single README."""
    (tmp_path / "README.md").write_text(
        "We measure and analyze a score. The cli command prints output."
    )
    return tmp_path


def _pipeline(
    categories: CategorySet,
    repo: Path,
    strict: bool = False,
    cancel_event: threading.Event | None = None,
    commits: list[CommitRecord] | None = None,
) -> AnalysisPipeline:
    config = TrustDebtConfig(
        documents=[DocumentSpec("README.md", 30)],
        orthogonality=OrthogonalityConfig(strict=strict),
    )
    context = AnalysisContext(
        categories=categories, config=config, repo_path=repo, cancel_event=cancel_event
    )
    pipeline = AnalysisPipeline(context)
    pipeline.extractor.extract_reality = lambda **kwargs: list(
        COMMITS if commits is None else commits
    )
    pipeline.extractor.get_git_ref = lambda: "deadbeef"
    return pipeline


class TestRun:
    """Tests for a complete run."""

    def test_complete_result(self, disjoint_categories: CategorySet, docs_repo: Path) -> None:
        """Test that a clean run fills every result field."""
        pipeline = _pipeline(disjoint_categories, docs_repo)

        result = pipeline.run()

        assert pipeline.stage is PipelineStage.DONE
        assert result.commit_count == 2
        assert result.document_count == 1
        assert result.git_ref == "deadbeef"
        assert set(result.category_breakdown) == {"measurement", "interface", "storage"}
        assert len(result.worst_drifts) == 9
        assert result.validation.passed
        assert result.warnings == []

    def test_deterministic(self, disjoint_categories: CategorySet, docs_repo: Path) -> None:
        """Test that identical inputs give identical debt."""
        first = _pipeline(disjoint_categories, docs_repo).run()
        second = _pipeline(disjoint_categories, docs_repo).run()

        assert first.total_debt == second.total_debt
        assert first.category_breakdown == second.category_breakdown

    def test_runs_once(self, disjoint_categories: CategorySet, docs_repo: Path) -> None:
        """Test that a pipeline instance cannot be reused."""
        pipeline = _pipeline(disjoint_categories, docs_repo)
        pipeline.run()

        with pytest.raises(RuntimeError):
            pipeline.run()

    def test_empty_history_is_recoverable(
        self, disjoint_categories: CategorySet, docs_repo: Path
    ) -> None:
        """Test that no commits still yields a result."""
        result = _pipeline(disjoint_categories, docs_repo, commits=[]).run()

        assert result.commit_count == 0
        assert result.upper_sum == 0

    def test_missing_document_warning(
        self, disjoint_categories: CategorySet, tmp_path: Path
    ) -> None:
        """Test that extraction warnings reach the result."""
        result = _pipeline(disjoint_categories, tmp_path).run()

        warnings = result.get_warnings_by_component("extraction")
        assert [w.source for w in warnings] == ["README.md"]
        assert result.document_count == 0


class TestOrthogonalityPolicy:
    """Tests for strict and non-strict orthogonality handling."""

    def test_non_strict_warns(
        self, overlapping_categories: CategorySet, docs_repo: Path
    ) -> None:
        """Test that a failing pair produces a warning and a full result."""
        result = _pipeline(overlapping_categories, docs_repo).run()

        warnings = result.get_warnings_by_component("orthogonality")
        assert len(warnings) == 1
        assert warnings[0].source == "measurement/reporting"
        assert "metric, score" in warnings[0].message
        assert not result.validation.passed
        assert result.orthogonality < 1.0
        assert result.warnings[0] is warnings[0]

    def test_strict_raises(self, overlapping_categories: CategorySet, docs_repo: Path) -> None:
        """Test that strict mode aborts before extraction."""
        pipeline = _pipeline(overlapping_categories, docs_repo, strict=True)

        with pytest.raises(OrthogonalityViolation) as exc_info:
            pipeline.run()

        assert pipeline.stage is PipelineStage.FAILED
        assert [(p.first, p.second) for p in exc_info.value.failed_pairs] == [
            ("measurement", "reporting")
        ]

    def test_suggest(self, overlapping_categories: CategorySet, docs_repo: Path) -> None:
        """Test that suggestions are produced for failing pairs."""
        pipeline = _pipeline(overlapping_categories, docs_repo)
        _matrix, validation = pipeline.validate_categories()

        suggestions = pipeline.suggest(validation)

        assert suggestions
        assert all(s.pair == ("measurement", "reporting") for s in suggestions)

    def test_suggest_nothing_when_passing(
        self, disjoint_categories: CategorySet, docs_repo: Path
    ) -> None:
        """Test that a passing set needs no suggestions."""
        pipeline = _pipeline(disjoint_categories, docs_repo)
        _matrix, validation = pipeline.validate_categories()

        assert pipeline.suggest(validation) == []


class TestCancellation:
    """Tests for the cooperative cancel signal."""

    def test_cancel_before_start(self, disjoint_categories: CategorySet, docs_repo: Path) -> None:
        """Test that a set signal stops the run at the first stage boundary."""
        event = threading.Event()
        event.set()
        pipeline = _pipeline(disjoint_categories, docs_repo, cancel_event=event)

        with pytest.raises(AnalysisCancelled) as exc_info:
            pipeline.run()

        assert exc_info.value.stage == "idle"
        assert pipeline.stage is PipelineStage.FAILED

    def test_cancel_during_extraction(
        self, disjoint_categories: CategorySet, docs_repo: Path
    ) -> None:
        """Test cancelling while commits are read."""
        event = threading.Event()
        pipeline = _pipeline(disjoint_categories, docs_repo, cancel_event=event)

        def cancel_and_return(**kwargs: object) -> list[CommitRecord]:
            event.set()
            return list(COMMITS)

        pipeline.extractor.extract_reality = cancel_and_return

        with pytest.raises(AnalysisCancelled) as exc_info:
            pipeline.run()

        assert exc_info.value.stage == "extracting"


class TestOrdering:
    """Tests for matrix ordering in the pipeline."""

    def test_shortlex_order(self, disjoint_categories: CategorySet, docs_repo: Path) -> None:
        """Test that ShortLex reorders the matrix."""
        pipeline = _pipeline(disjoint_categories, docs_repo)
        pipeline.context.config.ordering = "shortlex"

        result = pipeline.run()

        assert pipeline.ordered_categories.ids == ["storage", "interface", "measurement"]
        assert list(result.category_breakdown) == ["storage", "interface", "measurement"]
