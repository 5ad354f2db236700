"""Trust debt analysis pipeline.

Runs one analysis as a linear state machine:

    IDLE -> EXTRACTING -> SCORING -> MATRIX_BUILDING -> AGGREGATING -> DONE

Category orthogonality is validated before extraction starts. Any fatal
error moves the pipeline to FAILED and propagates as a typed error; there
is no partial result. Recoverable problems become warnings on the result.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from trustdebt.analyzers.calculator import TrustDebtCalculator
from trustdebt.analyzers.extractor import SignalExtractor
from trustdebt.analyzers.matrix_builder import MatrixBuilder
from trustdebt.analyzers.ordering import apply_ordering
from trustdebt.analyzers.orthogonality import compute_orthogonality, suggest_refinements
from trustdebt.analyzers.similarity import SimilarityScorer
from trustdebt.analyzers.text import KeywordNormalizer
from trustdebt.config import TrustDebtConfig
from trustdebt.errors import AnalysisCancelled, OrthogonalityViolation
from trustdebt.models.analysis import AnalysisResult, AnalysisWarning
from trustdebt.models.category import CategorySet
from trustdebt.models.orthogonality import (
    OrthogonalityMatrix,
    RefinementSuggestion,
    ValidationResult,
)
from trustdebt.models.signals import Corpus
from trustdebt.utils.logging import get_logger

logger = get_logger(__name__)


class PipelineStage(Enum):
    """Pipeline state."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    SCORING = "scoring"
    MATRIX_BUILDING = "matrix_building"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class AnalysisContext:
    """Everything one analysis run needs, passed in explicitly.

    Attributes:
        categories: Loaded category set (document order)
        config: Loaded configuration
        repo_path: Repository root; all relative paths resolve against it
        cancel_event: Cooperative cancel signal checked between stages
    """

    categories: CategorySet
    config: TrustDebtConfig = field(default_factory=TrustDebtConfig)
    repo_path: Path = field(default_factory=Path.cwd)
    cancel_event: threading.Event | None = None

    @classmethod
    def from_config(
        cls,
        config: TrustDebtConfig,
        repo_path: Path,
        cancel_event: threading.Event | None = None,
    ) -> "AnalysisContext":
        """Load the configured categories and build a context."""
        return cls(
            categories=config.load_category_set(repo_path),
            config=config,
            repo_path=repo_path,
            cancel_event=cancel_event,
        )

    @property
    def cancelled(self) -> bool:
        """Return True if the cancel signal is set."""
        return self.cancel_event is not None and self.cancel_event.is_set()


class AnalysisPipeline:
    """Orchestrates extraction, scoring, matrix building and aggregation.

    A pipeline instance runs once; create a new one per analysis.
    """

    def __init__(self, context: AnalysisContext) -> None:
        """Initialize the pipeline.

        Args:
            context: Analysis context (categories, config, repository root)
        """
        self.context = context
        self.stage = PipelineStage.IDLE
        self.normalizer = KeywordNormalizer()
        self.scorer = SimilarityScorer()
        self.builder = MatrixBuilder(
            self.scorer, unit_scale=context.config.calibration.unit_scale
        )
        self.calculator = TrustDebtCalculator.from_config(context.config)

        extraction = context.config.extraction
        self.extractor = SignalExtractor(
            context.repo_path,
            doc_size_limit=extraction.doc_size_limit,
            io_timeout=extraction.io_timeout,
            max_workers=extraction.max_workers,
        )

    def _enter(self, stage: PipelineStage) -> None:
        if self.context.cancelled:
            raise AnalysisCancelled(self.stage.value)
        self.stage = stage
        logger.structured(logging.DEBUG, f"Stage: {stage.value}", stage=stage.value)

    @property
    def ordered_categories(self) -> CategorySet:
        """Categories in matrix order."""
        return apply_ordering(self.context.categories, self.context.config.ordering)

    def validate_categories(self) -> tuple[OrthogonalityMatrix, ValidationResult]:
        """Measure category orthogonality in matrix order."""
        return compute_orthogonality(
            list(self.ordered_categories),
            threshold=self.context.config.orthogonality.threshold,
            normalizer=self.normalizer,
        )

    def suggest(self, validation: ValidationResult) -> list[RefinementSuggestion]:
        """Refinement suggestions for failing pairs.

        Candidate terms come from the documentation corpus.
        """
        if validation.passed:
            return []
        documents = self.extractor.extract_intent(self.context.config.documents)
        categories = list(self.ordered_categories)
        vocabulary = self.normalizer.extract_vocabulary(
            Corpus.from_documents(documents).text,
            exclude=[k for c in categories for k in c.keywords],
        )
        return suggest_refinements(categories, validation, vocabulary, self.normalizer)

    def run(self) -> AnalysisResult:
        """Execute the full analysis.

        Returns:
            Complete AnalysisResult, possibly carrying warnings

        Raises:
            OrthogonalityViolation: Failing category pairs in strict mode
            ScoringError: A category has no scorable keywords
            AnalysisCancelled: The cancel signal was set between stages
            ConfigurationError: Invalid configuration
        """
        if self.stage is not PipelineStage.IDLE:
            raise RuntimeError("AnalysisPipeline instances run once")

        config = self.context.config
        logger.info("Analyzing %s", self.context.repo_path)

        try:
            categories = self.ordered_categories
            _matrix, validation = self.validate_categories()
            warnings = self._orthogonality_warnings(validation)

            # Stage 1: Extraction
            self._enter(PipelineStage.EXTRACTING)
            extraction = config.extraction
            commits = self.extractor.extract_reality(
                window_days=extraction.time_window_days,
                branch=extraction.branch,
                paths=extraction.paths,
            )
            documents = self.extractor.extract_intent(config.documents)
            git_ref = self.extractor.get_git_ref()
            logger.info(
                "Read %d commit(s) and %d document(s)", len(commits), len(documents)
            )

            # Stage 2: Scoring
            self._enter(PipelineStage.SCORING)
            intent_corpus = Corpus.from_documents(documents)
            reality_corpus = Corpus.from_commits(commits)
            intent = self.builder.score_categories(list(categories), intent_corpus)
            reality = self.builder.score_categories(list(categories), reality_corpus)

            # Stage 3: Matrix
            self._enter(PipelineStage.MATRIX_BUILDING)
            matrix = self.builder.build_from_scores(list(categories), intent, reality)

            # Stage 4: Aggregation
            self._enter(PipelineStage.AGGREGATING)
            result = self.calculator.calculate(
                matrix, list(categories), validation, documents=documents
            )

            warnings.extend(
                AnalysisWarning(component="extraction", message=w.message, source=w.source)
                for w in self.extractor.warnings
            )
            result.warnings = warnings + result.warnings
            result.commit_count = len(commits)
            result.document_count = len(documents)
            result.git_ref = git_ref

        except Exception:
            self.stage = PipelineStage.FAILED
            raise

        self.stage = PipelineStage.DONE
        logger.structured(
            logging.INFO,
            f"Trust debt {result.total_debt:.1f} (grade {result.grade.value})",
            total_debt=result.total_debt,
            grade=result.grade.value,
            warnings=len(result.warnings),
        )
        return result

    def _orthogonality_warnings(self, validation: ValidationResult) -> list[AnalysisWarning]:
        """Apply the strict/warn policy to a validation result."""
        orthogonality = self.context.config.orthogonality
        if validation.failed_pairs and orthogonality.strict:
            raise OrthogonalityViolation(validation.failed_pairs, validation.threshold)

        warnings = []
        for pair in validation.failed_pairs:
            shared = ", ".join(pair.shared_keywords) or "none"
            message = (
                f"Orthogonality {pair.orthogonality:.2f} below threshold "
                f"{validation.threshold:.2f} (shared keywords: {shared})"
            )
            logger.warning("%s/%s: %s", pair.first, pair.second, message)
            warnings.append(
                AnalysisWarning(
                    component="orthogonality",
                    message=message,
                    source=f"{pair.first}/{pair.second}",
                )
            )
        if not validation.symmetric or not validation.diagonal_ok:
            warnings.append(
                AnalysisWarning(
                    component="orthogonality",
                    message="Orthogonality matrix is not symmetric with a unit diagonal",
                )
            )
        return warnings
