"""Trust debt analyzers - the deterministic computation core.

Analyzers, leaves first:
- Text: keyword normalization and vocabulary extraction
- Orthogonality: pairwise keyword independence, validation, refinement hints
- Ordering: matrix layout strategies (document order, ShortLex)
- Extractor: Reality (git commits) and Intent (documentation) signals
- Similarity: keyword-set scoring of texts and corpora
- Matrix Builder: N×N Intent/Reality matrix
- Calculator: aggregation, calibration and grading
"""

from trustdebt.analyzers.calculator import GradeTable, GradeThreshold, TrustDebtCalculator
from trustdebt.analyzers.extractor import SignalExtractor, parse_git_log
from trustdebt.analyzers.matrix_builder import MatrixBuilder
from trustdebt.analyzers.ordering import apply_ordering, shortlex_order, validate_shortlex
from trustdebt.analyzers.orthogonality import (
    compute_orthogonality,
    jaccard_orthogonality,
    suggest_refinements,
    validate_matrix,
)
from trustdebt.analyzers.similarity import SimilarityScorer
from trustdebt.analyzers.text import KeywordNormalizer

__all__ = [
    "GradeTable",
    "GradeThreshold",
    "KeywordNormalizer",
    "MatrixBuilder",
    "SignalExtractor",
    "SimilarityScorer",
    "TrustDebtCalculator",
    "apply_ordering",
    "compute_orthogonality",
    "jaccard_orthogonality",
    "parse_git_log",
    "shortlex_order",
    "suggest_refinements",
    "validate_matrix",
    "validate_shortlex",
]
