"""Trust Debt data models.

This module exports all core entities used throughout the application:
- Category / CategorySet: Keyword-defined taxonomy
- CommitRecord / DocumentSource / Corpus: Reality and Intent signals
- MatrixCell / TrustDebtMatrix: Asymmetric Intent/Reality matrix
- OrthogonalityMatrix / ValidationResult: Category independence checks
- AnalysisResult: Terminal output of one run
"""

from trustdebt.models.analysis import (
    AnalysisResult,
    AnalysisWarning,
    AsymmetryRatio,
    DiagonalHealth,
    DriftEntry,
    Grade,
)
from trustdebt.models.category import (
    Category,
    CategorySet,
    categories_from_data,
    load_categories,
)
from trustdebt.models.matrix import MatrixCell, Triangle, TrustDebtMatrix
from trustdebt.models.orthogonality import (
    FailedPair,
    OrthogonalityMatrix,
    RefinementSuggestion,
    ValidationResult,
)
from trustdebt.models.signals import (
    CommitRecord,
    Corpus,
    CorpusSegment,
    DocumentSource,
    DocumentSpec,
)

__all__ = [
    "AnalysisResult",
    "AnalysisWarning",
    "AsymmetryRatio",
    "Category",
    "CategorySet",
    "CommitRecord",
    "Corpus",
    "CorpusSegment",
    "DiagonalHealth",
    "DocumentSource",
    "DocumentSpec",
    "DriftEntry",
    "FailedPair",
    "Grade",
    "MatrixCell",
    "OrthogonalityMatrix",
    "RefinementSuggestion",
    "Triangle",
    "TrustDebtMatrix",
    "ValidationResult",
    "categories_from_data",
    "load_categories",
]
