"""Intent/Reality matrix construction.

For category i with weight w_i, intent score I_i and reality score R_i,
pair weight w_ij = sqrt(w_i * w_j) and unit scale u:

    diagonal (i == j): intent = I_i, reality = R_i
                       debt = u * w_i * (I_i - R_i)^2
    upper    (i <  j): reality = (R_i + R_j) / 2, intent = I_i
                       debt = u * w_ij * max(0, reality - intent)^2
    lower    (i >  j): intent = (I_i + I_j) / 2, reality = R_i
                       debt = u * w_ij * max(0, intent - reality)^2

The upper triangle therefore only accumulates implementation activity that
outruns documentation, and the lower triangle only documentation that
outruns implementation. Every cell is a deterministic function of the
corpora and the categories.

Scores live in [0, 1], so u puts debt on the scale of the grade table: a
category of weight 30 that is fully documented but never touched costs
3000 units on its diagonal cell at the default u = 100.
"""

import logging
import math
from collections.abc import Sequence

from trustdebt.analyzers.similarity import SimilarityScorer
from trustdebt.errors import ConfigurationError
from trustdebt.models.category import Category
from trustdebt.models.matrix import MatrixCell, TrustDebtMatrix
from trustdebt.models.signals import Corpus

logger = logging.getLogger(__name__)

DEFAULT_UNIT_SCALE = 100.0


class MatrixBuilder:
    """Builds the N×N Intent/Reality matrix for a category list."""

    def __init__(
        self,
        scorer: SimilarityScorer | None = None,
        unit_scale: float = DEFAULT_UNIT_SCALE,
    ) -> None:
        if unit_scale <= 0:
            raise ConfigurationError(f"unit_scale must be > 0, got {unit_scale}")
        self.scorer = scorer or SimilarityScorer()
        self.unit_scale = unit_scale

    def score_categories(
        self,
        categories: Sequence[Category],
        corpus: Corpus,
    ) -> dict[str, float]:
        """Score a corpus against every category's keywords."""
        return {c.id: self.scorer.score_corpus(corpus, c.keywords) for c in categories}

    def build(
        self,
        categories: Sequence[Category],
        intent_corpus: Corpus,
        reality_corpus: Corpus,
    ) -> TrustDebtMatrix:
        """Build the matrix.

        Args:
            categories: Categories in matrix order
            intent_corpus: Documentation corpus
            reality_corpus: Commit-message corpus

        Returns:
            TrustDebtMatrix with N² cells in row-major order

        Raises:
            ScoringError: If a category has no scorable keywords
        """
        intent = self.score_categories(categories, intent_corpus)
        reality = self.score_categories(categories, reality_corpus)
        return self.build_from_scores(categories, intent, reality)

    def build_from_scores(
        self,
        categories: Sequence[Category],
        intent: dict[str, float],
        reality: dict[str, float],
    ) -> TrustDebtMatrix:
        """Build the matrix from precomputed per-category scores."""
        cells: list[MatrixCell] = []

        for i, row in enumerate(categories):
            for j, col in enumerate(categories):
                if i == j:
                    intent_value = intent[row.id]
                    reality_value = reality[row.id]
                    debt = self.unit_scale * row.weight * (intent_value - reality_value) ** 2
                elif i < j:
                    reality_value = (reality[row.id] + reality[col.id]) / 2
                    intent_value = intent[row.id]
                    gap = max(0.0, reality_value - intent_value)
                    debt = self.unit_scale * math.sqrt(row.weight * col.weight) * gap**2
                else:
                    intent_value = (intent[row.id] + intent[col.id]) / 2
                    reality_value = reality[row.id]
                    gap = max(0.0, intent_value - reality_value)
                    debt = self.unit_scale * math.sqrt(row.weight * col.weight) * gap**2

                cells.append(
                    MatrixCell(
                        row_category=row.id,
                        col_category=col.id,
                        row_index=i,
                        col_index=j,
                        intent_value=intent_value,
                        reality_value=reality_value,
                        trust_debt_units=debt,
                    )
                )

        logger.debug("Built %d×%d matrix (%d cells)", len(categories), len(categories), len(cells))
        return TrustDebtMatrix(
            category_ids=tuple(c.id for c in categories),
            cells=tuple(cells),
            intent_scores=dict(intent),
            reality_scores=dict(reality),
            unit_scale=self.unit_scale,
        )
