"""Category orthogonality measurement and validation.

Orthogonality is the Jaccard complement of two normalized keyword sets:

    orthogonality(i, j) = 1 - |K_i ∩ K_j| / |K_i ∪ K_j|

The diagonal is 1.0 by definition, and an empty union (both sets empty after
normalization) also counts as 1.0 since there is no evidence of overlap.

Validation collects violations instead of raising; the pipeline applies the
configured warn-or-abort policy. The refinement assistant proposes keyword
changes for failing pairs but never mutates the category set.
"""

import logging
from collections.abc import Iterable, Sequence

from trustdebt.analyzers.text import KeywordNormalizer
from trustdebt.models.category import Category
from trustdebt.models.orthogonality import (
    FailedPair,
    OrthogonalityMatrix,
    RefinementSuggestion,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.75
SYMMETRY_TOLERANCE = 1e-10


def jaccard_orthogonality(first: frozenset[str], second: frozenset[str]) -> float:
    """Jaccard complement of two keyword sets (1.0 for an empty union)."""
    union = first | second
    if not union:
        return 1.0
    return 1.0 - len(first & second) / len(union)


def build_orthogonality_matrix(
    category_ids: Sequence[str],
    keyword_sets: Sequence[frozenset[str]],
) -> OrthogonalityMatrix:
    """Build the symmetric orthogonality matrix from normalized keyword sets."""
    n = len(category_ids)
    values = [[1.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            value = jaccard_orthogonality(keyword_sets[i], keyword_sets[j])
            values[i][j] = value
            values[j][i] = value
    return OrthogonalityMatrix(
        category_ids=tuple(category_ids),
        values=tuple(tuple(row) for row in values),
    )


def validate_matrix(
    matrix: OrthogonalityMatrix,
    threshold: float = DEFAULT_THRESHOLD,
    keyword_sets: Sequence[frozenset[str]] | None = None,
) -> ValidationResult:
    """Validate symmetry, diagonal and threshold of an orthogonality matrix.

    Args:
        matrix: Matrix to validate
        threshold: Minimum acceptable off-diagonal orthogonality
        keyword_sets: Normalized keyword sets (to report shared keywords)

    Returns:
        ValidationResult with every violation collected
    """
    n = matrix.size
    values = matrix.values
    result = ValidationResult(threshold=threshold)

    for i in range(n):
        if values[i][i] != 1.0:
            result.diagonal_ok = False
        for j in range(i + 1, n):
            if abs(values[i][j] - values[j][i]) >= SYMMETRY_TOLERANCE:
                result.symmetric = False
            if values[i][j] < threshold:
                shared: tuple[str, ...] = ()
                if keyword_sets is not None:
                    shared = tuple(sorted(keyword_sets[i] & keyword_sets[j]))
                result.failed_pairs.append(
                    FailedPair(
                        first=matrix.category_ids[i],
                        second=matrix.category_ids[j],
                        orthogonality=values[i][j],
                        shared_keywords=shared,
                    )
                )

    off_diagonal = matrix.off_diagonal()
    if off_diagonal:
        result.average_orthogonality = sum(off_diagonal) / len(off_diagonal)
        result.minimum_orthogonality = min(off_diagonal)

    return result


def compute_orthogonality(
    categories: Sequence[Category],
    threshold: float = DEFAULT_THRESHOLD,
    normalizer: KeywordNormalizer | None = None,
) -> tuple[OrthogonalityMatrix, ValidationResult]:
    """Measure and validate pairwise keyword independence.

    Args:
        categories: Categories in matrix order
        threshold: Minimum acceptable off-diagonal orthogonality
        normalizer: Keyword normalizer (a fresh one if None)

    Returns:
        Tuple of (OrthogonalityMatrix, ValidationResult)
    """
    normalizer = normalizer or KeywordNormalizer()
    keyword_sets = [normalizer.normalize_set(c.keywords) for c in categories]
    matrix = build_orthogonality_matrix([c.id for c in categories], keyword_sets)
    validation = validate_matrix(matrix, threshold, keyword_sets)

    logger.debug(
        "Orthogonality: average %.3f, minimum %.3f, %d failing pair(s)",
        validation.average_orthogonality,
        validation.minimum_orthogonality,
        len(validation.failed_pairs),
    )
    return matrix, validation


# =============================================================================
# Refinement Assistant
# =============================================================================


def _raw_keyword_for(category: Category, normalized: str, normalizer: KeywordNormalizer) -> str:
    """Find the original keyword of a category that normalizes to `normalized`."""
    for keyword in category.sorted_keywords:
        if normalizer.normalize(keyword) == normalized:
            return keyword
    return normalized


def _orthogonality_after(
    first: frozenset[str],
    second: frozenset[str],
    remove: str | None = None,
    add: str | None = None,
) -> float:
    """Pair orthogonality after changing the first set."""
    changed = set(first)
    if remove is not None:
        changed.discard(remove)
    if add is not None:
        changed.add(add)
    return jaccard_orthogonality(frozenset(changed), second)


def suggest_refinements(
    categories: Sequence[Category],
    validation: ValidationResult,
    vocabulary: Iterable[str] = (),
    normalizer: KeywordNormalizer | None = None,
    max_candidates: int = 3,
) -> list[RefinementSuggestion]:
    """Propose keyword changes that would raise failing pairs' orthogonality.

    For each failing pair and each shared keyword:
    - removal from the category with more keywords (never emptying a category)
    - substitution with an unused vocabulary term
    For each failing pair, addition of an unused vocabulary term to the
    smaller category.

    Args:
        categories: Category set the validation was computed over
        validation: Validation result containing failed pairs
        vocabulary: Candidate terms (e.g. frequent intent-corpus terms)
        normalizer: Keyword normalizer (a fresh one if None)
        max_candidates: Substitution/addition candidates tried per keyword

    Returns:
        Suggestions sorted by estimated improvement, highest first
    """
    normalizer = normalizer or KeywordNormalizer()
    by_id = {c.id: c for c in categories}
    normalized = {c.id: normalizer.normalize_set(c.keywords) for c in categories}
    in_use = frozenset().union(*normalized.values()) if normalized else frozenset()

    candidates: list[tuple[str, str]] = []
    seen: set[str] = set()
    for term in vocabulary:
        stem = normalizer.normalize(term)
        if stem and stem not in in_use and stem not in seen:
            seen.add(stem)
            candidates.append((term, stem))

    suggestions: list[RefinementSuggestion] = []

    for pair in validation.failed_pairs:
        if pair.first not in by_id or pair.second not in by_id:
            continue
        first_set = normalized[pair.first]
        second_set = normalized[pair.second]
        current = jaccard_orthogonality(first_set, second_set)
        pair_ids = (pair.first, pair.second)

        # Change the larger category; the smaller one keeps its identity
        if len(first_set) >= len(second_set):
            target_id, target_set, other_set = pair.first, first_set, second_set
        else:
            target_id, target_set, other_set = pair.second, second_set, first_set
        target = by_id[target_id]

        for shared in sorted(first_set & second_set):
            raw = _raw_keyword_for(target, shared, normalizer)

            if len(target_set) > 1:
                estimate = _orthogonality_after(target_set, other_set, remove=shared)
                if estimate > current:
                    suggestions.append(
                        RefinementSuggestion(
                            action="remove",
                            category_id=target_id,
                            pair=pair_ids,
                            keyword=raw,
                            replacement=None,
                            estimated_orthogonality=estimate,
                            improvement=estimate - current,
                        )
                    )

            for term, stem in candidates[:max_candidates]:
                estimate = _orthogonality_after(target_set, other_set, remove=shared, add=stem)
                if estimate > current:
                    suggestions.append(
                        RefinementSuggestion(
                            action="substitute",
                            category_id=target_id,
                            pair=pair_ids,
                            keyword=raw,
                            replacement=term,
                            estimated_orthogonality=estimate,
                            improvement=estimate - current,
                        )
                    )
                    break

        smaller_id = pair.second if target_id == pair.first else pair.first
        for term, stem in candidates[:max_candidates]:
            estimate = _orthogonality_after(normalized[smaller_id], target_set, add=stem)
            if estimate > current:
                suggestions.append(
                    RefinementSuggestion(
                        action="add",
                        category_id=smaller_id,
                        pair=pair_ids,
                        keyword=None,
                        replacement=term,
                        estimated_orthogonality=estimate,
                        improvement=estimate - current,
                    )
                )
                break

    suggestions.sort(
        key=lambda s: (-s.improvement, s.pair, s.action, s.keyword or "", s.replacement or "")
    )
    return suggestions
