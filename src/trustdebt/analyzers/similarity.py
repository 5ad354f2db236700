"""Keyword similarity scoring.

A text scores against a keyword set as:

    coverage        = found / K
    frequency_boost = min(1, total / (2 * K))
    similarity      = 0.7 * coverage + 0.3 * frequency_boost

where `found` is the number of keywords occurring at least once and `total`
is the number of occurrences of all keywords. Matching is case-insensitive
and anchored at a leading word boundary only, so "commit" also matches
"commits" and "committed".
"""

import re
from collections.abc import Iterable

from trustdebt.errors import ScoringError
from trustdebt.models.signals import Corpus

COVERAGE_WEIGHT = 0.7
FREQUENCY_WEIGHT = 0.3


class SimilarityScorer:
    """Scores texts against category keyword sets.

    Compiled keyword patterns are cached per instance; the scorer holds no
    other state.
    """

    def __init__(
        self,
        coverage_weight: float = COVERAGE_WEIGHT,
        frequency_weight: float = FREQUENCY_WEIGHT,
    ) -> None:
        self.coverage_weight = coverage_weight
        self.frequency_weight = frequency_weight
        self._patterns: dict[str, re.Pattern[str]] = {}

    def _pattern(self, keyword: str) -> re.Pattern[str]:
        pattern = self._patterns.get(keyword)
        if pattern is None:
            pattern = re.compile(r"\b" + re.escape(keyword.lower()), re.IGNORECASE)
            self._patterns[keyword] = pattern
        return pattern

    def score(self, text: str, keywords: Iterable[str]) -> float:
        """Score one text against a keyword set.

        Args:
            text: Text to score
            keywords: Category keywords

        Returns:
            Similarity in [0, 1]

        Raises:
            ScoringError: If the keyword set is empty
        """
        keyword_list = sorted({k for k in keywords if k and k.strip()})
        k = len(keyword_list)
        if k == 0:
            raise ScoringError("Cannot score against an empty keyword set")
        if not text:
            return 0.0

        found = 0
        total = 0
        for keyword in keyword_list:
            matches = len(self._pattern(keyword).findall(text))
            if matches:
                found += 1
                total += matches

        coverage = found / k
        frequency_boost = min(1.0, total / (k * 2))
        similarity = self.coverage_weight * coverage + self.frequency_weight * frequency_boost
        return max(0.0, min(1.0, similarity))

    def score_corpus(self, corpus: Corpus, keywords: Iterable[str]) -> float:
        """Score a weighted corpus as the weight-normalized mean of its segments.

        An empty corpus scores 0.0.

        Raises:
            ScoringError: If the keyword set is empty
        """
        keyword_list = list(keywords)
        if not any(k and k.strip() for k in keyword_list):
            raise ScoringError("Cannot score against an empty keyword set")

        weighted = 0.0
        total_weight = 0.0
        for segment in corpus.segments:
            if segment.weight <= 0:
                continue
            weighted += segment.weight * self.score(segment.text, keyword_list)
            total_weight += segment.weight

        if total_weight == 0:
            return 0.0
        return max(0.0, min(1.0, weighted / total_weight))
