"""Keyword normalization and vocabulary extraction.

Keywords are normalized before set comparison so that surface variants
("analyze", "analyzes", "Analyze") count as the same concept:
1. lowercase and strip punctuation
2. drop stop-words
3. stem each word (Snowball English stemmer)
4. de-duplicate

Multi-word keywords are normalized word by word and re-joined with a space.
"""

import re
from collections import Counter
from collections.abc import Iterable

import snowballstemmer

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "this", "that", "is", "are", "was", "were", "be", "been",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "can", "not", "no", "from", "it", "they", "we",
    "you", "i", "me", "my", "our", "your", "their", "its", "as", "if", "so",
    "into", "than", "then", "there", "these", "those", "such", "also", "all",
    "any", "each", "more", "most", "other", "some", "only", "very", "just",
})

_WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9_\-]*")


class KeywordNormalizer:
    """Normalizes keywords for orthogonality comparison.

    Each instance owns its stemmer; create one per analysis run.
    """

    def __init__(
        self,
        stop_words: Iterable[str] = STOP_WORDS,
        language: str = "english",
    ) -> None:
        """Initialize the normalizer.

        Args:
            stop_words: Words dropped during normalization
            language: Snowball stemmer language
        """
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self._stemmer = snowballstemmer.stemmer(language)

    def tokenize(self, text: str) -> list[str]:
        """Split text into lowercase word tokens."""
        return _WORD_PATTERN.findall(text.lower())

    def stem(self, word: str) -> str:
        """Stem a single lowercase word."""
        return self._stemmer.stemWord(word)

    def normalize(self, keyword: str) -> str | None:
        """Normalize one keyword.

        Returns:
            Normalized keyword, or None if nothing remains after stop-word removal
        """
        words = [w for w in self.tokenize(keyword) if w not in self.stop_words]
        if not words:
            return None
        return " ".join(self.stem(w) for w in words)

    def normalize_set(self, keywords: Iterable[str]) -> frozenset[str]:
        """Normalize and de-duplicate a keyword set."""
        normalized = (self.normalize(k) for k in keywords)
        return frozenset(k for k in normalized if k)

    def extract_vocabulary(
        self,
        text: str,
        limit: int = 50,
        min_length: int = 3,
        exclude: Iterable[str] = (),
    ) -> list[str]:
        """Extract frequent candidate keywords from free text.

        Terms are ranked by frequency (ties alphabetically) after stop-word
        and short-token removal. Terms whose normalized form appears in
        `exclude` are skipped.

        Args:
            text: Source text (typically the intent corpus)
            limit: Maximum number of terms to return
            min_length: Minimum token length
            exclude: Keywords already in use (raw or normalized)

        Returns:
            Candidate terms in their surface (unstemmed) form
        """
        excluded = self.normalize_set(exclude)
        counts = Counter(
            token
            for token in self.tokenize(text)
            if len(token) >= min_length
            and token not in self.stop_words
            and not token.isdigit()
        )

        vocabulary: list[str] = []
        seen_stems: set[str] = set()
        for token, _count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
            stem = self.stem(token)
            if stem in excluded or stem in seen_stems:
                continue
            seen_stems.add(stem)
            vocabulary.append(token)
            if len(vocabulary) >= limit:
                break
        return vocabulary
