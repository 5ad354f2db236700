"""Typed error taxonomy for trust debt analysis.

Fatal errors abort a run before any result is produced:
- ConfigurationError: malformed or missing configuration / category document
- ScoringError: empty keyword set reached the similarity scorer
- AnalysisCancelled: the cooperative cancel signal was set

Recoverable conditions are raised locally and converted into warnings on the
result (unless strict mode promotes them):
- ExtractionWarning: missing documentation source, empty or unreadable history
- OrthogonalityViolation: category pairs below the independence threshold

DegenerateRatioError is raised only when a caller asks for the numeric value
of a ratio whose denominator is zero.
"""

from typing import Any


class TrustDebtError(Exception):
    """Base class for all trust debt errors."""


class ConfigurationError(TrustDebtError):
    """Raised when configuration or the category document is invalid."""

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        full_message = f"{source}: {message}" if source else message
        super().__init__(full_message)


class ScoringError(TrustDebtError):
    """Raised when the similarity scorer receives an empty keyword set."""


class ExtractionWarning(TrustDebtError):
    """Recoverable extraction problem (missing document, empty history).

    Attributes:
        source: Document path or "git" for commit history problems
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        self.message = message
        super().__init__(message)


class OrthogonalityViolation(TrustDebtError):
    """One or more category pairs fail the orthogonality threshold.

    Attributes:
        failed_pairs: Failing pairs as reported by the validator
        threshold: Threshold the pairs were checked against
    """

    def __init__(self, failed_pairs: list[Any], threshold: float) -> None:
        self.failed_pairs = failed_pairs
        self.threshold = threshold
        pairs = ", ".join(f"{p.first}/{p.second}" for p in failed_pairs)
        super().__init__(
            f"{len(failed_pairs)} category pair(s) below orthogonality "
            f"threshold {threshold}: {pairs}"
        )


class DegenerateRatioError(TrustDebtError):
    """Raised when the value of an undefined ratio (zero denominator) is requested."""

    def __init__(self, numerator: float, denominator: float) -> None:
        self.numerator = numerator
        self.denominator = denominator
        super().__init__(
            f"Ratio is undefined: {numerator} / {denominator}"
        )


class AnalysisCancelled(TrustDebtError):
    """Raised when an analysis run is cancelled between stages."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Analysis cancelled during stage: {stage}")
