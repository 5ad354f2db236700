"""Raw signal entities: Reality (commits) and Intent (documentation).

- CommitRecord: one commit from version-control history
- DocumentSpec: configured documentation source (path or glob, weight)
- DocumentSource: documentation content read for one run
- CorpusSegment / Corpus: weighted text handed to the similarity scorer
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class CommitRecord:
    """Single commit read from version-control history.

    The message keeps its original casing for audit and ranking; matching
    uses `normalized_message`.

    Attributes:
        hash: Full commit SHA
        message: Commit subject with original casing
        timestamp: Commit time (UTC)
    """

    hash: str
    message: str
    timestamp: datetime

    @property
    def normalized_message(self) -> str:
        """Lowercased message used for keyword matching."""
        return self.message.lower()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hash": self.hash,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DocumentSpec:
    """Configured documentation source.

    Attributes:
        path: File path relative to the repository root; may be a glob pattern
        weight: Importance weight of the source (> 0)
    """

    path: str
    weight: float

    @property
    def is_glob(self) -> bool:
        """Return True if the path contains glob characters."""
        return any(ch in self.path for ch in "*?[")


@dataclass(frozen=True)
class DocumentSource:
    """Documentation content read for one analysis run.

    Content is truncated to the configured size limit, always from the start
    of the file, so repeated runs see identical text.

    Attributes:
        path: Path relative to the repository root
        weight: Importance weight inherited from the DocumentSpec
        content: File content (possibly truncated)
        last_modified: File modification time (UTC)
        original_size: Character count before truncation
    """

    path: str
    weight: float
    content: str
    last_modified: datetime
    original_size: int = 0

    @property
    def truncated(self) -> bool:
        """Return True if the content was cut at the size limit."""
        return self.original_size > len(self.content)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (content omitted)."""
        return {
            "path": self.path,
            "weight": self.weight,
            "last_modified": self.last_modified.isoformat(),
            "original_size": self.original_size,
            "truncated": self.truncated,
        }


@dataclass(frozen=True)
class CorpusSegment:
    """A weighted piece of text within a corpus."""

    text: str
    weight: float = 1.0
    label: str = ""


@dataclass(frozen=True)
class Corpus:
    """Weighted text corpus scored against category keywords.

    Attributes:
        name: Corpus name ("intent" or "reality")
        segments: Weighted text segments
    """

    name: str
    segments: tuple[CorpusSegment, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """Return True if the corpus carries no scorable text."""
        return not any(s.text.strip() and s.weight > 0 for s in self.segments)

    @property
    def text(self) -> str:
        """All segment text joined, for inspection and vocabulary extraction."""
        return "\n".join(s.text for s in self.segments)

    @classmethod
    def from_commits(cls, commits: Sequence[CommitRecord]) -> "Corpus":
        """Build the Reality corpus: all commit messages as one segment."""
        if not commits:
            return cls(name="reality")
        text = "\n".join(c.normalized_message for c in commits)
        return cls(
            name="reality",
            segments=(CorpusSegment(text=text, weight=1.0, label="commits"),),
        )

    @classmethod
    def from_documents(cls, documents: Sequence[DocumentSource]) -> "Corpus":
        """Build the Intent corpus: one segment per document, carrying its weight."""
        return cls(
            name="intent",
            segments=tuple(
                CorpusSegment(text=d.content.lower(), weight=d.weight, label=d.path)
                for d in documents
            ),
        )

    @classmethod
    def from_text(cls, name: str, text: str) -> "Corpus":
        """Build a single-segment corpus from raw text."""
        return cls(name=name, segments=(CorpusSegment(text=text),))


def utc_from_timestamp(seconds: float) -> datetime:
    """Convert a POSIX timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=UTC)
