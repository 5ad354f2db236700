"""Reality and Intent signal extraction.

Reality signals are commit subjects read from `git log` within a time window.
Intent signals are weighted documentation files read from the repository.

Extraction is read-only. Recoverable problems (missing documents, empty or
unreadable history, slow reads) are collected as ExtractionWarning objects on
the extractor rather than raised; the pipeline turns them into result
warnings.
"""

import logging
import subprocess
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from trustdebt.errors import ExtractionWarning
from trustdebt.models.signals import (
    CommitRecord,
    DocumentSource,
    DocumentSpec,
    utc_from_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
DEFAULT_DOC_SIZE_LIMIT = 50_000
DEFAULT_IO_TIMEOUT = 30.0

# Unit and record separators keep subjects containing "|" intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "--format=%H%x1f%ct%x1f%s%x1e"


class SignalExtractor:
    """Reads commits and documentation for one analysis run.

    Example:
        extractor = SignalExtractor(Path("/path/to/repo"))
        commits = extractor.extract_reality(window_days=7)
        documents = extractor.extract_intent([DocumentSpec("README.md", 30)])
        for warning in extractor.warnings:
            print(warning.source, warning.message)
    """

    def __init__(
        self,
        repo_path: Path,
        doc_size_limit: int = DEFAULT_DOC_SIZE_LIMIT,
        io_timeout: float = DEFAULT_IO_TIMEOUT,
        max_workers: int = 4,
    ) -> None:
        """Initialize the extractor.

        Args:
            repo_path: Repository root
            doc_size_limit: Maximum characters kept per document
            io_timeout: Seconds allowed for git and for the document read phase
            max_workers: Threads used to read documents
        """
        self.repo_path = repo_path
        self.doc_size_limit = doc_size_limit
        self.io_timeout = io_timeout
        self.max_workers = max_workers
        self.warnings: list[ExtractionWarning] = []

    def _warn(self, message: str, source: str | None = None) -> None:
        logger.warning("%s", f"{source}: {message}" if source else message)
        self.warnings.append(ExtractionWarning(message, source=source))

    # =========================================================================
    # Reality
    # =========================================================================

    def extract_reality(
        self,
        window_days: int = DEFAULT_WINDOW_DAYS,
        branch: str | None = None,
        paths: Sequence[str] = (),
    ) -> list[CommitRecord]:
        """Read commits from the last `window_days` days.

        Args:
            window_days: Size of the time window in days
            branch: Branch or ref to read (current HEAD if None)
            paths: Restrict history to these repository paths

        Returns:
            Commits, newest first; empty on git failure or empty history
        """
        cmd = ["git", "log", f"--since={window_days} days ago", _LOG_FORMAT]
        if branch:
            cmd.extend(["--end-of-options", branch])
        if paths:
            cmd.append("--")
            cmd.extend(paths)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.repo_path,
                timeout=self.io_timeout,
            )
        except subprocess.TimeoutExpired:
            self._warn(f"git log timed out after {self.io_timeout}s", source="git")
            return []
        except (FileNotFoundError, OSError) as e:
            self._warn(f"git is not available: {e}", source="git")
            return []

        if result.returncode != 0:
            stderr = result.stderr.strip() or f"exit code {result.returncode}"
            self._warn(f"git log failed: {stderr}", source="git")
            return []

        commits = parse_git_log(result.stdout)
        if not commits:
            self._warn(f"No commits in the last {window_days} day(s)", source="git")
        else:
            logger.debug("Read %d commit(s) from the last %d day(s)", len(commits), window_days)
        return commits

    def get_git_ref(self) -> str | None:
        """Get current git commit SHA.

        Returns:
            Commit SHA if available, None otherwise
        """
        try:
            result = subprocess.run(
                ["git", "rev-parse", "HEAD"],
                capture_output=True,
                text=True,
                cwd=self.repo_path,
                timeout=10,
            )
            if result.returncode == 0:
                return result.stdout.strip()
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            pass
        return None

    # =========================================================================
    # Intent
    # =========================================================================

    def resolve_specs(self, specs: Sequence[DocumentSpec]) -> list[tuple[Path, DocumentSpec]]:
        """Expand document specs into concrete files.

        Glob matches are sorted. A file matched by several specs keeps the
        first spec's weight. Specs matching nothing, and absolute paths or
        patterns, produce a warning.
        """
        resolved: list[tuple[Path, DocumentSpec]] = []
        seen: set[Path] = set()

        for spec in specs:
            if Path(spec.path).is_absolute():
                self._warn(
                    "Documentation path must be relative to the repository", source=spec.path
                )
                continue
            if spec.is_glob:
                matches = sorted(p for p in self.repo_path.glob(spec.path) if p.is_file())
                if not matches:
                    self._warn("No documentation matches pattern", source=spec.path)
            else:
                candidate = self.repo_path / spec.path
                matches = [candidate] if candidate.is_file() else []
                if not matches:
                    self._warn("Documentation source not found", source=spec.path)

            for match in matches:
                if match not in seen:
                    seen.add(match)
                    resolved.append((match, spec))

        return resolved

    def read_document(self, path: Path, weight: float) -> DocumentSource:
        """Read one document, truncated to the size limit.

        Raises:
            OSError: If the file cannot be read
        """
        content = path.read_text(encoding="utf-8", errors="replace")
        stat = path.stat()
        return DocumentSource(
            path=path.relative_to(self.repo_path).as_posix(),
            weight=weight,
            content=content[: self.doc_size_limit],
            last_modified=utc_from_timestamp(stat.st_mtime),
            original_size=len(content),
        )

    def extract_intent(self, specs: Sequence[DocumentSpec]) -> list[DocumentSource]:
        """Read all configured documentation sources.

        Documents are read concurrently; the read phase as a whole is bounded
        by `io_timeout`. Missing, unreadable or late documents are skipped
        with a warning.

        Args:
            specs: Weighted documentation specs (paths or glob patterns)

        Returns:
            Documents in resolution order
        """
        resolved = self.resolve_specs(specs)
        if not resolved:
            return []

        documents: list[DocumentSource] = []
        executor = ThreadPoolExecutor(max_workers=max(1, self.max_workers))
        try:
            futures = [
                executor.submit(self.read_document, path, spec.weight)
                for path, spec in resolved
            ]
            done, _pending = wait(futures, timeout=self.io_timeout)

            for (path, _spec), future in zip(resolved, futures):
                relative = path.relative_to(self.repo_path).as_posix()
                if future not in done:
                    future.cancel()
                    self._warn(f"Read timed out after {self.io_timeout}s", source=relative)
                    continue
                try:
                    document = future.result()
                except OSError as e:
                    self._warn(f"Could not read document: {e}", source=relative)
                    continue
                if document.truncated:
                    logger.debug(
                        "Truncated %s from %d to %d characters",
                        relative,
                        document.original_size,
                        len(document.content),
                    )
                documents.append(document)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.debug("Read %d documentation source(s)", len(documents))
        return documents


def parse_git_log(output: str) -> list[CommitRecord]:
    """Parse `git log` output produced with the extractor's format string."""
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FIELD_SEP)
        if len(parts) != 3:
            logger.debug("Skipping malformed git log record: %r", record)
            continue
        sha, timestamp, subject = parts
        try:
            seconds = int(timestamp)
        except ValueError:
            logger.debug("Skipping git log record with bad timestamp: %r", record)
            continue
        commits.append(
            CommitRecord(hash=sha.strip(), message=subject, timestamp=utc_from_timestamp(seconds))
        )
    return commits
