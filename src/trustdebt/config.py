"""Trust debt configuration system.

Configuration is YAML-based with minimal CLI overrides (--since, --threshold,
--strict, --ci). Supports environment variable substitution (${VAR}) in config
files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.trustdebt/config.yaml
3. ./trustdebt.yaml
"""

import math
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from trustdebt.errors import ConfigurationError
from trustdebt.models.category import CategorySet, categories_from_data, load_categories
from trustdebt.models.signals import DocumentSpec

DEFAULT_CATEGORIES_PATH = ".trustdebt/categories.yaml"

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ExtractionConfig:
    """Signal extraction configuration.

    Attributes:
        time_window_days: Commit history window in days
        branch: Branch or ref to read (current HEAD if None)
        paths: Restrict commit history to these paths
        doc_size_limit: Maximum characters kept per document
        io_timeout: Seconds allowed for git and for document reads
        max_workers: Threads used to read documents
    """

    time_window_days: int = 7
    branch: str | None = None
    paths: list[str] = field(default_factory=list)
    doc_size_limit: int = 50_000
    io_timeout: float = 30.0
    max_workers: int = 4

    def __post_init__(self) -> None:
        """Validate extraction configuration."""
        if self.time_window_days < 1:
            raise ConfigurationError(
                f"extraction.time_window_days must be >= 1 (got {self.time_window_days})"
            )
        if self.doc_size_limit < 1:
            raise ConfigurationError(
                f"extraction.doc_size_limit must be >= 1 (got {self.doc_size_limit})"
            )
        if self.io_timeout <= 0:
            raise ConfigurationError(f"extraction.io_timeout must be > 0 (got {self.io_timeout})")
        if self.max_workers < 1:
            raise ConfigurationError(f"extraction.max_workers must be >= 1 (got {self.max_workers})")


@dataclass
class OrthogonalityConfig:
    """Category independence policy.

    Attributes:
        threshold: Minimum acceptable pairwise orthogonality
        strict: Abort the run (instead of warning) when a pair fails
    """

    threshold: float = 0.75
    strict: bool = False

    def __post_init__(self) -> None:
        """Validate orthogonality configuration."""
        if not 0 <= self.threshold <= 1:
            raise ConfigurationError(
                f"orthogonality.threshold must be in [0, 1] (got {self.threshold})"
            )


@dataclass
class CalibrationConfig:
    """Calibration applied to raw debt.

    Each matrix cell costs unit_scale * weight * gap^2, and

    final = raw * (1 - sophistication_discount) / process_health_factor
            * (1 + spec_age_rate * days since the oldest document changed)

    The defaults are placeholders without empirical basis.

    Attributes:
        unit_scale: Multiplier putting cell debt on the grade table's scale (> 0)
        sophistication_discount: Fractional discount in [0, 1)
        process_health_factor: Divisor > 0
        spec_age_rate: Penalty per day of documentation age (0 disables)
    """

    unit_scale: float = 100.0
    sophistication_discount: float = 0.30
    process_health_factor: float = 0.8
    spec_age_rate: float = 0.0

    def __post_init__(self) -> None:
        """Validate calibration configuration."""
        if self.unit_scale <= 0 or not math.isfinite(self.unit_scale):
            raise ConfigurationError(
                f"calibration.unit_scale must be > 0 (got {self.unit_scale})"
            )
        if not 0 <= self.sophistication_discount < 1:
            raise ConfigurationError(
                "calibration.sophistication_discount must be in [0, 1) "
                f"(got {self.sophistication_discount})"
            )
        if self.process_health_factor <= 0 or not math.isfinite(self.process_health_factor):
            raise ConfigurationError(
                "calibration.process_health_factor must be > 0 "
                f"(got {self.process_health_factor})"
            )
        if self.spec_age_rate < 0 or not math.isfinite(self.spec_age_rate):
            raise ConfigurationError(
                f"calibration.spec_age_rate must be >= 0 (got {self.spec_age_rate})"
            )


def _default_grade_thresholds() -> list[dict[str, Any]]:
    return [
        {"grade": "AAA", "below": 100},
        {"grade": "A", "below": 500},
        {"grade": "B", "below": 1000},
        {"grade": "C", "below": 5000},
    ]


@dataclass
class GradingConfig:
    """Grade threshold table.

    Attributes:
        thresholds: Ascending `{grade, below}` entries
        fallback: Grade for debt at or above the last threshold
    """

    thresholds: list[dict[str, Any]] = field(default_factory=_default_grade_thresholds)
    fallback: str = "D"


@dataclass
class HealthConfig:
    """Health interpretation bands.

    Attributes:
        coherence_threshold: Mean diagonal coherence above which the diagonal is healthy
        asymmetry_healthy_min: Lower bound of the balanced asymmetry band
        asymmetry_healthy_max: Upper bound of the balanced asymmetry band
    """

    coherence_threshold: float = 0.7
    asymmetry_healthy_min: float = 1.2
    asymmetry_healthy_max: float = 2.0

    def __post_init__(self) -> None:
        """Validate health configuration."""
        if self.asymmetry_healthy_min > self.asymmetry_healthy_max:
            raise ConfigurationError(
                "health.asymmetry_healthy_min must not exceed health.asymmetry_healthy_max"
            )


@dataclass
class ReportConfig:
    """Result shaping.

    Attributes:
        worst_drift_limit: Keep only this many worst drifts (all if None)
    """

    worst_drift_limit: int | None = None

    def __post_init__(self) -> None:
        """Validate report configuration."""
        if self.worst_drift_limit is not None and self.worst_drift_limit < 0:
            raise ConfigurationError("report.worst_drift_limit must be >= 0")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_on_warning: Exit with code 2 if the run produced warnings
        json_output: Use JSON output format
        threshold: Fail when total debt exceeds this value (None disables)
    """

    fail_on_warning: bool = False
    json_output: bool = False
    threshold: float | None = None


def _default_documents() -> list[DocumentSpec]:
    return [
        DocumentSpec(path="README.md", weight=30),
        DocumentSpec(path="CLAUDE.md", weight=20),
        DocumentSpec(path="docs/**/*.md", weight=25),
    ]


@dataclass
class TrustDebtConfig:
    """Top-level trust debt configuration.

    Attributes:
        categories: Path to the category document, or inline category entries
        extraction: Commit and document extraction settings
        documents: Weighted documentation sources (Intent)
        orthogonality: Category independence policy
        ordering: Matrix order ("config" or "shortlex")
        calibration: Raw-to-final debt calibration
        grading: Grade table
        health: Interpretation bands
        report: Result shaping
        ci: CI/CD settings
    """

    categories: str | list[dict[str, Any]] = DEFAULT_CATEGORIES_PATH
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    documents: list[DocumentSpec] = field(default_factory=_default_documents)
    orthogonality: OrthogonalityConfig = field(default_factory=OrthogonalityConfig)
    ordering: str = "config"
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    grading: GradingConfig = field(default_factory=GradingConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate top-level configuration."""
        valid_orderings = {"config", "shortlex"}
        if self.ordering not in valid_orderings:
            raise ConfigurationError(
                f"Invalid ordering: {self.ordering}. Valid: {sorted(valid_orderings)}"
            )

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def load_category_set(self, repo_path: Path) -> CategorySet:
        """Load the configured categories.

        Relative category paths resolve against the repository root.

        Raises:
            ConfigurationError: If the category document is missing or invalid
        """
        if isinstance(self.categories, list):
            source = str(self._config_path) if self._config_path else "config"
            return categories_from_data(self.categories, source=source)

        path = Path(self.categories)
        if not path.is_absolute():
            path = repo_path / path
        return load_categories(path)


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${TRUSTDEBT_BRANCH} -> value of TRUSTDEBT_BRANCH

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ConfigurationError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigurationError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.trustdebt/config.yaml
    2. ./trustdebt.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".trustdebt" / "config.yaml",
        start_path / "trustdebt.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{name}' must be a mapping")
    return value


def _parse_paths(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(p, str) and p for p in value):
        raise ConfigurationError("extraction.paths must be a list of path strings")
    return list(value)


def _parse_documents(entries: Any) -> list[DocumentSpec]:
    if not isinstance(entries, list):
        raise ConfigurationError("'documents' must be a list")
    documents = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
            raise ConfigurationError(f"documents[{position}] needs a 'path' string")
        weight = entry.get("weight", 1)
        if isinstance(weight, bool) or not isinstance(weight, int | float) or weight <= 0:
            raise ConfigurationError(f"documents[{position}].weight must be a number > 0")
        documents.append(DocumentSpec(path=entry["path"], weight=float(weight)))
    return documents


def load_config_from_dict(data: dict[str, Any]) -> TrustDebtConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        TrustDebtConfig instance

    Raises:
        ConfigurationError: If a value is invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping")

    # Apply environment variable substitution
    data = substitute_env_vars(data)

    config = TrustDebtConfig()

    # Categories: path or inline list
    if "categories" in data:
        categories = data["categories"]
        if not isinstance(categories, str | list):
            raise ConfigurationError("'categories' must be a path or a list of categories")
        config.categories = categories

    try:
        if "extraction" in data:
            extraction_data = _section(data, "extraction")
            defaults = ExtractionConfig()
            config.extraction = ExtractionConfig(
                time_window_days=int(
                    extraction_data.get("time_window_days", defaults.time_window_days)
                ),
                branch=extraction_data.get("branch"),
                paths=_parse_paths(extraction_data.get("paths")),
                doc_size_limit=int(extraction_data.get("doc_size_limit", defaults.doc_size_limit)),
                io_timeout=float(extraction_data.get("io_timeout", defaults.io_timeout)),
                max_workers=int(extraction_data.get("max_workers", defaults.max_workers)),
            )

        if "documents" in data:
            config.documents = _parse_documents(data["documents"])

        if "orthogonality" in data:
            ortho_data = _section(data, "orthogonality")
            config.orthogonality = OrthogonalityConfig(
                threshold=float(ortho_data.get("threshold", 0.75)),
                strict=bool(ortho_data.get("strict", False)),
            )

        if "ordering" in data:
            config.ordering = str(data["ordering"])
            config.__post_init__()

        if "calibration" in data:
            calibration_data = _section(data, "calibration")
            config.calibration = CalibrationConfig(
                unit_scale=float(calibration_data.get("unit_scale", 100.0)),
                sophistication_discount=float(
                    calibration_data.get("sophistication_discount", 0.30)
                ),
                process_health_factor=float(calibration_data.get("process_health_factor", 0.8)),
                spec_age_rate=float(calibration_data.get("spec_age_rate", 0.0)),
            )

        if "grading" in data:
            grading_data = _section(data, "grading")
            thresholds = grading_data.get("thresholds", _default_grade_thresholds())
            if not isinstance(thresholds, list):
                raise ConfigurationError("grading.thresholds must be a list")
            config.grading = GradingConfig(
                thresholds=thresholds,
                fallback=str(grading_data.get("fallback", "D")),
            )

        if "health" in data:
            health_data = _section(data, "health")
            config.health = HealthConfig(
                coherence_threshold=float(health_data.get("coherence_threshold", 0.7)),
                asymmetry_healthy_min=float(health_data.get("asymmetry_healthy_min", 1.2)),
                asymmetry_healthy_max=float(health_data.get("asymmetry_healthy_max", 2.0)),
            )

        if "report" in data:
            report_data = _section(data, "report")
            limit = report_data.get("worst_drift_limit")
            config.report = ReportConfig(
                worst_drift_limit=int(limit) if limit is not None else None
            )

        if "ci" in data:
            ci_data = _section(data, "ci")
            threshold = ci_data.get("threshold")
            config.ci = CIConfig(
                fail_on_warning=bool(ci_data.get("fail_on_warning", False)),
                json_output=bool(ci_data.get("json_output", False)),
                threshold=float(threshold) if threshold is not None else None,
            )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
    start_path: Path | None = None,
) -> TrustDebtConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified
        start_path: Directory searched during discovery (defaults to cwd)

    Returns:
        TrustDebtConfig instance

    Raises:
        ConfigurationError: If config_path doesn't exist or the file is invalid
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file(start_path)
    else:
        found_path = None

    if found_path is not None:
        try:
            with open(found_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", source=str(found_path)) from e
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = TrustDebtConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Trust Debt Configuration

# Category taxonomy: path to a YAML/JSON category document, or an inline list
categories: ".trustdebt/categories.yaml"

# Reality (git history) and Intent (documentation) extraction
extraction:
  time_window_days: 7
  # branch: "main"
  paths: []
  doc_size_limit: 50000   # characters kept per document
  io_timeout: 30          # seconds for git and for document reads
  max_workers: 4

# Weighted documentation sources (glob patterns allowed)
documents:
  - path: "README.md"
    weight: 30
  - path: "CLAUDE.md"
    weight: 20
  - path: "docs/**/*.md"
    weight: 25

# Category independence
orthogonality:
  threshold: 0.75
  strict: false           # true: abort when a category pair overlaps too much

# Matrix order: "config" (document order) or "shortlex"
ordering: "config"

# cell debt = unit_scale * weight * gap^2
# final = raw * (1 - sophistication_discount) / process_health_factor
#         * (1 + spec_age_rate * days since the oldest document changed)
# Placeholder values; tune them for your project
calibration:
  unit_scale: 100
  sophistication_discount: 0.30
  process_health_factor: 0.8
  spec_age_rate: 0          # e.g. 0.02 adds 2% per day of documentation age

grading:
  thresholds:
    - {grade: AAA, below: 100}
    - {grade: A, below: 500}
    - {grade: B, below: 1000}
    - {grade: C, below: 5000}
  fallback: D

health:
  coherence_threshold: 0.7
  asymmetry_healthy_min: 1.2
  asymmetry_healthy_max: 2.0

report:
  worst_drift_limit: null

# CI/CD settings
ci:
  fail_on_warning: false
  json_output: false
  # threshold: 1000
'''


def create_default_categories() -> str:
    """Create a starter category document.

    Returns:
        YAML string with an example category set
    """
    return '''# Trust Debt categories
# Each category needs an id, keywords and a weight > 0.
# Keep keyword sets distinct: pairs sharing many keywords fail the
# orthogonality check.

categories:
  - id: measurement
    name: Measurement
    weight: 30
    keywords: [measure, metric, score, calculate, analyze]
  - id: interface
    name: User Interface
    weight: 20
    keywords: [cli, command, option, output, display]
  - id: integration
    name: Integration
    weight: 20
    keywords: [git, hook, api, webhook, pipeline]
  - id: quality
    name: Quality
    weight: 15
    keywords: [test, fix, bug, lint, coverage]
  - id: documentation
    name: Documentation
    weight: 15
    keywords: [readme, docs, guide, tutorial, example]
'''
