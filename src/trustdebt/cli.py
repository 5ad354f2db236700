"""Trust debt CLI interface.

Commands:
- analyze: Compute trust debt for a repository
- categories: Validate category orthogonality (optionally suggest refinements)
- init: Write a default configuration and starter categories

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines for CI/CD
- --version: Show version and exit
"""

from pathlib import Path
from typing import Annotated

import typer

from trustdebt import __version__
from trustdebt.config import (
    TrustDebtConfig,
    create_default_categories,
    create_default_config,
    load_config,
)
from trustdebt.errors import TrustDebtError
from trustdebt.models.analysis import AnalysisResult
from trustdebt.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="trustdebt",
    help="Measure drift between documented intent and implementation reality",
    add_completion=False,
    no_args_is_help=True,
)

# Global state set by the callback
_config_path: Path | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"trustdebt {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log lines"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Trust Debt - documentation/implementation drift analysis.

    Scores recent commits and weighted documentation against a category
    taxonomy and reports where the two diverge.
    """
    global _config_path

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)
    _config_path = config


def _load_config(repo_path: Path) -> TrustDebtConfig:
    """Load configuration, discovering it in the repository if not given."""
    try:
        config = load_config(config_path=_config_path, start_path=repo_path)
    except TrustDebtError as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)
    if config.config_path:
        _logger.debug(f"Loaded config from: {config.config_path}")
    return config


def _print_summary(result: AnalysisResult) -> None:
    """Human-readable result summary."""
    typer.echo(f"\nTrust Debt: {result.total_debt:.1f} (grade {result.grade.value})")
    typer.echo(f"  Raw debt:      {result.raw_debt:.1f}")
    typer.echo(
        f"  Triangles:     diagonal {result.diagonal_sum:.1f}  "
        f"upper {result.upper_sum:.1f}  lower {result.lower_sum:.1f}"
    )
    ratio = result.asymmetry.value_or_none
    ratio_str = f"{ratio:.2f}" if ratio is not None else "undefined"
    typer.echo(f"  Asymmetry:     {ratio_str} ({result.asymmetry.interpretation})")
    typer.echo(
        f"  Health:        {result.diagonal_health.value} "
        f"(coherence {result.mean_diagonal_coherence:.2f})"
    )
    typer.echo(f"  Orthogonality: {result.orthogonality:.2f}")
    typer.echo(
        f"  Signals:       {result.commit_count} commit(s), "
        f"{result.document_count} document(s)"
    )

    if result.category_breakdown:
        typer.echo("\nBy category:")
        for category_id, debt in sorted(
            result.category_breakdown.items(), key=lambda kv: (-kv[1], kv[0])
        ):
            typer.echo(f"  {category_id:<24} {debt:10.2f}")

    top = [d for d in result.worst_drifts if d.debt > 0][:5]
    if top:
        typer.echo("\nWorst drifts:")
        for drift in top:
            typer.echo(
                f"  {drift.from_category} -> {drift.to_category} "
                f"[{drift.triangle}] {drift.debt:.2f} "
                f"(intent {drift.intent:.2f}, reality {drift.reality:.2f})"
            )

    if result.warnings:
        typer.echo(f"\n{len(result.warnings)} warning(s):")
        for warning in result.warnings:
            source = f" {warning.source}:" if warning.source else ""
            typer.echo(f"  [{warning.component}]{source} {warning.message}")


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-r",
            help="Repository path to analyze",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    since: Annotated[
        int | None,
        typer.Option("--since", help="Commit window in days (overrides config)", min=1),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Fail if total debt exceeds this value"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON result to a file"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Abort when category orthogonality fails"),
    ] = False,
) -> None:
    """Compute trust debt for a repository.

    Exit codes:
        0: Analysis completed within threshold
        1: Fatal error, or total debt above the threshold
        2: Completed with warnings and ci.fail_on_warning is set
    """
    from trustdebt.pipeline import AnalysisContext, AnalysisPipeline

    repo_path = repo.resolve()
    config = _load_config(repo_path)

    if since is not None:
        config.extraction.time_window_days = since
    if strict:
        config.orthogonality.strict = True

    try:
        context = AnalysisContext.from_config(config, repo_path)
        result = AnalysisPipeline(context).run()
    except TrustDebtError as e:
        _logger.error(f"Analysis failed: {e}")
        raise typer.Exit(1)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.to_json() + "\n", encoding="utf-8")
        _logger.info(f"Result written to: {output}")

    if json_output or config.ci.json_output:
        typer.echo(result.to_json())
    else:
        _print_summary(result)

    limit = threshold if threshold is not None else config.ci.threshold
    if limit is not None and result.exceeds(limit):
        _logger.error(f"Trust debt {result.total_debt:.1f} exceeds threshold {limit}")
        raise typer.Exit(1)
    if result.has_warnings() and config.ci.fail_on_warning:
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# categories command
# =============================================================================


@app.command()
def categories(
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-r",
            help="Repository path (for category and documentation paths)",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    suggest: Annotated[
        bool,
        typer.Option("--suggest", help="Suggest keyword changes for failing pairs"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Validate category orthogonality.

    Exit codes:
        0: All category pairs are independent enough
        1: Invalid categories, or failing pairs in strict mode
        2: Failing pairs (warnings)
    """
    import json as json_module

    from trustdebt.pipeline import AnalysisContext, AnalysisPipeline

    repo_path = repo.resolve()
    config = _load_config(repo_path)

    try:
        pipeline = AnalysisPipeline(AnalysisContext.from_config(config, repo_path))
        matrix, validation = pipeline.validate_categories()
        suggestions = pipeline.suggest(validation) if suggest else []
    except TrustDebtError as e:
        _logger.error(f"Category validation failed: {e}")
        raise typer.Exit(1)

    if json_output:
        payload = {
            "matrix": matrix.to_dict(),
            "validation": validation.to_dict(),
            "suggestions": [s.to_dict() for s in suggestions],
        }
        typer.echo(json_module.dumps(payload, indent=2))
    else:
        typer.echo(f"\n{matrix.size} categories, threshold {validation.threshold:.2f}")
        typer.echo(
            f"  Average orthogonality: {validation.average_orthogonality:.2f}  "
            f"minimum: {validation.minimum_orthogonality:.2f}"
        )
        for pair in validation.failed_pairs:
            shared = ", ".join(pair.shared_keywords) or "none"
            typer.echo(
                f"  FAIL {pair.first}/{pair.second}: {pair.orthogonality:.2f} (shared: {shared})"
            )
        if suggest:
            if suggestions:
                typer.echo("\nSuggestions:")
                for suggestion in suggestions:
                    typer.echo(f"  {suggestion.describe()}")
            elif not validation.passed:
                typer.echo("\nNo suggestions available")
        if validation.passed:
            typer.echo("\nAll category pairs pass")

    if not validation.passed:
        raise typer.Exit(1 if config.orthogonality.strict else 2)
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-r",
            help="Repository to initialize",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing files"),
    ] = False,
) -> None:
    """Initialize trust debt configuration.

    Creates .trustdebt/config.yaml and .trustdebt/categories.yaml.
    """
    config_dir = repo / ".trustdebt"
    config_file = config_dir / "config.yaml"
    categories_file = config_dir / "categories.yaml"

    existing = [p for p in (config_file, categories_file) if p.exists()]
    if existing and not force:
        for path in existing:
            _logger.error(f"Already exists: {path}")
        _logger.error("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        config_file.write_text(create_default_config(), encoding="utf-8")
        categories_file.write_text(create_default_categories(), encoding="utf-8")
    except OSError as e:
        _logger.error(f"Failed to write configuration: {e}")
        raise typer.Exit(1)

    typer.echo("\nTrust debt configuration initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo(f"   Categories: {categories_file}")
    raise typer.Exit(0)
