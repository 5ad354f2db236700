"""Shared pytest fixtures for Trust Debt tests.

Fixtures are organized by category:
- Path fixtures: Static fixture files
- Category fixtures: Category sets for analyzer tests
- Matrix fixtures: Hand-computed matrices for calculator tests
- Repository fixtures: Real temporary git repositories
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from tests.fixtures import CATEGORIES_PATH, FIXTURES_DIR, copy_sample_project, make_category
from trustdebt.models.category import Category, CategorySet
from trustdebt.models.matrix import MatrixCell, TrustDebtMatrix

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def categories_path() -> Path:
    """Return the path to the sample category document."""
    return CATEGORIES_PATH


# =============================================================================
# Category Fixtures
# =============================================================================


@pytest.fixture
def disjoint_categories() -> CategorySet:
    """Three categories with no shared keywords."""
    return CategorySet([
        make_category("measurement", ["measure", "score", "analyze"], weight=40),
        make_category("interface", ["cli", "command", "output"], weight=30),
        make_category("storage", ["cache", "database", "persist"], weight=20),
    ])


@pytest.fixture
def overlapping_categories() -> CategorySet:
    """Three categories where exactly one pair shares keywords."""
    return CategorySet([
        make_category("measurement", ["measure", "score", "analyze", "metric"], weight=40),
        make_category("reporting", ["report", "score", "metric", "chart"], weight=30),
        make_category("storage", ["cache", "database", "persist"], weight=20),
    ])


@pytest.fixture
def category_data() -> dict[str, Any]:
    """Raw category document as parsed from YAML."""
    return {
        "categories": [
            {"id": "core", "name": "Core", "weight": 10, "keywords": ["engine", "core"]},
            {
                "id": "plugins",
                "name": "Plugins",
                "parent": "core",
                "weight": 5,
                "keywords": ["plugin", "extension"],
            },
        ]
    }


# =============================================================================
# Matrix Fixtures
# =============================================================================


@pytest.fixture
def synthetic_matrix() -> tuple[TrustDebtMatrix, list[Category]]:
    """3×3 matrix with hand-picked debts.

    Diagonal sums to 6, upper to 60, lower to 30 (raw debt 96).
    """
    categories = [
        make_category("a", ["alpha"]),
        make_category("b", ["beta"]),
        make_category("c", ["gamma"]),
    ]
    debts = [
        [1.0, 10.0, 20.0],
        [5.0, 2.0, 30.0],
        [10.0, 15.0, 3.0],
    ]
    cells = tuple(
        MatrixCell(
            row_category=categories[i].id,
            col_category=categories[j].id,
            row_index=i,
            col_index=j,
            intent_value=0.5,
            reality_value=0.5,
            trust_debt_units=debts[i][j],
        )
        for i in range(3)
        for j in range(3)
    )
    matrix = TrustDebtMatrix(
        category_ids=("a", "b", "c"),
        cells=cells,
        intent_scores={"a": 0.5, "b": 0.5, "c": 0.5},
        reality_scores={"a": 0.5, "b": 0.5, "c": 0.5},
    )
    return matrix, categories


# =============================================================================
# Repository Fixtures
# =============================================================================


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        env={
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@example.com",
            "HOME": str(repo),
            "PATH": os.environ.get("PATH", ""),
        },
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Real git repository with sample docs, categories and a few commits."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    copy_sample_project(repo)
    config_dir = repo / ".trustdebt"
    config_dir.mkdir()
    shutil.copy(CATEGORIES_PATH, config_dir / "categories.yaml")

    _git(repo, "init", "-q")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "Add CLI command to display score output")
    for message in [
        "Measure and analyze module metrics",
        "Cache parsed files",
        "Fix score rounding",
    ]:
        _git(repo, "commit", "-q", "--allow-empty", "-m", message)
    return repo
