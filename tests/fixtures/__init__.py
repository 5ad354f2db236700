"""Test fixtures for Trust Debt.

Sample data for unit and integration tests:
- categories.yaml: a valid three-category document
- sample_project/: documentation tree used as the Intent side of a repository
"""

import shutil
from pathlib import Path

from trustdebt.models.category import Category

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

CATEGORIES_PATH = FIXTURES_DIR / "categories.yaml"
SAMPLE_PROJECT_PATH = FIXTURES_DIR / "sample_project"


def copy_sample_project(destination: Path) -> Path:
    """Copy the sample project documentation tree into a directory.

    Args:
        destination: Target directory (created if missing)

    Returns:
        The destination path
    """
    shutil.copytree(SAMPLE_PROJECT_PATH, destination, dirs_exist_ok=True)
    return destination


def make_category(
    category_id: str,
    keywords: list[str],
    weight: float = 1.0,
    parent_id: str | None = None,
) -> Category:
    """Build a category with sensible defaults."""
    return Category(
        id=category_id,
        name=category_id.title(),
        keywords=frozenset(keywords),
        weight=weight,
        parent_id=parent_id,
    )
