"""Intent/Reality matrix entities.

Rows are implementation activity (Reality), columns are documentation
promises (Intent). The upper triangle holds reality-dominant cells
("building without documenting"), the lower triangle intent-dominant cells
("documenting without building"), the diagonal self-consistency cells.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Triangle(Enum):
    """Position of a cell within the matrix."""

    DIAGONAL = "diagonal"
    UPPER = "upper"  # i < j, reality-dominant
    LOWER = "lower"  # i > j, intent-dominant

    @classmethod
    def of(cls, row: int, col: int) -> "Triangle":
        """Classify a (row, col) position."""
        if row == col:
            return cls.DIAGONAL
        if row < col:
            return cls.UPPER
        return cls.LOWER


@dataclass(frozen=True)
class MatrixCell:
    """One cell of the Intent/Reality matrix.

    Both input values are kept alongside the debt so consumers can explain
    why a cell scored as it did.

    Attributes:
        row_category: Row category id (implementation side)
        col_category: Column category id (documentation side)
        row_index: Row position in the category order
        col_index: Column position in the category order
        intent_value: Intent value used for this cell, in [0, 1]
        reality_value: Reality value used for this cell, in [0, 1]
        trust_debt_units: Weighted debt contributed by this cell (>= 0)
    """

    row_category: str
    col_category: str
    row_index: int
    col_index: int
    intent_value: float
    reality_value: float
    trust_debt_units: float

    @property
    def triangle(self) -> Triangle:
        """Triangle this cell belongs to."""
        return Triangle.of(self.row_index, self.col_index)

    @property
    def is_diagonal(self) -> bool:
        """Return True for self-consistency cells."""
        return self.row_index == self.col_index

    @property
    def dominant_side(self) -> str:
        """Which signal is larger: "intent", "reality" or "balanced"."""
        if self.reality_value > self.intent_value:
            return "reality"
        if self.intent_value > self.reality_value:
            return "intent"
        return "balanced"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "row": self.row_category,
            "col": self.col_category,
            "intent": self.intent_value,
            "reality": self.reality_value,
            "debt": self.trust_debt_units,
            "triangle": self.triangle.value,
        }


@dataclass(frozen=True)
class TrustDebtMatrix:
    """Complete N×N Intent/Reality matrix.

    Attributes:
        category_ids: Category ids in row/column order
        cells: N² cells in row-major order
        intent_scores: Per-category intent score
        reality_scores: Per-category reality score
        unit_scale: Factor applied to every cell's squared gap
    """

    category_ids: tuple[str, ...]
    cells: tuple[MatrixCell, ...]
    intent_scores: dict[str, float] = field(default_factory=dict)
    reality_scores: dict[str, float] = field(default_factory=dict)
    unit_scale: float = 1.0

    def __post_init__(self) -> None:
        """Validate dimensions."""
        n = len(self.category_ids)
        if len(self.cells) != n * n:
            raise ValueError(
                f"Matrix over {n} categories needs {n * n} cells (got {len(self.cells)})"
            )

    @property
    def size(self) -> int:
        """Number of categories (N)."""
        return len(self.category_ids)

    def __iter__(self) -> Iterator[MatrixCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def cell(self, row: int, col: int) -> MatrixCell:
        """Return the cell at (row, col)."""
        return self.cells[row * self.size + col]

    def cells_in(self, triangle: Triangle) -> list[MatrixCell]:
        """Return all cells in the given triangle, row-major."""
        return [c for c in self.cells if c.triangle is triangle]

    @property
    def diagonal(self) -> list[MatrixCell]:
        """Self-consistency cells."""
        return self.cells_in(Triangle.DIAGONAL)

    def rows(self) -> list[Sequence[MatrixCell]]:
        """Cells grouped by row."""
        n = self.size
        return [self.cells[i * n:(i + 1) * n] for i in range(n)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "categories": list(self.category_ids),
            "intent_scores": dict(self.intent_scores),
            "reality_scores": dict(self.reality_scores),
            "unit_scale": self.unit_scale,
            "cells": [c.to_dict() for c in self.cells],
        }
