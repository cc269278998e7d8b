"""
Win Verifier - Checks a card for a completed line.

A line is complete when every slot value is used in the number pool.
The free value counts as used, so lines through the free cell need
only four draws.

Lines are checked rows first, then columns, then the two diagonals.
The order affects speed only, never the answer.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .card import Card, GRID_SIZE
from .number_pool import NumberPool


class LineKind(Enum):
    """Kinds of winning line."""
    ROW = "row"
    COLUMN = "column"
    DIAGONAL = "diagonal"


@dataclass(frozen=True)
class Line:
    """A line on the grid, as slot indices into Card.numbers."""
    kind: LineKind
    index: int
    slots: tuple[int, ...]

    def describe(self) -> str:
        if self.kind == LineKind.DIAGONAL:
            return "main diagonal" if self.index == 0 else "anti-diagonal"
        return f"{self.kind.value} {self.index + 1}"


def _build_lines() -> tuple[Line, ...]:
    lines = []
    for r in range(GRID_SIZE):
        slots = tuple(r * GRID_SIZE + c for c in range(GRID_SIZE))
        lines.append(Line(LineKind.ROW, r, slots))
    for c in range(GRID_SIZE):
        slots = tuple(r * GRID_SIZE + c for r in range(GRID_SIZE))
        lines.append(Line(LineKind.COLUMN, c, slots))
    lines.append(Line(
        LineKind.DIAGONAL, 0,
        tuple(i * GRID_SIZE + i for i in range(GRID_SIZE)),
    ))
    lines.append(Line(
        LineKind.DIAGONAL, 1,
        tuple(i * GRID_SIZE + (GRID_SIZE - 1 - i) for i in range(GRID_SIZE)),
    ))
    return tuple(lines)


WINNING_LINES = _build_lines()


class WinVerifier:
    """
    Stateless line checker.

    Usage:
        verifier = WinVerifier()
        if verifier.verify(card, pool):
            ...
    """

    def winning_line(self, card: Card, pool: NumberPool) -> Line | None:
        """First complete line on the card, or None."""
        if not card.initialized:
            return None
        for line in WINNING_LINES:
            if all(pool.is_used(card.numbers[slot]) for slot in line.slots):
                return line
        return None

    def verify(self, card: Card, pool: NumberPool) -> bool:
        return self.winning_line(card, pool) is not None
