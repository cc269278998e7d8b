"""
Card - A player's 5x5 bingo board.

Layout is row-major: slot ``r * 5 + c`` is row ``r``, column ``c``.
The center slot (index 12) always holds the free value 0.
"""

from __future__ import annotations
from dataclasses import dataclass, field


GRID_SIZE = 5
CARD_SIZE = GRID_SIZE * GRID_SIZE
FREE_INDEX = CARD_SIZE // 2
FREE_VALUE = 0
MAX_NUMBER = 99


@dataclass
class Card:
    """
    A card assigned to one player for one round.

    The numbers never change after creation. ``has_won`` flips
    false -> true at most once, when a claim is accepted.
    ``initialized`` separates a real card from a blank placeholder.
    """
    owner: str
    numbers: tuple[int, ...]
    has_won: bool = False
    initialized: bool = True

    # Creation time is informational only
    created_at: float | None = field(default=None, compare=False)

    def __post_init__(self):
        self.numbers = tuple(self.numbers)
        if len(self.numbers) != CARD_SIZE:
            raise ValueError(
                f"Card must have {CARD_SIZE} slots, got {len(self.numbers)}"
            )
        for value in self.numbers:
            if not 0 <= value <= MAX_NUMBER:
                raise ValueError(f"Card value {value} out of range 0..{MAX_NUMBER}")

    @classmethod
    def blank(cls, owner: str) -> Card:
        """An unassigned placeholder: all zeros, not initialized."""
        return cls(owner=owner, numbers=(FREE_VALUE,) * CARD_SIZE, initialized=False)

    def at(self, row: int, col: int) -> int:
        """Value at a grid position."""
        return self.numbers[row * GRID_SIZE + col]

    @property
    def rows(self) -> list[tuple[int, ...]]:
        return [
            self.numbers[r * GRID_SIZE:(r + 1) * GRID_SIZE]
            for r in range(GRID_SIZE)
        ]

    @property
    def columns(self) -> list[tuple[int, ...]]:
        return [self.numbers[c::GRID_SIZE] for c in range(GRID_SIZE)]

    @property
    def playable_numbers(self) -> list[int]:
        """The 24 non-free values, in slot order."""
        return [n for i, n in enumerate(self.numbers) if i != FREE_INDEX]

    def format_grid(self) -> str:
        """Render the card as five aligned rows, free cell shown as ``**``."""
        lines = []
        for r, row in enumerate(self.rows):
            cells = []
            for c, value in enumerate(row):
                if r * GRID_SIZE + c == FREE_INDEX:
                    cells.append("**")
                else:
                    cells.append(f"{value:2d}")
            lines.append(" ".join(cells))
        return "\n".join(lines)
