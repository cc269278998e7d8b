"""
Number Pool - Which numbers have been drawn this round.

The free value 0 is a permanent sentinel: it always reads as used so the
free cell satisfies every line it sits on.
"""

from __future__ import annotations

from .card import FREE_VALUE, MAX_NUMBER
from .errors import AlreadyDrawn, OutOfRange


class NumberPool:
    """Set of used numbers in 1..99, plus the always-used sentinel."""

    def __init__(self):
        self._used: set[int] = set()

    def mark_used(self, number: int) -> None:
        """
        Mark a number as drawn.

        Raises:
            OutOfRange: number is 0 or outside 1..99
            AlreadyDrawn: number was already marked
        """
        if not 1 <= number <= MAX_NUMBER:
            raise OutOfRange(number)
        if number in self._used:
            raise AlreadyDrawn(number)
        self._used.add(number)

    def is_used(self, number: int) -> bool:
        if number == FREE_VALUE:
            return True
        return number in self._used

    def reset(self) -> None:
        self._used.clear()

    def remaining(self) -> list[int]:
        """Numbers that can still be drawn, ascending."""
        return [n for n in range(1, MAX_NUMBER + 1) if n not in self._used]

    def __len__(self) -> int:
        return len(self._used)

    def __contains__(self, number: int) -> bool:
        return self.is_used(number)
