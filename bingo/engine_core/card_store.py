"""
Card Store - Player identity to card, one card per player per round.
"""

from __future__ import annotations
from typing import Iterator

from .card import Card
from .errors import DuplicateCard, NoCard


class CardStore:
    """Dict-backed card assignments for one game session."""

    def __init__(self):
        self._cards: dict[str, Card] = {}

    def assign(self, player: str, card: Card) -> Card:
        """Store a card for a player who has none yet."""
        if player in self._cards:
            raise DuplicateCard(player)
        self._cards[player] = card
        return card

    def get(self, player: str) -> Card:
        try:
            return self._cards[player]
        except KeyError:
            raise NoCard(player) from None

    def has_card(self, player: str) -> bool:
        return player in self._cards

    def clear_all(self) -> None:
        self._cards.clear()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[str]:
        return iter(self._cards)
