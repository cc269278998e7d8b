"""
Shuffle Engine - Deterministic card layout from a seed.

A partial Fisher-Yates shuffle over the candidates 1..99. Iteration ``i``
consumes the ``i``-th byte of the seed:

    swap_index = (byte_i(seed) % (99 - i)) + i

The first 24 shuffled values fill the card in row-major order and the free
value is placed at the center slot.

Fairness caveat: the seed should carry at least 24 independent bytes
(SEED_BITS). A narrower seed leaves the high iterations with zero bytes,
so those swaps always pick ``swap_index == i``. The card is still valid and
duplicate-free, but the permutation is biased.
"""

from __future__ import annotations

from .card import CARD_SIZE, FREE_INDEX, FREE_VALUE, MAX_NUMBER


PLAYABLE_SLOTS = CARD_SIZE - 1
SEED_BITS = PLAYABLE_SLOTS * 8


def seed_to_int(seed: int | bytes) -> int:
    """Normalize a seed to a non-negative int (bytes are big-endian)."""
    if isinstance(seed, (bytes, bytearray)):
        return int.from_bytes(seed, "big")
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise TypeError(f"Seed must be int or bytes, got {type(seed).__name__}")
    if seed < 0:
        raise ValueError("Seed must be non-negative")
    return seed


def seed_byte(seed: int, i: int) -> int:
    """The i-th 8-bit slice of the seed."""
    return (seed >> (8 * i)) & 0xFF


class ShuffleEngine:
    """
    Generates card layouts. Stateless: the output depends on the seed only.

    Usage:
        engine = ShuffleEngine()
        numbers = engine.generate_card(seed)
        assert numbers[12] == 0
    """

    def generate_card(self, seed: int | bytes) -> tuple[int, ...]:
        value = seed_to_int(seed)
        pool = list(range(1, MAX_NUMBER + 1))

        for i in range(PLAYABLE_SLOTS):
            swap_index = (seed_byte(value, i) % (MAX_NUMBER - i)) + i
            pool[i], pool[swap_index] = pool[swap_index], pool[i]

        numbers = pool[:PLAYABLE_SLOTS]
        numbers.insert(FREE_INDEX, FREE_VALUE)
        return tuple(numbers)


_default_engine = ShuffleEngine()


def generate_card(seed: int | bytes) -> tuple[int, ...]:
    """Module-level shortcut for ShuffleEngine().generate_card(seed)."""
    return _default_engine.generate_card(seed)
