"""
Bingo - Multiplayer Bingo Game Engine

A deterministic bingo engine served over HTTP. The engine provides:
- Seeded card generation (5x5 with a fixed free center)
- Sequential number drawing without repetition (1..99)
- Win verification for rows, columns and diagonals
- Independent, lock-guarded game sessions
"""

__version__ = "0.1.0"
