"""
Dots and Boxes - The line-drawing territory game.

Players take turns drawing a line between adjacent dots. Drawing the fourth
side of a box claims it and earns another move; most boxes wins.
"""

from .grid import (
    DotsAndBoxesMetadata,
    BoardAnalysis,
    Chain,
    HORIZONTAL,
    VERTICAL,
    analyze_game_state,
    find_chains,
)
from .engine import DotsAndBoxesEngine, DEFAULT_DOTS

__all__ = [
    "DotsAndBoxesEngine",
    "DotsAndBoxesMetadata",
    "BoardAnalysis",
    "Chain",
    "HORIZONTAL",
    "VERTICAL",
    "DEFAULT_DOTS",
    "analyze_game_state",
    "find_chains",
]
