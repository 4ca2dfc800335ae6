"""
Difficulty Profiles - What each AI level is allowed to do.

Levels run from 1 (Beginner) to 6 (Master):
- 1: uniformly random legal move
- 2: one-ply greedy, random tie-break
- 3-4: bounded alpha-beta with heuristic move ordering
- 5-6: deeper alpha-beta with iterative deepening under a time budget
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .. import config

MIN_LEVEL = 1
MAX_LEVEL = 6

LEVEL_NAMES = {
    1: "Beginner",
    2: "Easy",
    3: "Medium",
    4: "Hard",
    5: "Expert",
    6: "Master",
}

# Thinking budget per level, before GRAPHPAPER_AI_TIME_SCALE.
DEFAULT_TIME_LIMITS_MS = {1: 50, 2: 100, 3: 200, 4: 500, 5: 1000, 6: 2000}

# Search depth in plies for the search levels. Nine plies solve tic-tac-toe.
SEARCH_DEPTHS = {
    "tictactoe": {3: 2, 4: 4, 5: 6, 6: 9},
    "dots_and_boxes": {3: 2, 4: 3, 5: 4, 6: 6},
    "sprouts": {3: 1, 4: 2, 5: 3, 6: 4},
}

# Fixed depth for hints, searched without a time limit.
HINT_DEPTHS = {
    "tictactoe": 6,
    "dots_and_boxes": 3,
    "sprouts": 2,
}


class PolicyKind(str, Enum):
    RANDOM = "random"
    GREEDY = "greedy"
    SEARCH = "search"


@dataclass(frozen=True)
class DifficultyProfile:
    level: int
    name: str
    policy: PolicyKind
    depth: int = 0
    iterative_deepening: bool = False
    time_limit_ms: int = 0

    def time_limit(self, scale: float | None = None) -> float:
        """Budget in seconds."""
        if scale is None:
            scale = config.GRAPHPAPER_AI_TIME_SCALE
        return self.time_limit_ms * scale / 1000.0


def get_profile(game_type: str, level: int) -> DifficultyProfile:
    """
    Profile for a level of a game.

    Raises ValueError for unknown games or levels outside 1-6.
    """
    if game_type not in SEARCH_DEPTHS:
        raise ValueError(f"Unknown game type: {game_type}")
    if not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"Difficulty must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level!r}")

    time_limit_ms = DEFAULT_TIME_LIMITS_MS[level]
    if level == 1:
        return DifficultyProfile(level, LEVEL_NAMES[level], PolicyKind.RANDOM, time_limit_ms=time_limit_ms)
    if level == 2:
        return DifficultyProfile(level, LEVEL_NAMES[level], PolicyKind.GREEDY, depth=1,
                                 time_limit_ms=time_limit_ms)
    return DifficultyProfile(
        level=level,
        name=LEVEL_NAMES[level],
        policy=PolicyKind.SEARCH,
        depth=SEARCH_DEPTHS[game_type][level],
        iterative_deepening=level >= 5,
        time_limit_ms=time_limit_ms,
    )


def hint_depth(game_type: str) -> int:
    return HINT_DEPTHS.get(game_type, 2)
