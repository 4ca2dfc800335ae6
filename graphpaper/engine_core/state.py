"""
Game State - Immutable snapshot shared by every game.

Design principles:
- Immutable: every transition returns a new GameState
- Game-agnostic: per-game data lives in `metadata`
- Cheap to keep: the undo stack stores plain references
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence

from .move import Move


class GamePhase(Enum):
    """High-level game phases."""
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Player:
    """
    A seat in the game.

    `score` and `is_active` may be updated by the rules engine after a move.
    Players are never removed mid-game.
    """
    id: str
    name: str
    is_ai: bool = False
    difficulty: int | None = None  # 1-6, AI only
    score: int = 0
    is_active: bool = True
    color: str = ""

    def with_score(self, score: int) -> Player:
        return replace(self, score=score)


@dataclass(frozen=True)
class GameState:
    """
    A snapshot of an in-progress or finished game.

    `metadata` is owned by the game's rules engine; nothing else interprets it.
    """
    id: str
    game_type: str
    players: tuple[Player, ...]
    current_player_index: int = 0
    turn_number: int = 1
    phase: GamePhase = GamePhase.PLAYING
    metadata: Any = None
    is_complete: bool = False
    move_history: tuple[Move, ...] = field(default=())

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        """Index of a player, or -1 if unknown."""
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return -1

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with specified fields changed."""
        return replace(self, **kwargs)

    def with_player(self, index: int, player: Player) -> GameState:
        """Return new state with one player replaced."""
        players = list(self.players)
        players[index] = player
        return self._copy_with(players=tuple(players))


def next_active_player_index(players: Sequence[Player], current_index: int) -> int:
    """
    Index of the next active player, wrapping around.

    Inactive players are skipped. If nobody is active the current index is
    returned unchanged.
    """
    count = len(players)
    for step in range(1, count + 1):
        candidate = (current_index + step) % count
        if players[candidate].is_active:
            return candidate
    return current_index
