"""
Moves - Requests submitted for validation and application.

A Move only becomes history after the rules engine applies it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time
import uuid


class MoveType(str, Enum):
    """Game-specific move tags."""
    PLACE = "place"  # tic-tac-toe
    HORIZONTAL = "horizontal"  # dots-and-boxes
    VERTICAL = "vertical"
    CONNECT = "connect"  # sprouts


@dataclass(frozen=True)
class Move:
    """
    A single player action.

    `id` and `timestamp` identify a particular request and are ignored when
    comparing moves, so a suggested move equals the same move played later.
    """
    type: MoveType
    player_id: str
    data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default="", compare=False)
    timestamp: float = field(default=0.0, compare=False)

    def __hash__(self):
        return hash((self.type, self.player_id, repr(sorted(self.data.items()))))


def create_move(player_id: str, move_type: MoveType, data: dict[str, Any]) -> Move:
    """Factory for a fresh move with a generated id and timestamp."""
    return Move(
        type=MoveType(move_type),
        player_id=player_id,
        data=dict(data),
        id=f"move_{uuid.uuid4().hex[:12]}",
        timestamp=time.time(),
    )


def is_index(value: Any) -> bool:
    """True for a plain int coordinate or id (bools do not count)."""
    return isinstance(value, int) and not isinstance(value, bool)
