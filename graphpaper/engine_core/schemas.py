"""
Pydantic Schemas for state snapshots.

These models define the opaque text round-trip used by collaborators that
persist games. The core never interprets the serialized form beyond
validating it on the way back in.
"""

from typing import Optional, Any
from pydantic import BaseModel, Field

SNAPSHOT_VERSION = 1


class PlayerSnapshot(BaseModel):
    """A seat as stored in a snapshot."""
    id: str
    name: str
    is_ai: bool = False
    difficulty: Optional[int] = Field(None, ge=1, le=6)
    score: int = 0
    is_active: bool = True
    color: str = ""

    model_config = {"from_attributes": True}


class MoveSnapshot(BaseModel):
    """A move from the history."""
    id: str = ""
    type: str = Field(description="place, horizontal, vertical, connect")
    player_id: str
    timestamp: float = 0.0
    data: dict[str, Any] = Field(default_factory=dict)


class GameStateSnapshot(BaseModel):
    """Complete serialized game state."""
    version: int = SNAPSHOT_VERSION
    id: str
    game_type: str
    players: list[PlayerSnapshot] = Field(min_length=1)
    current_player_index: int = Field(0, ge=0)
    turn_number: int = Field(1, ge=1)
    phase: str = Field(description="playing or finished")
    is_complete: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    move_history: list[MoveSnapshot] = Field(default_factory=list)
