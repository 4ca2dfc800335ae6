"""
Results and Errors - The success/failure convention shared by every operation.

Design principles:
- Expected failures are values, not exceptions
- Every failure carries a categorized ErrorCode
- Only engine defects raise (EngineInvariantError)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_MOVE = "INVALID_MOVE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_GAME_STATE = "INVALID_GAME_STATE"
    GAME_OVER = "GAME_OVER"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ENGINE_ERROR = "ENGINE_ERROR"
    AI_NO_MOVES = "AI_NO_MOVES"
    AI_ERROR = "AI_ERROR"
    TIMEOUT = "TIMEOUT"


class EngineInvariantError(RuntimeError):
    """
    Raised when engine state is internally inconsistent.

    Never raised for anything a caller can trigger with a bad move;
    seeing one means the engine itself has a bug.
    """


@dataclass(frozen=True)
class GameError:
    """A categorized error."""
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a fallible operation.

    Either success with data, or failure with a GameError.
    """
    success: bool
    data: T | None = None
    error: GameError | None = None

    @classmethod
    def ok(cls, data: T) -> Result[T]:
        """Create a success result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, **details: Any) -> Result[T]:
        """Create a failure result."""
        return cls(success=False, error=GameError(code, message, dict(details)))

    @classmethod
    def from_error(cls, error: GameError) -> Result[T]:
        return cls(success=False, error=error)

    @property
    def error_code(self) -> ErrorCode | None:
        return self.error.code if self.error else None

    def unwrap(self) -> T:
        """Return the data or raise if this is a failure."""
        if not self.success:
            raise ValueError(str(self.error))
        return self.data  # type: ignore[return-value]


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a move. Pure function of (state, move, player)."""
    is_valid: bool
    error: GameError | None = None

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, code: ErrorCode, message: str, **details: Any) -> ValidationResult:
        return cls(is_valid=False, error=GameError(code, message, dict(details)))
