"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and its legal moves and returns a decision.
Decisions include:
- Which move to play
- Explanation (for hints and debugging)
- How much searching went into it
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
import random
import threading

from .search import AlphaBetaSearch

if TYPE_CHECKING:
    from ..engine_core.move import Move
    from ..engine_core.rules import RulesEngine
    from ..engine_core.state import GameState
    from .evaluator import HeuristicEvaluator


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The move to play
    - Explanation (for UI/debugging)
    - Confidence in the decision
    """
    move: Move
    explanation: str = ""
    confidence: float = 1.0

    # Evaluation details (for debugging)
    evaluated_moves: int = 0
    best_score: float = 0.0
    depth_reached: int = 0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects moves.
    Implementations range from random play to alpha-beta search.
    """

    @abstractmethod
    def select_move(
        self,
        state: GameState,
        legal_moves: list[Move],
        player_id: str,
    ) -> BotDecision:
        """
        Select a move from the legal moves.

        Args:
            state: Current game state
            legal_moves: Non-empty list of legal moves for player_id
            player_id: The player the bot is playing for

        Returns:
            BotDecision with the selected move
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects moves uniformly at random.

    Used for:
    - The Beginner level
    - Baseline comparison in tests
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)

    def select_move(
        self,
        state: GameState,
        legal_moves: list[Move],
        player_id: str,
    ) -> BotDecision:
        if not legal_moves:
            raise ValueError("No legal moves available")

        move = self.rng.choice(legal_moves)
        return BotDecision(
            move=move,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_moves),
            evaluated_moves=len(legal_moves),
        )


class GreedyPolicy(BotPolicy):
    """
    Greedy policy - one-ply lookahead.

    Every legal move is applied and the resulting state scored; ties
    between equally good moves are broken at random.
    """

    def __init__(
        self,
        evaluator: HeuristicEvaluator,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self.evaluator = evaluator
        self.rng = rng or random.Random(seed)

    def select_move(
        self,
        state: GameState,
        legal_moves: list[Move],
        player_id: str,
    ) -> BotDecision:
        if not legal_moves:
            raise ValueError("No legal moves available")

        scored = [
            (self.evaluator.evaluate_move(state, move, player_id), move)
            for move in legal_moves
        ]
        best_score = max(score for score, _ in scored)
        best_moves = [move for score, move in scored if score == best_score]
        move = self.rng.choice(best_moves)

        return BotDecision(
            move=move,
            explanation=f"Best of {len(legal_moves)} moves by one-move lookahead",
            confidence=1.0 / len(best_moves),
            evaluated_moves=len(legal_moves),
            best_score=best_score,
            depth_reached=1,
            evaluation_details={"tied_moves": len(best_moves)},
        )


class SearchPolicy(BotPolicy):
    """
    Alpha-beta search policy.

    Raises SearchCancelled if the cancel event is set while searching.
    """

    def __init__(
        self,
        engine: RulesEngine,
        evaluator: HeuristicEvaluator,
        depth: int,
        iterative_deepening: bool = False,
        time_limit: float | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.engine = engine
        self.evaluator = evaluator
        self.depth = depth
        self.iterative_deepening = iterative_deepening
        self.time_limit = time_limit
        self.cancel_event = cancel_event

    def select_move(
        self,
        state: GameState,
        legal_moves: list[Move],
        player_id: str,
    ) -> BotDecision:
        if not legal_moves:
            raise ValueError("No legal moves available")

        search = AlphaBetaSearch(
            self.engine,
            self.evaluator,
            max_depth=self.depth,
            time_limit=self.time_limit,
            cancel_event=self.cancel_event,
            iterative_deepening=self.iterative_deepening,
        )
        result = search.search(state, player_id, legal_moves)

        explanation = f"Searched {result.depth_reached} plies"
        if result.is_forced_win:
            explanation = "Found a forced win"
        return BotDecision(
            move=result.move,
            explanation=explanation,
            evaluated_moves=len(legal_moves),
            best_score=result.score,
            depth_reached=result.depth_reached,
            evaluation_details={"nodes": result.nodes, "timed_out": result.timed_out},
        )
