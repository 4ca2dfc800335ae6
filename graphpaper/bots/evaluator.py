"""
Heuristic Evaluator - Scores game states for AI decision-making.

The evaluator assigns a numeric score to a state from one player's
perspective. Finished games score +/- WIN_SCORE; running games combine
weighted tactical features that each game defines.

Weights can be adjusted per game; the coefficients are tuning values, not
part of any contract.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Hashable

if TYPE_CHECKING:
    from ..engine_core.move import Move
    from ..engine_core.rules import RulesEngine
    from ..engine_core.state import GameState

WIN_SCORE = 100000.0


@dataclass
class StateEvaluation:
    """
    Result of evaluating a game state.
    """
    total_score: float
    feature_breakdown: dict[str, float] = field(default_factory=dict)
    is_terminal: bool = False

    def dominant_feature(self) -> tuple[str, float] | None:
        """The feature with the largest absolute contribution."""
        if not self.feature_breakdown:
            return None
        return max(self.feature_breakdown.items(), key=lambda item: abs(item[1]))


class HeuristicEvaluator(ABC):
    """
    Evaluates game states using weighted features.

    Used by the policies for:
    1. One-ply greedy choice
    2. Cut-off scores inside alpha-beta search
    3. Move ordering
    4. Hint explanations
    """

    # Typical magnitude of a non-terminal score, used to squash scores into [-1, 1].
    scale: float = 100.0

    # feature -> (text when it helps the player, text when it hurts)
    explanations: dict[str, tuple[str, str]] = {}

    def __init__(self, engine: RulesEngine):
        self.engine = engine

    def evaluate(self, state: GameState, for_player_id: str) -> StateEvaluation:
        """
        Evaluate a game state from a player's perspective.

        Returns positive score if state is good for player,
        negative if bad.
        """
        terminal = self.engine.is_terminal(state)
        if terminal is not None:
            if terminal.winner == for_player_id:
                score = WIN_SCORE
            elif terminal.winner is None:
                score = 0.0
            else:
                score = -WIN_SCORE
            return StateEvaluation(total_score=score, feature_breakdown={"win": score}, is_terminal=True)

        features = self.features(state, for_player_id)
        return StateEvaluation(total_score=sum(features.values()), feature_breakdown=features)

    def evaluate_move(self, state: GameState, move: Move, for_player_id: str) -> float:
        """
        Evaluate a move by applying it and evaluating the resulting state.

        This is the core of 1-ply lookahead.
        """
        result = self.engine.apply_move(state, move)
        if not result.success:
            return -float("inf")
        return self.evaluate(result.data, for_player_id).total_score

    @abstractmethod
    def features(self, state: GameState, for_player_id: str) -> dict[str, float]:
        """Weighted feature values of a running game."""

    def state_key(self, state: GameState) -> Hashable | None:
        """Key for the search transposition table, or None to disable it."""
        return None

    def explain(self, evaluation: StateEvaluation) -> str:
        """Short natural-language rationale for reaching `evaluation`."""
        if evaluation.is_terminal:
            if evaluation.total_score > 0:
                return "This move wins the game."
            if evaluation.total_score == 0:
                return "This move secures a draw."
            return "Every move loses here; this one holds out longest."
        dominant = self.dominant_feature_text(evaluation)
        return dominant or "This move keeps the position balanced."

    def dominant_feature_text(self, evaluation: StateEvaluation) -> str | None:
        dominant = evaluation.dominant_feature()
        if dominant is None or dominant[1] == 0:
            return None
        name, value = dominant
        texts = self.explanations.get(name)
        if texts is None:
            return None
        return texts[0] if value > 0 else texts[1]
