"""
AI Decision Engine - Move selection and hints for one game.

Entry points:
- get_move: pick a move at a difficulty level, as a Result
- get_hint: deterministic suggestion with an explanation and confidence
- evaluate_position: squash the heuristic score into [-1, 1]

The engine never raises for conditions a caller can trigger; a player
without moves gets AI_NO_MOVES so the turn manager can resign for them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging
import math
import random
import threading

from .. import config
from ..engine_core.result import EngineInvariantError, ErrorCode, Result
from .difficulty import PolicyKind, get_profile, hint_depth
from .evaluator import WIN_SCORE
from .heuristics import evaluator_for
from .policy import BotDecision, BotPolicy, GreedyPolicy, RandomPolicy, SearchPolicy
from .search import MATE_BAND, AlphaBetaSearch, SearchCancelled

if TYPE_CHECKING:
    from ..engine_core.move import Move
    from ..engine_core.rules import RulesEngine
    from ..engine_core.state import GameState
    from .difficulty import DifficultyProfile
    from .evaluator import HeuristicEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HintResult:
    suggestion: Move
    explanation: str
    confidence: float
    score: float = 0.0


class AIDecisionEngine:
    """
    AI player for one rules engine.

    `seed` makes the random levels repeatable; `time_scale` overrides
    GRAPHPAPER_AI_TIME_SCALE.
    """

    def __init__(
        self,
        engine: RulesEngine,
        evaluator: HeuristicEvaluator | None = None,
        seed: int | None = None,
        time_scale: float | None = None,
    ):
        self.engine = engine
        self.evaluator = evaluator or evaluator_for(engine)
        self.rng = random.Random(seed)
        self.time_scale = config.GRAPHPAPER_AI_TIME_SCALE if time_scale is None else time_scale

    def policy_for(
        self,
        profile: DifficultyProfile,
        time_limit: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BotPolicy:
        if profile.policy == PolicyKind.RANDOM:
            return RandomPolicy(rng=self.rng)
        if profile.policy == PolicyKind.GREEDY:
            return GreedyPolicy(self.evaluator, rng=self.rng)
        if time_limit is None:
            time_limit = profile.time_limit(self.time_scale)
        return SearchPolicy(
            self.engine,
            self.evaluator,
            depth=profile.depth,
            iterative_deepening=profile.iterative_deepening,
            time_limit=time_limit,
            cancel_event=cancel_event,
        )

    def choose(
        self,
        state: GameState,
        difficulty: int,
        player_id: str,
        time_limit: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Result[BotDecision]:
        """Like get_move, but keeps the whole BotDecision."""
        if state.get_player(player_id) is None:
            return Result.fail(ErrorCode.PLAYER_NOT_FOUND, f"Unknown player: {player_id}")
        if not state.is_complete and state.current_player.id != player_id:
            return Result.fail(ErrorCode.NOT_YOUR_TURN, f"Not {player_id}'s turn")

        legal_moves = self.engine.get_legal_moves(state, player_id)
        if not legal_moves:
            logger.info("AI %s has no legal moves in %s", player_id, state.id)
            return Result.fail(ErrorCode.AI_NO_MOVES, "No legal moves available", player_id=player_id)

        try:
            profile = get_profile(self.engine.game_type, difficulty)
        except ValueError as e:
            return Result.fail(ErrorCode.AI_ERROR, str(e))

        policy = self.policy_for(profile, time_limit, cancel_event)
        try:
            decision = policy.select_move(state, legal_moves, player_id)
        except SearchCancelled:
            logger.debug("AI search for %s in %s was cancelled", player_id, state.id)
            return Result.fail(ErrorCode.AI_ERROR, "Search cancelled", player_id=player_id)
        except EngineInvariantError as e:
            logger.exception("AI search failed in %s", state.id)
            return Result.fail(ErrorCode.ENGINE_ERROR, str(e))

        logger.info(
            "AI %s (%s) chose %s after %d plies",
            player_id, profile.name, decision.move.data, decision.depth_reached,
        )
        return Result.ok(decision)

    def get_move(
        self,
        state: GameState,
        difficulty: int,
        player_id: str,
        time_limit: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Result[Move]:
        """
        Choose a move for `player_id` at a difficulty level (1-6).

        `time_limit` (seconds) overrides the level's budget.
        """
        result = self.choose(state, difficulty, player_id, time_limit, cancel_event)
        if not result.success:
            return Result.from_error(result.error)
        return Result.ok(result.data.move)

    def get_hint(self, state: GameState, player_id: str) -> HintResult | None:
        """
        Suggest a move for `player_id`, or None if they cannot move.

        Hints search to a fixed depth without a time limit or randomness,
        so the same position always gets the same hint.
        """
        legal_moves = self.engine.get_legal_moves(state, player_id)
        if not legal_moves:
            return None

        if len(legal_moves) == 1:
            move = legal_moves[0]
            child = self.engine.apply_move(state, move).data
            evaluation = self.evaluator.evaluate(child, player_id)
            return HintResult(
                suggestion=move,
                explanation=self.evaluator.explain(evaluation),
                confidence=1.0,
                score=evaluation.total_score,
            )

        search = AlphaBetaSearch(
            self.engine,
            self.evaluator,
            max_depth=hint_depth(self.engine.game_type),
            iterative_deepening=False,
            exact_root=True,
        )
        result = search.search(state, player_id, legal_moves)
        best_move, best_score = result.scored_moves[0]

        child = self.engine.apply_move(state, best_move).data
        evaluation = self.evaluator.evaluate(child, player_id)
        if evaluation.is_terminal:
            explanation = self.evaluator.explain(evaluation)
        elif best_score >= WIN_SCORE - MATE_BAND:
            explanation = "This move leads to a forced win."
        elif best_score <= -WIN_SCORE + MATE_BAND:
            explanation = "Every move loses against best play; this one holds out longest."
        else:
            explanation = self.evaluator.explain(evaluation)

        if result.is_forced_win or len(result.scored_moves) < 2:
            confidence = 1.0
        else:
            margin = best_score - result.scored_moves[1][1]
            confidence = 0.1 + 0.9 * margin / (margin + self.evaluator.scale)

        logger.debug("Hint for %s: %s (score %.1f)", player_id, best_move.data, best_score)
        return HintResult(
            suggestion=best_move,
            explanation=explanation,
            confidence=round(confidence, 3),
            score=best_score,
        )

    def evaluate_position(self, state: GameState, player_id: str) -> float:
        """Heuristic value of `state` for `player_id`, in [-1, 1]."""
        evaluation = self.evaluator.evaluate(state, player_id)
        if evaluation.is_terminal:
            return float((evaluation.total_score > 0) - (evaluation.total_score < 0))
        return math.tanh(evaluation.total_score / self.evaluator.scale)
