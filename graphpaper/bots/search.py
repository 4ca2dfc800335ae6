"""
Alpha-beta search over any RulesEngine.

The search only needs the engine contract (legal moves, apply, terminal)
plus a HeuristicEvaluator for cut-off nodes and move ordering.

Design principles:
- Immediate wins are taken before any search
- Maximize/minimize is decided per node from the side to move, so games
  where a player moves twice in a row need no special handling
- Terminal scores dominate heuristics: faster wins and slower losses score higher
- Iterative deepening keeps the last completed depth when time runs out;
  depth 1 always completes
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Hashable
import logging
import threading
import time

from ..engine_core.result import EngineInvariantError
from .evaluator import WIN_SCORE

if TYPE_CHECKING:
    from ..engine_core.move import Move
    from ..engine_core.rules import RulesEngine
    from ..engine_core.state import GameState
    from .evaluator import HeuristicEvaluator

logger = logging.getLogger(__name__)

# Scores this close to WIN_SCORE are wins or losses at a known distance.
MATE_BAND = 1000.0


class SearchTimeout(Exception):
    """The time budget ran out in the middle of a depth iteration."""


class SearchCancelled(Exception):
    """The caller abandoned the search."""


class Bound(str, Enum):
    EXACT = "exact"
    LOWER = "lower"
    UPPER = "upper"


@dataclass(frozen=True)
class TableEntry:
    depth: int
    score: float
    bound: Bound


@dataclass
class SearchResult:
    """Outcome of a search from the root player's perspective."""
    move: Move | None
    score: float = 0.0
    depth_reached: int = 0
    nodes: int = 0
    scored_moves: list[tuple[Move, float]] = field(default_factory=list)
    timed_out: bool = False

    @property
    def is_forced_win(self) -> bool:
        return self.score >= WIN_SCORE - MATE_BAND


class AlphaBetaSearch:
    """
    Depth-limited alpha-beta with heuristic ordering and a transposition table.

    The table is only used when the evaluator supplies a state key.
    `exact_root` searches every root move with a full window so each one gets
    an exact score; hints need that to compare the best two moves.
    """

    def __init__(
        self,
        engine: RulesEngine,
        evaluator: HeuristicEvaluator,
        max_depth: int,
        time_limit: float | None = None,
        cancel_event: threading.Event | None = None,
        iterative_deepening: bool = True,
        exact_root: bool = False,
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.engine = engine
        self.evaluator = evaluator
        self.max_depth = max_depth
        self.time_limit = time_limit
        self.cancel_event = cancel_event
        self.iterative_deepening = iterative_deepening
        self.exact_root = exact_root

        self.nodes = 0
        self._deadline: float | None = None
        self._enforce_deadline = False
        self._table: dict[Hashable, TableEntry] = {}

    def search(
        self,
        state: GameState,
        player_id: str,
        moves: list[Move] | None = None,
    ) -> SearchResult:
        self.nodes = 0
        self._table.clear()
        self._deadline = time.monotonic() + self.time_limit if self.time_limit else None
        self._check_cancelled()

        if moves is None:
            moves = self.engine.get_legal_moves(state, player_id)
        if not moves:
            return SearchResult(move=None)

        children = []
        for move in moves:
            child = self._child(state, move)
            terminal = self.engine.is_terminal(child)
            if terminal is not None and terminal.winner == player_id:
                logger.debug("Immediate win for %s: %s", player_id, move.data)
                score = WIN_SCORE - 1
                return SearchResult(move=move, score=score, depth_reached=1, nodes=len(children) + 1,
                                    scored_moves=[(move, score)])
            children.append((move, child))

        # Order by one-ply heuristic; sort is stable so ties keep generation order.
        children.sort(key=lambda mc: -self.evaluator.evaluate(mc[1], player_id).total_score)

        if self.iterative_deepening:
            depths = list(range(1, self.max_depth + 1))
        else:
            depths = sorted({1, self.max_depth})

        best: list[tuple[Move, float]] = []
        reached = 0
        timed_out = False
        for depth in depths:
            self._enforce_deadline = depth > 1
            try:
                scored = self._search_root(children, depth, player_id)
            except SearchTimeout:
                timed_out = True
                logger.debug("Search timed out at depth %d after %d nodes", depth, self.nodes)
                break
            best = scored
            reached = depth
            order = {id(move): i for i, (move, _) in enumerate(scored)}
            children.sort(key=lambda mc: order[id(mc[0])])
            if scored[0][1] >= WIN_SCORE - MATE_BAND:
                break

        move, score = best[0]
        logger.debug(
            "Search for %s: depth %d, %d nodes, score %.1f, move %s",
            player_id, reached, self.nodes, score, move.data,
        )
        return SearchResult(
            move=move,
            score=score,
            depth_reached=reached,
            nodes=self.nodes,
            scored_moves=best,
            timed_out=timed_out,
        )

    # ------------------------------------------------------------------

    def _search_root(self, children, depth: int, player_id: str) -> list[tuple[Move, float]]:
        alpha = -float("inf")
        scored = []
        for move, child in children:
            window_alpha = -float("inf") if self.exact_root else alpha
            score = self._alpha_beta(child, depth - 1, window_alpha, float("inf"), player_id, 1)
            scored.append((move, score))
            alpha = max(alpha, score)
        scored.sort(key=lambda ms: -ms[1])
        return scored

    def _alpha_beta(
        self,
        state: GameState,
        depth: int,
        alpha: float,
        beta: float,
        player_id: str,
        ply: int,
    ) -> float:
        self.nodes += 1
        self._check_cancelled()
        if self._enforce_deadline and self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchTimeout()

        terminal = self.engine.is_terminal(state)
        if terminal is not None:
            if terminal.winner is None:
                return 0.0
            return WIN_SCORE - ply if terminal.winner == player_id else -WIN_SCORE + ply
        if depth <= 0:
            return self.evaluator.evaluate(state, player_id).total_score

        key = self.evaluator.state_key(state)
        if key is not None:
            entry = self._table.get(key)
            if entry is not None and entry.depth >= depth:
                score = _from_table(entry.score, ply)
                if entry.bound == Bound.EXACT:
                    return score
                if entry.bound == Bound.LOWER:
                    alpha = max(alpha, score)
                else:
                    beta = min(beta, score)
                if alpha >= beta:
                    return score

        moves = self.engine.get_legal_moves(state)
        if not moves:
            return self.evaluator.evaluate(state, player_id).total_score

        maximizing = state.current_player.id == player_id
        children = [self._child(state, move) for move in moves]
        if depth >= 2:
            children.sort(
                key=lambda s: self.evaluator.evaluate(s, player_id).total_score,
                reverse=maximizing,
            )

        alpha_orig, beta_orig = alpha, beta
        if maximizing:
            value = -float("inf")
            for child in children:
                value = max(value, self._alpha_beta(child, depth - 1, alpha, beta, player_id, ply + 1))
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
        else:
            value = float("inf")
            for child in children:
                value = min(value, self._alpha_beta(child, depth - 1, alpha, beta, player_id, ply + 1))
                beta = min(beta, value)
                if alpha >= beta:
                    break

        if key is not None:
            if value <= alpha_orig:
                bound = Bound.UPPER
            elif value >= beta_orig:
                bound = Bound.LOWER
            else:
                bound = Bound.EXACT
            self._table[key] = TableEntry(depth, _to_table(value, ply), bound)
        return value

    def _child(self, state: GameState, move: Move) -> GameState:
        result = self.engine.apply_move(state, move)
        if not result.success:
            raise EngineInvariantError(f"Generated move was rejected: {result.error}")
        return result.data

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SearchCancelled()


def _to_table(score: float, ply: int) -> float:
    # Store win/loss scores relative to the node so they stay valid at other plies.
    if score >= WIN_SCORE - MATE_BAND:
        return score + ply
    if score <= -WIN_SCORE + MATE_BAND:
        return score - ply
    return score


def _from_table(score: float, ply: int) -> float:
    if score >= WIN_SCORE - MATE_BAND:
        return score - ply
    if score <= -WIN_SCORE + MATE_BAND:
        return score + ply
    return score
