"""
Per-game heuristics.

- Tic-tac-toe: open lines, immediate threats, forks, centre and corners
- Dots and boxes: box margin, capturable boxes, safe-move parity and
  long-chain control
- Sprouts: parity of the estimated remaining move count, plus mobility
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable

from ..engine_core.rules import RulesEngine
from ..engine_core.state import GameState
from ..games.dots_and_boxes.grid import analyze_game_state
from ..games.sprouts.topology import analyze
from ..games.tictactoe.board import line_counts
from ..games.tictactoe.engine import symbol_for
from .evaluator import HeuristicEvaluator


@dataclass
class TicTacToeWeights:
    open_one: float = 1.0
    open_two: float = 10.0
    blocked: float = 8.0
    threat: float = 500.0  # side to move completes a line next
    fork: float = 200.0  # two open twos, only one can be blocked
    center: float = 3.0
    corner: float = 1.0


class TicTacToeEvaluator(HeuristicEvaluator):
    scale = 50.0
    explanations = {
        "threat": ("Sets up a line that wins on your next move.", "Leaves your opponent a winning line."),
        "fork": ("Creates two winning threats at once.", "Lets your opponent create two threats at once."),
        "blocked": ("Blocks your opponent's line.", "Your opponent blocks one of your lines."),
        "open_lines": ("Opens up more lines for you.", "Leaves your opponent more open lines."),
        "center": ("Takes the centre square.", "Gives up the centre square."),
        "corners": ("Takes a strong corner.", "Leaves the corners to your opponent."),
    }

    def __init__(self, engine: RulesEngine, weights: TicTacToeWeights | None = None):
        super().__init__(engine)
        self.weights = weights or TicTacToeWeights()

    def features(self, state: GameState, for_player_id: str) -> dict[str, float]:
        w = self.weights
        board = state.metadata.board
        mine = symbol_for(state, for_player_id)

        open_lines = 0.0
        blocked = 0.0
        my_twos = their_twos = 0
        for own, other in line_counts(board, mine):
            if other == 0 and own:
                open_lines += w.open_two if own == 2 else w.open_one
                my_twos += own == 2
            elif own == 0 and other:
                open_lines -= w.open_two if other == 2 else w.open_one
                their_twos += other == 2
            elif own and other:
                blocked += (other == 2) - (own == 2)

        threat = 0.0
        fork = 0.0
        if state.current_player.id == for_player_id:
            if my_twos:
                threat = w.threat
            elif their_twos >= 2:
                fork = -w.fork
        else:
            if their_twos:
                threat = -w.threat
            elif my_twos >= 2:
                fork = w.fork

        centre = board[1][1]
        corners = [board[0][0], board[0][2], board[2][0], board[2][2]]
        return {
            "open_lines": open_lines,
            "blocked": w.blocked * blocked,
            "threat": threat,
            "fork": fork,
            "center": w.center * ((centre == mine) - (centre not in (None, mine))),
            "corners": w.corner * (corners.count(mine) - sum(1 for c in corners if c not in (None, mine))),
        }

    def state_key(self, state: GameState) -> Hashable | None:
        return (state.metadata.board, state.current_player_index)


@dataclass
class DotsAndBoxesWeights:
    box: float = 10.0
    capturable: float = 8.0
    chain_control: float = 4.0
    long_chain_lead: float = 1.5


class DotsAndBoxesEvaluator(HeuristicEvaluator):
    scale = 40.0
    explanations = {
        "score": ("Claims boxes.", "Falls behind on boxes."),
        "capturable": ("Leaves boxes ready for you to take.", "Hands your opponent a free box."),
        "chain_control": (
            "Keeps control of the long chains for the endgame.",
            "Gives your opponent control of the long chains.",
        ),
        "long_chains": ("Builds long chains while you are ahead.", "Builds long chains while you are behind."),
    }

    def __init__(self, engine: RulesEngine, weights: DotsAndBoxesWeights | None = None):
        super().__init__(engine)
        self.weights = weights or DotsAndBoxesWeights()

    def features(self, state: GameState, for_player_id: str) -> dict[str, float]:
        w = self.weights
        meta = state.metadata
        me = state.player_index(for_player_id)
        margin = meta.player_scores[me] - sum(s for i, s in enumerate(meta.player_scores) if i != me)
        my_turn = state.current_player_index == me
        side = 1 if my_turn else -1

        analysis = analyze_game_state(meta)
        long_chains = analysis.long_chains
        long_boxes = sum(chain.length for chain in long_chains)

        # When the safe moves run out somebody must open a chain. With an even
        # count left that is the side to move now.
        safe = len(analysis.safe_moves)
        to_move_favoured = safe % 2 == 1
        control = side if to_move_favoured else -side

        lead = 0.0
        if margin > 0:
            lead = w.long_chain_lead * len(long_chains)
        elif margin < 0:
            lead = -w.long_chain_lead * len(long_chains)

        return {
            "score": w.box * margin,
            "capturable": side * w.capturable * len(analysis.completable_boxes),
            "chain_control": w.chain_control * control * long_boxes,
            "long_chains": lead,
        }

    def state_key(self, state: GameState) -> Hashable | None:
        meta = state.metadata
        return (meta.horizontal_lines, meta.vertical_lines, state.current_player_index, meta.player_scores)


@dataclass
class SproutsWeights:
    parity: float = 50.0
    mobility: float = 1.0


class SproutsEvaluator(HeuristicEvaluator):
    scale = 50.0
    explanations = {
        "parity": (
            "Leaves a move count that should give you the last move.",
            "Leaves a move count that favours your opponent.",
        ),
        "mobility": ("Keeps more points alive for you.", "Keeps more points alive for your opponent."),
    }

    def __init__(self, engine: RulesEngine, weights: SproutsWeights | None = None):
        super().__init__(engine)
        self.weights = weights or SproutsWeights()

    def features(self, state: GameState, for_player_id: str) -> dict[str, float]:
        w = self.weights
        analysis = analyze(state.metadata)
        my_turn = state.current_player.id == for_player_id
        # With an odd number of moves left, the side to move makes the last one.
        to_move_wins = analysis.estimated_moves_remaining % 2 == 1
        return {
            "parity": w.parity if my_turn == to_move_wins else -w.parity,
            "mobility": w.mobility * analysis.live_points * (1 if my_turn else -1),
        }


EVALUATORS: dict[str, type[HeuristicEvaluator]] = {
    "tictactoe": TicTacToeEvaluator,
    "dots_and_boxes": DotsAndBoxesEvaluator,
    "sprouts": SproutsEvaluator,
}


def evaluator_for(engine: RulesEngine) -> HeuristicEvaluator:
    evaluator_cls = EVALUATORS.get(engine.game_type)
    if evaluator_cls is None:
        raise ValueError(f"No heuristic for game type: {engine.game_type}")
    return evaluator_cls(engine)
