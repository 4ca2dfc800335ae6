"""
Bots module - AI players and hints.

Provides:
- BotPolicy: Interface for bot decision-making
- HeuristicEvaluator: Scores game states, one subclass per game
- AlphaBetaSearch: Generic search over any rules engine
- DifficultyProfile: What each level 1-6 is allowed to do
- AIDecisionEngine: get_move, get_hint, evaluate_position
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, GreedyPolicy, SearchPolicy
from .evaluator import HeuristicEvaluator, StateEvaluation, WIN_SCORE
from .heuristics import (
    TicTacToeEvaluator,
    DotsAndBoxesEvaluator,
    SproutsEvaluator,
    evaluator_for,
)
from .search import AlphaBetaSearch, SearchResult, SearchCancelled, SearchTimeout
from .difficulty import DifficultyProfile, PolicyKind, get_profile
from .decision import AIDecisionEngine, HintResult

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "GreedyPolicy",
    "SearchPolicy",
    "HeuristicEvaluator",
    "StateEvaluation",
    "WIN_SCORE",
    "TicTacToeEvaluator",
    "DotsAndBoxesEvaluator",
    "SproutsEvaluator",
    "evaluator_for",
    "AlphaBetaSearch",
    "SearchResult",
    "SearchCancelled",
    "SearchTimeout",
    "DifficultyProfile",
    "PolicyKind",
    "get_profile",
    "AIDecisionEngine",
    "HintResult",
]
