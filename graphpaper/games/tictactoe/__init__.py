"""
Tic-Tac-Toe - The 3x3 marking game.

Two players alternate placing X and O; three in a row, column or
diagonal wins, a full board without a line is a draw.
"""

from .board import WINNING_LINES, WinningLine, LineKind, SYMBOLS
from .engine import TicTacToeEngine, TicTacToeMetadata, symbol_for

__all__ = [
    "TicTacToeEngine",
    "TicTacToeMetadata",
    "WINNING_LINES",
    "WinningLine",
    "LineKind",
    "SYMBOLS",
    "symbol_for",
]
