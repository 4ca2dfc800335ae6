"""
Graphpaper - Turn-Based Pencil-and-Paper Game Engine

A deterministic rules engine with AI opponents for tic-tac-toe,
dots-and-boxes and sprouts. The package provides:
- Immutable game states and pure rule engines
- Legal move generation and terminal detection
- Difficulty-scaled AI players and move hints
- A turn manager with timers, undo and observers
"""

__version__ = "0.1.0"
