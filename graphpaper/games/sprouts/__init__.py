"""
Sprouts - The planar curve game.

Players join points with curves that may not cross, dropping a new point on
every curve. A point takes at most three curve ends; whoever draws the last
possible curve wins.

This module contains:
- Plane geometry for polyline curves
- Face decomposition of the drawing (legal-move counting)
- Curve routing inside a face (concrete moves for the AI)
- The sprouts rules engine
"""

from .model import SproutPoint, Curve, SproutsMetadata, SproutsPhase, MAX_CONNECTIONS
from .topology import Embedding, Face, TopologyAnalysis, analyze
from .engine import (
    SproutsEngine,
    SproutsStatistics,
    RoutedCurve,
    check_curve,
    count_routed_moves,
    routed_curves,
)

__all__ = [
    "SproutsEngine",
    "SproutsStatistics",
    "SproutPoint",
    "Curve",
    "SproutsMetadata",
    "SproutsPhase",
    "MAX_CONNECTIONS",
    "Embedding",
    "Face",
    "TopologyAnalysis",
    "analyze",
    "check_curve",
    "RoutedCurve",
    "routed_curves",
    "count_routed_moves",
]
