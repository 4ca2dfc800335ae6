"""
Environment configuration.

Every setting has a default and can be overridden with a GRAPHPAPER_*
environment variable. Values are read once at import time.
"""

import logging
import os

GRAPHPAPER_LOG_LEVEL = os.getenv("GRAPHPAPER_LOG_LEVEL", "INFO")

# Multiplies the default per-level AI thinking budgets.
GRAPHPAPER_AI_TIME_SCALE = float(os.getenv("GRAPHPAPER_AI_TIME_SCALE", "1.0"))

GRAPHPAPER_MAX_UNDO_DEPTH = int(os.getenv("GRAPHPAPER_MAX_UNDO_DEPTH", "3"))

# Latency window for AI answers, in milliseconds.
GRAPHPAPER_AI_MIN_LATENCY_MS = int(os.getenv("GRAPHPAPER_AI_MIN_LATENCY_MS", "0"))
GRAPHPAPER_AI_MAX_LATENCY_MS = int(os.getenv("GRAPHPAPER_AI_MAX_LATENCY_MS", "5000"))


def configure_logging(level: str | None = None):
    """Set up root logging for command-line use."""
    logging.basicConfig(
        level=(level or GRAPHPAPER_LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
