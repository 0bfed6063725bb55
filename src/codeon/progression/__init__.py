"""Progression: xp, levels, coins and streaks."""

from .coordinator import (
    DEFAULT_COIN_REWARD,
    DEFAULT_XP_REWARD,
    LEVEL_STEP,
    ProgressionCoordinator,
    ProgressionDelta,
    add_xp,
    next_streak,
)

__all__ = [
    "DEFAULT_COIN_REWARD",
    "DEFAULT_XP_REWARD",
    "LEVEL_STEP",
    "ProgressionCoordinator",
    "ProgressionDelta",
    "add_xp",
    "next_streak",
]
