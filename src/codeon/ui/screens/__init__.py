"""UI Screens."""

from .challenge import ChallengeScreen
from .home import HomeScreen

__all__ = ["ChallengeScreen", "HomeScreen"]
