"""Challenge catalog and verification."""

from .catalog import BUILTIN_CHALLENGES, get_challenge_by_id, get_challenges
from .engine import VerificationEngine, VerificationResult, Verdict, grade_stars
from .types import Challenge, Difficulty

__all__ = [
    "BUILTIN_CHALLENGES",
    "Challenge",
    "Difficulty",
    "Verdict",
    "VerificationEngine",
    "VerificationResult",
    "get_challenge_by_id",
    "get_challenges",
    "grade_stars",
]
