"""Pydantic models for persisted learner records."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

STARTING_COINS = 10
STARTING_LEVEL_THRESHOLD = 20


class Profile(BaseModel):
    """Economy counters and completion state of one learner."""

    coins: int = Field(default=STARTING_COINS)
    xp: int = Field(default=0, description="XP towards the next level")
    level: int = Field(default=1)
    level_threshold: int = Field(default=STARTING_LEVEL_THRESHOLD)
    streak: int = Field(default=0, description="Consecutive active days")
    last_active: Optional[date] = Field(default=None)
    completed: dict[str, int] = Field(
        default_factory=dict, description="Challenge id -> earned stars"
    )


PROFILE_COLUMNS = ("coins", "xp", "level", "level_threshold", "streak", "last_active")


class ProgressRecord(BaseModel):
    """Per (user, challenge) completion record."""

    challenge_id: str
    status: str = Field(default="completed")
    stars: int = Field(ge=1, le=3)
    submitted_source: str
    execution_time_ms: int = Field(default=0)
    executed_at: datetime = Field(default_factory=datetime.now)


class HistoryRecord(BaseModel):
    """Append-only match history entry."""

    mode: str = Field(default="challenge")
    results: dict = Field(description="{challengeId, stars, xp, coins}")
    played_at: datetime = Field(default_factory=datetime.now)


class ChangeKind(str, Enum):
    """Kinds of writes held in the change log."""

    PROFILE = "profile"
    PROGRESS = "progress"
    HISTORY = "history"


class PendingChange(BaseModel):
    """A change log row waiting to reach the profile store."""

    id: int
    kind: ChangeKind
    payload: dict
    attempts: int = 0
    last_error: Optional[str] = None
    failed: bool = False
