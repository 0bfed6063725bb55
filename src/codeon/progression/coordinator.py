"""Economy updates applied after a successful verification."""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from pydantic import BaseModel, Field

from ..challenges.engine import VerificationResult
from ..challenges.types import Challenge
from ..storage.models import (
    PROFILE_COLUMNS,
    ChangeKind,
    HistoryRecord,
    Profile,
    ProgressRecord,
)
from ..storage.sync import ProfileSync, SyncTicket

logger = logging.getLogger(__name__)

DEFAULT_XP_REWARD = 20
DEFAULT_COIN_REWARD = 5
LEVEL_STEP = 20


class ProgressionDelta(BaseModel):
    """What a pass changed in the learner's economy."""

    challenge_id: str
    xp: int = 0
    coins: int = 0
    stars: int = 0
    levels_gained: int = 0
    streak: int = 0
    first_completion: bool = Field(default=True)


def next_streak(streak: int, last_active: Optional[date], today: date) -> int:
    """Streak after activity on ``today``.

    Same day keeps the streak, the following day extends it, and any
    other gap starts over at 1.
    """
    if last_active is None:
        return 1
    gap = (today - last_active).days
    if gap == 0:
        return max(streak, 1)
    if gap == 1:
        return streak + 1
    return 1


def add_xp(profile: Profile, amount: int) -> int:
    """Add xp and level up as often as the threshold allows.

    Returns:
        Number of levels gained
    """
    profile.xp += amount
    levels = 0
    while profile.xp >= profile.level_threshold:
        profile.xp -= profile.level_threshold
        profile.level += 1
        profile.level_threshold += LEVEL_STEP
        levels += 1
    return levels


class ProgressionCoordinator:
    """Keeps the local profile mirror and writes it through the change log.

    Local state is updated optimistically and never reverted; callers
    watch the returned tickets to learn whether the writes landed.
    """

    def __init__(
        self,
        sync: ProfileSync,
        profile: Profile,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the coordinator.

        Args:
            sync: Change log used for every write
            profile: Profile loaded at session start
            clock: Source of the current time
        """
        self.sync = sync
        self.profile = profile
        self.clock = clock

    def is_completed(self, challenge_id: str) -> bool:
        return challenge_id in self.profile.completed

    def stars_for(self, challenge_id: str) -> int:
        return self.profile.completed.get(challenge_id, 0)

    async def apply_pass(
        self,
        challenge: Challenge,
        result: VerificationResult,
        source: str,
    ) -> tuple[ProgressionDelta, list[SyncTicket]]:
        """Reward a first-time pass.

        Args:
            challenge: The challenge that was solved
            result: Successful verification result
            source: Submitted program

        Returns:
            The applied delta and one ticket per enqueued write. A repeat
            pass returns an empty delta and no tickets.
        """
        if not result.success:
            raise ValueError(f"cannot reward a {result.verdict.value} result")

        if self.is_completed(challenge.id):
            return ProgressionDelta(
                challenge_id=challenge.id,
                stars=self.stars_for(challenge.id),
                streak=self.profile.streak,
                first_completion=False,
            ), []

        xp = challenge.xp_reward if challenge.xp_reward is not None else DEFAULT_XP_REWARD
        coins = challenge.coin_reward if challenge.coin_reward is not None else DEFAULT_COIN_REWARD
        now = self.clock()
        today = now.date()

        levels = add_xp(self.profile, xp)
        self.profile.coins += coins
        self.profile.streak = next_streak(self.profile.streak, self.profile.last_active, today)
        self.profile.last_active = today
        self.profile.completed[challenge.id] = result.stars

        delta = ProgressionDelta(
            challenge_id=challenge.id,
            xp=xp,
            coins=coins,
            stars=result.stars,
            levels_gained=levels,
            streak=self.profile.streak,
        )
        logger.info(
            "challenge %s completed: +%d xp, +%d coins, level %d",
            challenge.id, xp, coins, self.profile.level,
        )

        progress = ProgressRecord(
            challenge_id=challenge.id,
            stars=result.stars,
            submitted_source=source,
            execution_time_ms=result.duration_ms,
            executed_at=now,
        )
        history = HistoryRecord(
            results={
                "challengeId": challenge.id,
                "stars": result.stars,
                "xp": xp,
                "coins": coins,
            },
            played_at=now,
        )
        tickets = [
            await self.sync.enqueue(ChangeKind.PROFILE, self._profile_patch()),
            await self.sync.enqueue(ChangeKind.PROGRESS, progress.model_dump(mode="json")),
            await self.sync.enqueue(ChangeKind.HISTORY, history.model_dump(mode="json")),
        ]
        return delta, tickets

    async def spend_coins(self, amount: int) -> Optional[SyncTicket]:
        """Deduct coins when affordable.

        Returns:
            Ticket for the profile write, or None when the learner cannot
            afford it
        """
        if amount > self.profile.coins:
            return None
        self.profile.coins -= amount
        return await self.sync.enqueue(ChangeKind.PROFILE, {"coins": self.profile.coins})

    def _profile_patch(self) -> dict:
        return self.profile.model_dump(mode="json", include=set(PROFILE_COLUMNS))
