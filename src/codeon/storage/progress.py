"""Progress tracking utilities."""

from datetime import date, datetime, timedelta
from typing import Optional

from ..challenges.types import Challenge
from .database import Database


class ProgressTracker:
    """Track and analyze the learner's progress through the catalog."""

    def __init__(self, db: Database, catalog: list[Challenge]):
        """Initialize the progress tracker.

        Args:
            db: Database instance
            catalog: Challenges the learner can work through, in order
        """
        self.db = db
        self.catalog = catalog

    async def get_summary(self) -> dict:
        """Get a summary of the learner's progress.

        Returns:
            Dict with progress metrics
        """
        profile = await self.db.get_profile()
        history = await self.db.get_history(limit=5)

        return {
            "challenges_completed": len(profile.completed),
            "challenges_total": len(self.catalog),
            "total_stars": sum(profile.completed.values()),
            "level": profile.level,
            "xp": profile.xp,
            "level_threshold": profile.level_threshold,
            "coins": profile.coins,
            "current_streak": await self._calculate_streak(),
            "recent_matches": history,
        }

    async def _calculate_streak(self, today: Optional[date] = None) -> int:
        """Calculate the current streak of consecutive days with a match."""
        async with self.db.connection.execute(
            """
            SELECT DISTINCT DATE(played_at) as played_date
            FROM match_history
            WHERE user_id = ?
            ORDER BY played_date DESC
            LIMIT 30
            """,
            (self.db.user_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        if not rows:
            return 0

        dates = [datetime.strptime(row[0], "%Y-%m-%d").date() for row in rows]
        today = today or datetime.now().date()

        # Played today or yesterday
        if dates[0] < today - timedelta(days=1):
            return 0

        streak = 1
        for i in range(1, len(dates)):
            if dates[i] == dates[i - 1] - timedelta(days=1):
                streak += 1
            else:
                break

        return streak

    async def get_recommendations(self, limit: int = 3) -> list[dict]:
        """Suggest the next challenges to attempt.

        Incomplete challenges come first in catalog order, followed by
        completed ones that earned fewer than three stars.

        Returns:
            List of recommended challenges
        """
        completed = await self.db.get_completed()
        recommendations = []

        for challenge in self.catalog:
            if challenge.id not in completed:
                recommendations.append({
                    "challenge_id": challenge.id,
                    "title": challenge.title,
                    "difficulty": challenge.difficulty.value,
                    "reason": "Challenge not yet completed",
                })

        for challenge in self.catalog:
            stars = completed.get(challenge.id)
            if stars is not None and stars < 3:
                recommendations.append({
                    "challenge_id": challenge.id,
                    "title": challenge.title,
                    "difficulty": challenge.difficulty.value,
                    "reason": f"Earned {stars} of 3 stars; a shorter solution scores higher",
                })

        return recommendations[:limit]
