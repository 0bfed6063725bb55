"""SQLite database management."""

import json
from datetime import date
from pathlib import Path
from typing import Optional, Protocol

import aiosqlite

from .models import (
    PROFILE_COLUMNS,
    STARTING_COINS,
    STARTING_LEVEL_THRESHOLD,
    ChangeKind,
    HistoryRecord,
    PendingChange,
    Profile,
    ProgressRecord,
)


class ProfileStore(Protocol):
    """Profile collaborator the engine writes through."""

    async def get_profile(self) -> Profile:
        ...

    async def update_profile(self, patch: dict) -> None:
        ...

    async def save_progress(self, record: ProgressRecord) -> None:
        ...

    async def append_history(self, record: HistoryRecord) -> None:
        ...


class Database:
    """SQLite database for the learner profile and the pending change log."""

    def __init__(self, db_path: Optional[Path] = None, user_id: str = "local"):
        """Initialize the database.

        Args:
            db_path: Path to SQLite database file.
                    Defaults to ~/.local/share/codeon/codeon.db
            user_id: Learner the profile rows belong to
        """
        if db_path is None:
            data_dir = Path.home() / ".local" / "share" / "codeon"
            data_dir.mkdir(parents=True, exist_ok=True)
            db_path = data_dir / "codeon.db"

        self.db_path = db_path
        self.user_id = user_id
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Connect to the database."""
        self._connection = await aiosqlite.connect(self.db_path)
        await self._create_tables()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        assert self._connection is not None

        await self._connection.executescript("""
            CREATE TABLE IF NOT EXISTS profile (
                user_id TEXT PRIMARY KEY,
                coins INTEGER NOT NULL,
                xp INTEGER NOT NULL DEFAULT 0,
                level INTEGER NOT NULL DEFAULT 1,
                level_threshold INTEGER NOT NULL,
                streak INTEGER NOT NULL DEFAULT 0,
                last_active TEXT,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS challenge_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                challenge_id TEXT NOT NULL,
                status TEXT NOT NULL,
                stars INTEGER NOT NULL,
                submitted_source TEXT NOT NULL,
                execution_time_ms INTEGER,
                executed_at TIMESTAMP,
                UNIQUE(user_id, challenge_id)
            );

            CREATE TABLE IF NOT EXISTS match_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                mode TEXT NOT NULL,
                results TEXT NOT NULL,
                played_at TIMESTAMP NOT NULL
            );

            CREATE TABLE IF NOT EXISTS outbox (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                kind TEXT NOT NULL,
                payload TEXT NOT NULL,
                attempts INTEGER NOT NULL DEFAULT 0,
                last_error TEXT,
                failed BOOLEAN DEFAULT FALSE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_history_date ON match_history(played_at);
        """)
        await self._connection.execute(
            """
            INSERT OR IGNORE INTO profile (user_id, coins, level_threshold)
            VALUES (?, ?, ?)
            """,
            (self.user_id, STARTING_COINS, STARTING_LEVEL_THRESHOLD),
        )
        await self._connection.commit()

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    # Profile
    async def get_profile(self) -> Profile:
        """Read the learner's economy counters and completed challenges."""
        async with self.connection.execute(
            """
            SELECT coins, xp, level, level_threshold, streak, last_active
            FROM profile WHERE user_id = ?
            """,
            (self.user_id,),
        ) as cursor:
            row = await cursor.fetchone()

        profile = Profile()
        if row:
            profile = Profile(
                coins=row[0],
                xp=row[1],
                level=row[2],
                level_threshold=row[3],
                streak=row[4],
                last_active=date.fromisoformat(row[5]) if row[5] else None,
            )
        profile.completed = await self.get_completed()
        return profile

    async def update_profile(self, patch: dict) -> None:
        """Overwrite the given profile columns; unknown keys are ignored."""
        columns = [key for key in PROFILE_COLUMNS if key in patch]
        if not columns:
            return
        values = []
        for key in columns:
            value = patch[key]
            values.append(value.isoformat() if isinstance(value, date) else value)

        assignments = ", ".join(f"{column} = ?" for column in columns)
        await self.connection.execute(
            f"UPDATE profile SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
            (*values, self.user_id),
        )
        await self.connection.commit()

    # Challenges
    async def save_progress(self, record: ProgressRecord) -> None:
        """Upsert the completion record for one challenge."""
        await self.connection.execute(
            """
            INSERT INTO challenge_progress
                (user_id, challenge_id, status, stars, submitted_source,
                 execution_time_ms, executed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, challenge_id) DO UPDATE SET
                status = excluded.status,
                stars = excluded.stars,
                submitted_source = excluded.submitted_source,
                execution_time_ms = excluded.execution_time_ms,
                executed_at = excluded.executed_at
            """,
            (
                self.user_id,
                record.challenge_id,
                record.status,
                record.stars,
                record.submitted_source,
                record.execution_time_ms,
                record.executed_at.isoformat(),
            ),
        )
        await self.connection.commit()

    async def get_completed(self) -> dict[str, int]:
        """Get completed challenge ids mapped to their stars."""
        async with self.connection.execute(
            """
            SELECT challenge_id, stars FROM challenge_progress
            WHERE user_id = ? AND status = 'completed'
            ORDER BY executed_at
            """,
            (self.user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return {row[0]: row[1] for row in rows}

    # Match history
    async def append_history(self, record: HistoryRecord) -> None:
        """Append a match history entry."""
        await self.connection.execute(
            "INSERT INTO match_history (user_id, mode, results, played_at) VALUES (?, ?, ?, ?)",
            (self.user_id, record.mode, json.dumps(record.results), record.played_at.isoformat()),
        )
        await self.connection.commit()

    async def get_history(self, limit: int = 20) -> list[dict]:
        """Get the most recent match history entries."""
        async with self.connection.execute(
            """
            SELECT mode, results, played_at FROM match_history
            WHERE user_id = ?
            ORDER BY played_at DESC
            LIMIT ?
            """,
            (self.user_id, limit),
        ) as cursor:
            rows = await cursor.fetchall()
            return [
                {"mode": row[0], "results": json.loads(row[1]), "played_at": row[2]}
                for row in rows
            ]

    # Change log
    async def add_pending(self, kind: ChangeKind, payload: dict) -> int:
        """Persist a change before it is sent to the profile store."""
        cursor = await self.connection.execute(
            "INSERT INTO outbox (kind, payload) VALUES (?, ?)",
            (kind.value, json.dumps(payload, default=str)),
        )
        await self.connection.commit()
        return cursor.lastrowid

    async def get_pending(self, include_failed: bool = False) -> list[PendingChange]:
        """Get change log rows in insertion order."""
        query = "SELECT id, kind, payload, attempts, last_error, failed FROM outbox"
        if not include_failed:
            query += " WHERE failed = FALSE"
        query += " ORDER BY id"

        async with self.connection.execute(query) as cursor:
            rows = await cursor.fetchall()
            return [
                PendingChange(
                    id=row[0],
                    kind=ChangeKind(row[1]),
                    payload=json.loads(row[2]),
                    attempts=row[3],
                    last_error=row[4],
                    failed=bool(row[5]),
                )
                for row in rows
            ]

    async def record_attempt(self, change_id: int, error: str, failed: bool = False) -> None:
        """Count a failed delivery attempt."""
        await self.connection.execute(
            """
            UPDATE outbox SET attempts = attempts + 1, last_error = ?, failed = ?
            WHERE id = ?
            """,
            (error, failed, change_id),
        )
        await self.connection.commit()

    async def reset_failed(self) -> int:
        """Make permanently failed changes eligible for delivery again."""
        cursor = await self.connection.execute(
            "UPDATE outbox SET failed = FALSE, attempts = 0 WHERE failed = TRUE"
        )
        await self.connection.commit()
        return cursor.rowcount

    async def remove_pending(self, change_id: int) -> None:
        """Drop a delivered change."""
        await self.connection.execute("DELETE FROM outbox WHERE id = ?", (change_id,))
        await self.connection.commit()
