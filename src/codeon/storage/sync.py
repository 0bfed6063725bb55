"""Durable change log with background delivery to the profile store."""

import asyncio
import logging
from typing import Optional

from ..errors import PersistenceError
from .database import Database, ProfileStore
from .models import ChangeKind, HistoryRecord, PendingChange, ProgressRecord

logger = logging.getLogger(__name__)


class SyncTicket:
    """Lets the caller observe whether a change reached the store."""

    def __init__(self, change_id: int):
        self.change_id = change_id
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def error(self) -> Optional[BaseException]:
        if not self._future.done() or self._future.cancelled():
            return None
        return self._future.exception()

    async def wait(self) -> None:
        """Wait for delivery.

        Raises:
            PersistenceError: If every attempt failed
        """
        await asyncio.shield(self._future)

    def resolve(self, error: Optional[PersistenceError] = None) -> None:
        if self._future.done():
            return
        if error is None:
            self._future.set_result(None)
        else:
            self._future.set_exception(error)
            # Already logged by the sync worker; keep asyncio from reporting it again.
            self._future.exception()


class ProfileSync:
    """Delivers change log rows to the profile store with retry and backoff."""

    def __init__(
        self,
        log: Database,
        store: Optional[ProfileStore] = None,
        max_attempts: int = 5,
        backoff: float = 0.5,
        max_backoff: float = 30.0,
    ):
        """Initialize the sync worker.

        Args:
            log: Database holding the change log
            store: Destination of the changes; defaults to ``log`` itself
            max_attempts: Attempts per change before it is marked failed
            backoff: Base delay in seconds, doubled after every failure
            max_backoff: Upper bound for a single delay
        """
        self.log = log
        self.store = store or log
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.max_backoff = max_backoff
        self._tickets: dict[int, SyncTicket] = {}
        self._wake = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def enqueue(self, kind: ChangeKind, payload: dict) -> SyncTicket:
        """Record a change durably and schedule its delivery."""
        change_id = await self.log.add_pending(kind, payload)
        ticket = SyncTicket(change_id)
        self._tickets[change_id] = ticket
        self._wake.set()
        return ticket

    def start(self) -> None:
        """Start the background delivery task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="profile-sync")

    async def resume(self, retry_failed: bool = False) -> None:
        """Deliver changes left over from a previous run."""
        if retry_failed:
            count = await self.log.reset_failed()
            if count:
                logger.info("retrying %d previously failed profile changes", count)
        self.start()
        self._wake.set()

    async def stop(self) -> None:
        """Cancel the background task; undelivered rows stay in the log."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def flush(self) -> None:
        """Try to deliver every pending change once, in order."""
        async with self._lock:
            for change in await self.log.get_pending():
                await self._deliver(change)

    async def _run(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            await self.flush()

    async def _deliver(self, change: PendingChange) -> None:
        attempts = change.attempts
        while True:
            try:
                await self._apply(change)
            except Exception as e:
                attempts += 1
                failed = attempts >= self.max_attempts
                await self.log.record_attempt(change.id, str(e), failed=failed)
                if failed:
                    logger.error(
                        "giving up on %s change %d after %d attempts: %s",
                        change.kind.value, change.id, attempts, e,
                    )
                    self._finish(change.id, PersistenceError(f"Could not save {change.kind.value}: {e}"))
                    return
                delay = min(self.backoff * 2 ** (attempts - 1), self.max_backoff)
                logger.warning(
                    "%s change %d failed (attempt %d), retrying in %.1fs: %s",
                    change.kind.value, change.id, attempts, delay, e,
                )
                await asyncio.sleep(delay)
                continue

            await self.log.remove_pending(change.id)
            self._finish(change.id)
            return

    async def _apply(self, change: PendingChange) -> None:
        if change.kind == ChangeKind.PROFILE:
            await self.store.update_profile(change.payload)
        elif change.kind == ChangeKind.PROGRESS:
            await self.store.save_progress(ProgressRecord(**change.payload))
        elif change.kind == ChangeKind.HISTORY:
            await self.store.append_history(HistoryRecord(**change.payload))

    def _finish(self, change_id: int, error: Optional[PersistenceError] = None) -> None:
        ticket = self._tickets.pop(change_id, None)
        if ticket is not None:
            ticket.resolve(error)
