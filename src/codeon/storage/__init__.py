"""Storage module for persistence."""

from .database import Database, ProfileStore
from .models import (
    ChangeKind,
    HistoryRecord,
    PendingChange,
    Profile,
    ProgressRecord,
)
from .progress import ProgressTracker
from .sync import ProfileSync, SyncTicket

__all__ = [
    "ChangeKind",
    "Database",
    "HistoryRecord",
    "PendingChange",
    "Profile",
    "ProfileStore",
    "ProfileSync",
    "ProgressRecord",
    "ProgressTracker",
    "SyncTicket",
]
