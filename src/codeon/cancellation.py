"""Cancellation token scoped to a session's lifetime."""


class CancellationToken:
    """Flag checked after every await that would write into a session."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
