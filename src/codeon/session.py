"""Challenge session: the state a learner works against while solving."""

import asyncio
import logging
from typing import Optional

from .analysis.diagnostics import (
    Diagnostic,
    EditorMarker,
    has_blocking_errors,
    merge_diagnostics,
    parse_compiler_output,
    to_markers,
)
from .analysis.linter import lint_source
from .cancellation import CancellationToken
from .challenges.engine import VerificationEngine, VerificationResult
from .challenges.types import Challenge
from .errors import CatalogError
from .progression.coordinator import ProgressionCoordinator, ProgressionDelta
from .sandbox.client import ExecutionResult, Sandbox
from .settings import Settings
from .storage.sync import SyncTicket
from .terminal.emulator import TerminalEmulator

logger = logging.getLogger(__name__)

HINT_COST = 2
SYNTAX_BLOCKED = "Fix the syntax errors before running.\n"


class ChallengeSession:
    """One learner working through an ordered list of challenges.

    Built by the controller and handed to the UI. Every method that awaits
    the sandbox checks the session token before writing results back, so a
    closed session is never modified.
    """

    def __init__(
        self,
        challenges: list[Challenge],
        sandbox: Sandbox,
        coordinator: ProgressionCoordinator,
        settings: Optional[Settings] = None,
    ):
        """Initialize the session on the first challenge.

        Args:
            challenges: Ordered catalog slice to work through
            sandbox: Execution backend for runs and verification
            coordinator: Profile mirror and change log writer
            settings: Runtime settings; defaults apply when omitted
        """
        if not challenges:
            raise CatalogError("A session needs at least one challenge")

        self.challenges = challenges
        self.coordinator = coordinator
        self.settings = settings or Settings()
        self.token = CancellationToken()
        self.terminal = TerminalEmulator(sandbox, token=self.token)
        self.engine = VerificationEngine(sandbox)

        self.index = 0
        self.source = ""
        self.lint_diagnostics: list[Diagnostic] = []
        self.compile_diagnostics: list[Diagnostic] = []
        self.hint_visible = False
        self.last_verification: Optional[VerificationResult] = None
        self.last_delta: Optional[ProgressionDelta] = None
        self.tickets: list[SyncTicket] = []
        self._verifying = False
        self._lint_task: Optional[asyncio.Task] = None
        self._generation = 0

        self.select_challenge(0)

    @property
    def challenge(self) -> Challenge:
        return self.challenges[self.index]

    @property
    def closed(self) -> bool:
        return self.token.cancelled

    @property
    def busy(self) -> bool:
        """Whether a run or verification is in flight."""
        return self._verifying or self.terminal.busy

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return merge_diagnostics(self.lint_diagnostics, self.compile_diagnostics)

    @property
    def markers(self) -> list[EditorMarker]:
        """Editor markers for the current diagnostics."""
        return to_markers(self.diagnostics)

    @property
    def progress_percent(self) -> int:
        """Share of this session's challenges already completed."""
        done = sum(1 for c in self.challenges if self.coordinator.is_completed(c.id))
        return done * 100 // len(self.challenges)

    # Navigation
    def select_challenge(self, index: int) -> Challenge:
        """Make ``index`` the active challenge.

        The source buffer is reset to the starter code and diagnostics are
        cleared. A pending input request is dropped; the transcript stays.
        """
        if not 0 <= index < len(self.challenges):
            raise CatalogError(f"No challenge at position {index}")

        self._cancel_lint()
        self.terminal.abort()
        self._generation += 1
        self.index = index
        self.source = self.challenge.starter_source
        self.terminal.language = self.challenge.language
        self.lint_diagnostics = []
        self.compile_diagnostics = []
        self.hint_visible = False
        self.last_verification = None
        self.last_delta = None
        logger.debug("selected challenge %s", self.challenge.id)
        return self.challenge

    def previous(self) -> bool:
        """Step back one challenge; False at the start of the list."""
        if self.index == 0:
            return False
        self.select_challenge(self.index - 1)
        return True

    def next(self) -> bool:
        """Step forward, allowed only once the current challenge is completed."""
        if self.index >= len(self.challenges) - 1:
            return False
        if not self.coordinator.is_completed(self.challenge.id):
            return False
        self.select_challenge(self.index + 1)
        return True

    # Editing
    def edit(self, source: str) -> None:
        """Replace the source buffer and schedule a debounced lint pass.

        Must be called from a running event loop. Each call restarts the
        debounce window so only the last edit is linted.
        """
        if self.closed:
            return
        self.source = source
        self._cancel_lint()
        self._lint_task = asyncio.create_task(self._debounced_lint())

    def lint_now(self) -> list[Diagnostic]:
        """Lint the current buffer immediately."""
        self._cancel_lint()
        self.lint_diagnostics = lint_source(self.source)
        return self.diagnostics

    async def _debounced_lint(self) -> None:
        await asyncio.sleep(self.settings.lint_debounce)
        if not self.closed:
            self.lint_diagnostics = lint_source(self.source)
        self._lint_task = None

    def _cancel_lint(self) -> None:
        if self._lint_task is not None and not self._lint_task.done():
            self._lint_task.cancel()
        self._lint_task = None

    # Running
    async def run(self) -> Optional[ExecutionResult]:
        """Run the buffer in the terminal.

        Syntax errors found by the linter block the run. Compiler errors
        from the sandbox become diagnostics.

        Returns:
            The sandbox result if the program ran to completion now, None
            when it is waiting for input or the run was refused
        """
        if self.closed or self.busy:
            return None

        self.lint_now()
        if has_blocking_errors(self.lint_diagnostics):
            self.terminal.write(SYNTAX_BLOCKED)
            return None

        self.compile_diagnostics = []
        generation = self._generation
        result = await self.terminal.start(self.source)
        return self._absorb(result, generation)

    def edit_transcript(self, candidate: str) -> bool:
        """Apply a learner edit to the terminal; edits to history are refused."""
        if self.closed:
            return False
        return self.terminal.edit(candidate)

    async def submit_input(self, candidate: Optional[str] = None) -> Optional[ExecutionResult]:
        """Submit the line typed after the prompt."""
        if self.closed:
            return None
        generation = self._generation
        result = await self.terminal.submit_input(candidate)
        return self._absorb(result, generation)

    async def finish_input(self) -> Optional[ExecutionResult]:
        """Run with the input lines typed so far."""
        if self.closed:
            return None
        generation = self._generation
        result = await self.terminal.finish_input()
        return self._absorb(result, generation)

    def _absorb(self, result: Optional[ExecutionResult], generation: int) -> Optional[ExecutionResult]:
        if result is None or self.closed:
            return None
        if generation != self._generation:
            logger.debug("discarding run result for a challenge no longer selected")
            return None
        self.compile_diagnostics = parse_compiler_output(result.stderr)
        return result

    # Verification
    async def submit_solution(self) -> Optional[VerificationResult]:
        """Verify the buffer and reward a first-time pass.

        A repeat pass of a completed challenge is reported with
        ``already_completed`` set and the stars it first earned; the economy is
        left alone.

        Returns:
            The verification result, or None if refused or the session
            closed while verifying
        """
        if self.closed or self.busy:
            return None

        challenge = self.challenge
        source = self.source
        generation = self._generation
        self._verifying = True
        try:
            result = await self.engine.verify(challenge, source)
        finally:
            self._verifying = False

        if self.closed:
            logger.debug("discarding verification of %s for a closed session", challenge.id)
            return None

        delta: Optional[ProgressionDelta] = None
        if result.success and self.coordinator.is_completed(challenge.id):
            result = result.model_copy(update={
                "already_completed": True,
                "stars": self.coordinator.stars_for(challenge.id),
            })
        elif result.success:
            delta, tickets = await self.coordinator.apply_pass(challenge, result, source)
            self.tickets.extend(tickets)

        # A reward stays with the verified challenge after a switch; the
        # result panel does not.
        if generation == self._generation:
            self.last_verification = result
            self.last_delta = delta
        return result

    # Hints
    async def use_hint(self) -> bool:
        """Reveal the hint, charging coins the first time it is shown.

        Returns:
            True if the hint is visible afterwards
        """
        if self.closed:
            return False
        if self.hint_visible:
            return True
        ticket = await self.coordinator.spend_coins(HINT_COST)
        if ticket is None:
            return False
        self.tickets.append(ticket)
        self.hint_visible = True
        return True

    def hide_hint(self) -> None:
        self.hint_visible = False

    async def close(self) -> None:
        """Tear the session down; outstanding calls are ignored when they finish."""
        if self.closed:
            return
        self.token.cancel()
        self._cancel_lint()
        await self.coordinator.sync.stop()
        logger.debug("session closed")
