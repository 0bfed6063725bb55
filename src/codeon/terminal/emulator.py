"""Terminal emulation over a request/response sandbox."""

import logging
from enum import Enum
from typing import Optional

from ..analysis.prompt import FALLBACK_PROMPT, PromptInfo, scan_prompt
from ..analysis.tokens import count_input_calls
from ..cancellation import CancellationToken
from ..sandbox.client import ExecutionResult, Sandbox

logger = logging.getLogger(__name__)

STDERR_HEADER = "[stderr]\n"


class TerminalState(str, Enum):
    """Run loop states."""

    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    EXECUTING = "executing"


def prompt_variants(prompt: str) -> list[str]:
    """Forms in which the sandbox may echo a prompt, most specific first."""
    lf = prompt.replace("\r\n", "\n")
    candidates = [prompt, lf.replace("\n", "\r\n"), lf, prompt.strip()]
    variants: list[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def strip_prompt_echo(stdout: str, prompt: str) -> str:
    """Remove a re-echoed prompt from the start of ``stdout``.

    The first variant that prefixes the output wins; no match leaves the
    output untouched.
    """
    for variant in prompt_variants(prompt):
        if stdout.startswith(variant):
            return stdout[len(variant):]
    return stdout


class TerminalEmulator:
    """Owns the transcript and drives sandbox calls for one session."""

    def __init__(
        self,
        sandbox: Sandbox,
        language: str = "csharp",
        token: Optional[CancellationToken] = None,
    ):
        """Initialize the emulator.

        Args:
            sandbox: Execution backend
            language: Language name sent with every run
            token: Session cancellation token guarding late writes
        """
        self.sandbox = sandbox
        self.language = language
        self.token = token or CancellationToken()
        self.transcript = ""
        self.snapshot = ""
        self.state = TerminalState.IDLE
        self.prompt = PromptInfo(text=FALLBACK_PROMPT)
        self.last_result: Optional[ExecutionResult] = None
        self._source = ""
        self._inputs: list[str] = []
        self._rounds_left = 0
        self._run_id = 0

    @property
    def waiting_for_input(self) -> bool:
        return self.state == TerminalState.AWAITING_INPUT

    @property
    def busy(self) -> bool:
        return self.state != TerminalState.IDLE

    def write(self, text: str) -> None:
        """Append engine text to the transcript."""
        self.transcript += text

    def clear(self) -> None:
        """Empty the transcript; only allowed while idle."""
        if not self.busy:
            self.transcript = ""
            self.snapshot = ""

    def abort(self) -> None:
        """Drop a pending input request or in-flight run and return to idle.

        The result of an aborted sandbox call is discarded when it arrives.
        """
        self._run_id += 1
        if self.busy:
            self._finish_line()
            self.state = TerminalState.IDLE
            self.snapshot = ""
            self._inputs = []
            self._rounds_left = 0

    def accepts(self, candidate: str) -> bool:
        """Whether ``candidate`` keeps the frozen history as its prefix."""
        return self.waiting_for_input and candidate.startswith(self.snapshot)

    def edit(self, candidate: str) -> bool:
        """Apply a learner edit to the input region.

        Returns:
            True if the edit was applied, False if it was rejected
        """
        if not self.accepts(candidate):
            return False
        self.transcript = candidate
        return True

    async def start(self, source: str) -> Optional[ExecutionResult]:
        """Begin a run of ``source``.

        Interactive programs only print their prompt here and wait for
        :meth:`submit_input`; everything else executes straight away.

        Returns:
            The sandbox result when the program ran, otherwise None
        """
        if self.busy:
            logger.debug("run ignored while terminal is %s", self.state.value)
            return None

        self._source = source
        self._inputs = []
        self.last_result = None
        self.prompt = scan_prompt(source)
        self._rounds_left = count_input_calls(source)

        if self._rounds_left == 0:
            return await self._execute("")

        self._await_input(self.prompt.text)
        return None

    async def submit_input(self, candidate: Optional[str] = None) -> Optional[ExecutionResult]:
        """Take the text typed after the snapshot as the next input line.

        Args:
            candidate: Full transcript as edited by the learner; defaults to
                the current transcript

        Returns:
            The sandbox result once the last input was collected, else None
        """
        if not self.waiting_for_input:
            return None

        text = self.transcript if candidate is None else candidate
        if not text.startswith(self.snapshot):
            logger.debug("input rejected: history snapshot was modified")
            return None

        value = text[len(self.snapshot):]
        if value.endswith("\n"):
            value = value[:-1]
        value = value.rstrip("\r")

        self._inputs.append(value)
        self.transcript = self.snapshot + value + "\n"
        self._rounds_left -= 1

        if self._rounds_left > 0:
            # Only the first read gets its literal prompt.
            self._await_input(FALLBACK_PROMPT)
            return None

        self.snapshot = ""
        stdin = "\n".join(self._inputs) + "\n"
        return await self._execute(stdin)

    async def finish_input(self) -> Optional[ExecutionResult]:
        """Run now with the input lines collected so far.

        Reads inside branches are counted even when the taken path never
        reaches them, so the learner may end input early.

        Returns:
            The sandbox result, or None when no input was pending
        """
        if not self.waiting_for_input:
            return None

        self.transcript = self.snapshot
        self._finish_line()
        self.snapshot = ""
        self._rounds_left = 0
        stdin = "".join(value + "\n" for value in self._inputs)
        logger.debug("input ended early after %d lines", len(self._inputs))
        return await self._execute(stdin)

    def _await_input(self, prompt: str) -> None:
        self.write(prompt)
        self.snapshot = self.transcript
        self.state = TerminalState.AWAITING_INPUT

    async def _execute(self, stdin: str) -> Optional[ExecutionResult]:
        run_id = self._run_id
        self.state = TerminalState.EXECUTING
        try:
            result = await self.sandbox.execute(self.language, self._source, stdin)
        except Exception as e:
            logger.warning("sandbox call failed: %s", e)
            if not self._stale(run_id):
                self._finish_line()
                self.write(f"System Error: {e}\n")
            return None
        finally:
            # Cancelled calls land here too; an aborted run may already
            # have been replaced by a newer one.
            if run_id == self._run_id:
                self.state = TerminalState.IDLE

        if self._stale(run_id):
            logger.debug("discarding sandbox result for an aborted run or closed session")
            return None

        self.write(self._render(result))
        self.last_result = result
        return result

    def _stale(self, run_id: int) -> bool:
        return self.token.cancelled or run_id != self._run_id

    def _render(self, result: ExecutionResult) -> str:
        stdout = result.stdout
        if self._inputs and self.prompt.explicit:
            stdout = strip_prompt_echo(stdout, self.prompt.text)

        text = stdout
        if result.stderr.strip():
            if text and not text.endswith("\n"):
                text += "\n"
            text += STDERR_HEADER + result.stderr
            if not text.endswith("\n"):
                text += "\n"
        return text

    def _finish_line(self) -> None:
        if self.transcript and not self.transcript.endswith("\n"):
            self.write("\n")
