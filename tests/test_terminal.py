from __future__ import annotations

import asyncio
import unittest
from typing import Optional

from codeon.analysis import FALLBACK_PROMPT
from codeon.cancellation import CancellationToken
from codeon.challenges import get_challenge_by_id
from codeon.errors import SandboxError
from codeon.sandbox import ExecutionResult
from codeon.terminal import TerminalEmulator, TerminalState, prompt_variants, strip_prompt_echo


RADIUS_PROGRAM = """Console.Write("Enter radius: ");
double r = Convert.ToDouble(Console.ReadLine());
Console.WriteLine($"Volume: {(4.0/3.0) * Math.PI * r * r * r:F2}");"""

TWO_READS = """Console.Write("First: ");
int a = int.Parse(Console.ReadLine());
int b = int.Parse(Console.ReadLine());
Console.WriteLine(a + b);"""


class FakeSandbox:
    """Records calls and replays canned results."""

    def __init__(self, stdout: str = "", stderr: str = "", error: Optional[Exception] = None):
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls: list[tuple[str, str, str]] = []
        self.on_execute = None

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        self.calls.append((language, source, stdin))
        if self.on_execute is not None:
            self.on_execute()
        if self.error is not None:
            raise self.error
        return ExecutionResult(stdout=self.stdout, stderr=self.stderr)

    async def close(self) -> None:
        pass


class BlockingSandbox:
    """Holds every call until released."""

    def __init__(self, stderr: str = ""):
        self.stderr = stderr
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: list[str] = []

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        self.calls.append(stdin)
        self.entered.set()
        await self.release.wait()
        return ExecutionResult(stdout="done\n", stderr=self.stderr)

    async def close(self) -> None:
        pass


class PromptEchoTest(unittest.TestCase):
    def test_strips_echoed_prompt(self) -> None:
        stdout = "Enter radius: 5\nVolume: 523.60\n"
        self.assertEqual(strip_prompt_echo(stdout, "Enter radius: "), "5\nVolume: 523.60\n")

    def test_trimmed_variant_matches(self) -> None:
        self.assertEqual(strip_prompt_echo("Enter radius:5", "Enter radius: "), "5")

    def test_crlf_variant(self) -> None:
        self.assertIn("Number:\r\n", prompt_variants("Number:\n"))
        self.assertEqual(strip_prompt_echo("Number:\r\n42\r\n", "Number:\n"), "42\r\n")

    def test_no_match_leaves_output(self) -> None:
        self.assertEqual(strip_prompt_echo("Volume: 1\n", "Enter radius: "), "Volume: 1\n")


class TerminalEmulatorTest(unittest.IsolatedAsyncioTestCase):
    async def test_program_without_input_runs_immediately(self) -> None:
        sandbox = FakeSandbox(stdout="Hello\n")
        terminal = TerminalEmulator(sandbox)

        result = await terminal.start('Console.WriteLine("Hello");')

        self.assertIsNotNone(result)
        self.assertEqual(sandbox.calls, [("csharp", 'Console.WriteLine("Hello");', "")])
        self.assertEqual(terminal.transcript, "Hello\n")
        self.assertEqual(terminal.state, TerminalState.IDLE)

    async def test_interactive_run_waits_then_executes(self) -> None:
        sandbox = FakeSandbox(stdout="Enter radius: Volume: 523.60\n")
        terminal = TerminalEmulator(sandbox)

        self.assertIsNone(await terminal.start(RADIUS_PROGRAM))
        self.assertEqual(sandbox.calls, [])
        self.assertTrue(terminal.waiting_for_input)
        self.assertEqual(terminal.transcript, "Enter radius: ")
        self.assertEqual(terminal.snapshot, "Enter radius: ")

        result = await terminal.submit_input("Enter radius: 5\n")

        self.assertIsNotNone(result)
        self.assertEqual(sandbox.calls[0][2], "5\n")
        self.assertEqual(terminal.transcript, "Enter radius: 5\nVolume: 523.60\n")
        self.assertFalse(terminal.waiting_for_input)
        self.assertEqual(terminal.state, TerminalState.IDLE)

    async def test_edits_to_history_are_rejected(self) -> None:
        terminal = TerminalEmulator(FakeSandbox())
        await terminal.start(RADIUS_PROGRAM)

        self.assertFalse(terminal.edit("Enter rad"))
        self.assertFalse(terminal.edit("Xnter radius: 5"))
        self.assertEqual(terminal.transcript, "Enter radius: ")
        self.assertTrue(terminal.edit("Enter radius: 5"))
        self.assertEqual(terminal.transcript, "Enter radius: 5")

    async def test_submit_rejects_modified_history(self) -> None:
        sandbox = FakeSandbox()
        terminal = TerminalEmulator(sandbox)
        await terminal.start(RADIUS_PROGRAM)

        self.assertIsNone(await terminal.submit_input("Enter: 5\n"))
        self.assertEqual(sandbox.calls, [])
        self.assertTrue(terminal.waiting_for_input)

    async def test_every_read_gets_a_round(self) -> None:
        sandbox = FakeSandbox(stdout="First: 5\n")
        terminal = TerminalEmulator(sandbox)
        await terminal.start(TWO_READS)

        await terminal.submit_input("First: 2\n")
        self.assertEqual(sandbox.calls, [])
        self.assertEqual(terminal.transcript, "First: 2\n" + FALLBACK_PROMPT)
        self.assertEqual(terminal.snapshot, terminal.transcript)

        terminal.edit(terminal.transcript + "3")
        await terminal.submit_input()
        self.assertEqual(sandbox.calls[0][2], "2\n3\n")
        self.assertEqual(terminal.transcript, "First: 2\n> 3\n5\n")

    async def test_stderr_is_a_separate_block(self) -> None:
        sandbox = FakeSandbox(stdout="partial", stderr="Unhandled Exception: boom")
        terminal = TerminalEmulator(sandbox)

        await terminal.start('Console.Write("partial");')

        self.assertEqual(terminal.transcript, "partial\n[stderr]\nUnhandled Exception: boom\n")

    async def test_sandbox_failure_becomes_one_line(self) -> None:
        sandbox = FakeSandbox(error=SandboxError("Sandbox unreachable"))
        terminal = TerminalEmulator(sandbox)

        result = await terminal.start('Console.WriteLine("x");')

        self.assertIsNone(result)
        self.assertEqual(terminal.transcript, "System Error: Sandbox unreachable\n")
        self.assertEqual(terminal.state, TerminalState.IDLE)

    async def test_start_is_ignored_while_waiting(self) -> None:
        sandbox = FakeSandbox()
        terminal = TerminalEmulator(sandbox)
        await terminal.start(RADIUS_PROGRAM)

        self.assertIsNone(await terminal.start('Console.WriteLine("x");'))
        self.assertEqual(sandbox.calls, [])
        self.assertEqual(terminal.transcript, "Enter radius: ")

    async def test_cancelled_token_discards_result(self) -> None:
        token = CancellationToken()
        sandbox = FakeSandbox(stdout="late\n")
        sandbox.on_execute = token.cancel
        terminal = TerminalEmulator(sandbox, token=token)

        await terminal.start('Console.WriteLine("late");')

        self.assertEqual(terminal.transcript, "")
        self.assertIsNone(terminal.last_result)

    async def test_abort_drops_pending_input(self) -> None:
        terminal = TerminalEmulator(FakeSandbox())
        await terminal.start(RADIUS_PROGRAM)

        terminal.abort()

        self.assertEqual(terminal.state, TerminalState.IDLE)
        self.assertEqual(terminal.transcript, "Enter radius: \n")
        self.assertIsNone(await terminal.submit_input("Enter radius: 5\n"))

    async def test_cancelled_call_returns_to_idle(self) -> None:
        sandbox = BlockingSandbox()
        terminal = TerminalEmulator(sandbox)

        task = asyncio.create_task(terminal.start('Console.WriteLine("x");'))
        await sandbox.entered.wait()
        self.assertEqual(terminal.state, TerminalState.EXECUTING)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual(terminal.state, TerminalState.IDLE)
        sandbox.release.set()
        result = await terminal.start('Console.WriteLine("x");')
        self.assertEqual(result.stdout, "done\n")
        self.assertEqual(len(sandbox.calls), 2)

    async def test_aborted_run_discards_late_result(self) -> None:
        sandbox = BlockingSandbox()
        terminal = TerminalEmulator(sandbox)

        task = asyncio.create_task(terminal.start('Console.WriteLine("x");'))
        await sandbox.entered.wait()
        terminal.abort()
        self.assertEqual(terminal.state, TerminalState.IDLE)
        sandbox.release.set()

        self.assertIsNone(await task)
        self.assertEqual(terminal.transcript, "")
        self.assertIsNone(terminal.last_result)

    async def test_input_can_end_before_every_read(self) -> None:
        challenge = get_challenge_by_id("1.2")
        sandbox = FakeSandbox(stdout="Enter your choice (1 or 2): Enter temperature in Celsius: 77.00°F\n")
        terminal = TerminalEmulator(sandbox)

        await terminal.start(challenge.solution)
        await terminal.submit_input(terminal.snapshot + "1\n")
        await terminal.submit_input(terminal.snapshot + "25\n")
        self.assertTrue(terminal.waiting_for_input)
        self.assertEqual(sandbox.calls, [])

        result = await terminal.finish_input()

        self.assertEqual(sandbox.calls[0][2], "1\n25\n")
        self.assertIn("77.00", result.stdout)
        self.assertEqual(terminal.state, TerminalState.IDLE)
        self.assertIsNone(await terminal.finish_input())


if __name__ == "__main__":
    unittest.main()
