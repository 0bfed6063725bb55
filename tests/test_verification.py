from __future__ import annotations

import unittest

from codeon.challenges import (
    BUILTIN_CHALLENGES,
    Challenge,
    Verdict,
    VerificationEngine,
    get_challenge_by_id,
    get_challenges,
    grade_stars,
)
from codeon.challenges.engine import check_structure, normalize_output
from codeon.challenges.oracles import get_oracle, register_oracle, run_oracle
from codeon.errors import CatalogError, SandboxError
from codeon.sandbox import ExecutionResult


SPHERE = get_challenge_by_id("1.1")

NO_INPUT = """using System;
class Program
{
    static void Main()
    {
        Console.WriteLine("The volume is 523.60");
    }
}"""

NO_OUTPUT = """using System;
class Program
{
    static void Main()
    {
        double r = Convert.ToDouble(Console.ReadLine());
        double v = 4.0 / 3.0 * Math.PI * r * r * r;
    }
}"""

NO_PROCESS = """using System;
class Program
{
    static void Main()
    {
        // radius * radius
        var s = Console.ReadLine();
        Console.WriteLine(s);
    }
}"""


class OracleSandbox:
    """Behaves like a correct program: wraps the oracle's output in prose."""

    def __init__(self, challenge: Challenge):
        self.challenge = challenge
        self.calls: list[str] = []

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        self.calls.append(stdin)
        expected = await self.challenge.expected_output(stdin)
        return ExecutionResult(stdout=f"Prompt: The answer is {expected.strip()} units.\n", duration_ms=5)

    async def close(self) -> None:
        pass


class StaticSandbox:
    def __init__(self, stdout: str = "", stderr: str = "", error: Exception | None = None):
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls: list[str] = []

    async def execute(self, language: str, source: str, stdin: str = "") -> ExecutionResult:
        self.calls.append(stdin)
        if self.error is not None:
            raise self.error
        return ExecutionResult(stdout=self.stdout, stderr=self.stderr)

    async def close(self) -> None:
        pass


class StructuralGateTest(unittest.TestCase):
    def test_missing_input_wins_even_with_matching_output(self) -> None:
        result = check_structure("1.1", NO_INPUT)
        self.assertEqual(result.verdict, Verdict.MISSING_INPUT)
        self.assertTrue(result.message.startswith("Missing Input"))

    def test_missing_output(self) -> None:
        result = check_structure("1.1", NO_OUTPUT)
        self.assertEqual(result.verdict, Verdict.MISSING_OUTPUT)

    def test_missing_process_ignores_comments(self) -> None:
        result = check_structure("1.1", NO_PROCESS)
        self.assertEqual(result.verdict, Verdict.MISSING_PROCESS)

    def test_nullable_annotation_is_not_a_condition(self) -> None:
        source = 'string? s = Console.ReadLine();\nConsole.WriteLine(s);'
        result = check_structure("1.1", source)
        self.assertEqual(result.verdict, Verdict.MISSING_PROCESS)

    def test_conditional_expression_counts_as_process(self) -> None:
        source = 'string s = Console.ReadLine();\nConsole.WriteLine(s.Length > 3 ? "long" : "short");'
        self.assertIsNone(check_structure("1.1", source))

    def test_input_is_checked_before_output(self) -> None:
        result = check_structure("1.1", "int x = 1 + 2;")
        self.assertEqual(result.verdict, Verdict.MISSING_INPUT)

    def test_reference_solutions_pass_the_gate(self) -> None:
        for challenge in BUILTIN_CHALLENGES:
            with self.subTest(challenge=challenge.id):
                self.assertIsNone(check_structure(challenge.id, challenge.solution))


class GradingTest(unittest.TestCase):
    def test_star_boundaries(self) -> None:
        reference = "x" * 10
        self.assertEqual(grade_stars("x" * 8, reference), 3)
        self.assertEqual(grade_stars("x" * 12, reference), 3)
        self.assertEqual(grade_stars("x" * 13, reference), 2)
        self.assertEqual(grade_stars("x" * 15, reference), 2)
        self.assertEqual(grade_stars("x" * 16, reference), 1)

    def test_normalize_output(self) -> None:
        self.assertEqual(normalize_output("  a \n\n b\t c \r\n"), "a b c")


class VerificationEngineTest(unittest.IsolatedAsyncioTestCase):
    async def test_structural_failure_skips_sandbox(self) -> None:
        sandbox = StaticSandbox(stdout="523.60")
        result = await VerificationEngine(sandbox).verify(SPHERE, NO_INPUT)

        self.assertEqual(result.verdict, Verdict.MISSING_INPUT)
        self.assertFalse(result.success)
        self.assertEqual(sandbox.calls, [])

    async def test_correct_program_passes_every_input(self) -> None:
        sandbox = OracleSandbox(SPHERE)
        result = await VerificationEngine(sandbox).verify(SPHERE, SPHERE.solution)

        self.assertTrue(result.success)
        self.assertEqual(result.stars, 3)
        self.assertEqual(sandbox.calls, list(SPHERE.test_inputs))
        self.assertEqual(result.duration_ms, 15)

    async def test_surrounding_text_is_allowed(self) -> None:
        sandbox = StaticSandbox(stdout="The volume ... is 523.60 cubic units.")
        challenge = SPHERE.model_copy(update={"test_inputs": ("5",)})

        result = await VerificationEngine(sandbox).verify(challenge, SPHERE.solution)

        self.assertEqual(result.verdict, Verdict.PASSED)

    async def test_different_rounding_fails_with_the_triple(self) -> None:
        sandbox = StaticSandbox(stdout="The volume ... is 523.6 cubic units.")
        challenge = SPHERE.model_copy(update={"test_inputs": ("5",)})

        result = await VerificationEngine(sandbox).verify(challenge, SPHERE.solution)

        self.assertEqual(result.verdict, Verdict.WRONG_OUTPUT)
        self.assertEqual(result.test_input, "5")
        self.assertEqual(result.expected, "523.60\n")
        self.assertEqual(result.actual, "The volume ... is 523.6 cubic units.")
        self.assertIn("523.60", result.message)

    async def test_stops_at_first_failing_input(self) -> None:
        sandbox = StaticSandbox(stdout="523.60")
        result = await VerificationEngine(sandbox).verify(SPHERE, SPHERE.solution)

        self.assertEqual(result.verdict, Verdict.WRONG_OUTPUT)
        self.assertEqual(result.test_input, "2.5")
        self.assertEqual(sandbox.calls, ["5", "2.5"])

    async def test_stderr_fails_with_raw_text(self) -> None:
        sandbox = StaticSandbox(stderr="Unhandled Exception: System.FormatException")
        result = await VerificationEngine(sandbox).verify(SPHERE, SPHERE.solution)

        self.assertEqual(result.verdict, Verdict.RUNTIME_ERROR)
        self.assertIn("System.FormatException", result.message)

    async def test_sandbox_error_is_a_system_error(self) -> None:
        sandbox = StaticSandbox(error=SandboxError("Failed to connect"))
        result = await VerificationEngine(sandbox).verify(SPHERE, SPHERE.solution)

        self.assertEqual(result.verdict, Verdict.SYSTEM_ERROR)
        self.assertTrue(result.message.startswith("System error during verification"))

    async def test_longer_solution_earns_fewer_stars(self) -> None:
        padded = SPHERE.solution + "\n" + "// " + "x" * len(SPHERE.solution)
        result = await VerificationEngine(OracleSandbox(SPHERE)).verify(SPHERE, padded)

        self.assertTrue(result.success)
        self.assertEqual(result.stars, 1)


class CatalogTest(unittest.IsolatedAsyncioTestCase):
    async def test_every_test_input_has_an_expected_output(self) -> None:
        for challenge in BUILTIN_CHALLENGES:
            self.assertTrue(challenge.test_inputs, challenge.id)
            for stdin in challenge.test_inputs:
                with self.subTest(challenge=challenge.id, stdin=stdin):
                    self.assertTrue((await challenge.expected_output(stdin)).strip())

    async def test_oracle_values(self) -> None:
        self.assertEqual(await SPHERE.expected_output("5"), "523.60\n")
        two = get_challenge_by_id("1.5")
        self.assertEqual(await two.expected_output("10\n4"), "2.50\n")
        self.assertEqual(await two.expected_output("7\n0"), "Division by zero is not allowed.\n")
        radius = get_challenge_by_id("1.10")
        self.assertEqual(await radius.expected_output("50"), "3.9894\n")

    async def test_reads_past_the_end_are_empty(self) -> None:
        seen: list[str] = []

        async def echo(read_line, write) -> None:
            seen.append(read_line())
            seen.append(read_line())
            write("done")

        self.assertEqual(await run_oracle(echo, "only"), "done")
        self.assertEqual(seen, ["only", ""])

    def test_lookup(self) -> None:
        self.assertEqual(len(get_challenges()), 10)
        self.assertEqual([c.id for c in get_challenges(difficulty="Medium")], ["1.9", "1.10"])
        self.assertEqual(get_challenges(module="Module 2"), [])
        with self.assertRaises(CatalogError):
            get_challenge_by_id("9.9")
        with self.assertRaises(CatalogError):
            get_oracle("9.9")

    def test_duplicate_oracle_registration(self) -> None:
        with self.assertRaises(CatalogError):
            register_oracle("1.1")(get_oracle("1.1"))

    def test_from_dict_accepts_authored_json(self) -> None:
        challenge = Challenge.from_dict({
            "id": "1.1",
            "title": "Sphere",
            "description": "d",
            "starterCode": "using System;\\r\\nclass P {}\\n",
            "solution": "s",
            "testInputs": ["5"],
            "xpReward": 40,
        })
        self.assertEqual(challenge.starter_source, "using System;\nclass P {}\n")
        self.assertEqual(challenge.test_inputs, ("5",))
        self.assertEqual(challenge.xp_reward, 40)
        self.assertIsNone(challenge.coin_reward)


if __name__ == "__main__":
    unittest.main()
