"""Challenge verification engine."""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..analysis.tokens import READ_CALL, WRITE_CALL, mask_source
from ..sandbox.client import Sandbox
from .types import Challenge

logger = logging.getLogger(__name__)

PROCESS_PATTERNS = (
    re.compile(r"[+\-*/%]"),
    re.compile(r"\bMath\s*\.\s*\w+"),
    re.compile(r"\b(if|switch)\b|\?(?![?.])[^?;]*:"),
    re.compile(r"\b(for|foreach|while|do)\b"),
)


class Verdict(str, Enum):
    """Outcome of a verification pass."""

    PASSED = "passed"
    MISSING_INPUT = "missing_input"
    MISSING_OUTPUT = "missing_output"
    MISSING_PROCESS = "missing_process"
    RUNTIME_ERROR = "runtime_error"
    WRONG_OUTPUT = "wrong_output"
    SYSTEM_ERROR = "system_error"


class VerificationResult(BaseModel):
    """Result of a challenge submission."""

    challenge_id: str
    verdict: Verdict
    message: str
    stars: int = Field(default=0, ge=0, le=3)
    test_input: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    duration_ms: int = 0
    already_completed: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.verdict == Verdict.PASSED


def normalize_output(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return " ".join(text.split())


def grade_stars(source: str, solution: str) -> int:
    """Grade conciseness relative to the reference solution.

    Up to 1.2x the reference length earns 3 stars, up to 1.5x earns 2,
    anything longer earns 1. Integer arithmetic keeps the bounds exact.
    """
    length = len(source)
    reference = max(len(solution), 1)
    if length * 5 <= reference * 6:
        return 3
    if length * 2 <= reference * 3:
        return 2
    return 1


def check_structure(challenge_id: str, source: str) -> Optional[VerificationResult]:
    """Input, process and output rubric check; None means the gate passed."""
    code = mask_source(source)

    if not READ_CALL.search(code):
        return VerificationResult(
            challenge_id=challenge_id,
            verdict=Verdict.MISSING_INPUT,
            message="Missing Input: your program never reads from the console (Console.ReadLine).",
        )
    if not WRITE_CALL.search(code):
        return VerificationResult(
            challenge_id=challenge_id,
            verdict=Verdict.MISSING_OUTPUT,
            message="Missing Output: your program never writes to the console (Console.WriteLine).",
        )
    if not any(pattern.search(code) for pattern in PROCESS_PATTERNS):
        return VerificationResult(
            challenge_id=challenge_id,
            verdict=Verdict.MISSING_PROCESS,
            message="Missing Process: compute something with an operator, Math call, condition or loop.",
        )
    return None


class VerificationEngine:
    """Structural gate, differential testing against the oracle, and grading."""

    def __init__(self, sandbox: Sandbox):
        """Initialize the engine.

        Args:
            sandbox: Execution backend used for every test input
        """
        self.sandbox = sandbox

    async def verify(self, challenge: Challenge, source: str) -> VerificationResult:
        """Verify a submission.

        Args:
            challenge: The challenge being solved
            source: The learner's program

        Returns:
            VerificationResult; failures never raise
        """
        gate = check_structure(challenge.id, source)
        if gate is not None:
            logger.info("challenge %s failed structural gate: %s", challenge.id, gate.verdict.value)
            return gate

        duration_ms = 0
        test_input = None
        try:
            for test_input in challenge.test_inputs:
                expected = await challenge.expected_output(test_input)
                result = await self.sandbox.execute(challenge.language, source, test_input)
                duration_ms += result.duration_ms

                if result.failed:
                    return VerificationResult(
                        challenge_id=challenge.id,
                        verdict=Verdict.RUNTIME_ERROR,
                        message=f"Error:\n{result.stderr}",
                        test_input=test_input,
                        actual=result.stderr,
                        duration_ms=duration_ms,
                    )

                wanted = normalize_output(expected)
                if wanted not in normalize_output(result.stdout):
                    return VerificationResult(
                        challenge_id=challenge.id,
                        verdict=Verdict.WRONG_OUTPUT,
                        message=(
                            f"Wrong output for input:\n{test_input}\n\n"
                            f"Expected to find:\n{expected.strip()}\n\n"
                            f"Actual output:\n{result.stdout}"
                        ),
                        test_input=test_input,
                        expected=expected,
                        actual=result.stdout,
                        duration_ms=duration_ms,
                    )
        except Exception as e:
            logger.exception("verification of %s crashed", challenge.id)
            return VerificationResult(
                challenge_id=challenge.id,
                verdict=Verdict.SYSTEM_ERROR,
                message=f"System error during verification: {e}",
                test_input=test_input,
                duration_ms=duration_ms,
            )

        stars = grade_stars(source, challenge.solution)
        logger.info("challenge %s passed with %d stars", challenge.id, stars)
        return VerificationResult(
            challenge_id=challenge.id,
            verdict=Verdict.PASSED,
            message=f"All {len(challenge.test_inputs)} tests passed!",
            stars=stars,
            duration_ms=duration_ms,
        )
