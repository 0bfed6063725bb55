"""Diagnostic model and compiler output parsing."""

import re
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """How serious a diagnostic is."""

    WARNING = "warning"
    ERROR = "error"


class DiagnosticSource(str, Enum):
    """Which analysis produced a diagnostic."""

    LINTER = "linter"
    COMPILER = "compiler"


class Diagnostic(BaseModel):
    """A located message about the learner's source."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1)
    column: int = Field(ge=1)
    message: str
    source: DiagnosticSource
    severity: Severity
    length: int = Field(default=1, ge=1)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


class EditorMarker(BaseModel):
    """Inline marker shape accepted by the editor."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int
    message: str
    severity: Severity


# Program.cs(7,44): error CS1002: ; expected [/tmp/app.csproj]
COMPILER_ERROR = re.compile(
    r"\((?P<line>\d+),\s*(?P<column>\d+)\)\s*:\s*error\s+(?P<code>[A-Za-z]+\d+)\s*:\s*"
    r"(?P<message>.*?)(?:\s+\[[^\]]*\])?\s*$",
    re.MULTILINE,
)


def parse_compiler_output(stderr: str) -> list[Diagnostic]:
    """Extract compiler errors from sandbox stderr.

    Args:
        stderr: Raw stderr text from a sandbox run

    Returns:
        One error diagnostic per distinct location/message
    """
    diagnostics: list[Diagnostic] = []
    seen: set[tuple[int, int, str]] = set()
    if not stderr:
        return diagnostics

    for match in COMPILER_ERROR.finditer(stderr):
        line = max(int(match.group("line")), 1)
        column = max(int(match.group("column")), 1)
        message = f"{match.group('code')}: {match.group('message').strip()}"
        key = (line, column, message)
        if key in seen:
            continue
        seen.add(key)
        diagnostics.append(
            Diagnostic(
                line=line,
                column=column,
                message=message,
                source=DiagnosticSource.COMPILER,
                severity=Severity.ERROR,
            )
        )
    return diagnostics


def merge_diagnostics(
    lint: Iterable[Diagnostic],
    compiler: Iterable[Diagnostic],
) -> list[Diagnostic]:
    """Combine both sources ordered by position; each keeps its own severity."""
    merged = list(lint) + list(compiler)
    return sorted(merged, key=lambda d: (d.line, d.column))


def to_markers(diagnostics: Iterable[Diagnostic]) -> list[EditorMarker]:
    """Convert diagnostics into editor markers."""
    return [
        EditorMarker(
            start_line=d.line,
            start_column=d.column,
            end_line=d.line,
            end_column=d.column + d.length,
            message=d.message,
            severity=d.severity,
        )
        for d in diagnostics
    ]


def has_blocking_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    """Only error severity stops a sandbox run."""
    return any(d.is_error for d in diagnostics)
