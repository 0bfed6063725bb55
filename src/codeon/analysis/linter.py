"""Pre-flight syntax checks run before any sandbox call."""

import re

from .diagnostics import Diagnostic, DiagnosticSource, Severity
from .tokens import mask_line

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {close: open_ for open_, close in OPENERS.items()}

TERMINATORS = (";", "{", "}", ":", ",")
COMMENT_PREFIXES = ("//", "/*", "*")

CONTROL_FLOW = re.compile(
    r"^(if|else|for|foreach|while|do|switch|case|default|class|struct|interface|"
    r"enum|namespace|void|public|private|protected|internal|static|try|catch|"
    r"finally|return)\b"
)

MISSING_TERMINATOR = "Syntax Hint: Missing semicolon?"


def _needs_terminator(line: str, masked: str) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return False
    if trimmed.startswith(COMMENT_PREFIXES) or trimmed.startswith(("using", "#")):
        return False
    # Judge the ending on code only, so a trailing comment does not hide it.
    code = masked.rstrip()
    if not code or code.endswith(TERMINATORS):
        return False
    return CONTROL_FLOW.match(trimmed) is None


def lint_source(source: str) -> list[Diagnostic]:
    """Run bracket balance and statement termination checks.

    Args:
        source: Full program text

    Returns:
        Diagnostics in line order; an unclosed bracket comes last
    """
    diagnostics: list[Diagnostic] = []
    if not source:
        return diagnostics

    stack: list[tuple[str, int, int]] = []
    in_comment = False

    for index, line in enumerate(source.split("\n")):
        line_number = index + 1
        line = line.rstrip("\r")
        started_in_comment = in_comment
        masked, in_comment = mask_line(line, in_comment)

        if not started_in_comment and _needs_terminator(line, masked):
            diagnostics.append(
                Diagnostic(
                    line=line_number,
                    column=len(line) + 1,
                    message=MISSING_TERMINATOR,
                    source=DiagnosticSource.LINTER,
                    severity=Severity.WARNING,
                )
            )

        for col, char in enumerate(masked, start=1):
            if char in OPENERS:
                stack.append((char, line_number, col))
            elif char in CLOSERS:
                opened = stack.pop() if stack else None
                if opened is None or opened[0] != CLOSERS[char]:
                    diagnostics.append(
                        Diagnostic(
                            line=line_number,
                            column=col,
                            message=f"Unexpected closing bracket '{char}'",
                            source=DiagnosticSource.LINTER,
                            severity=Severity.ERROR,
                        )
                    )

    # Only the innermost open bracket is reported.
    if stack:
        char, line_number, col = stack[-1]
        diagnostics.append(
            Diagnostic(
                line=line_number,
                column=col,
                message=f"Unclosed bracket '{char}'",
                source=DiagnosticSource.LINTER,
                severity=Severity.ERROR,
            )
        )

    return diagnostics
