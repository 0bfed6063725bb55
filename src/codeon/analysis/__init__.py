"""Static analysis of learner source: lint, prompt detection, diagnostics."""

from .diagnostics import (
    Diagnostic,
    DiagnosticSource,
    EditorMarker,
    Severity,
    has_blocking_errors,
    merge_diagnostics,
    parse_compiler_output,
    to_markers,
)
from .linter import lint_source
from .prompt import FALLBACK_PROMPT, PromptInfo, scan_prompt
from .tokens import count_input_calls, mask_source, needs_input

__all__ = [
    "Diagnostic",
    "DiagnosticSource",
    "EditorMarker",
    "FALLBACK_PROMPT",
    "PromptInfo",
    "Severity",
    "count_input_calls",
    "has_blocking_errors",
    "lint_source",
    "mask_source",
    "merge_diagnostics",
    "needs_input",
    "parse_compiler_output",
    "scan_prompt",
    "to_markers",
]
