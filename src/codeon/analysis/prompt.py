"""Static detection of the prompt a program prints before reading input."""

import re
from typing import Optional

from pydantic import BaseModel

from .tokens import READ_CALL, mask_line

FALLBACK_PROMPT = "> "

# Console.Write("Enter radius: ") / Console.WriteLine($@"...")
PROMPT_CALL = re.compile(
    r"\bConsole\s*\.\s*Write(?P<newline>Line)?\s*\(\s*"
    r"(?P<prefix>[$@]{0,2})\"(?P<text>(?:[^\"\\]|\\.|\"\")*)\"\s*\)"
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'", "0": "\0"}


class PromptInfo(BaseModel):
    """Prompt shown to the learner before console input is read."""

    text: str
    explicit: bool = False


def _unescape(text: str, verbatim: bool) -> str:
    if verbatim:
        return text.replace('""', '"')
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), text)


def _prompt_in(line: str) -> Optional[str]:
    """Return the last literal printed by a Write call on this line."""
    matches = list(PROMPT_CALL.finditer(line))
    if not matches:
        return None
    match = matches[-1]
    text = _unescape(match.group("text"), "@" in match.group("prefix"))
    if match.group("newline"):
        text += "\n"
    return text


def _is_skippable(trimmed: str) -> bool:
    return not trimmed or trimmed.startswith(("//", "/*", "*"))


def _ends_statement(trimmed: str) -> bool:
    return trimmed.endswith((";", "{", "}"))


def scan_prompt(source: str) -> PromptInfo:
    """Infer the prompt printed before the first console read.

    Args:
        source: Program text

    Returns:
        The literal prompt with ``explicit`` set, or the generic fallback
    """
    lines = source.split("\n")
    in_comment = False
    read_line = None
    read_column = 0
    for index, line in enumerate(lines):
        masked, in_comment = mask_line(line, in_comment)
        match = READ_CALL.search(masked)
        if match:
            read_line = index
            read_column = match.start()
            break

    if read_line is None:
        return PromptInfo(text=FALLBACK_PROMPT)

    # Same line first: Console.Write("x: "); var v = Console.ReadLine();
    before = lines[read_line][:read_column]
    prompt = _prompt_in(before)
    if prompt is not None:
        return PromptInfo(text=prompt, explicit=True)

    for index in range(read_line - 1, -1, -1):
        trimmed = lines[index].strip()
        if _is_skippable(trimmed):
            continue
        prompt = _prompt_in(lines[index])
        if prompt is not None:
            return PromptInfo(text=prompt, explicit=True)
        if _ends_statement(trimmed):
            break

    return PromptInfo(text=FALLBACK_PROMPT)
