"""Column-preserving masking of comments and literals in C# source."""

import re

READ_CALL = re.compile(r"\bConsole\s*\.\s*Read(?:Line|Key)?\s*\(")
WRITE_CALL = re.compile(r"\bConsole\s*\.\s*Write(?:Line)?\s*\(")


def _literal_end(line: str, start: int, verbatim: bool) -> int:
    """Return the index just past the literal opened at ``start``."""
    quote = line[start]
    i = start + 1
    while i < len(line):
        char = line[i]
        if verbatim and line.startswith(quote * 2, i):
            i += 2
            continue
        if not verbatim and char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return len(line)


def mask_line(line: str, in_comment: bool = False) -> tuple[str, bool]:
    """Blank out comments and literal contents, keeping every column in place.

    Quotes stay so a masked literal is still visible as ``"   "``.

    Args:
        line: One source line without its newline
        in_comment: Whether a ``/* */`` comment is open at the start of the line

    Returns:
        Tuple of (masked line, whether a block comment is still open)
    """
    out: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        if in_comment:
            if line.startswith("*/", i):
                out.append("  ")
                i += 2
                in_comment = False
            else:
                out.append(" ")
                i += 1
            continue

        if line.startswith("//", i):
            out.append(" " * (n - i))
            break
        if line.startswith("/*", i):
            out.append("  ")
            i += 2
            in_comment = True
            continue

        char = line[i]
        if char in "\"'":
            verbatim = char == '"' and "@" in line[max(0, i - 2):i]
            end = _literal_end(line, i, verbatim)
            closed = end - i >= 2 and line[end - 1] == char
            if closed:
                out.append(char + " " * (end - i - 2) + char)
            else:
                out.append(char + " " * (end - i - 1))
            i = end
            continue

        out.append(char)
        i += 1

    return "".join(out), in_comment


def mask_source(source: str) -> str:
    """Mask a whole program; line structure is preserved."""
    masked = []
    in_comment = False
    for line in source.split("\n"):
        text, in_comment = mask_line(line, in_comment)
        masked.append(text)
    return "\n".join(masked)


def needs_input(source: str) -> bool:
    """Cheap check for a console read call outside comments and strings."""
    return READ_CALL.search(mask_source(source)) is not None


def count_input_calls(source: str) -> int:
    """Number of console read calls written in the program."""
    return len(READ_CALL.findall(mask_source(source)))
