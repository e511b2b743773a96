"""
Score extraction from harness output.

Harnesses print their score as the last line of output. A labelled line
such as ``Score: 7`` is also accepted.
"""

import re

from .config import NUMBER_PATTERN, SCORE_LABEL_PATTERN

_LABEL_RE = re.compile(SCORE_LABEL_PATTERN)
_NUMBER_RE = re.compile(NUMBER_PATTERN)


class ScoreParseError(ValueError):
    """Raised when harness output carries no score."""


def _lines_from_end(output: str) -> list[str]:
    normalised = output.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.strip() for line in normalised.split("\n")]
    return [line for line in reversed(lines) if line]


def parse_score(output: str) -> float:
    """
    Extract the score from a harness's captured output.

    A labelled score line found anywhere (searching upward from the end)
    wins; otherwise the last number on the last non-empty line is used.
    Negative scores clamp to 0.

    Args:
        output: Complete standard output of the harness.

    Returns:
        The parsed score.

    Raises:
        ScoreParseError: If the output is empty or has no trailing
            numeric token.
    """
    if not output or not output.strip():
        raise ScoreParseError("Harness produced no output")

    lines = _lines_from_end(output)

    for line in lines:
        match = _LABEL_RE.search(line)
        if match:
            return max(float(match.group(1)), 0.0)

    numbers = _NUMBER_RE.findall(lines[0])
    if not numbers:
        raise ScoreParseError(f"No numeric score on last line: {lines[0]!r}")
    return max(float(numbers[-1]), 0.0)


def has_valid_score(output: str) -> bool:
    try:
        parse_score(output)
    except ScoreParseError:
        return False
    return True
