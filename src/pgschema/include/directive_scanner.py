"""Directive Scanner for SQL files.

This module splits SQL text into lines and classifies each one as either a
`\\i <path>` include directive or literal content. Detection is purely
line-prefix based: quoting, comments and dollar-quoted bodies are not
interpreted, so a `\\i` line inside a `$$ ... $$` function body is still
treated as a directive.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

# Matches: \i path/to/file.sql (leading and trailing whitespace allowed)
# The path runs to end of line; \ir, \include and friends are literal content.
DIRECTIVE_PATTERN = re.compile(r"^(\s*)\\i\s+(\S(?:.*\S)?)\s*$")


@dataclass(frozen=True)
class ScannedLine:
    """One line of a scanned SQL file.

    Attributes:
        kind: "directive" for an include line, "literal" for anything else
        text: The line without its line terminator
        line: Line number (1-indexed)
        raw_path: The include path for directives, None for literal lines
        character: Column where the directive starts (0 for literal lines)
    """

    kind: Literal["literal", "directive"]
    text: str
    line: int
    raw_path: str | None = None
    character: int = 0

    @property
    def is_directive(self) -> bool:
        return self.kind == "directive"


def classify(text: str, line: int) -> ScannedLine:
    """Classify a single line of SQL text.

    Args:
        text: The line content, without a trailing newline.
        line: The 1-indexed line number.

    Returns:
        A ScannedLine describing the line.
    """
    match = DIRECTIVE_PATTERN.match(text)
    if match is None:
        return ScannedLine(kind="literal", text=text, line=line)
    return ScannedLine(
        kind="directive",
        text=text,
        line=line,
        raw_path=match.group(2),
        character=len(match.group(1)),
    )


def scan(content: str) -> Iterator[ScannedLine]:
    """Lazily scan SQL content line by line.

    Lines are split on "\\n" only, so content ending in a newline yields a
    final empty literal line. Calling scan again on the same content restarts
    from the first line.

    Args:
        content: The full text of a SQL file.

    Yields:
        One ScannedLine per line, in file order.
    """
    start = 0
    line = 1
    while True:
        end = content.find("\n", start)
        if end == -1:
            yield classify(content[start:], line)
            return
        yield classify(content[start:end], line)
        start = end + 1
        line += 1
