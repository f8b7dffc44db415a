"""Include Directive data model for psql \\i directives.

This module provides the IncludeDirective dataclass that represents a
`\\i <path>` line in a SQL file, together with the file it was resolved to.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lsprotocol import types


@dataclass(frozen=True)
class IncludeDirective:
    """Represents an expanded \\i include directive.

    Attributes:
        raw_path: The path as written after \\i, relative to the sandbox root
        line: Line number of the directive in its source file (1-indexed)
        character: Column where the directive starts (0-indexed)
        source_path: Canonical path of the file containing the directive
        resolved_path: Canonical path of the included file or folder
    """

    raw_path: str
    line: int
    character: int
    source_path: Path
    resolved_path: Path

    @property
    def is_folder(self) -> bool:
        """Whether the directive includes a whole folder."""
        return self.raw_path.endswith("/")

    @property
    def text(self) -> str:
        """The directive as it would be written, without surrounding whitespace."""
        return f"\\i {self.raw_path}"

    def to_location(self) -> types.Location:
        """Convert this directive to an LSP Location object.

        Returns:
            An LSP Location covering the directive in its source file.
        """
        from lsprotocol import types

        return types.Location(
            uri=self.source_path.as_uri(),
            range=types.Range(
                start=types.Position(line=self.line - 1, character=self.character),
                end=types.Position(line=self.line - 1, character=self.character + len(self.text)),
            ),
        )
