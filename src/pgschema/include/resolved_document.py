"""Resolved document model and the content assembler.

A ResolvedDocument is the flat, ordered list of literal lines left after every
include directive has been replaced by the content it names. Each line keeps
its provenance (source file and line number) so downstream consumers can map
positions in the assembled text back to the file the user wrote.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pgschema.include.include_directive import IncludeDirective

if TYPE_CHECKING:
    from lsprotocol import types


@dataclass(frozen=True)
class Fragment:
    """A single literal line of the assembled document.

    Attributes:
        text: The line content, without a line terminator
        source_path: Canonical path of the file the line came from
        line: Line number within that file (1-indexed)
    """

    text: str
    source_path: Path
    line: int

    def to_location(self) -> types.Location:
        """Convert this fragment's origin to an LSP Location object."""
        from lsprotocol import types

        return types.Location(
            uri=self.source_path.as_uri(),
            range=types.Range(
                start=types.Position(line=self.line - 1, character=0),
                end=types.Position(line=self.line - 1, character=len(self.text)),
            ),
        )


def assemble(fragments: Iterable[Fragment]) -> str:
    """Concatenate fragments into a single text, in the order given.

    Fragments are lines, so the only separator is the line break that ended
    each of them in its source file.
    """
    return "\n".join(fragment.text for fragment in fragments)


@dataclass
class ResolvedDocument:
    """The result of resolving a root SQL file.

    Attributes:
        root_path: Canonical path of the root file
        sandbox_root: Canonical sandbox root the run was confined to
        fragments: Literal lines in document order
        directives: Every directive expanded during the run, in expansion order
        sources: Every file read during the run, in first-read order
    """

    root_path: Path
    sandbox_root: Path
    fragments: list[Fragment] = field(default_factory=list)
    directives: list[IncludeDirective] = field(default_factory=list)
    sources: list[Path] = field(default_factory=list)

    @property
    def text(self) -> str:
        """The assembled document."""
        return assemble(self.fragments)

    def origin(self, output_line: int) -> Fragment:
        """Map a line of the assembled text back to where it was written.

        Args:
            output_line: Line number in the assembled text (1-indexed).

        Returns:
            The fragment that produced that line.

        Raises:
            IndexError: If the line is outside the document.
        """
        if output_line < 1 or output_line > len(self.fragments):
            raise IndexError(f"line {output_line} is outside the document (1-{len(self.fragments)})")
        return self.fragments[output_line - 1]

    def relative_sources(self) -> list[str]:
        """Files read during the run, relative to the sandbox root."""
        return [path.relative_to(self.sandbox_root).as_posix() for path in self.sources]
