"""Errors raised while resolving \\i include directives.

Every error carries a breadcrumb: the chain of include directives, from the
root file down to the file where resolution failed. The breadcrumb is filled
in as the error propagates back up through the resolver, one frame per level.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lsprotocol import types


@dataclass(frozen=True)
class IncludeFrame:
    """One step of an include chain.

    Attributes:
        path: Canonical path of the file containing the directive
        line: Line number of the directive (1-indexed)
        directive_text: The directive line as written, whitespace-trimmed
    """

    path: Path
    line: int
    directive_text: str

    def to_location(self) -> types.Location:
        """Convert this frame to an LSP Location covering the directive line."""
        from lsprotocol import types

        return types.Location(
            uri=self.path.as_uri(),
            range=types.Range(
                start=types.Position(line=self.line - 1, character=0),
                end=types.Position(line=self.line - 1, character=len(self.directive_text)),
            ),
        )


class IncludeError(Exception):
    """Base class for all include resolution failures."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.breadcrumb: list[IncludeFrame] = []
        self.sandbox_root: Path | None = None

    def push_frame(self, frame: IncludeFrame) -> None:
        """Record an including directive. Outer frames are pushed last."""
        self.breadcrumb.insert(0, frame)

    @property
    def chain(self) -> list[Path]:
        """Paths from the root file down to the failing file."""
        paths = [frame.path for frame in self.breadcrumb]
        if self.path is not None:
            paths.append(self.path)
        return paths

    def display_path(self, path: Path) -> str:
        """Render a path relative to the sandbox root when it lies inside it."""
        if self.sandbox_root is not None:
            try:
                return path.relative_to(self.sandbox_root).as_posix()
            except ValueError:
                pass
        return str(path)

    def headline(self) -> str:
        """The one-line description of the failure, without the include chain."""
        return self.message

    def render(self) -> str:
        """Render the headline followed by the include chain, innermost first."""
        lines = [self.headline()]
        for frame in reversed(self.breadcrumb):
            lines.append(f"  included from {self.display_path(frame.path)}:{frame.line}: {frame.directive_text}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()

    def to_diagnostic(self) -> types.Diagnostic:
        """Convert to an LSP Diagnostic anchored at the failing directive.

        The remaining frames of the include chain become related information,
        so an editor can walk the chain back to the root file.

        Returns:
            An LSP Diagnostic with error severity.
        """
        from lsprotocol import types

        if self.breadcrumb:
            anchor = self.breadcrumb[-1].to_location().range
        else:
            anchor = types.Range(start=types.Position(line=0, character=0), end=types.Position(line=0, character=0))

        related = [
            types.DiagnosticRelatedInformation(location=frame.to_location(), message=f"included from {frame.directive_text}")
            for frame in reversed(self.breadcrumb[:-1])
        ]

        return types.Diagnostic(
            range=anchor,
            message=self.headline(),
            severity=types.DiagnosticSeverity.Error,
            source="pgschema-include",
            code=type(self).__name__,
            related_information=related or None,
        )


class IncludeFileNotFoundError(IncludeError, FileNotFoundError):
    """The root file or an include target does not exist or has the wrong kind."""


class IncludeReadError(IncludeError, OSError):
    """A file exists but could not be read or decoded."""


class PathTraversalViolation(IncludeError):
    """An include target escapes the sandbox root."""


class CircularDependencyError(IncludeError):
    """An include target is already being expanded further up the chain."""

    def __init__(self, cycle: list[Path]) -> None:
        super().__init__("circular include detected", path=cycle[-1])
        self.cycle = cycle

    def headline(self) -> str:
        cycle = " -> ".join(self.display_path(path) for path in self.cycle)
        return f"{self.message}: {cycle}"


class MaxDepthExceededError(IncludeError):
    """The include chain is deeper than the configured ceiling."""

    def __init__(self, path: Path, max_depth: int) -> None:
        super().__init__(f"include depth exceeds maximum of {max_depth}", path=path)
        self.max_depth = max_depth


class ResolutionCancelledError(IncludeError):
    """The caller cancelled the run before it finished."""
