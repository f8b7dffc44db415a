"""
Unit tests for include error reporting.

Tests breadcrumb rendering and conversion of errors into LSP diagnostics.
"""

from pathlib import Path

import pytest
from lsprotocol import types

from pgschema.include.errors import (
    CircularDependencyError,
    IncludeError,
    IncludeFileNotFoundError,
    IncludeFrame,
    IncludeReadError,
    MaxDepthExceededError,
)

ROOT = Path("/schema")


def failing_chain() -> IncludeFileNotFoundError:
    error = IncludeFileNotFoundError("included file does not exist: tables/missing.sql", path=ROOT / "tables/missing.sql")
    error.push_frame(IncludeFrame(ROOT / "tables/users.sql", 4, "\\i tables/missing.sql"))
    error.push_frame(IncludeFrame(ROOT / "main.sql", 12, "\\i tables/users.sql"))
    return error


@pytest.mark.include
class TestBreadcrumb:
    """Test breadcrumb bookkeeping and rendering."""

    def test_frames_are_outermost_first(self) -> None:
        """Test frames pushed on the way out end up root first."""
        error = failing_chain()

        assert [frame.path.name for frame in error.breadcrumb] == ["main.sql", "users.sql"]
        assert error.chain == [ROOT / "main.sql", ROOT / "tables/users.sql", ROOT / "tables/missing.sql"]

    def test_render_innermost_first(self) -> None:
        """Test the rendered message reads like a compiler include stack."""
        error = failing_chain()
        error.sandbox_root = ROOT

        assert str(error) == (
            "included file does not exist: tables/missing.sql\n"
            "  included from tables/users.sql:4: \\i tables/missing.sql\n"
            "  included from main.sql:12: \\i tables/users.sql"
        )

    def test_render_without_sandbox_root(self) -> None:
        """Test paths are shown in full when no sandbox root is known."""
        error = failing_chain()

        assert "included from /schema/main.sql:12" in str(error)

    def test_error_without_breadcrumb(self) -> None:
        """Test an error raised at the root renders as its message alone."""
        error = IncludeError("file does not exist: main.sql")

        assert str(error) == "file does not exist: main.sql"
        assert error.chain == []

    def test_builtin_exception_types(self) -> None:
        """Test errors can be caught as the matching builtin exceptions."""
        assert isinstance(failing_chain(), FileNotFoundError)
        assert isinstance(IncludeReadError("failed to read"), OSError)

    def test_circular_headline_lists_cycle(self) -> None:
        """Test the cycle is spelled out relative to the sandbox root."""
        error = CircularDependencyError([ROOT / "a.sql", ROOT / "b.sql", ROOT / "a.sql"])
        error.sandbox_root = ROOT

        assert error.headline() == "circular include detected: a.sql -> b.sql -> a.sql"
        assert error.path == ROOT / "a.sql"

    def test_max_depth_message(self) -> None:
        """Test the depth ceiling appears in the message."""
        error = MaxDepthExceededError(ROOT / "deep.sql", 8)

        assert "maximum of 8" in str(error)


@pytest.mark.include
class TestDiagnostics:
    """Test conversion into LSP diagnostics."""

    def test_frame_to_location(self) -> None:
        """Test a frame converts to a zero-indexed Location."""
        location = IncludeFrame(ROOT / "main.sql", 12, "\\i tables/users.sql").to_location()

        assert location.uri == "file:///schema/main.sql"
        assert location.range.start == types.Position(line=11, character=0)
        assert location.range.end == types.Position(line=11, character=len("\\i tables/users.sql"))

    def test_diagnostic_anchored_at_failing_directive(self) -> None:
        """Test the diagnostic points at the innermost directive."""
        error = failing_chain()
        error.sandbox_root = ROOT

        diagnostic = error.to_diagnostic()

        assert isinstance(diagnostic, types.Diagnostic)
        assert diagnostic.range.start.line == 3
        assert diagnostic.severity == types.DiagnosticSeverity.Error
        assert diagnostic.code == "IncludeFileNotFoundError"
        assert diagnostic.message == "included file does not exist: tables/missing.sql"

    def test_diagnostic_related_information(self) -> None:
        """Test the outer frames become related information."""
        diagnostic = failing_chain().to_diagnostic()

        assert diagnostic.related_information is not None
        assert len(diagnostic.related_information) == 1
        related = diagnostic.related_information[0]
        assert related.location.uri == "file:///schema/main.sql"
        assert related.location.range.start.line == 11

    def test_diagnostic_without_breadcrumb(self) -> None:
        """Test a root-level error is anchored at the start of the file."""
        diagnostic = IncludeFileNotFoundError("file does not exist: main.sql").to_diagnostic()

        assert diagnostic.range.start == types.Position(line=0, character=0)
        assert diagnostic.related_information is None
