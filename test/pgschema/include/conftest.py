"""Shared fixtures for include resolver tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

FIXTURE_ROOT = Path(__file__).parent / "testdata" / "include"


@pytest.fixture
def sql_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes SQL files below a sandbox root and returns the root."""
    root = tmp_path / "schema"
    root.mkdir()

    def write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content.encode("utf-8"))
        return root

    return write


@pytest.fixture
def fixture_root() -> Path:
    """Path to the checked-in modular schema fixture."""
    return FIXTURE_ROOT
