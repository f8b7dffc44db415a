"""Path Sandbox Validator for include targets.

Include paths are interpreted relative to the sandbox root. A path is only
admissible when its canonical form (symlinks resolved) lies strictly inside
the canonical sandbox root and names an existing file, or an existing
directory for folder includes (paths ending in "/").
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath, PureWindowsPath

from pgschema.include.errors import IncludeFileNotFoundError, IncludeReadError, PathTraversalViolation

logger = logging.getLogger(__name__)


def _is_absolute(candidate: str) -> bool:
    return (
        PurePosixPath(candidate).is_absolute()
        or PureWindowsPath(candidate).is_absolute()
        or bool(PureWindowsPath(candidate).drive)
    )


def _has_parent_segment(candidate: str) -> bool:
    # Backslashes are normalized so "..\\secret.sql" is caught on POSIX too
    return ".." in candidate.replace("\\", "/").split("/")


def canonical_root(sandbox_root: str | Path) -> Path:
    """Canonicalize a sandbox root directory.

    Raises:
        IncludeFileNotFoundError: If the root is not an existing directory.
    """
    root = Path(sandbox_root).resolve()
    if not root.is_dir():
        raise IncludeFileNotFoundError(f"sandbox root is not a directory: {root}", path=root)
    return root


def validate(candidate: str, sandbox_root: str | Path) -> Path:
    """Validate an include path against the sandbox root.

    Args:
        candidate: The path as written in the directive. A trailing "/" marks
            a folder include.
        sandbox_root: The directory no include may escape.

    Returns:
        The canonical absolute path of the include target.

    Raises:
        PathTraversalViolation: If the path is absolute, contains a ".."
            segment, or resolves outside the sandbox root.
        IncludeFileNotFoundError: If the path is empty or contains a NUL byte,
            if the target does not exist, or if it is a directory where a file
            was expected (or vice versa).
        IncludeReadError: If the target cannot be inspected.
    """
    if not candidate:
        raise IncludeFileNotFoundError("empty include path")
    if "\x00" in candidate:
        raise IncludeFileNotFoundError(f"include path contains a NUL byte: {candidate!r}")
    if _is_absolute(candidate):
        raise PathTraversalViolation(f"absolute include path not allowed: {candidate}")
    if _has_parent_segment(candidate):
        raise PathTraversalViolation(f"directory traversal not allowed: {candidate}")

    root = Path(sandbox_root).resolve()
    return _check_target(root / candidate, root, candidate.endswith("/"), candidate)


def validate_entry(entry: Path, sandbox_root: str | Path) -> Path:
    """Validate a file or folder found while walking an included folder.

    Entries are real directory entries, so only their canonical location is
    checked; symlinks leading out of the sandbox are still rejected.

    Args:
        entry: The entry path, below an already validated folder.
        sandbox_root: The directory no include may escape.

    Returns:
        The canonical absolute path of the entry.
    """
    root = Path(sandbox_root).resolve()
    is_folder = entry.is_dir()
    display = entry.relative_to(root).as_posix() if root in entry.parents else str(entry)
    return _check_target(entry, root, is_folder, display + ("/" if is_folder else ""))


def _check_target(path: Path, root: Path, is_folder: bool, display: str) -> Path:
    try:
        target = path.resolve()
    except (OSError, ValueError) as e:
        raise IncludeReadError(f"failed to resolve {display}: {e}", path=path) from e

    if target == root or root not in target.parents:
        logger.warning(f"Include path {display} resolves outside sandbox root {root}")
        raise PathTraversalViolation(f"include path {display} is outside the sandbox root {root}", path=target)

    try:
        exists = target.exists()
        is_dir = target.is_dir()
        is_file = target.is_file()
    except (OSError, ValueError) as e:
        raise IncludeReadError(f"failed to stat {target}: {e}", path=target) from e

    if not exists:
        kind = "folder" if is_folder else "file"
        raise IncludeFileNotFoundError(f"included {kind} does not exist: {display}", path=target)
    if is_folder and not is_dir:
        raise IncludeFileNotFoundError(f"expected folder but found file: {display}", path=target)
    if not is_folder and is_dir:
        raise IncludeFileNotFoundError(
            f"expected file but found folder: {display} (use {display}/ for folder includes)", path=target
        )
    if not is_folder and not is_file:
        raise IncludeFileNotFoundError(f"included path is not a regular file: {display}", path=target)

    return target
