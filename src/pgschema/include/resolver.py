"""Cycle-aware resolver for psql \\i include directives.

The resolver expands a root SQL file into a single document by replacing each
`\\i <path>` line, in place, with the fully expanded content of its target.
Include paths are interpreted relative to the sandbox root, and no file
outside that root is ever read.

Cycles are detected with a resolution stack holding the files currently being
expanded. A file may appear in several branches of the same run; only a file
that is still on the stack when it is included again forms a cycle.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from pgschema.include.directive_scanner import scan
from pgschema.include.errors import (
    CircularDependencyError,
    IncludeError,
    IncludeFileNotFoundError,
    IncludeFrame,
    IncludeReadError,
    MaxDepthExceededError,
    PathTraversalViolation,
    ResolutionCancelledError,
)
from pgschema.include.include_directive import IncludeDirective
from pgschema.include.path_sandbox import canonical_root, validate, validate_entry
from pgschema.include.resolved_document import Fragment, ResolvedDocument
from pgschema.include.settings import ResolverSettings

logger = logging.getLogger(__name__)


class ResolutionStack:
    """The chain of files and folders currently being expanded.

    A stack belongs to exactly one resolution run. Entries are pushed when
    expansion of a path starts and popped, in LIFO order, when it ends.
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._paths)

    def push(self, path: Path) -> None:
        """Push a path, refusing one that is already being expanded.

        Raises:
            CircularDependencyError: If the path is already on the stack. The
                reported cycle is the whole stack, from the root file, followed
                by the repeated path.
        """
        if path in self._paths:
            cycle = self._paths + [path]
            logger.warning(f"Circular include detected involving: {path}")
            raise CircularDependencyError(cycle)
        self._paths.append(path)

    def pop(self, path: Path) -> None:
        """Pop the most recently pushed path, which must be `path`."""
        if not self._paths or self._paths[-1] != path:
            raise RuntimeError(f"Resolution stack out of order: expected {path} on top of {self._paths}")
        self._paths.pop()

    def snapshot(self) -> list[Path]:
        """A copy of the current chain, outermost first."""
        return list(self._paths)


@dataclass
class _Run:
    """State owned by a single resolution run."""

    document: ResolvedDocument
    stack: ResolutionStack
    cache: dict[Path, str] = field(default_factory=dict)
    seen: set[Path] = field(default_factory=set)


def _strip_trailing_blank(fragments: list[Fragment]) -> list[Fragment]:
    # A file ending in "\n" scans to a final empty line; it must not add a
    # blank line at the include site.
    if fragments and fragments[-1].text == "":
        return fragments[:-1]
    return fragments


class IncludeResolver:
    """Expands \\i include directives below a sandbox root.

    A resolver only holds configuration; every call to `resolve` builds its own
    run state, so one instance can serve concurrent runs.
    """

    def __init__(
        self,
        sandbox_root: str | Path,
        settings: ResolverSettings | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            sandbox_root: Directory that include paths are relative to and that
                no include may escape.
            settings: Resolver settings; defaults are used when omitted.
            cancel_event: When set by another thread, the running resolution
                stops before its next filesystem operation.

        Raises:
            IncludeFileNotFoundError: If the sandbox root is not a directory.
        """
        self.sandbox_root = canonical_root(sandbox_root)
        self.settings = settings or ResolverSettings()
        self._cancel_event = cancel_event

    def resolve(self, root_file: str | Path, stack: ResolutionStack | None = None) -> ResolvedDocument:
        """Resolve a root SQL file into a single document.

        Args:
            root_file: The SQL file to expand. Relative paths are taken from
                the current working directory.
            stack: An empty stack to use for cycle detection. A fresh one is
                created when omitted.

        Returns:
            The resolved document.

        Raises:
            IncludeError: On the first failure; nothing is returned for a
                partially resolved run.
        """
        if stack is None:
            stack = ResolutionStack()
        elif len(stack):
            raise ValueError("A resolution run needs an empty stack")

        try:
            root_path = self._validate_root(root_file)
            run = _Run(document=ResolvedDocument(root_path=root_path, sandbox_root=self.sandbox_root), stack=stack)
            fragments = self._resolve_file(root_path, run)
        except IncludeError as e:
            e.sandbox_root = self.sandbox_root
            logger.debug(f"Resolution of {root_file} failed: {e.headline()}")
            raise

        run.document.fragments = fragments
        logger.info(
            f"Resolved {root_path.name}: {len(run.document.sources)} files, "
            f"{len(run.document.directives)} includes, {len(fragments)} lines"
        )
        return run.document

    def _validate_root(self, root_file: str | Path) -> Path:
        if "\x00" in str(root_file):
            raise IncludeFileNotFoundError(f"root file path contains a NUL byte: {str(root_file)!r}")
        path = Path(root_file).resolve()
        if self.sandbox_root not in path.parents:
            raise PathTraversalViolation(f"root file {root_file} is outside the sandbox root {self.sandbox_root}", path=path)
        if not path.is_file():
            raise IncludeFileNotFoundError(f"file does not exist: {root_file}", path=path)
        return path

    def _check_cancelled(self, path: Path) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise ResolutionCancelledError("resolution cancelled", path=path)

    def _enter(self, path: Path, run: _Run) -> None:
        if path not in run.stack and len(run.stack) >= self.settings.max_depth:
            raise MaxDepthExceededError(path, self.settings.max_depth)
        run.stack.push(path)

    def _load(self, path: Path, run: _Run) -> str:
        """Read a file's text, from the run cache when memoization is enabled."""
        if self.settings.memoize and path in run.cache:
            return run.cache[path]

        self._check_cancelled(path)
        try:
            content = path.read_bytes().decode(self.settings.encoding)
        except FileNotFoundError as e:
            raise IncludeFileNotFoundError(f"file does not exist: {path}", path=path) from e
        except UnicodeDecodeError as e:
            raise IncludeReadError(f"failed to decode {path} as {self.settings.encoding}: {e}", path=path) from e
        except OSError as e:
            raise IncludeReadError(f"failed to read file {path}: {e}", path=path) from e

        if path not in run.seen:
            run.seen.add(path)
            run.document.sources.append(path)
        if self.settings.memoize:
            run.cache[path] = content
        return content

    def _resolve_file(self, path: Path, run: _Run) -> list[Fragment]:
        """Expand one file, replacing each directive with its target's content."""
        self._enter(path, run)
        try:
            logger.debug(f"Expanding {path} (depth {len(run.stack)})")
            content = self._load(path, run)
            fragments: list[Fragment] = []

            for scanned in scan(content):
                if not scanned.is_directive:
                    fragments.append(Fragment(text=scanned.text, source_path=path, line=scanned.line))
                    continue

                raw_path = scanned.raw_path or ""
                try:
                    self._check_cancelled(path)
                    target = validate(raw_path, self.sandbox_root)
                    directive = IncludeDirective(
                        raw_path=raw_path,
                        line=scanned.line,
                        character=scanned.character,
                        source_path=path,
                        resolved_path=target,
                    )
                    run.document.directives.append(directive)
                    if directive.is_folder:
                        included = self._resolve_folder(target, run)
                    else:
                        included = _strip_trailing_blank(self._resolve_file(target, run))
                except IncludeError as e:
                    e.push_frame(IncludeFrame(path=path, line=scanned.line, directive_text=scanned.text.strip()))
                    raise

                fragments.extend(included)

            return fragments
        finally:
            run.stack.pop(path)

    def _resolve_folder(self, folder: Path, run: _Run) -> list[Fragment]:
        """Expand every matching file below a folder, depth-first in name order."""
        self._enter(folder, run)
        try:
            self._check_cancelled(folder)
            try:
                entries = sorted(folder.iterdir(), key=lambda entry: entry.name)
            except OSError as e:
                raise IncludeReadError(f"failed to read directory {folder}: {e}", path=folder) from e

            fragments: list[Fragment] = []
            for entry in entries:
                if entry.is_dir():
                    # Revalidated so symlinked folders cannot leave the sandbox
                    target = validate_entry(entry, self.sandbox_root)
                    fragments.extend(self._resolve_folder(target, run))
                elif entry.name.endswith(self.settings.folder_suffix):
                    target = validate_entry(entry, self.sandbox_root)
                    fragments.extend(_strip_trailing_blank(self._resolve_file(target, run)))
            return fragments
        finally:
            run.stack.pop(folder)


def resolve_file(
    root_file: str | Path,
    sandbox_root: str | Path | None = None,
    settings: ResolverSettings | None = None,
) -> str:
    """Resolve a SQL file and return the assembled text.

    Args:
        root_file: The SQL file to expand.
        sandbox_root: The sandbox root; defaults to the directory containing
            the root file.
        settings: Resolver settings; defaults are used when omitted.

    Returns:
        The assembled document.
    """
    if sandbox_root is None:
        sandbox_root = Path(root_file).resolve().parent
    return IncludeResolver(sandbox_root, settings=settings).resolve(root_file).text
