"""Configuration for the include resolver."""

from __future__ import annotations

import codecs
from dataclasses import dataclass, fields
from typing import Any

DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class ResolverSettings:
    """Settings for one or more resolution runs.

    Attributes:
        max_depth: Maximum number of files on the include chain at once
        encoding: Text encoding used to decode SQL files; the default drops a leading BOM
        memoize: Reuse file content read earlier in the same run
        folder_suffix: Suffix of the files picked up by folder includes
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    encoding: str = "utf-8-sig"
    memoize: bool = False
    folder_suffix: str = ".sql"

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {self.max_depth!r}")
        # Each include level costs a few interpreter frames
        if self.max_depth > 200:
            raise ValueError(f"max_depth must not exceed 200, got {self.max_depth}")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {self.encoding}") from e
        if not self.folder_suffix:
            raise ValueError("folder_suffix must not be empty")

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> ResolverSettings:
        """Build settings from a plain mapping, such as a parsed config file section.

        Args:
            values: Setting names mapped to values. Missing keys keep their defaults.

        Returns:
            The validated settings.

        Raises:
            ValueError: If a key is unknown or a value is invalid.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown resolver settings: {', '.join(unknown)}")
        return cls(**values)
