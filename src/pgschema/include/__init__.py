"""Include resolution for pgschema SQL files.

This package expands psql-style `\\i <path>` directives across a tree of SQL
files into a single schema document, confined to a sandbox root directory.
"""

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
from pgschema.include.resolved_document import Fragment, ResolvedDocument, assemble
from pgschema.include.resolver import IncludeResolver, ResolutionStack, resolve_file
from pgschema.include.settings import ResolverSettings

__all__ = [
    "CircularDependencyError",
    "Fragment",
    "IncludeDirective",
    "IncludeError",
    "IncludeFileNotFoundError",
    "IncludeFrame",
    "IncludeReadError",
    "IncludeResolver",
    "MaxDepthExceededError",
    "PathTraversalViolation",
    "ResolutionCancelledError",
    "ResolutionStack",
    "ResolvedDocument",
    "ResolverSettings",
    "assemble",
    "resolve_file",
]
