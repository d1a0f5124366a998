"""Exception hierarchy shared across field declaration, parsing, and extraction.

Configuration handling spans three phases: declaring a schema, validating a
user-supplied tree against it, and reading typed values back out by path.
This module groups the failure modes of each phase so callers can react to
the broad category (for example, a programming error in a declaration vs. a
bad value in a user's file) while still having access to the offending path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

__all__ = [
    "ConfigSpecError",
    "FieldDeclarationError",
    "DurationParseError",
    "FieldAccessError",
    "ConfigIssue",
    "ConfigParseError",
    "ConfigLoadError",
    "format_path",
]


def format_path(path: Sequence[str]) -> str:
    """Render a path as the dotted form used in error messages."""
    return ".".join(str(segment) for segment in path) or "<root>"


class ConfigSpecError(RuntimeError):
    """Base exception for configuration declaration, parsing, or access failures."""


class FieldDeclarationError(ConfigSpecError):
    """Raised when a field descriptor is malformed at declaration time."""


class DurationParseError(ConfigSpecError, ValueError):
    """Raised when a value is not a valid duration literal such as ``500ms``."""


class FieldAccessError(ConfigSpecError):
    """Raised when a parsed config cannot produce a typed value at a path."""

    def __init__(self, path: Sequence[str], message: str) -> None:
        self.path: Tuple[str, ...] = tuple(path)
        self.reason = message
        super().__init__(f"field '{format_path(self.path)}': {message}")


@dataclass(frozen=True)
class ConfigIssue:
    """Single validation or lint finding, located by field path."""

    path: Tuple[str, ...]
    message: str
    rule: str = "validation"

    def __str__(self) -> str:
        return f"{format_path(self.path)}: {self.message}"


class ConfigParseError(ConfigSpecError):
    """Raised when a config tree fails schema validation or lint rules."""

    def __init__(self, issues: Iterable[ConfigIssue]) -> None:
        self.issues = list(issues)
        lines = "\n".join(f"  - {issue}" for issue in self.issues)
        super().__init__(f"config validation failed with {len(self.issues)} issue(s):\n{lines}")


class ConfigLoadError(ConfigSpecError):
    """Raised when a config file cannot be located, read, or decoded."""


# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.errors",
#   "purpose": "Define the exception hierarchy used across declaration, parsing, and extraction",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "declaration", "name": "Declaration Errors", "anchor": "DEC", "kind": "api"},
#     {"id": "access", "name": "Access & Parse Errors", "anchor": "ACC", "kind": "api"},
#     {"id": "load", "name": "Load Errors", "anchor": "LOD", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
