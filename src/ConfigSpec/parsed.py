# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.parsed",
#   "purpose": "Typed, path-based access to validated configuration values.",
#   "sections": [
#     {
#       "id": "parsedconfig",
#       "name": "ParsedConfig",
#       "anchor": "class-parsedconfig",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Typed, path-based access to validated configuration values.

:class:`ParsedConfig` wraps the tree produced by :meth:`ConfigSpec.parse`
(or any nested mapping) and reads values back by path, converting them to the
requested type or raising :class:`FieldAccessError` that names the full path.

Example:
    >>> conf = ParsedConfig({"http": {"timeout": "5s", "verify": True}})
    >>> conf.field_duration("http", "timeout")
    datetime.timedelta(seconds=5)
    >>> conf.namespace("http").field_bool("verify")
    True
"""

from __future__ import annotations

import copy
from datetime import timedelta
from typing import Any, Mapping, Sequence, Tuple

from .backoff import ExponentialBackoff, field_backoff, field_backoff_toggled
from .durations import parse_duration
from .errors import DurationParseError, FieldAccessError


class ParsedConfig:
    """Read-only accessor over a parsed configuration tree."""

    def __init__(self, values: Mapping[str, Any], path: Sequence[str] = ()) -> None:
        if not isinstance(values, Mapping):
            raise TypeError(f"ParsedConfig expects a mapping, got {type(values).__name__}")
        self._values = values
        self._path: Tuple[str, ...] = tuple(path)

    def __repr__(self) -> str:
        return f"ParsedConfig(path={self._path!r}, keys={sorted(self._values)!r})"

    @property
    def path(self) -> Tuple[str, ...]:
        """Location of this accessor within the root config."""
        return self._path

    def _full(self, path: Sequence[str]) -> Tuple[str, ...]:
        return self._path + tuple(path)

    def _lookup(self, path: Sequence[str]) -> Any:
        current: Any = self._values
        for depth, segment in enumerate(path):
            if not isinstance(current, Mapping):
                raise FieldAccessError(
                    self._full(path[: depth + 1]), "parent value is not an object"
                )
            if segment not in current:
                raise FieldAccessError(self._full(path), "field was not found in the config")
            current = current[segment]
        return current

    def _lookup_set(self, path: Sequence[str]) -> Any:
        value = self._lookup(path)
        if value is None:
            raise FieldAccessError(self._full(path), "field is not set")
        return value

    def contains(self, *path: str) -> bool:
        """Return ``True`` if a value (possibly ``None``) exists at ``path``."""
        try:
            self._lookup(path)
        except FieldAccessError:
            return False
        return True

    def raw(self, *path: str) -> Any:
        """Return a deep copy of the untyped value at ``path``."""
        return copy.deepcopy(self._lookup(path))

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self._values))

    def namespace(self, *path: str) -> "ParsedConfig":
        """Return an accessor rooted at the object found at ``path``."""
        value = self._lookup_set(path)
        if not isinstance(value, Mapping):
            raise FieldAccessError(self._full(path), "expected an object")
        return ParsedConfig(value, self._full(path))

    def field_duration(self, *path: str) -> timedelta:
        """Read a duration, parsing literals such as ``"500ms"`` on access."""
        value = self._lookup_set(path)
        try:
            return parse_duration(value)
        except DurationParseError as exc:
            raise FieldAccessError(self._full(path), str(exc)) from exc

    def field_bool(self, *path: str) -> bool:
        value = self._lookup_set(path)
        if not isinstance(value, bool):
            raise FieldAccessError(
                self._full(path), f"expected a bool value, got {type(value).__name__}"
            )
        return value

    def field_string(self, *path: str) -> str:
        value = self._lookup_set(path)
        if not isinstance(value, str):
            raise FieldAccessError(
                self._full(path), f"expected a string value, got {type(value).__name__}"
            )
        return value

    def field_int(self, *path: str) -> int:
        value = self._lookup_set(path)
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldAccessError(
                self._full(path), f"expected an int value, got {type(value).__name__}"
            )
        return value

    def field_float(self, *path: str) -> float:
        value = self._lookup_set(path)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FieldAccessError(
                self._full(path), f"expected a float value, got {type(value).__name__}"
            )
        return float(value)

    def field_backoff(self, *path: str) -> ExponentialBackoff:
        """Extract a backoff policy declared with ``new_backoff_field``."""
        return field_backoff(self, *path)

    def field_backoff_toggled(self, *path: str) -> Tuple[ExponentialBackoff, bool]:
        """Extract a backoff policy and its ``enabled`` flag (``new_backoff_toggled_field``)."""
        return field_backoff_toggled(self, *path)


__all__ = ["ParsedConfig"]
