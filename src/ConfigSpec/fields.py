# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.fields",
#   "purpose": "Immutable configuration field descriptors and their builders.",
#   "sections": [
#     {
#       "id": "fieldkind",
#       "name": "FieldKind",
#       "anchor": "class-fieldkind",
#       "kind": "class"
#     },
#     {
#       "id": "lintrule",
#       "name": "LintRule",
#       "anchor": "class-lintrule",
#       "kind": "class"
#     },
#     {
#       "id": "fieldspec",
#       "name": "FieldSpec",
#       "anchor": "class-fieldspec",
#       "kind": "class"
#     },
#     {
#       "id": "constructors",
#       "name": "new_*_field",
#       "anchor": "function-constructors",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Immutable configuration field descriptors.

A :class:`FieldSpec` describes one node of a configuration schema: its name,
type, human-readable description, default, illustrative examples and, for
object fields, an ordered tuple of child fields. Descriptors are frozen;
every builder method returns a new descriptor so a field can be shared
between schemas without one declaration leaking into another.

Example:
    >>> timeout = (
    ...     new_duration_field("timeout")
    ...     .with_description("How long to wait.")
    ...     .with_default("5s")
    ...     .with_example("1s")
    ... )
    >>> new_object_field("http", timeout).child("timeout").default
    '5s'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from .durations import is_duration_literal
from .errors import FieldDeclarationError

LOGGER = logging.getLogger(__name__)


class FieldKind(str, Enum):
    """Value types a field can hold."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"
    OBJECT = "object"


class _Unset:
    """Marker for fields declared without a default."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class LintRule:
    """Named check run against the resolved values of an object field.

    ``check`` receives the object's values (child name -> parsed value) and
    yields one message per problem found.
    """

    name: str
    check: Callable[[Mapping[str, Any]], Iterable[str]]

    def run(self, values: Mapping[str, Any]) -> list[str]:
        return list(self.check(values))


@dataclass(frozen=True)
class FieldSpec:
    """Declarative description of a single configuration field."""

    name: str
    kind: FieldKind
    description: str = ""
    default: Any = UNSET
    examples: Tuple[Any, ...] = ()
    children: Tuple["FieldSpec", ...] = ()
    is_optional: bool = False
    is_advanced: bool = False
    lint_rules: Tuple[LintRule, ...] = field(default=(), compare=False)

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET

    @property
    def is_object(self) -> bool:
        return self.kind is FieldKind.OBJECT

    def with_description(self, text: str) -> "FieldSpec":
        return replace(self, description=text)

    def append_description(self, text: str) -> "FieldSpec":
        """Return a copy with ``text`` appended to the description as a new sentence."""
        combined = f"{self.description} {text}" if self.description else text
        return replace(self, description=combined)

    def with_default(self, value: Any) -> "FieldSpec":
        """Return a copy declaring ``value`` as the default.

        Duration defaults must be literals (``"500ms"``), so they are parsed by
        the same rules as user input.
        """
        if self.kind is FieldKind.DURATION and not is_duration_literal(value):
            raise FieldDeclarationError(
                f"default for duration field '{self.name}' must be a duration string, "
                f"got {value!r}"
            )
        return replace(self, default=value)

    def with_example(self, value: Any) -> "FieldSpec":
        return replace(self, examples=self.examples + (value,))

    def with_examples(self, *values: Any) -> "FieldSpec":
        return replace(self, examples=self.examples + tuple(values))

    def optional(self) -> "FieldSpec":
        """Return a copy that may be omitted without a default (resolves to ``None``)."""
        return replace(self, is_optional=True)

    def advanced(self) -> "FieldSpec":
        return replace(self, is_advanced=True)

    def with_lint_rule(self, rule: LintRule) -> "FieldSpec":
        if not self.is_object:
            raise FieldDeclarationError(
                f"lint rules can only be attached to object fields, '{self.name}' is {self.kind.value}"
            )
        return replace(self, lint_rules=self.lint_rules + (rule,))

    def child(self, name: str) -> "FieldSpec":
        """Look up a direct child by name."""
        for candidate in self.children:
            if candidate.name == name:
                return candidate
        raise KeyError(f"field '{self.name}' has no child named '{name}'")

    def child_names(self) -> list[str]:
        return [child.name for child in self.children]

    def resolvable_without_input(self) -> bool:
        """Whether the field can be fully resolved when the user omits it."""
        if self.has_default or self.is_optional:
            return True
        if self.is_object:
            return all(child.resolvable_without_input() for child in self.children)
        return False


def _check_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise FieldDeclarationError("field names must be non-empty strings")
    return name


def check_unique_names(fields: Iterable[FieldSpec], owner: str) -> Tuple[FieldSpec, ...]:
    """Return ``fields`` as a tuple, rejecting sibling name collisions."""
    collected = tuple(fields)
    seen: set[str] = set()
    for item in collected:
        if not isinstance(item, FieldSpec):
            raise FieldDeclarationError(f"{owner} children must be FieldSpec instances, got {item!r}")
        if item.name in seen:
            raise FieldDeclarationError(f"duplicate field name '{item.name}' in {owner}")
        seen.add(item.name)
    return collected


def new_string_field(name: str) -> FieldSpec:
    return FieldSpec(name=_check_name(name), kind=FieldKind.STRING)


def new_int_field(name: str) -> FieldSpec:
    return FieldSpec(name=_check_name(name), kind=FieldKind.INT)


def new_float_field(name: str) -> FieldSpec:
    return FieldSpec(name=_check_name(name), kind=FieldKind.FLOAT)


def new_bool_field(name: str) -> FieldSpec:
    return FieldSpec(name=_check_name(name), kind=FieldKind.BOOL)


def new_duration_field(name: str) -> FieldSpec:
    """Declare a field holding a duration literal such as ``"500ms"`` or ``"1m"``."""
    return FieldSpec(name=_check_name(name), kind=FieldKind.DURATION)


def new_object_field(name: str, *children: FieldSpec) -> FieldSpec:
    """Declare an object field composed of an ordered sequence of child fields.

    Raises:
        FieldDeclarationError: If the name is empty or two children share a name.
    """
    checked = check_unique_names(children, owner=f"object field '{name}'")
    LOGGER.debug("Declared object field %s with children %s", name, [c.name for c in checked])
    return FieldSpec(name=_check_name(name), kind=FieldKind.OBJECT, children=checked)


__all__ = [
    "UNSET",
    "FieldKind",
    "FieldSpec",
    "LintRule",
    "check_unique_names",
    "new_bool_field",
    "new_duration_field",
    "new_float_field",
    "new_int_field",
    "new_object_field",
    "new_string_field",
]
