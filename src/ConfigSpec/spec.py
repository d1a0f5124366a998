# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.spec",
#   "purpose": "Schema container: pydantic model generation, parsing, linting and JSON Schema export.",
#   "sections": [
#     {
#       "id": "build-model",
#       "name": "build_model",
#       "anchor": "function-build-model",
#       "kind": "function"
#     },
#     {
#       "id": "configspec",
#       "name": "ConfigSpec",
#       "anchor": "class-configspec",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Schema Container for Declared Fields

A :class:`ConfigSpec` holds the top-level fields of a configuration schema.
On first use it generates a Pydantic v2 model from the field descriptors:

- Every model uses ``extra="forbid"`` and is frozen
- ``validate_default=True`` so declared defaults (duration literals included)
  pass through the same validators as user input
- Object fields whose children all resolve without input default to ``{}``
- Optional fields default to ``None``

Parsing validates a mapping against the model, runs object-level lint rules
over the resolved values and returns a :class:`ParsedConfig`.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError, create_model

from .durations import Duration
from .errors import ConfigIssue, ConfigParseError
from .fields import FieldKind, FieldSpec, check_unique_names
from .parsed import ParsedConfig

_LOGGER = logging.getLogger(__name__)

_MODEL_CONFIG = ConfigDict(extra="forbid", frozen=True, validate_default=True)

_SCALAR_TYPES: Dict[FieldKind, Any] = {
    FieldKind.STRING: str,
    FieldKind.INT: int,
    FieldKind.FLOAT: float,
    FieldKind.BOOL: StrictBool,
    FieldKind.DURATION: Duration,
}

_NAME_SPLIT = re.compile(r"[^0-9a-zA-Z]+")


# ============================================================================
# Model generation
# ============================================================================


def _camel(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in _NAME_SPLIT.split(name) if part) or "Field"


def _field_definition(spec: FieldSpec, model_prefix: str) -> Tuple[Any, Any]:
    if spec.is_object:
        annotation: Any = build_model(model_prefix + _camel(spec.name), spec.children)
    else:
        annotation = _SCALAR_TYPES[spec.kind]

    extra: Dict[str, Any] = {"alias": spec.name, "title": spec.name}
    if spec.description:
        extra["description"] = spec.description
    if spec.examples:
        extra["examples"] = list(spec.examples)

    if spec.has_default:
        return annotation, Field(default=spec.default, **extra)
    if spec.is_optional:
        return Optional[annotation], Field(default=None, **extra)
    if spec.is_object and spec.resolvable_without_input():
        return annotation, Field(default_factory=dict, **extra)
    return annotation, Field(..., **extra)


def build_model(model_name: str, fields: Sequence[FieldSpec]) -> Type[BaseModel]:
    """Generate a Pydantic model validating a mapping against ``fields``.

    Field names are used as aliases so that arbitrary config keys (including
    ones that clash with ``BaseModel`` attributes) validate and dump under
    their declared names.
    """
    definitions: Dict[str, Any] = {}
    for index, spec in enumerate(fields):
        definitions[f"field_{index}"] = _field_definition(spec, model_name)
    return create_model(model_name, __config__=_MODEL_CONFIG, **definitions)


def _issues_from_validation(exc: ValidationError) -> List[ConfigIssue]:
    return [
        ConfigIssue(path=tuple(str(part) for part in error["loc"]), message=error["msg"])
        for error in exc.errors()
    ]


def _lint_tree(
    fields: Sequence[FieldSpec], values: Mapping[str, Any], path: Tuple[str, ...]
) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    for spec in fields:
        if not spec.is_object:
            continue
        value = values.get(spec.name)
        if not isinstance(value, Mapping):
            continue
        here = path + (spec.name,)
        for rule in spec.lint_rules:
            for message in rule.run(value):
                issues.append(ConfigIssue(path=here, message=message, rule=rule.name))
        issues.extend(_lint_tree(spec.children, value, here))
    return issues


# ============================================================================
# Public API
# ============================================================================


class ConfigSpec:
    """Ordered collection of top-level fields forming a configuration schema.

    Example:
        >>> from ConfigSpec import new_backoff_field
        >>> spec = ConfigSpec(new_backoff_field("retry", allow_unbounded=True))
        >>> spec.defaults()["retry"]["max_elapsed_time"]
        '1m0s'
    """

    def __init__(self, *fields: FieldSpec) -> None:
        self._fields = check_unique_names(fields, owner="config spec")
        self._model: Optional[Type[BaseModel]] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ConfigSpec({', '.join(spec.name for spec in self._fields)})"

    @property
    def fields(self) -> Tuple[FieldSpec, ...]:
        return self._fields

    def field(self, name: str) -> FieldSpec:
        for spec in self._fields:
            if spec.name == name:
                return spec
        raise KeyError(f"config spec has no field named '{name}'")

    def with_field(self, spec: FieldSpec) -> "ConfigSpec":
        """Return a new spec with ``spec`` appended."""
        return ConfigSpec(*self._fields, spec)

    @property
    def model(self) -> Type[BaseModel]:
        """Pydantic model generated from the declared fields (built once)."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    self._model = build_model("Config", self._fields)
                    _LOGGER.debug("Generated config model for fields %s", [f.name for f in self._fields])
        return self._model

    def _validate(self, data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigParseError(
                [ConfigIssue(path=(), message=f"config root must be an object, got {type(data).__name__}")]
            )
        try:
            instance = self.model.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigParseError(_issues_from_validation(exc)) from exc
        return instance.model_dump(by_alias=True)

    def lint(self, data: Optional[Mapping[str, Any]]) -> List[ConfigIssue]:
        """Validate ``data`` and return lint findings without raising for them.

        Raises:
            ConfigParseError: If ``data`` fails schema validation.
        """
        return _lint_tree(self._fields, self._validate(data), ())

    def parse(self, data: Optional[Mapping[str, Any]], *, lint: bool = True) -> ParsedConfig:
        """Validate ``data`` and return an accessor over the resolved values.

        Args:
            data: Raw config mapping (for example loaded from YAML).
            lint: Whether lint findings should fail the parse.

        Returns:
            ParsedConfig with defaults applied and durations as ``timedelta``.

        Raises:
            ConfigParseError: On validation errors, or lint findings when
                ``lint`` is true.
        """
        values = self._validate(data)
        if lint:
            issues = _lint_tree(self._fields, values, ())
            if issues:
                _LOGGER.debug("Config lint failed: %s", [str(issue) for issue in issues])
                raise ConfigParseError(issues)
        return ParsedConfig(values)

    def json_schema(self) -> Dict[str, Any]:
        """Export the JSON Schema (descriptions, defaults and examples included)."""
        return self.model.model_json_schema()

    def defaults(self) -> Dict[str, Any]:
        """Render the fully defaulted config with durations as literals.

        Raises:
            ConfigParseError: If some field has no default.
        """
        try:
            instance = self.model.model_validate({})
        except ValidationError as exc:
            raise ConfigParseError(_issues_from_validation(exc)) from exc
        return instance.model_dump(mode="json", by_alias=True)


__all__ = ["ConfigSpec", "build_model"]
