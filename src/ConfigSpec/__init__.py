"""
ConfigSpec: Declarative Configuration Fields with Backoff Policies

Public API for declaring configuration schemas, validating config trees
against them, and extracting typed values, including exponential backoff
policies.

Example:
    from ConfigSpec import ConfigSpec, new_backoff_toggled_field

    spec = ConfigSpec(new_backoff_toggled_field("retry", allow_unbounded=True))
    parsed = spec.parse({"retry": {"enabled": True, "max_elapsed_time": "0s"}})
    policy, enabled = parsed.field_backoff_toggled("retry")
"""

from .backoff import (
    ExponentialBackoff,
    RandomizedExponentialWait,
    field_backoff,
    field_backoff_toggled,
    new_backoff_field,
    new_backoff_toggled_field,
    resolve_backoff_defaults,
)
from .durations import Duration, format_duration, parse_duration
from .errors import (
    ConfigIssue,
    ConfigLoadError,
    ConfigParseError,
    ConfigSpecError,
    DurationParseError,
    FieldAccessError,
    FieldDeclarationError,
)
from .fields import (
    FieldKind,
    FieldSpec,
    LintRule,
    new_bool_field,
    new_duration_field,
    new_float_field,
    new_int_field,
    new_object_field,
    new_string_field,
)
from .loader import load_config, read_config_file
from .parsed import ParsedConfig
from .spec import ConfigSpec

__all__ = [
    # Schema declaration
    "ConfigSpec",
    "FieldKind",
    "FieldSpec",
    "LintRule",
    "new_bool_field",
    "new_duration_field",
    "new_float_field",
    "new_int_field",
    "new_object_field",
    "new_string_field",
    # Backoff
    "ExponentialBackoff",
    "RandomizedExponentialWait",
    "field_backoff",
    "field_backoff_toggled",
    "new_backoff_field",
    "new_backoff_toggled_field",
    "resolve_backoff_defaults",
    # Parsing/access
    "ParsedConfig",
    "load_config",
    "read_config_file",
    # Durations
    "Duration",
    "format_duration",
    "parse_duration",
    # Errors
    "ConfigIssue",
    "ConfigLoadError",
    "ConfigParseError",
    "ConfigSpecError",
    "DurationParseError",
    "FieldAccessError",
    "FieldDeclarationError",
]
