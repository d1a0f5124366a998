# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.backoff",
#   "purpose": "Exponential backoff config fields and policy extraction.",
#   "sections": [
#     {
#       "id": "randomizedexponentialwait",
#       "name": "RandomizedExponentialWait",
#       "anchor": "class-randomizedexponentialwait",
#       "kind": "class"
#     },
#     {
#       "id": "exponentialbackoff",
#       "name": "ExponentialBackoff",
#       "anchor": "class-exponentialbackoff",
#       "kind": "class"
#     },
#     {
#       "id": "resolve-backoff-defaults",
#       "name": "resolve_backoff_defaults",
#       "anchor": "function-resolve-backoff-defaults",
#       "kind": "function"
#     },
#     {
#       "id": "new-backoff-field",
#       "name": "new_backoff_field",
#       "anchor": "function-new-backoff-field",
#       "kind": "function"
#     },
#     {
#       "id": "new-backoff-toggled-field",
#       "name": "new_backoff_toggled_field",
#       "anchor": "function-new-backoff-toggled-field",
#       "kind": "function"
#     },
#     {
#       "id": "field-backoff",
#       "name": "field_backoff",
#       "anchor": "function-field-backoff",
#       "kind": "function"
#     },
#     {
#       "id": "field-backoff-toggled",
#       "name": "field_backoff_toggled",
#       "anchor": "function-field-backoff-toggled",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Exponential backoff config fields and policy extraction.

Declare a backoff sub-object inside a larger schema with
:func:`new_backoff_field` (always active) or :func:`new_backoff_toggled_field`
(adds an ``enabled`` flag that is ``False`` by default), then read it back from
a parsed config with :meth:`ParsedConfig.field_backoff` or
:meth:`ParsedConfig.field_backoff_toggled`.

When no defaults template is given the declared defaults result in one minute
of retry attempts, starting at 500ms intervals.

Example:
    >>> from ConfigSpec import ConfigSpec
    >>> spec = ConfigSpec(new_backoff_field("backoff", allow_unbounded=False))
    >>> spec.parse({}).field_backoff("backoff").max_interval
    datetime.timedelta(seconds=10)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Tuple

from tenacity import RetryCallState, stop_after_delay, stop_never
from tenacity.wait import wait_base

from .durations import format_duration, parse_duration
from .fields import (
    FieldSpec,
    LintRule,
    new_bool_field,
    new_duration_field,
    new_object_field,
)

if TYPE_CHECKING:
    from .parsed import ParsedConfig

LOGGER = logging.getLogger(__name__)

ENABLED_FIELD = "enabled"
INITIAL_INTERVAL_FIELD = "initial_interval"
MAX_INTERVAL_FIELD = "max_interval"
MAX_ELAPSED_TIME_FIELD = "max_elapsed_time"

DEFAULT_INITIAL_INTERVAL = "500ms"
DEFAULT_MAX_INTERVAL = "10s"
DEFAULT_MAX_ELAPSED_TIME = "1m"

BACKOFF_DESCRIPTION = "Determine time intervals and cut offs for retry attempts."
UNBOUNDED_NOTE = (
    "Setting this value to a zeroed duration (such as `0s`) will result in unbounded retries."
)
BOUNDED_ELAPSED_TIME_RULE = "bounded_elapsed_time"


class RandomizedExponentialWait(wait_base):
    """Exponential wait whose current interval is spread by a randomization factor.

    The interval for attempt ``n`` is ``initial * multiplier**(n-1)`` capped at
    ``max_interval``; the returned wait is drawn uniformly from
    ``[interval * (1 - factor), interval * (1 + factor)]``.
    """

    def __init__(
        self,
        initial: float,
        multiplier: float,
        max_interval: float,
        randomization_factor: float,
    ) -> None:
        self.initial = initial
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.randomization_factor = randomization_factor

    def interval(self, attempt_number: int) -> float:
        try:
            interval = self.initial * self.multiplier ** max(attempt_number - 1, 0)
        except OverflowError:
            return self.max_interval
        return min(interval, self.max_interval)

    def __call__(self, retry_state: RetryCallState) -> float:
        interval = self.interval(retry_state.attempt_number)
        if self.randomization_factor <= 0:
            return interval
        delta = interval * self.randomization_factor
        return random.uniform(interval - delta, interval + delta)


@dataclass
class ExponentialBackoff:
    """Exponential backoff policy with an optional overall cutoff.

    Field defaults are the library defaults used as a base before config
    values are applied. A zero ``max_elapsed_time`` means retries never give
    up on elapsed time alone.
    """

    initial_interval: timedelta = field(default_factory=lambda: timedelta(milliseconds=500))
    max_interval: timedelta = field(default_factory=lambda: timedelta(seconds=60))
    max_elapsed_time: timedelta = field(default_factory=lambda: timedelta(minutes=15))
    multiplier: float = 1.5
    randomization_factor: float = 0.5

    @property
    def unbounded(self) -> bool:
        return self.max_elapsed_time == timedelta(0)

    def tenacity_kwargs(self) -> Dict[str, Any]:
        """Translate the policy into ``wait``/``stop`` arguments for ``tenacity.Retrying``."""
        wait = RandomizedExponentialWait(
            initial=self.initial_interval.total_seconds(),
            multiplier=self.multiplier,
            max_interval=self.max_interval.total_seconds(),
            randomization_factor=self.randomization_factor,
        )
        stop = stop_never if self.unbounded else stop_after_delay(self.max_elapsed_time.total_seconds())
        return {"wait": wait, "stop": stop}

    def as_dict(self) -> Dict[str, str]:
        """Render the configurable intervals as duration literals."""
        return {
            INITIAL_INTERVAL_FIELD: format_duration(self.initial_interval),
            MAX_INTERVAL_FIELD: format_duration(self.max_interval),
            MAX_ELAPSED_TIME_FIELD: format_duration(self.max_elapsed_time),
        }


def resolve_backoff_defaults(
    defaults: Optional[ExponentialBackoff] = None,
) -> Tuple[str, str, str]:
    """Return the initial, max and max-elapsed default literals for a backoff field.

    Args:
        defaults: Optional template policy. When omitted the fallbacks
            ``500ms``, ``10s`` and ``1m`` are used.

    Returns:
        Three duration literals in canonical form.
    """
    if defaults is None:
        return DEFAULT_INITIAL_INTERVAL, DEFAULT_MAX_INTERVAL, DEFAULT_MAX_ELAPSED_TIME
    return (
        format_duration(defaults.initial_interval),
        format_duration(defaults.max_interval),
        format_duration(defaults.max_elapsed_time),
    )


def _bounded_elapsed_time(values: Mapping[str, Any]) -> Iterator[str]:
    elapsed = values.get(MAX_ELAPSED_TIME_FIELD)
    if elapsed is None:
        return
    if parse_duration(elapsed) == timedelta(0):
        yield (
            f"{MAX_ELAPSED_TIME_FIELD} must be greater than zero, "
            "unbounded retries are not allowed for this field"
        )


bounded_elapsed_time_rule = LintRule(BOUNDED_ELAPSED_TIME_RULE, _bounded_elapsed_time)


def _interval_fields(
    allow_unbounded: bool, defaults: Optional[ExponentialBackoff]
) -> Tuple[FieldSpec, FieldSpec, FieldSpec]:
    init_default, max_default, max_elapsed_default = resolve_backoff_defaults(defaults)

    max_elapsed_time = (
        new_duration_field(MAX_ELAPSED_TIME_FIELD)
        .with_description(
            "The maximum overall period of time to spend on retry attempts before the request is aborted."
        )
        .with_default(max_elapsed_default)
        .with_examples("1m", "1h")
    )
    if allow_unbounded:
        max_elapsed_time = max_elapsed_time.append_description(UNBOUNDED_NOTE)

    return (
        new_duration_field(INITIAL_INTERVAL_FIELD)
        .with_description("The initial period to wait between retry attempts.")
        .with_default(init_default)
        .with_examples("50ms", "1s"),
        new_duration_field(MAX_INTERVAL_FIELD)
        .with_description("The maximum period to wait between retry attempts")
        .with_default(max_default)
        .with_examples("5s", "1m"),
        max_elapsed_time,
    )


def _assemble(name: str, allow_unbounded: bool, children: Tuple[FieldSpec, ...]) -> FieldSpec:
    spec = new_object_field(name, *children).with_description(BACKOFF_DESCRIPTION)
    if not allow_unbounded:
        spec = spec.with_lint_rule(bounded_elapsed_time_rule)
    LOGGER.debug(
        "Declared backoff field %s (allow_unbounded=%s, children=%s)",
        name,
        allow_unbounded,
        spec.child_names(),
    )
    return spec


def new_backoff_field(
    name: str,
    allow_unbounded: bool,
    defaults: Optional[ExponentialBackoff] = None,
) -> FieldSpec:
    """Declare an object field describing an exponential backoff policy.

    Extract the policy from a parsed config with
    :meth:`ParsedConfig.field_backoff`.

    A policy can have no upper bound (a zero ``max_elapsed_time``). Where that
    would be a problem pass ``allow_unbounded=False``; the field then carries a
    lint rule that rejects a zero ``max_elapsed_time``. With
    ``allow_unbounded=True`` the escape hatch is documented in the field
    description instead.

    Args:
        name: Name of the object field within its parent.
        allow_unbounded: Whether a zero ``max_elapsed_time`` is acceptable.
        defaults: Optional template whose intervals become the declared
            defaults.

    Returns:
        Object field with ``initial_interval``, ``max_interval`` and
        ``max_elapsed_time`` children.
    """
    return _assemble(name, allow_unbounded, _interval_fields(allow_unbounded, defaults))


def new_backoff_toggled_field(
    name: str,
    allow_unbounded: bool,
    defaults: Optional[ExponentialBackoff] = None,
) -> FieldSpec:
    """Declare a backoff object field preceded by an ``enabled`` flag (default ``False``).

    Extract it with :meth:`ParsedConfig.field_backoff_toggled`. Arguments match
    :func:`new_backoff_field`.
    """
    enabled = (
        new_bool_field(ENABLED_FIELD)
        .with_description("Whether retries should be enabled.")
        .with_default(False)
    )
    return _assemble(
        name, allow_unbounded, (enabled,) + _interval_fields(allow_unbounded, defaults)
    )


def field_backoff(parsed: "ParsedConfig", *path: str) -> ExponentialBackoff:
    """Read a backoff policy declared with :func:`new_backoff_field` at ``path``.

    Fields are read in order ``initial_interval``, ``max_interval``,
    ``max_elapsed_time``; the first accessor error propagates unchanged and no
    further fields are read.
    """
    policy = ExponentialBackoff()
    policy.initial_interval = parsed.field_duration(*path, INITIAL_INTERVAL_FIELD)
    policy.max_interval = parsed.field_duration(*path, MAX_INTERVAL_FIELD)
    policy.max_elapsed_time = parsed.field_duration(*path, MAX_ELAPSED_TIME_FIELD)
    LOGGER.debug("Resolved backoff policy at %s: %s", ".".join(path), policy.as_dict())
    return policy


def field_backoff_toggled(parsed: "ParsedConfig", *path: str) -> Tuple[ExponentialBackoff, bool]:
    """Read a backoff policy declared with :func:`new_backoff_toggled_field`.

    ``enabled`` is read first, then the three intervals as in
    :func:`field_backoff`.

    Returns:
        The policy and whether retries are explicitly enabled.
    """
    policy = ExponentialBackoff()
    enabled = parsed.field_bool(*path, ENABLED_FIELD)
    policy.initial_interval = parsed.field_duration(*path, INITIAL_INTERVAL_FIELD)
    policy.max_interval = parsed.field_duration(*path, MAX_INTERVAL_FIELD)
    policy.max_elapsed_time = parsed.field_duration(*path, MAX_ELAPSED_TIME_FIELD)
    LOGGER.debug(
        "Resolved toggled backoff policy at %s: enabled=%s %s",
        ".".join(path),
        enabled,
        policy.as_dict(),
    )
    return policy, enabled


__all__ = [
    "BACKOFF_DESCRIPTION",
    "BOUNDED_ELAPSED_TIME_RULE",
    "DEFAULT_INITIAL_INTERVAL",
    "DEFAULT_MAX_ELAPSED_TIME",
    "DEFAULT_MAX_INTERVAL",
    "ENABLED_FIELD",
    "INITIAL_INTERVAL_FIELD",
    "MAX_ELAPSED_TIME_FIELD",
    "MAX_INTERVAL_FIELD",
    "UNBOUNDED_NOTE",
    "ExponentialBackoff",
    "RandomizedExponentialWait",
    "bounded_elapsed_time_rule",
    "field_backoff",
    "field_backoff_toggled",
    "new_backoff_field",
    "new_backoff_toggled_field",
    "resolve_backoff_defaults",
]
