# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.durations",
#   "purpose": "Duration literal parsing and canonical formatting.",
#   "sections": [
#     {
#       "id": "parse-duration",
#       "name": "parse_duration",
#       "anchor": "function-parse-duration",
#       "kind": "function"
#     },
#     {
#       "id": "format-duration",
#       "name": "format_duration",
#       "anchor": "function-format-duration",
#       "kind": "function"
#     },
#     {
#       "id": "duration",
#       "name": "Duration",
#       "anchor": "type-duration",
#       "kind": "type"
#     }
#   ]
# }
# === /NAVMAP ===

"""Duration literal parsing and canonical formatting.

Durations are written in configs as sequences of ``<number><unit>`` terms,
for example ``500ms``, ``10s``, ``1m30s`` or ``1.5h``. Supported units are
``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``. Values resolve to
:class:`datetime.timedelta`, so anything finer than a microsecond is truncated.

:func:`format_duration` renders the canonical form used for declared defaults,
which always parses back to the same value.
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer, WithJsonSchema

from .errors import DurationParseError

_UNIT_MICROSECONDS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_TERM = re.compile(r"(?P<amount>\d+(?:\.\d*)?|\.\d+)(?P<unit>ns|us|µs|μs|ms|s|m|h)")

_MICROS_PER_MS = 1_000
_MICROS_PER_SECOND = 1_000_000
_MICROS_PER_MINUTE = 60 * _MICROS_PER_SECOND
_MICROS_PER_HOUR = 60 * _MICROS_PER_MINUTE


def parse_duration(value: Any) -> timedelta:
    """Parse a duration literal into a :class:`timedelta`.

    Args:
        value: A ``timedelta`` (returned unchanged) or a string such as
            ``"500ms"``, ``"1m30s"`` or ``"-2h"``.

    Returns:
        The parsed duration.

    Raises:
        DurationParseError: If ``value`` is not a string or is not a valid
            sequence of ``<number><unit>`` terms.

    Examples:
        >>> parse_duration("1m30s")
        datetime.timedelta(seconds=90)
    """
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, str):
        raise DurationParseError(
            f"expected a duration string such as '500ms', got {type(value).__name__}"
        )

    text = value.strip()
    if not text:
        raise DurationParseError("duration cannot be empty")

    sign = 1
    body = text
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise DurationParseError(f"invalid duration '{value}'")

    total = Decimal(0)
    position = 0
    while position < len(body):
        match = _TERM.match(body, position)
        if match is None:
            raise DurationParseError(
                f"invalid duration '{value}'. Use formats like 500ms, 10s, or 1m30s."
            )
        try:
            amount = Decimal(match.group("amount"))
        except InvalidOperation as exc:
            raise DurationParseError(f"invalid duration '{value}'") from exc
        total += amount * _UNIT_MICROSECONDS[match.group("unit")]
        position = match.end()

    try:
        return timedelta(microseconds=sign * int(total))
    except OverflowError as exc:
        raise DurationParseError(f"duration '{value}' is out of range") from exc


def _micros(value: timedelta) -> int:
    return (value.days * 86_400 + value.seconds) * _MICROS_PER_SECOND + value.microseconds


def _with_fraction(value: int, scale: int) -> str:
    whole, remainder = divmod(value, scale)
    if not remainder:
        return str(whole)
    digits = str(remainder).zfill(len(str(scale)) - 1).rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """Render ``value`` in canonical duration-literal form.

    Examples:
        >>> format_duration(timedelta(milliseconds=500))
        '500ms'
        >>> format_duration(timedelta(minutes=1))
        '1m0s'
    """
    total = _micros(value)
    if total == 0:
        return "0s"

    sign = "-" if total < 0 else ""
    total = abs(total)

    if total < _MICROS_PER_MS:
        return f"{sign}{total}us"
    if total < _MICROS_PER_SECOND:
        return f"{sign}{_with_fraction(total, _MICROS_PER_MS)}ms"

    hours, remainder = divmod(total, _MICROS_PER_HOUR)
    minutes, remainder = divmod(remainder, _MICROS_PER_MINUTE)
    seconds = _with_fraction(remainder, _MICROS_PER_SECOND)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def is_duration_literal(value: Any) -> bool:
    """Return ``True`` when ``value`` is a string that parses as a duration."""
    if not isinstance(value, str):
        return False
    try:
        parse_duration(value)
    except DurationParseError:
        return False
    return True


# Pydantic field type: accepts duration literals, dumps them back as literals in JSON mode.
Duration = Annotated[
    timedelta,
    BeforeValidator(parse_duration),
    PlainSerializer(format_duration, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "format": "duration"}),
]


__all__ = [
    "Duration",
    "format_duration",
    "is_duration_literal",
    "parse_duration",
]
