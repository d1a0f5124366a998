"""CLI commands for backoff configuration inspection and validation.

Provides commands to:
- Export the JSON Schema of a backoff section
- Show a backoff section's default values
- Validate a backoff section inside a YAML/JSON file and print the resolved policy
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, List

import typer

from .backoff import new_backoff_field, new_backoff_toggled_field
from .errors import ConfigParseError, ConfigSpecError, format_path
from .loader import read_config_file, section_at
from .logging_utils import setup_logging
from .spec import ConfigSpec

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    help="Inspect and validate exponential backoff configuration sections.",
    no_args_is_help=True,
)

ToggledOption = Annotated[
    bool,
    typer.Option("--toggled/--no-toggled", help="Include the `enabled` flag (default false)."),
]
AllowUnboundedOption = Annotated[
    bool,
    typer.Option(
        "--allow-unbounded/--no-allow-unbounded",
        help="Accept a zero max_elapsed_time (unbounded retries).",
    ),
]


def _backoff_spec(name: str, toggled: bool, allow_unbounded: bool) -> ConfigSpec:
    factory = new_backoff_toggled_field if toggled else new_backoff_field
    return ConfigSpec(factory(name, allow_unbounded))


def _split_path(path: str) -> List[str]:
    segments = [segment for segment in path.split(".") if segment]
    if not segments:
        raise typer.BadParameter("path must name at least one field", param_hint="--path")
    return segments


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
    ] = "WARNING",
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs/--no-json-logs", help="Emit logs as JSON lines."),
    ] = False,
) -> None:
    """Exponential backoff configuration tooling."""
    setup_logging(log_level, json_lines=json_logs)


@app.command("backoff-schema")
def backoff_schema(
    name: Annotated[str, typer.Option("--name", help="Field name of the backoff section.")] = "backoff",
    toggled: ToggledOption = False,
    allow_unbounded: AllowUnboundedOption = False,
) -> None:
    """
    Print the JSON Schema of a config holding a single backoff section.

    Example:
        configspec backoff-schema --name retry --toggled
    """
    spec = _backoff_spec(name, toggled, allow_unbounded)
    typer.echo(json.dumps(spec.json_schema(), indent=2))


@app.command("backoff-defaults")
def backoff_defaults(
    toggled: ToggledOption = False,
) -> None:
    """Print the default values of a backoff section."""
    spec = _backoff_spec("backoff", toggled, allow_unbounded=True)
    typer.echo(json.dumps(spec.defaults()["backoff"], indent=2))


@app.command("backoff-check")
def backoff_check(
    config: Annotated[
        Path,
        typer.Argument(help="Config file (YAML/JSON) containing the backoff section."),
    ],
    path: Annotated[
        str,
        typer.Option("--path", "-p", help="Dotted path of the backoff section, e.g. output.retry."),
    ] = "backoff",
    toggled: ToggledOption = False,
    allow_unbounded: AllowUnboundedOption = False,
) -> None:
    """
    Validate a backoff section and print the resolved policy.

    Exit code 0 if valid, 1 if the file or section is invalid.

    Example:
        configspec backoff-check config.yaml --path output.retry --toggled
    """
    segments = _split_path(path)
    name = segments[-1]
    spec = _backoff_spec(name, toggled, allow_unbounded)

    try:
        section = section_at(read_config_file(config), segments)
        parsed = spec.parse({name: section})
        if toggled:
            policy, enabled = parsed.field_backoff_toggled(name)
        else:
            policy, enabled = parsed.field_backoff(name), True
    except ConfigParseError as e:
        typer.secho("❌ Backoff section is invalid:", fg="red", err=True)
        for issue in e.issues:
            location = format_path(tuple(segments[:-1]) + issue.path)
            typer.secho(f"   {location}: {issue.message}", fg="red", err=True)
        raise typer.Exit(1)
    except ConfigSpecError as e:
        typer.secho(f"❌ {e}", fg="red", err=True)
        raise typer.Exit(1)

    LOGGER.info("Resolved backoff policy at %s", path)
    output = {"path": path, "enabled": enabled, "unbounded": policy.unbounded, **policy.as_dict()}
    typer.echo(json.dumps(output, indent=2))


__all__ = ["app", "backoff_check", "backoff_defaults", "backoff_schema", "main"]
