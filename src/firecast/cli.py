# src/firecast/cli.py
"""Firecast Command Line Interface.

Entry point for the firecast CLI tool.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from firecast import __version__
from firecast.cli_formatters import create_console_formatters, create_json_formatters, subscribe_formatters
from firecast.contracts.enums import InitState
from firecast.contracts.models import PredictionInput
from firecast.core.config import FirecastSettings, load_settings
from firecast.services import get_initializer

if TYPE_CHECKING:
    from firecast.contracts.models import PredictionResult
    from firecast.engine.orchestrator import ModelInitializer

__all__ = [
    "app",
]

app = typer.Typer(
    name="firecast",
    help="Firecast: wildfire model initialization and prediction.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"firecast version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    # Searches current dir and parents; existing env vars win
    return load_dotenv(override=False)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence checked in _load_dotenv for a better message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Firecast: wildfire model initialization and prediction."""
    from firecast.core.logging import configure_logging

    # Before any subcommand runs; settings may raise the level later
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_settings_or_exit(settings: str | None) -> FirecastSettings:
    settings_path = Path(settings).expanduser() if settings else None
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _apply_overrides(ctx: typer.Context, config: FirecastSettings, *, no_workers: bool) -> FirecastSettings:
    from firecast.core.logging import configure_logging

    options = ctx.obj or {}
    if not options.get("verbose"):
        configure_logging(
            json_output=options.get("json_logs", False) or config.logging.json_output,
            level=config.logging.level,
        )
    if no_workers:
        config = config.model_copy(update={"workers": config.workers.model_copy(update={"enabled": False})})
    return config


@app.command()
def init(
    ctx: typer.Context,
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    priority: list[str] | None = typer.Option(
        None,
        "--priority",
        "-p",
        help="Critical model to load first (repeatable). Replaces the configured critical list.",
    ),
    no_workers: bool = typer.Option(
        False,
        "--no-workers",
        help="Disable background execution contexts and use the in-process fallback.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Initialize all models and report progress.

    Exits 1 only when initialization itself failed; individual model or
    background failures are reported but still exit 0.
    """
    config = _apply_overrides(ctx, _load_settings_or_exit(settings), no_workers=no_workers)
    initializer = get_initializer(config)

    formatters = create_json_formatters() if output_format == "json" else create_console_formatters()
    subscriptions = subscribe_formatters(initializer.event_bus, formatters)
    try:
        status = asyncio.run(initializer.initialize_all_models(tuple(priority or ())))
    finally:
        for subscription in subscriptions:
            subscription.unsubscribe()

    if output_format == "console" and status.errors:
        typer.echo("Errors:", err=True)
        for message in status.errors:
            typer.echo(f"  - {message}", err=True)
    if initializer.state is InitState.FAILED_BUT_READY:
        raise typer.Exit(1)


def _read_inputs(input_json: Path) -> list[PredictionInput]:
    try:
        raw: Any = json.loads(input_json.read_text(encoding="utf-8"))
    except FileNotFoundError:
        typer.echo(f"Error: Input file not found: {input_json}", err=True)
        raise typer.Exit(1) from None
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON in {input_json}: {e}", err=True)
        raise typer.Exit(1) from None

    items = raw if isinstance(raw, list) else [raw]
    try:
        return [PredictionInput.model_validate(item) for item in items]
    except ValidationError as e:
        typer.echo("Invalid prediction input:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


async def _initialize_and_predict(
    initializer: ModelInitializer, inputs: list[PredictionInput]
) -> list[PredictionResult]:
    await initializer.initialize_all_models()
    return await initializer.batch_predict(inputs)


@app.command()
def predict(
    ctx: typer.Context,
    input_json: Path = typer.Argument(
        ...,
        help="JSON file holding one prediction input object or a list of them.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    no_workers: bool = typer.Option(
        False,
        "--no-workers",
        help="Disable background execution contexts and use the in-process fallback.",
    ),
) -> None:
    """Initialize the models, then predict fire risk for each input.

    Results are printed to stdout as a JSON list in input order.
    """
    inputs = _read_inputs(input_json)
    config = _apply_overrides(ctx, _load_settings_or_exit(settings), no_workers=no_workers)
    initializer = get_initializer(config)

    results = asyncio.run(_initialize_and_predict(initializer, inputs))
    typer.echo(json.dumps([result.to_dict() for result in results], indent=2))


@app.command("config")
def show_config(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    output_format: Literal["yaml", "json"] = typer.Option(
        "yaml",
        "--format",
        "-f",
        help="Output format: yaml or json.",
    ),
) -> None:
    """Show the effective configuration.

    Displays defaults merged with the settings file and FIRECAST_* environment variables.
    """
    config_dict = _load_settings_or_exit(settings).model_dump(mode="json")
    if output_format == "json":
        typer.echo(json.dumps(config_dict, indent=2))
    else:
        typer.echo(yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False))


if __name__ == "__main__":
    app()
