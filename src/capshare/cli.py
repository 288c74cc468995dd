"""capshare Command Line Interface.

Entry point for the capshare CLI tool.
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path

import typer
from pydantic import ValidationError

from capshare import __version__
from capshare.core.config import CapshareSettings, load_settings
from capshare.core.config_store import JsonConfigStore
from capshare.core.host import ConsoleHost
from capshare.core.logging import configure_logging
from capshare.plugins.errors import ConfigStoreError
from capshare.plugins.manager import ShareServiceManager
from capshare.plugins.service import ShareService

app = typer.Typer(
    name="capshare",
    help="capshare: share exported screen captures through plugins.",
    no_args_is_help=True,
)

# Exit codes for `capshare export`
EXIT_FAILED = 1
EXIT_INVALID_CONFIG = 2
EXIT_CANCELED = 3


@dataclass(frozen=True)
class CliState:
    """Settings resolved by the top-level callback."""

    settings: CapshareSettings
    open_config: bool


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"capshare version {__version__}")
        raise typer.Exit()


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
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    open_config: bool = typer.Option(
        True,
        "--open/--no-open",
        help="Open an invalid plugin config in the default editor.",
    ),
) -> None:
    """capshare: share exported screen captures through plugins."""
    try:
        config = load_settings(Path(settings) if settings else None)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    configure_logging(config.log_level, json_output=config.log_format == "json")
    ctx.obj = CliState(settings=config, open_config=open_config)


def _build_manager(state: CliState) -> ShareServiceManager:
    settings = state.settings
    manager = ShareServiceManager(
        host=ConsoleHost(launch=state.open_config),
        config_store=JsonConfigStore(settings.resolved_config_dir),
        start_export_delay=settings.start_export_delay_seconds,
    )
    manager.register_builtin_plugins()
    if settings.load_entrypoints:
        manager.load_entrypoints()

    for name, error in manager.failures.items():
        typer.echo(f"Warning: plugin '{name}' was not registered: {error}", err=True)
    return manager


def _get_service(state: CliState, name: str) -> ShareService:
    service = _build_manager(state).get_service(name)
    if service is None:
        typer.echo(f"Error: Unknown plugin '{name}'.", err=True)
        raise typer.Exit(1)
    return service


# Plugins subcommand group
plugins_app = typer.Typer(help="Plugin management commands.")
app.add_typer(plugins_app, name="plugins")


@plugins_app.command("list")
def plugins_list(
    ctx: typer.Context,
    export_format: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Only show plugins accepting this export format.",
    ),
) -> None:
    """List registered share services."""
    manager = _build_manager(ctx.obj)
    services = (
        manager.get_services_for_format(export_format)
        if export_format
        else manager.get_services()
    )

    if not services:
        typer.echo("(none available)")
        return

    for service in sorted(services, key=lambda s: s.plugin_name):
        formats = ", ".join(sorted(service.formats))
        typer.echo(f"  {service.plugin_name:16} - {service.title} [{formats}]")


# Config subcommand group
config_app = typer.Typer(help="Inspect and validate plugin configs.")
app.add_typer(config_app, name="config")


@config_app.command("path")
def config_path(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Plugin name."),
) -> None:
    """Print where a plugin's config is stored."""
    typer.echo(str(_get_service(ctx.obj, name).config.path))


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Plugin name."),
    schema: bool = typer.Option(
        False,
        "--schema",
        help="Show the config schema instead of the stored values.",
    ),
) -> None:
    """Print a plugin's stored config (or its schema) as JSON."""
    service = _get_service(ctx.obj, name)
    if schema:
        typer.echo(json.dumps(service.schema.json_schema(), indent=2, default=str))
        return

    try:
        stored = service.config.read()
    except ConfigStoreError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    typer.echo(json.dumps(stored, indent=2, sort_keys=True, default=str))


@config_app.command("validate")
def config_validate(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Plugin name."),
) -> None:
    """Validate a plugin's stored config against its schema."""
    service = _get_service(ctx.obj, name)
    issues = service.validate_config()
    if issues:
        typer.echo(f"Config errors for {name} ({service.config.path}):", err=True)
        for issue in issues:
            typer.echo(f"  - {issue}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Config valid: {name}")


@app.command()
def export(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Plugin name."),
    file_path: Path = typer.Argument(..., help="Rendered export file."),
    export_format: str = typer.Option(
        ...,
        "--format",
        "-f",
        help="Export format (gif, mp4, webm, apng, ...).",
    ),
    file_name: str | None = typer.Option(
        None,
        "--file-name",
        help="Name for the shared file.",
    ),
    width: int | None = typer.Option(None, "--width", help="Output width."),
    height: int | None = typer.Option(None, "--height", help="Output height."),
    fps: int | None = typer.Option(None, "--fps", help="Frames per second."),
    loop: bool = typer.Option(True, "--loop/--no-loop", help="Loop the animation."),
) -> None:
    """Run one export through a share service."""
    service = _get_service(ctx.obj, name)
    if not service.supports(export_format):
        typer.echo(
            f"Error: Plugin '{name}' does not accept format '{export_format}'. "
            f"Supported: {', '.join(sorted(service.formats))}",
            err=True,
        )
        raise typer.Exit(1)

    options = {
        "format": export_format,
        "file_path": str(file_path),
        "file_name": file_name,
        "width": width,
        "height": height,
        "fps": fps,
        "loop": loop,
    }
    context = asyncio.run(service.run(options))

    if context is None:
        raise typer.Exit(EXIT_INVALID_CONFIG)
    if context.error is not None:
        raise typer.Exit(EXIT_FAILED)
    if context.canceled:
        typer.echo("Export canceled.")
        raise typer.Exit(EXIT_CANCELED)
    typer.echo(f"Export completed: {service.title}")


if __name__ == "__main__":
    app()
