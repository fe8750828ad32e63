"""Battery watchdog CLI application.

This module provides the command-line interface for the battery
watchdog: running the monitor, inspecting the battery, verifying the
suspend method, and viewing or changing the settings file.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Final

import typer
import yaml

from batwatch.common.enums import SuspendMethod
from batwatch.controller import MonitorContext
from batwatch.display.notify import DesktopNotifier, LogPresenter
from batwatch.errors import ConfigError, PersistenceError
from batwatch.settings import MonitorSettings, default_config_path
from batwatch.settings.user import parse_config_lines

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="Battery watchdog CLI", add_completion=False)
config_app = typer.Typer(help="Config helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)  # Will be "batwatch.cli"

# Options shared by the commands
CONFIG_OPTION = typer.Option(None, "--config", "-c", dir_okay=False, help="Settings file")
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
NO_NOTIFY_OPTION = typer.Option(
    False, "--no-notify", help="Log alerts only, without desktop notifications"
)
YES_OPTION = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")
DELAY_OPTION = typer.Option(3, "--delay", min=0, help="Seconds to wait before suspending")


def _context(config: Path | None, debug: bool = False, notify: bool = True) -> MonitorContext:
    ctx = MonitorContext(config_path=config, presenters=[], debug=debug)
    ctx.presenters.append(LogPresenter(lambda: ctx.settings))
    if notify:
        ctx.presenters.append(DesktopNotifier())
    return ctx


@app.command()
def run(
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
    no_notify: bool = NO_NOTIFY_OPTION,
) -> None:
    """Monitor the battery until interrupted."""
    ctx = _context(config, debug, notify=not no_notify)
    code = ctx.run()
    if code:
        typer.secho(
            "No battery detected! This monitor is for devices with batteries.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=code)


@app.command()
def status(config: Path | None = CONFIG_OPTION, debug: bool = DEBUG_OPTION) -> None:
    """Show the current battery reading and settings."""
    ctx = _context(config, debug, notify=False)
    typer.echo(ctx.status_text())


@app.command()
def methods(config: Path | None = CONFIG_OPTION) -> None:
    """List the suspend methods in fallback order."""
    settings = MonitorSettings.load(config)
    for method in SuspendMethod:
        marker = "*" if method is settings.suspend_method else " "
        typer.echo(f"{marker} {int(method)}  {method.label}")


@app.command("test-suspend")
def test_suspend(
    config: Path | None = CONFIG_OPTION,
    yes: bool = YES_OPTION,
    delay: int = DELAY_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Suspend now with the configured method, without fallbacks."""
    ctx = _context(config, debug)
    method = ctx.settings.suspend_method
    if not yes:
        typer.confirm(
            f"This will test {method.label}.\nYour system will suspend immediately! Proceed?",
            abort=True,
        )

    typer.echo(f"System will suspend in {delay} seconds...")
    time.sleep(delay)
    attempt = ctx.test_suspend()
    if not attempt.ok:
        typer.secho(
            f"Suspend via {method.label} failed ({attempt.exit_indicator})",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    typer.echo(f"Suspend via {method.label} succeeded")


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("path")
def config_path() -> None:
    """Print the default settings file location."""
    typer.echo(str(default_config_path()))


@config_app.command("show")
def show_config(config: Path | None = CONFIG_OPTION) -> None:
    """Print the effective settings as YAML."""
    settings = MonitorSettings.load(config)
    typer.echo(yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False), nl=False)


@config_app.command("validate")
def validate_config(file: Path):
    """Check a settings file, reporting fields that would fall back to defaults."""
    if not file.exists():
        typer.secho(f"{file} does not exist", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    raw = parse_config_lines(file.read_text(encoding="utf-8"))
    settings, rejected = MonitorSettings.validate_mapping(raw)
    effective = settings.model_dump(mode="json")

    for key in raw:
        if key not in effective:
            typer.secho(f"  • {key} - unknown key, ignored", fg=typer.colors.YELLOW, err=True)
    for key, value in rejected.items():
        typer.secho(
            f"  • {key}={value} - invalid, default {effective[key]} used",
            fg=typer.colors.RED,
            err=True,
        )
    if rejected:
        raise typer.Exit(code=1)
    typer.echo("✅ Config valid")


@config_app.command("set")
def set_config(
    key: str,
    value: str,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Change one setting and save the file."""
    path = config or default_config_path()
    settings = MonitorSettings.load(path)
    try:
        new = settings.updated(**{key: value})
        new.save(path)
    except (ConfigError, PersistenceError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"{key} updated in {path}", fg=typer.colors.GREEN)
    typer.echo("A running monitor picks this up on SIGHUP (pkill -HUP -f 'batwatch run')")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)


# ───────────────────────── module entrypoint ────────────────────────────────
if __name__ == "__main__":
    main()
