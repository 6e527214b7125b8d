"""Helpers shared by CLI commands."""

import logging
from pathlib import Path
from typing import NoReturn

import click

from timepod.core import AppContext
from timepod.exceptions import ConfigurationError, format_error_for_display
from timepod.models import AppConfig

logger = logging.getLogger(__name__)


def load_config(ctx: click.Context) -> AppConfig:
    """Load the config file selected by the root ``--config`` option."""
    config_path: Path | None = ctx.obj.get("config_path") if ctx.obj else None
    return AppConfig.load_or_default(config_path)


def get_app(ctx: click.Context) -> AppContext:
    """
    Build the AppContext once per invocation.

    The context (and its MIDI ports) is closed when the command finishes.
    """
    root = ctx.find_root()
    root.ensure_object(dict)
    app = root.obj.get("app")
    if app is None:
        try:
            config = load_config(ctx)
        except ConfigurationError as e:
            fail(ctx, e)
        app = AppContext(config)
        root.obj["app"] = app
        root.call_on_close(app.close)
    return app


def echo_error(message: str) -> None:
    click.echo(f"ERROR: {message}", err=True)


def fail(ctx: click.Context, error: Exception) -> NoReturn:
    """Show an error without a traceback and exit with status 1."""
    logger.error(f"Command failed: {error}", exc_info=error)
    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)
    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    root_obj = ctx.find_root().obj or {}
    log_path = root_obj.get("log_path")
    if log_path:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
    ctx.exit(1)


class ProgressBar:
    """Feeds fractional progress (0-1) into a click progress bar."""

    STEPS = 1000

    def __init__(self, bar):
        self._bar = bar
        self._position = 0

    def __call__(self, fraction: float) -> None:
        target = int(max(0.0, min(1.0, fraction)) * self.STEPS)
        if target > self._position:
            self._bar.update(target - self._position)
            self._position = target
