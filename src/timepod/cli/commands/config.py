"""Configuration file commands."""

import click

from timepod.cli.common import fail, load_config
from timepod.exceptions import ConfigurationError
from timepod.models import AppConfig
from timepod.models.config import DEFAULT_CONFIG_PATH


@click.group(name="config")
def config_group():
    """Show or reset the configuration file."""
    pass


def _config_path(ctx):
    return ctx.find_root().obj.get("config_path") or DEFAULT_CONFIG_PATH


@config_group.command(name="show")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as JSON."""
    try:
        config = load_config(ctx)
    except ConfigurationError as e:
        fail(ctx, e)
    click.echo(config.model_dump_json(indent=2))


@config_group.command(name="path")
@click.pass_context
def config_path(ctx):
    """Print the configuration file location."""
    click.echo(str(_config_path(ctx)))


@config_group.command(name="reset")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def reset_config(ctx, yes: bool):
    """Overwrite the configuration file with defaults."""
    path = _config_path(ctx)
    if not yes:
        click.confirm(f"Reset {path} to defaults?", abort=True)
    AppConfig().save(path)
    click.echo(f"Wrote default configuration to {path}")
