"""Device configuration commands."""

import logging
import time

import click
from pydantic import ValidationError

from timepod.cli.common import fail, get_app
from timepod.exceptions import TimepodError
from timepod.models import DeviceState

logger = logging.getLogger(__name__)


@click.group(name="device")
def device_group():
    """Read and edit the controller's configuration."""
    pass


def _connect(ctx, input_name: str | None, output_name: str | None):
    app = get_app(ctx)
    try:
        selected_input, selected_output = app.connect(input_name, output_name)
    except TimepodError as e:
        fail(ctx, e)
    if selected_output is None:
        click.echo("No TP-001 MIDI output found. Is the controller connected?", err=True)
        ctx.exit(1)
    return app, selected_input


def _echo_state(state: DeviceState) -> None:
    click.echo(f"Firmware: {state.firmware_version_string}")
    click.echo(f"Brightness: {state.brightness}")
    for index, bank in enumerate(state.banks):
        click.echo(f"\nBank {index + 1} (color {bank.color})")
        for knob_index, knob in enumerate(bank.knobs):
            if knob.use_single_color:
                colors = str(knob.color_indices[0])
            else:
                colors = ",".join(str(c) for c in knob.color_indices)
            click.echo(
                f"  Knob {knob_index + 1:2d}: ch {knob.channel:2d}  cc {knob.cc:3d}"
                f"  {knob.cc_type.value:<10}  {knob.display_mode.value:<8}  color {colors}"
            )


@device_group.command(name="sync")
@click.option("--input", "input_name", default=None, help="MIDI input (default: auto-detect)")
@click.option("--output", "output_name", default=None, help="MIDI output (default: auto-detect)")
@click.option("--wait", type=float, default=2.0, show_default=True, help="Seconds to wait for the dump")
@click.pass_context
def sync_device(ctx, input_name: str | None, output_name: str | None, wait: float):
    """Ask the controller for its full configuration and print it."""
    app, selected_input = _connect(ctx, input_name, output_name)
    if selected_input is None:
        click.echo("No TP-001 MIDI input found; cannot receive the dump.", err=True)
        ctx.exit(1)

    try:
        app.editor.request_sync()
    except TimepodError as e:
        fail(ctx, e)

    time.sleep(wait)
    _echo_state(app.editor.state)


@device_group.command(name="brightness")
@click.argument("value", type=int)
@click.option("--output", "output_name", default=None, help="MIDI output (default: auto-detect)")
@click.pass_context
def set_brightness(ctx, value: int, output_name: str | None):
    """Set LED brightness (0-127)."""
    app, _ = _connect(ctx, None, output_name)
    try:
        app.editor.set_brightness(value)
    except ValidationError as e:
        raise click.BadParameter(str(e.errors()[0]["msg"]), param_hint="VALUE") from e
    except TimepodError as e:
        fail(ctx, e)
    click.echo(f"Brightness set to {value}")
