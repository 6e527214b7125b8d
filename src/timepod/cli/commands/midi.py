"""MIDI command implementations."""

import logging
import time
from datetime import datetime

import click

from timepod.cli.common import echo_error, fail, get_app
from timepod.devices import DeviceDiscovery
from timepod.exceptions import TimepodError, handle_errors
from timepod.protocol import ConfigMessage

logger = logging.getLogger(__name__)


@click.group(name="midi")
def midi_group():
    """MIDI port commands."""
    pass


def _echo_ports(title: str, ports: list[str], discovery: DeviceDiscovery) -> None:
    click.echo(f"{title}:\n")
    if not ports:
        click.echo("  No ports found.")
        return
    for i, port in enumerate(ports):
        marker = "  [TP-001]" if discovery.matches_name(port) else ""
        click.echo(f"  [{i}] {port}{marker}")


@handle_errors(
    operation_name="list MIDI ports",
    user_notification=echo_error,
    fallback_value=[],
    re_raise=False,
)
def _list_ports(lister) -> list[str]:
    return lister()


@midi_group.command(name="list")
@click.pass_context
def list_midi(ctx):
    """List available MIDI ports, marking TP-001 ports."""
    discovery = get_app(ctx).discovery
    _echo_ports("MIDI Input Ports", _list_ports(discovery.list_midi_inputs), discovery)
    click.echo()
    _echo_ports("MIDI Output Ports", _list_ports(discovery.list_midi_outputs), discovery)


@midi_group.command(name="monitor")
@click.option("--input", "input_name", default=None, help="MIDI input to listen on (default: auto-detect)")
@click.pass_context
def monitor_midi(ctx, input_name: str | None):
    """
    Print configuration messages reported by the controller.

    Decoded TP-001 SysEx messages are shown in real time; everything else
    on the port is ignored. Press Ctrl+C to stop.
    """
    app = get_app(ctx)
    input_name = input_name or app.config.midi_input or app.discovery.find_primary_input()
    if not input_name:
        click.echo("No TP-001 MIDI input found.")
        return

    def show(message: ConfigMessage) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        click.echo(f"[{timestamp}] {message.message_type.name}: {message}")

    unsubscribe = app.configuration.dispatcher.subscribe_all(show)
    try:
        app.configuration.select_input(input_name)
    except TimepodError as e:
        unsubscribe()
        fail(ctx, e)
    click.echo(f"Monitoring {input_name}")
    click.echo("\nPress Ctrl+C to stop\n")

    try:
        while True:
            time.sleep(0.1)
    except KeyboardInterrupt:
        click.echo("\n\nStopping monitor...")
    finally:
        unsubscribe()
