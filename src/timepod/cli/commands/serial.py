"""Serial port command implementations."""

import click

from timepod.cli.common import get_app


@click.group(name="serial")
def serial_group():
    """Serial port commands."""
    pass


@serial_group.command(name="list")
@click.pass_context
def list_serial(ctx):
    """List serial ports, marking ones that look like the TP-001 bootloader."""
    app = get_app(ctx)
    ports = app.list_serial_ports()
    bootloader = app.discovery.find_bootloader_port(ports)

    click.echo("Serial Ports:\n")
    if not ports:
        click.echo("  No serial ports found.")
        return

    for port in ports:
        marker = "  [Bootloader]" if bootloader is not None and port.path == bootloader.path else ""
        click.echo(f"  {port.path}{marker}")
        click.echo(f"    Description: {port.description or '-'}")
        if port.manufacturer:
            click.echo(f"    Manufacturer: {port.manufacturer}")
        if port.vendor_id is not None:
            click.echo(f"    USB ID: {port.usb_id}")
