"""Firmware download and flashing commands."""

import logging
from pathlib import Path

import click

from timepod.cli.common import ProgressBar, fail, get_app
from timepod.exceptions import TimepodError

logger = logging.getLogger(__name__)


@click.group(name="firmware")
def firmware_group():
    """Download and flash TP-001 firmware."""
    pass


def _download(app, url: str | None) -> bytes:
    with click.progressbar(length=ProgressBar.STEPS, label="Downloading") as bar:
        image = app.firmware.download_firmware(url, ProgressBar(bar))
    click.echo(f"Downloaded {len(image)} bytes")
    return image


@firmware_group.command(name="download")
@click.argument("url", required=False)
@click.option(
    "-o", "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("timepod.bin"),
    show_default=True,
    help="Where to write the image",
)
@click.pass_context
def download_firmware(ctx, url: str | None, output_path: Path):
    """Download a firmware image (default: the configured firmware URL)."""
    app = get_app(ctx)
    try:
        image = _download(app, url)
    except TimepodError as e:
        fail(ctx, e)
    output_path.write_bytes(image)
    click.echo(f"Saved to {output_path}")


@firmware_group.command(name="flash")
@click.option(
    "--file", "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Flash a local image instead of downloading",
)
@click.option("--url", default=None, help="Download the image from this URL")
@click.option("--output", "output_name", default=None, help="MIDI output of the device (default: auto-detect)")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def flash_firmware(ctx, file_path: Path | None, url: str | None, output_name: str | None, yes: bool):
    """
    Reboot the controller into its bootloader and flash new firmware.

    \b
    Steps:
      1. Download the image (or read --file)
      2. Send the bootloader request over MIDI
      3. Wait for the bootloader's serial port
      4. Upload the image
    """
    if file_path and url:
        raise click.UsageError("Use either --file or --url, not both")

    app = get_app(ctx)
    try:
        image = file_path.read_bytes() if file_path else _download(app, url)

        output_name = output_name or app.config.midi_output or app.discovery.find_primary_output()
        if output_name is None:
            click.echo("No TP-001 MIDI output found. Is the controller connected?", err=True)
            ctx.exit(1)

        if not yes:
            click.confirm(
                f"Flash {len(image)} bytes to the controller on {output_name}? "
                "Do not unplug it until the upload finishes.",
                abort=True,
            )

        with click.progressbar(length=ProgressBar.STEPS, label="Flashing") as bar:
            app.firmware.upload_firmware(output_name, image, ProgressBar(bar))
    except TimepodError as e:
        fail(ctx, e)

    click.echo("Firmware updated.")
