"""CLI commands for timepod."""

from .config import config_group
from .device import device_group
from .firmware import firmware_group
from .midi import midi_group
from .serial import serial_group

__all__ = ["config_group", "device_group", "firmware_group", "midi_group", "serial_group"]
