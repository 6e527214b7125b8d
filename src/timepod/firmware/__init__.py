"""Firmware update path: bootloader request, download and AVR109 upload."""

from .avr109 import (
    Avr109Machine,
    Delay,
    Effect,
    Finish,
    ReportProgress,
    Send,
    UploadEvent,
    UploadSnapshot,
    UploadState,
    address_command,
    block_write_command,
)
from .bootloader import BootloaderTrigger
from .fetcher import FirmwareFetcher
from .uploader import Avr109Uploader

__all__ = [
    "Avr109Machine",
    "Avr109Uploader",
    "BootloaderTrigger",
    "Delay",
    "Effect",
    "Finish",
    "FirmwareFetcher",
    "ReportProgress",
    "Send",
    "UploadEvent",
    "UploadSnapshot",
    "UploadState",
    "address_command",
    "block_write_command",
]
