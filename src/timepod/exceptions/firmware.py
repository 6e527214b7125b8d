"""Firmware-related exceptions.

This module defines exceptions for the firmware update path:
- DeviceNotFoundError: The bootloader never showed up after the reset
- FirmwareError: Base class for firmware errors
- DownloadError: The firmware image could not be downloaded
- FirmwareImageError: The firmware image is unusable
- UploadInProgressError: A second upload was requested while one is running
"""

from .base import TimepodError


class DeviceNotFoundError(TimepodError):
    """The device could not be found on any port within the polling window."""

    def __init__(self, attempts: int, interval: float):
        """
        Initialize device-not-found error.

        Args:
            attempts: Number of polling attempts made
            interval: Seconds between attempts
        """
        window = attempts * interval
        super().__init__(
            user_message="Bootloader device not found after reset.",
            technical_message=(
                f"No matching serial port after {attempts} attempts "
                f"({window:.1f}s polling window)"
            ),
            recoverable=True,
            recovery_hint=(
                "Reconnect the device and retry. "
                "Run 'timepod serial list' to check that the bootloader port appears."
            ),
        )
        self.attempts = attempts
        self.interval = interval


class FirmwareError(TimepodError):
    """Firmware download or upload failed."""
    pass


class DownloadError(FirmwareError):
    """Firmware download failed."""

    def __init__(self, url: str, status_code: int | None = None, cause: str | None = None):
        """
        Initialize download error.

        Args:
            url: URL that failed
            status_code: Final HTTP status code (if a response was received)
            cause: Underlying network error (if any)
        """
        if status_code is not None:
            user_msg = f"Failed to download firmware: {status_code}"
        else:
            user_msg = "Failed to download firmware"
            if cause:
                user_msg += f": {cause}"

        super().__init__(
            user_message=user_msg,
            technical_message=f"GET {url} failed (status={status_code}, cause={cause})",
            recoverable=True,
            recovery_hint="Check your network connection and the configured firmware URL.",
        )
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FirmwareImageError(FirmwareError):
    """The firmware image is missing or empty."""

    def __init__(self, reason: str):
        """
        Initialize firmware image error.

        Args:
            reason: Why the image cannot be used
        """
        super().__init__(
            user_message=f"Firmware image is not usable: {reason}",
            recoverable=True,
            recovery_hint="Download the firmware again before flashing.",
        )
        self.reason = reason


class UploadInProgressError(FirmwareError):
    """A firmware upload is already running."""

    def __init__(self):
        """Initialize upload-in-progress error."""
        super().__init__(
            user_message="Firmware upload already in progress",
            recoverable=True,
            recovery_hint="Wait for the current update to finish.",
        )
