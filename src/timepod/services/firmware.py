"""Firmware update session: download, reboot to bootloader, find port, flash."""

import logging
import threading
from collections.abc import Callable

from timepod.devices.discovery import DeviceDiscovery
from timepod.exceptions import ErrorContext, FirmwareImageError, UploadInProgressError
from timepod.firmware.bootloader import BootloaderTrigger
from timepod.firmware.fetcher import FirmwareFetcher
from timepod.firmware.uploader import Avr109Uploader
from timepod.models.config import DiscoverySettings, DownloadSettings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class FirmwareService:
    """
    Sequences a firmware update.

    ``upload_firmware`` runs Trigger -> re-Discovery -> Uploader. Only one
    upload may run at a time: the session lock is taken without blocking, so
    a concurrent request fails immediately with ``UploadInProgressError``
    and never touches a serial port. There is no cancellation; a session
    always runs to EXIT or to a fatal error.
    """

    def __init__(
        self,
        trigger: BootloaderTrigger,
        discovery: DeviceDiscovery,
        uploader: Avr109Uploader,
        fetcher: FirmwareFetcher,
        discovery_settings: DiscoverySettings | None = None,
        download_settings: DownloadSettings | None = None,
    ):
        self._trigger = trigger
        self._discovery = discovery
        self._uploader = uploader
        self._fetcher = fetcher
        self.discovery_settings = discovery_settings or DiscoverySettings()
        self.download_settings = download_settings or DownloadSettings()
        self._session_lock = threading.Lock()
        self._image: bytes | None = None

    @property
    def is_uploading(self) -> bool:
        return self._session_lock.locked()

    @property
    def image(self) -> bytes | None:
        """Last downloaded firmware image."""
        return self._image

    def download_firmware(self, url: str | None = None, on_progress: ProgressCallback | None = None) -> bytes:
        """
        Download a firmware image and keep it for ``upload_firmware``.

        Args:
            url: Firmware URL (defaults to the configured one)
            on_progress: Optional progress callback

        Raises:
            DownloadError: On HTTP or network failure
        """
        url = url or self.download_settings.firmware_url
        with ErrorContext(f"download firmware from {url}", logger_instance=logger):
            image = self._fetcher.fetch(url, on_progress)
        if not image:
            raise FirmwareImageError(f"Downloaded firmware from {url} is empty")
        self._image = image
        return image

    def upload_firmware(
        self,
        output_name: str | None,
        image: bytes | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> bool:
        """
        Flash a firmware image.

        Args:
            output_name: MIDI output of the device (None = selected output)
            image: Firmware image (defaults to the last download)
            on_progress: Optional callback; receives 0.0 first, then
                non-decreasing fractions, ending with 1.0

        Returns:
            True on success

        Raises:
            UploadInProgressError: If another upload is running
            FirmwareImageError: If there is no image to flash
            NoOutputSelectedError: If no MIDI output is available for the reset
            MidiTransportError: If the reset request cannot be sent
            DeviceNotFoundError: If the bootloader port never appears
            SerialPortError: If the bootloader port cannot be used
        """
        image = image if image is not None else self._image
        if not image:
            raise FirmwareImageError("No firmware image available; download one first")

        if not self._session_lock.acquire(blocking=False):
            logger.warning("Firmware upload requested while another upload is running")
            raise UploadInProgressError()

        try:
            report = _clamped_progress(on_progress)
            with ErrorContext("flash firmware", logger_instance=logger):
                report(0.0)
                self._trigger.trigger(output_name)
                port = self._discovery.wait_for_bootloader_port(
                    attempts=self.discovery_settings.poll_attempts,
                    interval=self.discovery_settings.poll_interval,
                )
                self._uploader.upload(port.path, image, report)
                report(1.0)
            logger.info("Firmware update finished")
            return True
        finally:
            self._session_lock.release()


def _clamped_progress(callback: ProgressCallback | None) -> ProgressCallback:
    """Wrap a callback so it sees values in [0, 1] that never go down."""
    last = -1.0

    def report(fraction: float) -> None:
        nonlocal last
        fraction = max(0.0, min(1.0, fraction))
        if fraction <= last:
            return
        last = fraction
        if callback:
            callback(fraction)

    return report
