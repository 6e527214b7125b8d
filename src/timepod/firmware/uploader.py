"""Drive an AVR109 session over a pyserial port."""

import logging
import time
from collections.abc import Callable

import serial

from timepod.exceptions import SerialPortError
from timepod.models.config import SerialSettings, UploadSettings

from .avr109 import (
    Avr109Machine,
    Delay,
    Effect,
    Finish,
    ReportProgress,
    Send,
    UploadEvent,
    UploadSnapshot,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class Avr109Uploader:
    """
    Flashes a firmware image through the bootloader's serial port.

    The port is opened 8N1 without flow control, owned for the whole session
    and closed on every exit path.
    """

    def __init__(
        self,
        upload_settings: UploadSettings | None = None,
        serial_settings: SerialSettings | None = None,
        serial_factory: Callable[..., serial.Serial] = serial.Serial,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize uploader.

        Args:
            upload_settings: Page size, timeouts and retry limit
            serial_settings: Baud rate and settle delay
            serial_factory: Callable creating the port (serial.Serial, or a fake in tests)
            sleep: Delay function (injectable for tests)
        """
        self.upload_settings = upload_settings or UploadSettings()
        self.serial_settings = serial_settings or SerialSettings()
        self._serial_factory = serial_factory
        self._sleep = sleep

    def upload(self, port_path: str, image: bytes, on_progress: ProgressCallback | None = None) -> bool:
        """
        Flash ``image`` through the bootloader at ``port_path``.

        Args:
            port_path: Serial device path
            image: Firmware image
            on_progress: Optional callback receiving non-decreasing fractions in [0, 1]

        Returns:
            True when the session reached EXIT

        Raises:
            FirmwareImageError: If the image is empty
            SerialPortError: If the port cannot be opened, read or written
        """
        machine = Avr109Machine(image, self.upload_settings)
        progress = _MonotonicProgress(on_progress)
        port = self._open(port_path)

        try:
            self._sleep(self.serial_settings.port_settle_delay)
            logger.info(
                f"Flashing {machine.total_bytes} bytes to {port_path} "
                f"(page size {machine.page_size})"
            )

            snapshot, effects = machine.start()
            while True:
                event = self._run_effects(port, port_path, effects, progress)
                if event is None:
                    logger.info(f"Firmware upload to {port_path} complete")
                    return True
                snapshot, effects = self._advance(machine, snapshot, event)
        finally:
            self._close(port, port_path)

    @staticmethod
    def _advance(
        machine: Avr109Machine, snapshot: UploadSnapshot, event: UploadEvent
    ) -> tuple[UploadSnapshot, list[Effect]]:
        nxt, effects = machine.step(snapshot, event)
        if nxt.state is not snapshot.state:
            if event is UploadEvent.TIMEOUT:
                logger.warning(
                    f"No response in {snapshot.state.value} after {snapshot.retries} retries, "
                    f"continuing with {nxt.state.value}"
                )
            else:
                logger.debug(f"AVR109 {snapshot.state.value} -> {nxt.state.value}")
        elif event is UploadEvent.TIMEOUT:
            logger.debug(f"Timeout in {snapshot.state.value}, retry {nxt.retries}")
        return nxt, effects

    def _run_effects(
        self,
        port: serial.Serial,
        port_path: str,
        effects: list[Effect],
        progress: "_MonotonicProgress",
    ) -> UploadEvent | None:
        """Execute effects in order; return the awaited event, or None once finished."""
        event: UploadEvent | None = None
        for effect in effects:
            if isinstance(effect, Send):
                result = self._send(port, port_path, effect)
                if result is not None:
                    event = result
            elif isinstance(effect, Delay):
                self._sleep(effect.seconds)
            elif isinstance(effect, ReportProgress):
                progress.report(effect.fraction)
            elif isinstance(effect, Finish):
                return None
        if event is None:
            raise RuntimeError("AVR109 session stalled: no command awaiting a reply")
        return event

    def _send(self, port: serial.Serial, port_path: str, effect: Send) -> UploadEvent | None:
        """Write a command and, if it expects a reply, wait for one."""
        try:
            # Late bytes from an earlier reply must not acknowledge this command
            port.reset_input_buffer()
            port.write(effect.data)
            port.flush()
            if effect.timeout is None:
                return None
            port.timeout = effect.timeout
            reply = port.read(1)
            if not reply:
                return UploadEvent.TIMEOUT
            if port.in_waiting:
                reply += port.read(port.in_waiting)
        except (serial.SerialException, OSError) as e:
            logger.error(f"Serial I/O error on {port_path}: {e}")
            raise SerialPortError(port_path, str(e)) from e

        logger.debug(f"Reply to {effect.data[:1]!r}: {reply!r}")
        return UploadEvent.RESPONSE

    def _open(self, port_path: str) -> serial.Serial:
        try:
            port = self._serial_factory(
                port=port_path,
                baudrate=self.serial_settings.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                timeout=self.upload_settings.handshake_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            logger.error(f"Cannot open serial port {port_path}: {e}")
            raise SerialPortError(port_path, str(e)) from e
        logger.debug(f"Opened {port_path} at {self.serial_settings.baudrate} baud")
        return port

    @staticmethod
    def _close(port: serial.Serial, port_path: str) -> None:
        try:
            port.close()
            logger.debug(f"Closed {port_path}")
        except (serial.SerialException, OSError) as e:
            logger.warning(f"Error closing {port_path}: {e}")


class _MonotonicProgress:
    """Forwards progress only when it increases, clamped to [0, 1]."""

    def __init__(self, callback: ProgressCallback | None):
        self._callback = callback
        self.last = 0.0

    def report(self, fraction: float) -> None:
        fraction = max(0.0, min(1.0, fraction))
        if fraction <= self.last:
            return
        self.last = fraction
        if self._callback:
            self._callback(fraction)
