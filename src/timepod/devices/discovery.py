"""Find the TP-001 among MIDI endpoints and serial ports.

Matching order, for every kind of endpoint:

1. A known product name ("TP-001", "Modern MIDI") appears in the port's name,
   description, device path or manufacturer string.
2. The USB vendor/product id pair matches (serial ports only, MIDI backends
   don't expose USB ids).
3. Nothing matches: return None and let the caller ask the user.

Having no devices at all is not an error; listings are simply empty.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import mido
import serial.tools.list_ports

from timepod.exceptions import DeviceNotFoundError
from timepod.models.config import DeviceIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SerialPortInfo:
    """A serial port as reported by pyserial."""

    path: str
    description: str = ""
    manufacturer: str = ""
    serial_number: str = ""
    vendor_id: int | None = None
    product_id: int | None = None

    @property
    def usb_id(self) -> str:
        """``VVVV:PPPP`` or an empty string for non-USB ports."""
        if self.vendor_id is None or self.product_id is None:
            return ""
        return f"{self.vendor_id:04X}:{self.product_id:04X}"

    @classmethod
    def from_list_port_info(cls, info) -> "SerialPortInfo":
        """Convert a ``serial.tools.list_ports_common.ListPortInfo``."""
        return cls(
            path=info.device,
            description=info.description or "",
            manufacturer=info.manufacturer or "",
            serial_number=info.serial_number or "",
            vendor_id=info.vid,
            product_id=info.pid,
        )


class DeviceDiscovery:
    """Lists endpoints and picks the ones that belong to the controller."""

    def __init__(
        self,
        identity: DeviceIdentity | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize discovery.

        Args:
            identity: Product names and USB ids to match (defaults to the TP-001)
            sleep: Delay function used while polling (injectable for tests)
        """
        self.identity = identity or DeviceIdentity()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    @staticmethod
    def list_midi_inputs() -> list[str]:
        return mido.get_input_names()

    @staticmethod
    def list_midi_outputs() -> list[str]:
        return mido.get_output_names()

    @staticmethod
    def list_serial_ports() -> list[SerialPortInfo]:
        """All serial ports currently present, sorted by path."""
        ports = [SerialPortInfo.from_list_port_info(p) for p in serial.tools.list_ports.comports()]
        return sorted(ports, key=lambda p: p.path)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def matches_name(self, *texts: str) -> bool:
        """Check if any text contains a known product name (case-insensitive)."""
        lowered = [text.lower() for text in texts if text]
        return any(
            name.lower() in text for name in self.identity.product_names for text in lowered
        )

    def matches_usb_id(self, port: SerialPortInfo) -> bool:
        return (
            port.vendor_id == self.identity.vendor_id
            and port.product_id == self.identity.product_id
        )

    def _find_midi_port(self, names: list[str]) -> str | None:
        for name in names:
            if self.matches_name(name):
                return name
        return None

    def find_primary_output(self) -> str | None:
        """First MIDI output whose name matches the product, or None."""
        return self._find_midi_port(self.list_midi_outputs())

    def find_primary_input(self) -> str | None:
        """First MIDI input whose name matches the product, or None."""
        return self._find_midi_port(self.list_midi_inputs())

    def find_bootloader_port(self, ports: list[SerialPortInfo] | None = None) -> SerialPortInfo | None:
        """
        Pick the serial port of the device.

        Args:
            ports: Ports to search (defaults to the current listing)

        Returns:
            Matching port, or None
        """
        if ports is None:
            ports = self.list_serial_ports()

        for port in ports:
            if self.matches_name(port.path, port.description, port.manufacturer):
                return port

        for port in ports:
            if self.matches_usb_id(port):
                return port

        return None

    def wait_for_bootloader_port(self, attempts: int = 30, interval: float = 0.5) -> SerialPortInfo:
        """
        Poll until the bootloader's serial port appears.

        Each attempt sleeps ``interval`` first, giving the device time to
        re-enumerate after the reset request.

        Args:
            attempts: Number of polls
            interval: Seconds between polls

        Returns:
            The bootloader port

        Raises:
            DeviceNotFoundError: If no port matched within the window
        """
        for attempt in range(1, attempts + 1):
            self._sleep(interval)
            port = self.find_bootloader_port()
            if port is not None:
                logger.info(f"Bootloader port found after {attempt} attempt(s): {port.path}")
                return port
            logger.debug(f"Bootloader port not present yet (attempt {attempt}/{attempts})")

        logger.error(f"Bootloader port not found after {attempts} attempts")
        raise DeviceNotFoundError(attempts, interval)
