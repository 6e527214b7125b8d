"""Reboot the controller into its serial bootloader over MIDI."""

import logging
import time
from collections.abc import Callable

from timepod.midi.transport import MidiTransport
from timepod.protocol.codec import TIMEPOD_DEVICE, TIMEPOD_MANUFACTURER_EXT, encode_frame
from timepod.protocol.messages import FirmwareUpload, encode_message

logger = logging.getLogger(__name__)

# The device tears down its MIDI stack before re-enumerating as a serial port
DEFAULT_SETTLE_DELAY = 1.5


class BootloaderTrigger:
    """Sends the FIRMWARE_UPLOAD request and waits for the device to go away."""

    def __init__(
        self,
        transport: MidiTransport,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._transport = transport
        self.settle_delay = settle_delay
        self._sleep = sleep

    @staticmethod
    def reset_frame() -> list[int]:
        """The complete SysEx frame of the bootloader request."""
        message_type, *payload = encode_message(FirmwareUpload())
        return encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, message_type, payload)

    def trigger(self, output_name: str | None = None) -> None:
        """
        Send the bootloader request and wait the settle delay.

        Args:
            output_name: MIDI output to use; None uses the selected output

        Raises:
            NoOutputSelectedError: If output_name is None and no output is selected
            MidiTransportError: If the send fails
        """
        target = output_name or self._transport.selected_output
        logger.info(f"Requesting bootloader via MIDI output: {target}")
        self._transport.send_to(output_name, self.reset_frame())
        logger.debug(f"Waiting {self.settle_delay}s for the device to reboot")
        self._sleep(self.settle_delay)
