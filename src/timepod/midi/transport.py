"""Selected MIDI input/output ports for talking to the controller.

Unlike a hot-plug manager this transport never picks ports on its own: the
caller (or ``DeviceDiscovery``) decides, and ``select_input``/``select_output``
are the only ways the selection changes. At most one input and one output are
open at a time.
"""

import logging
import threading
from collections.abc import Callable, Sequence

import mido

from timepod.exceptions import MidiTransportError, NoOutputSelectedError
from timepod.protocol.codec import format_sysex_bytes, from_mido, to_mido

logger = logging.getLogger(__name__)

FrameCallback = Callable[[list[int]], None]


class MidiTransport:
    """
    SysEx-oriented wrapper around mido ports.

    Incoming sysex messages are converted to full frames (F0..F7) and passed
    to the registered frame callback. The callback runs in mido's internal
    I/O thread - keep it fast!
    """

    def __init__(self):
        self._input: mido.ports.BaseInput | None = None
        self._output: mido.ports.BaseOutput | None = None
        self._lock = threading.Lock()
        self._frame_callback: FrameCallback | None = None

    # ------------------------------------------------------------------
    # Port listing
    # ------------------------------------------------------------------

    @staticmethod
    def list_inputs() -> list[str]:
        """Names of available MIDI input ports."""
        return mido.get_input_names()

    @staticmethod
    def list_outputs() -> list[str]:
        """Names of available MIDI output ports."""
        return mido.get_output_names()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def on_frame(self, callback: FrameCallback | None) -> None:
        """Register the callback for incoming SysEx frames."""
        self._frame_callback = callback

    def select_input(self, port_name: str | None) -> None:
        """
        Select the input port, closing any previously selected one.

        Args:
            port_name: Port to open, or None to deselect

        Raises:
            MidiTransportError: If the port cannot be opened
        """
        with self._lock:
            self._close_port(self._input, "input")
            self._input = None
            if port_name is None:
                return
            try:
                self._input = mido.open_input(port_name, callback=self._midi_callback)
            except OSError as e:
                raise MidiTransportError(port_name, str(e)) from e
            logger.info(f"Selected MIDI input: {port_name}")

    def select_output(self, port_name: str | None) -> None:
        """
        Select the output port, closing any previously selected one.

        Args:
            port_name: Port to open, or None to deselect

        Raises:
            MidiTransportError: If the port cannot be opened
        """
        with self._lock:
            self._close_port(self._output, "output")
            self._output = None
            if port_name is None:
                return
            try:
                self._output = mido.open_output(port_name)
            except OSError as e:
                raise MidiTransportError(port_name, str(e)) from e
            logger.info(f"Selected MIDI output: {port_name}")

    @property
    def selected_input(self) -> str | None:
        with self._lock:
            return self._input.name if self._input else None

    @property
    def selected_output(self) -> str | None:
        with self._lock:
            return self._output.name if self._output else None

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_frame(self, frame: Sequence[int]) -> bool:
        """
        Send a SysEx frame to the selected output.

        Args:
            frame: Complete frame including F0 and F7

        Returns:
            True if sent, False if no output is selected

        Raises:
            MidiTransportError: If the port rejects the message
        """
        with self._lock:
            if self._output is None:
                logger.warning("No MIDI output selected")
                return False
            self._send(self._output, frame)
            return True

    def send_to(self, port_name: str | None, frame: Sequence[int]) -> None:
        """
        Send a frame to a specific output, or to the selected one.

        A port other than the selected output is opened just for this send.

        Raises:
            NoOutputSelectedError: If port_name is None and no output is selected
            MidiTransportError: If the port cannot be opened or rejects the message
        """
        with self._lock:
            if port_name is None or (self._output is not None and self._output.name == port_name):
                if self._output is None:
                    raise NoOutputSelectedError()
                self._send(self._output, frame)
                return

        try:
            with mido.open_output(port_name) as port:
                self._send(port, frame)
        except OSError as e:
            raise MidiTransportError(port_name, str(e)) from e

    @staticmethod
    def _send(port: mido.ports.BaseOutput, frame: Sequence[int]) -> None:
        logger.debug(f"MIDI out [{port.name}]: {format_sysex_bytes(frame)}")
        try:
            port.send(to_mido(frame))
        except (OSError, ValueError) as e:
            raise MidiTransportError(port.name, str(e)) from e

    # ------------------------------------------------------------------
    # Receiving / lifecycle
    # ------------------------------------------------------------------

    def _midi_callback(self, msg: mido.Message) -> None:
        """Called from mido's I/O thread for every incoming message."""
        frame = from_mido(msg)
        if frame is None:
            return
        logger.debug(f"MIDI in: {format_sysex_bytes(frame)}")
        try:
            if self._frame_callback:
                self._frame_callback(frame)
        except Exception as e:
            logger.error(f"Error in MIDI frame callback: {e}", exc_info=True)

    @staticmethod
    def _close_port(port, port_type: str) -> None:
        if port is None:
            return
        try:
            port.close()
            logger.debug(f"Closed MIDI {port_type}: {port.name}")
        except OSError as e:
            logger.error(f"Error closing MIDI {port_type} port: {e}")

    def close(self) -> None:
        """Close both ports."""
        with self._lock:
            self._close_port(self._input, "input")
            self._close_port(self._output, "output")
            self._input = None
            self._output = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
