"""Transport-related exceptions.

This module defines exceptions for MIDI and serial transport failures:
- TransportError: Base class for transport errors
- MidiTransportError: A MIDI port could not be opened or written
- NoOutputSelectedError: An operation needed a MIDI output but none is selected
- SerialPortError: The bootloader serial port could not be opened or used

Transport errors are fatal for the operation that hit them and are never
retried automatically.
"""

from .base import TimepodError


class TransportError(TimepodError):
    """A port or endpoint is unavailable or a write failed."""

    def __init__(self, user_message: str, port_name: str | None = None, **kwargs):
        """
        Initialize transport error.

        Args:
            user_message: User-friendly error message
            port_name: The port that failed (if applicable)
        """
        super().__init__(user_message, **kwargs)
        self.port_name = port_name


class MidiTransportError(TransportError):
    """A MIDI port could not be opened or a message could not be sent."""

    def __init__(self, port_name: str | None, original_error: str | None = None):
        """
        Initialize MIDI transport error.

        Args:
            port_name: The MIDI port name
            original_error: The original error message from the MIDI backend
        """
        user_msg = f"MIDI port '{port_name}' is not available." if port_name else "MIDI port is not available."
        tech_msg = user_msg
        if original_error:
            tech_msg += f"\nOriginal error: {original_error}"

        super().__init__(
            user_message=user_msg,
            port_name=port_name,
            technical_message=tech_msg,
            recoverable=True,
            recovery_hint=(
                "Check that the device is connected and not in use by another application. "
                "Run 'timepod midi list' to see available ports."
            ),
        )


class NoOutputSelectedError(MidiTransportError):
    """No MIDI output is selected."""

    def __init__(self):
        """Initialize no-output error."""
        super().__init__(port_name=None)
        self.user_message = "No MIDI output is selected."
        self.technical_message = self.user_message


class SerialPortError(TransportError):
    """The serial port could not be opened, read or written."""

    def __init__(self, port_name: str, original_error: str | None = None):
        """
        Initialize serial port error.

        Args:
            port_name: Serial device path
            original_error: The original error message from pyserial
        """
        user_msg = f"Serial port '{port_name}' could not be used."
        tech_msg = user_msg
        if original_error:
            tech_msg += f"\nOriginal error: {original_error}"

        super().__init__(
            user_message=user_msg,
            port_name=port_name,
            technical_message=tech_msg,
            recoverable=True,
            recovery_hint=(
                "Unplug and reconnect the device, then retry the update. "
                "Run 'timepod serial list' to see available serial ports."
            ),
        )
