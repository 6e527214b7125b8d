"""Send and receive TP-001 configuration messages over MIDI."""

import logging
from collections.abc import Callable, Sequence

from timepod.midi.transport import MidiTransport
from timepod.protocol.codec import (
    TIMEPOD_DEVICE,
    TIMEPOD_MANUFACTURER_EXT,
    decode_frame,
    encode_frame,
    format_sysex_bytes,
)
from timepod.protocol.dispatcher import EventDispatcher, MessageHandler
from timepod.protocol.messages import ConfigMessage, MessageType, decode_message, encode_message

logger = logging.getLogger(__name__)


class ConfigurationService:
    """
    Configuration protocol endpoint.

    Outgoing: ``send_config`` encodes a message, frames it with the vendor
    ids and sends it to the selected output.

    Incoming: frames from the selected input are decoded and dispatched by
    message type to every subscriber registered with ``on_config_event``.
    Frames for other devices, unknown types and malformed payloads are
    dropped without raising.

    Threading:
        Incoming handlers run on mido's I/O thread.
    """

    def __init__(self, transport: MidiTransport, dispatcher: EventDispatcher | None = None):
        """
        Initialize the service and attach to the transport's input.

        Args:
            transport: MIDI transport
            dispatcher: Event dispatcher (a new one is created if None)
        """
        self.transport = transport
        self.dispatcher = dispatcher or EventDispatcher()
        self.transport.on_frame(self.handle_frame)

    # Endpoint selection (delegates to the transport)

    def list_inputs(self) -> list[str]:
        return self.transport.list_inputs()

    def list_outputs(self) -> list[str]:
        return self.transport.list_outputs()

    def select_input(self, port_name: str | None) -> None:
        self.transport.select_input(port_name)

    def select_output(self, port_name: str | None) -> None:
        self.transport.select_output(port_name)

    # Messaging

    def send_config(self, message: ConfigMessage) -> bool:
        """
        Send a configuration message to the selected output.

        Returns:
            True if sent, False if no output is selected

        Raises:
            MidiTransportError: If the output rejects the message
        """
        message_type, *payload = encode_message(message)
        frame = encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, message_type, payload)
        logger.debug(f"Sending {message.message_type.name}: {message}")
        return self.transport.send_frame(frame)

    def on_config_event(self, message_type: MessageType, handler: MessageHandler) -> Callable[[], None]:
        """
        Subscribe to decoded messages of one type.

        Returns:
            Callable that removes the subscription
        """
        return self.dispatcher.subscribe(message_type, handler)

    def handle_frame(self, frame: Sequence[int]) -> ConfigMessage | None:
        """
        Decode one received SysEx frame and dispatch it.

        Returns:
            The dispatched message, or None if the frame was ignored
        """
        decoded = decode_frame(frame)
        if decoded is None:
            logger.debug(f"Ignoring short or unbounded frame: {format_sysex_bytes(frame)}")
            return None

        if decoded.manufacturer != TIMEPOD_MANUFACTURER_EXT or decoded.device != TIMEPOD_DEVICE:
            logger.debug(f"Ignoring frame for another device: {format_sysex_bytes(frame)}")
            return None

        message = decode_message(decoded.message_type, decoded.payload)
        if message is None:
            return None

        logger.debug(f"Received {message.message_type.name}: {message}")
        self.dispatcher.dispatch(message)
        return message
