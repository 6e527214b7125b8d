"""Pytest fixtures for tests."""

from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import Mock

import pytest

from timepod.models import DeviceIdentity, SerialSettings, UploadSettings
from timepod.protocol import TIMEPOD_DEVICE, TIMEPOD_MANUFACTURER_EXT, encode_frame, encode_message


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def frame_for():
    """Build a TP-001 frame for a message."""
    def build(message):
        message_type, *payload = encode_message(message)
        return encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, message_type, payload)
    return build


@pytest.fixture
def mock_transport():
    """MidiTransport stand-in that records sent frames."""
    transport = Mock()
    transport.sent = []

    def send_frame(frame):
        transport.sent.append(list(frame))
        return True

    transport.send_frame.side_effect = send_frame
    transport.list_inputs.return_value = ["TP-001 MIDI 1"]
    transport.list_outputs.return_value = ["TP-001 MIDI 1"]
    return transport


@pytest.fixture
def identity():
    return DeviceIdentity()


@pytest.fixture
def fast_upload_settings():
    """Upload settings with no real delays."""
    return UploadSettings(
        page_size=4,
        handshake_timeout=0.01,
        write_timeout=0.01,
        erase_timeout=0.01,
        exit_delay=0.0,
        bootloader_settle_delay=0.0,
    )


@pytest.fixture
def fast_serial_settings():
    return SerialSettings(port_settle_delay=0.0)
