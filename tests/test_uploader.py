"""Tests for Avr109Uploader against a simulated bootloader."""

from unittest.mock import Mock

import pytest
import serial

from timepod.exceptions import FirmwareImageError, SerialPortError
from timepod.firmware import Avr109Uploader
from timepod.models import SerialSettings, UploadSettings

IMAGE = bytes(range(1, 11))


class FakeBootloader:
    """
    Serial port stand-in that behaves like an AVR109 bootloader.

    Commands arrive one per ``write``. Flash writes land at the current word
    address, which auto-increments after every block.
    """

    def __init__(self, silent: str = "", flash_size: int = 64):
        self.silent = set(silent)
        self.flash = bytearray(b"\xFF" * flash_size)
        self.commands: list[bytes] = []
        self.pending = b""
        self.timeout = None
        self.pointer = 0
        self.closed = False
        self.block_addresses: list[int] = []

    @property
    def in_waiting(self) -> int:
        return len(self.pending)

    def reset_input_buffer(self):
        self.pending = b""

    def write(self, data: bytes) -> int:
        self.commands.append(bytes(data))
        command = data[:1].decode()
        if command == "A":
            self.pointer = ((data[1] << 8) | data[2]) * 2
        elif command == "B":
            length = (data[1] << 8) | data[2]
            block = data[4:4 + length]
            self.block_addresses.append(self.pointer)
            self.flash[self.pointer:self.pointer + length] = block
            self.pointer += length

        if command not in self.silent:
            self.pending += b"AVRBOOT" if command == "S" else b"\r"
        return len(data)

    def flush(self):
        pass

    def read(self, size: int = 1) -> bytes:
        data, self.pending = self.pending[:size], self.pending[size:]
        return data

    def close(self):
        self.closed = True


@pytest.fixture
def bootloader():
    return FakeBootloader()


def make_uploader(port, upload_settings, serial_settings, sleep=None):
    factory = Mock(return_value=port)
    uploader = Avr109Uploader(
        upload_settings, serial_settings, serial_factory=factory, sleep=sleep or Mock()
    )
    return uploader, factory


@pytest.mark.integration
class TestUpload:
    """Test complete sessions."""

    def test_flashes_image(self, bootloader, fast_upload_settings, fast_serial_settings):
        uploader, factory = make_uploader(bootloader, fast_upload_settings, fast_serial_settings)
        progress = []

        assert uploader.upload("/dev/ttyACM0", IMAGE, progress.append)

        assert bytes(bootloader.flash[:10]) == IMAGE
        assert bootloader.block_addresses == [4, 8, 0]
        assert bootloader.commands[-1] == b"E"
        assert bootloader.closed
        assert progress == sorted(progress)
        assert progress[-1] == 1.0

    def test_opens_port_8n1(self, bootloader, fast_upload_settings, fast_serial_settings):
        uploader, factory = make_uploader(bootloader, fast_upload_settings, fast_serial_settings)
        uploader.upload("/dev/ttyACM0", IMAGE)

        factory.assert_called_once_with(
            port="/dev/ttyACM0",
            baudrate=57600,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            xonxoff=False,
            rtscts=False,
            timeout=fast_upload_settings.handshake_timeout,
        )

    def test_settles_and_waits_before_exit(self, bootloader):
        sleep = Mock()
        uploader, _ = make_uploader(
            bootloader,
            UploadSettings(page_size=4, exit_delay=0.2),
            SerialSettings(port_settle_delay=0.5),
            sleep,
        )

        uploader.upload("/dev/ttyACM0", IMAGE)
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 0.2]

    def test_silent_erase(self, fast_upload_settings, fast_serial_settings):
        port = FakeBootloader(silent="e")
        uploader, _ = make_uploader(port, fast_upload_settings, fast_serial_settings)

        assert uploader.upload("/dev/ttyACM0", IMAGE)
        assert port.commands.count(b"e") == 4
        assert bytes(port.flash[:10]) == IMAGE

    def test_stale_reply_discarded(self, fast_upload_settings, fast_serial_settings):
        port = FakeBootloader(silent="S")
        port.pending = b"\r"
        uploader, _ = make_uploader(port, fast_upload_settings, fast_serial_settings)

        uploader.upload("/dev/ttyACM0", IMAGE)
        assert port.commands.count(b"S") == 4

    def test_empty_image(self, bootloader, fast_upload_settings, fast_serial_settings):
        uploader, factory = make_uploader(bootloader, fast_upload_settings, fast_serial_settings)
        with pytest.raises(FirmwareImageError):
            uploader.upload("/dev/ttyACM0", b"")
        factory.assert_not_called()


@pytest.mark.unit
class TestSerialErrors:
    """Test serial failures."""

    def test_open_failure(self, fast_upload_settings, fast_serial_settings):
        factory = Mock(side_effect=serial.SerialException("could not open port"))
        uploader = Avr109Uploader(
            fast_upload_settings, fast_serial_settings, serial_factory=factory, sleep=Mock()
        )
        with pytest.raises(SerialPortError):
            uploader.upload("/dev/ttyACM0", IMAGE)

    def test_write_failure_closes_port(self, bootloader, fast_upload_settings, fast_serial_settings):
        bootloader.write = Mock(side_effect=serial.SerialException("device disconnected"))
        uploader, _ = make_uploader(bootloader, fast_upload_settings, fast_serial_settings)

        with pytest.raises(SerialPortError):
            uploader.upload("/dev/ttyACM0", IMAGE)
        assert bootloader.closed
