"""Tests for FirmwareService sessions."""

import threading
from unittest.mock import Mock

import pytest

from timepod.devices import SerialPortInfo
from timepod.exceptions import (
    DeviceNotFoundError,
    DownloadError,
    FirmwareImageError,
    UploadInProgressError,
)
from timepod.models import DiscoverySettings, DownloadSettings
from timepod.services import FirmwareService

PORT = SerialPortInfo(path="/dev/ttyACM0", description="TP-001")


@pytest.fixture
def parts():
    trigger = Mock()
    discovery = Mock()
    discovery.wait_for_bootloader_port.return_value = PORT
    uploader = Mock()
    uploader.upload.return_value = True
    fetcher = Mock()
    fetcher.fetch.return_value = b"\x01\x02\x03"
    return trigger, discovery, uploader, fetcher


@pytest.fixture
def service(parts):
    trigger, discovery, uploader, fetcher = parts
    return FirmwareService(
        trigger,
        discovery,
        uploader,
        fetcher,
        discovery_settings=DiscoverySettings(poll_attempts=7, poll_interval=0.25),
        download_settings=DownloadSettings(firmware_url="https://example.com/fw.bin"),
    )


@pytest.mark.unit
class TestDownload:
    def test_default_url(self, service, parts):
        assert service.download_firmware() == b"\x01\x02\x03"
        parts[3].fetch.assert_called_once_with("https://example.com/fw.bin", None)
        assert service.image == b"\x01\x02\x03"

    def test_explicit_url(self, service, parts):
        service.download_firmware("https://mirror.example.com/fw.bin")
        assert parts[3].fetch.call_args.args[0] == "https://mirror.example.com/fw.bin"

    def test_empty_download(self, service, parts):
        parts[3].fetch.return_value = b""
        with pytest.raises(FirmwareImageError):
            service.download_firmware()
        assert service.image is None

    def test_download_error_propagates(self, service, parts):
        parts[3].fetch.side_effect = DownloadError("https://example.com/fw.bin", status_code=500)
        with pytest.raises(DownloadError):
            service.download_firmware()


@pytest.mark.unit
class TestUpload:
    """Test the update sequence."""

    def test_sequence(self, service, parts):
        trigger, discovery, uploader, _ = parts
        calls = Mock()
        calls.attach_mock(trigger.trigger, "trigger")
        calls.attach_mock(discovery.wait_for_bootloader_port, "wait")
        calls.attach_mock(uploader.upload, "upload")

        assert service.upload_firmware("TP-001 MIDI 1", b"\xAA")

        assert [c[0] for c in calls.mock_calls] == ["trigger", "wait", "upload"]
        trigger.trigger.assert_called_once_with("TP-001 MIDI 1")
        discovery.wait_for_bootloader_port.assert_called_once_with(attempts=7, interval=0.25)
        assert uploader.upload.call_args.args[:2] == ("/dev/ttyACM0", b"\xAA")
        assert not service.is_uploading

    def test_uses_downloaded_image(self, service, parts):
        service.download_firmware()
        service.upload_firmware(None)
        assert parts[2].upload.call_args.args[1] == b"\x01\x02\x03"

    def test_no_image(self, service, parts):
        with pytest.raises(FirmwareImageError):
            service.upload_firmware(None)
        parts[0].trigger.assert_not_called()

    def test_progress_bounds(self, service, parts):
        def upload(path, image, report):
            report(0.5)
            report(0.25)
            report(1.0)
            return True

        parts[2].upload.side_effect = upload
        progress = []
        service.upload_firmware(None, b"\xAA", progress.append)
        assert progress == [0.0, 0.5, 1.0]

    def test_device_not_found_releases_lock(self, service, parts):
        parts[1].wait_for_bootloader_port.side_effect = DeviceNotFoundError(7, 0.25)

        with pytest.raises(DeviceNotFoundError):
            service.upload_firmware(None, b"\xAA")

        parts[2].upload.assert_not_called()
        assert not service.is_uploading


@pytest.mark.integration
class TestExclusivity:
    """Test that only one upload runs at a time."""

    def test_concurrent_upload_rejected(self, service, parts):
        started = threading.Event()
        release = threading.Event()

        def slow_upload(path, image, report):
            started.set()
            release.wait(timeout=5)
            return True

        parts[2].upload.side_effect = slow_upload
        worker = threading.Thread(target=service.upload_firmware, args=(None, b"\xAA"))
        worker.start()
        try:
            assert started.wait(timeout=5)
            assert service.is_uploading
            with pytest.raises(UploadInProgressError):
                service.upload_firmware(None, b"\xBB")
        finally:
            release.set()
            worker.join(timeout=5)

        assert parts[2].upload.call_count == 1
        assert parts[0].trigger.call_count == 1
        assert not service.is_uploading
