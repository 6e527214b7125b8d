"""
Application context: every service, built once at startup.

Architecture:
    AppContext
    ├── config: AppConfig
    ├── transport: MidiTransport (selected input/output)
    ├── configuration: ConfigurationService (send_config / on_config_event)
    ├── editor: DeviceEditor (intents + DeviceState)
    ├── discovery: DeviceDiscovery (MIDI + serial listings)
    └── firmware: FirmwareService (download / upload sessions)

There are no module-level service instances; whoever needs a service gets
it from the context it was handed.
"""

import logging

import requests

from timepod.devices.discovery import DeviceDiscovery, SerialPortInfo
from timepod.firmware.bootloader import BootloaderTrigger
from timepod.firmware.fetcher import FirmwareFetcher
from timepod.firmware.uploader import Avr109Uploader
from timepod.midi.transport import MidiTransport
from timepod.models.config import AppConfig
from timepod.services.configuration import ConfigurationService
from timepod.services.editor import DeviceEditor
from timepod.services.firmware import FirmwareService

logger = logging.getLogger(__name__)


class AppContext:
    """Owns the services of one process."""

    def __init__(
        self,
        config: AppConfig | None = None,
        transport: MidiTransport | None = None,
        session: requests.Session | None = None,
    ):
        """
        Build all services from the configuration.

        Args:
            config: Application configuration (defaults if None)
            transport: MIDI transport (a new one if None)
            session: HTTP session for downloads (a new one if None)
        """
        self.config = config or AppConfig()
        self.transport = transport or MidiTransport()
        self.configuration = ConfigurationService(self.transport)
        self.editor = DeviceEditor(self.configuration)
        self.discovery = DeviceDiscovery(self.config.device)

        self.firmware = FirmwareService(
            trigger=BootloaderTrigger(
                self.transport, settle_delay=self.config.upload.bootloader_settle_delay
            ),
            discovery=self.discovery,
            uploader=Avr109Uploader(self.config.upload, self.config.serial),
            fetcher=FirmwareFetcher(
                session=session,
                max_redirects=self.config.download.max_redirects,
                chunk_size=self.config.download.chunk_size,
                timeout=self.config.download.timeout,
            ),
            discovery_settings=self.config.discovery,
            download_settings=self.config.download,
        )
        logger.debug("AppContext initialized")

    def list_serial_ports(self) -> list[SerialPortInfo]:
        return self.discovery.list_serial_ports()

    def connect(self, input_name: str | None = None, output_name: str | None = None) -> tuple[str | None, str | None]:
        """
        Select MIDI ports: explicit names, then configured names, then auto-detect.

        Returns:
            (input, output) actually selected; None where nothing matched
        """
        input_name = input_name or self.config.midi_input or self.discovery.find_primary_input()
        output_name = output_name or self.config.midi_output or self.discovery.find_primary_output()

        if input_name:
            self.configuration.select_input(input_name)
        else:
            logger.warning("No TP-001 MIDI input found")
        if output_name:
            self.configuration.select_output(output_name)
        else:
            logger.warning("No TP-001 MIDI output found")
        return input_name, output_name

    def close(self) -> None:
        self.editor.close()
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
