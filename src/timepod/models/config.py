"""Application configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field

from timepod.utils.persistence import PydanticPersistence

DEFAULT_CONFIG_DIR = Path.home() / ".timepod"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"


class DeviceIdentity(BaseModel):
    """How the controller and its bootloader are recognised on the host."""

    product_names: list[str] = Field(
        default_factory=lambda: ["TP-001", "Modern MIDI"],
        description="Substrings matched (case-insensitive) against port names and descriptions",
    )
    vendor_id: int = Field(default=0x04D8, ge=0, le=0xFFFF, description="USB vendor id")
    product_id: int = Field(default=0xE514, ge=0, le=0xFFFF, description="USB product id")

    @property
    def usb_id(self) -> str:
        """Vendor/product pair as ``04D8:E514``."""
        return f"{self.vendor_id:04X}:{self.product_id:04X}"


class SerialSettings(BaseModel):
    """Bootloader serial link (8N1, no flow control)."""

    baudrate: int = Field(default=57600, gt=0)
    port_settle_delay: float = Field(
        default=0.5, ge=0.0, description="Wait after opening the port before the first command (seconds)"
    )


class UploadSettings(BaseModel):
    """AVR109 programming parameters."""

    page_size: int = Field(default=128, gt=0, le=0xFFFF, description="Flash page size in bytes")
    handshake_timeout: float = Field(
        default=1.0, gt=0.0, description="Timeout for identify/handshake/address commands (seconds)"
    )
    write_timeout: float = Field(default=2.0, gt=0.0, description="Timeout for page writes (seconds)")
    erase_timeout: float = Field(default=10.0, gt=0.0, description="Timeout for chip erase (seconds)")
    max_retries: int = Field(
        default=3, ge=0, description="Resends per command before skipping to the next step"
    )
    exit_delay: float = Field(
        default=0.2, ge=0.0, description="Wait before sending the exit command (seconds)"
    )
    bootloader_settle_delay: float = Field(
        default=1.5, ge=0.0, description="Wait after the reset request while the device re-enumerates"
    )


class DiscoverySettings(BaseModel):
    """Bootloader port polling after the reset request."""

    poll_attempts: int = Field(default=30, gt=0)
    poll_interval: float = Field(default=0.5, gt=0.0, description="Seconds between polls")


class DownloadSettings(BaseModel):
    """Firmware download parameters."""

    firmware_url: str = Field(default="https://api.modernmidi.io/timepod.bin")
    max_redirects: int = Field(default=5, ge=0)
    chunk_size: int = Field(default=4096, gt=0)
    timeout: float = Field(default=30.0, gt=0.0, description="Connect/read timeout (seconds)")


class AppConfig(BaseModel):
    """Application configuration and settings."""

    device: DeviceIdentity = Field(default_factory=DeviceIdentity)
    serial: SerialSettings = Field(default_factory=SerialSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)

    # MIDI port preferences (None = auto-detect)
    midi_input: str | None = Field(default=None, description="Preferred MIDI input port name")
    midi_output: str | None = Field(default=None, description="Preferred MIDI output port name")

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file or return default.

        Args:
            path: Path to config file. If None, uses default location
                  (~/.timepod/config.json).

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH
        return PydanticPersistence.load_json_or_default(path, cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file (with .bak backup)."""
        if path is None:
            path = DEFAULT_CONFIG_PATH
        PydanticPersistence.save_json(self, path)
