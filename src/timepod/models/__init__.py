"""Data models for the TP-001 tools."""

from .config import (
    AppConfig,
    DeviceIdentity,
    DiscoverySettings,
    DownloadSettings,
    SerialSettings,
    UploadSettings,
)
from .device import Bank, DeviceState, KnobState, SnapshotState, lsb_for

__all__ = [
    # Config
    "AppConfig",
    "DeviceIdentity",
    "DiscoverySettings",
    "DownloadSettings",
    "SerialSettings",
    "UploadSettings",
    # Device state
    "Bank",
    "DeviceState",
    "KnobState",
    "SnapshotState",
    "lsb_for",
]
