"""Services exposed to user interfaces."""

from .configuration import ConfigurationService
from .editor import DeviceEditor
from .firmware import FirmwareService

__all__ = ["ConfigurationService", "DeviceEditor", "FirmwareService"]
