"""Device discovery for the TP-001."""

from .discovery import DeviceDiscovery, SerialPortInfo

__all__ = ["DeviceDiscovery", "SerialPortInfo"]
