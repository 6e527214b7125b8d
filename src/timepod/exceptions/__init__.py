"""
Custom exception hierarchy for timepod.

## Exception Hierarchy

```
TimepodError (base)
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   └── ConfigValidationError
├── TransportError
│   ├── MidiTransportError
│   │   └── NoOutputSelectedError
│   └── SerialPortError
├── DeviceNotFoundError
└── FirmwareError
    ├── DownloadError
    ├── FirmwareImageError
    └── UploadInProgressError
```

All custom exceptions inherit from `TimepodError`, which provides:

- `user_message`: Human-friendly message for display to users
- `technical_message`: Detailed message for logging
- `recoverable`: Whether the error can be recovered from
- `recovery_hint`: Optional suggestion for how to fix the issue

Malformed or unknown SysEx traffic never raises: the protocol layer logs
and drops it, since the MIDI wire is shared with other devices.
"""

from .base import TimepodError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .firmware import (
    DeviceNotFoundError,
    DownloadError,
    FirmwareError,
    FirmwareImageError,
    UploadInProgressError,
)
from .handlers import ErrorContext, format_error_for_display, handle_errors, wrap_pydantic_error
from .transport import MidiTransportError, NoOutputSelectedError, SerialPortError, TransportError

__all__ = [
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Firmware
    "DeviceNotFoundError",
    "DownloadError",
    "FirmwareError",
    "FirmwareImageError",
    "UploadInProgressError",
    # Handlers
    "ErrorContext",
    "format_error_for_display",
    "handle_errors",
    "wrap_pydantic_error",
    # Transport
    "MidiTransportError",
    "NoOutputSelectedError",
    "SerialPortError",
    "TransportError",
    # Base
    "TimepodError",
]
