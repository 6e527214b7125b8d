"""TP-001 wire protocol: SysEx framing, message catalogue and dispatch."""

from .codec import (
    SYSEX_END,
    SYSEX_START,
    TIMEPOD_DEVICE,
    TIMEPOD_DEVICE_ID,
    TIMEPOD_MANUFACTURER_EXT,
    TIMEPOD_MANUFACTURER_ID,
    SysExEncodeError,
    SysExFrame,
    decode_frame,
    encode_frame,
    encode_id,
    format_sysex_bytes,
    from_mido,
    to_mido,
)
from .dispatcher import EventDispatcher, MessageHandler
from .messages import (
    ALL_SNAPSHOTS,
    MESSAGE_CLASSES,
    NUM_BANKS,
    NUM_KNOBS,
    NUM_SNAPSHOTS,
    BankColor,
    BankSnapshotColor,
    Brightness,
    CcType,
    ConfigMessage,
    DisplayMode,
    FirmwareUpload,
    FirmwareVersion,
    KnobCcType,
    KnobColor,
    KnobMidiCc1,
    KnobMidiCc2,
    KnobMidiChannel,
    KnobType,
    MessageType,
    Sync,
    decode_message,
    encode_message,
)

__all__ = [
    "ALL_SNAPSHOTS",
    "MESSAGE_CLASSES",
    "NUM_BANKS",
    "NUM_KNOBS",
    "NUM_SNAPSHOTS",
    "SYSEX_END",
    "SYSEX_START",
    "TIMEPOD_DEVICE",
    "TIMEPOD_DEVICE_ID",
    "TIMEPOD_MANUFACTURER_EXT",
    "TIMEPOD_MANUFACTURER_ID",
    "BankColor",
    "BankSnapshotColor",
    "Brightness",
    "CcType",
    "ConfigMessage",
    "DisplayMode",
    "EventDispatcher",
    "FirmwareUpload",
    "FirmwareVersion",
    "KnobCcType",
    "KnobColor",
    "KnobMidiCc1",
    "KnobMidiCc2",
    "KnobMidiChannel",
    "KnobType",
    "MessageHandler",
    "MessageType",
    "SysExEncodeError",
    "SysExFrame",
    "Sync",
    "decode_frame",
    "decode_message",
    "encode_frame",
    "encode_id",
    "encode_message",
    "format_sysex_bytes",
    "from_mido",
    "to_mido",
]
