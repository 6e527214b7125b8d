"""Typed configuration message catalogue for the TP-001.

Each message type has a frozen pydantic model whose fields are the semantic
values (bank, knob, color, ...) and whose ``payload()`` is the byte list that
follows the type byte on the wire. Range checks happen at construction, so a
message that exists is always encodable.

Receive side goes through ``decode_message``, which never raises: the wire
is shared with other traffic, so unknown types and malformed payloads are
logged and dropped.
"""

import logging
from enum import Enum, IntEnum
from typing import ClassVar, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

NUM_BANKS = 8
NUM_KNOBS = 16
NUM_SNAPSHOTS = 8

# Snapshot index meaning "every snapshot of this knob/bank"
ALL_SNAPSHOTS = 8


class MessageType(IntEnum):
    """Message type byte (offset 6 of a frame)."""

    BRIGHTNESS = 0x01
    FIRMWARE_VERSION = 0x02
    KNOB_COLOR = 0x10
    KNOB_TYPE = 0x11
    KNOB_CC_TYPE = 0x12
    KNOB_MIDI_CHANNEL = 0x13
    KNOB_MIDI_CC1 = 0x14
    KNOB_MIDI_CC2 = 0x15
    BANK_COLOR = 0x20
    BANK_SNAPSHOT_COLOR = 0x21
    FIRMWARE_UPLOAD = 0x7D  # Reboots the device into its serial bootloader
    SYNC = 0x7E


class _CodedEnum(str, Enum):
    """String enum whose wire code is the member's declaration order."""

    @property
    def code(self) -> int:
        return list(type(self)).index(self)

    @classmethod
    def from_code(cls, code: int):
        members = list(cls)
        if not 0 <= code < len(members):
            raise ValueError(f"Unknown {cls.__name__} code: {code}")
        return members[code]


class DisplayMode(_CodedEnum):
    """How a knob's LED ring renders its value."""

    FILL = "fill"
    BIPOLAR = "bipolar"
    POINTER = "pointer"


class CcType(_CodedEnum):
    """Controller message resolution sent by a knob."""

    STANDARD_7 = "standard7"  # Single 7-bit CC
    STANDARD_14 = "standard14"  # MSB on cc, LSB on cc_lsb
    NRPN_14 = "nrpn14"


class ConfigMessage(BaseModel):
    """Base class for all configuration messages.

    Subclasses set ``message_type`` and list their wire fields in order in
    ``wire_fields``. Fields that need conversion override ``payload`` and
    ``from_payload``.
    """

    model_config = ConfigDict(frozen=True)

    message_type: ClassVar[MessageType]
    wire_fields: ClassVar[tuple[str, ...]] = ()

    def payload(self) -> list[int]:
        """Bytes that follow the type byte on the wire."""
        return [int(getattr(self, name)) for name in self.wire_fields]

    @classmethod
    def _unpack(cls, payload: Sequence[int]) -> dict[str, int]:
        if len(payload) < len(cls.wire_fields):
            raise ValueError(
                f"{cls.message_type.name} needs {len(cls.wire_fields)} payload bytes, "
                f"got {len(payload)}"
            )
        return dict(zip(cls.wire_fields, payload))

    @classmethod
    def from_payload(cls, payload: Sequence[int]) -> "ConfigMessage":
        """
        Build a message from received payload bytes.

        Extra trailing bytes are ignored.

        Raises:
            ValueError: If the payload is too short or a value is out of range
        """
        return cls(**cls._unpack(payload))


class Brightness(ConfigMessage):
    """Global LED brightness."""

    message_type: ClassVar[MessageType] = MessageType.BRIGHTNESS
    wire_fields: ClassVar[tuple[str, ...]] = ("value",)

    value: int = Field(ge=0, le=127, description="Brightness (0-127)")


class FirmwareVersion(ConfigMessage):
    """Firmware version reported by the device."""

    message_type: ClassVar[MessageType] = MessageType.FIRMWARE_VERSION
    wire_fields: ClassVar[tuple[str, ...]] = ("major", "minor")

    major: int = Field(ge=0, le=127)
    minor: int = Field(ge=0, le=127)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


class KnobColor(ConfigMessage):
    """Color of one knob in one snapshot, or in all snapshots."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_COLOR
    wire_fields: ClassVar[tuple[str, ...]] = ("bank", "snapshot", "knob", "color")

    bank: int = Field(ge=0, lt=NUM_BANKS)
    snapshot: int = Field(ge=0, le=ALL_SNAPSHOTS, description="Snapshot 0-7, or 8 for all")
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    color: int = Field(ge=0, le=127, description="Palette index")

    @property
    def applies_to_all_snapshots(self) -> bool:
        return self.snapshot == ALL_SNAPSHOTS

    @classmethod
    def for_all_snapshots(cls, bank: int, knob: int, color: int) -> "KnobColor":
        return cls(bank=bank, snapshot=ALL_SNAPSHOTS, knob=knob, color=color)


class KnobType(ConfigMessage):
    """Display mode of a knob's LED ring."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_TYPE

    bank: int = Field(ge=0, lt=NUM_BANKS)
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    display_mode: DisplayMode

    def payload(self) -> list[int]:
        return [self.bank, self.knob, self.display_mode.code]

    @classmethod
    def from_payload(cls, payload: Sequence[int]) -> "KnobType":
        if len(payload) < 3:
            raise ValueError(f"KNOB_TYPE needs 3 payload bytes, got {len(payload)}")
        return cls(bank=payload[0], knob=payload[1], display_mode=DisplayMode.from_code(payload[2]))


class KnobCcType(ConfigMessage):
    """CC resolution of a knob."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_CC_TYPE

    bank: int = Field(ge=0, lt=NUM_BANKS)
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    cc_type: CcType

    def payload(self) -> list[int]:
        return [self.bank, self.knob, self.cc_type.code]

    @classmethod
    def from_payload(cls, payload: Sequence[int]) -> "KnobCcType":
        if len(payload) < 3:
            raise ValueError(f"KNOB_CC_TYPE needs 3 payload bytes, got {len(payload)}")
        return cls(bank=payload[0], knob=payload[1], cc_type=CcType.from_code(payload[2]))


class KnobMidiChannel(ConfigMessage):
    """MIDI channel of a knob. Channels are 1-16; the wire carries channel - 1."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_MIDI_CHANNEL

    bank: int = Field(ge=0, lt=NUM_BANKS)
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    channel: int = Field(ge=1, le=16)

    def payload(self) -> list[int]:
        return [self.bank, self.knob, self.channel - 1]

    @classmethod
    def from_payload(cls, payload: Sequence[int]) -> "KnobMidiChannel":
        if len(payload) < 3:
            raise ValueError(f"KNOB_MIDI_CHANNEL needs 3 payload bytes, got {len(payload)}")
        return cls(bank=payload[0], knob=payload[1], channel=payload[2] + 1)


class KnobMidiCc1(ConfigMessage):
    """Primary (MSB) controller number of a knob."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_MIDI_CC1
    wire_fields: ClassVar[tuple[str, ...]] = ("bank", "knob", "cc")

    bank: int = Field(ge=0, lt=NUM_BANKS)
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    cc: int = Field(ge=0, le=127)


class KnobMidiCc2(ConfigMessage):
    """Secondary (LSB) controller number of a knob."""

    message_type: ClassVar[MessageType] = MessageType.KNOB_MIDI_CC2
    wire_fields: ClassVar[tuple[str, ...]] = ("bank", "knob", "cc")

    bank: int = Field(ge=0, lt=NUM_BANKS)
    knob: int = Field(ge=0, lt=NUM_KNOBS)
    cc: int = Field(ge=0, le=127)


class BankColor(ConfigMessage):
    message_type: ClassVar[MessageType] = MessageType.BANK_COLOR
    wire_fields: ClassVar[tuple[str, ...]] = ("bank", "color")

    bank: int = Field(ge=0, lt=NUM_BANKS)
    color: int = Field(ge=0, le=127)


class BankSnapshotColor(ConfigMessage):
    """Color of a snapshot button, or of all snapshot buttons in a bank."""

    message_type: ClassVar[MessageType] = MessageType.BANK_SNAPSHOT_COLOR
    wire_fields: ClassVar[tuple[str, ...]] = ("bank", "snapshot", "color")

    bank: int = Field(ge=0, lt=NUM_BANKS)
    snapshot: int = Field(ge=0, le=ALL_SNAPSHOTS, description="Snapshot 0-7, or 8 for all")
    color: int = Field(ge=0, le=63)

    @property
    def applies_to_all_snapshots(self) -> bool:
        return self.snapshot == ALL_SNAPSHOTS

    @classmethod
    def for_all_snapshots(cls, bank: int, color: int) -> "BankSnapshotColor":
        return cls(bank=bank, snapshot=ALL_SNAPSHOTS, color=color)


class Sync(ConfigMessage):
    """Ask the device to dump its full configuration."""

    message_type: ClassVar[MessageType] = MessageType.SYNC


class FirmwareUpload(ConfigMessage):
    """Ask the device to reboot into its serial bootloader."""

    message_type: ClassVar[MessageType] = MessageType.FIRMWARE_UPLOAD


MESSAGE_CLASSES: dict[MessageType, type[ConfigMessage]] = {
    cls.message_type: cls
    for cls in (
        Brightness,
        FirmwareVersion,
        KnobColor,
        KnobType,
        KnobCcType,
        KnobMidiChannel,
        KnobMidiCc1,
        KnobMidiCc2,
        BankColor,
        BankSnapshotColor,
        Sync,
        FirmwareUpload,
    )
}


def encode_message(message: ConfigMessage) -> list[int]:
    """
    Encode a message as ``[type, *payload]``.

    Example:
        >>> encode_message(KnobColor.for_all_snapshots(bank=2, knob=5, color=40))
        [16, 2, 8, 5, 40]
    """
    return [int(message.message_type), *message.payload()]


def decode_message(message_type: int, payload: Sequence[int]) -> Optional[ConfigMessage]:
    """
    Decode a received message.

    Args:
        message_type: Type byte from the frame
        payload: Bytes after the type byte

    Returns:
        The decoded message, or None if the type is unknown or the payload is
        malformed (a warning is logged)
    """
    try:
        mtype = MessageType(message_type)
    except ValueError:
        logger.warning(f"Unknown message type: 0x{message_type:02X}")
        return None

    try:
        return MESSAGE_CLASSES[mtype].from_payload(payload)
    except ValueError as e:
        logger.warning(f"Dropping malformed {mtype.name} message {list(payload)}: {e}")
        return None
