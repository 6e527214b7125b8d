"""In-memory model of the controller's configuration.

The state is created with factory defaults, updated from confirmed device
events and from user edits that are also sent to the device. It is never
persisted.

Both directions go through ``DeviceState.apply``, so derived flags
(``use_single_color``, ``use_single_snapshot_color``) are recomputed the same
way for outgoing edits and incoming device reports.
"""

import logging

from pydantic import BaseModel, Field, field_validator

from timepod.protocol.messages import (
    NUM_BANKS,
    NUM_KNOBS,
    NUM_SNAPSHOTS,
    BankColor,
    BankSnapshotColor,
    Brightness,
    CcType,
    ConfigMessage,
    DisplayMode,
    FirmwareVersion,
    KnobCcType,
    KnobColor,
    KnobMidiCc1,
    KnobMidiCc2,
    KnobMidiChannel,
    KnobType,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOR = 51
DEFAULT_CC_LSB = 32
DEFAULT_BRIGHTNESS = 100

# 14-bit CC convention: LSB controller = MSB controller + 32
LSB_OFFSET = 32


def lsb_for(cc: int) -> int:
    """LSB controller paired with ``cc`` for 14-bit messages, clamped to 127."""
    return min(127, max(0, cc + LSB_OFFSET))


def _all_equal(values: list[int]) -> bool:
    return all(value == values[0] for value in values)


class KnobState(BaseModel):
    """Settings of one knob within a bank."""

    color_indices: list[int] = Field(
        default_factory=lambda: [DEFAULT_COLOR] * NUM_SNAPSHOTS,
        description="Palette index per snapshot",
    )
    use_single_color: bool = Field(default=True, description="Same color in every snapshot")
    channel: int = Field(default=1, ge=1, le=16, description="MIDI channel (1-16)")
    cc: int = Field(default=0, ge=0, le=127, description="Controller number (MSB)")
    cc_lsb: int = Field(default=DEFAULT_CC_LSB, ge=0, le=127, description="LSB controller number")
    cc_type: CcType = Field(default=CcType.STANDARD_7)
    display_mode: DisplayMode = Field(default=DisplayMode.FILL)

    @field_validator("color_indices")
    @classmethod
    def validate_color_count(cls, v: list[int]) -> list[int]:
        """Ensure one color per snapshot."""
        if len(v) != NUM_SNAPSHOTS:
            raise ValueError(f"Knob must have exactly {NUM_SNAPSHOTS} colors")
        return v

    def set_color(self, snapshot: int | None, color: int) -> None:
        """
        Set one snapshot color, or all of them when ``snapshot`` is None.

        Filling every slot marks the knob single-color; a single-slot update
        marks it single-color only if all slots now match.
        """
        if snapshot is None:
            self.color_indices = [color] * NUM_SNAPSHOTS
            self.use_single_color = True
        else:
            self.color_indices[snapshot] = color
            self.use_single_color = _all_equal(self.color_indices)


class SnapshotState(BaseModel):
    """A snapshot button's color."""

    color_index: int = Field(default=DEFAULT_COLOR, ge=0, le=63)


def _create_default_knobs() -> list[KnobState]:
    return [KnobState() for _ in range(NUM_KNOBS)]


def _create_default_snapshots() -> list[SnapshotState]:
    return [SnapshotState() for _ in range(NUM_SNAPSHOTS)]


class Bank(BaseModel):
    """One of the 8 configuration sets."""

    knobs: list[KnobState] = Field(default_factory=_create_default_knobs)
    snapshots: list[SnapshotState] = Field(default_factory=_create_default_snapshots)
    color: int = Field(default=DEFAULT_COLOR, ge=0, le=127, description="Bank color")
    use_single_snapshot_color: bool = False

    @field_validator("knobs")
    @classmethod
    def validate_knob_count(cls, v: list[KnobState]) -> list[KnobState]:
        if len(v) != NUM_KNOBS:
            raise ValueError(f"Bank must have exactly {NUM_KNOBS} knobs")
        return v

    @field_validator("snapshots")
    @classmethod
    def validate_snapshot_count(cls, v: list[SnapshotState]) -> list[SnapshotState]:
        if len(v) != NUM_SNAPSHOTS:
            raise ValueError(f"Bank must have exactly {NUM_SNAPSHOTS} snapshots")
        return v

    @property
    def snapshot_colors(self) -> list[int]:
        return [snapshot.color_index for snapshot in self.snapshots]

    def set_snapshot_color(self, snapshot: int | None, color: int) -> None:
        """Same single/all rule as ``KnobState.set_color``, for snapshot buttons."""
        if snapshot is None:
            for state in self.snapshots:
                state.color_index = color
            self.use_single_snapshot_color = True
        else:
            self.snapshots[snapshot].color_index = color
            self.use_single_snapshot_color = _all_equal(self.snapshot_colors)


def _create_default_banks() -> list[Bank]:
    return [Bank() for _ in range(NUM_BANKS)]


class DeviceState(BaseModel):
    """Complete configuration of the controller."""

    banks: list[Bank] = Field(default_factory=_create_default_banks)
    brightness: int = Field(default=DEFAULT_BRIGHTNESS, ge=0, le=127)
    firmware_version: tuple[int, int] | None = Field(
        default=None, description="(major, minor) last reported by the device"
    )

    @field_validator("banks")
    @classmethod
    def validate_bank_count(cls, v: list[Bank]) -> list[Bank]:
        if len(v) != NUM_BANKS:
            raise ValueError(f"Device must have exactly {NUM_BANKS} banks")
        return v

    def get_knob(self, bank: int, knob: int) -> KnobState:
        """Get a knob, raising ValueError for out-of-range indices."""
        if not 0 <= bank < NUM_BANKS:
            raise ValueError(f"Invalid bank: {bank}. Must be 0-{NUM_BANKS - 1}.")
        if not 0 <= knob < NUM_KNOBS:
            raise ValueError(f"Invalid knob: {knob}. Must be 0-{NUM_KNOBS - 1}.")
        return self.banks[bank].knobs[knob]

    def get_bank(self, bank: int) -> Bank:
        if not 0 <= bank < NUM_BANKS:
            raise ValueError(f"Invalid bank: {bank}. Must be 0-{NUM_BANKS - 1}.")
        return self.banks[bank]

    @property
    def firmware_version_string(self) -> str:
        if self.firmware_version is None:
            return "unknown"
        major, minor = self.firmware_version
        return f"{major}.{minor}"

    def apply(self, message: ConfigMessage) -> bool:
        """
        Apply a configuration message to the state.

        Args:
            message: Decoded or about-to-be-sent message

        Returns:
            True if the message changed state, False for messages that carry
            no state (sync, bootloader request)
        """
        if isinstance(message, Brightness):
            self.brightness = message.value
        elif isinstance(message, FirmwareVersion):
            self.firmware_version = (message.major, message.minor)
        elif isinstance(message, KnobColor):
            snapshot = None if message.applies_to_all_snapshots else message.snapshot
            self.get_knob(message.bank, message.knob).set_color(snapshot, message.color)
        elif isinstance(message, KnobType):
            self.get_knob(message.bank, message.knob).display_mode = message.display_mode
        elif isinstance(message, KnobCcType):
            self.get_knob(message.bank, message.knob).cc_type = message.cc_type
        elif isinstance(message, KnobMidiChannel):
            self.get_knob(message.bank, message.knob).channel = message.channel
        elif isinstance(message, KnobMidiCc1):
            self.get_knob(message.bank, message.knob).cc = message.cc
        elif isinstance(message, KnobMidiCc2):
            self.get_knob(message.bank, message.knob).cc_lsb = message.cc
        elif isinstance(message, BankColor):
            self.get_bank(message.bank).color = message.color
        elif isinstance(message, BankSnapshotColor):
            snapshot = None if message.applies_to_all_snapshots else message.snapshot
            self.get_bank(message.bank).set_snapshot_color(snapshot, message.color)
        else:
            return False
        logger.debug(f"Applied {message.message_type.name}: {message}")
        return True
