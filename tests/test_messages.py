"""Tests for the configuration message catalogue."""

import pytest
from pydantic import ValidationError

from timepod.protocol import (
    ALL_SNAPSHOTS,
    MESSAGE_CLASSES,
    BankColor,
    BankSnapshotColor,
    Brightness,
    CcType,
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


@pytest.mark.unit
class TestMessageTypes:
    """Test type codes."""

    def test_codes(self):
        assert MessageType.BRIGHTNESS == 0x01
        assert MessageType.FIRMWARE_VERSION == 0x02
        assert MessageType.KNOB_COLOR == 0x10
        assert MessageType.KNOB_TYPE == 0x11
        assert MessageType.KNOB_CC_TYPE == 0x12
        assert MessageType.KNOB_MIDI_CHANNEL == 0x13
        assert MessageType.KNOB_MIDI_CC1 == 0x14
        assert MessageType.KNOB_MIDI_CC2 == 0x15
        assert MessageType.BANK_COLOR == 0x20
        assert MessageType.BANK_SNAPSHOT_COLOR == 0x21
        assert MessageType.FIRMWARE_UPLOAD == 0x7D
        assert MessageType.SYNC == 0x7E

    def test_every_type_has_a_class(self):
        assert set(MESSAGE_CLASSES) == set(MessageType)

    def test_enum_codes(self):
        assert [m.code for m in DisplayMode] == [0, 1, 2]
        assert CcType.from_code(1) is CcType.STANDARD_14


@pytest.mark.unit
class TestEncodeMessage:
    """Test message encoding."""

    def test_knob_color_all_snapshots(self):
        msg = KnobColor.for_all_snapshots(bank=2, knob=5, color=40)
        assert msg.applies_to_all_snapshots
        assert encode_message(msg) == [0x10, 2, 8, 5, 40]

    def test_knob_color_single_snapshot(self):
        msg = KnobColor(bank=0, snapshot=3, knob=15, color=127)
        assert not msg.applies_to_all_snapshots
        assert encode_message(msg) == [0x10, 0, 3, 15, 127]

    def test_channel_is_zero_based_on_wire(self):
        assert encode_message(KnobMidiChannel(bank=1, knob=2, channel=16)) == [0x13, 1, 2, 15]

    def test_display_mode_code(self):
        msg = KnobType(bank=0, knob=0, display_mode=DisplayMode.POINTER)
        assert encode_message(msg) == [0x11, 0, 0, 2]

    def test_cc_type_code(self):
        msg = KnobCcType(bank=7, knob=1, cc_type=CcType.NRPN_14)
        assert encode_message(msg) == [0x12, 7, 1, 2]

    def test_cc_messages(self):
        assert encode_message(KnobMidiCc1(bank=0, knob=1, cc=74)) == [0x14, 0, 1, 74]
        assert encode_message(KnobMidiCc2(bank=0, knob=1, cc=106)) == [0x15, 0, 1, 106]

    def test_bank_messages(self):
        assert encode_message(BankColor(bank=4, color=9)) == [0x20, 4, 9]
        assert encode_message(BankSnapshotColor.for_all_snapshots(bank=4, color=63)) == [0x21, 4, 8, 63]

    def test_empty_payloads(self):
        assert encode_message(Sync()) == [0x7E]
        assert encode_message(FirmwareUpload()) == [0x7D]

    def test_string_enum_values_accepted(self):
        msg = KnobType(bank=0, knob=0, display_mode="bipolar")
        assert msg.display_mode is DisplayMode.BIPOLAR


@pytest.mark.unit
class TestMessageValidation:
    """Test range checks at construction."""

    @pytest.mark.parametrize("kwargs", [
        {"bank": 8, "snapshot": 0, "knob": 0, "color": 0},
        {"bank": 0, "snapshot": 9, "knob": 0, "color": 0},
        {"bank": 0, "snapshot": 0, "knob": 16, "color": 0},
        {"bank": 0, "snapshot": 0, "knob": 0, "color": 128},
    ])
    def test_knob_color_ranges(self, kwargs):
        with pytest.raises(ValidationError):
            KnobColor(**kwargs)

    def test_channel_range(self):
        with pytest.raises(ValidationError):
            KnobMidiChannel(bank=0, knob=0, channel=0)
        with pytest.raises(ValidationError):
            KnobMidiChannel(bank=0, knob=0, channel=17)

    def test_snapshot_color_range(self):
        with pytest.raises(ValidationError):
            BankSnapshotColor(bank=0, snapshot=0, color=64)

    def test_messages_are_frozen(self):
        msg = Brightness(value=10)
        with pytest.raises(ValidationError):
            msg.value = 20


@pytest.mark.unit
class TestDecodeMessage:
    """Test message decoding."""

    def test_decode_knob_color(self):
        msg = decode_message(0x10, [2, ALL_SNAPSHOTS, 5, 40])
        assert msg == KnobColor(bank=2, snapshot=8, knob=5, color=40)

    def test_decode_channel(self):
        msg = decode_message(0x13, [0, 0, 0])
        assert msg.channel == 1

    def test_decode_firmware_version(self):
        msg = decode_message(0x02, [1, 7])
        assert isinstance(msg, FirmwareVersion)
        assert str(msg) == "1.7"

    def test_decode_display_mode(self):
        msg = decode_message(0x11, [3, 4, 1])
        assert msg.display_mode is DisplayMode.BIPOLAR

    def test_extra_bytes_ignored(self):
        assert decode_message(0x01, [64, 0, 0]) == Brightness(value=64)

    def test_unknown_type_dropped(self, caplog):
        assert decode_message(0x33, [1, 2]) is None
        assert "Unknown message type" in caplog.text

    def test_short_payload_dropped(self):
        assert decode_message(0x10, [1, 2]) is None

    def test_out_of_range_value_dropped(self):
        assert decode_message(0x10, [9, 0, 0, 0]) is None

    def test_unknown_display_mode_dropped(self):
        assert decode_message(0x11, [0, 0, 5]) is None

    def test_unknown_cc_type_dropped(self):
        assert decode_message(0x12, [0, 0, 3]) is None

    def test_decode_encoded(self):
        original = KnobCcType(bank=3, knob=9, cc_type=CcType.STANDARD_14)
        message_type, *payload = encode_message(original)
        assert decode_message(message_type, payload) == original
