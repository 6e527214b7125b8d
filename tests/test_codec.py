"""Tests for SysEx framing."""

import mido
import pytest

from timepod.protocol import (
    TIMEPOD_DEVICE,
    TIMEPOD_MANUFACTURER_EXT,
    SysExEncodeError,
    SysExFrame,
    decode_frame,
    encode_frame,
    encode_id,
    format_sysex_bytes,
    from_mido,
    to_mido,
)


@pytest.mark.unit
class TestIdentifiers:
    """Test 16-bit id encoding."""

    def test_manufacturer_id(self):
        """0x04D8 keeps 7 bits per byte behind the extended marker."""
        assert TIMEPOD_MANUFACTURER_EXT == (0x00, 0x04, 0x58)

    def test_device_id(self):
        assert TIMEPOD_DEVICE == (0x65, 0x14)

    def test_encode_id_rejects_out_of_range(self):
        with pytest.raises(SysExEncodeError):
            encode_id(0x10000)


@pytest.mark.unit
class TestEncodeFrame:
    """Test frame construction."""

    def test_brightness_frame(self):
        frame = encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x01, [100])
        assert frame == [0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x01, 0x64, 0xF7]

    def test_empty_payload(self):
        frame = encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x7E)
        assert frame == [0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x7E, 0xF7]

    def test_payload_byte_over_127_rejected(self):
        with pytest.raises(SysExEncodeError):
            encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x01, [128])

    def test_type_byte_over_127_rejected(self):
        with pytest.raises(SysExEncodeError):
            encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x80)

    def test_wrong_manufacturer_length_rejected(self):
        with pytest.raises(SysExEncodeError):
            encode_frame((0x04, 0x58), TIMEPOD_DEVICE, 0x01)

    def test_wrong_device_length_rejected(self):
        with pytest.raises(SysExEncodeError):
            encode_frame(TIMEPOD_MANUFACTURER_EXT, (0x65,), 0x01)

    def test_encode_error_is_value_error(self):
        assert issubclass(SysExEncodeError, ValueError)


@pytest.mark.unit
class TestDecodeFrame:
    """Test frame parsing."""

    def test_decode_fields(self):
        frame = [0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x10, 2, 8, 5, 40, 0xF7]
        decoded = decode_frame(frame)
        assert decoded == SysExFrame(
            manufacturer=(0x00, 0x04, 0x58),
            device=(0x65, 0x14),
            message_type=0x10,
            payload=(2, 8, 5, 40),
        )

    def test_decode_empty_payload(self):
        decoded = decode_frame([0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x7E, 0xF7])
        assert decoded is not None
        assert decoded.payload == ()

    def test_too_short_ignored(self):
        assert decode_frame([0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0xF7]) is None

    def test_missing_start_ignored(self):
        assert decode_frame([0x90, 0x00, 0x04, 0x58, 0x65, 0x14, 0x01, 0x64, 0xF7]) is None

    def test_missing_end_ignored(self):
        assert decode_frame([0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x01, 0x64, 0x00]) is None

    def test_decode_encoded_frame(self):
        frame = encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x21, [3, 8, 12])
        decoded = decode_frame(frame)
        assert decoded.message_type == 0x21
        assert decoded.payload == (3, 8, 12)


@pytest.mark.unit
class TestMidoConversion:
    """Test conversion to and from mido messages."""

    def test_to_mido_strips_markers(self):
        frame = encode_frame(TIMEPOD_MANUFACTURER_EXT, TIMEPOD_DEVICE, 0x01, [100])
        msg = to_mido(frame)
        assert msg.type == "sysex"
        assert list(msg.data) == [0x00, 0x04, 0x58, 0x65, 0x14, 0x01, 0x64]

    def test_from_mido_restores_markers(self):
        msg = mido.Message("sysex", data=[0x00, 0x04, 0x58, 0x65, 0x14, 0x7E])
        assert from_mido(msg) == [0xF0, 0x00, 0x04, 0x58, 0x65, 0x14, 0x7E, 0xF7]

    def test_from_mido_ignores_other_messages(self):
        assert from_mido(mido.Message("note_on", note=60)) is None


@pytest.mark.unit
class TestFormatSysex:
    def test_format(self):
        assert format_sysex_bytes([0xF0, 0x01, 0xF7]) == "F0 01 F7"

    def test_truncation(self):
        text = format_sysex_bytes(list(range(10)), max_len=4)
        assert text == "00 01 02 03 ...(+6 bytes)"
