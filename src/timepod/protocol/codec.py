"""
Low-level SysEx frame codec for the TP-001.

Frame Layout
------------

Every configuration message travels in one System Exclusive frame::

    F0  00 04 58  65 14  <type>  <payload...>  F7
    │   └──┬───┘  └─┬─┘    │          │        └─ End of SysEx
    │      │        │      │          └─ Message-specific bytes (0-127 each)
    │      │        │      └─ Message type
    │      │        └─ Device id (0xE514, 7-bit safe)
    │      └─ Extended manufacturer id (0x04D8, 7-bit safe)
    └─ Start of SysEx

Every byte between the markers must be 0-127. The 16-bit manufacturer and
device codes do not fit as-is, so the top bit of each byte is stripped
(``0xD8 -> 0x58``, ``0xE5 -> 0x65``); the manufacturer id is additionally
prefixed with the ``0x00`` extended-id marker.

This module is the LOWEST protocol layer. It knows byte sequences, not
banks or knobs. It performs no 8-to-7 bit splitting: callers keep semantic
values inside the 7-bit range, and ``encode_frame`` refuses anything else.
``decode_frame`` never raises, because the MIDI wire is shared with other
traffic and anything unexpected is simply ignored.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import mido

SYSEX_START = 0xF0
SYSEX_END = 0xF7

EXTENDED_ID_MARKER = 0x00

# USB vendor/product ids, reused as SysEx manufacturer/device codes
TIMEPOD_MANUFACTURER_ID = 0x04D8
TIMEPOD_DEVICE_ID = 0xE514

# start + 3 manufacturer + 2 device + type + end
MIN_FRAME_LENGTH = 8
TYPE_OFFSET = 6
PAYLOAD_OFFSET = 7


class SysExEncodeError(ValueError):
    """A value does not fit in a 7-bit SysEx data byte."""
    pass


@dataclass(frozen=True)
class SysExFrame:
    """A decoded vendor SysEx frame."""

    manufacturer: tuple[int, int, int]
    device: tuple[int, int]
    message_type: int
    payload: tuple[int, ...]


def encode_id(value: int) -> tuple[int, int]:
    """
    Encode a 16-bit code as two 7-bit-safe bytes.

    The top bit of each byte is dropped, so the mapping is lossy by design
    of the device firmware: ``0x04D8 -> (0x04, 0x58)``.

    Args:
        value: 16-bit manufacturer or device code

    Returns:
        (high, low) byte pair, each 0-127
    """
    if not 0 <= value <= 0xFFFF:
        raise SysExEncodeError(f"id must be 0-65535, got {value}")
    return (value >> 8) & 0x7F, value & 0x7F


TIMEPOD_MANUFACTURER_EXT: tuple[int, int, int] = (EXTENDED_ID_MARKER, *encode_id(TIMEPOD_MANUFACTURER_ID))
TIMEPOD_DEVICE: tuple[int, int] = encode_id(TIMEPOD_DEVICE_ID)


def _check_data_bytes(name: str, values: Iterable[int]) -> list[int]:
    checked = []
    for value in values:
        if not 0 <= value <= 0x7F:
            raise SysExEncodeError(f"{name} byte {value} is outside the 7-bit range 0-127")
        checked.append(int(value))
    return checked


def encode_frame(
    manufacturer_ext: Sequence[int],
    device_id: Sequence[int],
    message_type: int,
    payload: Sequence[int] = (),
) -> list[int]:
    """
    Build a framed SysEx message.

    Args:
        manufacturer_ext: Three 7-bit manufacturer bytes
        device_id: Two 7-bit device bytes
        message_type: Message type byte
        payload: Message payload bytes

    Returns:
        ``[F0, m0, m1, m2, d0, d1, type, *payload, F7]``

    Raises:
        SysExEncodeError: If an id has the wrong length or any byte is > 127
    """
    if len(manufacturer_ext) != 3:
        raise SysExEncodeError(f"manufacturer id must be 3 bytes, got {len(manufacturer_ext)}")
    if len(device_id) != 2:
        raise SysExEncodeError(f"device id must be 2 bytes, got {len(device_id)}")

    return [
        SYSEX_START,
        *_check_data_bytes("manufacturer", manufacturer_ext),
        *_check_data_bytes("device", device_id),
        *_check_data_bytes("type", [message_type]),
        *_check_data_bytes("payload", payload),
        SYSEX_END,
    ]


def decode_frame(frame: Sequence[int]) -> Optional[SysExFrame]:
    """
    Split a framed SysEx message into its fields.

    Returns None (the frame is ignored) when it is shorter than
    ``MIN_FRAME_LENGTH`` or not bounded by F0/F7.

    Args:
        frame: Complete frame including F0 and F7

    Returns:
        Decoded SysExFrame, or None
    """
    if len(frame) < MIN_FRAME_LENGTH:
        return None
    if frame[0] != SYSEX_START or frame[-1] != SYSEX_END:
        return None

    return SysExFrame(
        manufacturer=(frame[1], frame[2], frame[3]),
        device=(frame[4], frame[5]),
        message_type=frame[TYPE_OFFSET],
        payload=tuple(frame[PAYLOAD_OFFSET:-1]),
    )


def to_mido(frame: Sequence[int]) -> mido.Message:
    """Wrap a framed message for mido (whose sysex data excludes F0/F7)."""
    return mido.Message("sysex", data=list(frame[1:-1]))


def from_mido(message: mido.Message) -> Optional[list[int]]:
    """Rebuild the full frame from a mido sysex message, or None for other types."""
    if message.type != "sysex":
        return None
    return [SYSEX_START, *message.data, SYSEX_END]


def format_sysex_bytes(data: Sequence[int], *, max_len: int = 64) -> str:
    """
    Format SysEx bytes as hex, truncated for logs.

    Accepts framed (F0..F7) or unframed data.
    """
    raw = bytes(data)
    hex_part = " ".join(f"{b:02X}" for b in raw[:max_len])
    if len(raw) > max_len:
        return f"{hex_part} ...(+{len(raw) - max_len} bytes)"
    return hex_part
