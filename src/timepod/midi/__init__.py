"""MIDI transport for the TP-001."""

from .transport import FrameCallback, MidiTransport

__all__ = ["FrameCallback", "MidiTransport"]
