"""Configuration and firmware tools for the Modern MIDI TP-001 (Timepod) controller."""

__version__ = "0.1.0"
