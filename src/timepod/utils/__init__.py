"""Generic utility modules for timepod."""

from .persistence import PydanticPersistence

__all__ = ["PydanticPersistence"]
