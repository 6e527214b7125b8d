"""Application wiring."""

from .context import AppContext

__all__ = ["AppContext"]
