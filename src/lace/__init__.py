"""Lace timeline: projects an agent's thread events into a renderable timeline."""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
