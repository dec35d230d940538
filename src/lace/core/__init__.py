"""Core package initializer for Lace.

Submodules are imported explicitly by callers, e.g.:
    from lace.core.timeline import TimelineProjector
    from lace.core.settings import settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
