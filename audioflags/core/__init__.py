"""
Core business logic for AudioFlags.
"""

from .flags import Flag, FlagDocument, FlagManager, Tone
from .search import FlagMatch, FlagSearchEngine

__all__ = [
    "FlagManager",
    "FlagDocument",
    "Flag",
    "Tone",
    "FlagSearchEngine",
    "FlagMatch",
]
