"""
Search functionality for flagged lines.
"""

from .models import FlagMatch
from .search_engine import FlagSearchEngine

__all__ = ["FlagSearchEngine", "FlagMatch"]
