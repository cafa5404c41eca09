"""
Application controllers for managing interactions between UI and core logic.
"""
from .cue_player import LoggingCuePlayer
from .flag_controller import FlagController

__all__ = [
    'FlagController',
    'LoggingCuePlayer'
]
