"""
Sound cue output used by flag commands.
"""
import logging

logger = logging.getLogger(__name__)


class LoggingCuePlayer:
    """
    Cue player that only records what would be played.

    A real player sends a program change to ``instrument`` followed by
    ``note``; hosts with MIDI output pass their own object with the same
    ``play`` method to the controller.
    """

    def __init__(self):
        self.history = []

    def play(self, note: str, instrument: int) -> None:
        self.history.append((note, instrument))
        logger.debug("Cue: note %s on program %d", note, instrument)
