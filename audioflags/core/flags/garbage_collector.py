"""
Background checks that drop flag records for files deleted from disk.
"""
import logging
from typing import Callable

from PyQt5.QtCore import QRunnable

logger = logging.getLogger(__name__)


class StaleRecordCheck(QRunnable):
    """Worker that deletes one stored record if its file is gone."""

    def __init__(self, store, key: str, exists: Callable[[str], bool]):
        super().__init__()
        self._store = store
        self._key = key
        self._exists = exists
        self.setAutoDelete(True)

    def run(self):
        """Execute the existence check in a pool thread."""
        try:
            if self._exists(self._key):
                return
            if self._store.delete(self._key):
                logger.info("Removed flags for missing file %s", self._key)
        except Exception:
            # Nothing waits on this worker, so failures can only be logged
            logger.exception("Stale record check failed for %s", self._key)
