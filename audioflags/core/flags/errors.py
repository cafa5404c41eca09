"""
Failures reported by flag operations.

Every error carries a user-facing message. Controllers turn these into a
single status message; none of them are fatal.
"""
from typing import Optional


class FlagError(Exception):
    """Base class for recoverable flag operation failures."""

    default_message = "Flag operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NoActiveFile(FlagError):
    default_message = "No active file"


class UnsavedDocument(FlagError):
    default_message = "Save the file before adding flags"


class DuplicateFlag(FlagError):
    default_message = "A flag already exists on this line"


class NotFound(FlagError):
    default_message = "No flag found"


class SelectionCancelled(FlagError):
    """The user dismissed a prompt. Reported as information, not an error."""

    default_message = "Selection cancelled"


class CorruptPersistedRecord(FlagError):
    default_message = "Stored flag record is invalid"


class RenderingResourceUnavailable(FlagError):
    default_message = "Flag decorations are not initialized"


class ToneCatalogExhausted(FlagError):
    default_message = "All tones are already used in this file"
