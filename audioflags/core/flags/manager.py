"""
Main flag manager that coordinates the registry, reconciler and persistence.
"""
import logging
from typing import List, Optional, Sequence

from . import tones
from .errors import DuplicateFlag, NotFound, ToneCatalogExhausted
from .models import Flag, FlagDocument, Tone
from .persistence import FlagPersistence
from .reconciler import ReconcilePolicy, reconcile
from .registry import DocumentRegistry

logger = logging.getLogger(__name__)


def next_flag(candidates: Sequence[Flag], cursor_line: int) -> Flag:
    """
    Pick the flag to jump to from the cursor line.

    The target is the first candidate strictly below the cursor; a flag on
    the cursor line itself is skipped. At or past the last candidate the
    search wraps to the first one.

    Args:
        candidates: Flags to choose from, sorted by line number
        cursor_line: 0-based line of the cursor

    Returns:
        The target flag

    Raises:
        NotFound: If there are no candidates
    """
    if not candidates:
        raise NotFound("No flags to navigate to")

    if cursor_line >= candidates[-1].line_num:
        return candidates[0]

    for flag in candidates:
        if flag.line_num > cursor_line:
            return flag
    return candidates[0]


class FlagManager:
    """Manages the flags of every open file."""

    def __init__(self, persistence: FlagPersistence,
                 policy: ReconcilePolicy = ReconcilePolicy.REPAIR):
        self.registry = DocumentRegistry()
        self.persistence = persistence
        self.policy = policy

    def hydrate(self, file_id: str, line_count: int) -> Optional[FlagDocument]:
        """
        Make the stored flags of a file live when it becomes active.

        Args:
            file_id: Canonical file path
            line_count: Current line count of the file

        Returns:
            The tracked document, or None if the file has no flags
        """
        document = self.registry.get(file_id)
        if document is not None:
            return document

        document = self.persistence.load(file_id)
        if document is None:
            return None

        if document.line_count != line_count:
            # Edited outside the editor; there is no way to tell where
            logger.info(
                "Line count of %s changed from %d to %d while closed",
                file_id, document.line_count, line_count
            )
            document.line_count = line_count

        self.registry.put(document)
        logger.debug("Loaded %d flags for %s", len(document.flags), file_id)
        return document

    def get_document(self, file_id: str) -> Optional[FlagDocument]:
        return self.registry.get(file_id)

    def get_flags(self, file_id: str) -> List[Flag]:
        """Get the flags of a file, sorted by line number."""
        document = self.registry.get(file_id)
        return list(document.flags) if document else []

    def flag_at(self, file_id: str, line_num: int) -> Optional[Flag]:
        document = self.registry.get(file_id)
        return document.flag_at(line_num) if document else None

    def available_tones(self, file_id: str) -> List[Tone]:
        """Get the tones not yet used in a file."""
        document = self.registry.get(file_id)
        return tones.available(document.used_tones() if document else [])

    def check_can_add(self, file_id: str, line_num: int) -> List[Tone]:
        """
        Validate that a flag could be added to a line.

        Args:
            file_id: Canonical file path
            line_num: 0-based line index

        Returns:
            Tones the new flag may use

        Raises:
            DuplicateFlag: If the line already has a flag
            ToneCatalogExhausted: If every tone is taken
        """
        if self.flag_at(file_id, line_num) is not None:
            raise DuplicateFlag(f"A flag already exists on line {line_num + 1}")

        candidates = self.available_tones(file_id)
        if not candidates:
            raise ToneCatalogExhausted()
        return candidates

    def add_flag(self, file_id: str, line_count: int, line_num: int, tone: Tone) -> bool:
        """
        Add a flag with a chosen tone.

        Preconditions are checked again here because the flags may have
        changed while the tone was being chosen.

        Args:
            file_id: Canonical file path
            line_count: Current line count of the file
            line_num: 0-based line index
            tone: Tone for the new flag

        Returns:
            True if the change was persisted

        Raises:
            DuplicateFlag: If the line or the tone is already taken
        """
        document = self.registry.get(file_id)
        if document is not None:
            if document.flag_at(line_num) is not None:
                raise DuplicateFlag(f"A flag already exists on line {line_num + 1}")
            if document.has_tone(tone):
                raise DuplicateFlag(f"Tone {tone.name} is already used in this file")

        document = self.registry.get_or_create(file_id, line_count)
        document.flags.append(Flag(line_num=line_num, tone=tone))
        document.sort_flags()
        logger.debug("Added flag %s on line %d of %s", tone.name, line_num, file_id)
        return self._persist(document)

    def delete_flag(self, file_id: str, line_num: int) -> bool:
        """
        Remove the flag on a line.

        Args:
            file_id: Canonical file path
            line_num: 0-based line index

        Returns:
            True if the change was persisted

        Raises:
            NotFound: If the line has no flag
        """
        document = self.registry.get(file_id)
        flag = document.flag_at(line_num) if document else None
        if flag is None:
            raise NotFound(f"No flag on line {line_num + 1}")

        document.flags.remove(flag)
        logger.debug("Deleted flag %s on line %d of %s", flag.tone.name, line_num, file_id)
        saved = self._persist(document)
        self.registry.evict_if_empty(file_id)
        return saved

    def apply_edit(self, file_id: str, new_line_count: int,
                   change_start_lines: Sequence[int]) -> bool:
        """
        Reposition flags after an edit.

        Args:
            file_id: Canonical file path
            new_line_count: Line count after the edit
            change_start_lines: Start line of each change range in the batch

        Returns:
            True if any flag positions or the line count changed
        """
        document = self.registry.get(file_id)
        if document is None or not change_start_lines:
            return False

        changed = reconcile(document, change_start_lines[0], new_line_count, self.policy)
        self.registry.evict_if_empty(file_id)
        return changed

    def save(self, file_id: str) -> bool:
        """Persist the current flags of a file, e.g. when the file is saved."""
        document = self.registry.get(file_id)
        if document is None:
            return True
        return self._persist(document)

    def close(self, file_id: str) -> None:
        """Stop tracking a file that was closed."""
        self.registry.remove(file_id)

    def _persist(self, document: FlagDocument) -> bool:
        try:
            self.persistence.save(document)
            return True
        except OSError:
            logger.exception("Failed to save flags for %s", document.file_id)
            return False
