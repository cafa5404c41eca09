"""
Controller for flag commands and editor events.
"""
import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set

from PyQt5.QtCore import QObject, pyqtSignal

from audioflags.core.flags import tones
from audioflags.core.flags.errors import (
    FlagError,
    NoActiveFile,
    NotFound,
    RenderingResourceUnavailable,
    SelectionCancelled,
    UnsavedDocument
)
from audioflags.core.flags.manager import FlagManager, next_flag
from audioflags.core.flags.models import Flag, Tone
from audioflags.core.search import FlagSearchEngine
from audioflags.utils.config import AppConfig
from .cue_player import LoggingCuePlayer

logger = logging.getLogger(__name__)


class FlagController(QObject):
    """
    Handles flag commands against the active file.

    The editor, tone picker, cue player and context classifier are
    collaborators supplied by the host:

    - editor: ``cursor_line()``, ``line_count()``, ``line_text(n)``,
      ``visible_line_range()``, ``set_cursor(line, column, anchor_column)``
      and ``decorations_ready()``
    - tone_picker: ``pick(file_id, tones, on_chosen, on_cancelled, on_preview)``;
      returns immediately and calls back once the user decides
    - cue_player: ``play(note, instrument)``
    - classifier: ``describe(file_id, line)`` returning a line description
    """

    # Signals
    decorations_changed = pyqtSignal(str, list)  # file_id, flagged line numbers
    search_highlights_changed = pyqtSignal(list)  # FlagMatch list
    search_status_changed = pyqtSignal(str)
    message = pyqtSignal(str, str)  # level ("info" or "error"), text

    def __init__(self, flag_manager: FlagManager, editor, tone_picker,
                 cue_player=None, classifier=None, config: Optional[AppConfig] = None):
        super().__init__()
        self.flag_manager = flag_manager
        self.editor = editor
        self.tone_picker = tone_picker
        self.cue_player = cue_player or LoggingCuePlayer()
        self.classifier = classifier
        self.config = config or AppConfig()
        self.search_engine = FlagSearchEngine()

        self.active_file_id: Optional[str] = None
        self.active_is_unsaved: bool = False
        self._open_files: Set[str] = set()
        self._line_counts: Dict[str, int] = {}
        self._last_cue_line: Optional[int] = None

        # One tone prompt per file at a time, keyed to the line it is for;
        # later adds wait their turn
        self._prompting: Dict[str, int] = {}
        self._add_queue: Dict[str, Deque[int]] = {}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_flag(self) -> None:
        """Start adding a flag on the cursor line."""
        try:
            file_id = self._require_saved_file()
            self._require_decorations()
            line = self.editor.cursor_line()

            if file_id in self._prompting:
                self._add_queue.setdefault(file_id, deque()).append(line)
                logger.debug("Queued add on line %d of %s", line, file_id)
                return

            self._begin_add(file_id, line)
        except FlagError as e:
            self._report(e)

    def delete_flag(self) -> None:
        """Delete the flag on the cursor line."""
        try:
            file_id = self._require_active_file()
            self._require_decorations()
            line = self.editor.cursor_line()

            saved = self.flag_manager.delete_flag(file_id, line)
            self._refresh_decorations(file_id)
            self._refresh_search(file_id)
            if saved:
                self.message.emit("info", f"Flag removed from line {line + 1}")
            else:
                self.message.emit("error", "Flag removed but could not be saved")
        except FlagError as e:
            self._report(e)

    def navigate_to_flag(self, candidates: Optional[List[Flag]] = None) -> Optional[Flag]:
        """
        Move the cursor to the next flag after the cursor line.

        Args:
            candidates: Flags to choose from; all flags of the file by default

        Returns:
            The flag navigated to, or None on failure
        """
        try:
            file_id = self._require_active_file()
            if candidates is None:
                candidates = self.flag_manager.get_flags(file_id)

            target = next_flag(candidates, self.editor.cursor_line())
            line_length = len(self.editor.line_text(target.line_num))
            self.editor.set_cursor(target.line_num, line_length)
            return target
        except FlagError as e:
            self._report(e)
            return None

    def search_flags(self, query: str) -> None:
        """
        Search the flagged lines of the active file.

        The cursor moves to the closest match unless a match is already
        on screen. An empty query clears the search.
        """
        try:
            file_id = self._require_active_file()

            if not query:
                self.clear_search()
                return

            flags = self.flag_manager.get_flags(file_id)
            if not flags:
                self.clear_search()
                raise NotFound("No flags to search in this file")

            self.search_engine.execute_search(query, flags, self.editor.line_text)
            self.search_highlights_changed.emit(list(self.search_engine.search_results))
            self.search_status_changed.emit(self.search_engine.status_text())

            if self.search_engine.any_visible(self.editor.visible_line_range()):
                return

            nearest = self.search_engine.nearest_result(self.editor.cursor_line())
            if nearest is not None:
                self.editor.set_cursor(nearest.line_num, nearest.end, nearest.start)
        except FlagError as e:
            self._report(e)

    def jump_to_search_match(self) -> Optional[Flag]:
        """Navigate among the flags matching the current search, or all flags."""
        if self.active_file_id is None:
            self._report(NoActiveFile())
            return None

        flags = self.flag_manager.get_flags(self.active_file_id)
        return self.navigate_to_flag(self.search_engine.matching_flags(flags))

    def clear_search(self) -> None:
        """Remove all search highlights."""
        self.search_engine.clear_search()
        self.search_highlights_changed.emit([])
        self.search_status_changed.emit("")

    def play_line_audio(self) -> None:
        """Play the cue for the cursor line: its flag tone or a context note."""
        try:
            file_id = self._require_active_file()
            line = self.editor.cursor_line()
            self._play_line(file_id, line)
        except FlagError as e:
            self._report(e)

    def toggle_sound_cues(self) -> bool:
        """Turn cues on cursor movement on or off."""
        self.config.sound_cues = not self.config.sound_cues
        self._last_cue_line = None
        if self.config.sound_cues:
            self.message.emit("info", "Sound Cues Activated")
        else:
            self.message.emit("info", "Sound Cues Deactivated")
        return self.config.sound_cues

    def flag_tone_at_cursor(self) -> Optional[str]:
        """Get the tone name of the flag on the cursor line, if any."""
        if self.active_file_id is None:
            return None
        flag = self.flag_manager.flag_at(self.active_file_id, self.editor.cursor_line())
        return flag.tone.name if flag else None

    # ------------------------------------------------------------------
    # Editor events
    # ------------------------------------------------------------------

    def on_active_document_changed(self, file_id: Optional[str], is_unsaved: bool,
                                   line_count: int) -> None:
        """
        Track the newly focused file and load its stored flags.

        Args:
            file_id: Canonical path, or None when no file is focused
            is_unsaved: True for files without a stable path
            line_count: Current line count of the file
        """
        self.active_file_id = file_id
        self.active_is_unsaved = is_unsaved
        self._last_cue_line = None
        self.clear_search()

        if file_id is None:
            return

        self._open_files.add(file_id)
        self._line_counts[file_id] = line_count
        if not is_unsaved:
            self.flag_manager.hydrate(file_id, line_count)
        self._refresh_decorations(file_id)

    def on_document_changed(self, file_id: str, new_line_count: int,
                            change_start_lines: List[int]) -> None:
        """Reposition flags, pending adds and search matches after an edit."""
        old_line_count = self._line_counts.get(file_id, new_line_count)
        self._line_counts[file_id] = new_line_count
        if change_start_lines and new_line_count != old_line_count:
            self._shift_pending_adds(file_id, change_start_lines[0],
                                     new_line_count - old_line_count)

        if self.flag_manager.apply_edit(file_id, new_line_count, change_start_lines):
            self._refresh_decorations(file_id)
        self._refresh_search(file_id)

    def on_document_saved(self, file_id: str) -> None:
        """Persist flags together with the file."""
        if not self.flag_manager.save(file_id):
            self.message.emit("error", "Flags could not be saved")

    def on_document_closed(self, file_id: str) -> None:
        """Forget a closed file; its stored flags stay on disk."""
        self.flag_manager.close(file_id)
        self._open_files.discard(file_id)
        self._line_counts.pop(file_id, None)
        self._add_queue.pop(file_id, None)
        if self.active_file_id == file_id:
            self.active_file_id = None
            self.active_is_unsaved = False
            self.clear_search()

    def on_cursor_line_changed(self, line: int) -> None:
        """Play the line cue when cues are enabled and the line changed."""
        if not self.config.sound_cues or self.active_file_id is None:
            return
        if line == self._last_cue_line:
            return
        self._last_cue_line = line
        self._play_line(self.active_file_id, line)

    # ------------------------------------------------------------------
    # Add flow
    # ------------------------------------------------------------------

    def _begin_add(self, file_id: str, line: int) -> None:
        self._require_line_in_file(file_id, line)
        candidates = self.flag_manager.check_can_add(file_id, line)
        self._prompting[file_id] = line
        self.tone_picker.pick(
            file_id,
            candidates,
            lambda tone: self._finish_add(file_id, tone),
            lambda: self._cancel_add(file_id),
            self._preview_tone
        )

    def _finish_add(self, file_id: str, tone: Tone) -> None:
        """Resume an add once a tone was chosen."""
        line = self._prompting.get(file_id, 0)
        try:
            # The file may have changed or closed while the prompt was open
            if file_id not in self._open_files:
                raise NoActiveFile("File was closed before the flag was added")
            self._require_line_in_file(file_id, line)

            line_count = self._line_counts[file_id]
            saved = self.flag_manager.add_flag(file_id, line_count, line, tone)
            self._refresh_decorations(file_id)
            self._refresh_search(file_id)

            if self.config.sound_cues:
                self.cue_player.play(tone.note, tone.instrument)

            if saved:
                self.message.emit("info", f"Flag {tone.name} added to line {line + 1}")
            else:
                self.message.emit("error", "Flag added but could not be saved")
        except FlagError as e:
            self._report(e)
        finally:
            self._prompting.pop(file_id, None)
            self._drain_queue(file_id)

    def _cancel_add(self, file_id: str) -> None:
        self._prompting.pop(file_id, None)
        self._report(SelectionCancelled("Flag not added"))
        self._drain_queue(file_id)

    def _drain_queue(self, file_id: str) -> None:
        queue = self._add_queue.get(file_id)
        while queue and file_id not in self._prompting:
            line = queue.popleft()
            try:
                self._begin_add(file_id, line)
            except FlagError as e:
                self._report(e)
        if not queue:
            self._add_queue.pop(file_id, None)

    def _shift_pending_adds(self, file_id: str, start_line: int, delta: int) -> None:
        """Move the lines of open and queued adds with an edit, like flags move."""
        if file_id in self._prompting and self._prompting[file_id] >= start_line:
            self._prompting[file_id] += delta

        queue = self._add_queue.get(file_id)
        if queue:
            self._add_queue[file_id] = deque(
                line + delta if line >= start_line else line for line in queue
            )

    def _preview_tone(self, tone: Tone) -> None:
        if self.config.preview_tones:
            self.cue_player.play(tone.note, tone.instrument)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _play_line(self, file_id: str, line: int) -> None:
        flag = self.flag_manager.flag_at(file_id, line)
        if flag is not None:
            self.cue_player.play(flag.tone.note, flag.tone.instrument)
            return

        if self.classifier is not None:
            context = self.classifier.describe(file_id, line)
        else:
            context = "" if self.editor.line_text(line).strip() else "BLANK"
        note = tones.context_note(context)
        self.cue_player.play(note, tones.instrument_for_note(note))

    def _require_active_file(self) -> str:
        if self.active_file_id is None:
            raise NoActiveFile()
        return self.active_file_id

    def _require_saved_file(self) -> str:
        file_id = self._require_active_file()
        if self.active_is_unsaved:
            raise UnsavedDocument()
        return file_id

    def _require_line_in_file(self, file_id: str, line: int) -> None:
        if not 0 <= line < self._line_counts.get(file_id, 0):
            raise NotFound("Line is no longer in the file")

    def _require_decorations(self) -> None:
        if not self.editor.decorations_ready():
            raise RenderingResourceUnavailable()

    def _refresh_decorations(self, file_id: str) -> None:
        lines = [flag.line_num for flag in self.flag_manager.get_flags(file_id)]
        self.decorations_changed.emit(file_id, lines)

    def _refresh_search(self, file_id: str) -> None:
        """Re-run the active query so matches follow the flags."""
        if file_id != self.active_file_id or not self.search_engine.current_search_term:
            return

        flags = self.flag_manager.get_flags(file_id)
        self.search_engine.execute_search(
            self.search_engine.current_search_term, flags, self.editor.line_text
        )
        self.search_highlights_changed.emit(list(self.search_engine.search_results))
        self.search_status_changed.emit(self.search_engine.status_text())

    def _report(self, error: FlagError) -> None:
        if isinstance(error, SelectionCancelled):
            logger.debug("Cancelled: %s", error.message)
            self.message.emit("info", error.message)
        else:
            logger.info("Flag command failed: %s", error.message)
            self.message.emit("error", error.message)
