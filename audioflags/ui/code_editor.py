from typing import List, Optional, Tuple

from PyQt5.QtCore import pyqtSignal
from PyQt5.QtGui import QColor, QTextCharFormat, QTextCursor, QTextFormat
from PyQt5.QtWidgets import QPlainTextEdit, QTextEdit

from audioflags.core.search import FlagMatch


class CodeEditor(QPlainTextEdit):
    """
    Plain text editor that shows flag lines and search matches.

    Also serves as the editor view the flag controller reads the cursor,
    line text and viewport from.
    """

    content_edited = pyqtSignal(int, list)  # new line count, change start lines
    cursor_line_changed = pyqtSignal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setLineWrapMode(QPlainTextEdit.NoWrap)

        self._flag_format: Optional[QTextCharFormat] = None
        self._search_format: Optional[QTextCharFormat] = None
        self._flag_lines: List[int] = []
        self._search_matches: List[FlagMatch] = []
        self._last_cursor_line = 0

        self.document().contentsChange.connect(self._on_contents_change)
        self.cursorPositionChanged.connect(self._on_cursor_position_changed)

    def init_decorations(self, flag_color: str, search_color: str) -> None:
        """
        Create the text formats used for flag and search highlights.

        Args:
            flag_color: Background color of flagged lines
            search_color: Background color of search matches
        """
        self._flag_format = QTextCharFormat()
        self._flag_format.setBackground(QColor(flag_color))
        self._flag_format.setProperty(QTextFormat.FullWidthSelection, True)

        self._search_format = QTextCharFormat()
        self._search_format.setBackground(QColor(search_color))
        self._apply_extra_selections()

    def decorations_ready(self) -> bool:
        return self._flag_format is not None and self._search_format is not None

    # Editor view used by the controller

    def cursor_line(self) -> int:
        return self.textCursor().blockNumber()

    def line_count(self) -> int:
        return self.document().blockCount()

    def line_text(self, line: int) -> str:
        block = self.document().findBlockByNumber(line)
        return block.text() if block.isValid() else ""

    def visible_line_range(self) -> Tuple[int, int]:
        """Get the first and last line shown in the viewport."""
        first = self.firstVisibleBlock().blockNumber()
        bottom = self.cursorForPosition(self.viewport().rect().bottomLeft())
        return first, max(first, bottom.blockNumber())

    def set_cursor(self, line: int, column: int, anchor_column: Optional[int] = None) -> None:
        """
        Move the cursor, optionally selecting from an anchor column.

        Args:
            line: 0-based line
            column: Column the cursor ends on
            anchor_column: Column the selection starts from, if any
        """
        block = self.document().findBlockByNumber(line)
        if not block.isValid():
            return

        cursor = QTextCursor(block)
        if anchor_column is not None:
            cursor.setPosition(block.position() + anchor_column)
            cursor.setPosition(block.position() + column, QTextCursor.KeepAnchor)
        else:
            cursor.setPosition(block.position() + column)
        self.setTextCursor(cursor)
        self.centerCursor()

    # Decorations

    def set_flag_lines(self, lines: List[int]) -> None:
        self._flag_lines = list(lines)
        self._apply_extra_selections()

    def set_search_highlights(self, matches: List[FlagMatch]) -> None:
        self._search_matches = list(matches)
        self._apply_extra_selections()

    def _apply_extra_selections(self) -> None:
        if not self.decorations_ready():
            return

        selections = []
        for line in self._flag_lines:
            block = self.document().findBlockByNumber(line)
            if not block.isValid():
                continue
            selection = QTextEdit.ExtraSelection()
            selection.format = self._flag_format
            selection.cursor = QTextCursor(block)
            selections.append(selection)

        for match in self._search_matches:
            block = self.document().findBlockByNumber(match.line_num)
            if not block.isValid():
                continue
            selection = QTextEdit.ExtraSelection()
            selection.format = self._search_format
            cursor = QTextCursor(block)
            cursor.setPosition(block.position() + match.start)
            cursor.setPosition(block.position() + match.end, QTextCursor.KeepAnchor)
            selection.cursor = cursor
            selections.append(selection)

        self.setExtraSelections(selections)

    def _on_contents_change(self, position: int, chars_removed: int, chars_added: int) -> None:
        start_line = self.document().findBlock(position).blockNumber()
        self.content_edited.emit(self.line_count(), [start_line])

    def _on_cursor_position_changed(self) -> None:
        line = self.cursor_line()
        if line != self._last_cursor_line:
            self._last_cursor_line = line
            self.cursor_line_changed.emit(line)
