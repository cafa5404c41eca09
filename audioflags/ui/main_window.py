import logging

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import (
    QAction,
    QFileDialog,
    QMainWindow,
    QMessageBox,
)

from audioflags.controllers import FlagController
from audioflags.core.flags import FlagManager, FlagPersistence, JsonFlagStore, canonical_file_id
from audioflags.utils.config import AppConfig
from .code_editor import CodeEditor
from .search_bar import SearchBar
from .tone_picker import DialogTonePicker

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config: AppConfig, file_path=None):
        super().__init__()
        self.setWindowTitle("AudioFlags")

        self.config = config
        self.file_path = None
        self.file_id = None
        self._untitled_count = 0

        store = JsonFlagStore(config.resolved_storage_dir())
        persistence = FlagPersistence(store)
        persistence.startup_garbage_collect()
        self.flag_manager = FlagManager(persistence, config.policy)

        self.editor = CodeEditor(self)
        self.editor.init_decorations(config.flag_highlight_color, config.search_highlight_color)
        self.flag_controller = FlagController(
            self.flag_manager,
            self.editor,
            DialogTonePicker(self),
            config=config
        )

        self.setup_ui()
        self._connect_signals()

        if file_path:
            self.load_file(file_path)
        else:
            self.new_file()

    def setup_ui(self):
        self.setCentralWidget(self.editor)
        self.search_bar = SearchBar(self)
        self.statusBar()

        file_menu = self.menuBar().addMenu("&File")
        self._add_action(file_menu, "&New", QKeySequence.New, self.new_file)
        self._add_action(file_menu, "&Open...", QKeySequence.Open, self.open_file)
        self._add_action(file_menu, "&Save", QKeySequence.Save, self.save_file)
        self._add_action(file_menu, "Save &As...", QKeySequence.SaveAs, self.save_file_as)
        self._add_action(file_menu, "&Close", QKeySequence.Close, self.close_file)

        flag_menu = self.menuBar().addMenu("F&lags")
        self._add_action(flag_menu, "&Add Flag", "Ctrl+Alt+A", self.flag_controller.add_flag)
        self._add_action(flag_menu, "&Delete Flag", "Ctrl+Alt+D", self.flag_controller.delete_flag)
        self._add_action(flag_menu, "&Next Flag", "Ctrl+Alt+N",
                         lambda: self.flag_controller.navigate_to_flag())
        self._add_action(flag_menu, "&Search Flags", "Ctrl+Alt+F", self.show_search_bar)
        self._add_action(flag_menu, "&Play Line Audio", "Ctrl+Alt+P",
                         self.flag_controller.play_line_audio)
        self._add_action(flag_menu, "Toggle Sound &Cues", "Ctrl+Alt+S",
                         self.flag_controller.toggle_sound_cues)

    def _add_action(self, menu, text, shortcut, slot):
        action = QAction(text, self)
        action.setShortcut(QKeySequence(shortcut))
        action.triggered.connect(slot)
        menu.addAction(action)
        return action

    def _connect_signals(self):
        self.editor.content_edited.connect(self._on_content_edited)
        self.editor.cursor_line_changed.connect(self.flag_controller.on_cursor_line_changed)

        self.flag_controller.decorations_changed.connect(self._on_decorations_changed)
        self.flag_controller.search_highlights_changed.connect(self.editor.set_search_highlights)
        self.flag_controller.search_status_changed.connect(self.search_bar.set_status)
        self.flag_controller.message.connect(self._show_message)

        self.search_bar.search_requested.connect(self.flag_controller.search_flags)
        self.search_bar.jump_requested.connect(self.flag_controller.jump_to_search_match)
        self.search_bar.close_requested.connect(self._hide_search_bar)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._update_toolbar_positions()

    def _update_toolbar_positions(self):
        margin = 20
        x = self.width() - self.search_bar.width() - margin
        y = self.menuBar().height() + margin
        self.search_bar.move(x, y)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Escape and self.search_bar.isVisible():
            self._hide_search_bar()
            event.accept()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        if self._confirm_discard():
            self._release_current_file()
            event.accept()
        else:
            event.ignore()

    # FILE METHODS
    def new_file(self):
        if not self._confirm_discard():
            return
        self._release_current_file()
        self._untitled_count += 1
        self.editor.setPlainText("")
        self._activate(None, f"untitled:{self._untitled_count}")

    def open_file(self):
        if not self._confirm_discard():
            return
        file_path, _ = QFileDialog.getOpenFileName(self, "Open File", "", "All Files (*)")
        if file_path:
            self.load_file(file_path)

    def load_file(self, file_path):
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            QMessageBox.warning(self, "Open Failed", f"Could not open {file_path}:\n{e}")
            return

        self._release_current_file()
        self.editor.setPlainText(text)
        self._activate(file_path, canonical_file_id(file_path))

    def save_file(self):
        if self.file_path is None:
            return self.save_file_as()
        return self._write_file(self.file_path)

    def save_file_as(self):
        file_path, _ = QFileDialog.getSaveFileName(self, "Save File", "", "All Files (*)")
        if not file_path:
            return False

        if canonical_file_id(file_path) != self.file_id:
            # A new path is a new identity; flags do not follow renames
            text = self.editor.toPlainText()
            self._release_current_file()
            self.editor.setPlainText(text)
            self._activate(file_path, canonical_file_id(file_path))
        return self._write_file(file_path)

    def close_file(self):
        self.new_file()

    def _write_file(self, file_path):
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(self.editor.toPlainText())
        except OSError as e:
            QMessageBox.warning(self, "Save Failed", f"Could not save {file_path}:\n{e}")
            return False

        self.editor.document().setModified(False)
        self.flag_controller.on_document_saved(self.file_id)
        self.statusBar().showMessage(f"Saved {file_path}", 3000)
        return True

    def _activate(self, file_path, file_id):
        self.file_path = file_path
        self.file_id = file_id
        self.editor.document().setModified(False)
        self.setWindowTitle(f"AudioFlags - {file_path or file_id}")
        self.flag_controller.on_active_document_changed(
            file_id, file_path is None, self.editor.line_count()
        )

    def _release_current_file(self):
        if self.file_id is not None:
            self.flag_controller.on_document_closed(self.file_id)
        self.file_path = None
        self.file_id = None

    def _confirm_discard(self):
        if not self.editor.document().isModified():
            return True
        reply = QMessageBox.question(
            self,
            "Unsaved Changes",
            "You have unsaved changes. Do you want to save them?",
            QMessageBox.Save | QMessageBox.Discard | QMessageBox.Cancel,
            QMessageBox.Save
        )
        if reply == QMessageBox.Save:
            return bool(self.save_file())
        return reply == QMessageBox.Discard

    # EDITOR EVENTS
    def _on_content_edited(self, line_count, change_start_lines):
        if self.file_id is not None:
            self.flag_controller.on_document_changed(self.file_id, line_count, change_start_lines)

    def _on_decorations_changed(self, file_id, lines):
        if file_id == self.file_id:
            self.editor.set_flag_lines(lines)

    def _show_message(self, level, text):
        if level == "error":
            logger.debug("Showing error: %s", text)
            self.statusBar().setStyleSheet("color: #ff6b6b;")
        else:
            self.statusBar().setStyleSheet("")
        self.statusBar().showMessage(text, 5000)

    # SEARCH METHODS
    def show_search_bar(self):
        if self.search_bar.isVisible():
            self._hide_search_bar()
        else:
            self._update_toolbar_positions()
            self.search_bar.show_bar()

    def _hide_search_bar(self):
        self.search_bar.hide()
        self.search_bar.clear_search()
        self.flag_controller.clear_search()
        self.editor.setFocus()
