from PyQt5.QtCore import QEvent, Qt, pyqtSignal
from PyQt5.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QToolButton,
    QVBoxLayout,
)


class SearchLineEdit(QLineEdit):
    """
    Custom QLineEdit that turns Tab into a jump to the next matching flag.

    Note: Tab MUST be handled at the widget level because Qt intercepts it
    for focus navigation before it reaches keyPressEvent or the main window.
    """

    navigate_next = pyqtSignal()

    def event(self, event: QEvent) -> bool:
        """Intercept Tab before Qt's focus handling."""
        if event.type() == QEvent.KeyPress and event.key() == Qt.Key_Tab:
            self.navigate_next.emit()
            return True

        return super().event(event)


class SearchBar(QFrame):
    """Search box for flagged lines; searches live as the user types."""

    search_requested = pyqtSignal(str)
    jump_requested = pyqtSignal()
    close_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("SearchBar")
        self.setup_ui()
        self.hide()

    def setup_ui(self):
        self.setFrameShape(QFrame.StyledPanel)
        self.setAutoFillBackground(True)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(4)

        row = QHBoxLayout()
        row.setSpacing(4)

        self.search_input = SearchLineEdit(self)
        self.search_input.setPlaceholderText("Find in flagged lines")
        self.search_input.setClearButtonEnabled(True)
        self.search_input.textChanged.connect(self.search_requested.emit)
        self.search_input.returnPressed.connect(self.jump_requested.emit)
        self.search_input.navigate_next.connect(self.jump_requested.emit)
        row.addWidget(self.search_input, 1)

        for text, tip, slot in (
            ("Next", "Next matching flag (Tab, Enter)", self.jump_requested.emit),
            ("Close", "Close (Esc)", self._on_close),
        ):
            button = QToolButton(self)
            button.setText(text)
            button.setToolTip(tip)
            button.clicked.connect(slot)
            row.addWidget(button)
        layout.addLayout(row)

        self.status_label = QLabel("", self)
        layout.addWidget(self.status_label)
        self.setFixedWidth(320)
        self.adjustSize()

    def _on_close(self):
        """Close the search bar."""
        self.close_requested.emit()
        self.hide()

    def show_bar(self):
        """Show and focus the search bar."""
        self.show()
        self.raise_()
        self.search_input.setFocus()
        self.search_input.selectAll()

    def set_status(self, text: str):
        self.status_label.setText(text)

    def clear_search(self):
        """Clear search state without emitting a new search."""
        self.search_input.blockSignals(True)
        self.search_input.clear()
        self.search_input.blockSignals(False)
        self.status_label.setText("")
