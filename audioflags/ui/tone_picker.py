from typing import Callable, List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QVBoxLayout,
)

from audioflags.core.flags.models import Tone


class TonePickerDialog(QDialog):
    """Non-modal list of free tones; previews the highlighted one."""

    tone_chosen = pyqtSignal(object)  # Tone
    tone_highlighted = pyqtSignal(object)  # Tone
    cancelled = pyqtSignal()

    def __init__(self, tones: List[Tone], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Choose Flag Tone")
        self.setModal(False)
        self.setAttribute(Qt.WA_DeleteOnClose)
        self._tones = list(tones)
        self._decided = False
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(8)

        header_label = QLabel("Select a tone for this flag", self)
        header_label.setStyleSheet("font-weight: bold; color: #8899AA;")
        layout.addWidget(header_label)

        self.tone_list = QListWidget(self)
        for tone in self._tones:
            item = QListWidgetItem(f"{tone.name}  ({tone.note})")
            item.setData(Qt.UserRole, tone)
            self.tone_list.addItem(item)
        self.tone_list.currentRowChanged.connect(self._on_row_changed)
        self.tone_list.itemDoubleClicked.connect(lambda _: self.accept())
        layout.addWidget(self.tone_list)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, self)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        if self._tones:
            self.tone_list.setCurrentRow(0)

    def selected_tone(self) -> Optional[Tone]:
        item = self.tone_list.currentItem()
        return item.data(Qt.UserRole) if item else None

    def accept(self):
        tone = self.selected_tone()
        if tone is None:
            return
        self._decided = True
        super().accept()
        self.tone_chosen.emit(tone)

    def reject(self):
        # Closing the window also lands here
        if not self._decided:
            self._decided = True
            self.cancelled.emit()
        super().reject()

    def _on_row_changed(self, row: int):
        if 0 <= row < len(self._tones):
            self.tone_highlighted.emit(self._tones[row])


class DialogTonePicker:
    """Tone picker that opens a TonePickerDialog per request."""

    def __init__(self, parent=None):
        self.parent = parent

    def pick(self, file_id: str, tones: List[Tone],
             on_chosen: Callable[[Tone], None],
             on_cancelled: Callable[[], None],
             on_preview: Callable[[Tone], None]) -> None:
        dialog = TonePickerDialog(tones, self.parent)
        dialog.setWindowTitle(f"Choose Flag Tone - {file_id}")
        dialog.tone_highlighted.connect(on_preview)
        dialog.tone_chosen.connect(on_chosen)
        dialog.cancelled.connect(on_cancelled)
        dialog.show()
