"""Shared test fixtures for audioflags.

Qt runs headless; no test needs a display. The fakes here stand in for the
editor widget and the tone picker dialog so flag commands can be driven
step by step, including the pause while a tone prompt is open.
"""
from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtWidgets import QApplication

from audioflags.controllers import FlagController, LoggingCuePlayer
from audioflags.core.flags import FlagManager, FlagPersistence, JsonFlagStore
from audioflags.utils.config import AppConfig


class FakeEditor:
    """Editor view backed by a list of lines."""

    def __init__(self, lines=None):
        self.lines = list(lines or ["line %d" % i for i in range(20)])
        self.cursor = (0, 0)
        self.anchor = None
        self.visible = (0, 9)
        self.ready = True
        self.set_cursor_calls = 0

    def cursor_line(self) -> int:
        return self.cursor[0]

    def line_count(self) -> int:
        return len(self.lines)

    def line_text(self, line: int) -> str:
        return self.lines[line] if 0 <= line < len(self.lines) else ""

    def visible_line_range(self):
        return self.visible

    def set_cursor(self, line, column, anchor_column=None):
        self.cursor = (line, column)
        self.anchor = anchor_column
        self.set_cursor_calls += 1

    def decorations_ready(self) -> bool:
        return self.ready

    def move_to(self, line: int) -> None:
        self.cursor = (line, 0)


class PendingPick:
    def __init__(self, file_id, tones, on_chosen, on_cancelled, on_preview):
        self.file_id = file_id
        self.tones = list(tones)
        self.on_chosen = on_chosen
        self.on_cancelled = on_cancelled
        self.on_preview = on_preview

    def choose(self, index: int = 0) -> None:
        self.on_chosen(self.tones[index])

    def cancel(self) -> None:
        self.on_cancelled()


class FakeTonePicker:
    """Records prompts; the test decides when and how each one resolves."""

    def __init__(self):
        self.prompts = []

    def pick(self, file_id, tones, on_chosen, on_cancelled, on_preview):
        self.prompts.append(PendingPick(file_id, tones, on_chosen, on_cancelled, on_preview))

    @property
    def last(self) -> PendingPick:
        return self.prompts[-1]


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture()
def store(tmp_path) -> JsonFlagStore:
    return JsonFlagStore(str(tmp_path / "flags"))


@pytest.fixture()
def persistence(store) -> FlagPersistence:
    return FlagPersistence(store)


@pytest.fixture()
def manager(persistence) -> FlagManager:
    return FlagManager(persistence)


@pytest.fixture()
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture()
def picker() -> FakeTonePicker:
    return FakeTonePicker()


@pytest.fixture()
def cue_player() -> LoggingCuePlayer:
    return LoggingCuePlayer()


@pytest.fixture()
def file_id(tmp_path) -> str:
    path = tmp_path / "notes.txt"
    path.write_text("\n".join("line %d" % i for i in range(20)))
    return str(path)


@pytest.fixture()
def controller(manager, editor, picker, cue_player) -> FlagController:
    return FlagController(manager, editor, picker, cue_player=cue_player,
                          config=AppConfig(sound_cues=False, preview_tones=True))


@pytest.fixture()
def messages(controller):
    received = []
    controller.message.connect(lambda level, text: received.append((level, text)))
    return received
