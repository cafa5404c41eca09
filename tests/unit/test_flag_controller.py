"""Unit tests for audioflags.controllers.flag_controller."""
from __future__ import annotations

from audioflags.core.flags.tones import TONE_CATALOG


def _open(controller, file_id, line_count=20, unsaved=False):
    controller.on_active_document_changed(file_id, unsaved, line_count)


def _add(controller, editor, picker, line, tone_index=0):
    editor.move_to(line)
    controller.add_flag()
    picker.last.choose(tone_index)


def _lines(controller, file_id):
    return [f.line_num for f in controller.flag_manager.get_flags(file_id)]


# ---------------------------------------------------------------------------
# AddFlag
# ---------------------------------------------------------------------------


class TestAddFlag:
    def test_no_active_file(self, controller, picker, messages) -> None:
        controller.add_flag()
        assert picker.prompts == []
        assert messages == [("error", "No active file")]

    def test_unsaved_document(self, controller, picker, messages) -> None:
        _open(controller, "untitled:1", unsaved=True)
        controller.add_flag()
        assert picker.prompts == []
        assert messages[-1] == ("error", "Save the file before adding flags")

    def test_decorations_not_ready(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.ready = False
        controller.add_flag()
        assert picker.prompts == []
        assert messages[-1] == ("error", "Flag decorations are not initialized")

    def test_add_persists_and_decorates(self, controller, editor, picker, messages, file_id) -> None:
        decorations = []
        controller.decorations_changed.connect(lambda fid, lines: decorations.append((fid, lines)))
        _open(controller, file_id)

        _add(controller, editor, picker, 4)

        assert _lines(controller, file_id) == [4]
        assert controller.flag_manager.persistence.load(file_id) is not None
        assert decorations[-1] == (file_id, [4])
        assert messages[-1] == ("info", "Flag Piano1 added to line 5")

    def test_prompt_never_offers_used_tones(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 1, tone_index=3)
        _add(controller, editor, picker, 2, tone_index=0)

        editor.move_to(3)
        controller.add_flag()
        offered = picker.last.tones
        assert TONE_CATALOG[3] not in offered
        assert TONE_CATALOG[0] not in offered
        assert len(offered) == 10

    def test_duplicate_line_rejected_before_prompt(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 4)
        prompts = len(picker.prompts)

        editor.move_to(4)
        controller.add_flag()

        assert len(picker.prompts) == prompts
        assert messages[-1] == ("error", "A flag already exists on line 5")

    def test_cancel_is_informational_and_mutates_nothing(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(4)
        controller.add_flag()
        picker.last.cancel()

        assert _lines(controller, file_id) == []
        assert controller.flag_manager.persistence.load(file_id) is None
        assert messages[-1] == ("info", "Flag not added")

    def test_preview_plays_candidate(self, controller, editor, picker, cue_player, file_id) -> None:
        _open(controller, file_id)
        controller.add_flag()
        picker.last.on_preview(TONE_CATALOG[5])
        assert cue_player.history == [("E6", 40)]

    def test_preview_can_be_disabled(self, controller, editor, picker, cue_player, file_id) -> None:
        controller.config.preview_tones = False
        _open(controller, file_id)
        controller.add_flag()
        picker.last.on_preview(TONE_CATALOG[5])
        assert cue_player.history == []

    def test_chosen_tone_plays_when_cues_enabled(self, controller, editor, picker, cue_player, file_id) -> None:
        controller.config.sound_cues = True
        _open(controller, file_id)
        _add(controller, editor, picker, 2, tone_index=9)
        assert cue_player.history[-1] == ("G2", 12)

    def test_all_tones_used(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        for line in range(12):
            _add(controller, editor, picker, line)
        editor.move_to(15)
        controller.add_flag()
        assert messages[-1] == ("error", "All tones are already used in this file")


class TestAddFlagSuspension:
    def test_delete_while_prompt_open_is_tolerated(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 2)

        editor.move_to(6)
        controller.add_flag()
        pending = picker.last

        editor.move_to(2)
        controller.delete_flag()
        pending.choose(0)

        assert _lines(controller, file_id) == [6]

    def test_line_taken_while_prompt_open(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(3)
        controller.add_flag()
        first = picker.last

        # Another file view of the same document adds on line 3 first
        controller.flag_manager.add_flag(file_id, 20, 3, TONE_CATALOG[11])
        first.choose(0)

        assert _lines(controller, file_id) == [3]
        assert controller.flag_manager.flag_at(file_id, 3).tone == TONE_CATALOG[11]
        assert messages[-1] == ("error", "A flag already exists on line 4")

    def test_tone_taken_while_prompt_open(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(3)
        controller.add_flag()
        first = picker.last

        controller.flag_manager.add_flag(file_id, 20, 9, TONE_CATALOG[0])
        first.choose(0)

        assert _lines(controller, file_id) == [9]
        assert messages[-1] == ("error", "Tone Piano1 is already used in this file")

    def test_file_closed_while_prompt_open(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        controller.add_flag()
        pending = picker.last

        controller.on_document_closed(file_id)
        pending.choose(0)

        assert controller.flag_manager.get_document(file_id) is None
        assert controller.flag_manager.persistence.load(file_id) is None
        assert messages[-1] == ("error", "File was closed before the flag was added")

    def test_second_add_waits_for_open_prompt(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(1)
        controller.add_flag()
        editor.move_to(8)
        controller.add_flag()

        assert len(picker.prompts) == 1
        picker.last.choose(0)

        # The queued add prompts only now, without the tone just taken
        assert len(picker.prompts) == 2
        assert TONE_CATALOG[0] not in picker.last.tones
        picker.last.choose(0)
        assert _lines(controller, file_id) == [1, 8]

    def test_queued_add_for_same_line_fails_after_first(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(4)
        controller.add_flag()
        controller.add_flag()
        picker.last.choose(0)

        assert len(picker.prompts) == 1
        assert messages[-1] == ("error", "A flag already exists on line 5")

    def test_queue_continues_after_cancel(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(1)
        controller.add_flag()
        editor.move_to(2)
        controller.add_flag()

        picker.last.cancel()
        assert len(picker.prompts) == 2
        picker.last.choose(0)
        assert _lines(controller, file_id) == [2]

    def test_pending_line_follows_deletion_above(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(19)
        controller.add_flag()

        # Lines 10-14 are deleted while the prompt is open
        del editor.lines[10:15]
        controller.on_document_changed(file_id, 15, [10])
        picker.last.choose(0)

        document = controller.flag_manager.get_document(file_id)
        assert document.line_count == 15
        assert [f.line_num for f in document.flags] == [14]
        assert messages[-1] == ("info", "Flag Piano1 added to line 15")

    def test_pending_line_deleted_is_rejected(self, controller, editor, picker, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(3)
        controller.add_flag()

        del editor.lines[2:12]
        controller.on_document_changed(file_id, 10, [2])
        picker.last.choose(0)

        assert controller.flag_manager.get_document(file_id) is None
        assert controller.flag_manager.persistence.load(file_id) is None
        assert messages[-1] == ("error", "Line is no longer in the file")

    def test_queued_lines_follow_edits(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(1)
        controller.add_flag()
        editor.move_to(8)
        controller.add_flag()

        editor.lines[0:0] = ["new a", "new b"]
        controller.on_document_changed(file_id, 22, [0])
        picker.last.choose(0)
        picker.last.choose(0)

        assert _lines(controller, file_id) == [3, 10]


# ---------------------------------------------------------------------------
# DeleteFlag
# ---------------------------------------------------------------------------


class TestDeleteFlag:
    def test_not_found(self, controller, editor, messages, file_id) -> None:
        _open(controller, file_id)
        editor.move_to(3)
        controller.delete_flag()
        assert messages[-1] == ("error", "No flag on line 4")

    def test_delete_updates_storage_and_decorations(self, controller, editor, picker, messages, file_id) -> None:
        decorations = []
        controller.decorations_changed.connect(lambda fid, lines: decorations.append(lines))
        _open(controller, file_id)
        _add(controller, editor, picker, 3)
        _add(controller, editor, picker, 7)

        editor.move_to(3)
        controller.delete_flag()

        assert _lines(controller, file_id) == [7]
        assert [f.line_num for f in controller.flag_manager.persistence.load(file_id).flags] == [7]
        assert decorations[-1] == [7]
        assert messages[-1] == ("info", "Flag removed from line 4")

    def test_add_then_delete_round_trip(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 3)
        before = controller.flag_manager.get_flags(file_id)

        _add(controller, editor, picker, 10)
        editor.move_to(10)
        controller.delete_flag()

        assert controller.flag_manager.get_flags(file_id) == before


# ---------------------------------------------------------------------------
# NavigateToFlag
# ---------------------------------------------------------------------------


class TestNavigate:
    def _setup(self, controller, editor, picker, file_id):
        editor.lines[3] = "abc"
        editor.lines[9] = "abcdefg"
        _open(controller, file_id)
        _add(controller, editor, picker, 3)
        _add(controller, editor, picker, 9)

    def test_cursor_lands_at_end_of_next_flag_line(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.move_to(5)
        target = controller.navigate_to_flag()
        assert target.line_num == 9
        assert editor.cursor == (9, 7)

    def test_wraps_at_last(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.move_to(9)
        controller.navigate_to_flag()
        assert editor.cursor == (3, 3)

    def test_parked_on_flag_skips_it(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.move_to(3)
        controller.navigate_to_flag()
        assert editor.cursor[0] == 9

    def test_no_flags(self, controller, editor, messages, file_id) -> None:
        _open(controller, file_id)
        assert controller.navigate_to_flag() is None
        assert messages[-1] == ("error", "No flags to navigate to")


# ---------------------------------------------------------------------------
# SearchFlags
# ---------------------------------------------------------------------------


class TestSearch:
    def _setup(self, controller, editor, picker, file_id):
        editor.lines[2] = "alpha beta"
        editor.lines[12] = "beta gamma"
        editor.lines[18] = "gamma delta"
        _open(controller, file_id)
        for line in (2, 12, 18):
            _add(controller, editor, picker, line)
        editor.set_cursor_calls = 0

    def test_empty_query_clears_and_does_not_move(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        highlights = []
        controller.search_highlights_changed.connect(highlights.append)
        editor.move_to(5)

        controller.search_flags("")

        assert highlights == [[]]
        assert editor.set_cursor_calls == 0
        assert editor.cursor == (5, 0)

    def test_visible_match_does_not_move_cursor(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.visible = (0, 9)
        editor.move_to(5)
        controller.search_flags("beta")
        assert editor.set_cursor_calls == 0

    def test_moves_to_nearest_offscreen_match(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        highlights = []
        controller.search_highlights_changed.connect(highlights.append)
        editor.visible = (0, 9)
        editor.move_to(5)

        controller.search_flags("GAMMA")

        assert [m.line_num for m in highlights[-1]] == [12, 18]
        assert editor.cursor == (12, 10)
        assert editor.anchor == 5

    def test_equal_distance_keeps_first_match(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.visible = (5, 8)
        editor.move_to(7)
        controller.search_flags("beta")
        # Lines 2 and 12 are both five away
        assert editor.cursor[0] == 2

    def test_status_reported(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        statuses = []
        controller.search_status_changed.connect(statuses.append)
        controller.search_flags("a")
        assert statuses[-1] == "9 matches on 3 flagged lines"

    def test_jump_restricted_to_matching_flags(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.visible = (0, 19)
        controller.search_flags("gamma")

        editor.move_to(0)
        assert controller.jump_to_search_match().line_num == 12
        assert controller.jump_to_search_match().line_num == 18
        assert controller.jump_to_search_match().line_num == 12

    def test_jump_without_search_uses_all_flags(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        editor.move_to(0)
        assert controller.jump_to_search_match().line_num == 2

    def test_matches_follow_flags_after_edit(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        highlights = []
        controller.search_highlights_changed.connect(highlights.append)
        editor.visible = (0, 20)
        controller.search_flags("gamma")

        editor.lines.insert(0, "header")
        controller.on_document_changed(file_id, 21, [0])

        assert _lines(controller, file_id) == [3, 13, 19]
        assert [m.line_num for m in highlights[-1]] == [13, 19]
        editor.move_to(0)
        assert controller.jump_to_search_match().line_num == 13
        assert controller.jump_to_search_match().line_num == 19

    def test_matches_follow_flag_deletion(self, controller, editor, picker, file_id) -> None:
        self._setup(controller, editor, picker, file_id)
        statuses = []
        controller.search_status_changed.connect(statuses.append)
        editor.visible = (0, 19)
        controller.search_flags("gamma")

        editor.move_to(12)
        controller.delete_flag()

        assert [m.line_num for m in controller.search_engine.search_results] == [18]
        assert statuses[-1] == "1 match on 1 flagged line"

    def test_no_flags_to_search(self, controller, messages, file_id) -> None:
        _open(controller, file_id)
        controller.search_flags("x")
        assert messages[-1] == ("error", "No flags to search in this file")


# ---------------------------------------------------------------------------
# Editor events
# ---------------------------------------------------------------------------


class TestEditorEvents:
    def test_edit_reconciles_and_refreshes(self, controller, editor, picker, file_id) -> None:
        decorations = []
        controller.decorations_changed.connect(lambda fid, lines: decorations.append(lines))
        _open(controller, file_id, line_count=10)
        _add(controller, editor, picker, 2)
        _add(controller, editor, picker, 7)

        controller.on_document_changed(file_id, 13, [5])

        assert _lines(controller, file_id) == [2, 10]
        assert controller.flag_manager.get_document(file_id).line_count == 13
        assert decorations[-1] == [2, 10]

    def test_edit_without_line_change_does_nothing(self, controller, editor, picker, file_id) -> None:
        decorations = []
        _open(controller, file_id, line_count=10)
        _add(controller, editor, picker, 7)
        controller.decorations_changed.connect(lambda fid, lines: decorations.append(lines))

        controller.on_document_changed(file_id, 10, [0])

        assert decorations == []

    def test_saved_edit_survives_reopen(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id, line_count=10)
        _add(controller, editor, picker, 7)
        controller.on_document_changed(file_id, 8, [1])
        controller.on_document_saved(file_id)
        controller.on_document_closed(file_id)

        _open(controller, file_id, line_count=8)
        assert _lines(controller, file_id) == [5]

    def test_unsaved_edit_is_discarded_on_close(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id, line_count=10)
        _add(controller, editor, picker, 7)
        controller.on_document_changed(file_id, 8, [1])
        controller.on_document_closed(file_id)

        _open(controller, file_id, line_count=10)
        assert _lines(controller, file_id) == [7]

    def test_unsaved_file_is_not_hydrated(self, controller, manager) -> None:
        _open(controller, "untitled:1", unsaved=True)
        assert "untitled:1" not in manager.registry

    def test_close_clears_active_file(self, controller, file_id, messages) -> None:
        _open(controller, file_id)
        controller.on_document_closed(file_id)
        assert controller.active_file_id is None
        controller.delete_flag()
        assert messages[-1] == ("error", "No active file")


# ---------------------------------------------------------------------------
# Sound cues
# ---------------------------------------------------------------------------


class TestSoundCues:
    def test_play_flag_tone(self, controller, editor, picker, cue_player, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 4, tone_index=4)
        editor.move_to(4)
        controller.play_line_audio()
        assert cue_player.history[-1] == ("E4", 40)

    def test_blank_line_fallback(self, controller, editor, cue_player, file_id) -> None:
        editor.lines[6] = "   "
        _open(controller, file_id)
        editor.move_to(6)
        controller.play_line_audio()
        assert cue_player.history[-1] == ("f#2", 0)

    def test_classifier_fallback(self, manager, editor, picker, cue_player, file_id) -> None:
        from audioflags.controllers import FlagController

        class Classifier:
            def describe(self, fid, line):
                return "while running"

        controller = FlagController(manager, editor, picker, cue_player=cue_player,
                                    classifier=Classifier())
        _open(controller, file_id)
        controller.play_line_audio()
        assert cue_player.history[-1] == ("d3", 0)

    def test_toggle(self, controller, messages) -> None:
        assert controller.toggle_sound_cues() is True
        assert messages[-1] == ("info", "Sound Cues Activated")
        assert controller.toggle_sound_cues() is False
        assert messages[-1] == ("info", "Sound Cues Deactivated")

    def test_cursor_moves_play_only_when_enabled(self, controller, editor, cue_player, file_id) -> None:
        _open(controller, file_id)
        controller.on_cursor_line_changed(3)
        assert cue_player.history == []

        controller.toggle_sound_cues()
        controller.on_cursor_line_changed(3)
        controller.on_cursor_line_changed(3)
        assert len(cue_player.history) == 1

    def test_flag_tone_at_cursor(self, controller, editor, picker, file_id) -> None:
        _open(controller, file_id)
        _add(controller, editor, picker, 4, tone_index=7)
        editor.move_to(4)
        assert controller.flag_tone_at_cursor() == "Guitar2"
        editor.move_to(5)
        assert controller.flag_tone_at_cursor() is None
