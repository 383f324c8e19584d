"""Tests for the study state, its failure handling and screen navigation."""

import shutil
import tempfile
from pathlib import Path

import pytest

from unitreader.core.capture import CaptureFlow
from unitreader.core.errors import DuplicateError, RemoteFailure, ValidationError
from unitreader.core.export import build_csv
from unitreader.core.flashcards import Orientation
from unitreader.core.navigation import (
    AddUnit, EditUnit, Navigator, Reader, UnitList, Vocabulary, VocabularyMode,
)
from unitreader.core.state import StudyState
from unitreader.storage import Database, FOLDERS, UNITS, VOCABULARY


class FailingDatabase(Database):
    """Database that rejects chosen (method, table) calls."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.failing = set()
        self.calls = []

    def fail(self, method: str, table: str):
        self.failing.add((method, table))

    def _maybe_fail(self, method, table):
        self.calls.append((method, table))
        if (method, table) in self.failing:
            raise RemoteFailure(f"{method} on {table} rejected")

    def select(self, table):
        self._maybe_fail("select", table)
        return super().select(table)

    def insert(self, table, record):
        self._maybe_fail("insert", table)
        return super().insert(table, record)

    def update(self, table, id, changes):
        self._maybe_fail("update", table)
        return super().update(table, id, changes)

    def delete_where(self, table, column, value):
        self._maybe_fail("delete", table)
        return super().delete_where(table, column, value)

    def upsert(self, table, records):
        self._maybe_fail("upsert", table)
        return super().upsert(table, records)


class StateTestCase:
    """Shared setup: a StudyState over a temporary SQLite file."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = FailingDatabase(Path(self.temp_dir) / "test.db")
        self.state = StudyState(self.db)
        self.state.load()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def reloaded(self) -> StudyState:
        state = StudyState(Database(self.db.db_path))
        state.load()
        return state

    def make_unit(self, title="Unit 1", folder_id=None):
        return self.state.create_unit(
            title, folder_id, "I run.\nYou walk.", "私は走る。\nあなたは歩く。", "ai ran\nyuu wook",
        )


class TestFolders(StateTestCase):

    def test_create_folder(self):
        folder = self.state.create_folder("  Science ")
        assert folder.name == "Science"
        assert [f.name for f in self.reloaded().folders] == ["Science"]

    def test_create_folder_blank(self):
        with pytest.raises(ValidationError):
            self.state.create_folder("   ")
        assert self.state.folders == []

    def test_create_folder_remote_failure(self):
        self.db.fail("insert", FOLDERS)
        with pytest.raises(RemoteFailure):
            self.state.create_folder("Science")
        assert self.state.folders == []

    def test_delete_folder_keeps_units(self):
        folder = self.state.create_folder("Science")
        unit = self.make_unit(folder_id=folder.id)
        self.state.set_folder_filter(folder.id)

        self.state.delete_folder(folder.id)

        assert self.state.folders == []
        assert self.state.get_unit(unit.id).folder_id is None
        assert self.state.folder_filter is None
        stored = self.reloaded()
        assert stored.folders == []
        assert stored.units[0].folder_id is None

    def test_delete_folder_failure_rolls_back(self):
        folder = self.state.create_folder("Science")
        unit = self.make_unit(folder_id=folder.id)
        self.db.fail("update", UNITS)

        with pytest.raises(RemoteFailure) as excinfo:
            self.state.delete_folder(folder.id)

        assert not excinfo.value.partial
        assert self.state.get_unit(unit.id).folder_id == folder.id
        assert [f.id for f in self.reloaded().folders] == [folder.id]

    def test_folder_name_for(self):
        folder = self.state.create_folder("Science")
        unit = self.make_unit(folder_id=folder.id)
        assert self.state.folder_name_for(unit) == "Science"
        unit.folder_id = "dangling"
        assert self.state.folder_name_for(unit) == "no folder"

    def test_filtered_units(self):
        folder = self.state.create_folder("Science")
        inside = self.make_unit("Inside", folder.id)
        outside = self.make_unit("Outside")
        assert self.state.filtered_units() == [inside, outside]
        self.state.set_folder_filter(folder.id)
        assert self.state.filtered_units() == [inside]


class TestUnits(StateTestCase):

    def test_create_unit(self):
        unit = self.make_unit()
        assert len(unit.lines) == 2
        stored = self.reloaded().get_unit(unit.id)
        assert stored.lines[1].japanese == "あなたは歩く。"
        assert stored.lines[0].show_japanese is False

    def test_create_unit_untitled(self):
        unit = self.state.create_unit("  ", "", "Hello")
        assert unit.title == "Untitled"
        assert unit.folder_id is None

    def test_create_unit_needs_english(self):
        with pytest.raises(ValidationError):
            self.state.create_unit("Empty", None, "\n  \n", "あ")
        assert self.state.units == []
        assert ("insert", UNITS) not in self.db.calls
        assert self.reloaded().units == []

    def test_create_unit_remote_failure(self):
        self.db.fail("insert", UNITS)
        with pytest.raises(RemoteFailure):
            self.make_unit()
        assert self.state.units == []

    def test_update_unit_resets_lines(self):
        unit = self.make_unit()
        self.state.toggle_all_translations(unit.id)

        updated = self.state.update_unit(unit.id, "Renamed", None, "One\nTwo\nThree", "一")

        assert self.state.get_unit(unit.id) is updated
        assert [line.id for line in updated.lines] == [0, 1, 2]
        assert not any(line.show_japanese for line in updated.lines)
        stored = self.reloaded().get_unit(unit.id)
        assert stored.title == "Renamed"
        assert [line.english for line in stored.lines] == ["One", "Two", "Three"]

    def test_update_unit_failure_leaves_memory(self):
        unit = self.make_unit()
        self.db.fail("update", UNITS)
        with pytest.raises(RemoteFailure):
            self.state.update_unit(unit.id, "Renamed", None, "One")
        assert self.state.get_unit(unit.id).title == "Unit 1"

    def test_update_unknown_unit(self):
        with pytest.raises(ValidationError):
            self.state.update_unit("missing", "T", None, "One")

    def test_delete_unit_cascades_vocabulary(self):
        unit = self.make_unit()
        other = self.make_unit("Unit 2")
        self.state.capture_vocabulary("run", "走る", unit.id, unit.title)
        self.state.capture_vocabulary("walk", "歩く", other.id, other.title)
        self.state.set_vocabulary_filter(unit.id)

        self.state.delete_unit(unit.id)

        assert [u.id for u in self.state.units] == [other.id]
        assert [v.word for v in self.state.vocabulary] == ["walk"]
        assert self.state.vocabulary_filter is None
        stored = self.reloaded()
        assert [v.word for v in stored.vocabulary] == ["walk"]

    def test_delete_unit_failure_restores_vocabulary(self):
        unit = self.make_unit()
        item = self.state.capture_vocabulary("run", "走る", unit.id, unit.title)
        self.db.fail("delete", UNITS)

        with pytest.raises(RemoteFailure) as excinfo:
            self.state.delete_unit(unit.id)

        assert not excinfo.value.partial
        assert self.state.get_unit(unit.id) is not None
        stored = self.reloaded()
        assert [v.id for v in stored.vocabulary] == [item.id]
        assert stored.vocabulary[0].created_at == item.created_at

    def test_delete_unit_partial_failure_resyncs(self):
        unit = self.make_unit()
        self.state.capture_vocabulary("run", "走る", unit.id, unit.title)
        self.db.fail("delete", UNITS)
        self.db.fail("upsert", VOCABULARY)

        with pytest.raises(RemoteFailure) as excinfo:
            self.state.delete_unit(unit.id)

        assert excinfo.value.partial
        # Memory reloaded to what actually persisted: unit kept, vocabulary gone
        assert self.state.get_unit(unit.id) is not None
        assert self.state.vocabulary == []

    def test_toggle_all_translations(self):
        unit = self.make_unit()
        unit.lines[0].show_japanese = True

        assert self.state.toggle_all_translations(unit.id) is True
        assert all(line.show_japanese for line in unit.lines)
        assert self.state.toggle_all_translations(unit.id) is False
        assert not any(line.show_japanese for line in unit.lines)

    def test_toggle_all_phonetics(self):
        unit = self.make_unit()
        assert self.state.toggle_all_phonetics(unit.id) is True
        assert unit.all_phonetic_shown

    def test_toggle_single_line(self):
        unit = self.make_unit()
        assert self.state.toggle_line_translation(unit.id, 1) is True
        assert [line.show_japanese for line in unit.lines] == [False, True]
        assert self.state.toggle_line_phonetic(unit.id, 0) is True
        with pytest.raises(ValidationError):
            self.state.toggle_line_translation(unit.id, 99)

    def test_reveal_state_not_persisted(self):
        unit = self.make_unit()
        self.state.toggle_all_translations(unit.id)
        stored = self.reloaded().get_unit(unit.id)
        assert not any(line.show_japanese for line in stored.lines)


class TestVocabulary(StateTestCase):

    def setup_method(self):
        super().setup_method()
        self.unit = self.make_unit()

    def test_capture(self):
        item = self.state.capture_vocabulary(" run ", " 走る ", self.unit.id, self.unit.title)
        assert (item.word, item.meaning, item.unit_title) == ("run", "走る", "Unit 1")
        assert self.state.vocabulary_count(self.unit.id) == 1
        assert self.reloaded().vocabulary[0].word == "run"

    def test_capture_blank(self):
        with pytest.raises(ValidationError):
            self.state.capture_vocabulary("", "走る", self.unit.id)
        with pytest.raises(ValidationError):
            self.state.capture_vocabulary("run", "  ", self.unit.id)
        assert self.state.vocabulary == []

    def test_capture_duplicate_any_case(self):
        self.state.capture_vocabulary("run", "走る", self.unit.id, self.unit.title)
        with pytest.raises(DuplicateError):
            self.state.capture_vocabulary("Run", "走ります", self.unit.id, self.unit.title)
        assert len(self.state.vocabulary) == 1

    def test_same_word_other_unit_allowed(self):
        other = self.make_unit("Unit 2")
        self.state.capture_vocabulary("run", "走る", self.unit.id)
        self.state.capture_vocabulary("run", "走る", other.id)
        assert len(self.state.vocabulary) == 2

    def test_capture_remote_failure(self):
        self.db.fail("insert", VOCABULARY)
        with pytest.raises(RemoteFailure):
            self.state.capture_vocabulary("run", "走る", self.unit.id)
        assert self.state.vocabulary == []

    def test_add_line_to_vocabulary(self):
        item = self.state.add_line_to_vocabulary(self.unit.id, 0)
        again = self.state.add_line_to_vocabulary(self.unit.id, 0)
        assert (item.word, item.meaning) == ("I run.", "私は走る。")
        assert again.id != item.id

    def test_edit_and_save(self):
        item = self.state.capture_vocabulary("run", "走る", self.unit.id)
        self.state.update_vocabulary_meaning(item.id, "走ります")
        assert self.state.vocabulary_dirty
        assert self.reloaded().vocabulary[0].meaning == "走る"

        assert self.state.save_vocabulary() == 1
        assert not self.state.vocabulary_dirty
        assert self.reloaded().vocabulary[0].meaning == "走ります"

    def test_save_failure_keeps_dirty(self):
        item = self.state.capture_vocabulary("run", "走る", self.unit.id)
        self.state.update_vocabulary_word(item.id, "runs")
        self.db.fail("upsert", VOCABULARY)
        with pytest.raises(RemoteFailure):
            self.state.save_vocabulary()
        assert self.state.vocabulary_dirty

    def test_delete_vocabulary(self):
        item = self.state.capture_vocabulary("run", "走る", self.unit.id)
        self.state.delete_vocabulary(item.id)
        assert self.state.vocabulary == []
        assert self.reloaded().vocabulary == []

    def test_filtered_vocabulary_and_scope(self):
        other = self.make_unit("Unit 2")
        self.state.capture_vocabulary("run", "走る", self.unit.id, self.unit.title)
        self.state.capture_vocabulary("walk", "歩く", other.id, other.title)
        assert self.state.vocabulary_scope_name() == "all"
        self.state.set_vocabulary_filter(other.id)
        assert [v.word for v in self.state.filtered_vocabulary()] == ["walk"]
        assert self.state.vocabulary_scope_name() == "Unit 2"

    def test_load_failure(self):
        self.db.fail("select", UNITS)
        with pytest.raises(RemoteFailure):
            self.state.load()


class TestCaptureCommit(StateTestCase):

    def setup_method(self):
        super().setup_method()
        self.unit = self.make_unit()
        self.flow = CaptureFlow()

    def select_pair(self, word, meaning):
        self.flow.select(word)
        self.flow.advance()
        self.flow.select(meaning)

    def test_commit_returns_to_idle(self):
        self.select_pair("run", "走る")
        item = self.flow.commit(self.state, self.unit)
        assert item.unit_id == self.unit.id
        assert self.flow.is_idle

    def test_duplicate_returns_to_idle(self):
        self.state.capture_vocabulary("run", "走る", self.unit.id)
        self.select_pair("RUN", "走る")
        with pytest.raises(DuplicateError):
            self.flow.commit(self.state, self.unit)
        assert self.flow.is_idle

    def test_remote_failure_keeps_selection(self):
        self.db.fail("insert", VOCABULARY)
        self.select_pair("run", "走る")
        with pytest.raises(RemoteFailure):
            self.flow.commit(self.state, self.unit)
        assert self.flow.can_commit
        assert self.flow.meaning == "走る"


class TestNavigator(StateTestCase):

    def setup_method(self):
        super().setup_method()
        self.navigator = Navigator(self.state)

    def test_starts_on_list(self):
        assert self.navigator.screen == UnitList()

    def test_edit_prefills_blocks(self):
        unit = self.make_unit()
        screen = self.navigator.show_edit(unit.id)
        assert isinstance(screen, EditUnit)
        assert screen.english == "I run.\nYou walk."
        assert screen.japanese == "私は走る。\nあなたは歩く。"

    def test_add(self):
        assert self.navigator.show_add() == AddUnit()

    def test_reader_gets_fresh_capture(self):
        unit = self.make_unit()
        first = self.navigator.show_reader(unit.id)
        first.capture.select("run")
        self.navigator.show_list()
        second = self.navigator.show_reader(unit.id)
        assert isinstance(second, Reader)
        assert second.capture.is_idle

    def test_unknown_unit(self):
        with pytest.raises(ValidationError):
            self.navigator.show_reader("missing")

    def test_flashcards_need_vocabulary(self):
        with pytest.raises(ValidationError):
            self.navigator.show_flashcards()
        assert self.navigator.screen == UnitList()

    def test_flashcards_over_filtered_subset(self):
        unit = self.make_unit()
        other = self.make_unit("Unit 2")
        self.state.capture_vocabulary("run", "走る", unit.id)
        self.state.capture_vocabulary("walk", "歩く", other.id)
        self.state.set_vocabulary_filter(other.id)

        screen = self.navigator.show_flashcards(Orientation.MEANING_TO_WORD)

        assert isinstance(screen, Vocabulary)
        assert screen.mode == VocabularyMode.FLASHCARDS
        assert len(screen.deck) == 1
        assert screen.deck.front == "歩く"


class TestEndToEnd(StateTestCase):
    """Folder, unit, capture, reveal, export."""

    def test_science_unit(self):
        folder = self.state.create_folder("Science")
        unit = self.state.create_unit(
            "Unit 1", folder.id, "I run.\nYou walk.", "私は走る。\nあなたは歩く。",
        )

        assert self.state.toggle_all_translations(unit.id) is True

        flow = CaptureFlow()
        flow.select("run")
        flow.advance()
        flow.select("走る")
        flow.commit(self.state, unit)

        assert build_csv(self.state.filtered_vocabulary()) == '\ufeff単語,意味,ユニット\n"run","走る","Unit 1"'
        assert self.state.units_in_folder(folder.id) == [unit]
        assert self.state.vocabulary_count(unit.id) == 1

    def test_folder_unit_pairing(self):
        folder = self.state.create_folder("Science")
        unit = self.state.create_unit(
            "Unit 1", folder.id, "The sun is hot.\nWater boils.", "太陽は熱い。\n水は沸騰する。",
        )

        assert len(unit.lines) == 2
        assert (unit.lines[0].english, unit.lines[0].japanese) == ("The sun is hot.", "太陽は熱い。")
        assert (unit.lines[1].english, unit.lines[1].japanese) == ("Water boils.", "水は沸騰する。")
        assert unit.folder_id == folder.id
