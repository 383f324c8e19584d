"""Tests for screens that can be driven without a running main loop."""

import shutil
import tempfile
from pathlib import Path

from unitreader.core.navigation import Navigator
from unitreader.core.state import StudyState
from unitreader.storage import Database
from unitreader.ui.screens import UnitFormScreen


class RecordingApp:
    """The parts of App a screen calls, with actions run directly."""

    def __init__(self, state):
        self.state = state
        self.messages = []
        self.opened = None

    def run_action(self, action):
        return action()

    def open_list(self):
        self.opened = "list"

    def show_message(self, message):
        self.messages.append(message)


class TestUnitFormScreen:
    """Test the add/edit unit form."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.state = StudyState(Database(Path(self.temp_dir) / "test.db"))
        self.state.load()
        self.app = RecordingApp(self.state)
        self.navigator = Navigator(self.state)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def edit_form(self, unit_id):
        return UnitFormScreen(self.app, self.navigator.show_edit(unit_id))

    def test_edit_keeps_folder(self):
        folder = self.state.create_folder("Science")
        unit = self.state.create_unit("Unit 1", folder.id, "I run.")

        form = self.edit_form(unit.id)
        assert form.folder_text.text == "Folder: Science"
        form.title_edit.set_edit_text("Renamed")
        form._save()

        assert self.state.get_unit(unit.id).title == "Renamed"
        assert self.state.get_unit(unit.id).folder_id == folder.id
        assert self.app.opened == "list"

    def test_edit_keeps_dangling_folder(self):
        unit = self.state.create_unit("Unit 1", "gone", "I run.")

        form = self.edit_form(unit.id)
        assert form.folder_text.text == "Folder: (missing folder)"
        form._save()

        assert self.state.get_unit(unit.id).folder_id == "gone"

    def test_dangling_folder_can_be_cleared(self):
        unit = self.state.create_unit("Unit 1", "gone", "I run.")

        form = self.edit_form(unit.id)
        form._cycle_folder()
        assert form.folder_text.text == "Folder: (none)"
        form._save()

        assert self.state.get_unit(unit.id).folder_id is None

    def test_add_uses_active_folder(self):
        folder = self.state.create_folder("Science")
        self.state.set_folder_filter(folder.id)

        form = UnitFormScreen(self.app, self.navigator.show_add())
        form.english_edit.set_edit_text("I run.\nYou walk.")
        form._save()

        unit = self.state.units[0]
        assert unit.folder_id == folder.id
        assert len(unit.lines) == 2
        assert self.app.messages == ["Added: Untitled (2 lines)"]
