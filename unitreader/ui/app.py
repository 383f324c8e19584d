"""Main application entry point."""

import logging
import os
from pathlib import Path
from typing import Optional

import urwid
import yaml
from dotenv import load_dotenv

from unitreader.core.errors import DuplicateError, RemoteFailure, UnitReaderError, ValidationError
from unitreader.core.export import export_vocabulary
from unitreader.core.navigation import (
    AddUnit, EditUnit, Navigator, Reader, Vocabulary, VocabularyMode,
)
from unitreader.core.state import StudyState
from unitreader.storage import open_gateway
from unitreader.ui.theme import PALETTE
from unitreader.ui.widgets import Dialog, StatusBar, TabBar
from unitreader.ui.screens import (
    FlashcardScreen, ReaderScreen, UnitFormScreen, UnitListScreen, VocabularyScreen,
)


logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "storage": {
        "backend": "sqlite",
        "base_path": "data",
        "database": "units.db",
    },
    "export": {
        "directory": "exports",
    },
    "logging": {
        "level": "INFO",
        "file": "unitreader.log",
    },
}


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from the first config file found, else defaults."""
    paths_to_try = [
        config_path,
        "config.yaml",
        os.path.expanduser("~/.config/unitreader/config.yaml"),
    ]

    for path in paths_to_try:
        if path and os.path.exists(path):
            with open(path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            config = {key: dict(value) for key, value in DEFAULT_CONFIG.items()}
            for key, value in loaded.items():
                if isinstance(value, dict) and key in config:
                    config[key].update(value)
                else:
                    config[key] = value
            return config

    return {key: dict(value) for key, value in DEFAULT_CONFIG.items()}


def configure_logging(config: dict) -> None:
    """Send log records to a file under the data directory."""
    log_config = config.get("logging", {})
    base_path = Path(config.get("storage", {}).get("base_path", "data"))
    log_file = base_path / log_config.get("file", "unitreader.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class App:
    """Main application class."""

    TAB_NAMES = ["Units", "Vocabulary"]

    HINTS = {
        UnitListScreen: "[Enter]read [a]dd [e]dit [d]elete | [f]older filter [F] new folder [X] delete folder | [?]help [q]uit",
        UnitFormScreen: "arrows to move | [Ctrl-s] save | [Esc] cancel",
        ReaderScreen: "[t]/[p] all lines [T]/[P] this line | [Enter] select [n]ext [c]ommit [L] add line | [e]dit [Esc] back",
        VocabularyScreen: "[Enter]edit [d]elete [s]ave | [u]nit filter [x] export [f]lashcards | [?]help [q]uit",
        FlashcardScreen: "[Space] flip [Left]/[Right] move [o] orientation [Esc] back",
    }

    def __init__(self, config_path: Optional[str] = None):
        load_dotenv()
        self.config = load_config(config_path)
        configure_logging(self.config)

        self.state = StudyState(open_gateway(self.config))
        self.navigator = Navigator(self.state)
        self.load_error: Optional[str] = None

        try:
            self.state.load()
        except RemoteFailure as e:
            logger.warning("Initial load failed: %s", e)
            self.load_error = str(e)

        self.loop = None
        self._init_ui()

    def _init_ui(self):
        """Initialize the UI components."""
        self.tab_bar = TabBar(self.TAB_NAMES, on_tab_change=self._on_tab_change)
        self.status_bar = StatusBar()
        self.body = urwid.WidgetPlaceholder(urwid.SolidFill(" "))

        self.frame = urwid.Frame(
            header=self.tab_bar,
            body=self.body,
            footer=self.status_bar,
        )
        self._render()

    # -- navigation --------------------------------------------------------

    def _render(self):
        """Build the widget for the navigator's current screen."""
        screen = self.navigator.screen

        if isinstance(screen, (AddUnit, EditUnit)):
            widget = UnitFormScreen(self, screen)
        elif isinstance(screen, Reader):
            widget = ReaderScreen(self, screen)
        elif isinstance(screen, Vocabulary) and screen.mode == VocabularyMode.FLASHCARDS:
            widget = FlashcardScreen(self, screen)
        elif isinstance(screen, Vocabulary):
            widget = VocabularyScreen(self, screen)
        else:
            widget = UnitListScreen(self)

        self.body.original_widget = widget
        self.tab_bar.highlight(1 if isinstance(screen, Vocabulary) else 0)
        self.update_status()

    def _on_tab_change(self, index: int):
        if index == 1:
            self.open_vocabulary()
        else:
            self.open_list()

    def switch_tab(self, index: int):
        """Switch to a specific tab."""
        self.tab_bar.set_active(index)

    def open_list(self):
        self.navigator.show_list()
        self._render()

    def open_add(self):
        self.navigator.show_add()
        self._render()

    def open_edit(self, unit_id: str):
        if self.run_action(lambda: self.navigator.show_edit(unit_id)):
            self._render()

    def open_reader(self, unit_id: str):
        if self.run_action(lambda: self.navigator.show_reader(unit_id)):
            self._render()

    def open_vocabulary(self):
        self.navigator.show_vocabulary()
        self._render()

    def open_flashcards(self):
        if self.run_action(self.navigator.show_flashcards):
            self._render()

    def export_vocabulary(self) -> Path:
        """Export the filtered vocabulary to the configured directory."""
        directory = self.config.get("export", {}).get("directory", "exports")
        return export_vocabulary(
            self.state.filtered_vocabulary(),
            directory,
            scope=self.state.vocabulary_scope_name(),
        )

    # -- feedback ----------------------------------------------------------

    def update_status(self):
        """Show the key hints for the current screen."""
        hint = self.HINTS.get(type(self.body.original_widget), "[?]help [q]uit")
        if self.state.vocabulary_dirty:
            hint = "* unsaved vocabulary | " + hint
        self.status_bar.set_text(hint)

    def show_message(self, message: str):
        """Show a temporary message in the status bar."""
        self.status_bar.set_text(message)

    def show_notice(self, message: str):
        """Show a dismissible notice dialog."""
        self._show_dialog("Notice", urwid.Text(message), [("OK", self.close_overlay)])

    def show_error(self, message: str):
        """Show a blocking error dialog."""
        self._show_dialog(
            "Error",
            urwid.Text(("error", message)),
            [("OK", self.close_overlay)],
        )

    def run_action(self, action):
        """
        Run a state operation and report its failure to the user.

        Validation problems go to the status bar and remote failures to an
        error dialog. Returns the action's result, or None when it failed.
        """
        try:
            result = action()
        except RemoteFailure as e:
            if e.partial:
                self.show_error(f"{e}\n\nThe data was reloaded from storage.")
            else:
                self.show_error(str(e))
            return None
        except DuplicateError as e:
            self.show_notice(str(e))
            return None
        except ValidationError as e:
            self.show_message(str(e))
            return None
        self.update_status()
        return True if result is None else result

    # -- overlays ----------------------------------------------------------

    def _show_dialog(self, title: str, body: urwid.Widget, buttons, width=60, height=None):
        dialog = Dialog(title, body, buttons)
        overlay = urwid.Overlay(
            dialog,
            self.frame,
            align="center",
            width=width,
            valign="middle",
            height=height or "pack",
        )

        def handle_input(key):
            if key == "esc":
                self.close_overlay()
                return True
            return False

        if self.loop is None:
            return
        self.loop.widget = overlay
        self.loop.unhandled_input = handle_input

    def close_overlay(self):
        if self.loop is not None:
            self.loop.widget = self.frame
            self.loop.unhandled_input = self.handle_input
        self.update_status()

    def confirm(self, message: str, on_yes):
        """Ask for confirmation before a destructive action."""
        def yes():
            self.close_overlay()
            on_yes()

        self._show_dialog("Confirm", urwid.Text(message), [("Yes", yes), ("No", self.close_overlay)])

    def prompt(self, title: str, label: str, on_submit):
        """Ask for a single line of text."""
        edit = urwid.Edit(label)

        def ok():
            self.close_overlay()
            on_submit(edit.edit_text)

        self._show_dialog(title, urwid.AttrMap(edit, "list_item_focus"), [("OK", ok), ("Cancel", self.close_overlay)])

    def edit_pair(self, title: str, word: str, meaning: str, on_submit):
        """Edit a word and its meaning together."""
        word_edit = urwid.Edit("Word:    ", word)
        meaning_edit = urwid.Edit("Meaning: ", meaning)
        body = urwid.Pile([
            urwid.AttrMap(word_edit, "list_item_focus"),
            urwid.AttrMap(meaning_edit, "list_item_focus"),
        ])

        def ok():
            self.close_overlay()
            on_submit(word_edit.edit_text, meaning_edit.edit_text)

        self._show_dialog(title, body, [("OK", ok), ("Cancel", self.close_overlay)], width=70)

    def _quit(self):
        raise urwid.ExitMainLoop()

    def handle_input(self, key):
        """Handle global key input."""

        # Handle tuple keys (special keys) - ignore them
        if not isinstance(key, str):
            return

        if key in ("q", "Q"):
            if self.state.vocabulary_dirty:
                self.confirm("Vocabulary edits are not saved. Quit anyway?", self._quit)
                return
            raise urwid.ExitMainLoop()

        # Number keys for tab switching
        if key in ("1", "2"):
            self.switch_tab(int(key) - 1)
            return

        if key == "tab":
            self.switch_tab((self.tab_bar.active_tab + 1) % len(self.TAB_NAMES))
            return

        if key == "?":
            self._show_help()
            return

    def _show_help(self):
        """Show help overlay."""
        help_text = """
Unit Reader

Navigation:
  1-2, Tab    Switch between Units and Vocabulary
  Up/Down     Navigate lists
  Enter       Open / select
  q           Quit

Units:
  a / e / d   Add, edit, delete unit
  f           Cycle folder filter
  F / X       New folder, delete filtered folder

Reader:
  Arrows      Move the word cursor
  Space       Start/end a range selection
  Enter       Use the selection (headword, then meaning)
  n           Move on to selecting the meaning
  c           Add the word to the vocabulary
  t / p       Toggle translations / phonetics for all lines
  T / P       Toggle them for the current line
  L           Add the current line to the vocabulary
  Esc         Cancel capture, or go back

Vocabulary:
  u           Cycle unit filter
  Enter       Edit word and meaning
  s / d / x   Save, delete, export CSV
  f           Flashcards (Space flip, o orientation)

Press any key to close...
"""
        text = urwid.Text(help_text)
        filler = urwid.Filler(text, valign="top")
        box = urwid.LineBox(filler, title="Help")
        overlay = urwid.Overlay(
            box,
            self.frame,
            align="center",
            width=64,
            valign="middle",
            height=38,
        )

        def close_help(key):
            self.close_overlay()
            return True

        self.loop.widget = overlay
        self.loop.unhandled_input = close_help

    def run(self):
        """Run the application."""
        self.loop = urwid.MainLoop(
            self.frame,
            palette=PALETTE,
            unhandled_input=self.handle_input,
            handle_mouse=True,
        )

        if self.load_error:
            self.show_error(f"Could not load data: {self.load_error}")

        try:
            self.loop.run()
        except KeyboardInterrupt:
            pass


def main():
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Read bilingual units and build a vocabulary")
    parser.add_argument(
        "-c", "--config",
        help="Path to config file",
        default=None,
    )
    args = parser.parse_args()

    try:
        app = App(config_path=args.config)
    except UnitReaderError as e:
        parser.exit(1, f"unitreader: {e}\n")
    app.run()


if __name__ == "__main__":
    main()
