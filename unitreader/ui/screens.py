"""Screen compositions for the different app views."""

import urwid

from unitreader.core.capture import explain, HeadwordSelected, SelectingMeaning, MeaningSelected
from unitreader.core.navigation import AddUnit, EditUnit, Reader, Vocabulary
from unitreader.ui.widgets import ListBrowser, PassageViewer, VocabularyRow


class UnitListScreen(urwid.WidgetWrap):
    """Folders and the units of the active folder."""

    def __init__(self, app):
        self.app = app

        self.folder_text = urwid.Text("")
        self.list_browser = ListBrowser(on_select=self._on_unit_select)

        self.folder_box = urwid.LineBox(urwid.Padding(self.folder_text, left=1, right=1), title="Folders")
        self.list_box = urwid.LineBox(self.list_browser, title="Units")

        pile = urwid.Pile([
            ("pack", self.folder_box),
            ("weight", 1, self.list_box),
        ])
        pile.focus_position = 1

        super().__init__(pile)
        self.refresh()

    def refresh(self):
        """Redraw the folder bar and the unit list."""
        state = self.app.state

        parts = []
        all_label = f" All ({len(state.units)}) "
        parts.append(("folder_active" if state.folder_filter is None else "folder", all_label))
        for folder in state.folders:
            count = len(state.units_in_folder(folder.id))
            attr = "folder_active" if state.folder_filter == folder.id else "folder"
            parts.append("  ")
            parts.append((attr, f" {folder.name} ({count}) "))
        self.folder_text.set_text(parts)

        units = state.filtered_units()
        if units:
            items = [
                (
                    u.id,
                    u.title,
                    f"{state.folder_name_for(u)} | {len(u.lines)} lines | "
                    f"{state.vocabulary_count(u.id)} words",
                )
                for u in units
            ]
        else:
            items = []
        self.list_browser.set_items(items)
        self.list_box.set_title("Units" if units else "Units (none yet - press [a] to add one)")

    def _on_unit_select(self, unit_id: str):
        self.app.open_reader(unit_id)

    def _cycle_folder(self):
        state = self.app.state
        ids = [None] + [f.id for f in state.folders]
        index = ids.index(state.folder_filter) if state.folder_filter in ids else 0
        state.set_folder_filter(ids[(index + 1) % len(ids)])
        self.refresh()

    def _new_folder(self):
        def create(name):
            folder = self.app.run_action(lambda: self.app.state.create_folder(name))
            if folder:
                self.app.show_message(f"Created folder: {folder.name}")
            self.refresh()

        self.app.prompt("New folder", "Name: ", create)

    def _delete_folder(self):
        folder = self.app.state.get_folder(self.app.state.folder_filter)
        if folder is None:
            self.app.show_message("Select a folder first ([f] cycles folders)")
            return

        def delete():
            deleted = self.app.run_action(lambda: self.app.state.delete_folder(folder.id))
            self.refresh()
            if deleted:
                self.app.show_message(f"Deleted folder: {folder.name} (its units were kept)")

        self.app.confirm(f"Delete folder '{folder.name}'? Its units are kept.", delete)

    def _delete_unit(self, unit_id: str):
        unit = self.app.state.get_unit(unit_id)
        if unit is None:
            return

        def delete():
            self.app.run_action(lambda: self.app.state.delete_unit(unit_id))
            self.refresh()

        self.app.confirm(
            f"Delete unit '{unit.title}' and its {self.app.state.vocabulary_count(unit_id)} vocabulary item(s)?",
            delete,
        )

    def keypress(self, size, key):
        focused = self.list_browser.get_focused_id()

        if key == "f":
            self._cycle_folder()
            return None
        elif key == "F":
            self._new_folder()
            return None
        elif key == "X":
            self._delete_folder()
            return None
        elif key == "a":
            self.app.open_add()
            return None
        elif key == "e" and focused:
            self.app.open_edit(focused)
            return None
        elif key == "d" and focused:
            self._delete_unit(focused)
            return None

        return super().keypress(size, key)


class UnitFormScreen(urwid.WidgetWrap):
    """Add or edit a unit from three aligned text blocks."""

    def __init__(self, app, screen: AddUnit | EditUnit):
        self.app = app
        self.screen = screen
        editing = isinstance(screen, EditUnit)

        self.title_edit = urwid.Edit("", screen.title if editing else "")
        self.english_edit = urwid.Edit("", screen.english if editing else "", multiline=True)
        self.japanese_edit = urwid.Edit("", screen.japanese if editing else "", multiline=True)
        self.phonetic_edit = urwid.Edit("", screen.phonetic if editing else "", multiline=True)

        self.folder_ids = [None] + [f.id for f in app.state.folders]
        current = screen.folder_id if editing else app.state.folder_filter
        if editing and current not in self.folder_ids:
            # Keep a reference to a folder that no longer exists
            self.folder_ids.append(current)
        self.folder_index = self.folder_ids.index(current) if current in self.folder_ids else 0
        self.folder_text = urwid.Text("")
        self._update_folder_display()

        save_btn = urwid.Button("Save", on_press=self._save)
        cancel_btn = urwid.Button("Cancel", on_press=lambda b: self.app.open_list())
        folder_btn = urwid.Button("Cycle Folder", on_press=self._cycle_folder)

        buttons = urwid.Columns([
            urwid.AttrMap(save_btn, "button", focus_map="button_focus"),
            urwid.AttrMap(folder_btn, "button", focus_map="button_focus"),
            urwid.AttrMap(cancel_btn, "button", focus_map="button_focus"),
        ], dividechars=2)

        def block(label, edit, height):
            return [
                urwid.Text(label),
                urwid.BoxAdapter(
                    urwid.Filler(urwid.AttrMap(edit, "list_item_focus"), valign="top"),
                    height=height,
                ),
                urwid.Divider(),
            ]

        pile = urwid.Pile([
            urwid.Text("One sentence per line. Translation and phonetic lines pair with English lines by position.", align="center"),
            urwid.Divider(),
            urwid.Text("Title:"),
            urwid.AttrMap(self.title_edit, "list_item_focus"),
            urwid.Divider(),
            self.folder_text,
            urwid.Divider(),
            *block("English:", self.english_edit, 8),
            *block("Japanese:", self.japanese_edit, 8),
            *block("Phonetic:", self.phonetic_edit, 4),
            buttons,
        ])

        title = f"Edit: {screen.title[:40]}" if editing else "Add New Unit"
        box = urwid.LineBox(urwid.ListBox(urwid.SimpleFocusListWalker([urwid.Padding(pile, left=1, right=1)])), title=title)
        super().__init__(box)

    def _update_folder_display(self):
        folder_id = self.folder_ids[self.folder_index]
        folder = self.app.state.get_folder(folder_id)
        if folder:
            name = folder.name
        elif folder_id:
            name = "(missing folder)"
        else:
            name = "(none)"
        self.folder_text.set_text(f"Folder: {name}")

    def _cycle_folder(self, button=None):
        self.folder_index = (self.folder_index + 1) % len(self.folder_ids)
        self._update_folder_display()

    def _save(self, button=None):
        state = self.app.state
        fields = dict(
            title=self.title_edit.edit_text,
            folder_id=self.folder_ids[self.folder_index],
            english=self.english_edit.edit_text,
            japanese=self.japanese_edit.edit_text,
            phonetic=self.phonetic_edit.edit_text,
        )

        if isinstance(self.screen, EditUnit):
            unit = self.app.run_action(lambda: state.update_unit(self.screen.unit_id, **fields))
            verb = "Updated"
        else:
            unit = self.app.run_action(lambda: state.create_unit(**fields))
            verb = "Added"

        if unit:
            self.app.open_list()
            self.app.show_message(f"{verb}: {unit.title} ({len(unit.lines)} lines)")

    def keypress(self, size, key):
        if key == "esc":
            self.app.open_list()
            return None
        if key == "tab":
            return None
        if key == "ctrl s":
            self._save()
            return None
        return super().keypress(size, key)


class ReaderScreen(urwid.WidgetWrap):
    """Read a unit, reveal translations and capture vocabulary."""

    def __init__(self, app, screen: Reader):
        self.app = app
        self.screen = screen
        self.capture = screen.capture

        self.viewer = PassageViewer(on_select=self._on_selection)
        self.capture_text = urwid.Text("")

        unit = self.unit
        self.content_box = urwid.LineBox(self.viewer, title=unit.title if unit else "")
        self.capture_box = urwid.LineBox(urwid.Padding(self.capture_text, left=1, right=1), title="Vocabulary capture")

        pile = urwid.Pile([
            ("weight", 1, self.content_box),
            ("pack", self.capture_box),
        ])
        pile.focus_position = 0

        super().__init__(pile)
        if unit:
            self.viewer.set_unit(unit)
        self._update_capture()

    @property
    def unit(self):
        return self.app.state.get_unit(self.screen.unit_id)

    def _redraw(self):
        self.viewer.set_unit(self.unit, keep_cursor=True)
        self._update_capture()

    def _on_selection(self, text: str):
        self.capture.select(text)
        self._update_capture()

    def _update_capture(self):
        """Render the capture panel for the current capture state."""
        state = self.capture.state
        unit = self.unit
        reveal = []
        if unit:
            reveal.append("[t] hide translations" if unit.all_japanese_shown else "[t] show translations")
            reveal.append("[p] hide phonetics" if unit.all_phonetic_shown else "[p] show phonetics")
        reveal_hint = "  ".join(reveal)

        if isinstance(state, HeadwordSelected):
            markup = [
                ("capture_title", "Select headword\n"),
                "Word: ", ("capture_word", state.word), "\n",
                ("capture_hint", explain(state.word)), "\n",
                ("capture_hint", "[n] next: select meaning  [Esc] cancel"),
            ]
        elif isinstance(state, SelectingMeaning):
            markup = [
                ("capture_title", "Select meaning\n"),
                "Word: ", ("capture_word", state.word), "\n",
                ("warning", "Select the meaning (reveal the translation with [t] or [T])"), "\n",
                ("capture_hint", "[Esc] cancel"),
            ]
        elif isinstance(state, MeaningSelected):
            markup = [
                ("capture_title", "Select meaning\n"),
                "Word: ", ("capture_word", state.word), "  ",
                "Meaning: ", ("capture_meaning", state.meaning), "\n",
                ("capture_hint", "[c] add to vocabulary  [Enter] reselect meaning  [Esc] cancel"),
            ]
        else:
            markup = [
                ("capture_hint", "Move with arrows, [Space] starts/ends a range, [Enter] selects it as a word.\n"),
                ("capture_hint", f"{reveal_hint}  [T]/[P] current line  [L] add line to vocabulary"),
            ]
        self.capture_text.set_text(markup)

    def _commit(self):
        unit = self.unit
        if not self.capture.can_commit or unit is None:
            self.app.show_message("Select a meaning first")
            return
        item = self.app.run_action(lambda: self.capture.commit(self.app.state, unit))
        if item:
            self.app.show_message(f"Added to vocabulary: {item.word} = {item.meaning}")
        self._update_capture()

    def _add_line(self):
        line_id = self.viewer.current_line_id()
        if line_id is None:
            return
        item = self.app.run_action(
            lambda: self.app.state.add_line_to_vocabulary(self.screen.unit_id, line_id)
        )
        if item:
            self.app.show_message(f"Added line {line_id + 1} to vocabulary")

    def keypress(self, size, key):
        unit_id = self.screen.unit_id

        if key == "t":
            shown = self.app.state.toggle_all_translations(unit_id)
            self._redraw()
            self.app.show_message("Translations shown" if shown else "Translations hidden")
            return None
        elif key == "p":
            shown = self.app.state.toggle_all_phonetics(unit_id)
            self._redraw()
            self.app.show_message("Phonetics shown" if shown else "Phonetics hidden")
            return None
        elif key == "T":
            line_id = self.viewer.current_line_id()
            if line_id is not None:
                self.app.state.toggle_line_translation(unit_id, line_id)
                self._redraw()
            return None
        elif key == "P":
            line_id = self.viewer.current_line_id()
            if line_id is not None:
                self.app.state.toggle_line_phonetic(unit_id, line_id)
                self._redraw()
            return None
        elif key == "n":
            if self.capture.can_advance:
                self.capture.advance()
                self._update_capture()
            return None
        elif key == "c":
            self._commit()
            return None
        elif key == "L":
            self._add_line()
            return None
        elif key == "e":
            self.app.open_edit(unit_id)
            return None
        elif key == "esc":
            if self.capture.is_idle:
                self.app.open_list()
            else:
                self.capture.cancel()
                self.viewer.clear_selection()
                self._update_capture()
            return None

        return super().keypress(size, key)


class VocabularyScreen(urwid.WidgetWrap):
    """Editable vocabulary table with unit filter, save and export."""

    def __init__(self, app, screen: Vocabulary):
        self.app = app
        self.screen = screen

        self.filter_text = urwid.Text("")
        self.walker = urwid.SimpleFocusListWalker([])
        self.listbox = urwid.ListBox(self.walker)

        header = urwid.AttrMap(urwid.Columns([
            ("weight", 2, urwid.Text("Word")),
            ("weight", 3, urwid.Text("Meaning")),
            ("weight", 2, urwid.Text("Unit")),
        ], dividechars=2), "content_title")

        self.table_box = urwid.LineBox(
            urwid.Frame(self.listbox, header=header),
            title="Vocabulary",
        )

        pile = urwid.Pile([
            ("pack", urwid.Padding(self.filter_text, left=1, right=1)),
            ("weight", 1, self.table_box),
        ])
        pile.focus_position = 1

        super().__init__(pile)
        self.refresh()

    def refresh(self):
        state = self.app.state
        scope = "All units" if not state.vocabulary_filter else state.vocabulary_scope_name()
        dirty = "  (unsaved edits - [s] save)" if state.vocabulary_dirty else ""
        self.filter_text.set_text(f"Unit ([u] to change): {scope} ({len(state.filtered_vocabulary())} words){dirty}")

        focus = self.walker.focus if self.walker else None
        self.walker.clear()
        for item in state.filtered_vocabulary():
            self.walker.append(VocabularyRow(item, on_select=self._edit_item))
        if focus is not None and self.walker:
            self.walker.set_focus(min(focus, len(self.walker) - 1))

        if not self.walker:
            self.table_box.set_title("Vocabulary (empty - capture words in the reader)")
        else:
            self.table_box.set_title("Vocabulary")

    def _focused_id(self) -> str | None:
        if self.walker and self.walker.focus is not None:
            return getattr(self.walker[self.walker.focus], "id", None)
        return None

    def _cycle_filter(self):
        state = self.app.state
        ids = [None] + [u.id for u in state.units]
        index = ids.index(state.vocabulary_filter) if state.vocabulary_filter in ids else 0
        state.set_vocabulary_filter(ids[(index + 1) % len(ids)])
        self.refresh()

    def _edit_item(self, item_id: str):
        item = self.app.state.get_vocabulary(item_id)
        if item is None:
            return

        def apply(word, meaning):
            if not word.strip():
                self.app.show_message("Word cannot be empty")
                return
            self.app.state.update_vocabulary_word(item_id, word.strip())
            self.app.state.update_vocabulary_meaning(item_id, meaning.strip())
            self.refresh()

        self.app.edit_pair(f"Edit: {item.word}", item.word, item.meaning, apply)

    def _delete_item(self, item_id: str):
        item = self.app.state.get_vocabulary(item_id)
        if item is None:
            return

        def delete():
            self.app.run_action(lambda: self.app.state.delete_vocabulary(item_id))
            self.refresh()

        self.app.confirm(f"Delete '{item.word}' from the vocabulary?", delete)

    def _save(self):
        count = self.app.run_action(self.app.state.save_vocabulary)
        if count is not None:
            self.app.show_message(f"Saved {count} vocabulary item(s)")
        self.refresh()

    def _export(self):
        path = self.app.run_action(self.app.export_vocabulary)
        if path:
            self.app.show_message(f"Exported to {path}")

    def keypress(self, size, key):
        focused = self._focused_id()

        if key == "u":
            self._cycle_filter()
            return None
        elif key == "s":
            self._save()
            return None
        elif key == "x":
            self._export()
            return None
        elif key == "f":
            self.app.open_flashcards()
            return None
        elif key == "d" and focused:
            self._delete_item(focused)
            return None

        return super().keypress(size, key)


class FlashcardScreen(urwid.WidgetWrap):
    """Linear flashcard review over the filtered vocabulary."""

    def __init__(self, app, screen: Vocabulary):
        self.app = app
        self.deck = screen.deck

        self.front_text = urwid.Text("", align="center")
        self.hint_text = urwid.Text("", align="center")
        self.back_text = urwid.Text("", align="center")
        self.unit_text = urwid.Text("", align="center")
        self.progress_text = urwid.Text("", align="center")

        pile = urwid.Pile([
            urwid.Divider(),
            urwid.Divider(),
            urwid.AttrMap(self.front_text, "card_front"),
            urwid.Divider(),
            urwid.AttrMap(self.hint_text, "card_hint"),
            urwid.Divider(),
            urwid.AttrMap(self.back_text, "card_back"),
            urwid.Divider(),
            urwid.AttrMap(self.unit_text, "card_hint"),
            urwid.Divider(),
            self.progress_text,
        ])

        filler = urwid.Filler(pile, valign="middle")
        self.box = urwid.LineBox(filler, title="Flashcards")

        super().__init__(self.box)
        self._show_current()

    def _show_current(self):
        deck = self.deck
        item = deck.current
        if item is None:
            self.front_text.set_text("No words to review!")
            self.hint_text.set_text("[Esc] back")
            self.back_text.set_text("")
            self.unit_text.set_text("")
            self.progress_text.set_text("")
            return

        self.front_text.set_text(deck.front or "-")
        self.back_text.set_text((deck.back or "-") if deck.revealed else "")
        self.unit_text.set_text(item.unit_title)

        nav = []
        nav.append("[Left] previous" if deck.has_previous else "")
        nav.append("[Right] next" if deck.has_next else "")
        action = "[Space] hide" if deck.revealed else "[Space] reveal"
        self.hint_text.set_text(
            "  ".join(part for part in (action, *nav, "[o] switch sides", "[Esc] back") if part)
        )
        self.box.set_title(f"Flashcards ({deck.orientation.value} first)")
        self.progress_text.set_text(deck.position)

    def keypress(self, size, key):
        if key in (" ", "enter"):
            self.deck.flip()
        elif key in ("right", "n"):
            self.deck.next()
        elif key in ("left", "b"):
            self.deck.previous()
        elif key == "o":
            self.deck.toggle_orientation()
        elif key == "esc":
            self.app.open_vocabulary()
            return None
        else:
            return key

        self._show_current()
        return None
