"""Custom urwid widgets for the reading app."""

from dataclasses import dataclass
import urwid

from unitreader.core.line_pairing import Token, tokenize
from unitreader.core.models import Unit, VocabularyItem
from unitreader.ui.theme import get_row_attr, get_cursor_attr


class ListItem(urwid.WidgetWrap):
    """A selectable list item."""

    def __init__(self, id: str, title: str, subtitle: str = "", on_select=None):
        self.id = id
        self.title = title
        self.subtitle = subtitle
        self.on_select = on_select

        if subtitle:
            text = f"{title}\n  {subtitle}"
        else:
            text = title

        self.text_widget = urwid.Text(text)
        widget = urwid.AttrMap(
            self.text_widget,
            "list_item",
            focus_map="list_item_focus"
        )
        super().__init__(widget)

    def selectable(self):
        return True

    def keypress(self, size, key):
        if key == "enter" and self.on_select:
            self.on_select(self.id)
            return None
        return key

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1 and self.on_select:
            self.on_select(self.id)
            return True
        return False


class ListBrowser(urwid.WidgetWrap):
    """A scrollable list browser widget."""

    def __init__(self, on_select=None):
        self.on_select = on_select
        self.items = []
        self.walker = urwid.SimpleFocusListWalker([])
        self.listbox = urwid.ListBox(self.walker)
        super().__init__(self.listbox)

    def set_items(self, items: list[tuple[str, str, str]]):
        """Set list items. Each item is (id, title, subtitle)."""
        focused = self.get_focused_id()
        self.items = items
        self.walker.clear()

        for id, title, subtitle in items:
            item = ListItem(id, title, subtitle, on_select=self.on_select)
            self.walker.append(item)

        if focused:
            self.set_focus_id(focused)

    def get_focused_id(self) -> str | None:
        """Get the ID of the currently focused item."""
        if self.walker and self.walker.focus is not None:
            focus_widget = self.walker[self.walker.focus]
            if hasattr(focus_widget, "id"):
                return focus_widget.id
        return None

    def set_focus_id(self, id: str) -> None:
        for position, widget in enumerate(self.walker):
            if getattr(widget, "id", None) == id:
                self.walker.set_focus(position)
                return


class VocabularyRow(urwid.WidgetWrap):
    """A selectable row of the vocabulary table."""

    def __init__(self, item: VocabularyItem, on_select=None):
        self.id = item.id
        self.on_select = on_select
        columns = urwid.Columns([
            ("weight", 2, urwid.Text(item.word)),
            ("weight", 3, urwid.Text(item.meaning or "-")),
            ("weight", 2, urwid.Text(item.unit_title or "-")),
        ], dividechars=2)
        super().__init__(urwid.AttrMap(columns, "list_item", focus_map="list_item_focus"))

    def selectable(self):
        return True

    def keypress(self, size, key):
        if key == "enter" and self.on_select:
            self.on_select(self.id)
            return None
        return key


@dataclass
class RowInfo:
    """One displayed row of a passage: a line's English, translation or phonetic."""
    line_id: int
    kind: str       # "english", "japanese" or "phonetic"
    text: str


class PassageRow(urwid.WidgetWrap):
    """A row of passage text whose words can be highlighted."""

    def __init__(self, info: RowInfo, prefix: str, on_click=None):
        self.info = info
        self.prefix = prefix
        self.on_click = on_click
        self.tokens: list[Token] = tokenize(info.text)
        self.words: list[Token] = [t for t in self.tokens if t.is_word]
        self.cursor_word_idx: int | None = None
        self.selected_word_indices: set[int] = set()

        self.text_widget = urwid.Text("")
        self._update_display()
        super().__init__(self.text_widget)

    def _update_display(self):
        """Build urwid text markup with colors."""
        row_attr = get_row_attr(self.info.kind)
        markup = [("line_number", self.prefix)]
        word_idx = 0
        for token in self.tokens:
            if token.is_word:
                is_cursor = (word_idx == self.cursor_word_idx)
                is_selected = (word_idx in self.selected_word_indices)

                if is_cursor:
                    attr = get_cursor_attr(self.info.kind, is_selected)
                elif is_selected:
                    attr = "selected"
                else:
                    attr = row_attr

                markup.append((attr, token.text))
                word_idx += 1
            else:
                markup.append((row_attr, token.text))

        self.text_widget.set_text(markup)

    def set_cursor(self, word_idx: int | None):
        if self.cursor_word_idx != word_idx:
            self.cursor_word_idx = word_idx
            self._update_display()

    def set_selected(self, word_indices: set[int]):
        if self.selected_word_indices != word_indices:
            self.selected_word_indices = word_indices
            self._update_display()

    def get_word_at_col(self, col: int) -> int | None:
        """Get word index at character column, or None."""
        col -= len(self.prefix)
        for word_idx, token in enumerate(self.words):
            if token.start <= col < token.end:
                return word_idx
        return None

    def selectable(self):
        return True

    def keypress(self, size, key):
        return key

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1 and self.on_click:
            self.on_click(self, self.get_word_at_col(col))
            return True
        return False


class PassageViewer(urwid.WidgetWrap):
    """
    Display a unit's lines with a word cursor and range selection.

    Space anchors a selection at the cursor (or drops it); moving the
    cursor within the same row extends it. Enter hands the selected
    substring (or the word under the cursor) to ``on_select``. A selection
    never spans rows.
    """

    def __init__(self, on_select=None):
        self.on_select = on_select
        self.rows: list[PassageRow] = []
        self.cursor_row = 0
        self.cursor_word = 0
        self.anchor: int | None = None

        self.walker = urwid.SimpleFocusListWalker([])
        self.listbox = urwid.ListBox(self.walker)
        super().__init__(self.listbox)

    def set_unit(self, unit: Unit, keep_cursor: bool = False):
        """Show a unit's lines with their current reveal state."""
        previous = self.current_row_info() if keep_cursor else None
        previous_word = self.cursor_word

        self.rows = []
        self.walker.clear()
        width = len(str(len(unit.lines)))
        for line in unit.lines:
            number = f"{line.id + 1:>{width}}. "
            indent = " " * len(number)
            infos = [(RowInfo(line.id, "english", line.english), number)]
            if line.show_japanese and line.japanese:
                infos.append((RowInfo(line.id, "japanese", line.japanese), indent))
            if line.show_phonetic and line.phonetic:
                infos.append((RowInfo(line.id, "phonetic", line.phonetic), indent))
            for info, prefix in infos:
                row = PassageRow(info, prefix, on_click=self._on_row_click)
                self.rows.append(row)
                self.walker.append(row)

        self.anchor = None
        self.cursor_row = 0
        self.cursor_word = 0
        if previous is not None:
            self._restore_cursor(previous, previous_word)
        elif not self._row_has_words(0):
            self._move_row(1)
        self._update_display()

    def _restore_cursor(self, previous: RowInfo, word: int):
        fallback = None
        for index, row in enumerate(self.rows):
            if row.info.line_id != previous.line_id:
                continue
            if row.info.kind == previous.kind:
                self.cursor_row = index
                self.cursor_word = min(word, max(len(row.words) - 1, 0))
                return
            if row.info.kind == "english":
                fallback = index
        if fallback is not None:
            self.cursor_row = fallback
            self.cursor_word = 0

    def _row_has_words(self, index: int) -> bool:
        return 0 <= index < len(self.rows) and bool(self.rows[index].words)

    def _update_display(self):
        """Update all rows to reflect current cursor and selection."""
        for index, row in enumerate(self.rows):
            if index == self.cursor_row and row.words:
                row.set_cursor(self.cursor_word)
                if self.anchor is not None:
                    low, high = sorted((self.anchor, self.cursor_word))
                    row.set_selected(set(range(low, high + 1)))
                else:
                    row.set_selected(set())
            else:
                row.set_cursor(None)
                row.set_selected(set())

        if self.rows:
            self.listbox.set_focus(self.cursor_row)

    def _on_row_click(self, row: PassageRow, word_idx: int | None):
        if word_idx is None:
            return
        index = self.rows.index(row)
        if index != self.cursor_row:
            self.anchor = None
        self.cursor_row = index
        self.cursor_word = word_idx
        self._update_display()

    def _move_row(self, step: int) -> bool:
        """Move to the nearest row with words in the given direction."""
        current = self.rows[self.cursor_row].words[self.cursor_word] if self._row_has_words(self.cursor_row) else None
        index = self.cursor_row + step
        while 0 <= index < len(self.rows):
            if self.rows[index].words:
                target = self.rows[index]
                self.cursor_row = index
                if current is None:
                    self.cursor_word = 0
                else:
                    nearest = min(
                        range(len(target.words)),
                        key=lambda i: abs(target.words[i].start - current.start),
                    )
                    self.cursor_word = nearest
                self.anchor = None
                return True
            index += step
        return False

    def move_cursor(self, direction: str):
        """Move cursor: 'forward', 'backward', 'up', 'down'."""
        if not self.rows:
            return

        words = self.rows[self.cursor_row].words
        if direction == "forward":
            if self.cursor_word < len(words) - 1:
                self.cursor_word += 1
            elif self._move_row(1):
                self.cursor_word = 0
        elif direction == "backward":
            if self.cursor_word > 0:
                self.cursor_word -= 1
            elif self._move_row(-1):
                self.cursor_word = len(self.rows[self.cursor_row].words) - 1
        elif direction == "up":
            self._move_row(-1)
        elif direction == "down":
            self._move_row(1)

        self._update_display()

    def toggle_anchor(self):
        """Start a selection at the cursor, or drop the current one."""
        if not self._row_has_words(self.cursor_row):
            return
        self.anchor = self.cursor_word if self.anchor is None else None
        self._update_display()

    def current_row_info(self) -> RowInfo | None:
        if 0 <= self.cursor_row < len(self.rows):
            return self.rows[self.cursor_row].info
        return None

    def current_line_id(self) -> int | None:
        info = self.current_row_info()
        return info.line_id if info else None

    def get_selection(self) -> str:
        """The selected substring, or the word under the cursor."""
        if not self._row_has_words(self.cursor_row):
            return ""
        row = self.rows[self.cursor_row]
        if self.anchor is None:
            low = high = self.cursor_word
        else:
            low, high = sorted((self.anchor, self.cursor_word))
        return row.info.text[row.words[low].start:row.words[high].end]

    def clear_selection(self):
        self.anchor = None
        self._update_display()

    def keypress(self, size, key):
        """Handle navigation and selection keys."""
        if key in ("ctrl f", "right"):
            self.move_cursor("forward")
            return None
        elif key in ("ctrl b", "left"):
            self.move_cursor("backward")
            return None
        elif key in ("ctrl n", "down"):
            self.move_cursor("down")
            return None
        elif key in ("ctrl p", "up"):
            self.move_cursor("up")
            return None
        elif key == " ":
            self.toggle_anchor()
            return None
        elif key == "enter":
            text = self.get_selection()
            self.anchor = None
            self._update_display()
            if self.on_select:
                self.on_select(text)
            return None

        return key


class TabBar(urwid.WidgetWrap):
    """A horizontal tab bar."""

    def __init__(self, tabs: list[str], on_tab_change=None):
        self.tabs = tabs
        self.active_tab = 0
        self.on_tab_change = on_tab_change

        self._build()

    def _build(self):
        """Build the tab bar widget."""
        columns = []
        for i, tab in enumerate(self.tabs):
            attr = "tab_active" if i == self.active_tab else "tab_inactive"
            btn = urwid.AttrMap(urwid.Text(f" {tab} "), attr)
            columns.append(("pack", btn))
            columns.append(("pack", urwid.Text(" ")))

        widget = urwid.Columns(columns)
        widget = urwid.AttrMap(widget, "header")
        self._w = widget

    def highlight(self, index: int):
        """Mark a tab active without notifying."""
        if 0 <= index < len(self.tabs) and index != self.active_tab:
            self.active_tab = index
            self._build()

    def set_active(self, index: int):
        """Set the active tab."""
        if 0 <= index < len(self.tabs):
            self.active_tab = index
            self._build()
            if self.on_tab_change:
                self.on_tab_change(index)

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1:
            x = 0
            for i, tab in enumerate(self.tabs):
                tab_width = len(tab) + 2 + 1  # text + padding + spacer
                if x <= col < x + tab_width:
                    self.set_active(i)
                    return True
                x += tab_width
        return False


class StatusBar(urwid.WidgetWrap):
    """A status bar showing hints and messages."""

    def __init__(self, text: str = ""):
        self.text_widget = urwid.Text(text)
        widget = urwid.AttrMap(self.text_widget, "footer")
        super().__init__(widget)

    def set_text(self, text: str):
        """Set the status text."""
        self.text_widget.set_text(text)


class Dialog(urwid.WidgetWrap):
    """A modal dialog widget."""

    def __init__(self, title: str, body: urwid.Widget, buttons: list[tuple[str, callable]]):
        self.title = title
        self.buttons = buttons

        title_widget = urwid.Text(title, align="center")
        title_widget = urwid.AttrMap(title_widget, "dialog_title")

        button_widgets = []
        for label, callback in buttons:
            btn = urwid.Button(label)
            urwid.connect_signal(btn, "click", lambda b, cb=callback: cb())
            btn = urwid.AttrMap(btn, "button", focus_map="button_focus")
            button_widgets.append(btn)

        button_row = urwid.Columns(
            [(len(b[0]) + 4, w) for b, w in zip(buttons, button_widgets)],
            dividechars=2
        )
        row_width = sum(len(label) + 4 for label, _ in buttons) + 2 * (len(buttons) - 1)
        button_row = urwid.Padding(button_row, align="center", width=row_width)

        pile = urwid.Pile([
            title_widget,
            urwid.Divider(),
            body,
            urwid.Divider(),
            button_row,
        ])

        lined = urwid.LineBox(pile)
        widget = urwid.AttrMap(lined, "dialog")

        super().__init__(widget)
