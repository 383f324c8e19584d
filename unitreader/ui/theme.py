"""Color theme and styling for the TUI."""

# Urwid palette for the application
# Format: (name, foreground, background, mono, foreground_high, background_high)

PALETTE = [
    # Passage rows
    ("english", "white", ""),
    ("japanese", "light green", ""),
    ("phonetic", "light magenta", ""),
    ("line_number", "dark gray", ""),

    # Cursor and selection inside the passage
    ("cursor", "white,underline", ""),
    ("cursor_japanese", "light green,underline", ""),
    ("cursor_phonetic", "light magenta,underline", ""),
    ("selected", "standout", ""),
    ("cursor_selected", "standout,underline", ""),

    # UI elements
    ("header", "white", "dark blue"),
    ("footer", "white", "dark gray"),
    ("tab_active", "white,bold", "dark blue"),
    ("tab_inactive", "light gray", "dark gray"),

    # List items
    ("list_item", "white", ""),
    ("list_item_selected", "white", "dark blue"),
    ("list_item_focus", "white,bold", "dark cyan"),

    # Folder bar
    ("folder", "light gray", ""),
    ("folder_active", "white,bold", "dark blue"),

    # Status/info
    ("info", "light cyan", ""),
    ("success", "light green", ""),
    ("warning", "yellow", ""),
    ("error", "light red", ""),

    # Capture panel
    ("capture_title", "white,bold", ""),
    ("capture_word", "yellow,bold", ""),
    ("capture_meaning", "light green,bold", ""),
    ("capture_hint", "dark gray", ""),

    # Flashcards
    ("card_front", "white,bold", ""),
    ("card_back", "light green", ""),
    ("card_hint", "dark gray", ""),

    # Dialog
    ("dialog", "white", "dark gray"),
    ("dialog_title", "white,bold", "dark blue"),
    ("button", "white", "dark gray"),
    ("button_focus", "white,bold", "dark blue"),
]


def get_row_attr(kind: str) -> str:
    """Get attribute name for a passage row kind."""
    return {
        "english": "english",
        "japanese": "japanese",
        "phonetic": "phonetic",
    }.get(kind, "english")


def get_cursor_attr(kind: str, is_selected: bool) -> str:
    """Get attribute name for the cursor on a word of the given row kind."""
    if is_selected:
        return "cursor_selected"
    return {
        "english": "cursor",
        "japanese": "cursor_japanese",
        "phonetic": "cursor_phonetic",
    }.get(kind, "cursor")
