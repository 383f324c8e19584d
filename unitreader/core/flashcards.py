"""Flashcard review over a vocabulary subset."""

from enum import Enum

from unitreader.core.models import VocabularyItem


class Orientation(Enum):
    """Which side of the card is shown first."""
    WORD_TO_MEANING = "word"
    MEANING_TO_WORD = "meaning"


class FlashcardDeck:
    """A bounded cursor over vocabulary items.

    Navigation does not wrap around. Every card starts hidden.
    """

    def __init__(
        self,
        items: list[VocabularyItem],
        orientation: Orientation = Orientation.WORD_TO_MEANING,
    ):
        self.items = list(items)
        self.orientation = orientation
        self.index = 0
        self.revealed = False

    def __len__(self) -> int:
        return len(self.items)

    @property
    def current(self) -> VocabularyItem | None:
        if 0 <= self.index < len(self.items):
            return self.items[self.index]
        return None

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    @property
    def has_next(self) -> bool:
        return self.index < len(self.items) - 1

    @property
    def front(self) -> str:
        item = self.current
        if item is None:
            return ""
        if self.orientation == Orientation.WORD_TO_MEANING:
            return item.word
        return item.meaning

    @property
    def back(self) -> str:
        item = self.current
        if item is None:
            return ""
        if self.orientation == Orientation.WORD_TO_MEANING:
            return item.meaning
        return item.word

    @property
    def position(self) -> str:
        if not self.items:
            return "0 / 0"
        return f"{self.index + 1} / {len(self.items)}"

    def next(self) -> bool:
        """Go to the next card. Returns False at the last card."""
        if not self.has_next:
            return False
        self.index += 1
        self.revealed = False
        return True

    def previous(self) -> bool:
        """Go to the previous card. Returns False at the first card."""
        if not self.has_previous:
            return False
        self.index -= 1
        self.revealed = False
        return True

    def flip(self) -> bool:
        """Toggle the answer side."""
        self.revealed = not self.revealed
        return self.revealed

    def set_orientation(self, orientation: Orientation) -> None:
        """Change which side is asked. Always hides the answer."""
        self.orientation = orientation
        self.revealed = False

    def toggle_orientation(self) -> Orientation:
        if self.orientation == Orientation.WORD_TO_MEANING:
            self.set_orientation(Orientation.MEANING_TO_WORD)
        else:
            self.set_orientation(Orientation.WORD_TO_MEANING)
        return self.orientation
