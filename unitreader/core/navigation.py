"""Screen view model: exactly one current screen, carrying only its own data."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from unitreader.core.capture import CaptureFlow
from unitreader.core.errors import ValidationError
from unitreader.core.flashcards import FlashcardDeck, Orientation
from unitreader.core.line_pairing import unpair_lines


class VocabularyMode(Enum):
    TABLE = "table"
    FLASHCARDS = "flashcards"


@dataclass
class UnitList:
    pass


@dataclass
class AddUnit:
    pass


@dataclass
class EditUnit:
    """Edit form, pre-filled from the unit's current lines."""
    unit_id: str
    title: str
    folder_id: str | None
    english: str
    japanese: str
    phonetic: str


@dataclass
class Reader:
    unit_id: str
    capture: CaptureFlow = field(default_factory=CaptureFlow)


@dataclass
class Vocabulary:
    mode: VocabularyMode = VocabularyMode.TABLE
    deck: FlashcardDeck | None = None


Screen = Union[UnitList, AddUnit, EditUnit, Reader, Vocabulary]


class Navigator:
    """Holds the current screen and performs the transitions between them."""

    def __init__(self, state):
        self.state = state
        self.screen: Screen = UnitList()

    def show_list(self) -> Screen:
        self.screen = UnitList()
        return self.screen

    def show_add(self) -> Screen:
        self.screen = AddUnit()
        return self.screen

    def show_edit(self, unit_id: str) -> Screen:
        unit = self.state.get_unit(unit_id)
        if unit is None:
            raise ValidationError(f"Unknown unit: {unit_id}")
        english, japanese, phonetic = unpair_lines(unit.lines)
        self.screen = EditUnit(
            unit_id=unit.id,
            title=unit.title,
            folder_id=unit.folder_id,
            english=english,
            japanese=japanese,
            phonetic=phonetic,
        )
        return self.screen

    def show_reader(self, unit_id: str) -> Screen:
        """Open a unit for reading with a fresh capture flow."""
        if self.state.get_unit(unit_id) is None:
            raise ValidationError(f"Unknown unit: {unit_id}")
        self.screen = Reader(unit_id=unit_id)
        return self.screen

    def show_vocabulary(self) -> Screen:
        self.screen = Vocabulary()
        return self.screen

    def show_flashcards(self, orientation: Orientation = Orientation.WORD_TO_MEANING) -> Screen:
        """Start a flashcard review over the filtered vocabulary."""
        items = self.state.filtered_vocabulary()
        if not items:
            raise ValidationError("No vocabulary to review")
        self.screen = Vocabulary(
            mode=VocabularyMode.FLASHCARDS,
            deck=FlashcardDeck(items, orientation),
        )
        return self.screen
