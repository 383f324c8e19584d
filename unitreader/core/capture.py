"""Two-step vocabulary capture: select a headword, then select its meaning."""

from dataclasses import dataclass
from typing import Union

from unitreader.core.errors import DuplicateError, ValidationError
from unitreader.core.models import Unit, VocabularyItem


@dataclass(frozen=True)
class Idle:
    """Nothing selected."""


@dataclass(frozen=True)
class HeadwordSelected:
    """A headword is selected; the learner may select again or move on."""
    word: str


@dataclass(frozen=True)
class SelectingMeaning:
    """Waiting for the next selection to become the meaning."""
    word: str


@dataclass(frozen=True)
class MeaningSelected:
    """Headword and meaning are both known; ready to commit."""
    word: str
    meaning: str


CaptureState = Union[Idle, HeadwordSelected, SelectingMeaning, MeaningSelected]


COMMON_WORDS = {
    "the": "Definite article: points to a specific thing.",
    "a": "Indefinite article: any one thing.",
    "an": "Indefinite article, used before a vowel sound.",
    "is": "Present-tense 'be' for he / she / it.",
    "and": "Conjunction: joins words or clauses.",
    "to": "Preposition, or the 'to' of an infinitive.",
}


def explain(word: str) -> str:
    """Short hint for a selected headword."""
    return COMMON_WORDS.get(word.lower(), f"Selected: {word}")


class CaptureFlow:
    """State machine driving vocabulary capture in the reader."""

    def __init__(self):
        self.state: CaptureState = Idle()

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def awaiting_meaning(self) -> bool:
        return isinstance(self.state, (SelectingMeaning, MeaningSelected))

    @property
    def can_advance(self) -> bool:
        return isinstance(self.state, HeadwordSelected)

    @property
    def can_commit(self) -> bool:
        return isinstance(self.state, MeaningSelected)

    @property
    def word(self) -> str:
        return getattr(self.state, "word", "")

    @property
    def meaning(self) -> str:
        return getattr(self.state, "meaning", "")

    def select(self, text: str) -> CaptureState:
        """Handle a text selection from the passage.

        Empty selections leave the state unchanged.
        """
        text = (text or "").strip()
        if not text:
            return self.state

        if self.awaiting_meaning:
            self.state = MeaningSelected(self.word, text)
        else:
            self.state = HeadwordSelected(text)
        return self.state

    def advance(self) -> CaptureState:
        """Move from the headword to selecting its meaning."""
        if isinstance(self.state, HeadwordSelected):
            self.state = SelectingMeaning(self.state.word)
        return self.state

    def cancel(self) -> None:
        """Drop any pending selection."""
        self.state = Idle()

    def commit(self, study_state, unit: Unit) -> VocabularyItem:
        """
        Save the pending word and meaning to the vocabulary of ``unit``.

        Returns to Idle on success and on DuplicateError (re-raised so the
        caller can show a notice). Other errors keep the selection.
        """
        if not isinstance(self.state, MeaningSelected):
            raise ValidationError("Select a meaning first")

        try:
            item = study_state.capture_vocabulary(
                self.state.word,
                self.state.meaning,
                unit.id,
                unit.title,
            )
        except DuplicateError:
            self.cancel()
            raise

        self.cancel()
        return item
