"""In-memory mirror of folders, units and vocabulary kept in step with the store."""

import logging
from typing import Optional

from unitreader.core.commands import Mutation, Step
from unitreader.core.errors import DuplicateError, RemoteFailure, ValidationError
from unitreader.core.line_pairing import pair_lines
from unitreader.core.models import Folder, Unit, VocabularyItem, UNTITLED
from unitreader.storage.base import Gateway, FOLDERS, UNITS, VOCABULARY


logger = logging.getLogger(__name__)

NO_FOLDER = "no folder"


def _full_record(item) -> dict:
    """Storage record including the original created_at, for re-inserts."""
    return {**item.to_record(), "created_at": item.created_at.isoformat()}


class StudyState:
    """
    Holds the three collections loaded from the gateway.

    Every mutating operation validates locally, writes to the store and
    only then changes memory. A RemoteFailure leaves memory as it was.
    """

    def __init__(self, gateway: Gateway):
        self.gateway = gateway
        self.folders: list[Folder] = []
        self.units: list[Unit] = []
        self.vocabulary: list[VocabularyItem] = []

        # Active filters: None means "all"
        self.folder_filter: Optional[str] = None
        self.vocabulary_filter: Optional[str] = None

        # Local vocabulary edits not yet flushed by save_vocabulary()
        self.vocabulary_dirty = False

    def load(self) -> None:
        """Load all collections, oldest first."""
        folders = [Folder.from_record(r) for r in self.gateway.select(FOLDERS)]
        units = [Unit.from_record(r) for r in self.gateway.select(UNITS)]
        vocabulary = [VocabularyItem.from_record(r) for r in self.gateway.select(VOCABULARY)]

        self.folders = folders
        self.units = units
        self.vocabulary = vocabulary
        self.vocabulary_dirty = False
        logger.info(
            "Loaded %d folder(s), %d unit(s), %d vocabulary item(s)",
            len(folders), len(units), len(vocabulary),
        )

    def _resync(self) -> None:
        """Reload after a half-applied write so memory matches the store."""
        try:
            self.load()
        except RemoteFailure as e:
            logger.error("Reload after partial failure failed: %s", e)

    # Lookups

    def get_folder(self, folder_id: Optional[str]) -> Optional[Folder]:
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        return None

    def get_unit(self, unit_id: Optional[str]) -> Optional[Unit]:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    def get_vocabulary(self, item_id: str) -> Optional[VocabularyItem]:
        for item in self.vocabulary:
            if item.id == item_id:
                return item
        return None

    def _require_folder(self, folder_id: str) -> Folder:
        folder = self.get_folder(folder_id)
        if folder is None:
            raise ValidationError(f"Unknown folder: {folder_id}")
        return folder

    def _require_unit(self, unit_id: str) -> Unit:
        unit = self.get_unit(unit_id)
        if unit is None:
            raise ValidationError(f"Unknown unit: {unit_id}")
        return unit

    def _require_vocabulary(self, item_id: str) -> VocabularyItem:
        item = self.get_vocabulary(item_id)
        if item is None:
            raise ValidationError(f"Unknown vocabulary item: {item_id}")
        return item

    # Queries

    def units_in_folder(self, folder_id: str) -> list[Unit]:
        return [u for u in self.units if u.folder_id == folder_id]

    def filtered_units(self) -> list[Unit]:
        """Units in the active folder, or all units."""
        if self.folder_filter:
            return self.units_in_folder(self.folder_filter)
        return list(self.units)

    def filtered_vocabulary(self) -> list[VocabularyItem]:
        """Vocabulary of the filtered unit, or all vocabulary."""
        if self.vocabulary_filter:
            return [v for v in self.vocabulary if v.unit_id == self.vocabulary_filter]
        return list(self.vocabulary)

    def vocabulary_count(self, unit_id: str) -> int:
        return sum(1 for v in self.vocabulary if v.unit_id == unit_id)

    def folder_name_for(self, unit: Unit) -> str:
        """Folder name, or 'no folder' for a null or dangling reference."""
        folder = self.get_folder(unit.folder_id)
        return folder.name if folder else NO_FOLDER

    def vocabulary_scope_name(self) -> str:
        """Name of the active vocabulary filter, used in export file names."""
        if not self.vocabulary_filter:
            return "all"
        unit = self.get_unit(self.vocabulary_filter)
        return unit.title if unit else "unit"

    def set_folder_filter(self, folder_id: Optional[str]) -> None:
        self.folder_filter = folder_id or None

    def set_vocabulary_filter(self, unit_id: Optional[str]) -> None:
        self.vocabulary_filter = unit_id or None

    # Folder operations

    def create_folder(self, name: str) -> Folder:
        """Create a folder. Raises ValidationError for a blank name."""
        name = (name or "").strip()
        folder = Folder.create(name)
        created = []

        def validate():
            if not name:
                raise ValidationError("Folder name is required")

        def apply(results):
            stored = Folder.from_record(results[0])
            self.folders.append(stored)
            created.append(stored)

        Mutation(
            name="create folder",
            validate=validate,
            steps=[Step(lambda: self.gateway.insert(FOLDERS, folder.to_record()))],
            apply=apply,
        ).execute()
        return created[0]

    def delete_folder(self, folder_id: str) -> None:
        """Delete a folder; its units are kept with folder_id set to None."""
        folder = self._require_folder(folder_id)
        affected = self.units_in_folder(folder_id)

        steps = [Step(
            run=lambda: self.gateway.delete(FOLDERS, folder_id),
            undo=lambda _: self.gateway.upsert(FOLDERS, [_full_record(folder)]),
        )]
        for unit in affected:
            steps.append(Step(
                run=lambda uid=unit.id: self.gateway.update(UNITS, uid, {"folder_id": None}),
                undo=lambda _, uid=unit.id: self.gateway.update(UNITS, uid, {"folder_id": folder_id}),
            ))

        def apply(results):
            self.folders = [f for f in self.folders if f.id != folder_id]
            for unit in self.units:
                if unit.folder_id == folder_id:
                    unit.folder_id = None
            if self.folder_filter == folder_id:
                self.folder_filter = None

        Mutation(
            name=f"delete folder '{folder.name}'",
            steps=steps,
            apply=apply,
            on_partial=self._resync,
        ).execute()

    # Unit operations

    def _paired_lines(self, english: str, japanese: str, phonetic: str):
        lines = pair_lines(english, japanese, phonetic)
        if not lines:
            raise ValidationError("Enter at least one English line")
        return lines

    def create_unit(
        self,
        title: str,
        folder_id: Optional[str],
        english: str,
        japanese: str = "",
        phonetic: str = "",
    ) -> Unit:
        """Create a unit from three text blocks aligned line by line."""
        lines = self._paired_lines(english, japanese, phonetic)
        unit = Unit.create(
            title=(title or "").strip() or UNTITLED,
            lines=lines,
            folder_id=folder_id or None,
        )

        def apply(results):
            stored = Unit.from_record(results[0])
            unit.created_at = stored.created_at
            self.units.append(unit)

        Mutation(
            name="create unit",
            steps=[Step(lambda: self.gateway.insert(UNITS, unit.to_record()))],
            apply=apply,
        ).execute()
        return unit

    def update_unit(
        self,
        unit_id: str,
        title: str,
        folder_id: Optional[str],
        english: str,
        japanese: str = "",
        phonetic: str = "",
    ) -> Unit:
        """Replace a unit's title, folder and lines.

        Lines are paired from scratch, so ids and reveal state are reset.
        """
        existing = self._require_unit(unit_id)
        lines = self._paired_lines(english, japanese, phonetic)
        updated = Unit(
            id=existing.id,
            title=(title or "").strip() or UNTITLED,
            lines=lines,
            folder_id=folder_id or None,
            created_at=existing.created_at,
        )
        changes = {
            "title": updated.title,
            "folder_id": updated.folder_id,
            "lines": [line.to_record() for line in lines],
        }

        def apply(results):
            self.units = [updated if u.id == unit_id else u for u in self.units]

        Mutation(
            name=f"update unit '{existing.title}'",
            steps=[Step(lambda: self.gateway.update(UNITS, unit_id, changes))],
            apply=apply,
        ).execute()
        return updated

    def delete_unit(self, unit_id: str) -> None:
        """
        Delete a unit together with the vocabulary captured from it.

        Callers must ask the user to confirm first. If the unit deletion
        fails after its vocabulary was deleted, the vocabulary is written
        back before the failure is reported.
        """
        unit = self._require_unit(unit_id)
        captured = [v for v in self.vocabulary if v.unit_id == unit_id]

        def apply(results):
            self.units = [u for u in self.units if u.id != unit_id]
            self.vocabulary = [v for v in self.vocabulary if v.unit_id != unit_id]
            if self.vocabulary_filter == unit_id:
                self.vocabulary_filter = None

        Mutation(
            name=f"delete unit '{unit.title}'",
            steps=[
                Step(
                    run=lambda: self.gateway.delete_where(VOCABULARY, "unit_id", unit_id),
                    undo=lambda _: self.gateway.upsert(
                        VOCABULARY, [_full_record(v) for v in captured]
                    ),
                ),
                Step(lambda: self.gateway.delete(UNITS, unit_id)),
            ],
            apply=apply,
            on_partial=self._resync,
        ).execute()

    # Reveal state (view-only, not persisted)

    def toggle_all_translations(self, unit_id: str) -> bool:
        """Show every translation unless all are shown, then hide all.

        Returns the new state.
        """
        unit = self._require_unit(unit_id)
        show = not unit.all_japanese_shown
        for line in unit.lines:
            line.show_japanese = show
        return show

    def toggle_all_phonetics(self, unit_id: str) -> bool:
        """Show every phonetic line unless all are shown, then hide all."""
        unit = self._require_unit(unit_id)
        show = not unit.all_phonetic_shown
        for line in unit.lines:
            line.show_phonetic = show
        return show

    def toggle_line_translation(self, unit_id: str, line_id: int) -> bool:
        line = self._require_line(unit_id, line_id)
        line.show_japanese = not line.show_japanese
        return line.show_japanese

    def toggle_line_phonetic(self, unit_id: str, line_id: int) -> bool:
        line = self._require_line(unit_id, line_id)
        line.show_phonetic = not line.show_phonetic
        return line.show_phonetic

    def _require_line(self, unit_id: str, line_id: int):
        line = self._require_unit(unit_id).get_line(line_id)
        if line is None:
            raise ValidationError(f"Unknown line: {line_id}")
        return line

    # Vocabulary operations

    def capture_vocabulary(
        self,
        word: str,
        meaning: str,
        unit_id: Optional[str],
        unit_title: str = "",
    ) -> VocabularyItem:
        """
        Add a word captured while reading.

        Raises:
            ValidationError: word or meaning is blank
            DuplicateError: the same word (any case) exists for this unit
        """
        word = (word or "").strip()
        meaning = (meaning or "").strip()
        item = VocabularyItem.create(word, meaning, unit_id, unit_title)

        def validate():
            if not word:
                raise ValidationError("No word selected")
            if not meaning:
                raise ValidationError("No meaning selected")
            if any(v.matches(word, unit_id) for v in self.vocabulary):
                raise DuplicateError(word, unit_title)

        return self._insert_vocabulary(item, validate)

    def add_line_to_vocabulary(self, unit_id: str, line_id: int) -> VocabularyItem:
        """Store a whole line (English and its translation) without duplicate check."""
        unit = self._require_unit(unit_id)
        line = self._require_line(unit_id, line_id)
        item = VocabularyItem.create(line.english, line.japanese, unit.id, unit.title)
        return self._insert_vocabulary(item)

    def _insert_vocabulary(self, item: VocabularyItem, validate=None) -> VocabularyItem:
        def apply(results):
            item.created_at = VocabularyItem.from_record(results[0]).created_at
            self.vocabulary.append(item)

        Mutation(
            name=f"add '{item.word}' to vocabulary",
            validate=validate,
            steps=[Step(lambda: self.gateway.insert(VOCABULARY, item.to_record()))],
            apply=apply,
        ).execute()
        return item

    def update_vocabulary_meaning(self, item_id: str, meaning: str) -> None:
        """Edit a meaning locally. Persisted by save_vocabulary()."""
        item = self._require_vocabulary(item_id)
        if item.meaning != meaning:
            item.meaning = meaning
            self.vocabulary_dirty = True

    def update_vocabulary_word(self, item_id: str, word: str) -> None:
        """Edit a word locally. Persisted by save_vocabulary()."""
        item = self._require_vocabulary(item_id)
        if item.word != word:
            item.word = word
            self.vocabulary_dirty = True

    def save_vocabulary(self) -> int:
        """Upsert the whole in-memory vocabulary. Returns the item count."""
        records = [_full_record(v) for v in self.vocabulary]

        def apply(results):
            self.vocabulary_dirty = False

        Mutation(
            name="save vocabulary",
            steps=[Step(lambda: self.gateway.upsert(VOCABULARY, records))],
            apply=apply,
        ).execute()
        return len(records)

    def delete_vocabulary(self, item_id: str) -> None:
        item = self._require_vocabulary(item_id)

        def apply(results):
            self.vocabulary = [v for v in self.vocabulary if v.id != item_id]

        Mutation(
            name=f"delete '{item.word}' from vocabulary",
            steps=[Step(lambda: self.gateway.delete(VOCABULARY, item_id))],
            apply=apply,
        ).execute()
