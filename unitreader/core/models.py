"""Data models for units, folders and captured vocabulary."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import re
import uuid


UNTITLED = "Untitled"

# Postgres trims trailing zeros from fractional seconds
_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value) -> datetime:
    """Accept a datetime, an ISO string (with or without 'Z') or None."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        text = value.replace("Z", "+00:00")
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        return datetime.fromisoformat(text)
    return datetime.now()


@dataclass
class Folder:
    """A named grouping of units."""
    id: str
    name: str
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, name: str) -> "Folder":
        """Create a new folder with generated ID."""
        return cls(id=str(uuid.uuid4()), name=name)

    def to_record(self) -> dict:
        """Convert to a storage record (created_at is assigned by the store)."""
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_record(cls, data: dict) -> "Folder":
        """Create from a storage record."""
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=_parse_timestamp(data.get("created_at")),
        )


@dataclass
class Line:
    """One aligned English / Japanese / phonetic triple within a unit."""
    id: int
    english: str
    japanese: str = ""
    phonetic: str = ""
    # Reveal state is view-only and never persisted
    show_japanese: bool = False
    show_phonetic: bool = False

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "english": self.english,
            "japanese": self.japanese,
            "phonetic": self.phonetic,
        }

    @classmethod
    def from_record(cls, data: dict) -> "Line":
        return cls(
            id=int(data["id"]),
            english=data["english"],
            japanese=data.get("japanese") or "",
            phonetic=data.get("phonetic") or "",
        )


@dataclass
class Unit:
    """A titled reading passage made of aligned lines."""
    id: str
    title: str
    lines: list[Line] = field(default_factory=list)
    folder_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, title: str, lines: list[Line], folder_id: Optional[str] = None) -> "Unit":
        """Create a new unit with generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            title=title,
            lines=lines,
            folder_id=folder_id,
        )

    @property
    def all_japanese_shown(self) -> bool:
        return all(line.show_japanese for line in self.lines)

    @property
    def all_phonetic_shown(self) -> bool:
        return all(line.show_phonetic for line in self.lines)

    def get_line(self, line_id: int) -> Optional[Line]:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def to_record(self) -> dict:
        """Convert to a storage record."""
        return {
            "id": self.id,
            "title": self.title,
            "folder_id": self.folder_id,
            "lines": [line.to_record() for line in self.lines],
        }

    @classmethod
    def from_record(cls, data: dict) -> "Unit":
        """Create from a storage record."""
        return cls(
            id=data["id"],
            title=data["title"],
            folder_id=data.get("folder_id"),
            lines=[Line.from_record(line) for line in data.get("lines") or []],
            created_at=_parse_timestamp(data.get("created_at")),
        )


@dataclass
class VocabularyItem:
    """A captured word or phrase with its meaning.

    ``unit_title`` is a snapshot of the unit's title at capture time and is
    not updated when the unit is renamed.
    """
    id: str
    word: str
    meaning: str
    unit_id: Optional[str] = None
    unit_title: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(
        cls,
        word: str,
        meaning: str,
        unit_id: Optional[str] = None,
        unit_title: str = "",
    ) -> "VocabularyItem":
        """Create a new vocabulary item with generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            word=word,
            meaning=meaning,
            unit_id=unit_id,
            unit_title=unit_title,
        )

    def matches(self, word: str, unit_id: Optional[str]) -> bool:
        """Case-insensitive match on word within the same unit."""
        return self.unit_id == unit_id and self.word.lower() == word.lower()

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "word": self.word,
            "meaning": self.meaning,
            "unit_id": self.unit_id,
            "unit_title": self.unit_title,
        }

    @classmethod
    def from_record(cls, data: dict) -> "VocabularyItem":
        return cls(
            id=data["id"],
            word=data["word"],
            meaning=data.get("meaning") or "",
            unit_id=data.get("unit_id"),
            unit_title=data.get("unit_title") or "",
            created_at=_parse_timestamp(data.get("created_at")),
        )
