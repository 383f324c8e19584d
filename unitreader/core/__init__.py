"""Core business logic - UI independent."""
from .models import Folder, Unit, Line, VocabularyItem
from .errors import UnitReaderError, ValidationError, DuplicateError, RemoteFailure
from .line_pairing import pair_lines, unpair_lines

# Note: StudyState is imported directly where needed to avoid circular
# imports with the storage module

__all__ = [
    "Folder",
    "Unit",
    "Line",
    "VocabularyItem",
    "UnitReaderError",
    "ValidationError",
    "DuplicateError",
    "RemoteFailure",
    "pair_lines",
    "unpair_lines",
]
