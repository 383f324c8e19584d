"""Errors raised by the study state and the storage gateways."""


class UnitReaderError(Exception):
    """Base class for application errors."""
    pass


class ValidationError(UnitReaderError):
    """A required field is empty. Raised before any remote call."""
    pass


class NothingToExport(ValidationError):
    """The vocabulary subset selected for export is empty."""
    pass


class DuplicateError(UnitReaderError):
    """The word was already captured for this unit."""

    def __init__(self, word: str, unit_title: str = ""):
        self.word = word
        self.unit_title = unit_title
        where = f" in '{unit_title}'" if unit_title else ""
        super().__init__(f"'{word}' is already in the vocabulary{where}")


class RemoteFailure(UnitReaderError):
    """A gateway call was rejected or the store could not be reached.

    ``partial`` is set when a multi-write operation failed halfway and
    could not be undone, so the store may no longer match memory.
    """

    def __init__(self, message: str, partial: bool = False):
        self.partial = partial
        super().__init__(message)
