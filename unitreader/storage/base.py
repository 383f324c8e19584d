"""Base class for persistence gateways."""

from abc import ABC, abstractmethod
from typing import Any


FOLDERS = "folders"
UNITS = "units"
VOCABULARY = "vocabulary"

TABLES = (FOLDERS, UNITS, VOCABULARY)


class Gateway(ABC):
    """
    Abstract CRUD gateway over the folders, units and vocabulary tables.

    Records are plain dicts using the persisted (snake_case) column names.
    Every method raises RemoteFailure when the store rejects the call or
    cannot be reached.
    """

    @abstractmethod
    def select(self, table: str) -> list[dict]:
        """Return all records of a table, oldest first."""
        pass

    @abstractmethod
    def insert(self, table: str, record: dict) -> dict:
        """Insert a record and return it as persisted (with created_at)."""
        pass

    @abstractmethod
    def update(self, table: str, id: str, changes: dict) -> None:
        """Apply a partial update to the record with the given id."""
        pass

    @abstractmethod
    def delete(self, table: str, id: str) -> None:
        """Delete the record with the given id."""
        pass

    @abstractmethod
    def delete_where(self, table: str, column: str, value: Any) -> None:
        """Delete every record whose column equals value."""
        pass

    @abstractmethod
    def upsert(self, table: str, records: list[dict]) -> None:
        """Insert records, updating the ones whose id already exists."""
        pass
