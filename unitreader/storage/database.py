"""SQLite database gateway for folders, units and vocabulary."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from unitreader.core.errors import RemoteFailure
from unitreader.storage.base import Gateway, FOLDERS, UNITS, VOCABULARY


logger = logging.getLogger(__name__)

COLUMNS = {
    FOLDERS: ("id", "name", "created_at"),
    UNITS: ("id", "title", "folder_id", "lines", "created_at"),
    VOCABULARY: ("id", "word", "meaning", "unit_id", "unit_title", "created_at"),
}

# Columns holding JSON documents
JSON_COLUMNS = {
    UNITS: ("lines",),
}


class Database(Gateway):
    """SQLite store used as the default local backend."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with self._connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS folders (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS units (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    folder_id TEXT,
                    lines TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_units_folder ON units(folder_id);

                CREATE TABLE IF NOT EXISTS vocabulary (
                    id TEXT PRIMARY KEY,
                    word TEXT NOT NULL,
                    meaning TEXT NOT NULL DEFAULT '',
                    unit_id TEXT,
                    unit_title TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_vocabulary_unit ON vocabulary(unit_id);
            """)

    @contextmanager
    def _connection(self):
        """Context manager for database connections.

        Any sqlite error is reported as RemoteFailure so callers handle
        every backend the same way.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise RemoteFailure(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.warning("SQLite error on %s: %s", self.db_path, e)
            raise RemoteFailure(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _check(self, table: str, columns) -> None:
        """Reject unknown tables and columns before building SQL."""
        if table not in COLUMNS:
            raise RemoteFailure(f"Unknown table: {table}")
        unknown = set(columns) - set(COLUMNS[table])
        if unknown:
            raise RemoteFailure(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")

    def _encode(self, table: str, record: dict) -> dict:
        """Serialize JSON columns for storage."""
        encoded = dict(record)
        for column in JSON_COLUMNS.get(table, ()):
            if column in encoded:
                encoded[column] = json.dumps(encoded[column], ensure_ascii=False)
        if isinstance(encoded.get("created_at"), datetime):
            encoded["created_at"] = encoded["created_at"].isoformat()
        return encoded

    def _row_to_record(self, table: str, row: sqlite3.Row) -> dict:
        """Convert database row to a record dict."""
        record = dict(row)
        for column in JSON_COLUMNS.get(table, ()):
            if record.get(column):
                record[column] = json.loads(record[column])
            else:
                record[column] = []
        return record

    # Gateway operations

    def select(self, table: str) -> list[dict]:
        """Get all records of a table, oldest first."""
        self._check(table, ())
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
            return [self._row_to_record(table, row) for row in rows]

    def insert(self, table: str, record: dict) -> dict:
        """Insert a record, assigning created_at."""
        record = {**record, "created_at": datetime.now().isoformat()}
        self._check(table, record)
        encoded = self._encode(table, record)
        columns = ", ".join(encoded)
        placeholders = ", ".join("?" for _ in encoded)
        with self._connection() as conn:
            conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(encoded.values()),
            )
        logger.debug("Inserted %s into %s", record["id"], table)
        return record

    def update(self, table: str, id: str, changes: dict) -> None:
        """Apply a partial update to one record."""
        if not changes:
            return
        self._check(table, changes)
        encoded = self._encode(table, changes)
        assignments = ", ".join(f"{column} = ?" for column in encoded)
        with self._connection() as conn:
            conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*encoded.values(), id),
            )
        logger.debug("Updated %s in %s: %s", id, table, sorted(changes))

    def delete(self, table: str, id: str) -> None:
        """Delete one record by id."""
        self.delete_where(table, "id", id)

    def delete_where(self, table: str, column: str, value: Any) -> None:
        """Delete every record whose column equals value."""
        self._check(table, (column,))
        with self._connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM {table} WHERE {column} = ?",
                (value,),
            )
        logger.debug("Deleted %d row(s) from %s where %s", cursor.rowcount, table, column)

    def upsert(self, table: str, records: list[dict]) -> None:
        """Insert or update records by id."""
        if not records:
            return
        now = datetime.now().isoformat()
        with self._connection() as conn:
            for record in records:
                self._check(table, record)
                encoded = self._encode(table, record)
                encoded.setdefault("created_at", now)
                columns = ", ".join(encoded)
                placeholders = ", ".join("?" for _ in encoded)
                updates = ", ".join(
                    f"{column} = excluded.{column}"
                    for column in encoded
                    if column not in ("id", "created_at")
                )
                conn.execute(f"""
                    INSERT INTO {table} ({columns})
                    VALUES ({placeholders})
                    ON CONFLICT(id) DO UPDATE SET {updates}
                """, tuple(encoded.values()))
        logger.debug("Upserted %d record(s) into %s", len(records), table)
