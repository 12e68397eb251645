"""
Bookmark Table - Durable, schema-versioned SQLite table of bookmark rows.

Schema history (tracked with PRAGMA user_version):
  1: websites(id, name, link) with indexes on name and link
  2: adds a position column; display order is ORDER BY position, id

Ids come from AUTOINCREMENT, so they are monotonic and never reused,
even after clear().
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from .errors import StorageError

SCHEMA_VERSION = 2

_MIGRATIONS = {
    1: [
        """
        CREATE TABLE IF NOT EXISTS websites (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            link TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_websites_name ON websites(name)",
        "CREATE INDEX IF NOT EXISTS idx_websites_link ON websites(link)",
    ],
    2: [
        "ALTER TABLE websites ADD COLUMN position INTEGER",
        # Version 1 order was insertion order
        "UPDATE websites SET position = id WHERE position IS NULL",
        "CREATE INDEX IF NOT EXISTS idx_websites_position ON websites(position)",
    ],
}


class BookmarkTable:
    """
    Handle on the websites table.

    Methods:
        open() / close(): Explicit connection lifecycle
        count(), add(), to_array(), clear(): Core table operations
        update(), delete(), move(): Targeted single-row writes
    """

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Connect and bring the schema up to SCHEMA_VERSION."""
        if self._conn is not None:
            return

        conn = None
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            self._migrate(conn)
        except (sqlite3.Error, OSError) as exc:
            if conn is not None:
                conn.close()
            raise StorageError(f"Could not open bookmark table at {self.db_path}") from exc

        self._conn = conn
        logger.debug(f"BookmarkTable opened at {self.db_path}")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """
        Apply every migration newer than the stored user_version.

        Each step and its version bump run in one transaction, so a failed
        step leaves the database at the previous version.
        """
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        for target in range(version + 1, SCHEMA_VERSION + 1):
            conn.execute("BEGIN")
            try:
                for statement in _MIGRATIONS[target]:
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {target}")
            except sqlite3.Error:
                conn.rollback()
                raise
            conn.commit()
            logger.debug(f"Migrated bookmark table to schema version {target}")

    @contextmanager
    def _cursor(self, action: str):
        """Yield a cursor, translating sqlite errors into StorageError."""
        if self._conn is None:
            raise StorageError(f"Cannot {action}: bookmark table is not open")
        try:
            yield self._conn.cursor()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to {action}") from exc

    def schema_version(self) -> int:
        with self._cursor("read schema version") as cursor:
            return cursor.execute("PRAGMA user_version").fetchone()[0]

    def count(self) -> int:
        with self._cursor("count bookmarks") as cursor:
            return cursor.execute("SELECT COUNT(*) FROM websites").fetchone()[0]

    def add(self, name: str, link: str) -> int:
        """
        Insert a row after the current last one.

        Returns:
            The id assigned by storage
        """
        with self._cursor("add bookmark") as cursor:
            with self._conn:
                cursor.execute("""
                    INSERT INTO websites (name, link, position)
                    VALUES (?, ?, (SELECT COALESCE(MAX(position), 0) + 1 FROM websites))
                """, (name, link))
            return cursor.lastrowid

    def to_array(self) -> list[dict]:
        """Return every row as {id, name, link} in display order."""
        with self._cursor("read bookmarks") as cursor:
            cursor.execute("""
                SELECT id, name, link
                FROM websites
                ORDER BY position, id
            """)
            return [dict(row) for row in cursor.fetchall()]

    def clear(self) -> None:
        with self._cursor("clear bookmarks") as cursor:
            with self._conn:
                cursor.execute("DELETE FROM websites")

    def update(self, bookmark_id: int, name: str, link: str) -> bool:
        """Change name and link of a row. Returns False if the id is unknown."""
        with self._cursor(f"update bookmark {bookmark_id}") as cursor:
            with self._conn:
                cursor.execute(
                    "UPDATE websites SET name = ?, link = ? WHERE id = ?",
                    (name, link, bookmark_id),
                )
            return cursor.rowcount > 0

    def delete(self, bookmark_id: int) -> bool:
        with self._cursor(f"delete bookmark {bookmark_id}") as cursor:
            with self._conn:
                cursor.execute("DELETE FROM websites WHERE id = ?", (bookmark_id,))
            return cursor.rowcount > 0

    def move(self, bookmark_id: int, offset: int) -> bool:
        """
        Swap a row's position with its current neighbour.

        The neighbour is looked up inside the same transaction as the
        write, so the move applies to the table as it is now rather than
        to an earlier read.

        Args:
            bookmark_id: Row to move
            offset: -1 to move towards the top, +1 towards the bottom

        Returns:
            False if the id is unknown or already at that edge
        """
        if offset < 0:
            neighbour_sql = """
                SELECT id, position FROM websites
                WHERE position < ?
                ORDER BY position DESC, id DESC
                LIMIT 1
            """
        else:
            neighbour_sql = """
                SELECT id, position FROM websites
                WHERE position > ?
                ORDER BY position ASC, id ASC
                LIMIT 1
            """

        with self._cursor(f"move bookmark {bookmark_id}") as cursor:
            with self._conn:
                row = cursor.execute(
                    "SELECT position FROM websites WHERE id = ?", (bookmark_id,)
                ).fetchone()
                if row is None:
                    return False

                neighbour = cursor.execute(neighbour_sql, (row["position"],)).fetchone()
                if neighbour is None:
                    return False

                cursor.execute(
                    "UPDATE websites SET position = ? WHERE id = ?",
                    (neighbour["position"], bookmark_id),
                )
                cursor.execute(
                    "UPDATE websites SET position = ? WHERE id = ?",
                    (row["position"], neighbour["id"]),
                )
            return True
