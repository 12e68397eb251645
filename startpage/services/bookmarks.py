"""
Bookmark Store - Ordered collection of user bookmarks.

Backed by a BookmarkTable. Two reorder strategies:

  position: swap the position of an entry and its neighbour in one
            transaction. Ids survive a reorder.
  rewrite:  read everything, swap in memory, clear the table and insert
            every entry again in the new order. Every entry gets a fresh
            id, and two interleaved reorders can lose one of them.

All storage failures are logged and degrade to an empty list (reads) or
None (mutations); no StorageError escapes this module.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from startpage.storage import BookmarkTable, StorageError

REORDER_STRATEGIES = ("position", "rewrite")

# Inserted in this order into an empty table on first run
SEED_BOOKMARKS = [
    ("YouTube", "https://www.youtube.com/"),
    ("Gmail", "https://mail.google.com/"),
    ("HiAnime", "https://hianime.to/home"),
]


@dataclass(frozen=True)
class Bookmark:
    """A single bookmark entry."""
    id: int
    name: str
    link: str


class BookmarkStore:
    """
    Ordered bookmark collection.

    Methods:
        initialize(): Open the table and seed it on first run
        read_all(): Full collection in display order
        move_up(id) / move_down(id): Swap with the adjacent entry
        add(name, link) / edit(id, name, link) / delete(id): Field edits
    """

    def __init__(self, table: BookmarkTable, seed=None, reorder: str = "position"):
        if reorder not in REORDER_STRATEGIES:
            raise ValueError(
                f"Unknown reorder strategy {reorder!r}, expected one of {REORDER_STRATEGIES}"
            )
        self.table = table
        self.seed = list(SEED_BOOKMARKS if seed is None else seed)
        self.reorder = reorder

    def initialize(self) -> bool:
        """
        Open the table and insert the seed set if it is empty.

        A non-empty table is left untouched, so calling this twice never
        duplicates the seed.

        Returns:
            True on success, False if storage could not be opened
        """
        try:
            self.table.open()
            if self.table.count() > 0:
                return True
            for name, link in self.seed:
                self.table.add(name, link)
        except StorageError:
            logger.exception("Failed to initialize bookmark table")
            return False

        logger.info(f"Seeded bookmark table with {len(self.seed)} entries")
        return True

    def read_all(self) -> list[Bookmark]:
        try:
            rows = self.table.to_array()
        except StorageError:
            logger.exception("Failed to read bookmarks")
            return []
        return [Bookmark(row["id"], row["name"], row["link"]) for row in rows]

    def move_up(self, bookmark_id: int) -> Optional[list[Bookmark]]:
        """Swap an entry with the one above it. No-op for the first entry."""
        return self._move(bookmark_id, -1)

    def move_down(self, bookmark_id: int) -> Optional[list[Bookmark]]:
        """Swap an entry with the one below it. No-op for the last entry."""
        return self._move(bookmark_id, 1)

    def _move(self, bookmark_id: int, offset: int) -> Optional[list[Bookmark]]:
        """
        Reorder by swapping with the neighbour at index + offset.

        Returns:
            The re-read collection, the unchanged collection for a no-op,
            or None if a write failed
        """
        try:
            bookmarks = [
                Bookmark(row["id"], row["name"], row["link"])
                for row in self.table.to_array()
            ]
        except StorageError:
            logger.exception(f"Failed to read bookmarks before moving {bookmark_id}")
            return None

        index = next((i for i, b in enumerate(bookmarks) if b.id == bookmark_id), -1)
        target = index + offset
        if index == -1 or not 0 <= target < len(bookmarks):
            return bookmarks

        try:
            if self.reorder == "rewrite":
                bookmarks[index], bookmarks[target] = bookmarks[target], bookmarks[index]
                self._rewrite(bookmarks)
                moved = True
            else:
                moved = self.table.move(bookmark_id, offset)
        except StorageError:
            logger.exception(f"Failed to move bookmark {bookmark_id}")
            return None

        if moved:
            logger.debug(f"Moved bookmark {bookmark_id} by {offset}")
        else:
            logger.debug(f"Move ignored, bookmark {bookmark_id} is gone or at the edge")
        return self.read_all()

    def _rewrite(self, bookmarks: list[Bookmark]) -> None:
        """
        Clear the table and insert every entry in list order.

        A failure after clear() leaves the table partially written; it is
        not rolled back.
        """
        self.table.clear()
        for bookmark in bookmarks:
            self.table.add(bookmark.name, bookmark.link)

    def add(self, name: str, link: str) -> Optional[list[Bookmark]]:
        """Append a bookmark after the last entry."""
        try:
            new_id = self.table.add(name, link)
        except StorageError:
            logger.exception(f"Failed to add bookmark {name!r}")
            return None

        logger.debug(f"Added bookmark {new_id}: {name} -> {link}")
        return self.read_all()

    def edit(self, bookmark_id: int, name: str, link: str) -> Optional[list[Bookmark]]:
        """Change name and link in place. Id and position are kept."""
        try:
            updated = self.table.update(bookmark_id, name, link)
        except StorageError:
            logger.exception(f"Failed to edit bookmark {bookmark_id}")
            return None

        if not updated:
            logger.debug(f"Edit ignored, no bookmark with id {bookmark_id}")
        return self.read_all()

    def delete(self, bookmark_id: int) -> Optional[list[Bookmark]]:
        try:
            deleted = self.table.delete(bookmark_id)
        except StorageError:
            logger.exception(f"Failed to delete bookmark {bookmark_id}")
            return None

        if not deleted:
            logger.debug(f"Delete ignored, no bookmark with id {bookmark_id}")
        return self.read_all()
