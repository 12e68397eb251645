"""
Start Page - Entry point and presentation boundary.

Opens the storage handles, hydrates the bookmark and engine stores, and
exposes the read accessors and mutators the UI calls. Every mutator
returns the refreshed collection, or None/empty on failure; storage
exceptions never cross this boundary.

Usage:
  startpage                       # hydrate and log the current state
  startpage path/to/settings.toml
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from startpage.services.bookmarks import BookmarkStore
from startpage.services.engines import EngineOrderStore
from startpage.storage import BookmarkTable, JsonFileStore, KeyValueStore, StorageError
from startpage.utils.helpers import data_dir, load_settings, setup_logging


class StartPage:
    """Both stores behind one object with an open/close lifecycle."""

    def __init__(self, table: BookmarkTable, kv: KeyValueStore,
                 reorder: str = "position", default_engines=None):
        self.table = table
        self.kv = kv
        self.bookmark_store = BookmarkStore(table, reorder=reorder)
        self.engine_store = EngineOrderStore(kv, default_order=default_engines)

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "StartPage":
        """Build file-backed handles under the configured data directory."""
        directory = data_dir(settings)
        storage = settings["storage"]
        return cls(
            BookmarkTable(directory / storage["database"]),
            JsonFileStore(directory / storage["local_storage"]),
            reorder=settings["bookmarks"]["reorder"],
            default_engines=settings["engines"]["default"],
        )

    def open(self) -> "StartPage":
        """Open storage and load both stores. Failures leave defaults in place."""
        self.bookmark_store.initialize()

        try:
            self.kv.open()
        except StorageError:
            logger.exception("Failed to open local storage")
        report = self.engine_store.initialize()

        logger.info(
            f"Start page ready: {len(self.bookmarks())} bookmark(s), "
            f"{len(report.kept)} active engine(s), {report.dropped_count} dropped"
        )
        return self

    def close(self) -> None:
        self.table.close()
        self.kv.close()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Bookmarks

    def bookmarks(self):
        return self.bookmark_store.read_all()

    def move_bookmark_up(self, bookmark_id: int):
        return self.bookmark_store.move_up(bookmark_id)

    def move_bookmark_down(self, bookmark_id: int):
        return self.bookmark_store.move_down(bookmark_id)

    def add_bookmark(self, name: str, link: str):
        return self.bookmark_store.add(name, link)

    def edit_bookmark(self, bookmark_id: int, name: str, link: str):
        return self.bookmark_store.edit(bookmark_id, name, link)

    def delete_bookmark(self, bookmark_id: int):
        return self.bookmark_store.delete(bookmark_id)

    # Search engines

    def engines(self):
        return self.engine_store.read_all()

    def toggle_engine(self, engine_id: str):
        return self.engine_store.toggle(engine_id)

    def move_engine_up(self, engine_id: str):
        return self.engine_store.move_up(engine_id)

    def move_engine_down(self, engine_id: str):
        return self.engine_store.move_down(engine_id)

    def add_engine(self, name: str, placeholder: str, url: str):
        return self.engine_store.add_custom_engine(name, placeholder, url)

    def edit_engine(self, engine_id: str, name: str, placeholder: str, url: str):
        return self.engine_store.edit_custom_engine(engine_id, name, placeholder, url)

    def delete_engine(self, engine_id: str):
        return self.engine_store.delete_custom_engine(engine_id)


def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings(Path(argv[0]) if argv else None)
    setup_logging(settings["logging"]["level"])

    with StartPage.from_settings(settings) as page:
        for bookmark in page.bookmarks():
            logger.info(f"Bookmark {bookmark.id}: {bookmark.name} -> {bookmark.link}")
        for engine_id in page.engines().order:
            logger.info(
                f"Engine {engine_id}: {page.engine_store.engine_name(engine_id)} "
                f"({page.engine_store.engine_placeholder(engine_id)})"
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
