"""
Shared test fixtures for the start page test suite.

Provides temporary databases, local storage files and settings files
that use real file I/O (no mocking of the filesystem).
"""

import json

import pytest
import toml

from startpage.storage import BookmarkTable, JsonFileStore, MemoryStore


@pytest.fixture
def tmp_db(tmp_path):
    """Path for a fresh SQLite database file."""
    return tmp_path / "startpage.db"


@pytest.fixture
def table(tmp_db):
    """An open BookmarkTable on a real database file."""
    table = BookmarkTable(tmp_db)
    table.open()
    yield table
    table.close()


@pytest.fixture
def abc_table(table):
    """Table holding bookmarks A, B, C in that order."""
    for name in ("A", "B", "C"):
        table.add(name, f"https://{name.lower()}.example/")
    return table


@pytest.fixture
def memory_kv():
    kv = MemoryStore()
    kv.open()
    return kv


@pytest.fixture
def tmp_local_storage(tmp_path):
    """A real local storage JSON file with an active order and one custom engine."""
    path = tmp_path / "local_storage.json"
    data = {
        "searchEngines": json.dumps(["youtube", "bing-1234"]),
        "customSearchEngines": json.dumps([
            {
                "id": "bing-1234",
                "name": "Bing",
                "placeholder": "search Bing",
                "url": "https://www.bing.com/search?q={query}",
            }
        ]),
    }
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture
def json_kv(tmp_local_storage):
    kv = JsonFileStore(tmp_local_storage)
    kv.open()
    return kv


@pytest.fixture
def tmp_settings(tmp_path):
    """Create a real settings TOML file pointing storage at tmp_path."""
    settings_path = tmp_path / "settings.toml"
    data = {
        "storage": {"data_dir": str(tmp_path / "data")},
        "bookmarks": {"reorder": "rewrite"},
        "engines": {"default": ["youtube"]},
        "logging": {"level": "DEBUG"},
    }
    settings_path.write_text(toml.dumps(data))
    return settings_path
