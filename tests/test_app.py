"""
Tests for the StartPage facade and the console entry point.

Uses real SQLite and JSON files under tmp_path.
"""

import json

import pytest

from startpage.app import StartPage, main
from startpage.services.bookmarks import SEED_BOOKMARKS
from startpage.services.engines import CUSTOM_ENGINES_KEY, SEARCH_ENGINES_KEY
from startpage.storage import BookmarkTable, MemoryStore
from startpage.utils.helpers import load_settings


@pytest.fixture
def page(tmp_db):
    with StartPage(BookmarkTable(tmp_db), MemoryStore()) as page:
        yield page


class TestHydration:
    """Test opening a fresh start page."""

    def test_fresh_page_is_seeded(self, page):
        assert [(b.name, b.link) for b in page.bookmarks()] == SEED_BOOKMARKS
        state = page.engines()
        assert state.order == ["searxng"]
        assert state.custom_engines == []

    def test_from_settings_uses_data_dir(self, tmp_settings, tmp_path):
        settings = load_settings(tmp_settings)
        with StartPage.from_settings(settings) as page:
            assert page.bookmark_store.reorder == "rewrite"
            assert page.engines().order == ["youtube"]

        data = tmp_path / "data"
        assert (data / "startpage.db").exists()
        stored = json.loads((data / "local_storage.json").read_text())
        assert json.loads(stored[SEARCH_ENGINES_KEY]) == ["youtube"]
        assert json.loads(stored[CUSTOM_ENGINES_KEY]) == []

    def test_state_survives_reopen(self, tmp_settings):
        settings = load_settings(tmp_settings)
        with StartPage.from_settings(settings) as page:
            first = page.bookmarks()[0]
            page.move_bookmark_down(first.id)
            page.toggle_engine("lucky")

        with StartPage.from_settings(settings) as page:
            assert [b.name for b in page.bookmarks()] == ["Gmail", "YouTube", "HiAnime"]
            assert page.engines().order == ["youtube", "lucky"]


class TestMutators:
    """Test that mutators delegate and return refreshed collections."""

    def test_bookmark_mutators(self, page):
        youtube, gmail, hianime = page.bookmarks()

        assert [b.name for b in page.move_bookmark_up(gmail.id)] == ["Gmail", "YouTube", "HiAnime"]
        assert [b.name for b in page.move_bookmark_down(gmail.id)] == ["YouTube", "Gmail", "HiAnime"]

        added = page.add_bookmark("GitHub", "https://github.com/")
        assert added[-1].name == "GitHub"

        edited = page.edit_bookmark(added[-1].id, "GitHub", "https://github.com/notifications")
        assert edited[-1].link == "https://github.com/notifications"

        assert [b.name for b in page.delete_bookmark(hianime.id)] == ["YouTube", "Gmail", "GitHub"]

    def test_engine_mutators(self, page):
        assert page.toggle_engine("youtube") == ["searxng", "youtube"]
        assert page.move_engine_up("youtube") == ["youtube", "searxng"]
        assert page.move_engine_down("youtube") == ["searxng", "youtube"]

        result = page.add_engine("Bing", "search Bing", "https://bing.com/search?q={query}")
        engine_id = result.engine.id
        assert page.engines().order == ["searxng", "youtube", engine_id]

        page.edit_engine(engine_id, "Bing", "search the web", "https://bing.com/search?q={query}")
        assert page.engine_store.engine_placeholder(engine_id) == "search the web"

        state = page.delete_engine(engine_id)
        assert state.order == ["searxng", "youtube"]
        assert state.custom_engines == []

    def test_rejected_engine_changes_nothing(self, page):
        result = page.add_engine("Bing", "search Bing", "https://bing.com/search?q=foo")
        assert "url" in result.errors
        assert page.engines().order == ["searxng"]


class TestFailures:
    """Storage failures never cross the facade."""

    def test_unopenable_database(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with StartPage(BookmarkTable(blocker / "startpage.db"), MemoryStore()) as page:
            assert page.bookmarks() == []
            assert page.move_bookmark_down(1) is None
            assert page.engines().order == ["searxng"]


class TestMain:
    """Test the console entry point."""

    def test_main_hydrates_storage(self, tmp_settings, tmp_path, monkeypatch):
        levels = []
        # Keep loguru's sinks as they are for the rest of the session
        monkeypatch.setattr("startpage.app.setup_logging", levels.append)

        assert main([str(tmp_settings)]) == 0
        assert levels == ["DEBUG"]
        assert (tmp_path / "data" / "startpage.db").exists()
