# Startpage Services Package
"""
Stores for the start page.

Each store owns its persisted representation and hands out copies.
"""

from .bookmarks import Bookmark, BookmarkStore
from .engines import CustomEngine, EngineOrderStore

__all__ = ["Bookmark", "BookmarkStore", "CustomEngine", "EngineOrderStore"]
