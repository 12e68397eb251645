# Startpage Package
"""
Personal start page: bookmark launcher and configurable web-search shortcuts.

Stores:
  - Bookmarks: ordered links in a SQLite table
  - Engines: ordered active search engines plus custom engine registry
"""

__version__ = "0.1.0-dev"
