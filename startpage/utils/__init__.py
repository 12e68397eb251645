# Startpage Utilities Package
"""
Shared utility functions and helpers for the start page.
"""

from .helpers import data_dir, load_settings, setup_logging

__all__ = ["data_dir", "load_settings", "setup_logging"]
