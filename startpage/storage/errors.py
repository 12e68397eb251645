"""Storage exception shared by all handles."""


class StorageError(Exception):
    """Raised by storage handles when the backing medium fails."""
