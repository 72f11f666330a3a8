"""Exception hierarchy for auto-id3tag."""

from __future__ import annotations

from pathlib import Path


class AutoID3TagError(Exception):
    """Base class for all auto-id3tag errors."""

    pass


class ConfigurationError(AutoID3TagError):
    """Invalid user input, raised before any file is touched."""

    pass


class TagStoreError(AutoID3TagError):
    """Reading or writing tags through the external tag store failed."""

    def __init__(self, message: str, file_path: Path | None = None):
        super().__init__(message)
        self.file_path = file_path


class RenameConflictError(AutoID3TagError, FileExistsError):
    """The canonical file name is already taken by another file."""

    def __init__(self, source: Path, target: Path):
        super().__init__(f"Cannot rename {source.name} to {target.name}: target exists")
        self.source = source
        self.target = target
