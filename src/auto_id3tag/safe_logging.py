"""Path-safe logging for auto-id3tag.

Music libraries live under home directories, so log records show file paths
relative to the library root (or hashed) instead of absolute paths.
"""

from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def hash_path(file_path: Path | str, length: int = 12) -> str:
    """Hash a file path for logging.

    Args:
        file_path: Path to hash
        length: Length of hash to return

    Returns:
        Truncated SHA256 hash of the path
    """
    return hashlib.sha256(str(file_path).encode()).hexdigest()[:length]


def relativize_path(file_path: Path | str, library_root: Path | str | None = None) -> str:
    """Convert path to relative form for safe logging.

    If library_root is provided, returns path relative to it.
    Otherwise, returns just the filename with parent directory.
    """
    path = Path(file_path)

    if library_root:
        try:
            return str(path.relative_to(Path(library_root)))
        except ValueError:
            pass

    if path.parent.name:
        return f"{path.parent.name}/{path.name}"
    return path.name


def safe_path(
    file_path: Path | str,
    library_root: Path | str | None = None,
    use_hash: bool = False,
) -> str:
    """Get a safe representation of a path for logging."""
    if use_hash:
        return f"file:{hash_path(file_path)}"
    return relativize_path(file_path, library_root)


@lru_cache(maxsize=1)
def _get_library_root() -> Path | None:
    """Get library root from environment."""
    root = os.environ.get("AUTO_ID3TAG_LIBRARY_ROOT")
    return Path(root) if root else None


class SafeLogFormatter(logging.Formatter):
    """Log formatter that shortens or hashes Path arguments."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        hash_paths: bool = False,
    ):
        super().__init__(fmt, datefmt)
        self.hash_paths = hash_paths
        self._library_root = _get_library_root()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)
        if record.args:
            record.args = self._sanitize_args(record.args)
        return super().format(record)

    def _sanitize_args(
        self, args: tuple[Any, ...] | Mapping[str, Any]
    ) -> tuple[Any, ...] | dict[str, Any]:
        if isinstance(args, Mapping):
            return {k: self._sanitize_value(v) for k, v in args.items()}
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Path):
            return safe_path(value, self._library_root, use_hash=self.hash_paths)
        return value


def configure_rich_logging(
    level: int = logging.WARNING,
    format_string: str = "%(message)s",
    hash_paths: bool = False,
    show_time: bool = False,
    show_path: bool = False,
) -> Console:
    """Configure root logging through a Rich handler on stderr.

    Returns:
        Console for regular (stdout) command output
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=show_time,
        show_path=show_path,
        markup=False,
        rich_tracebacks=level <= logging.DEBUG,
    )
    handler.setFormatter(SafeLogFormatter(fmt=format_string, hash_paths=hash_paths))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    return Console(soft_wrap=True)


## Tests


def test_hash_path():
    path1 = Path("/home/user/music/song.mp3")
    path2 = Path("/home/user/music/other.mp3")

    assert len(hash_path(path1)) == 12
    assert hash_path(path1) == hash_path(Path("/home/user/music/song.mp3"))
    assert hash_path(path1) != hash_path(path2)


def test_relativize_path():
    path = Path("/home/user/music/Queen/Innuendo/01 - Innuendo.mp3")

    assert relativize_path(path, "/home/user/music") == "Queen/Innuendo/01 - Innuendo.mp3"
    assert relativize_path(path) == "Innuendo/01 - Innuendo.mp3"


def test_safe_log_formatter_shortens_paths():
    formatter = SafeLogFormatter(fmt="%(message)s")
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Rename %s",
        args=(Path("/home/user/music/Queen/song.mp3"),),
        exc_info=None,
    )

    assert formatter.format(record) == "Rename Queen/song.mp3"
