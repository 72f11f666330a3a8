"""Pytest configuration and shared fixtures for auto-id3tag tests."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import pytest

from auto_id3tag.errors import TagStoreError
from auto_id3tag.tag_store import TagStore

# =============================================================================
# Fake tag store
# =============================================================================


class FakeTagStore(TagStore):
    """
    In-memory stand-in for the id3v2 tool.

    Raw frames are stored as JSON inside the (fake) audio file itself, so tags
    follow the file across renames. A write only touches the frames it is
    given, and keeps every one of them: nothing is filtered here, so tests
    see exactly what the orchestrator asked to write.
    """

    name = "fake"

    def __init__(self, fail_on: set[str] | None = None):
        self.fail_on = fail_on or set()
        self.reads: list[Path] = []
        self.writes: list[tuple[Path, dict[str, str]]] = []

    def read_tags(self, file_path: Path) -> dict[str, str]:
        self.reads.append(file_path)
        if file_path.name in self.fail_on:
            raise TagStoreError("id3v2 exited with status 1: corrupt frame", file_path)
        text = file_path.read_text()
        return json.loads(text) if text else {}

    def write_tags(self, file_path: Path, raw_tags: Mapping[str, str]) -> None:
        frames = dict(raw_tags)
        self.writes.append((file_path, frames))
        text = file_path.read_text()
        stored = json.loads(text) if text else {}
        stored.update(frames)
        file_path.write_text(json.dumps(stored))


def make_track(directory: Path, name: str, raw_tags: dict[str, str] | None = None) -> Path:
    """Create a fake audio file holding the given raw frames."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(raw_tags) if raw_tags else "")
    return path


def stored_tags(path: Path) -> dict[str, str]:
    text = path.read_text()
    return json.loads(text) if text else {}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_store() -> FakeTagStore:
    return FakeTagStore()


@pytest.fixture
def album_dir(tmp_path: Path) -> Path:
    """Rock/Queen/Innuendo with two untagged tracks and a cover image."""
    album = tmp_path / "Rock" / "Queen" / "Innuendo"
    make_track(album, "1 - Innuendo.mp3")
    make_track(album, "02-Headlong.MP3")
    (album / "cover.jpg").write_bytes(b"\xff\xd8")
    (album / "Extras.mp3").mkdir()
    return album
