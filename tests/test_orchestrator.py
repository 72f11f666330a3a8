"""Tests for directory processing with a fake tag store."""

from __future__ import annotations

from pathlib import Path

import pytest

from auto_id3tag.config import Config
from auto_id3tag.errors import ConfigurationError, RenameConflictError, TagStoreError
from auto_id3tag.orchestrator import DirectoryPatcher, list_audio_files, rename_file
from conftest import FakeTagStore, make_track, stored_tags


def make_patcher(store: FakeTagStore, **overrides: object) -> DirectoryPatcher:
    return DirectoryPatcher(Config.model_validate(overrides), store=store)


# File listing


def test_list_audio_files_filters_and_sorts(album_dir: Path):
    files = list_audio_files(album_dir, ["mp3"])

    assert [f.name for f in files] == ["02-Headlong.MP3", "1 - Innuendo.mp3"]


def test_list_audio_files_other_extensions(tmp_path: Path):
    make_track(tmp_path, "a.flac")
    make_track(tmp_path, "b.mp3")
    make_track(tmp_path, "c.ogg")

    files = list_audio_files(tmp_path, ["flac", ".MP3"])

    assert [f.name for f in files] == ["a.flac", "b.mp3"]


# Auto patch


def test_auto_patch_writes_tags_and_renames(album_dir: Path, fake_store: FakeTagStore):
    patcher = make_patcher(fake_store)

    report = patcher.auto_patch_directory(album_dir)

    assert report.tag_writes == 2
    assert report.renames == 2
    assert report.failures == 0
    assert sorted(p.name for p in album_dir.iterdir()) == [
        "01 - Innuendo.mp3",
        "02 - Headlong.MP3",
        "Extras.mp3",
        "cover.jpg",
    ]
    assert stored_tags(album_dir / "01 - Innuendo.mp3") == {
        "TPE1": "Queen",
        "TALB": "Innuendo",
        "TIT2": "Innuendo",
        "TRCK": "1",
    }
    assert stored_tags(album_dir / "02 - Headlong.MP3")["TRCK"] == "2"

    innuendo = next(o for o in report.outcomes if o.file_path.name == "1 - Innuendo.mp3")
    assert innuendo.changed_fields == ["artist", "album", "title", "track"]
    assert innuendo.renamed_to == album_dir / "01 - Innuendo.mp3"


def test_auto_patch_second_run_is_a_no_op(album_dir: Path, fake_store: FakeTagStore):
    make_patcher(fake_store).auto_patch_directory(album_dir)
    fake_store.writes.clear()

    report = make_patcher(fake_store).auto_patch_directory(album_dir)

    assert fake_store.writes == []
    assert report.tag_writes == 0
    assert report.renames == 0
    assert len(report.outcomes) == 2


def test_auto_patch_dry_run_changes_nothing(album_dir: Path, fake_store: FakeTagStore):
    report = make_patcher(fake_store, dry_run=True).auto_patch_directory(album_dir)

    assert report.dry_run is True
    assert report.tag_writes == 2
    assert report.renames == 2
    assert fake_store.writes == []
    assert (album_dir / "1 - Innuendo.mp3").exists()
    assert stored_tags(album_dir / "1 - Innuendo.mp3") == {}


def test_auto_patch_directory_levels(album_dir: Path, fake_store: FakeTagStore):
    patcher = make_patcher(fake_store, naming={"directory_levels": 3})

    patcher.auto_patch_directory(album_dir)

    assert stored_tags(album_dir / "01 - Innuendo.mp3")["TCON"] == "Rock"


def test_existing_tags_win_without_filesystem_priority(tmp_path: Path, fake_store: FakeTagStore):
    album = tmp_path / "Queen" / "Innuendo"
    make_track(album, "03 - Headlong.mp3", {"TPE1": "Freddie", "TIT2": "Other"})

    report = make_patcher(fake_store).auto_patch_directory(album)

    assert report.outcomes[0].changed_fields == ["album", "track"]
    # The name is rebuilt from the existing title
    assert [p.name for p in album.iterdir()] == ["03 - Other.mp3"]
    assert stored_tags(album / "03 - Other.mp3")["TPE1"] == "Freddie"


def test_filesystem_priority_overwrites_tags(tmp_path: Path, fake_store: FakeTagStore):
    album = tmp_path / "Queen" / "Innuendo"
    make_track(album, "03 - Headlong.mp3", {"TPE1": "Freddie", "TIT2": "Other"})

    report = make_patcher(fake_store, filesystem_priority=True).auto_patch_directory(album)

    assert report.outcomes[0].changed_fields == ["artist", "album", "title", "track"]
    assert report.renames == 0
    assert stored_tags(album / "03 - Headlong.mp3") == {
        "TPE1": "Queen",
        "TALB": "Innuendo",
        "TIT2": "Headlong",
        "TRCK": "3",
    }


def test_output_scheme_with_suite(tmp_path: Path, fake_store: FakeTagStore):
    album = tmp_path / "Grieg" / "Suites"
    make_track(album, "4 - Peer Gynt - Morning Mood.mp3")
    patcher = make_patcher(
        fake_store,
        naming={"input_file_name_title_scheme": ["suite", "title"]},
    )

    patcher.auto_patch_directory(album)

    assert [p.name for p in album.iterdir()] == ["04 - Peer Gynt - Morning Mood.mp3"]
    assert stored_tags(album / "04 - Peer Gynt - Morning Mood.mp3")["TIT1"] == "Peer Gynt"


def test_failure_aborts_by_default(album_dir: Path):
    store = FakeTagStore(fail_on={"02-Headlong.MP3"})

    with pytest.raises(TagStoreError, match="corrupt frame"):
        make_patcher(store).auto_patch_directory(album_dir)

    assert (album_dir / "1 - Innuendo.mp3").exists()


def test_failure_recorded_with_continue_on_error(album_dir: Path):
    store = FakeTagStore(fail_on={"02-Headlong.MP3"})

    report = make_patcher(store, continue_on_error=True).auto_patch_directory(album_dir)

    assert report.failures == 1
    assert report.outcomes[0].error is not None
    assert "corrupt frame" in report.outcomes[0].error
    assert report.renames == 1
    assert (album_dir / "01 - Innuendo.mp3").exists()


def test_rename_conflict_is_not_overwritten(tmp_path: Path, fake_store: FakeTagStore):
    album = tmp_path / "Queen" / "Innuendo"
    make_track(album, "01 - Song.mp3", {"TIT2": "Song", "TRCK": "1"})
    make_track(album, "1 - Song.mp3")

    with pytest.raises(RenameConflictError):
        make_patcher(fake_store).auto_patch_directory(album)

    assert sorted(p.name for p in album.iterdir()) == ["01 - Song.mp3", "1 - Song.mp3"]


def test_rename_file_refuses_existing_target(tmp_path: Path):
    source = make_track(tmp_path, "a.mp3")
    target = make_track(tmp_path, "b.mp3")

    with pytest.raises(RenameConflictError, match="target exists"):
        rename_file(source, target)

    rename_file(source, tmp_path / "c.mp3")
    assert (tmp_path / "c.mp3").exists()


def test_plan_file_has_no_side_effects(album_dir: Path, fake_store: FakeTagStore):
    patcher = make_patcher(fake_store)
    path = album_dir / "1 - Innuendo.mp3"

    plan = patcher.plan_file(path, patcher.infer_directory_tags(album_dir))

    assert plan.inferred_tags == {
        "artist": "Queen",
        "album": "Innuendo",
        "track": "1",
        "title": "Innuendo",
    }
    assert plan.existing_tags == {}
    assert plan.rename_to == album_dir / "01 - Innuendo.mp3"
    assert fake_store.writes == []
    assert path.exists()


def test_file_name_wins_over_directory(tmp_path: Path, fake_store: FakeTagStore):
    album = tmp_path / "Queen" / "Greatest Hits"
    path = make_track(album, "1 - Innuendo.mp3")
    patcher = make_patcher(fake_store, naming={"input_directory_scheme": ["title"]})

    plan = patcher.plan_file(path, patcher.infer_directory_tags(album))

    assert plan.inferred_tags["title"] == "Innuendo"
    assert plan.inferred_tags["track"] == "1"


# Set one tag


def test_set_directory_tag(album_dir: Path, fake_store: FakeTagStore):
    report = make_patcher(fake_store).set_directory_tag(album_dir, "genre", "Rock")

    assert report.tag_writes == 2
    assert stored_tags(album_dir / "1 - Innuendo.mp3") == {"TCON": "Rock"}
    assert all(outcome.changed_fields == ["genre"] for outcome in report.outcomes)


def test_set_directory_tag_accepts_frame_codes_and_aliases(
    tmp_path: Path, fake_store: FakeTagStore
):
    path = make_track(tmp_path, "song.mp3", {"TPE1": "Freddie"})
    patcher = make_patcher(fake_store)

    patcher.set_directory_tag(tmp_path, "TPE1", "Queen")
    patcher.set_directory_tag(tmp_path, "opus", "Op. 46")

    assert stored_tags(path) == {"TPE1": "Queen", "TIT1": "Op. 46"}


def test_set_directory_tag_skips_equal_values(tmp_path: Path, fake_store: FakeTagStore):
    make_track(tmp_path, "song.mp3", {"TCON": "Rock"})

    report = make_patcher(fake_store).set_directory_tag(tmp_path, "genre", "Rock")

    assert fake_store.writes == []
    assert report.tag_writes == 0


def test_set_directory_tag_dry_run(tmp_path: Path, fake_store: FakeTagStore):
    path = make_track(tmp_path, "song.mp3")

    report = make_patcher(fake_store, dry_run=True).set_directory_tag(tmp_path, "year", "1991")

    assert report.tag_writes == 1
    assert fake_store.writes == []
    assert stored_tags(path) == {}


@pytest.mark.parametrize(
    "field_name,content,message",
    [
        ("albumArtist", "Queen", "Unknown tag name: albumArtist"),
        ("", "Queen", "Missing tag name or content"),
        ("genre", "", "Missing tag name or content"),
    ],
)
def test_set_directory_tag_rejects_bad_input(
    album_dir: Path, fake_store: FakeTagStore, field_name: str, content: str, message: str
):
    with pytest.raises(ConfigurationError, match=message):
        make_patcher(fake_store).set_directory_tag(album_dir, field_name, content)

    assert fake_store.reads == []


@pytest.mark.parametrize("frame_code", ["WOAR", "APIC", "USLT", "TXXX"])
def test_set_directory_tag_rejects_non_text_frames(
    album_dir: Path, fake_store: FakeTagStore, frame_code: str
):
    with pytest.raises(ConfigurationError, match="not a writable text frame"):
        make_patcher(fake_store).set_directory_tag(album_dir, frame_code, "x")

    assert fake_store.reads == []
    assert fake_store.writes == []
    assert stored_tags(album_dir / "1 - Innuendo.mp3") == {}
