"""
Tag stores: read and write raw ID3v2 frames.

Two backends share one contract:

- ``Id3v2CliTagStore`` drives the ``id3v2`` command line tool and parses its
  listing output.
- ``MutagenTagStore`` uses mutagen directly, for hosts without the tool.

Both speak raw frame codes (``TPE1`` -> value). Translation to semantic names
happens in ``auto_id3tag.frames``.
"""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from auto_id3tag.config import TagStoreBackend, TagStoreConfig
from auto_id3tag.errors import TagStoreError
from auto_id3tag.frames import ALL_ID3_FRAME_NAMES

logger = logging.getLogger(__name__)

# Section headers of `id3v2 -l` output
ID3V2_SECTION = re.compile(r"^id3v2 .*:\n", re.MULTILINE)
ID3V1_SECTION = re.compile(r"^id3v1 .*:\n", re.MULTILINE)
NO_ID3V1_LINE = re.compile(r"^[^A-Z].*: No ID3v1 tag\n", re.MULTILINE)

# "TPE1 (Lead performer(s)/Soloist(s)): Queen"
FRAME_LINE = re.compile(r"([A-Z0-9]{4}) \(.*?\): (.*)")
# Older listings without a description
BARE_FRAME_LINE = re.compile(r"([A-Z0-9]{4}): (.*)")


def is_writable_frame(code: str) -> bool:
    """Text frames are the only ones written back; others are read-only."""
    return code.startswith("T") and code != "TXXX" and code in ALL_ID3_FRAME_NAMES


def writable_frames(raw_tags: Mapping[str, str]) -> dict[str, str]:
    return {code: value for code, value in raw_tags.items() if is_writable_frame(code)}


def parse_id3v2_listing(output: str) -> dict[str, str]:
    """
    Parse the report printed by ``id3v2 -l`` into raw frames.

    Only the ID3v2 section is used. When an ID3v1 section (or a
    ``No ID3v1 tag`` line) follows it, everything from there on is cut off.
    Lines are kept when their frame code is in the known vocabulary.
    """
    v2_match = ID3V2_SECTION.search(output)
    if not v2_match:
        return {}

    v1_match = ID3V1_SECTION.search(output) or NO_ID3V1_LINE.search(output)
    end = len(output)
    if v1_match and v1_match.start() > v2_match.start():
        end = v1_match.start()

    raw_tags: dict[str, str] = {}
    for line in output[v2_match.end() : end].split("\n"):
        line_match = FRAME_LINE.fullmatch(line) or BARE_FRAME_LINE.fullmatch(line)
        if line_match and line_match.group(1) in ALL_ID3_FRAME_NAMES:
            raw_tags[line_match.group(1)] = line_match.group(2)

    return raw_tags


class TagStore(ABC):
    """Read and write raw ID3v2 frames on a single file."""

    name: str = "tag-store"

    @abstractmethod
    def read_tags(self, file_path: Path) -> dict[str, str]:
        """Read raw frames; a file without tags gives an empty mapping."""
        pass

    @abstractmethod
    def write_tags(self, file_path: Path, raw_tags: Mapping[str, str]) -> None:
        """Persist raw frames, raising TagStoreError on failure."""
        pass

    def describe_write(self, file_path: Path, raw_tags: Mapping[str, str]) -> str:
        """Human-readable description of a write, used for dry runs."""
        frames = ", ".join(f"{code}={value!r}" for code, value in writable_frames(raw_tags).items())
        return f"{self.name}: {file_path.name}: {frames}"


def get_id3v2_path() -> Path | None:
    """Find id3v2 executable in PATH."""
    path = shutil.which("id3v2")
    return Path(path) if path else None


class Id3v2CliTagStore(TagStore):
    """Tag store backed by the ``id3v2`` command line tool."""

    name = "id3v2"

    def __init__(self, executable: Path | None = None, timeout_s: float | None = None):
        self.executable = executable
        self.timeout_s = timeout_s

    def read_command(self, file_path: Path) -> list[str]:
        return [str(self._executable()), "-l", str(file_path)]

    def write_command(self, file_path: Path, raw_tags: Mapping[str, str]) -> list[str]:
        command = [str(self._executable()), "-2"]
        for code, value in writable_frames(raw_tags).items():
            command.extend([f"--{code}", value])
        command.append(str(file_path))
        return command

    def read_tags(self, file_path: Path) -> dict[str, str]:
        output = self._run(self.read_command(file_path), file_path)
        return parse_id3v2_listing(output)

    def write_tags(self, file_path: Path, raw_tags: Mapping[str, str]) -> None:
        self._run(self.write_command(file_path, raw_tags), file_path)

    def describe_write(self, file_path: Path, raw_tags: Mapping[str, str]) -> str:
        return shlex.join(self.write_command(file_path, raw_tags))

    def _executable(self) -> Path:
        if self.executable is None:
            self.executable = get_id3v2_path()
        if self.executable is None:
            raise TagStoreError(
                "id3v2 not found in PATH. Install the id3v2 package "
                "or select the mutagen backend (--backend mutagen)"
            )
        return self.executable

    def _run(self, command: list[str], file_path: Path) -> str:
        logger.debug("Running command: %s", shlex.join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise TagStoreError(f"id3v2 timed out after {self.timeout_s}s", file_path) from e
        except OSError as e:
            raise TagStoreError(f"Failed to run id3v2: {e}", file_path) from e

        if result.returncode != 0:
            raise TagStoreError(
                f"id3v2 exited with status {result.returncode}: {result.stderr.strip()}",
                file_path,
            )
        return result.stdout


class MutagenTagStore(TagStore):
    """
    Tag store backed by mutagen.

    Frames are loaded untranslated so that ID3v2.3 codes such as ``TYER``
    keep their names, and tags are saved as ID3v2.3 like the id3v2 tool does.
    """

    name = "mutagen"

    def read_tags(self, file_path: Path) -> dict[str, str]:
        from mutagen import MutagenError
        from mutagen.id3 import ID3, ID3NoHeaderError, TextFrame

        try:
            tags = ID3(file_path, translate=False)
        except ID3NoHeaderError:
            return {}
        except (MutagenError, OSError) as e:
            raise TagStoreError(f"Failed to read tags: {e}", file_path) from e

        raw_tags: dict[str, str] = {}
        for frame in tags.values():
            code = frame.FrameID
            if code in ALL_ID3_FRAME_NAMES and isinstance(frame, TextFrame):
                raw_tags[code] = "/".join(str(text) for text in frame.text)
        return raw_tags

    def write_tags(self, file_path: Path, raw_tags: Mapping[str, str]) -> None:
        from mutagen import MutagenError
        from mutagen.id3 import ID3, Encoding, Frames, ID3NoHeaderError

        try:
            tags = ID3(file_path, translate=False)
        except ID3NoHeaderError:
            tags = ID3()
        except (MutagenError, OSError) as e:
            raise TagStoreError(f"Failed to read tags: {e}", file_path) from e

        for code, value in writable_frames(raw_tags).items():
            frame_class = Frames[code]
            tags.setall(code, [frame_class(encoding=Encoding.UTF8, text=[value])])

        try:
            tags.update_to_v23()
            tags.save(file_path, v2_version=3)
        except (MutagenError, OSError) as e:
            raise TagStoreError(f"Failed to write tags: {e}", file_path) from e


def get_tag_store(config: TagStoreConfig) -> TagStore:
    """Build the tag store selected in configuration."""
    if config.backend == TagStoreBackend.MUTAGEN:
        return MutagenTagStore()
    return Id3v2CliTagStore(executable=config.id3v2_path, timeout_s=config.timeout_s)
