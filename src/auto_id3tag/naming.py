"""Mapping between file system names and tag fields.

Directory names and file base names are parsed into semantic tag fields, and
a canonical file base name is rebuilt from tags.

Directory scheme example, ``["genre", "artist", "album"]``::

    Rock/Queen/A Night at the Opera/11 - Bohemian Rhapsody.mp3
    genre artist album               track title

File name title schemes describe the part after the track number, split on
``" - "``.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import PurePath

TITLE_SEPARATOR = " - "

DEFAULT_INPUT_TITLE_SCHEME = ("title",)
DEFAULT_OUTPUT_TITLE_SCHEME = ("suite", "title", "subtitle")

# Presets for --directory-levels
DIRECTORY_LEVEL_SCHEMES: dict[int, tuple[str, ...]] = {
    0: (),
    1: ("artist",),
    2: ("artist", "album"),
    3: ("genre", "artist", "album"),
}

# Optional track number, then "." or "-" (optionally space padded), then the rest
FILE_NAME_PATTERN = re.compile(r"(?:([0-9]+)(?:\.| ?- ?))?(.*)")
TRACK_PREFIX_PATTERN = re.compile(r"[0-9]+")

APOSTROPHE_VARIANTS = re.compile("[`’]")
MULTIPLE_SPACES = re.compile(r"  +")
MULTIPLE_PERIODS = re.compile(r"\.\.+")
ALLOWED_PUNCTUATION = frozenset(" _.',()[]&-")


def directory_scheme_for_levels(levels: int) -> list[str]:
    """Return the preset directory scheme for a number of directory levels."""
    return list(DIRECTORY_LEVEL_SCHEMES.get(levels, ()))


def extract_from_directories(directory: PurePath, scheme: Sequence[str]) -> dict[str, str]:
    """
    Map ancestor directory names to fields.

    The directory itself (the file's parent) maps to the last scheme entry,
    its parent to the one before, and so on. There is no check against the
    filesystem root: walking past it repeats the root's name, which is an
    empty string for ``/``.
    """
    data: dict[str, str] = {}
    current = directory
    for name in reversed(scheme):
        data[name] = current.name
        current = current.parent
    return data


def extract_from_file_base_name(base_name: str, title_scheme: Sequence[str]) -> dict[str, str]:
    """
    Parse a file base name (no extension) into fields.

    A leading track number is stored without leading zeros; a zero track is
    not stored at all. With a multi-field title scheme the remainder is split
    on ``" - "``; when fewer parts than fields are present, parts are shifted
    so that the last part lands on ``title``.
    """
    data: dict[str, str] = {}
    match = FILE_NAME_PATTERN.fullmatch(base_name)
    if not match:
        return data

    track, remainder = match.groups()
    if track and int(track):
        data["track"] = str(int(track))

    if not remainder:
        return data

    if len(title_scheme) == 1:
        data[title_scheme[0]] = remainder
        return data

    parts = remainder.split(TITLE_SEPARATOR)
    shift = 0
    if len(title_scheme) != len(parts) and "title" in title_scheme:
        title_index = title_scheme.index("title")
        if title_index >= len(parts):
            shift = 1 + title_index - len(parts)

    for index, part in enumerate(parts):
        if index + shift >= len(title_scheme):
            break
        data[title_scheme[index + shift]] = part

    return data


def sanitize_file_base_name(text: str) -> str:
    """
    Make a string safe to use as a file base name.

    Each step runs once, in order: apostrophes are straightened, disallowed
    characters removed, then spaces and periods are collapsed and stripped
    from both ends. Stripping periods last can expose a trailing space
    (``"Song ."`` -> ``"Song "``); that space is kept.
    """
    text = APOSTROPHE_VARIANTS.sub("'", text)
    text = "".join(char for char in text if _is_allowed_char(char))

    text = MULTIPLE_SPACES.sub(" ", text)
    text = _strip_once(text, " ")

    text = MULTIPLE_PERIODS.sub(".", text)
    text = _strip_once(text, ".")

    return text


def _is_allowed_char(char: str) -> bool:
    return char in ALLOWED_PUNCTUATION or unicodedata.category(char)[0] in ("L", "N")


def _strip_once(text: str, char: str) -> str:
    # Runs are already collapsed, so one character per end is the whole run
    text = text.removeprefix(char)
    return text.removesuffix(char)


def build_file_base_name(tags: Mapping[str, str], output_scheme: Sequence[str]) -> str:
    """
    Build the canonical file base name from tags.

    ``{"track": "7", "title": "Song"}`` gives ``"07 - Song"``. Track numbers
    are zero padded to two digits and never truncated.
    """
    segments: list[str] = []

    track = tags.get("track")
    if track:
        track_match = TRACK_PREFIX_PATTERN.match(track)
        if track_match:
            segments.append(track_match.group(0).zfill(2))

    segments.extend(tags[key] for key in output_scheme if tags.get(key))

    return sanitize_file_base_name(TITLE_SEPARATOR.join(segments))


@dataclass
class NamingScheme:
    """Configured directory and file name schemes."""

    input_directory_scheme: list[str] = field(default_factory=list)
    input_file_name_title_scheme: list[str] = field(
        default_factory=lambda: list(DEFAULT_INPUT_TITLE_SCHEME)
    )
    output_file_name_title_scheme: list[str] = field(
        default_factory=lambda: list(DEFAULT_OUTPUT_TITLE_SCHEME)
    )

    def __post_init__(self) -> None:
        if not self.input_file_name_title_scheme:
            self.input_file_name_title_scheme = list(DEFAULT_INPUT_TITLE_SCHEME)
        if not self.output_file_name_title_scheme:
            self.output_file_name_title_scheme = list(DEFAULT_OUTPUT_TITLE_SCHEME)

    def tags_from_directory(self, directory: PurePath) -> dict[str, str]:
        return extract_from_directories(directory, self.input_directory_scheme)

    def tags_from_file_name(self, base_name: str) -> dict[str, str]:
        return extract_from_file_base_name(base_name, self.input_file_name_title_scheme)

    def file_base_name(self, tags: Mapping[str, str]) -> str:
        return build_file_base_name(tags, self.output_file_name_title_scheme)
