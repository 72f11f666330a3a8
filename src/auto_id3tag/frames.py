"""Translation between semantic tag names and raw ID3v2 frame codes.

Semantic names (``artist``, ``title``, ...) are what file and directory names
are parsed into. Raw frame codes (``TPE1``, ``TIT2``, ...) are what the tag
store reads and writes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# Closed vocabulary of frame codes recognized when reading tags
ALL_ID3_FRAME_NAMES = frozenset(
    {
        # Titles, parts, performers
        "TIT1", "TIT2", "TIT3", "TALB", "TOAL", "TRCK", "TPOS", "TSST",
        "TPE1", "TPE2", "TPE3", "TPE4", "TOPE", "TEXT", "TOLY", "TCOM", "TMCL", "TIPL",
        # Dates
        "TDRC", "TDEN", "TDOR", "TDRL", "TDTG", "TYER", "TDAT", "TIME", "TRDA",
        # Properties and rights
        "TCON", "TBPM", "TLEN", "TMED", "TMOO", "TCMP", "TCOP", "TPRO", "TPUB", "TOWN",
        "TRSN", "TRSO", "TOFN", "TDLY", "TSRC", "TSSE", "TENC", "TSOP", "TSOA", "TSOT", "TSOC",
        "TKEY", "TLAN", "TFLT", "TSIZ", "USLT", "SYLT", "TXXX",
        # URLs
        "WCOM", "WCOP", "WOAF", "WOAR", "WOAS", "WORS", "WPAY", "WPUB", "WXXX",
        # Binary and misc
        "APIC", "GEOB", "POPM", "RBUF", "AENC", "ENCR", "SIGN", "SEEK", "PRIV", "COMR", "USER",
        "RVA2", "EQU2", "PCNT",
    }
)  # fmt: skip

# Semantic name -> frame code. Declaration order matters: the first name
# declared for a code is the one the reverse table keeps.
TAG_NAME_CONVERSION: dict[str, str] = {
    "artist": "TPE1",  # Lead performer(s) / soloist(s)
    "composer": "TCOM",
    "originalArtist": "TOPE",  # For covers: TPE1 is the cover artist, TOPE the original
    "album": "TALB",
    "suite": "TIT1",  # Content group: suite, series, piece, opus, work
    "title": "TIT2",
    "subtitle": "TIT3",
    "track": "TRCK",  # "3" or "3/12"
    "disc": "TPOS",  # "1" or "1/2"
    "genre": "TCON",
    "bpm": "TBPM",
    "year": "TYER",
    # Aliases
    "opus": "TIT1",
    "group": "TIT1",
    "work": "TIT1",
    "series": "TIT1",
}


def _build_reverse_table(table: Mapping[str, str]) -> dict[str, str]:
    reverse: dict[str, str] = {}
    for name, code in table.items():
        reverse.setdefault(code, name)
    return reverse


REVERSE_TAG_NAME_CONVERSION: dict[str, str] = _build_reverse_table(TAG_NAME_CONVERSION)

# Explicit field order used whenever tags are merged or reported
SEMANTIC_FIELD_ORDER: tuple[str, ...] = tuple(TAG_NAME_CONVERSION)


def is_known_field(name: str) -> bool:
    """Return True for a semantic field name or a known raw frame code."""
    return name in TAG_NAME_CONVERSION or name in ALL_ID3_FRAME_NAMES


def canonical_field_name(name: str) -> str:
    """
    Map a field name onto the key it will have after a read.

    Raw codes and aliases that have a semantic name collapse onto that name
    (``TPE1`` -> ``artist``, ``opus`` -> ``suite``). Anything else is returned
    unchanged.
    """
    code = TAG_NAME_CONVERSION.get(name, name)
    return REVERSE_TAG_NAME_CONVERSION.get(code, name)


def ordered_fields(names: Iterable[str]) -> list[str]:
    """Order field names: semantic fields in table order, then the rest sorted."""
    pending = set(names)
    ordered = [name for name in SEMANTIC_FIELD_ORDER if name in pending]
    ordered.extend(sorted(pending.difference(ordered)))
    return ordered


def to_human(raw_tags: Mapping[str, str]) -> dict[str, str]:
    """Rename raw frame codes to semantic names; unmapped codes pass through."""
    return {REVERSE_TAG_NAME_CONVERSION.get(code, code): value for code, value in raw_tags.items()}


def to_raw(human_tags: Mapping[str, str]) -> dict[str, str]:
    """
    Convert semantic names to raw frame codes for writing.

    Names that are already known frame codes pass through. Fields unknown to
    both tables are dropped.
    """
    raw: dict[str, str] = {}
    for name, value in human_tags.items():
        if name in TAG_NAME_CONVERSION:
            raw[TAG_NAME_CONVERSION[name]] = value
        elif name in ALL_ID3_FRAME_NAMES:
            raw[name] = value
    return raw
