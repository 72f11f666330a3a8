"""Merge policy between existing tags and tags inferred from file system names."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from auto_id3tag.frames import ordered_fields
from auto_id3tag.naming import build_file_base_name


@dataclass
class Reconciliation:
    """Merged tags and which fields were overwritten."""

    tags: dict[str, str]
    changed_fields: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


def reconcile(
    existing: Mapping[str, str],
    inferred: Mapping[str, str],
    filesystem_priority: bool = False,
) -> Reconciliation:
    """
    Merge inferred tags into existing tags.

    An inferred value is applied when it is non-empty, differs from the
    existing value, and either the existing value is empty or
    ``filesystem_priority`` is set. Neither input is modified.
    """
    merged = dict(existing)
    changed_fields: list[str] = []

    for name in ordered_fields(inferred):
        value = inferred[name]
        if not value or value == merged.get(name):
            continue
        if filesystem_priority or not merged.get(name):
            merged[name] = value
            changed_fields.append(name)

    return Reconciliation(tags=merged, changed_fields=changed_fields)


def plan_rename(
    current_base_name: str,
    tags: Mapping[str, str],
    output_scheme: Sequence[str],
) -> str | None:
    """Return the canonical base name if the file should be renamed, else None."""
    wanted = build_file_base_name(tags, output_scheme)
    if wanted and wanted != current_base_name:
        return wanted
    return None
