"""
Directory processing: infer tags from names, patch tags, rename files.

Each directory is processed sequentially, one file at a time. Decisions are
computed by ``DirectoryPatcher.plan_file`` without side effects, then
``DirectoryPatcher.apply_plan`` performs them, or only reports them in a dry
run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from auto_id3tag.config import Config
from auto_id3tag.errors import ConfigurationError, RenameConflictError, TagStoreError
from auto_id3tag.frames import (
    TAG_NAME_CONVERSION,
    canonical_field_name,
    is_known_field,
    to_human,
    to_raw,
)
from auto_id3tag.naming import NamingScheme
from auto_id3tag.reconcile import Reconciliation, plan_rename, reconcile
from auto_id3tag.tag_store import TagStore, get_tag_store, is_writable_frame

logger = logging.getLogger(__name__)


def list_audio_files(directory: Path, extensions: Iterable[str]) -> list[Path]:
    """
    List supported files directly inside a directory (not recursive).

    Extensions are matched case-insensitively. The result is sorted by name.
    """
    wanted = {ext.lower().lstrip(".") for ext in extensions}
    return sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_file() and entry.suffix[1:].lower() in wanted
    )


@dataclass
class FilePlan:
    """Everything decided about one file, before any side effect."""

    file_path: Path
    existing_tags: dict[str, str]
    inferred_tags: dict[str, str]
    reconciliation: Reconciliation
    rename_to: Path | None = None

    @property
    def tags(self) -> dict[str, str]:
        return self.reconciliation.tags


@dataclass
class FileOutcome:
    """What was done to one file (or would be done, in a dry run)."""

    file_path: Path
    changed_fields: list[str] = field(default_factory=list)
    tags_written: bool = False
    renamed_to: Path | None = None
    error: str | None = None


@dataclass
class DirectoryReport:
    """Outcomes of one directory run."""

    directory: Path
    dry_run: bool = False
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def tag_writes(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.tags_written)

    @property
    def renames(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.renamed_to)

    @property
    def failures(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.error)


class DirectoryPatcher:
    """
    Patch tags and file names for the supported files of one directory.

    Args:
        config: Application configuration (schemes, priority, dry run)
        store: Tag store; built from ``config.tag_store`` when omitted
    """

    def __init__(self, config: Config, store: TagStore | None = None):
        self.config = config
        self.scheme: NamingScheme = config.naming.to_scheme()
        self.store = store if store is not None else get_tag_store(config.tag_store)

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def list_files(self, directory: Path) -> list[Path]:
        return list_audio_files(directory, self.config.tag_store.supported_extensions)

    def read_tags(self, file_path: Path) -> dict[str, str]:
        return to_human(self.store.read_tags(file_path))

    def write_tags(self, file_path: Path, tags: dict[str, str]) -> None:
        raw_tags = to_raw(tags)
        if self.dry_run:
            logger.info("Would write: %s", self.store.describe_write(file_path, raw_tags))
            return
        logger.info("Writing tags to %s", file_path)
        self.store.write_tags(file_path, raw_tags)

    def infer_directory_tags(self, directory: Path) -> dict[str, str]:
        return self.scheme.tags_from_directory(directory)

    def plan_file(self, file_path: Path, directory_tags: dict[str, str]) -> FilePlan:
        """Decide tag patches and rename for one file. Reads tags, writes nothing."""
        base_name = file_path.stem
        file_name_tags = self.scheme.tags_from_file_name(base_name)
        inferred = {**directory_tags, **file_name_tags}
        existing = self.read_tags(file_path)

        logger.debug("File: %s", file_path)
        logger.debug("File name data: %s", file_name_tags)
        logger.debug("File name + directory data: %s", inferred)
        logger.debug("Existing tags: %s", existing)

        reconciliation = reconcile(existing, inferred, self.config.filesystem_priority)

        rename_to = None
        wanted = plan_rename(
            base_name,
            reconciliation.tags,
            self.scheme.output_file_name_title_scheme,
        )
        if wanted:
            rename_to = file_path.with_name(wanted + file_path.suffix)

        return FilePlan(
            file_path=file_path,
            existing_tags=existing,
            inferred_tags=inferred,
            reconciliation=reconciliation,
            rename_to=rename_to,
        )

    def apply_plan(self, plan: FilePlan) -> FileOutcome:
        """Carry out a plan; in a dry run only log what would happen."""
        outcome = FileOutcome(
            file_path=plan.file_path,
            changed_fields=list(plan.reconciliation.changed_fields),
        )

        if plan.reconciliation.changed:
            logger.info("Patched tags for %s: %s", plan.file_path, plan.tags)
            self.write_tags(plan.file_path, plan.tags)
            outcome.tags_written = True

        if plan.rename_to:
            if self.dry_run:
                logger.info("Would rename: %s to: %s", plan.file_path.name, plan.rename_to.name)
            else:
                logger.info("Rename: %s to: %s", plan.file_path.name, plan.rename_to.name)
                rename_file(plan.file_path, plan.rename_to)
            outcome.renamed_to = plan.rename_to

        return outcome

    def auto_patch_directory(self, directory: Path) -> DirectoryReport:
        """Patch tags from names and rename files from tags, for one directory."""
        files = self.list_files(directory)
        directory_tags = self.infer_directory_tags(directory)

        logger.info("Directory data: %s", directory_tags)
        logger.info("Files: %d", len(files))

        def process(file_path: Path) -> FileOutcome:
            return self.apply_plan(self.plan_file(file_path, directory_tags))

        return self._process_files(directory, files, process)

    def set_directory_tag(self, directory: Path, field_name: str, content: str) -> DirectoryReport:
        """
        Set one tag on every supported file of a directory.

        Raises:
            ConfigurationError: Missing or unknown field name, a frame that
                is not a plain text frame, or missing content. Raised before
                any file is read.
        """
        if not field_name or not content:
            raise ConfigurationError("Missing tag name or content")
        if not is_known_field(field_name):
            raise ConfigurationError(f"Unknown tag name: {field_name}")
        if not is_writable_frame(TAG_NAME_CONVERSION.get(field_name, field_name)):
            raise ConfigurationError(f"Tag is not a writable text frame: {field_name}")

        # Reads come back keyed by semantic name where one exists
        name = canonical_field_name(field_name)
        files = self.list_files(directory)

        def process(file_path: Path) -> FileOutcome:
            outcome = FileOutcome(file_path=file_path)
            tags = self.read_tags(file_path)
            if tags.get(name) != content:
                tags[name] = content
                self.write_tags(file_path, tags)
                outcome.tags_written = True
                outcome.changed_fields = [name]
            return outcome

        return self._process_files(directory, files, process)

    def _process_files(
        self,
        directory: Path,
        files: list[Path],
        process: Callable[[Path], FileOutcome],
    ) -> DirectoryReport:
        report = DirectoryReport(directory=directory, dry_run=self.dry_run)

        for file_path in files:
            try:
                outcome = process(file_path)
            except (TagStoreError, OSError) as e:
                if not self.config.continue_on_error:
                    raise
                logger.error("Failed to process %s: %s", file_path, e)
                outcome = FileOutcome(file_path=file_path, error=str(e))
            report.outcomes.append(outcome)

        return report


def rename_file(source: Path, target: Path) -> None:
    """
    Rename within a directory, refusing to replace another file.

    Case-only renames (same file on case-insensitive file systems) are allowed.
    """
    if target.exists() and not source.samefile(target):
        raise RenameConflictError(source, target)
    source.rename(target)
