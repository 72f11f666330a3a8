__all__ = (
    "main",
    "Config",
    # Errors
    "AutoID3TagError",
    "ConfigurationError",
    "RenameConflictError",
    "TagStoreError",
    # Naming
    "NamingScheme",
    "build_file_base_name",
    "extract_from_directories",
    "extract_from_file_base_name",
    "sanitize_file_base_name",
    # Frames
    "TAG_NAME_CONVERSION",
    "REVERSE_TAG_NAME_CONVERSION",
    "to_human",
    "to_raw",
    # Reconciliation
    "Reconciliation",
    "reconcile",
    "plan_rename",
    # Tag stores
    "TagStore",
    "Id3v2CliTagStore",
    "MutagenTagStore",
    "get_tag_store",
    "parse_id3v2_listing",
    # Directory processing
    "DirectoryPatcher",
    "DirectoryReport",
    "FileOutcome",
    "FilePlan",
)

from auto_id3tag.cli import cli as main
from auto_id3tag.config import Config
from auto_id3tag.errors import (
    AutoID3TagError,
    ConfigurationError,
    RenameConflictError,
    TagStoreError,
)
from auto_id3tag.frames import REVERSE_TAG_NAME_CONVERSION, TAG_NAME_CONVERSION, to_human, to_raw
from auto_id3tag.naming import (
    NamingScheme,
    build_file_base_name,
    extract_from_directories,
    extract_from_file_base_name,
    sanitize_file_base_name,
)
from auto_id3tag.orchestrator import DirectoryPatcher, DirectoryReport, FileOutcome, FilePlan
from auto_id3tag.reconcile import Reconciliation, plan_rename, reconcile
from auto_id3tag.tag_store import (
    Id3v2CliTagStore,
    MutagenTagStore,
    TagStore,
    get_tag_store,
    parse_id3v2_listing,
)
