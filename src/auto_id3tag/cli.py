"""CLI for auto-id3tag using Typer and Rich.

Patch ID3 tags from file and directory names, and rename MP3 files from
ID3 tags.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from auto_id3tag.config import Config, TagStoreBackend
from auto_id3tag.console import get_console, print_error, print_report, print_warning, set_console
from auto_id3tag.errors import AutoID3TagError, ConfigurationError
from auto_id3tag.orchestrator import DirectoryPatcher, DirectoryReport
from auto_id3tag.safe_logging import configure_rich_logging

logger = logging.getLogger(__name__)


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


app = typer.Typer(
    name="auto-id3tag",
    help="Patch ID3 tags from file and directory names, and rename MP3 files from ID3 tags.",
    no_args_is_help=True,
    add_completion=False,
)


class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int


state = AppState()

DirectoryArgument = Annotated[
    Path | None,
    typer.Argument(
        help="The directory to patch; defaults to the working directory",
        exists=True,
        file_okay=False,
    ),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", "--dry", help="Do nothing, only display what would be done"),
]
KeepGoingOption = Annotated[
    bool,
    typer.Option("--keep-going", help="Report per-file failures and continue with the next file"),
]
VerboseOption = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
]


def _log_level_for(verbose: int) -> int:
    return logging.DEBUG if verbose >= 2 else logging.INFO


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to configuration TOML file", exists=True),
    ] = None,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: VerboseOption = 0,
    backend: Annotated[
        TagStoreBackend | None,
        typer.Option(help="Tag store backend (id3v2 tool or mutagen)"),
    ] = None,
) -> None:
    """Auto ID3Tag: infer ID3 tags from names and rename files from tags."""
    # Load config (TOML + env vars); CLI options override below
    try:
        cfg = Config.load(config_path)
    except ConfigurationError as e:
        set_console(Console(soft_wrap=True))
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    if backend is not None:
        cfg.tag_store.backend = backend

    if verbose > 0:
        log_level = _log_level_for(verbose)
    else:
        level_str = cfg.logging.level.upper()
        log_level = getattr(logging, level_str, logging.WARNING)

    console = configure_rich_logging(
        level=log_level,
        format_string=cfg.logging.format,
        hash_paths=cfg.logging.hash_paths,
    )
    set_console(console)

    if config_path:
        logger.info("Loaded config from %s", config_path)

    state.config = cfg
    state.output_format = output
    state.verbose = verbose


@app.command()
def auto(
    directory: DirectoryArgument = None,
    dry_run: DryRunOption = False,
    filesystem_priority: Annotated[
        bool,
        typer.Option(
            "--filesystem-priority",
            "--fsp",
            help="Tags guessed from file and directory names overwrite existing tags",
        ),
    ] = False,
    directory_levels: Annotated[
        int | None,
        typer.Option(
            "--directory-levels",
            "--levels",
            "--lvl",
            min=0,
            max=3,
            help=(
                "Directory levels used for tags (default: 2): title.mp3 (0), "
                "artist/title.mp3 (1), artist/album/title.mp3 (2), "
                "genre/artist/album/title.mp3 (3)"
            ),
        ),
    ] = None,
    input_directory_scheme: Annotated[
        list[str] | None,
        typer.Option(
            "--input-directory-scheme",
            "--ids",
            help="Tag for each parent directory, outermost first (repeat the option)",
        ),
    ] = None,
    input_file_name_title_scheme: Annotated[
        list[str] | None,
        typer.Option(
            "--input-file-name-title-scheme",
            "--ifs",
            help="How the title part of source file names breaks down (default: title)",
        ),
    ] = None,
    output_file_name_title_scheme: Annotated[
        list[str] | None,
        typer.Option(
            "--output-file-name-title-scheme",
            "--ofs",
            help="How the title part of renamed files is built (default: suite title subtitle)",
        ),
    ] = None,
    keep_going: KeepGoingOption = False,
    verbose: VerboseOption = 0,
) -> None:
    """Patch ID3 tags from file and directory names, and rename files from tags.

    Examples:
        auto-id3tag auto ~/Music/Queen/Innuendo --dry-run
        auto-id3tag auto --levels 3 --fsp
        auto-id3tag auto --ifs suite --ifs title
    """
    cfg = state.config
    _apply_run_options(cfg, dry_run, keep_going, verbose)

    if filesystem_priority:
        cfg.filesystem_priority = True
    if directory_levels is not None:
        cfg.naming.directory_levels = directory_levels
    if input_directory_scheme:
        cfg.naming.input_directory_scheme = input_directory_scheme
    if input_file_name_title_scheme:
        cfg.naming.input_file_name_title_scheme = input_file_name_title_scheme
    if output_file_name_title_scheme:
        cfg.naming.output_file_name_title_scheme = output_file_name_title_scheme

    dir_path = _resolve_directory(directory)
    _run(lambda patcher: patcher.auto_patch_directory(dir_path))


@app.command("set")
def set_tag(
    directory: DirectoryArgument = None,
    tag: Annotated[
        str | None,
        typer.Option("--tag", "-t", help="The tag to change (name or frame code)"),
    ] = None,
    content: Annotated[
        str | None,
        typer.Option("--content", "-c", help="The tag's content text"),
    ] = None,
    dry_run: DryRunOption = False,
    keep_going: KeepGoingOption = False,
    verbose: VerboseOption = 0,
) -> None:
    """Set one ID3 tag on every file of a directory.

    Examples:
        auto-id3tag set --tag genre --content Jazz
        auto-id3tag set ~/Music/Queen -t TPE2 -c Queen --dry-run -v
    """
    _apply_run_options(state.config, dry_run, keep_going, verbose)

    dir_path = _resolve_directory(directory)
    _run(lambda patcher: patcher.set_directory_tag(dir_path, tag or "", content or ""))


def _apply_run_options(cfg: Config, dry_run: bool, keep_going: bool, verbose: int) -> None:
    if dry_run:
        cfg.dry_run = True
    if keep_going:
        cfg.continue_on_error = True
    if verbose > 0:
        # -v given after the command adds to any given before it
        state.verbose += verbose
        logging.getLogger().setLevel(_log_level_for(state.verbose))


def _resolve_directory(directory: Path | None) -> Path:
    # Real path, symlinks resolved
    return (directory or Path.cwd()).resolve()


def _run(action: Callable[[DirectoryPatcher], DirectoryReport]) -> None:
    patcher = DirectoryPatcher(state.config)

    try:
        report = action(patcher)
    except (AutoID3TagError, OSError) as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    if state.output_format == OutputFormat.JSON:
        get_console().print_json(json.dumps(_report_to_dict(report)))
    else:
        if not report.outcomes:
            print_warning(f"No supported files in {report.directory}")
        print_report(report)

    if report.failures:
        sys.exit(ExitCode.ERROR)
    sys.exit(ExitCode.SUCCESS if report.outcomes else ExitCode.NO_RESULTS)


def _report_to_dict(report: DirectoryReport) -> dict[str, Any]:
    return {
        "directory": str(report.directory),
        "dry_run": report.dry_run,
        "files": [
            {
                "file": outcome.file_path.name,
                "changed_fields": outcome.changed_fields,
                "tags_written": outcome.tags_written,
                "renamed_to": outcome.renamed_to.name if outcome.renamed_to else None,
                "error": outcome.error,
            }
            for outcome in report.outcomes
        ],
        "tag_writes": report.tag_writes,
        "renames": report.renames,
        "failures": report.failures,
    }


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
