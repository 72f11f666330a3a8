"""Shared Rich console and report rendering for auto-id3tag.

Provides a global Rich console instance and helpers for consistent
output formatting across CLI commands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from auto_id3tag.orchestrator import DirectoryReport

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance.

    Raises:
        RuntimeError: If console not initialized (should only happen in tests)
    """
    if _console is None:
        raise RuntimeError("Console not initialized. Call set_console() first.")
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console


def print_error(message: str) -> None:
    get_console().print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    get_console().print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_success(message: str) -> None:
    get_console().print(f"[green]{escape(message)}[/green]")


def print_report(report: DirectoryReport) -> None:
    """Print one line per file that was (or would be) changed, then a summary."""
    console = get_console()
    prefix = "Would " if report.dry_run else ""

    for outcome in report.outcomes:
        name = outcome.file_path.name
        if outcome.error:
            console.print(f"{name}: {outcome.error}", style="red", markup=False, highlight=False)
            continue
        if outcome.tags_written:
            fields = ", ".join(outcome.changed_fields)
            verb = "patch" if report.dry_run else "Patched"
            console.print(f"{prefix}{verb} {name}: {fields}", markup=False, highlight=False)
        if outcome.renamed_to:
            verb = "rename" if report.dry_run else "Renamed"
            console.print(
                f"{prefix}{verb} {name} -> {outcome.renamed_to.name}",
                markup=False,
                highlight=False,
            )

    summary = (
        f"{len(report.outcomes)} files, {report.tag_writes} tag writes, "
        f"{report.renames} renames, {report.failures} failures"
    )
    if report.dry_run:
        summary += " (dry run)"
    if report.failures:
        print_warning(summary)
    else:
        print_success(summary)
