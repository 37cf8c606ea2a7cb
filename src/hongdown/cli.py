"""Command-line interface for Hongdown."""

import difflib
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from hongdown import __version__
from hongdown.config import discover_config, get_settings, load_config
from hongdown.core.engine import EngineError, get_engine
from hongdown.formatting.ir import FormatResult, FormatWarning
from hongdown.formatting.options import ConfigError

app = typer.Typer(
    name="hongdown",
    help="Format Markdown files according to the Hongdown style.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

STDIN_NAME = "<stdin>"


class FileStatus(str, Enum):
    """Outcome of formatting one input."""

    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Hongdown v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send library debug logging to stderr through rich when verbose."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def resolve_file_options(
    path: Optional[Path],
    config: Optional[Path] = None,
    line_width: Optional[int] = None,
) -> dict[str, Any]:
    """Build the sparse options for one input.

    An explicit config file (option or ``HONGDOWN_CONFIG``) wins over
    discovery, which starts at the input's directory (or the working
    directory for stdin). A line width from the command line or
    ``HONGDOWN_LINE_WIDTH`` overrides the file.
    """
    settings = get_settings()
    config_path = config or settings.config_path
    if config_path is None:
        start = path.parent if path is not None else Path.cwd()
        config_path = discover_config(start)
    options = load_config(config_path) if config_path is not None else {}
    width = line_width or settings.line_width
    if width is not None:
        options["line_width"] = width
    return options


def report_warnings(name: str, warnings: list[FormatWarning]) -> None:
    """Print table diagnostics as ``name:line: message``."""
    for warning in warnings:
        err_console.print(
            f"[yellow]{escape(name)}:{warning.line}:[/yellow] {escape(warning.message)}"
        )


def unified_diff(name: str, before: str, after: str) -> str:
    """Unified diff between the original and formatted text."""
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{name}",
            tofile=f"b/{name}",
        )
    )


def format_text(
    name: str,
    text: str,
    options: dict[str, Any],
    check: bool,
    diff: bool,
) -> tuple[FormatResult, FileStatus]:
    """Format one input and handle the check/diff reporting for it."""
    result = get_engine().format_with_warnings(text, options)
    report_warnings(name, result.warnings)
    status = FileStatus.CHANGED if result.output != text else FileStatus.UNCHANGED
    if status is FileStatus.CHANGED:
        if diff:
            typer.echo(unified_diff(name, text, result.output), nl=False)
        if check:
            err_console.print(f"[yellow]Would reformat:[/yellow] {escape(name)}")
    return result, status


def process_stdin(
    check: bool,
    diff: bool,
    config: Optional[Path],
    line_width: Optional[int],
) -> FileStatus:
    """Format standard input to standard output."""
    try:
        # Decoded from bytes so CR characters reach verbatim regions intact
        text = sys.stdin.buffer.read().decode("utf-8")
        options = resolve_file_options(None, config, line_width)
        result, status = format_text(STDIN_NAME, text, options, check, diff)
    except (ConfigError, EngineError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        return FileStatus.FAILED
    if not (check or diff):
        typer.echo(result.output, nl=False)
    return status


def process_file(
    path: Path,
    write: bool,
    check: bool,
    diff: bool,
    config: Optional[Path],
    line_width: Optional[int],
    verbose: bool,
) -> FileStatus:
    """Format a single file."""
    if not path.is_file():
        err_console.print(f"[red]Error:[/red] File not found: {escape(str(path))}")
        return FileStatus.FAILED

    if verbose:
        err_console.print(f"[blue]Processing:[/blue] {escape(str(path))}")

    try:
        # newline="" keeps CRLF line endings intact for verbatim regions
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
        options = resolve_file_options(path, config, line_width)
        result, status = format_text(str(path), text, options, check, diff)
    except (ConfigError, EngineError, OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error processing {escape(path.name)}:[/red] {escape(str(e))}")
        if verbose:
            err_console.print_exception()
        return FileStatus.FAILED

    if write:
        if status is FileStatus.CHANGED:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(result.output)
            err_console.print(f"[green]Formatted:[/green] {escape(str(path))}")
    elif not (check or diff):
        typer.echo(result.output, nl=False)
    return status


def collect_files(folder_path: Path, extensions: list[str]) -> list[Path]:
    """All files under a folder with one of the given extensions, sorted."""
    files: set[Path] = set()
    for ext in extensions:
        files.update(p for p in folder_path.rglob(f"*{ext}") if p.is_file())
    return sorted(files)


def process_folder(
    folder_path: Path,
    write: bool,
    check: bool,
    diff: bool,
    config: Optional[Path],
    line_width: Optional[int],
    verbose: bool,
) -> list[FileStatus]:
    """Format every Markdown file in a folder, recursively."""
    extensions = get_settings().extension_list
    files = collect_files(folder_path, extensions)
    if not files:
        err_console.print(
            f"[yellow]No Markdown files found in {escape(str(folder_path))}[/yellow]\n"
            f"Extensions: {', '.join(extensions)}"
        )
        return []

    if verbose:
        err_console.print(f"[blue]Found {len(files)} file(s) to process[/blue]")

    statuses: list[FileStatus] = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Formatting files...", total=len(files))
        for file_path in files:
            progress.update(task, description=f"Formatting {file_path.name}...")
            statuses.append(
                process_file(file_path, write, check, diff, config, line_width, verbose)
            )
            progress.advance(task)
    return statuses


@app.command()
def main(
    paths: Optional[list[Path]] = typer.Argument(
        None,
        help="Files or folders to format; '-' or nothing reads standard input",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        "-w",
        help="Rewrite files in place",
    ),
    check: bool = typer.Option(
        False,
        "--check",
        "-c",
        help="Exit with status 1 if any file would be reformatted",
    ),
    diff: bool = typer.Option(
        False,
        "--diff",
        "-d",
        help="Print a unified diff of the changes",
    ),
    line_width: Optional[int] = typer.Option(
        None,
        "--line-width",
        "-l",
        min=1,
        help="Maximum line width (overrides configuration files)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="Configuration file to use instead of discovering .hongdown.toml",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Format Markdown files.

    Examples:

        hongdown README.md  # Print the formatted file

        hongdown --write docs/  # Format every Markdown file in place

        hongdown --check --diff README.md  # Show what would change

        cat README.md | hongdown -l 100
    """
    configure_logging(verbose)

    if not paths or paths == [Path("-")]:
        if write:
            err_console.print("[yellow]Warning:[/yellow] --write is ignored for standard input")
        status = process_stdin(check, diff, config, line_width)
        statuses = [status]
    else:
        statuses = []
        for path in paths:
            if path.is_dir():
                statuses.extend(
                    process_folder(path, write, check, diff, config, line_width, verbose)
                )
            else:
                statuses.append(
                    process_file(path, write, check, diff, config, line_width, verbose)
                )

    failed = statuses.count(FileStatus.FAILED)
    changed = statuses.count(FileStatus.CHANGED)
    if verbose or (check and changed):
        err_console.print(
            f"[bold]Complete:[/bold] {len(statuses)} checked, "
            f"{changed} changed, {failed} failed"
        )
    if failed or (check and changed):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
