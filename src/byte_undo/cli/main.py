"""CLI entry point for Byte-Undo."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from byte_undo import __version__
from byte_undo.config import ConfigLoader
from byte_undo.core import ByteUndoError, get_logger, setup_logging
from byte_undo.undo.manager import ChangelogManager
from byte_undo.undo.models import describe_records

logger = get_logger("cli")

COMMANDS = ("undo", "redo", "status", "clear-redo")

USAGE = """Usage: byte-undo [OPTIONS] COMMAND FILE

Step through the on-disk edit history of FILE.

Commands:
  undo          Apply the newest undo entry, record a redo entry
  redo          Apply the newest redo entry, record an undo entry
  status        Show the changelog directories and entry counts
  clear-redo    Discard all pending redo entries

Options:
  --log-dir DIR     Undo changelog directory (default: derived from FILE)
  --log-file PATH   Also write a debug log to PATH
  --verbose         Show debug output on the console
  -v, --version     Show version and exit
  -h, --help        Show this message and exit

Environment Variables:
  BYTE_UNDO_LOG_LEVEL     Console log level, with optional per-component
                          overrides, e.g. "WARNING,undo.mutation=DEBUG"
  BYTE_UNDO_BUFFER_SIZE   Streaming buffer size in bytes
  BYTE_UNDO_MAX_CHUNKS    Chunk limit per streamed pass
"""


def print_help(console: Console) -> None:
    """Print help message."""
    console.print(USAGE, highlight=False, markup=False)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the byte-undo CLI.

    Returns:
        Exit code: 0 on success, 1 on error or nothing to do, 2 on usage error.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    console = Console()
    err_console = Console(stderr=True)

    if "--version" in args or "-v" in args:
        console.print(f"byte-undo {__version__}", highlight=False)
        return 0

    if "--help" in args or "-h" in args:
        print_help(console)
        return 0

    verbose = False
    log_dir: Path | None = None
    log_file: Path | None = None
    positional: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--log-dir", "--log-file"):
            if i + 1 >= len(args):
                err_console.print(f"[red]Error:[/red] {arg} requires a value")
                return 2
            value = Path(args[i + 1]).expanduser().absolute()
            if arg == "--log-dir":
                log_dir = value
            else:
                log_file = value
            i += 2
            continue
        if arg == "--verbose":
            verbose = True
        elif arg.startswith("-"):
            err_console.print(f"[red]Error:[/red] Unknown option: {arg}")
            err_console.print("Run 'byte-undo --help' for usage information.")
            return 2
        else:
            positional.append(arg)
        i += 1

    if len(positional) != 2 or positional[0] not in COMMANDS:
        err_console.print("[red]Error:[/red] Expected COMMAND FILE")
        err_console.print(f"Commands: {', '.join(COMMANDS)}")
        return 2

    command, file_arg = positional

    setup_logging(level=logging.DEBUG if verbose else None, log_file=log_file)

    try:
        config = ConfigLoader().config
        target = Path(file_arg).expanduser().absolute()
        manager = ChangelogManager(target, undo_dir=log_dir, config=config)
        return run_command(command, manager, console)
    except ByteUndoError as e:
        logger.debug("Command %s failed", command, exc_info=True)
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        return 1


def run_command(
    command: str,
    manager: ChangelogManager,
    console: Console,
) -> int:
    """Execute one CLI command against a manager."""
    if command == "undo":
        success, message = manager.undo()
    elif command == "redo":
        success, message = manager.redo()
    elif command == "clear-redo":
        removed = manager.clear_redo()
        console.print(f"Cleared {removed} redo entries", highlight=False)
        return 0
    else:
        print_status(manager, console)
        return 0

    if success:
        console.print(f"[green]{escape(message)}[/green]", highlight=False)
        return 0
    console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)
    return 1


def print_status(manager: ChangelogManager, console: Console) -> None:
    """Render the history state of a file as a table."""
    table = Table(title=str(manager.target), show_header=True)
    table.add_column("Stack")
    table.add_column("Directory")
    table.add_column("Entries", justify="right")
    table.add_column("Next")

    for label, directory, count, records in (
        ("undo", manager.undo_dir, manager.undo_count, manager.peek_undo()),
        ("redo", manager.redo_dir, manager.redo_count, manager.peek_redo()),
    ):
        next_entry = describe_records(records) if records else "-"
        table.add_row(label, str(directory), str(count), next_entry)

    console.print(table)


if __name__ == "__main__":
    sys.exit(main())
