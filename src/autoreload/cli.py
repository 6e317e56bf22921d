"""Command-line interface for autoreload."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autoreload import __version__
from autoreload.config import Config, load_config
from autoreload.errors import SharingViolation, StorageError
from autoreload.logging import setup_logging, shutdown_logging
from autoreload.ports import StaticRegistrationSource
from autoreload.reloader import AutoReloader
from autoreload.watching.fingerprint import Fingerprinter
from autoreload.watching.storage import LocalStorage

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="autoreload",
        description="Watch files for content changes by polling",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        type=int,
        choices=range(5),
        help="Log verbosity, 0 (errors) to 4 (trace)",
    )
    parser.add_argument(
        "--project",
        type=Path,
        help="Project directory holding .autoreload/config.yaml",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    watch_parser = subparsers.add_parser(
        "watch",
        help="Print each change to the given files until interrupted",
    )
    watch_parser.add_argument(
        "paths",
        nargs="*",
        help="Files to watch (added to watch.paths from config)",
    )
    watch_parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between polls",
    )
    watch_parser.add_argument(
        "--check-interval",
        type=float,
        help="Minimum seconds between reads of one file",
    )

    fingerprint_parser = subparsers.add_parser(
        "fingerprint",
        help="Print the content fingerprint of files",
    )
    fingerprint_parser.add_argument("paths", nargs="+", help="Files to fingerprint")

    return parser


def _load(parsed: argparse.Namespace) -> Config:
    config = load_config(project_root=str(parsed.project) if parsed.project else None)
    if parsed.verbose is not None:
        config = replace(config, logging=replace(config.logging, verbose=parsed.verbose))
    setup_logging(config.logging)
    return config


async def run_watch(config: Config, paths: list[str]) -> int:
    """Watch paths, printing changes until cancelled."""

    def on_reload(name: str, path: str) -> None:
        console.print(f"[green]changed[/green] {escape(path)}")

    source = StaticRegistrationSource({p: p for p in paths}, on_reload=on_reload)
    reloader = AutoReloader(config=replace(config.watch, enabled_by_default=True))

    async with reloader.watching(source) as running:
        count = len(running.watch_set) if running.watch_set is not None else 0
        console.print(f"Watching [bold]{count}[/bold] files. Press Ctrl+C to stop.")
        await asyncio.Event().wait()
    return 0


def run_fingerprint(config: Config, paths: list[str]) -> int:
    """Print a fingerprint table; returns 1 if any file could not be read."""
    storage = LocalStorage()
    fingerprinter = Fingerprinter(config.watch.algorithm)

    table = Table(title=f"Fingerprints ({fingerprinter.algorithm})")
    table.add_column("Path")
    table.add_column("Fingerprint", no_wrap=True)

    status = 0
    for path in paths:
        try:
            value = fingerprinter(storage.read_all_bytes(storage.normalize_path(path)))
        except SharingViolation:
            value = "[yellow]locked[/yellow]"
            status = 1
        except StorageError as e:
            value = f"[red]{escape(str(e.cause or e))}[/red]"
            status = 1
        table.add_row(escape(path), value)

    console.print(table)
    return status


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    config = _load(parsed)
    try:
        return _dispatch(parser, parsed, config)
    finally:
        shutdown_logging()


def _dispatch(parser: argparse.ArgumentParser, parsed: argparse.Namespace, config: Config) -> int:
    if parsed.command == "watch":
        overrides: dict[str, float] = {}
        if parsed.interval is not None:
            overrides["poll_interval"] = parsed.interval
        if parsed.check_interval is not None:
            overrides["check_interval"] = parsed.check_interval
        watch = replace(config.watch, **overrides)
        config = replace(config, watch=watch)
        paths = list(parsed.paths) + [p for p in watch.paths if p not in parsed.paths]
        if not paths:
            console.print("[red]No files to watch[/red]")
            return 1
        try:
            return asyncio.run(run_watch(config, paths))
        except KeyboardInterrupt:
            console.print("Stopped.")
            return 0
    elif parsed.command == "fingerprint":
        try:
            return run_fingerprint(config, parsed.paths)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            return 1
    else:
        parser.print_help()
        return 1
