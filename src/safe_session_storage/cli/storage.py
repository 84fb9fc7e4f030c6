"""CLI commands wrapping the safe filesystem layer."""

from __future__ import annotations

import asyncio
import importlib
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from safe_session_storage.fs.explorer import reveal_in_file_manager
from safe_session_storage.fs.models import Entry
from safe_session_storage.fs.walker import list_files
from safe_session_storage.fs.writer import AtomicWriter

app: TyperType = typer.Typer(help="Crash-safe file writes and resilient listings.")


PathArgument = Annotated[Path, typer.Argument(help="Target path.")]
ExtensionOption = Annotated[
    list[str] | None,
    typer.Option(
        "--ext",
        help="Only list files with this extension (>= 1 MiB). Repeatable.",
    ),
]
JsonFlag = Annotated[
    bool,
    typer.Option("--json", help="Emit JSON instead of a table."),
]
ContentOption = Annotated[
    str | None,
    typer.Option("--content", help="Content to write; read from stdin if omitted."),
]
NoHistoryFlag = Annotated[
    bool,
    typer.Option("--no-history", help="Publish by rename and keep no artifact."),
]


def _render_entries(entries: list[Entry], title: str) -> None:
    table = Table(title=title)
    table.add_column("Path")
    table.add_column("Ext")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for entry in entries:
        table.add_row(
            str(entry.path),
            entry.extension,
            str(entry.size),
            entry.modified.isoformat(timespec="seconds"),
        )
    Console().print(table)


def _emit_entries(entries: list[Entry], title: str, json_output: bool) -> None:
    if json_output:
        payload = [entry.model_dump(mode="json") for entry in entries]
        typer.echo(json.dumps(payload, indent=2))
        return
    _render_entries(entries, title)


def list_command(
    root: PathArgument,
    ext: ExtensionOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Recursively list files under ROOT."""

    entries = asyncio.run(list_files(root, extensions=ext))
    _emit_entries(entries, f"{len(entries)} files under {root}", json_output)


def write_command(
    path: PathArgument,
    content: ContentOption = None,
    no_history: NoHistoryFlag = False,
) -> None:
    """Atomically replace the content of PATH."""

    text = content if content is not None else sys.stdin.read()
    outcome = asyncio.run(
        AtomicWriter().write(path, text, keep_history=not no_history)
    )
    if not outcome.ok:
        typer.secho(f"Write failed: {outcome.reason}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"Wrote {path}", fg=typer.colors.GREEN)


def read_command(path: PathArgument) -> None:
    """Print the content of PATH."""

    content = asyncio.run(AtomicWriter().read(path))
    if content is None:
        typer.secho(f"No such file: {path}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(content, nl=False)


def history_command(path: PathArgument, json_output: JsonFlag = False) -> None:
    """List the retained write artifacts of PATH."""

    entries = asyncio.run(AtomicWriter().history(path))
    _emit_entries(entries, f"History of {path}", json_output)


def reveal_command(path: PathArgument) -> None:
    """Open the desktop file manager at PATH."""

    outcome = reveal_in_file_manager(path)
    if not outcome.ok:
        typer.secho(
            f"Could not open file manager: {outcome.reason}",
            err=True,
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)


def run_cli(args: Sequence[str] | None = None) -> None:
    app(args=args)


app.command("list")(list_command)
app.command("write")(write_command)
app.command("read")(read_command)
app.command("history")(history_command)
app.command("reveal")(reveal_command)
