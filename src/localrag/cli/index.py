"""localrag index: (re)embed sources into the encrypted store.

Unchanged files (same mtime and size) are skipped; notes are always
re-embedded. Per-file failures are listed but do not fail the command.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from localrag.cli.context import StoreOption, build_app, cli_errors, console
from localrag.cli.errors import err_no_sources_to_index
from localrag.ingest.indexer import IndexFailure


def index_cmd(
    source_ids: Annotated[
        list[str] | None,
        typer.Argument(help="Source ids to index."),
    ] = None,
    all_sources: Annotated[
        bool,
        typer.Option("--all", "-a", help="Index every enabled source."),
    ] = False,
    store: StoreOption = None,
) -> None:
    """Index sources: chunk, embed and store their text."""
    ids = source_ids or []
    if not ids and not all_sources:
        console.print(err_no_sources_to_index())
        raise typer.Exit(1)

    app = build_app(store)
    with cli_errors():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("Indexing…", total=None)
            run = app.index_all() if all_sources else app.index_sources(ids)

    result = run.result
    console.print(
        f"[green]✓[/] {result.indexed} chunks indexed  |  "
        f"{result.skipped} unchanged files skipped  |  "
        f"{len(result.errors)} errors"
    )
    if result.errors:
        _print_errors(result.errors)

    status = run.status
    console.print(
        f"  [dim]Index: {status.sources_indexed} sources, {status.chunks:,} chunks[/]"
    )


def _print_errors(errors: list[IndexFailure]) -> None:
    table = Table(title="Errors", show_header=True, header_style="bold red")
    table.add_column("Item")
    table.add_column("Error")
    for err in errors:
        item = err.file_path or (f"source {err.source_id}" if err.source_id else "-")
        table.add_row(escape(item), escape(err.error))
    console.print(table)
