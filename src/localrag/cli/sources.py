"""localrag source commands.

Commands:
  localrag source list                         show all registered sources
  localrag source add --kind folder --path ~/notes
  localrag source add --kind note --label Todo --note "..."
  localrag source update <id> [--label] [--enable/--disable] [--note]
  localrag source remove <id> [--yes]          cascade: corpora + index
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from localrag.cli.context import StoreOption, build_app, cli_errors, console
from localrag.cli.errors import err_source_not_found, warn_reindex_needed

source_app = typer.Typer(
    name="source",
    help="Manage sources (files, folders, notes).",
    add_completion=False,
)


def _fmt_ts(ms: int) -> str:
    if not ms:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


@source_app.command("list")
def source_list_cmd(store: StoreOption = None) -> None:
    """List all sources, most recently updated first."""
    app = build_app(store)
    sources = app.list_sources()

    if not sources:
        console.print(
            "[yellow]No sources registered.[/]\n"
            "  Run:  localrag source add --kind folder --path <dir>"
        )
        raise typer.Exit(0)

    table = Table(title="Sources", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Kind")
    table.add_column("Label", style="bold")
    table.add_column("Path")
    table.add_column("Enabled")
    table.add_column("Updated")

    for src in sources:
        table.add_row(
            src.id,
            src.kind,
            escape(src.label),
            escape(src.path or ""),
            "[green]✓[/]" if src.enabled else "[yellow]✗[/]",
            _fmt_ts(src.updated_at),
        )
    console.print(table)


@source_app.command("add")
def source_add_cmd(
    kind: Annotated[
        str,
        typer.Option("--kind", "-k", help="Source kind: file, folder or note."),
    ] = "file",
    path: Annotated[
        str,
        typer.Option("--path", "-p", help="File or folder path (file/folder sources)."),
    ] = "",
    label: Annotated[
        str,
        typer.Option("--label", "-l", help="Display label (required for notes)."),
    ] = "",
    note: Annotated[
        str,
        typer.Option("--note", help="Note text (note sources)."),
    ] = "",
    disabled: Annotated[
        bool,
        typer.Option("--disabled", help="Register the source disabled."),
    ] = False,
    store: StoreOption = None,
) -> None:
    """Register a new source."""
    app = build_app(store)
    with cli_errors():
        src = app.add_source(kind, label=label, path=path, note=note, enabled=not disabled)

    console.print(f"[green]✓[/] Added {src.kind} source [bold]{escape(src.label)}[/] ({src.id})")
    console.print(f"  Index it with:  localrag index {src.id}")


@source_app.command("update")
def source_update_cmd(
    source_id: Annotated[str, typer.Argument(help="Source id.")],
    label: Annotated[
        str | None,
        typer.Option("--label", "-l", help="New display label."),
    ] = None,
    enabled: Annotated[
        bool | None,
        typer.Option("--enable/--disable", help="Enable or disable the source."),
    ] = None,
    note: Annotated[
        str | None,
        typer.Option("--note", help="New note text (note sources only)."),
    ] = None,
    store: StoreOption = None,
) -> None:
    """Update a source's label, enabled flag or note text."""
    app = build_app(store)
    with cli_errors():
        src = app.update_source(source_id, label=label, enabled=enabled, note=note)

    state = "enabled" if src.enabled else "disabled"
    console.print(f"[green]✓[/] Updated [bold]{escape(src.label)}[/] ({state})")
    if note is not None and src.kind == "note":
        console.print(warn_reindex_needed())


@source_app.command("remove")
def source_remove_cmd(
    source_id: Annotated[str, typer.Argument(help="Source id.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    store: StoreOption = None,
) -> None:
    """Remove a source, its index entry and its corpus memberships."""
    app = build_app(store)
    existing = next((s for s in app.list_sources() if s.id == source_id), None)
    if existing is None:
        console.print(err_source_not_found(source_id))
        raise typer.Exit(0)

    console.print(f"\nRemove source: [bold]{escape(existing.label)}[/] ({existing.kind})")
    if not yes:
        if not typer.confirm("Confirm removal?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    with cli_errors():
        app.delete_source(source_id)
    console.print(f"[green]✓[/] Removed: {escape(existing.label)}")
