"""localrag corpus and selection commands.

Commands:
  localrag corpus list
  localrag corpus upsert --name Research --source src_a --source src_b [--id corpus_x]
  localrag corpus remove <id> [--yes]      cascade: thread selections
  localrag select get <thread-id>
  localrag select set <thread-id> --corpus corpus_x [--corpus corpus_y]
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from localrag.cli.context import StoreOption, build_app, cli_errors, console
from localrag.cli.errors import err_corpus_not_found

corpus_app = typer.Typer(
    name="corpus",
    help="Manage corpora (named groups of sources).",
    add_completion=False,
)

select_app = typer.Typer(
    name="select",
    help="Choose the corpora a conversation thread retrieves from.",
    add_completion=False,
)


@corpus_app.command("list")
def corpus_list_cmd(store: StoreOption = None) -> None:
    """List all corpora by name."""
    app = build_app(store)
    corpora = app.list_corpora()

    if not corpora:
        console.print(
            "[yellow]No corpora defined.[/]\n"
            "  Run:  localrag corpus upsert --name <name> --source <source-id>"
        )
        raise typer.Exit(0)

    table = Table(title="Corpora", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Sources", justify="right")

    for corpus in corpora:
        table.add_row(corpus.id, escape(corpus.name), str(len(corpus.source_ids)))
    console.print(table)


@corpus_app.command("upsert")
def corpus_upsert_cmd(
    name: Annotated[str, typer.Option("--name", "-n", help="Corpus name.")],
    source: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="Source id (repeatable)."),
    ] = None,
    corpus_id: Annotated[
        str | None,
        typer.Option("--id", help="Existing corpus id to update."),
    ] = None,
    store: StoreOption = None,
) -> None:
    """Create a corpus, or replace the name and sources of an existing one."""
    app = build_app(store)
    with cli_errors():
        corpus = app.upsert_corpus(name, source_ids=source or [], corpus_id=corpus_id)

    console.print(
        f"[green]✓[/] Corpus [bold]{escape(corpus.name)}[/] ({corpus.id}): "
        f"{len(corpus.source_ids)} sources"
    )


@corpus_app.command("remove")
def corpus_remove_cmd(
    corpus_id: Annotated[str, typer.Argument(help="Corpus id.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    store: StoreOption = None,
) -> None:
    """Remove a corpus and drop it from every thread selection."""
    app = build_app(store)
    existing = next((c for c in app.list_corpora() if c.id == corpus_id), None)
    if existing is None:
        console.print(err_corpus_not_found(corpus_id))
        raise typer.Exit(0)

    if not yes:
        if not typer.confirm(f"Remove corpus '{existing.name}'?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    with cli_errors():
        app.delete_corpus(corpus_id)
    console.print(f"[green]✓[/] Removed corpus: {escape(existing.name)}")


@select_app.command("get")
def select_get_cmd(
    thread_id: Annotated[str, typer.Argument(help="Conversation thread id.")],
    store: StoreOption = None,
) -> None:
    """Show the corpora selected for a thread."""
    app = build_app(store)
    corpus_ids = app.get_selection(thread_id)
    if not corpus_ids:
        console.print(f"[dim]No corpora selected for thread '{thread_id}'.[/]")
        return
    for cid in corpus_ids:
        console.print(cid)


@select_app.command("set")
def select_set_cmd(
    thread_id: Annotated[str, typer.Argument(help="Conversation thread id.")],
    corpus: Annotated[
        list[str] | None,
        typer.Option("--corpus", "-c", help="Corpus id (repeatable). Omit to clear."),
    ] = None,
    store: StoreOption = None,
) -> None:
    """Overwrite the corpora selected for a thread."""
    app = build_app(store)
    with cli_errors():
        selection = app.set_selection(thread_id, corpus or [])
    console.print(
        f"[green]✓[/] Thread '{thread_id}': {len(selection.corpus_ids)} corpora selected"
    )
