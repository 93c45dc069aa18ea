"""localrag status: index overview, sources and corpora."""

from __future__ import annotations

from datetime import datetime

from rich.panel import Panel

from localrag.cli.context import StoreOption, build_app, console


def status_cmd(store: StoreOption = None) -> None:
    """Show index statistics for the store."""
    app = build_app(store)
    status = app.status()
    sources = app.list_sources()
    corpora = app.list_corpora()
    cfg = app.get_config()

    enabled = sum(1 for s in sources if s.enabled)
    last = (
        datetime.fromtimestamp(status.updated_at / 1000).strftime("%Y-%m-%d %H:%M")
        if status.updated_at
        else "never"
    )

    lines = [
        f"Store:     {app.store_path}",
        f"Sources:   [bold]{len(sources)}[/] ({enabled} enabled)  |  "
        f"Corpora: [bold]{len(corpora)}[/]",
        f"Indexed:   [bold]{status.sources_indexed}[/] sources  |  "
        f"Chunks: [bold]{status.chunks:,}[/]",
        f"Updated:   {last}",
        f"Embedding: {cfg.embedding_model} @ {cfg.embedding_base_url}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Knowledge Base[/]", expand=False))

    if sources and not status.chunks:
        console.print("  [dim]Nothing indexed yet. Run:  localrag index --all[/]")
