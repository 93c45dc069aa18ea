"""Tests for localrag source commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from localrag.app import RagApp
from localrag.cli.main import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# source add / list
# ---------------------------------------------------------------------------


def test_list_empty() -> None:
    result = runner.invoke(app, ["source", "list"])
    assert result.exit_code == 0
    assert "No sources registered" in result.output


def test_add_folder_and_list(tmp_path: Path, seeded: RagApp) -> None:
    result = runner.invoke(
        app, ["source", "add", "--kind", "folder", "--path", str(tmp_path), "--label", "Docs"]
    )
    assert result.exit_code == 0, result.output
    assert "Added folder source" in result.output

    sources = seeded.list_sources()
    assert [s.label for s in sources] == ["Docs"]

    listed = runner.invoke(app, ["source", "list"])
    assert listed.exit_code == 0
    assert "Docs" in listed.output


def test_add_note_without_label_fails(seeded: RagApp) -> None:
    result = runner.invoke(app, ["source", "add", "--kind", "note", "--note", "text"])
    assert result.exit_code == 1
    assert "Missing label" in result.output
    assert seeded.list_sources() == []


def test_add_unknown_kind_fails() -> None:
    result = runner.invoke(app, ["source", "add", "--kind", "url", "--path", "x"])
    assert result.exit_code == 1
    assert "Invalid source kind" in result.output


def test_add_disabled(seeded: RagApp) -> None:
    result = runner.invoke(
        app, ["source", "add", "--kind", "note", "--label", "N", "--note", "x", "--disabled"]
    )
    assert result.exit_code == 0
    assert seeded.list_sources()[0].enabled is False


def test_add_without_encryption_fails(storage) -> None:
    storage.available = False
    result = runner.invoke(app, ["source", "add", "--kind", "note", "--label", "N"])
    assert result.exit_code == 1
    assert "Encryption is not available" in result.output


# ---------------------------------------------------------------------------
# source update
# ---------------------------------------------------------------------------


def test_update_note_warns_about_reindex(seeded: RagApp) -> None:
    src = seeded.add_source("note", label="Todo", note="old")
    result = runner.invoke(app, ["source", "update", src.id, "--note", "new", "--disable"])
    assert result.exit_code == 0, result.output
    assert "disabled" in result.output
    assert "localrag index" in result.output

    updated = seeded.list_sources()[0]
    assert updated.note == "new"
    assert updated.enabled is False


def test_update_unknown_source_exits_1() -> None:
    result = runner.invoke(app, ["source", "update", "src_nope", "--label", "x"])
    assert result.exit_code == 1
    assert "Source not found" in result.output


# ---------------------------------------------------------------------------
# source remove
# ---------------------------------------------------------------------------


def test_remove_not_found_exits_0() -> None:
    result = runner.invoke(app, ["source", "remove", "src_nope", "--yes"])
    assert result.exit_code == 0
    assert "Source not found" in result.output


def test_remove_cancelled(seeded: RagApp) -> None:
    src = seeded.add_source("note", label="Keep", note="x")
    result = runner.invoke(app, ["source", "remove", src.id], input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert len(seeded.list_sources()) == 1


def test_remove_cascades(seeded: RagApp) -> None:
    src = seeded.add_source("note", label="Gone", note="x")
    seeded.upsert_corpus("C", [src.id])
    result = runner.invoke(app, ["source", "remove", src.id, "--yes"])
    assert result.exit_code == 0
    assert "Removed: Gone" in result.output
    assert seeded.list_sources() == []
    assert seeded.list_corpora()[0].source_ids == []


def test_markup_in_labels_is_printed_literally(seeded: RagApp) -> None:
    seeded.add_source("note", label="[bold]x", note="text")
    seeded.upsert_corpus("[red]team")

    sources = runner.invoke(app, ["source", "list"])
    corpora = runner.invoke(app, ["corpus", "list"])

    assert "[bold]x" in sources.output
    assert "[red]team" in corpora.output
