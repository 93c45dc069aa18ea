"""Tests for file discovery and text extraction."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pypdf.errors import PdfReadError

from localrag.ingest.loader import (
    ExtractionError,
    build_doc_id,
    detect_kind,
    extract_text,
    is_supported_file,
    list_files,
    stat_or_none,
)


def _touch(path: Path, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("name", "supported", "kind"),
    [
        ("a.txt", True, "txt"),
        ("a.MD", True, "md"),
        ("a.markdown", True, "md"),
        ("a.pdf", True, "pdf"),
        ("a.docx", False, "txt"),
        ("README", False, "txt"),
    ],
)
def test_supported_and_kind(name: str, supported: bool, kind: str) -> None:
    assert is_supported_file(name) is supported
    assert detect_kind(name) == kind


def test_list_files_recursive_sorted_and_filtered(tmp_path: Path) -> None:
    _touch(tmp_path / "b.txt")
    _touch(tmp_path / "a.md")
    _touch(tmp_path / "image.png")
    _touch(tmp_path / ".hidden.txt")
    _touch(tmp_path / ".git" / "config.txt")
    _touch(tmp_path / "sub" / "c.pdf")

    files = list_files(tmp_path)
    assert files == [
        str(tmp_path / "a.md"),
        str(tmp_path / "b.txt"),
        str(tmp_path / "sub" / "c.pdf"),
    ]


def test_list_files_respects_max(tmp_path: Path) -> None:
    for i in range(5):
        _touch(tmp_path / f"{i}.txt")
    assert len(list_files(tmp_path, max_files=3)) == 3
    assert list_files(tmp_path, max_files=0) == []


def test_list_files_missing_folder(tmp_path: Path) -> None:
    assert list_files(tmp_path / "nope") == []


def test_stat_or_none(tmp_path: Path) -> None:
    f = _touch(tmp_path / "a.txt", "hello")
    st = stat_or_none(f)
    assert st is not None
    assert st.size == 5
    assert st.is_file is True
    assert stat_or_none(tmp_path / "missing.txt") is None


def test_build_doc_id_uses_resolved_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _touch(tmp_path / "a.txt")
    monkeypatch.chdir(tmp_path)
    assert build_doc_id("src_1", "a.txt") == f"src_1::{(tmp_path / 'a.txt').resolve()}"


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def test_extract_text_file(tmp_path: Path) -> None:
    f = _touch(tmp_path / "a.md", "# Title\n\nBody")
    assert extract_text(f) == "# Title\n\nBody"


def test_extract_text_replaces_bad_bytes(tmp_path: Path) -> None:
    f = tmp_path / "a.txt"
    f.write_bytes(b"ok \xff\xfe end")
    text = extract_text(f)
    assert text.startswith("ok ")
    assert text.endswith(" end")


def test_extract_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError):
        extract_text(tmp_path / "missing.txt")


def test_extract_pdf_joins_non_empty_pages(tmp_path: Path) -> None:
    pages = [MagicMock(), MagicMock(), MagicMock()]
    pages[0].extract_text.return_value = " Page one "
    pages[1].extract_text.return_value = "   "
    pages[2].extract_text.return_value = "Page three"
    reader = MagicMock(pages=pages)

    with patch("localrag.ingest.loader.pypdf.PdfReader", return_value=reader):
        assert extract_text(tmp_path / "doc.pdf") == "Page one\n\nPage three"


def test_extract_pdf_parse_error_raises(tmp_path: Path) -> None:
    with patch(
        "localrag.ingest.loader.pypdf.PdfReader", side_effect=PdfReadError("broken")
    ):
        with pytest.raises(ExtractionError, match="broken"):
            extract_text(tmp_path / "doc.pdf")


def test_list_files_does_not_follow_symlinks(tmp_path: Path) -> None:
    root = tmp_path / "docs"
    _touch(root / "a.txt")
    outside = _touch(tmp_path / "elsewhere" / "secret.txt")
    (root / "loop").symlink_to(root, target_is_directory=True)
    (root / "ext").symlink_to(outside.parent, target_is_directory=True)
    (root / "link.txt").symlink_to(outside)

    assert list_files(root) == [str(root / "a.txt")]
