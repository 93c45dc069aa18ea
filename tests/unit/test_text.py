"""Tests for whitespace normalisation."""

from __future__ import annotations

from localrag.text import normalize_whitespace


def test_none_and_blank_become_empty() -> None:
    assert normalize_whitespace(None) == ""
    assert normalize_whitespace("  \n\t \r\n ") == ""


def test_crlf_and_trailing_spaces() -> None:
    assert normalize_whitespace("a  \r\nb\t\r\n") == "a\nb"


def test_runs_of_blank_lines_collapse_to_one_blank_line() -> None:
    assert normalize_whitespace("a\n\n\n\n\nb") == "a\n\nb"


def test_spaces_and_tabs_collapse() -> None:
    assert normalize_whitespace("a \t  b") == "a b"


def test_idempotent() -> None:
    text = "  Title\r\n\r\n\r\n  body   text \t\nmore  "
    once = normalize_whitespace(text)
    assert normalize_whitespace(once) == once


def test_stray_carriage_return_before_newline_is_dropped() -> None:
    once = normalize_whitespace("a\r \r\nb")
    assert once == "a\nb"
    assert normalize_whitespace(once) == once


def test_idempotent_on_mixed_line_endings() -> None:
    for text in ["x\r\r\ny", "x \r\n\r \r\n\r\ny", "x\ry \t\r\n z", "\r\n\r\n a \r"]:
        once = normalize_whitespace(text)
        assert normalize_whitespace(once) == once
