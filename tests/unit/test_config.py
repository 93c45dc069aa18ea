"""Tests for localrag settings and RagConfig validation."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from localrag.config import (
    DEFAULT_EMBEDDING_BASE_URL,
    DEFAULT_EMBEDDING_MODEL,
    ConfigError,
    RagConfig,
    ensure_global_config,
    load_settings,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: object) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LOCALRAG_STORE_PATH",
        "LOCALRAG_EMBEDDING_BASE_URL",
        "LOCALRAG_EMBEDDING_MODEL",
        "LOCALRAG_LOG_LEVEL",
        "LOCALRAG_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# RagConfig
# ---------------------------------------------------------------------------


def test_rag_config_defaults() -> None:
    cfg = RagConfig()
    assert cfg.embedding_base_url == DEFAULT_EMBEDDING_BASE_URL
    assert cfg.embedding_model == DEFAULT_EMBEDDING_MODEL
    assert cfg.top_k == 6
    assert cfg.min_score == 0.18
    assert cfg.chunk_max_chars == 1400
    assert cfg.chunk_min_chars == 250
    assert cfg.chunk_overlap_chars == 250
    assert cfg.max_context_chars == 9000


def test_merged_applies_partial_without_mutating() -> None:
    cfg = RagConfig()
    merged = cfg.merged({"top_k": 3, "embedding_base_url": "http://localhost:9999/"})
    assert merged.top_k == 3
    assert merged.embedding_base_url == "http://localhost:9999"
    assert merged.min_score == cfg.min_score
    assert cfg.top_k == 6


def test_merged_skips_none_values() -> None:
    assert RagConfig().merged({"top_k": None}).top_k == 6


def test_merged_allows_zero_overlap() -> None:
    assert RagConfig().merged({"chunk_overlap_chars": 0}).chunk_overlap_chars == 0


@pytest.mark.parametrize(
    "partial",
    [
        {"top_k": 0},
        {"top_k": True},
        {"top_k": "many"},
        {"min_score": "high"},
        {"embedding_base_url": "ftp://host"},
        {"embedding_model": "   "},
        {"chunk_overlap_chars": -1},
        {"unknown_key": 1},
    ],
)
def test_merged_rejects_invalid(partial: dict) -> None:
    with pytest.raises(ConfigError):
        RagConfig().merged(partial)


def test_merged_is_all_or_nothing() -> None:
    cfg = RagConfig()
    with pytest.raises(ConfigError):
        cfg.merged({"top_k": 2, "max_context_chars": 0})
    assert cfg.top_k == 6


def test_from_dict_ignores_bad_fields() -> None:
    cfg = RagConfig.from_dict({"top_k": "x", "min_score": 0.5, "junk": 1})
    assert cfg.top_k == 6
    assert cfg.min_score == 0.5


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


def test_load_settings_defaults_no_file(tmp_path: Path) -> None:
    settings = load_settings(global_config_path=tmp_path / "missing" / "config.yaml")
    assert settings.log_level == "WARNING"
    assert settings.embedding.model == DEFAULT_EMBEDDING_MODEL
    assert settings.store_path.name == "rag-store.enc"


def test_load_settings_reads_yaml(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(
        cfg_path,
        {
            "store": {"path": str(tmp_path / "s.enc")},
            "embedding": {"base_url": "http://10.0.0.2:11434/", "model": "mxbai-embed-large"},
            "logging": {"level": "debug"},
        },
    )
    settings = load_settings(global_config_path=cfg_path)
    assert settings.store_path == tmp_path / "s.enc"
    assert settings.embedding.base_url == "http://10.0.0.2:11434"
    assert settings.log_level == "DEBUG"
    rag = settings.default_rag_config()
    assert rag.embedding_model == "mxbai-embed-large"


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"embedding": {"model": "from-yaml"}})
    monkeypatch.setenv("LOCALRAG_EMBEDDING_MODEL", "from-env")
    monkeypatch.setenv("LOCALRAG_STORE_PATH", str(tmp_path / "env.enc"))
    settings = load_settings(global_config_path=cfg_path)
    assert settings.embedding.model == "from-env"
    assert settings.store_path == tmp_path / "env.enc"


def test_invalid_log_level_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"logging": {"level": "LOUD"}})
    with pytest.raises(ConfigError, match="Invalid log level"):
        load_settings(global_config_path=cfg_path)


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, ["a", "b"])
    with pytest.raises(ConfigError, match="mapping"):
        load_settings(global_config_path=cfg_path)


def test_unknown_section_warns(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"retrieval": {"top_k": 3}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_settings(global_config_path=cfg_path)
    assert any("retrieval" in str(w.message) for w in caught)


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".localrag" / "config.yaml"
    result = ensure_global_config(target)
    assert result == target
    assert target.exists()
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["embedding"]["model"] == DEFAULT_EMBEDDING_MODEL


def test_ensure_global_config_keeps_existing(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("logging:\n  level: ERROR\n", encoding="utf-8")
    ensure_global_config(target)
    assert target.read_text(encoding="utf-8") == "logging:\n  level: ERROR\n"


def test_log_file_from_yaml_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"logging": {"level": "INFO", "file": str(tmp_path / "a.log")}})
    assert load_settings(global_config_path=cfg_path).log_file == tmp_path / "a.log"

    monkeypatch.setenv("LOCALRAG_LOG_FILE", str(tmp_path / "b.log"))
    assert load_settings(global_config_path=cfg_path).log_file == tmp_path / "b.log"


def test_log_file_unset_by_default(tmp_path: Path) -> None:
    assert load_settings(global_config_path=tmp_path / "missing.yaml").log_file is None
