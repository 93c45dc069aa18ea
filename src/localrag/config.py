"""localrag configuration.

Two layers live here:

* ``Settings``: process-wide settings read from YAML and the environment.
  Priority (high → low):
    1. CLI flags           (handled at call site, not in this module)
    2. Environment variables  (LOCALRAG_STORE_PATH, LOCALRAG_EMBEDDING_*, LOCALRAG_LOG_LEVEL)
    3. Global ~/.localrag/config.yaml
    4. Hardcoded defaults
* ``RagConfig``: retrieval/chunking/embedding parameters persisted inside the
  encrypted store. Defaulted on first use, changed by partial merges.

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".localrag"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_DEFAULT_STORE_PATH: Path = _GLOBAL_CONFIG_DIR / "rag-store.enc"

DEFAULT_EMBEDDING_BASE_URL = "http://127.0.0.1:11434"
DEFAULT_EMBEDDING_MODEL = "nomic-embed-text"

_KNOWN_SECTIONS: frozenset[str] = frozenset(["store", "embedding", "logging"])
_LOG_LEVELS: frozenset[str] = frozenset(
    ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file or a config update contains an invalid value."""


# ---------------------------------------------------------------------------
# In-store retrieval configuration
# ---------------------------------------------------------------------------


@dataclass
class RagConfig:
    """Retrieval configuration persisted alongside the store.

    Attributes:
        embedding_base_url: Base URL of the local embedding service (Ollama).
        embedding_model: Embedding model name as known to the service.
        top_k: Maximum number of chunks kept after scoring.
        min_score: Chunks with a cosine similarity below this are dropped.
        chunk_max_chars: Soft upper bound of a chunk before overlap.
        chunk_min_chars: Buffers shorter than this absorb the next paragraph.
        chunk_overlap_chars: Tail of the previous chunk prefixed to the next one.
        max_context_chars: Character budget of the assembled context.
    """

    embedding_base_url: str = DEFAULT_EMBEDDING_BASE_URL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    top_k: int = 6
    min_score: float = 0.18
    chunk_max_chars: int = 1400
    chunk_min_chars: int = 250
    chunk_overlap_chars: int = 250
    max_context_chars: int = 9000

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RagConfig:
        """Build a config from a stored mapping, defaulting missing or bad fields."""
        cfg = cls()
        if not isinstance(data, dict):
            return cfg
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                value = _coerce_field(f.name, data[f.name])
            except ConfigError:
                continue
            setattr(cfg, f.name, value)
        return cfg

    def merged(self, partial: dict[str, Any]) -> RagConfig:
        """Return a copy with *partial* applied.

        Every key is validated before anything is applied, so a bad value
        leaves the caller's config untouched.

        Raises:
            ConfigError: Unknown key or invalid value.
        """
        known = {f.name for f in fields(self)}
        updates: dict[str, Any] = {}
        for key, raw in partial.items():
            if key not in known:
                raise ConfigError(f"Unknown config key '{key}'.")
            if raw is None:
                continue
            updates[key] = _coerce_field(key, raw)
        return replace(self, **updates)


_INT_MINIMUMS: dict[str, int] = {
    "top_k": 1,
    "chunk_max_chars": 1,
    "chunk_min_chars": 1,
    "chunk_overlap_chars": 0,
    "max_context_chars": 1,
}


def _coerce_field(name: str, raw: Any) -> Any:
    """Convert and validate a single RagConfig value."""
    if name == "embedding_base_url":
        url = str(raw).strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ConfigError(
                f"embedding_base_url must be an http(s) URL, got '{raw}'.\n"
                f"  Example: {DEFAULT_EMBEDDING_BASE_URL}"
            )
        return url
    if name == "embedding_model":
        model = str(raw).strip()
        if not model:
            raise ConfigError("embedding_model must not be empty.")
        return model
    if name == "min_score":
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"min_score must be a number, got {raw!r}.") from None
    if isinstance(raw, bool):
        raise ConfigError(f"{name} must be an integer, got {raw!r}.")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from None
    minimum = _INT_MINIMUMS[name]
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}.")
    return value


# ---------------------------------------------------------------------------
# Process settings
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingSettings:
    """Defaults for a freshly created store (config.yaml: embedding:)."""

    base_url: str = DEFAULT_EMBEDDING_BASE_URL
    model: str = DEFAULT_EMBEDDING_MODEL


@dataclass
class Settings:
    """Root settings object, built by load_settings() from YAML + env vars."""

    store_path: Path = _DEFAULT_STORE_PATH
    log_level: str = "WARNING"
    log_file: Path | None = None
    embedding: EmbeddingSettings = field(default_factory=EmbeddingSettings)

    def default_rag_config(self) -> RagConfig:
        """RagConfig used when a store is created for the first time."""
        return RagConfig(
            embedding_base_url=self.embedding.base_url,
            embedding_model=self.embedding.model,
        )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate_log_level(level: str) -> str:
    upper = level.strip().upper()
    if upper not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level '{level}'. Use one of: {', '.join(sorted(_LOG_LEVELS))}."
        )
    return upper


def _settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build *Settings* from a raw YAML dict."""
    settings = Settings()

    if "store" in data:
        s = data["store"] or {}
        if s.get("path"):
            settings.store_path = Path(str(s["path"])).expanduser()

    if "embedding" in data:
        e = data["embedding"] or {}
        settings.embedding = EmbeddingSettings(
            base_url=_coerce_field(
                "embedding_base_url", e.get("base_url", settings.embedding.base_url)
            ),
            model=_coerce_field("embedding_model", e.get("model", settings.embedding.model)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        settings.log_level = _validate_log_level(str(lg.get("level", settings.log_level)))
        if lg.get("file"):
            settings.log_file = Path(str(lg["file"])).expanduser()

    return settings


def _apply_env_overrides(settings: Settings) -> Settings:
    """Apply LOCALRAG_* environment variable overrides."""
    if path := os.environ.get("LOCALRAG_STORE_PATH"):
        settings.store_path = Path(path).expanduser()
    if url := os.environ.get("LOCALRAG_EMBEDDING_BASE_URL"):
        settings.embedding.base_url = _coerce_field("embedding_base_url", url)
    if model := os.environ.get("LOCALRAG_EMBEDDING_MODEL"):
        settings.embedding.model = _coerce_field("embedding_model", model)
    if level := os.environ.get("LOCALRAG_LOG_LEVEL"):
        settings.log_level = _validate_log_level(level)
    if log_file := os.environ.get("LOCALRAG_LOG_FILE"):
        settings.log_file = Path(log_file).expanduser()
    return settings


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_settings(global_config_path: Path | None = None) -> Settings:
    """Load and return merged *Settings*.

    Args:
        global_config_path: Override the global config path (for testing).

    Returns:
        Settings with env var overrides applied.

    Raises:
        ConfigError: If the YAML is not a mapping or contains an invalid value.
    """
    path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH

    raw: dict[str, Any] = {}
    if path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
        _warn_unknown_keys(loaded, path)
        raw = loaded

    settings = _settings_from_dict(raw)
    return _apply_env_overrides(settings)


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Create ``~/.localrag/config.yaml`` with defaults if it does not exist.

    Creates the parent directory with mode 0o700 and the file with mode 0o600.

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# localrag global configuration.\n"
            "# Embedding defaults apply to newly created stores only;\n"
            "# use 'localrag config set' to change an existing store.\n"
            "\n"
            "store:\n"
            f"  path: {_DEFAULT_STORE_PATH}\n"
            "\n"
            "embedding:\n"
            f"  base_url: {DEFAULT_EMBEDDING_BASE_URL}\n"
            f"  model: {DEFAULT_EMBEDDING_MODEL}\n"
            "\n"
            "logging:\n"
            "  level: WARNING\n"
            "  # file: ~/.localrag/localrag.log\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
