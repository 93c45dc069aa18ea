"""Embedding client for the local embedding service (Ollama via LiteLLM).

``embed_texts`` sends one batched request per call and guarantees one
non-empty numeric vector per input text, in input order. Any other outcome
raises :class:`EmbeddingError`. No data leaves the machine unless the base
URL points elsewhere.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from numbers import Real

import litellm
from loguru import logger

from localrag.config import DEFAULT_EMBEDDING_BASE_URL

# (base_url, model, texts) -> vectors
EmbedFn = Callable[[str, str, Sequence[str]], list[list[float]]]


class EmbeddingError(Exception):
    """Raised when the embedding service fails or returns malformed vectors."""


def normalize_base_url(base_url: str | None) -> str:
    """Blank → default local URL; trailing slash removed."""
    url = str(base_url or "").strip() or DEFAULT_EMBEDDING_BASE_URL
    return url.rstrip("/")


def litellm_model_name(model: str) -> str:
    """Return the LiteLLM model string; bare names are routed to Ollama."""
    return model if "/" in model else f"ollama/{model}"


def embed_texts(base_url: str, model: str, texts: Sequence[str]) -> list[list[float]]:
    """Embed *texts* with *model* served at *base_url*.

    Args:
        base_url: Embedding service base URL (e.g. ``http://127.0.0.1:11434``).
        model: Embedding model name (``nomic-embed-text`` or ``provider/model``).
        texts: Ordered input strings.

    Returns:
        One vector per input text, same order.

    Raises:
        EmbeddingError: Service unreachable, error status, or malformed output.
    """
    items = [str(t or "") for t in texts]
    if not items:
        return []

    url = normalize_base_url(base_url)
    started = time.monotonic()
    try:
        response = litellm.embedding(
            model=litellm_model_name(model),
            input=items,
            api_base=url,
        )
    except Exception as exc:
        # LiteLLM surfaces transport and provider failures under many types.
        raise EmbeddingError(f"Embedding request to {url} ({model}) failed: {exc}") from exc

    vectors = _parse_vectors(response, expected=len(items), model=model)
    logger.debug(
        f"[Embedder] {len(items)} texts, dim={len(vectors[0])}, "
        f"{time.monotonic() - started:.2f}s"
    )
    return vectors


def _parse_vectors(response: object, expected: int, model: str) -> list[list[float]]:
    data = getattr(response, "data", None)
    if not isinstance(data, list) or len(data) != expected:
        got = len(data) if isinstance(data, list) else 0
        raise EmbeddingError(
            f"Embedding service returned {got} vectors for {expected} inputs ({model})."
        )

    vectors: list[list[float]] = []
    for i, item in enumerate(data):
        emb = item.get("embedding") if isinstance(item, dict) else getattr(item, "embedding", None)
        if (
            not isinstance(emb, list)
            or not emb
            or not all(isinstance(v, Real) and not isinstance(v, bool) for v in emb)
        ):
            raise EmbeddingError(f"Embedding service returned an invalid embedding for input {i}.")
        vectors.append([float(v) for v in emb])
    return vectors
