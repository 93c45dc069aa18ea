"""Cosine similarity and top-K selection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

import numpy as np


class _Scored(Protocol):
    score: float


T = TypeVar("T", bound=_Scored)


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Normalised dot product of *a* and *b*.

    Returns 0.0 when either vector is missing, empty, non-numeric, of a
    different length than the other, or has zero magnitude.
    """
    if a is None or b is None or len(a) == 0 or len(a) != len(b):
        return 0.0
    try:
        va = np.asarray(a, dtype=np.float64)
        vb = np.asarray(b, dtype=np.float64)
    except (TypeError, ValueError):
        return 0.0
    if va.ndim != 1 or vb.ndim != 1:
        return 0.0

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0 or not np.isfinite(norm_a * norm_b):
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def top_k(items: Sequence[T], k: int) -> list[T]:
    """Return the *k* highest-scoring items, best first.

    Equal scores keep their input order (``sorted`` is stable). ``k <= 0``
    yields an empty list.
    """
    if k <= 0:
        return []
    return sorted(items, key=lambda item: item.score, reverse=True)[:k]
