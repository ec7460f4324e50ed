"""Template normalization and similarity scoring.

Templates are compared by dot product, which equals cosine similarity once
both vectors have unit length. ``normalize`` is therefore applied to every
template the pipeline hands out.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from face_r300.errors import TemplateDimensionMismatch

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from face_r300.core.types import FaceTemplate

DEFAULT_THRESHOLD: float = 0.6


def norm(vector: NDArray[np.floating] | Sequence[float]) -> float:
    """Return the Euclidean (L2) norm of a vector."""
    values = np.asarray(vector, dtype=np.float64)
    return math.sqrt(float(np.dot(values, values)))


def normalize(vector: NDArray[np.floating] | list[float]) -> None:
    """Scale a vector to unit length in place.

    A vector whose norm is zero or NaN is left unchanged.
    """
    n = norm(vector)
    if not n > 0:
        return
    inv = 1.0 / n
    if isinstance(vector, np.ndarray):
        vector *= inv
    else:
        vector[:] = [value * inv for value in vector]


def compare(reference: FaceTemplate, candidates: Sequence[FaceTemplate]) -> list[float]:
    """Score each candidate against the reference.

    All templates must already be L2-normalized. Scores are dot products
    clamped to [0.0, 1.0] and are returned in candidate order.

    Raises:
        TemplateDimensionMismatch: If a candidate's length differs from the reference.
    """
    expected = len(reference.data)
    scores: list[float] = []
    for candidate in candidates:
        if len(candidate.data) != expected:
            raise TemplateDimensionMismatch(expected, len(candidate.data))
        dot = float(np.dot(reference.data, candidate.data))
        scores.append(min(max(dot, 0.0), 1.0))
    return scores


def verify(reference: FaceTemplate, candidate: FaceTemplate, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """Return True if the candidate's similarity to the reference reaches the threshold."""
    return compare(reference, [candidate])[0] >= threshold
