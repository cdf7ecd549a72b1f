"""Vector similarity calculations.

Pure functions over equal-length vectors; no state is kept. Inputs may be
lists, tuples or numpy arrays and are compared in float64.
"""

from typing import Sequence, Union

import numpy as np

from ..common.errors import VectorDimensionError

VectorLike = Union[Sequence[float], np.ndarray]


def _as_pair(a: VectorLike, b: VectorLike):
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape[0] != vb.shape[0]:
        raise VectorDimensionError(va.shape[0], vb.shape[0])
    return va, vb


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Returns 0.0 when either vector has zero magnitude.
    """
    va, vb = _as_pair(a, b)
    magnitude_a = float(np.sqrt(np.dot(va, va)))
    magnitude_b = float(np.sqrt(np.dot(vb, vb)))
    if magnitude_a == 0.0 or magnitude_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (magnitude_a * magnitude_b))


def dot_product(a: VectorLike, b: VectorLike) -> float:
    va, vb = _as_pair(a, b)
    return float(np.dot(va, vb))


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    va, vb = _as_pair(a, b)
    difference = va - vb
    return float(np.sqrt(np.dot(difference, difference)))


class VectorSimilarityCalculator:
    """Injectable facade over the similarity functions."""

    def cosine_similarity(self, a: VectorLike, b: VectorLike) -> float:
        return cosine_similarity(a, b)

    def dot_product(self, a: VectorLike, b: VectorLike) -> float:
        return dot_product(a, b)

    def euclidean_distance(self, a: VectorLike, b: VectorLike) -> float:
        return euclidean_distance(a, b)
