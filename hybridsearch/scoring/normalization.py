"""Score normalization for combining heterogeneous scoring systems.

BM25 scores are unbounded while cosine similarities live in [-1, 1]; the
normalizer rescales a result list's raw scores so the two become comparable.
Input order is preserved: output ``i`` corresponds to input ``i``.
"""

from enum import Enum
from typing import List, Sequence, Union

import numpy as np
import structlog

logger = structlog.get_logger("hybridsearch.normalization")

# Standard deviations below this are treated as zero.
ZSCORE_EPSILON = 1e-12


class NormalizationStrategy(Enum):
    """Score normalization strategies."""
    MIN_MAX = "MinMax"
    Z_SCORE = "ZScore"
    NONE = "None"

    @classmethod
    def parse(cls, value: Union["NormalizationStrategy", str]) -> "NormalizationStrategy":
        """Resolve an enum member from a member, value or name (case-insensitive).

        Raises ``ValueError`` for unknown strategies.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().replace("-", "_").lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower(), member.name.lower().replace("_", "")):
                return member
        raise ValueError(f"Unknown normalization strategy: {value}")


def normalize_min_max(scores: Sequence[float]) -> List[float]:
    """Rescale to [0, 1]; all-equal input maps to 1.0 everywhere."""
    if len(scores) == 0:
        return []
    values = np.asarray(scores, dtype=np.float64)
    min_s = values.min()
    max_s = values.max()
    if max_s - min_s == 0:
        return [1.0] * len(values)
    return ((values - min_s) / (max_s - min_s)).tolist()


def normalize_z_score(scores: Sequence[float]) -> List[float]:
    """Standardize with the population stddev; ~0 stddev maps to 0.0 everywhere."""
    if len(scores) == 0:
        return []
    values = np.asarray(scores, dtype=np.float64)
    mean_s = values.mean()
    std_s = values.std()
    if std_s < ZSCORE_EPSILON:
        return [0.0] * len(values)
    return ((values - mean_s) / std_s).tolist()


def normalize_scores(
    scores: Sequence[float],
    strategy: Union[NormalizationStrategy, str] = NormalizationStrategy.MIN_MAX,
) -> List[float]:
    """Normalize ``scores`` with the selected strategy.

    Args:
        scores: Raw scores in result-list order (not necessarily sorted)
        strategy: ``MinMax``, ``ZScore`` or ``None``

    Returns:
        Normalized scores in the same order. Unrecognised strategies leave the
        scores untouched.
    """
    if len(scores) == 0:
        return []

    try:
        resolved = NormalizationStrategy.parse(strategy)
    except ValueError:
        logger.warning("Unknown normalization strategy, using raw scores", strategy=str(strategy))
        return [float(s) for s in scores]

    if resolved is NormalizationStrategy.MIN_MAX:
        return normalize_min_max(scores)
    if resolved is NormalizationStrategy.Z_SCORE:
        return normalize_z_score(scores)
    return [float(s) for s in scores]
