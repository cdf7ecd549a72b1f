"""Reranking strategy identifiers for rank fusion."""

from enum import Enum
from typing import Union

import structlog

logger = structlog.get_logger("hybridsearch.fusion")


class RerankingStrategy(Enum):
    """Rank fusion strategies for combining lexical and semantic results."""
    WEIGHTED_SUM = "WeightedSum"
    RECIPROCAL_RANK_FUSION = "ReciprocalRankFusion"
    COMB_SUM = "CombSum"
    COMB_MAX = "CombMax"
    BORDA_COUNT = "BordaCount"

    @classmethod
    def parse(cls, value: Union["RerankingStrategy", str, None]) -> "RerankingStrategy":
        """Resolve a strategy from a member, value or name (case-insensitive).

        Unknown or missing values fall back to ``WEIGHTED_SUM``.
        """
        if isinstance(value, cls):
            return value
        if value is not None:
            key = str(value).strip().replace("-", "_").lower()
            for member in cls:
                if key in (member.value.lower(), member.name.lower(), member.name.lower().replace("_", "")):
                    return member
            if key == "rrf":
                return cls.RECIPROCAL_RANK_FUSION
        logger.warning("Unknown reranking strategy, falling back to weighted sum", strategy=value)
        return cls.WEIGHTED_SUM
