from __future__ import annotations

from enum import Enum
from typing import Tuple


class LatencyTier(Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    BAD = "bad"


# (limite superior inclusivo em ms, tier)
TIER_LIMITS: Tuple[Tuple[float, LatencyTier], ...] = (
    (30.0, LatencyTier.GOOD),
    (60.0, LatencyTier.FAIR),
    (90.0, LatencyTier.POOR),
)


def classify(latency_ms: float) -> LatencyTier:
    """
    Classificação da latência de hop (≤30, ≤60, ≤90, >90 ms).
    A cor de cada tier é escolhida pela camada de apresentação.
    """
    for limit, tier in TIER_LIMITS:
        if latency_ms <= limit:
            return tier
    return LatencyTier.BAD
