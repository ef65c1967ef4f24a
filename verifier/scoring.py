"""
verifier/scoring.py — AI confidence aggregation.

Weighted sum of per-source contributions, normalized against the total
weight of the evaluated sources.
"""
from typing import Dict

from verifier.signals import SignalResult, SignalStatus

SOURCE_WEIGHTS = {
    "weather": 0.5,
    "news": 0.4,
    "social": 0.1,
}

# Fraction of a source's weight earned per status; anything absent earns 0.
STATUS_CREDIT = {
    SignalStatus.MATCHED: 1.0,
    SignalStatus.PARTIALLY_MATCHED: 0.5,
}

HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE = 0.5


def contribution(source: str, result: SignalResult) -> float:
    return SOURCE_WEIGHTS[source] * STATUS_CREDIT.get(result.status, 0.0)


def compute(weather: SignalResult, news: SignalResult, social: SignalResult) -> float:
    """
    Compute the 0-1 confidence score for three source results.

    matched earns the full source weight, partially-matched half of it,
    every other status nothing.
    """
    results: Dict[str, SignalResult] = {"weather": weather, "news": news, "social": social}

    score = sum(contribution(source, result) for source, result in results.items())
    total = sum(SOURCE_WEIGHTS[source] for source in results)
    if total <= 0:
        return 0.0

    return max(0.0, min(round(score / total, 2), 1.0))
