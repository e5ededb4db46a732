"""
Shared scoring helpers

Every condition scorer accumulates rule points, adds one bounded random
perturbation drawn from an injected numpy Generator and clamps the total to
[0, 1]. The helpers here keep that bookkeeping in one place.
"""

from typing import List, Tuple

import numpy as np

from ..core.data_types import Marker, ConditionScore


class ScoreBuilder:
    """
    Accumulate rule points and markers for one condition

    Example:
        builder = ScoreBuilder("anxiety")
        builder.add(0.4, "Elevated beta", 0.23, "Beta power above 0.2")
        result = builder.finish(rng, (-0.1, 0.1))
    """

    def __init__(self, name: str):
        self.name = name
        self.score = 0.0
        self.markers: List[Marker] = []

    def add(self, points: float, marker: str = None, value: float = None, description: str = ""):
        """Add rule points, recording a marker when one is named"""
        self.score += points
        if marker is not None:
            self.markers.append(Marker(name=marker, value=float(value), description=description))

    def finish(self, rng: np.random.Generator, noise: Tuple[float, float]) -> ConditionScore:
        """Apply the perturbation, clamp to [0, 1] and build the result"""
        score = clamp(self.score + rng.uniform(*noise))
        return ConditionScore(name=self.name, score=score, markers=list(self.markers))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return float(max(low, min(high, value)))


def pathology_severity(score: float) -> str:
    """Severity label for the pathological patterns"""
    if score > 0.8:
        return "high"
    if score > 0.6:
        return "moderate"
    return "low"


def tiered(value: float, tiers: List[Tuple[float, float]], default: float, above: bool = True) -> float:
    """
    Points for the first tier whose threshold the value passes

    Tiers are (threshold, points) checked in order; with above=True a tier
    matches when value > threshold, otherwise when value < threshold.
    """
    for threshold, points in tiers:
        if (value > threshold) if above else (value < threshold):
            return points
    return default
