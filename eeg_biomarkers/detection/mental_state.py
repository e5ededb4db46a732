"""
Mental state and condition pattern scoring

Heuristic scorers for depression, anxiety, ADHD-like and epilepsy-like
patterns, plus cognitive state and alertness. Features come from the most
recent window of a recording; each scorer draws one perturbation from the
supplied numpy Generator.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..core.config import (
    FEATURE_BANDS, DEFAULT_LAYOUT, ChannelLayout, CONDITION_WINDOW_SAMPLES, CONDITION_DETECTED_THRESHOLD,
)
from ..core.data_types import Recording, ConditionFeatures, ConditionScore
from ..processing.features import calculate_band_powers, channel_statistics, resolve_channels
from ..processing.biomarkers import asymmetry_index, signal_complexity, mean_of
from .scoring import ScoreBuilder, pathology_severity, tiered

PATHOLOGY_NOISE = (-0.1, 0.1)
STATE_NOISE = (0.0, 0.1)

PATHOLOGY_DETAILS = {
    "depression": "Frontal alpha asymmetry and abnormal alpha/theta ratio",
    "anxiety": "Elevated beta power with reduced alpha",
    "adhd": "Elevated theta/beta ratio",
    "epilepsy": "Low signal complexity with elevated high-frequency power",
}

COGNITIVE_LEVELS = [
    (0.8, "excellent", "Cognitive function at its best, strong information processing"),
    (0.6, "good", "Cognitive function in good condition, clear thinking"),
    (0.4, "fair", "Cognitive function normal, processing speed may vary slightly"),
]
COGNITIVE_FALLBACK = ("weak", "Cognitive processing may be affected, reduced attention or executive function")

ALERTNESS_LEVELS = [
    (0.8, "highly alert", "Highly alert and focused"),
    (0.6, "alert", "Alert and responsive"),
    (0.4, "relaxed", "Relaxed while remaining awake"),
    (0.2, "fatigued", "Signs of fatigue, attention may be reduced"),
]
ALERTNESS_FALLBACK = ("drowsy", "Clear drowsiness pattern, low vigilance")


# ============================================================================
# FEATURE EXTRACTION
# ============================================================================

def extract_condition_features(recording: Recording, channels: Sequence[str],
                               layout: ChannelLayout = DEFAULT_LAYOUT,
                               window_samples: Optional[int] = CONDITION_WINDOW_SAMPLES) -> ConditionFeatures:
    """
    Extract the features used by the condition scorers

    Args:
        recording: Source recording
        channels: Channels to analyse
        layout: Channel role table for the asymmetry pairs
        window_samples: Analyse only the last N samples (None for all)

    Returns:
        ConditionFeatures: Band powers, statistics, complexity and asymmetry
    """
    channels = resolve_channels(recording, channels)
    window = recording.tail(window_samples)

    powers = calculate_band_powers(window, channels, FEATURE_BANDS)
    statistics = {ch: channel_statistics(window.channel(ch)) for ch in channels}
    complexity = {ch: signal_complexity(window.channel(ch)) for ch in channels}

    asymmetry = {}
    for name, (left, right) in layout.resolve_pairs(layout.feature_asymmetry_pairs).items():
        if left in powers and right in powers:
            asymmetry[name] = asymmetry_index(powers[left]["alpha"], powers[right]["alpha"])

    return ConditionFeatures(band_powers=powers, statistics=statistics, complexity=complexity, asymmetry=asymmetry)


def _band_mean(features: ConditionFeatures, band: str) -> Optional[float]:
    return mean_of(p[band] for p in features.band_powers.values())


def _ratio_mean(features: ConditionFeatures, numerator: str, denominator: str) -> Optional[float]:
    return mean_of(p[numerator] / p[denominator] for p in features.band_powers.values() if p[denominator] > 0)


# ============================================================================
# PATHOLOGICAL PATTERNS
# ============================================================================

def score_depression(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """Frontal alpha asymmetry plus a low alpha/theta ratio"""
    builder = ScoreBuilder("depression")

    frontal = features.asymmetry.get("frontal")
    if frontal is not None:
        if frontal > 0.1:
            builder.add(0.4, "Right-dominant frontal alpha", frontal, "Right frontal alpha exceeds left")
        elif frontal < -0.1:
            builder.add(0.1, "Left-dominant frontal alpha", frontal, "Left frontal alpha exceeds right")
        else:
            builder.add(0.2, "Balanced frontal alpha", frontal, "Frontal alpha roughly symmetric")

    alpha_theta = _ratio_mean(features, "alpha", "theta")
    if alpha_theta is not None:
        points = tiered(alpha_theta, [(0.8, 0.4), (1.0, 0.3), (1.2, 0.2)], 0.1, above=False)
        builder.add(points, "Alpha/theta ratio", alpha_theta, "Mean alpha/theta ratio across channels")

    return _pathology(builder.finish(rng, PATHOLOGY_NOISE))


def score_anxiety(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """High beta with low alpha"""
    builder = ScoreBuilder("anxiety")

    beta = _band_mean(features, "beta")
    if beta is not None:
        points = tiered(beta, [(0.3, 0.5), (0.2, 0.4), (0.15, 0.3), (0.1, 0.2)], 0.1)
        builder.add(points, "Beta power", beta, "Mean beta power across channels")

    alpha = _band_mean(features, "alpha")
    if alpha is not None:
        points = tiered(alpha, [(0.1, 0.3), (0.15, 0.2)], 0.1, above=False)
        builder.add(points, "Alpha power", alpha, "Mean alpha power across channels")

    return _pathology(builder.finish(rng, PATHOLOGY_NOISE))


def score_adhd(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """High theta/beta ratio with elevated delta"""
    builder = ScoreBuilder("adhd")

    theta_beta = _ratio_mean(features, "theta", "beta")
    if theta_beta is not None:
        points = tiered(theta_beta, [(3.0, 0.5), (2.5, 0.4), (2.0, 0.3), (1.5, 0.2)], 0.1)
        builder.add(points, "Theta/beta ratio", theta_beta, "Mean theta/beta ratio across channels")

    delta = _band_mean(features, "delta")
    if delta is not None:
        points = tiered(delta, [(0.3, 0.3), (0.2, 0.2)], 0.1)
        builder.add(points, "Delta power", delta, "Mean delta power across channels")

    return _pathology(builder.finish(rng, PATHOLOGY_NOISE))


def score_epilepsy(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """Low signal complexity with high gamma"""
    builder = ScoreBuilder("epilepsy")

    complexity = mean_of(features.complexity.values())
    if complexity is not None:
        points = tiered(complexity, [(0.2, 0.4), (0.3, 0.3), (0.4, 0.2)], 0.1, above=False)
        builder.add(points, "Signal complexity", complexity, "Mean turning-point rate across channels")

    gamma = _band_mean(features, "gamma")
    if gamma is not None:
        points = tiered(gamma, [(0.2, 0.4), (0.15, 0.3), (0.1, 0.2)], 0.1)
        builder.add(points, "Gamma power", gamma, "Mean gamma power across channels")

    return _pathology(builder.finish(rng, PATHOLOGY_NOISE))


def _pathology(result: ConditionScore) -> ConditionScore:
    result.severity = pathology_severity(result.score)
    result.interpretation = PATHOLOGY_DETAILS[result.name]
    return result


# ============================================================================
# STATES
# ============================================================================

def score_cognitive(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """Balanced alpha/beta with moderate gamma"""
    builder = ScoreBuilder("cognitive")

    alpha_beta = _ratio_mean(features, "alpha", "beta")
    if alpha_beta is not None:
        if 0.8 < alpha_beta < 1.5:
            points = 0.6
        elif 0.6 < alpha_beta < 2.0:
            points = 0.4
        else:
            points = 0.2
        builder.add(points, "Alpha/beta ratio", alpha_beta, "Mean alpha/beta ratio across channels")

    gamma = _band_mean(features, "gamma")
    if gamma is not None:
        if 0.1 < gamma < 0.2:
            points = 0.4
        elif 0.05 < gamma < 0.25:
            points = 0.3
        else:
            points = 0.1
        builder.add(points, "Gamma power", gamma, "Mean gamma power across channels")

    result = builder.finish(rng, STATE_NOISE)
    result.severity, result.interpretation = _level(result.score, COGNITIVE_LEVELS, COGNITIVE_FALLBACK)
    return result


def score_alertness(features: ConditionFeatures, rng: np.random.Generator) -> ConditionScore:
    """Low theta and high beta read as alert"""
    builder = ScoreBuilder("alertness")

    theta = _band_mean(features, "theta")
    if theta is not None:
        points = tiered(theta, [(0.3, 0.2), (0.2, 0.4), (0.1, 0.6)], 0.5)
        builder.add(points, "Theta power", theta, "Mean theta power across channels")

    beta = _band_mean(features, "beta")
    if beta is not None:
        points = tiered(beta, [(0.2, 0.4), (0.1, 0.3)], 0.1)
        builder.add(points, "Beta power", beta, "Mean beta power across channels")

    result = builder.finish(rng, STATE_NOISE)
    result.severity, result.interpretation = _level(result.score, ALERTNESS_LEVELS, ALERTNESS_FALLBACK)
    return result


def _level(score: float, levels, fallback):
    for threshold, level, details in levels:
        if score > threshold:
            return level, details
    return fallback


# ============================================================================
# GROUP
# ============================================================================

def identify_conditions(features: ConditionFeatures, rng: np.random.Generator,
                        threshold: float = CONDITION_DETECTED_THRESHOLD) -> List[ConditionScore]:
    """
    Run every scorer and keep the detected patterns plus both states

    Pathological patterns are included only when their score exceeds the
    threshold; cognitive state and alertness are always included.
    """
    conditions = []
    for scorer in (score_depression, score_anxiety, score_adhd, score_epilepsy):
        result = scorer(features, rng)
        if result.score > threshold:
            conditions.append(result)
    conditions.append(score_cognitive(features, rng))
    conditions.append(score_alertness(features, rng))
    return conditions


def analyze_conditions(recording: Recording, channels: Sequence[str], rng: np.random.Generator,
                       layout: ChannelLayout = DEFAULT_LAYOUT,
                       window_samples: Optional[int] = CONDITION_WINDOW_SAMPLES) -> List[ConditionScore]:
    """
    Score condition patterns and states on the most recent window

    Args:
        recording: Source recording
        channels: Channels to analyse
        rng: Source of the per-scorer perturbation
        layout: Channel role table
        window_samples: Analyse only the last N samples (None for all)

    Returns:
        List[ConditionScore]: Detected patterns, then cognitive state and alertness
    """
    features = extract_condition_features(recording, channels, layout, window_samples)
    conditions = identify_conditions(features, rng)
    detected = [c.name for c in conditions if c.name in PATHOLOGY_DETAILS]
    logging.info(f"Condition scoring complete, detected patterns: {detected or 'none'}")
    return conditions


def condition_summary(conditions: List[ConditionScore]) -> Dict[str, float]:
    """Name -> score mapping for display"""
    return {c.name: round(c.score, 3) for c in conditions}
