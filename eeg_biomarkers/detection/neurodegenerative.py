"""
Neurodegenerative pattern scoring

Slow-wave ratios, alpha peak frequency, spectral entropy, amplitude
modulation and alpha-band coherence feed four heuristic scorers for
Alzheimer's-like, Parkinson's-like, vascular dementia and Lewy-body-like
patterns. These reproduce documented heuristics and are not diagnostic.
"""

import logging
from typing import Optional, Sequence

import numpy as np
from scipy import stats

from ..core.config import FEATURE_BANDS, ALPHA_BAND, DEFAULT_LAYOUT, ChannelLayout, NEURO_WINDOW_SAMPLES
from ..core.data_types import Recording, NeuroFeatures, NeuroDegenerativeResult, ConditionScore
from ..processing.features import FeatureExtractor, resolve_channels
from ..processing.spectrum import band_powers, dominant_frequency, peak_frequency
from ..processing.biomarkers import (
    slow_wave_ratio, spectral_entropy, amplitude_modulation, phase_coherence, mean_of,
)
from .scoring import ScoreBuilder

DEMENTIA_NOISE = (-0.05, 0.05)
PARKINSONS_NOISE = (-0.025, 0.025)

HIGH_BETA_SHARE = 0.6     # Share of beta power attributed to 20-30 Hz
TREMOR_THETA_SHARE = 0.6  # Share of theta power attributed to 4-6 Hz


def extract_neuro_features(recording: Recording, channels: Sequence[str],
                           layout: ChannelLayout = DEFAULT_LAYOUT,
                           window_samples: Optional[int] = NEURO_WINDOW_SAMPLES) -> NeuroFeatures:
    """
    Extract the features used by the neurodegenerative scorers

    Phase coherence is only computed when at least two channels are selected,
    and only for layout pairs whose channels are both selected.

    Args:
        recording: Source recording
        channels: Channels to analyse
        layout: Channel role table for the coherence pairs
        window_samples: Analyse only the last N samples (None for all)

    Returns:
        NeuroFeatures: Per-channel features and pairwise coherence
    """
    channels = resolve_channels(recording, channels)
    window = recording.tail(window_samples)
    extractor = FeatureExtractor(window.sample_rate, FEATURE_BANDS)

    features = NeuroFeatures(
        band_powers={}, slow_wave_ratio={}, alpha_peak_frequency={}, spectral_entropy={},
        peak_frequency={}, amplitude_modulation={}, phase_coherence={},
    )
    for channel in channels:
        signal = window.channel(channel)
        spectrum = extractor.compute_spectrum(signal)
        powers = band_powers(spectrum, FEATURE_BANDS)

        features.band_powers[channel] = powers
        features.slow_wave_ratio[channel] = slow_wave_ratio(powers)
        features.alpha_peak_frequency[channel] = peak_frequency(spectrum, ALPHA_BAND)
        features.spectral_entropy[channel] = spectral_entropy(spectrum)
        features.peak_frequency[channel] = dominant_frequency(spectrum)
        features.amplitude_modulation[channel] = amplitude_modulation(signal)

    if len(channels) >= 2:
        for name, (first, second) in layout.resolve_pairs(layout.coherence_pairs).items():
            if first in channels and second in channels:
                features.phase_coherence[name] = phase_coherence(
                    window.channel(first), window.channel(second), window.sample_rate
                )
    return features


# ============================================================================
# SHARED RULES
# ============================================================================

def _coherence_asymmetry_rule(builder: ScoreBuilder, features: NeuroFeatures):
    frontal = features.phase_coherence.get("frontal")
    temporal = features.phase_coherence.get("temporal")
    if frontal is None or temporal is None:
        return
    difference = abs(frontal - temporal)
    if difference > 0.3:
        builder.add(0.25, "Marked coherence asymmetry", difference,
                    "Frontal and temporal alpha coherence differ strongly")
    elif difference > 0.15:
        builder.add(0.15, "Coherence asymmetry", difference,
                    "Frontal and temporal alpha coherence differ")


def _entropy_spread_rule(builder: ScoreBuilder, features: NeuroFeatures):
    values = list(features.spectral_entropy.values())
    if len(values) < 2:
        return
    spread = max(values) - min(values)
    if spread > 0.3:
        builder.add(0.2, "Marked regional entropy difference", spread,
                    "Spectral entropy varies strongly between regions")
    elif spread > 0.15:
        builder.add(0.1, "Regional entropy difference", spread,
                    "Spectral entropy varies between regions")


def _global_slowing_rule(builder: ScoreBuilder, mean_ratio: Optional[float]):
    if mean_ratio is not None and mean_ratio > 2.2:
        builder.add(0.15, "Global slow-wave increase", mean_ratio,
                    "Slow-wave activity increased across channels")


def _interpret(result: ConditionScore, label: str) -> ConditionScore:
    if result.score > 0.7:
        result.severity = "high"
        result.interpretation = f"Several EEG features associated with {label}; further clinical evaluation recommended"
    elif result.score > 0.4:
        result.severity = "moderate"
        result.interpretation = f"Some EEG features associated with {label}; follow-up observation may be needed"
    else:
        result.severity = "low"
        result.interpretation = f"No notable EEG features associated with {label}"
    return result


# ============================================================================
# SCORERS
# ============================================================================

def score_alzheimers(features: NeuroFeatures, rng: np.random.Generator) -> ConditionScore:
    """Slow-wave increase, coherence asymmetry and regional entropy differences"""
    builder = ScoreBuilder("alzheimers")

    mean_ratio = mean_of(features.slow_wave_ratio.values())
    if mean_ratio is not None and mean_ratio > 2.5:
        builder.add(0.3, "Slow-wave ratio increased", mean_ratio,
                    "(delta + theta) / (alpha + beta) markedly elevated")
    _coherence_asymmetry_rule(builder, features)
    _entropy_spread_rule(builder, features)
    _global_slowing_rule(builder, mean_ratio)

    return _interpret(builder.finish(rng, DEMENTIA_NOISE), "Alzheimer's disease")


def score_vascular_dementia(features: NeuroFeatures, rng: np.random.Generator) -> ConditionScore:
    """Regional slow-wave differences plus the shared dementia rules"""
    builder = ScoreBuilder("vascular_dementia")

    ratios = list(features.slow_wave_ratio.values())
    if len(ratios) > 1:
        spread = max(ratios) - min(ratios)
        if spread > 1.0:
            builder.add(0.3, "Marked regional slowing difference", spread,
                        "Slow-wave ratio varies strongly between regions")
        elif spread > 0.5:
            builder.add(0.2, "Regional slowing difference", spread,
                        "Slow-wave ratio varies between regions")
    _coherence_asymmetry_rule(builder, features)
    _entropy_spread_rule(builder, features)
    _global_slowing_rule(builder, mean_of(ratios))

    return _interpret(builder.finish(rng, DEMENTIA_NOISE), "vascular dementia")


PARKINSONS_BANDS = [
    (0.75, "high", "Multiple pronounced EEG features associated with Parkinson's disease",
     "Neurology work-up, tremor measurement and functional imaging strongly recommended"),
    (0.6, "elevated", "Several EEG features associated with Parkinson's disease",
     "Neurology evaluation and detailed motor function examination recommended"),
    (0.4, "moderate", "Some EEG features possibly associated with Parkinson's disease",
     "Basic neurological check and follow-up observation recommended"),
    (0.25, "mild", "A few mild irregularities possibly related to motor function",
     "Follow up if clinical symptoms are present"),
]


def score_parkinsons(features: NeuroFeatures, rng: np.random.Generator,
                     layout: ChannelLayout = DEFAULT_LAYOUT) -> ConditionScore:
    """Beta and tremor-band excess, motor coherence, mu rhythm, frontal slowing and instability"""
    builder = ScoreBuilder("parkinsons")
    powers = features.band_powers

    mean_beta = mean_of(p.get("beta", 0.0) for p in powers.values())
    if mean_beta is not None:
        high_beta = mean_beta * HIGH_BETA_SHARE
        low_beta = mean_beta * (1 - HIGH_BETA_SHARE)
        if high_beta > 0.25:
            builder.add(0.3, "High beta strongly increased", high_beta, "20-30 Hz beta activity strongly elevated")
        elif high_beta > 0.2:
            builder.add(0.2, "High beta increased", high_beta, "20-30 Hz beta activity elevated")
        beta_ratio = high_beta / (low_beta or 0.001)
        if beta_ratio > 1.5:
            builder.add(0.15, "Beta distribution shifted", beta_ratio, "High beta dominates low beta")

    mean_theta = mean_of(p.get("theta", 0.0) for p in powers.values())
    if mean_theta is not None:
        tremor = mean_theta * TREMOR_THETA_SHARE
        non_tremor = mean_theta * (1 - TREMOR_THETA_SHARE)
        if tremor > 0.18:
            builder.add(0.3, "Tremor rhythm pronounced", tremor, "4-6 Hz activity strongly elevated")
        elif tremor > 0.12:
            builder.add(0.2, "Tremor rhythm increased", tremor, "4-6 Hz activity elevated")
        tremor_ratio = tremor / (non_tremor or 0.001)
        if tremor_ratio > 1.5:
            builder.add(0.15, "Tremor frequency dominance", tremor_ratio, "4-6 Hz dominates the rest of theta")

    frontal = features.phase_coherence.get("frontal")
    central = features.phase_coherence.get("central")
    if frontal is not None and central is not None:
        motor_coherence = (frontal + central) / 2
        if motor_coherence > 0.65:
            builder.add(0.25, "Motor-frontal synchrony abnormal", motor_coherence,
                        "Motor and frontal cortex abnormally synchronized")
        elif motor_coherence > 0.5:
            builder.add(0.15, "Motor-frontal synchrony increased", motor_coherence,
                        "Motor and frontal cortex synchrony slightly increased")

    mu = mean_of(powers[ch].get("alpha", 0.0) for ch in layout.channels_for(layout.motor_rhythm_roles) if ch in powers)
    if mu is not None:
        if mu > 0.25:
            builder.add(0.2, "Mu rhythm abnormal", mu, "Sensorimotor mu rhythm insufficiently suppressed")
        elif mu > 0.2:
            builder.add(0.1, "Mu rhythm increased", mu, "Sensorimotor mu rhythm slightly increased")

    cognitive = mean_of(
        powers[ch]["alpha"] / powers[ch]["theta"]
        for ch in layout.channels_for(layout.frontal_roles)
        if ch in powers and powers[ch].get("theta", 0.0) > 0
    )
    if cognitive is not None:
        if cognitive < 0.8:
            builder.add(0.2, "Frontal cognitive index reduced", cognitive, "Frontal alpha/theta markedly reduced")
        elif cognitive < 1.0:
            builder.add(0.1, "Frontal cognitive index slightly reduced", cognitive, "Frontal alpha/theta reduced")

    modulation = list(features.amplitude_modulation.values())
    if len(modulation) > 1 and np.mean(modulation) != 0:
        instability = float(stats.variation(modulation))
        if instability > 0.5:
            builder.add(0.15, "Signal instability increased", instability, "Amplitude modulation varies across channels")
        elif instability > 0.3:
            builder.add(0.1, "Signal slightly unstable", instability, "Amplitude modulation varies slightly")

    result = builder.finish(rng, PARKINSONS_NOISE)
    for threshold, severity, interpretation, suggestion in PARKINSONS_BANDS:
        if result.score > threshold:
            result.severity, result.interpretation, result.suggestion = severity, interpretation, suggestion
            break
    else:
        result.severity = "low"
        result.interpretation = "No notable EEG features associated with Parkinson's disease"
        result.suggestion = "No action needed"
    return result


def score_lewy_bodies(features: NeuroFeatures, rng: np.random.Generator) -> ConditionScore:
    """Abnormal amplitude modulation, theta/alpha band border, fronto-temporal disconnection and alpha instability"""
    builder = ScoreBuilder("lewy_bodies")

    modulation = mean_of(features.amplitude_modulation.values())
    if modulation is not None:
        if modulation > 0.8 or modulation < 0.2:
            builder.add(0.3, "Abnormal amplitude modulation", modulation, "Amplitude modulation pattern abnormal")
        elif modulation > 0.7 or modulation < 0.3:
            builder.add(0.2, "Slightly abnormal amplitude modulation", modulation,
                        "Amplitude modulation pattern slightly abnormal")

    theta_alpha = mean_of(
        p["theta"] / p["alpha"] for p in features.band_powers.values() if p.get("alpha", 0.0) > 0
    )
    if theta_alpha is not None and 1.2 < theta_alpha < 1.8:
        builder.add(0.25, "Theta/alpha border pattern", theta_alpha, "Characteristic theta/alpha proportion")

    fronto_temporal = features.phase_coherence.get("fronto_temporal")
    if fronto_temporal is not None:
        if fronto_temporal < 0.25:
            builder.add(0.25, "Fronto-temporal connectivity severely reduced", fronto_temporal,
                        "Frontal and temporal regions markedly disconnected")
        elif fronto_temporal < 0.35:
            builder.add(0.15, "Fronto-temporal connectivity reduced", fronto_temporal,
                        "Frontal and temporal connectivity slightly reduced")

    peaks = list(features.alpha_peak_frequency.values())
    if len(peaks) > 1:
        spread = float(np.std(peaks))
        if spread > 0.8:
            builder.add(0.2, "Alpha frequency unstable", spread, "Alpha peak frequency varies between regions")
        elif spread > 0.5:
            builder.add(0.1, "Alpha frequency slightly unstable", spread,
                        "Alpha peak frequency varies slightly between regions")

    return _interpret(builder.finish(rng, DEMENTIA_NOISE), "dementia with Lewy bodies")


def analyze_neurodegenerative_features(recording: Recording, channels: Sequence[str], rng: np.random.Generator,
                                       layout: ChannelLayout = DEFAULT_LAYOUT,
                                       window_samples: Optional[int] = NEURO_WINDOW_SAMPLES) -> NeuroDegenerativeResult:
    """
    Score the four neurodegenerative patterns on the most recent window

    Args:
        recording: Source recording
        channels: Channels to analyse
        rng: Source of the per-scorer perturbation
        layout: Channel role table
        window_samples: Analyse only the last N samples (None for all)

    Returns:
        NeuroDegenerativeResult: One ConditionScore per pattern
    """
    features = extract_neuro_features(recording, channels, layout, window_samples)
    result = NeuroDegenerativeResult(
        alzheimers=score_alzheimers(features, rng),
        parkinsons=score_parkinsons(features, rng, layout),
        vascular_dementia=score_vascular_dementia(features, rng),
        lewy_bodies=score_lewy_bodies(features, rng),
    )
    logging.info(
        f"Neurodegenerative scoring: AD={result.alzheimers.score:.2f}, PD={result.parkinsons.score:.2f}, "
        f"VaD={result.vascular_dementia.score:.2f}, DLB={result.lewy_bodies.score:.2f}"
    )
    return result
