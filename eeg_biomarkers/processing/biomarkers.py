"""
Biomarker library

Pure functions deriving asymmetry indices, band ratios, spike trains, HFO
ratios, coherence, spectral entropy, signal complexity and amplitude
modulation from band powers or raw channel windows. Degenerate denominators
yield a neutral value (usually 0.0) instead of raising.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from ..core.config import (
    SPIKE_AMPLITUDE_THRESHOLD, SPIKE_STD_FACTOR, SPIKE_SLOPE_DIVISOR, SPIKE_REFRACTORY_SEC,
    HFO_RATIO_THRESHOLD, HFO_BAND_LOW, HFO_BAND_HIGH, HFO_MIN_SAMPLE_RATE,
    BETA_GAMMA_RATIO_THRESHOLD, ALPHA_BAND, ENTROPY_BAND, ENVELOPE_WINDOW, MIN_MODULATION_SAMPLES,
)
from ..core.data_types import BandPowerMap, SpectrumResult, Spike, HFOResult, PowerRatios
from .spectrum import compute_spectrum, band_power, band_mask


# ============================================================================
# BAND POWER DERIVATIVES
# ============================================================================

def asymmetry_index(left_power: float, right_power: float) -> float:
    """
    Normalized hemispheric asymmetry (R - L) / (R + L)

    Positive values mean more power on the right. Returns 0.0 when both
    powers sum to zero.
    """
    total = left_power + right_power
    if total == 0:
        return 0.0
    return (right_power - left_power) / total


def alpha_asymmetry(band_powers: BandPowerMap,
                    pairs: Dict[str, Tuple[str, str]],
                    band: str = "alpha") -> Dict[str, float]:
    """
    Asymmetry index of one band for each named (left, right) channel pair

    A pair is omitted when either channel is missing from the band power map
    or when both channels carry zero power.
    """
    result = {}
    for name, (left, right) in pairs.items():
        if left not in band_powers or right not in band_powers:
            logging.debug(f"Skipping {name} asymmetry: {left}/{right} not analysed")
            continue
        left_power = band_powers[left].get(band, 0.0)
        right_power = band_powers[right].get(band, 0.0)
        if left_power == 0 and right_power == 0:
            logging.debug(f"Skipping {name} asymmetry: no {band} power")
            continue
        result[name] = asymmetry_index(left_power, right_power)
    return result


def band_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 for a non-positive denominator"""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def alpha_theta_ratios(band_powers: BandPowerMap) -> Dict[str, float]:
    """Alpha/theta ratio per channel, omitting channels without theta power"""
    return {ch: p["alpha"] / p["theta"] for ch, p in band_powers.items() if p["theta"] > 0}


def theta_powers(band_powers: BandPowerMap) -> Dict[str, float]:
    """Theta power per channel"""
    return {ch: p["theta"] for ch, p in band_powers.items()}


def power_ratios(band_powers: BandPowerMap,
                 beta_gamma_threshold: float = BETA_GAMMA_RATIO_THRESHOLD) -> Dict[str, PowerRatios]:
    """Beta/gamma and theta/beta ratios per channel, abnormal when beta/gamma exceeds the threshold"""
    result = {}
    for channel, powers in band_powers.items():
        beta_gamma = band_ratio(powers["beta"], powers["gamma"])
        theta_beta = band_ratio(powers["theta"], powers["beta"])
        result[channel] = PowerRatios(
            beta_gamma=beta_gamma,
            theta_beta=theta_beta,
            abnormal=beta_gamma > beta_gamma_threshold,
        )
    return result


def front_posterior_ratio(band_powers: BandPowerMap,
                          pairs: Dict[str, Tuple[str, str]],
                          bands: Sequence[str]) -> Dict[str, Dict[str, float]]:
    """
    Front/posterior power ratio per band for each named (front, posterior) pair

    Pairs with a missing channel are omitted.
    """
    result = {}
    for name, (front, posterior) in pairs.items():
        if front not in band_powers or posterior not in band_powers:
            logging.debug(f"Skipping {name} front/posterior ratio: {front}/{posterior} not analysed")
            continue
        result[name] = {
            band: band_ratio(band_powers[front][band], band_powers[posterior][band])
            for band in bands
        }
    return result


def slow_wave_ratio(powers: Dict[str, float]) -> float:
    """(delta + theta) / (alpha + beta), 0.0 when alpha + beta is zero"""
    return band_ratio(powers["delta"] + powers["theta"], powers["alpha"] + powers["beta"])


# ============================================================================
# EPILEPTIFORM ACTIVITY
# ============================================================================

def detect_spikes(signal: Sequence[float], sample_rate: float,
                  amplitude_threshold: float = SPIKE_AMPLITUDE_THRESHOLD) -> List[Spike]:
    """
    Detect sharp transients in a single channel

    A sample is a spike when its absolute value exceeds an adaptive threshold
    of max(amplitude_threshold, 3 * std) and it is a steep local extremum:
    the slopes into and out of it both exceed threshold / 5 and have opposite
    signs. After each detection the next 100 ms of samples are skipped.

    Args:
        signal: Samples of one channel
        sample_rate: Sampling frequency in Hz
        amplitude_threshold: Floor of the adaptive threshold (µV)

    Returns:
        List[Spike]: Detected spikes in sample order
    """
    x = np.asarray(signal, dtype=float)
    n = len(x)
    if n == 0:
        return []

    threshold = max(amplitude_threshold, SPIKE_STD_FACTOR * float(np.std(x)))
    slope_threshold = threshold / SPIKE_SLOPE_DIVISOR
    refractory = int(np.floor(sample_rate * SPIKE_REFRACTORY_SEC))

    spikes = []
    i = 2
    while i < n - 2:
        slope_in = x[i] - x[i - 1]
        slope_out = x[i + 1] - x[i]
        if (abs(x[i]) > threshold
                and abs(slope_in) > slope_threshold
                and abs(slope_out) > slope_threshold
                and np.sign(slope_in) != np.sign(slope_out)):
            spikes.append(Spike(sample_index=i, amplitude=float(x[i]), time_seconds=i / sample_rate))
            i += refractory
        i += 1
    return spikes


def spike_frequency(spikes: Sequence[Spike]) -> float:
    """
    Spikes per minute over the span from the first to the last spike

    Returns 0.0 for fewer than two spikes or a non-positive span.
    """
    if len(spikes) < 2:
        return 0.0
    minutes = (spikes[-1].time_seconds - spikes[0].time_seconds) / 60
    if minutes <= 0:
        return 0.0
    return len(spikes) / minutes


def detect_hfo(signal: Sequence[float], sample_rate: float,
               threshold: float = HFO_RATIO_THRESHOLD) -> HFOResult:
    """
    Estimate high-frequency oscillation content (80-500 Hz)

    The ratio is the band power between 80 Hz and min(500, fs/2 - 1) over
    the mean squared magnitude of the whole spectrum.

    Args:
        signal: Samples of one channel
        sample_rate: Sampling frequency in Hz
        threshold: Ratio above which HFO activity is reported

    Returns:
        HFOResult: Not computable below a 200 Hz sample rate
    """
    if sample_rate < HFO_MIN_SAMPLE_RATE:
        return HFOResult(
            detected=False,
            message=f"Sample rate {sample_rate} Hz too low for HFO detection (need {HFO_MIN_SAMPLE_RATE} Hz)",
        )

    spectrum = compute_spectrum(signal, sample_rate)
    upper = min(HFO_BAND_HIGH, sample_rate / 2 - 1)
    hfo_power = band_power(spectrum, HFO_BAND_LOW, upper)
    total_power = float(np.mean(spectrum.magnitudes ** 2)) if len(spectrum) else 0.0
    ratio = hfo_power / total_power if total_power > 0 else 0.0
    return HFOResult(detected=ratio > threshold, ratio=ratio, power=hfo_power)


# ============================================================================
# INTER-CHANNEL RELATIONSHIPS
# ============================================================================

def channel_coherence(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Simplified coherence: |Pearson r| over the common length of two windows

    Returns 0.0 when either window is constant.
    """
    n = min(len(x), len(y))
    if n == 0:
        return 0.0
    a = np.asarray(x[:n], dtype=float)
    b = np.asarray(y[:n], dtype=float)

    numerator = n * np.sum(a * b) - np.sum(a) * np.sum(b)
    denominator_sq = (n * np.sum(a * a) - np.sum(a) ** 2) * (n * np.sum(b * b) - np.sum(b) ** 2)
    if denominator_sq <= 0:
        return 0.0
    return float(abs(numerator / np.sqrt(denominator_sq)))


def pairwise_coherence(signals: Dict[str, np.ndarray], channels: Sequence[str]) -> Dict[str, float]:
    """Coherence for every i < j channel pair, keyed "A-B" """
    result = {}
    for i in range(len(channels)):
        for j in range(i + 1, len(channels)):
            first, second = channels[i], channels[j]
            result[f"{first}-{second}"] = channel_coherence(signals[first], signals[second])
    return result


def phase_coherence(x: Sequence[float], y: Sequence[float], sample_rate: float,
                    freq_range: Tuple[float, float] = ALPHA_BAND) -> float:
    """
    Magnitude-product proxy for phase coherence in the alpha band

    Both windows are truncated to the common length, transformed, and the
    product of their magnitudes is averaged over the bins within freq_range.
    """
    n = min(len(x), len(y))
    if n == 0:
        return 0.0
    first = compute_spectrum(np.asarray(x[:n], dtype=float), sample_rate)
    second = compute_spectrum(np.asarray(y[:n], dtype=float), sample_rate)
    mask = band_mask(first, *freq_range)
    if not np.any(mask):
        return 0.0
    return float(np.mean(first.magnitudes[mask] * second.magnitudes[mask]))


# ============================================================================
# SIGNAL SHAPE
# ============================================================================

def spectral_entropy(spectrum: SpectrumResult, freq_range: Tuple[float, float] = ENTROPY_BAND) -> float:
    """
    Shannon entropy (bits) of the normalized power distribution within freq_range

    Returns 0.0 when the band holds no power.
    """
    power = spectrum.magnitudes[band_mask(spectrum, *freq_range)] ** 2
    if power.size == 0 or np.sum(power) <= 0:
        return 0.0
    return float(stats.entropy(power, base=2))


def signal_complexity(signal: Sequence[float]) -> float:
    """
    Fraction of samples that reverse the direction of the two before them

    Counts i >= 2 where x[i-1] is a local trough followed by a rise or a
    local peak followed by a fall, divided by n - 2.
    """
    x = np.asarray(signal, dtype=float)
    n = len(x)
    if n <= 2:
        return 0.0
    current, previous, before = x[2:], x[1:-1], x[:-2]
    rises_after_trough = (current > previous) & (previous < before)
    falls_after_peak = (current < previous) & (previous > before)
    return float(np.count_nonzero(rises_after_trough | falls_after_peak)) / (n - 2)


def amplitude_modulation(signal: Sequence[float], window: int = ENVELOPE_WINDOW) -> float:
    """
    Coefficient of variation of a sliding peak-to-peak envelope

    The envelope holds ptp(x[i:i + window]) for i in 0 .. n - window - 1.
    Returns 0.0 for windows shorter than 100 samples or a flat envelope.
    """
    x = np.asarray(signal, dtype=float)
    n = len(x)
    if n < MIN_MODULATION_SAMPLES or n <= window:
        return 0.0
    segments = np.lib.stride_tricks.sliding_window_view(x, window)[:n - window]
    envelope = np.ptp(segments, axis=1)
    if np.mean(envelope) == 0:
        return 0.0
    return float(stats.variation(envelope))


def mean_of(values) -> Optional[float]:
    """Mean of a collection of numbers, None when it is empty"""
    values = list(values)
    if not values:
        return None
    return float(np.mean(values))
