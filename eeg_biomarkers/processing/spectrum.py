"""
Discrete frequency transform and band aggregation

All spectral biomarkers share this transform. It is a direct DFT evaluated
over the first n/2 bins and scaled by 1/n; every downstream threshold was
tuned against its exact output, so it must not be swapped for a windowed
or otherwise normalized estimate.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from ..core.data_types import SpectrumResult
from ..core.exceptions import InvalidInputError


def compute_spectrum(signal: Sequence[float], sample_rate: float) -> SpectrumResult:
    """
    Compute the magnitude spectrum of a real-valued window

    Evaluates real = sum x[t]cos(-2pi k t/n) and imag = sum x[t]sin(-2pi k t/n)
    for k < n/2 directly, which is O(n^2) in time and memory.

    Args:
        signal: Samples of a single channel (n,)
        sample_rate: Sampling frequency in Hz

    Returns:
        SpectrumResult: n//2 bins at k * sample_rate / n with magnitude / n

    Raises:
        InvalidInputError: If the signal is empty or the sample rate is not positive
    """
    x = np.asarray(signal, dtype=float)
    n = len(x)
    if n == 0:
        raise InvalidInputError("Cannot transform an empty signal")
    if sample_rate is None or sample_rate <= 0:
        raise InvalidInputError(f"Sample rate must be positive, got {sample_rate}")

    k = np.arange(n // 2)
    t = np.arange(n)
    angle = -2 * np.pi * np.outer(k, t) / n

    real = np.cos(angle) @ x
    imag = np.sin(angle) @ x

    magnitudes = np.sqrt(real * real + imag * imag) / n
    frequencies = k * (sample_rate / n)
    return SpectrumResult(frequencies=frequencies, magnitudes=magnitudes)


def band_mask(spectrum: SpectrumResult, min_freq: float, max_freq: float) -> np.ndarray:
    """Boolean mask of bins with min_freq <= f <= max_freq"""
    return (spectrum.frequencies >= min_freq) & (spectrum.frequencies <= max_freq)


def band_power(spectrum: SpectrumResult, min_freq: float, max_freq: float) -> float:
    """
    Average squared magnitude over a frequency band

    Both edges are inclusive, so a bin sitting exactly on a shared edge counts
    toward both adjacent bands.

    Returns:
        float: Mean power in the band, 0.0 if no bin falls inside it
    """
    mask = band_mask(spectrum, min_freq, max_freq)
    if not np.any(mask):
        logging.debug(f"No bins in {min_freq}-{max_freq} Hz")
        return 0.0
    return float(np.mean(spectrum.magnitudes[mask] ** 2))


def band_powers(spectrum: SpectrumResult, bands: dict) -> dict:
    """Band power for every named (low, high) band"""
    return {name: band_power(spectrum, low, high) for name, (low, high) in bands.items()}


def dominant_frequency(spectrum: SpectrumResult) -> float:
    """
    Frequency of the strongest non-DC bin

    Returns 0.0 when the spectrum has no positive magnitude past DC.
    """
    if len(spectrum) < 2:
        return 0.0
    magnitudes = spectrum.magnitudes[1:]
    idx = int(np.argmax(magnitudes))
    if magnitudes[idx] <= 0:
        return 0.0
    return float(spectrum.frequencies[idx + 1])


def peak_frequency(spectrum: SpectrumResult, freq_range: Tuple[float, float]) -> float:
    """Frequency of the strongest bin inside a band, 0.0 if the band is empty or silent"""
    mask = band_mask(spectrum, *freq_range)
    if not np.any(mask):
        return 0.0
    magnitudes = spectrum.magnitudes[mask]
    idx = int(np.argmax(magnitudes))
    if magnitudes[idx] <= 0:
        return 0.0
    return float(spectrum.frequencies[mask][idx])
