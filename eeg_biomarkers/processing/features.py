"""
EEG feature extraction

This module extracts per-channel band powers and amplitude statistics from
recordings using the shared direct transform in spectrum.py, and implements
the one-shot statistics/spectrum analysis.
"""

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..core.data_types import Recording, SpectrumResult, ChannelStatistics, BatchResult, BandPowerMap
from ..core.exceptions import InvalidInputError
from ..core.config import FEATURE_BANDS
from .spectrum import compute_spectrum, band_powers

ANALYSIS_KINDS = ("fft", "statistics")


def resolve_channels(recording: Recording, channels: Sequence[str], min_channels: int = 1) -> List[str]:
    """
    Validate a channel selection against a recording

    Raises:
        InvalidInputError: If a channel is unknown or too few are selected
    """
    channels = list(channels)
    if len(channels) < min_channels:
        raise InvalidInputError(f"At least {min_channels} channels required, got {len(channels)}")
    missing = [ch for ch in channels if ch not in recording.samples]
    if missing:
        raise InvalidInputError(f"Channels not in recording: {missing}")
    return channels


class FeatureExtractor:
    """
    Extract frequency domain features from recordings

    This class runs the direct transform once per channel and integrates
    the resulting magnitude spectrum over a table of frequency bands.
    """

    def __init__(self, fs: float, freq_bands: Dict[str, Tuple[float, float]] = FEATURE_BANDS):
        if fs is None or fs <= 0:
            raise InvalidInputError(f"Sample rate must be positive, got {fs}")
        self.fs = fs
        self.freq_bands = freq_bands

    def compute_spectrum(self, data: np.ndarray) -> SpectrumResult:
        """
        Compute the magnitude spectrum of one channel

        Args:
            data: EEG data for single channel (samples,)

        Returns:
            SpectrumResult: Frequency bins and magnitudes
        """
        return compute_spectrum(data, self.fs)

    def extract_band_powers(self, data: np.ndarray) -> Dict[str, float]:
        """
        Extract power in every configured band for one channel

        Args:
            data: EEG data for single channel (samples,)

        Returns:
            Dict[str, float]: Average power per band
        """
        return band_powers(self.compute_spectrum(data), self.freq_bands)

    def extract_features(self, recording: Recording, channels: Sequence[str]) -> BandPowerMap:
        """
        Extract band powers for each selected channel

        Args:
            recording: Source recording
            channels: Channels to analyse

        Returns:
            BandPowerMap: channel -> band -> power
        """
        return {channel: self.extract_band_powers(recording.channel(channel)) for channel in channels}


def calculate_band_powers(recording: Recording, channels: Sequence[str],
                          bands: Dict[str, Tuple[float, float]] = FEATURE_BANDS) -> BandPowerMap:
    """Band power map for the selected channels of a recording"""
    return FeatureExtractor(recording.sample_rate, bands).extract_features(recording, channels)


def channel_statistics(signal: Sequence[float]) -> ChannelStatistics:
    """Mean, population standard deviation, minimum and maximum of a signal"""
    x = np.asarray(signal, dtype=float)
    if len(x) == 0:
        raise InvalidInputError("Cannot compute statistics of an empty signal")
    return ChannelStatistics(
        mean=float(np.mean(x)),
        std=float(np.std(x)),
        min=float(np.min(x)),
        max=float(np.max(x)),
    )


def analyze_batch(recording: Recording, channels: Sequence[str], analysis_kind: str = "fft") -> BatchResult:
    """
    One-shot analysis of an uploaded recording

    Statistics are always computed; spectra only for the "fft" kind.

    Args:
        recording: Validated recording
        channels: Channels to analyse (at least one)
        analysis_kind: "fft" or "statistics"

    Returns:
        BatchResult: Per-channel statistics and optional spectra

    Raises:
        InvalidInputError: For an unknown analysis kind or channel
    """
    if analysis_kind not in ANALYSIS_KINDS:
        raise InvalidInputError(f"Unknown analysis kind '{analysis_kind}', expected one of {ANALYSIS_KINDS}")
    channels = resolve_channels(recording, channels)

    statistics = {ch: channel_statistics(recording.channel(ch)) for ch in channels}
    spectrum = None
    if analysis_kind == "fft":
        spectrum = {ch: compute_spectrum(recording.channel(ch), recording.sample_rate) for ch in channels}

    logging.info(f"Batch analysis ({analysis_kind}) of {len(channels)} channels, {recording.n_samples} samples")
    return BatchResult(statistics=statistics, spectrum=spectrum)
