"""
Signal processing for EEG Biomarkers

This module contains the frequency transform, band aggregation, feature
extraction and the biomarker library.
"""

from .spectrum import compute_spectrum, band_power, band_powers, dominant_frequency, peak_frequency
from .features import FeatureExtractor, calculate_band_powers, channel_statistics, analyze_batch
from .biomarkers import (
    asymmetry_index, alpha_asymmetry, band_ratio, alpha_theta_ratios, theta_powers, power_ratios,
    front_posterior_ratio, slow_wave_ratio, detect_spikes, spike_frequency, detect_hfo,
    channel_coherence, pairwise_coherence, phase_coherence, spectral_entropy, signal_complexity,
    amplitude_modulation,
)

__all__ = [
    'compute_spectrum', 'band_power', 'band_powers', 'dominant_frequency', 'peak_frequency',
    'FeatureExtractor', 'calculate_band_powers', 'channel_statistics', 'analyze_batch',
    'asymmetry_index', 'alpha_asymmetry', 'band_ratio', 'alpha_theta_ratios', 'theta_powers',
    'power_ratios', 'front_posterior_ratio', 'slow_wave_ratio', 'detect_spikes', 'spike_frequency',
    'detect_hfo', 'channel_coherence', 'pairwise_coherence', 'phase_coherence', 'spectral_entropy',
    'signal_complexity', 'amplitude_modulation',
]
