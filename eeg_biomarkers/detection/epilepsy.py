"""
Epilepsy biomarker analysis

Spike trains, HFO ratios, band power ratios and inter-channel coherence
computed over a recording with the epilepsy band table.
"""

import logging
from typing import Dict, List, Sequence

from ..core.config import (
    EPILEPSY_BANDS, DEFAULT_LAYOUT, ChannelLayout,
    SPIKE_FREQUENCY_THRESHOLD, HIGH_COHERENCE_THRESHOLD,
)
from ..core.data_types import Recording, EpilepsyResult, PowerRatios
from ..processing.features import calculate_band_powers, resolve_channels
from ..processing.biomarkers import detect_spikes, spike_frequency, detect_hfo, power_ratios, pairwise_coherence


def analyze_epilepsy_features(recording: Recording, channels: Sequence[str],
                              layout: ChannelLayout = DEFAULT_LAYOUT) -> EpilepsyResult:
    """
    Compute epilepsy-related biomarkers

    Args:
        recording: Source recording
        channels: Channels to analyse (at least two)
        layout: Channel role table (coherence is computed for every pair,
            so the layout only affects logging)

    Returns:
        EpilepsyResult: Band powers, spikes, HFO, ratios, coherence and findings

    Raises:
        InvalidInputError: For fewer than two channels or an unknown channel
    """
    channels = resolve_channels(recording, channels, min_channels=2)
    fs = recording.sample_rate

    powers = calculate_band_powers(recording, channels, EPILEPSY_BANDS)
    spikes = {ch: detect_spikes(recording.channel(ch), fs) for ch in channels}
    frequencies = {ch: spike_frequency(found) for ch, found in spikes.items()}
    hfo = {ch: detect_hfo(recording.channel(ch), fs) for ch in channels}
    ratios = power_ratios(powers)
    coherence = pairwise_coherence(recording.samples, channels)

    result = EpilepsyResult(
        band_powers=powers,
        spikes=spikes,
        spike_frequency=frequencies,
        hfo=hfo,
        power_ratios=ratios,
        coherence=coherence,
        abnormal_channels=find_abnormal_channels(frequencies, ratios),
        high_coherence_pairs=find_high_coherence_pairs(coherence),
    )

    total_spikes = sum(len(found) for found in spikes.values())
    roles = [layout.roles.get(ch, "unassigned") for ch in channels]
    logging.info(f"Epilepsy analysis complete: {total_spikes} spikes across {len(channels)} channels ({roles})")
    if result.abnormal_channels:
        logging.warning(f"Abnormal channels: {result.abnormal_channels}")
    return result


def find_abnormal_channels(frequencies: Dict[str, float], ratios: Dict[str, PowerRatios],
                           spike_threshold: float = SPIKE_FREQUENCY_THRESHOLD) -> List[str]:
    """Channels with a spike rate above threshold or an abnormal beta/gamma ratio, in first-seen order"""
    abnormal = [ch for ch, rate in frequencies.items() if rate > spike_threshold]
    for channel, ratio in ratios.items():
        if ratio.abnormal and channel not in abnormal:
            abnormal.append(channel)
    return abnormal


def find_high_coherence_pairs(coherence: Dict[str, float],
                              threshold: float = HIGH_COHERENCE_THRESHOLD) -> List[str]:
    """Pairs whose coherence exceeds the threshold"""
    return [pair for pair, value in coherence.items() if value > threshold]
