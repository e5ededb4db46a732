"""
Depression biomarker analysis

Frontal alpha asymmetry, alpha/theta ratios, theta power and front/posterior
ratios computed over a recording with the depression band table.
"""

import logging
from typing import List, Sequence

import numpy as np

from ..core.config import (
    DEPRESSION_BANDS, DEFAULT_LAYOUT, ChannelLayout,
    ASYMMETRY_THRESHOLD, ALPHA_THETA_LOW, ALPHA_THETA_HIGH, THETA_POWER_HIGH,
)
from ..core.data_types import Recording, DepressionResult
from ..processing.features import calculate_band_powers, resolve_channels
from ..processing.biomarkers import alpha_asymmetry, alpha_theta_ratios, theta_powers, front_posterior_ratio


def analyze_depression_features(recording: Recording, channels: Sequence[str],
                                layout: ChannelLayout = DEFAULT_LAYOUT) -> DepressionResult:
    """
    Compute depression-related biomarkers

    Args:
        recording: Source recording
        channels: Channels to analyse (at least two)
        layout: Channel role table used to find the hemispheric pairs

    Returns:
        DepressionResult: Band powers, asymmetry, ratios and interpretation

    Raises:
        InvalidInputError: For fewer than two channels or an unknown channel
    """
    channels = resolve_channels(recording, channels, min_channels=2)
    powers = calculate_band_powers(recording, channels, DEPRESSION_BANDS)

    asymmetry = alpha_asymmetry(powers, layout.resolve_pairs(layout.asymmetry_pairs))
    ratios = alpha_theta_ratios(powers)
    theta = theta_powers(powers)
    front_posterior = front_posterior_ratio(
        powers, layout.resolve_pairs(layout.fronto_posterior_pairs), list(DEPRESSION_BANDS)
    )

    result = DepressionResult(
        band_powers=powers,
        alpha_asymmetry=asymmetry,
        theta_power=theta,
        alpha_theta_ratio=ratios,
        front_posterior_ratio=front_posterior,
    )
    result.interpretation = interpret_depression(result)
    logging.info(f"Depression analysis complete for {len(channels)} channels")
    return result


def interpret_depression(result: DepressionResult) -> List[str]:
    """Textual reading of asymmetry, alpha/theta ratio and mean theta power"""
    lines = []
    for pair, index in result.alpha_asymmetry.items():
        if index > ASYMMETRY_THRESHOLD:
            lines.append(f"{pair} asymmetry high ({index:.3f}): right alpha exceeds left, "
                         f"a pattern associated with low mood")
        elif index < -ASYMMETRY_THRESHOLD:
            lines.append(f"{pair} asymmetry low ({index:.3f}): left alpha exceeds right, "
                         f"usually associated with positive affect")
        else:
            lines.append(f"{pair} asymmetry within normal range ({index:.3f})")

    for channel, ratio in result.alpha_theta_ratio.items():
        if ratio < ALPHA_THETA_LOW:
            lines.append(f"{channel} alpha/theta ratio low ({ratio:.2f}), possibly related to depressive symptoms")
        elif ratio > ALPHA_THETA_HIGH:
            lines.append(f"{channel} alpha/theta ratio high ({ratio:.2f}), usually a relaxed state")
        else:
            lines.append(f"{channel} alpha/theta ratio within normal range ({ratio:.2f})")

    if result.theta_power:
        mean_theta = float(np.mean(list(result.theta_power.values())))
        if mean_theta > THETA_POWER_HIGH:
            lines.append(f"Mean theta power elevated ({mean_theta:.3f}), possibly related to reduced attention")
        else:
            lines.append(f"Mean theta power within normal range ({mean_theta:.3f})")
    return lines

