"""
Core data types, configuration and errors for EEG Biomarkers

This module contains the fundamental data classes used throughout the system.
"""

from .data_types import (
    Recording, SpectrumResult, ChannelStatistics, Spike, HFOResult, PowerRatios,
    Marker, ConditionScore, StreamSample, Alert, BatchResult, DepressionResult, EpilepsyResult,
    ConditionFeatures, NeuroFeatures, NeuroDegenerativeResult, AnalysisSnapshot,
    IntegratedResult,
)
from .config import ChannelLayout, DEFAULT_LAYOUT, StreamConfig, validate_config
from .exceptions import InvalidInputError

__all__ = [
    'Recording', 'SpectrumResult', 'ChannelStatistics', 'Spike', 'HFOResult', 'PowerRatios',
    'Marker', 'ConditionScore', 'StreamSample', 'Alert', 'BatchResult', 'DepressionResult', 'EpilepsyResult',
    'ConditionFeatures', 'NeuroFeatures', 'NeuroDegenerativeResult', 'AnalysisSnapshot',
    'IntegratedResult', 'ChannelLayout', 'DEFAULT_LAYOUT', 'StreamConfig', 'validate_config',
    'InvalidInputError',
]
