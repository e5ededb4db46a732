"""
EEG Biomarkers - Spectral biomarker engine for multichannel EEG

A modular Python package that derives frequency-domain biomarkers from
recordings or live streams and scores depression-, epilepsy- and
neurodegeneration-related patterns. Scores are documented heuristics, not
diagnoses.

Python: 3.10+
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.config import ChannelLayout, DEFAULT_LAYOUT, StreamConfig, validate_config
from .core.data_types import Recording, SpectrumResult, ConditionScore, Alert
from .core.exceptions import InvalidInputError
from .processing.spectrum import compute_spectrum, band_power
from .processing.features import calculate_band_powers, analyze_batch
from .detection.depression import analyze_depression_features
from .detection.epilepsy import analyze_epilepsy_features
from .detection.mental_state import analyze_conditions
from .detection.neurodegenerative import analyze_neurodegenerative_features
from .acquisition.sources import SimulatedEEGSource, BoardSampleSource
from .streaming.scheduler import StreamScheduler
from .streaming.runner import SessionRunner
from .communication.udp_sender import ResultSender

__all__ = [
    'ChannelLayout', 'DEFAULT_LAYOUT', 'StreamConfig', 'validate_config',
    'Recording', 'SpectrumResult', 'ConditionScore', 'Alert', 'InvalidInputError',
    'compute_spectrum', 'band_power', 'calculate_band_powers', 'analyze_batch',
    'analyze_depression_features', 'analyze_epilepsy_features',
    'analyze_conditions', 'analyze_neurodegenerative_features',
    'SimulatedEEGSource', 'BoardSampleSource',
    'StreamScheduler', 'SessionRunner', 'ResultSender',
]
