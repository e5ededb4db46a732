"""
Condition analysis for EEG Biomarkers

This module contains the depression and epilepsy biomarker analyses and the
heuristic condition scorers.
"""

from .depression import analyze_depression_features
from .epilepsy import analyze_epilepsy_features
from .mental_state import extract_condition_features, identify_conditions, analyze_conditions
from .neurodegenerative import extract_neuro_features, analyze_neurodegenerative_features

__all__ = [
    'analyze_depression_features', 'analyze_epilepsy_features',
    'extract_condition_features', 'identify_conditions', 'analyze_conditions',
    'extract_neuro_features', 'analyze_neurodegenerative_features',
]
