"""
EEG data acquisition sources

This module provides the simulated montage and the BrainFlow board source
that feed the streaming scheduler.
"""

from .sources import SimulatedEEGSource, BoardSampleSource

__all__ = ['SimulatedEEGSource', 'BoardSampleSource']
