"""
Core data types for EEG Biomarkers

This module defines the fundamental data structures used throughout the system
for representing recordings, spectra, biomarkers, condition scores and alerts.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import MAX_CHANNELS
from .exceptions import InvalidInputError

# channel -> band -> power
BandPowerMap = Dict[str, Dict[str, float]]


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass
class Recording:
    """
    Normalized multichannel recording

    Every channel holds the same number of samples. Construction validates
    the invariants and converts samples to float arrays.
    """
    channel_names: List[str]
    sample_rate: float
    samples: Dict[str, np.ndarray]
    time: Optional[np.ndarray] = None

    def __post_init__(self):
        self.channel_names = list(self.channel_names)
        if not self.channel_names:
            raise InvalidInputError("Recording has no channels")
        if len(self.channel_names) > MAX_CHANNELS:
            raise InvalidInputError(f"Recording has {len(self.channel_names)} channels, at most {MAX_CHANNELS} supported")
        if len(set(self.channel_names)) != len(self.channel_names):
            raise InvalidInputError(f"Duplicate channel names: {self.channel_names}")
        if self.sample_rate is None or self.sample_rate <= 0:
            raise InvalidInputError(f"Sample rate must be positive, got {self.sample_rate}")

        converted = {}
        for name in self.channel_names:
            if name not in self.samples:
                raise InvalidInputError(f"No samples for channel {name}")
            converted[name] = np.asarray(self.samples[name], dtype=float)
        self.samples = converted

        lengths = {len(values) for values in converted.values()}
        if len(lengths) != 1:
            raise InvalidInputError(f"Channel lengths differ: {sorted(lengths)}")
        if lengths.pop() == 0:
            raise InvalidInputError("Recording is empty")

        if self.time is not None:
            self.time = np.asarray(self.time, dtype=float)
            if len(self.time) != self.n_samples:
                raise InvalidInputError("Time axis length does not match samples")

    @property
    def n_samples(self) -> int:
        return len(self.samples[self.channel_names[0]])

    @property
    def duration(self) -> float:
        return self.n_samples / self.sample_rate

    def channel(self, name: str) -> np.ndarray:
        """Return one channel's samples"""
        if name not in self.samples:
            raise InvalidInputError(f"Unknown channel: {name}")
        return self.samples[name]

    def select(self, channels: Sequence[str]) -> "Recording":
        """Return a recording restricted to the given channels"""
        for name in channels:
            self.channel(name)
        return Recording(
            channel_names=list(channels),
            sample_rate=self.sample_rate,
            samples={name: self.samples[name] for name in channels},
            time=self.time,
        )

    def tail(self, n: Optional[int]) -> "Recording":
        """Return a recording holding the last n samples (all of them if n is None)"""
        if n is None or n >= self.n_samples:
            return self
        return Recording(
            channel_names=self.channel_names,
            sample_rate=self.sample_rate,
            samples={name: values[-n:] for name, values in self.samples.items()},
            time=self.time[-n:] if self.time is not None else None,
        )


@dataclass(frozen=True)
class SpectrumResult:
    """Magnitude spectrum of one window, bins from DC up to just below Nyquist"""
    frequencies: np.ndarray
    magnitudes: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "frequencies", _readonly(self.frequencies))
        object.__setattr__(self, "magnitudes", _readonly(self.magnitudes))

    def __len__(self) -> int:
        return len(self.frequencies)


@dataclass
class ChannelStatistics:
    """Basic amplitude statistics of one channel"""
    mean: float
    std: float
    min: float
    max: float


@dataclass(frozen=True)
class Spike:
    """Single detected spike"""
    sample_index: int
    amplitude: float      # Signed sample value
    time_seconds: float


@dataclass
class HFOResult:
    """High-frequency oscillation estimate for one channel"""
    detected: bool
    ratio: Optional[float] = None
    power: Optional[float] = None
    message: Optional[str] = None

    @property
    def computable(self) -> bool:
        return self.ratio is not None


@dataclass
class PowerRatios:
    """Band power ratios used by the epilepsy analysis"""
    beta_gamma: float
    theta_beta: float
    abnormal: bool


@dataclass
class Marker:
    """Human-readable record of a scoring rule that fired"""
    name: str
    value: float
    description: str


@dataclass
class ConditionScore:
    """Heuristic score for a named condition or state"""
    name: str
    score: float
    markers: List[Marker] = field(default_factory=list)
    severity: str = "low"
    interpretation: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass
class StreamSample:
    """One multichannel sample pulled from a streaming source"""
    values: Dict[str, float]
    time: float                       # Seconds since the source started
    anomaly: Optional[str] = None     # Description of an injected demo anomaly


@dataclass
class Alert:
    """Streaming alert shown to the operator"""
    id: int
    message: str
    timestamp: float
    severity: str  # "info", "warning", "critical"


@dataclass
class BatchResult:
    """Result of a one-shot statistics/spectrum analysis"""
    statistics: Dict[str, ChannelStatistics]
    spectrum: Optional[Dict[str, SpectrumResult]] = None


@dataclass
class DepressionResult:
    """Depression-related biomarkers"""
    band_powers: BandPowerMap
    alpha_asymmetry: Dict[str, float]
    theta_power: Dict[str, float]
    alpha_theta_ratio: Dict[str, float]
    front_posterior_ratio: Dict[str, Dict[str, float]]
    interpretation: List[str] = field(default_factory=list)


@dataclass
class EpilepsyResult:
    """Epilepsy-related biomarkers"""
    band_powers: BandPowerMap
    spikes: Dict[str, List[Spike]]
    spike_frequency: Dict[str, float]
    hfo: Dict[str, HFOResult]
    power_ratios: Dict[str, PowerRatios]
    coherence: Dict[str, float]
    abnormal_channels: List[str] = field(default_factory=list)
    high_coherence_pairs: List[str] = field(default_factory=list)


@dataclass
class ConditionFeatures:
    """Per-channel features consumed by the condition scorers"""
    band_powers: BandPowerMap
    statistics: Dict[str, ChannelStatistics]
    complexity: Dict[str, float]
    asymmetry: Dict[str, float]


@dataclass
class NeuroFeatures:
    """Per-channel features consumed by the neurodegenerative scorers"""
    band_powers: BandPowerMap
    slow_wave_ratio: Dict[str, float]
    alpha_peak_frequency: Dict[str, float]
    spectral_entropy: Dict[str, float]
    peak_frequency: Dict[str, float]
    amplitude_modulation: Dict[str, float]
    phase_coherence: Dict[str, float]


@dataclass
class NeuroDegenerativeResult:
    """Scores for the neurodegenerative condition group"""
    alzheimers: ConditionScore
    parkinsons: ConditionScore
    vascular_dementia: ConditionScore
    lewy_bodies: ConditionScore


@dataclass
class AnalysisSnapshot:
    """Periodic streaming analysis of the most recent window"""
    sample_count: int
    timestamp: float
    statistics: Dict[str, ChannelStatistics]
    spectra: Dict[str, SpectrumResult]
    dominant_frequency: Dict[str, float]


@dataclass
class IntegratedResult:
    """Combined output of one integrated analysis run"""
    timestamp: float
    depression: Optional[DepressionResult] = None
    epilepsy: Optional[EpilepsyResult] = None
    conditions: Optional[List[ConditionScore]] = None
    neurodegenerative: Optional[NeuroDegenerativeResult] = None
