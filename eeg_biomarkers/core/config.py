"""
Configuration constants for EEG Biomarkers

This module contains all configuration parameters that users may need to customize
for their montage, detection thresholds and streaming behaviour. Threshold values
were tuned against the direct DFT in processing/spectrum.py and should not be
changed independently of it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .exceptions import InvalidInputError

# ============================================================================
# ACQUISITION CONFIGURATION
# ============================================================================

FS_EXPECTED = 100                 # Nominal streaming sample rate (Hz)
MAX_CHANNELS = 8                  # Recordings carry at most 8 channels

ALL_CHANNELS = [f"Channel{i}" for i in range(1, MAX_CHANNELS + 1)]
DEFAULT_CHANNELS = ALL_CHANNELS[:4]

# Simulated signal: dominant rhythm of each channel (Hz)
SIMULATED_BASE_FREQS = {
    "Channel1": 10,   # Alpha
    "Channel2": 20,   # Beta
    "Channel3": 5,    # Theta
    "Channel4": 3,    # Delta
    "Channel5": 15,   # Beta
    "Channel6": 8,    # Alpha
    "Channel7": 40,   # Gamma
    "Channel8": 12,   # Alpha/Beta transition
}
SIMULATED_ANOMALY_PROB = 0.03     # Chance of an injected demo anomaly per sample

# BrainFlow board used by the hardware sample source
SERIAL_PORT = "/dev/ttyUSB0"      # Windows: COMx, Linux: /dev/ttyUSBx
BOARD_MAX_PENDING = 250           # Unread board samples kept; older ones are dropped

# Communication Configuration
UDP_HOST = "127.0.0.1"
UDP_PORT = 5005

# ============================================================================
# FREQUENCY BANDS (Hz, inclusive on both ends)
# ============================================================================

# Depression analysis
DEPRESSION_BANDS = {
    "delta": (0.5, 4),
    "theta": (4, 8),
    "alpha": (8, 13),
    "beta": (13, 30),
    "gamma": (30, 45),
}

# Epilepsy analysis extends gamma to catch high-frequency activity
EPILEPSY_BANDS = {
    "delta": (0.5, 4),
    "theta": (4, 8),
    "alpha": (8, 13),
    "beta": (13, 30),
    "gamma": (30, 100),
}

# Condition scoring and neurodegenerative features
FEATURE_BANDS = {
    "delta": (0.5, 4),
    "theta": (4, 8),
    "alpha": (8, 13),
    "beta": (13, 30),
    "gamma": (30, 50),
}

ALPHA_BAND = (8, 13)
ENTROPY_BAND = (0.5, 30)
HFO_BAND_LOW = 80
HFO_BAND_HIGH = 500
HFO_MIN_SAMPLE_RATE = 200

# ============================================================================
# DETECTION THRESHOLDS
# ============================================================================

SPIKE_AMPLITUDE_THRESHOLD = 75.0  # µV, floor of the adaptive spike threshold
SPIKE_STD_FACTOR = 3.0            # Adaptive threshold = max(floor, 3 * std)
SPIKE_SLOPE_DIVISOR = 5.0         # Slope threshold = amplitude threshold / 5
SPIKE_REFRACTORY_SEC = 0.1        # Skip after a detected spike
SPIKE_FREQUENCY_THRESHOLD = 5.0   # Spikes per minute
HFO_RATIO_THRESHOLD = 0.15
BETA_GAMMA_RATIO_THRESHOLD = 1.5
HIGH_COHERENCE_THRESHOLD = 0.85

ASYMMETRY_THRESHOLD = 0.1         # |index| above this is lateralised
ALPHA_THETA_LOW = 0.7
ALPHA_THETA_HIGH = 1.5
THETA_POWER_HIGH = 0.3

CONDITION_DETECTED_THRESHOLD = 0.6

ENVELOPE_WINDOW = 10              # Samples per peak-to-peak envelope window
MIN_MODULATION_SAMPLES = 100

# ============================================================================
# ANALYSIS WINDOWS (samples at the nominal rate)
# ============================================================================

SPECTRUM_WINDOW_SAMPLES = 100     # Last second of streaming data
CONDITION_WINDOW_SAMPLES = 200    # Last 2 seconds for condition scoring
NEURO_WINDOW_SAMPLES = 300        # Last 3 seconds for neurodegenerative features

# ============================================================================
# STREAMING / ALERTS
# ============================================================================

ALERT_CAPACITY = 5
ALERT_EXPIRY_SEC = {
    "critical": 10.0,
    "info": 5.0,
}
ALERT_SEVERITIES = ("info", "warning", "critical")

ANOMALY_CHECK_EVERY = 20          # Amplitude checks on every Nth sample
ANALYSIS_EVERY = 100              # Spectrum snapshot every Nth sample
INTEGRATED_THROTTLE_SEC = 1.0     # Drop integrated triggers closer than this

TICK_INTERVAL_RANGE_MS = (10, 1000)
BUFFER_SIZE_RANGE = (100, 1000)
ANALYSIS_INTERVAL_RANGE_SEC = (1, 30)

DEFAULT_AMPLITUDE_RANGE = (-2.0, 2.0)
DEFAULT_FREQUENCY_RANGE = (0.0, 30.0)

# ============================================================================
# MONTAGE
# ============================================================================

# Channel id -> anatomical role. Channel3/Channel4 sit over P3/P4 in the
# depression montage and are read as the temporal pair elsewhere.
CHANNEL_ROLES = {
    "Channel1": "left_frontal",
    "Channel2": "right_frontal",
    "Channel3": "left_posterior",
    "Channel4": "right_posterior",
    "Channel5": "left_central",
    "Channel6": "right_central",
    "Channel7": "left_occipital",
    "Channel8": "right_occipital",
}


@dataclass(frozen=True)
class ChannelLayout:
    """
    Anatomical interpretation of channel ids

    Pair tables map a display name to a (first role, second role) tuple.
    Asymmetry pairs are (left, right); fronto-posterior pairs are
    (front, posterior).
    """
    roles: Dict[str, str] = field(default_factory=lambda: dict(CHANNEL_ROLES))
    asymmetry_pairs: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "frontal": ("left_frontal", "right_frontal"),
        "central": ("left_central", "right_central"),
    })
    feature_asymmetry_pairs: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "frontal": ("left_frontal", "right_frontal"),
        "temporal": ("left_posterior", "right_posterior"),
    })
    fronto_posterior_pairs: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "left": ("left_frontal", "left_posterior"),
        "right": ("right_frontal", "right_posterior"),
    })
    coherence_pairs: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "frontal": ("left_frontal", "right_frontal"),
        "temporal": ("left_posterior", "right_posterior"),
        "fronto_temporal": ("left_frontal", "left_posterior"),
        "central": ("left_central", "right_central"),
    })
    motor_rhythm_roles: Tuple[str, ...] = ("left_posterior", "right_posterior")
    frontal_roles: Tuple[str, ...] = ("left_frontal", "right_frontal")

    def channel_for(self, role: str) -> Optional[str]:
        """Return the channel id carrying a role, or None"""
        for channel, channel_role in self.roles.items():
            if channel_role == role:
                return channel
        return None

    def resolve_pair(self, pair: Tuple[str, str]) -> Optional[Tuple[str, str]]:
        """Map a pair of roles to a pair of channel ids, or None if either is unassigned"""
        first = self.channel_for(pair[0])
        second = self.channel_for(pair[1])
        if first is None or second is None:
            return None
        return first, second

    def resolve_pairs(self, pairs: Dict[str, Tuple[str, str]]) -> Dict[str, Tuple[str, str]]:
        """Map a named pair table to channel ids, dropping pairs with an unassigned role"""
        resolved = {}
        for name, roles in pairs.items():
            channels = self.resolve_pair(roles)
            if channels is not None:
                resolved[name] = channels
        return resolved

    def channels_for(self, roles: Tuple[str, ...]) -> List[str]:
        return [ch for ch in (self.channel_for(r) for r in roles) if ch is not None]


DEFAULT_LAYOUT = ChannelLayout()


# ============================================================================
# STREAMING SESSION CONFIGURATION
# ============================================================================

@dataclass
class StreamConfig:
    """
    Configuration for a streaming session

    Defaults mirror the nominal 100 Hz simulation: one sample per 100 ms
    tick, a 500 point buffer and a spectrum snapshot every 100 samples.

    Thresholds:
    - amplitude_range: (min, max) allowed sample amplitude
    - frequency_range: (min, max) allowed dominant frequency in Hz

    Integrated analysis:
    - integrated_mode / auto_analysis: both must be on for the timer to run
    - ai_analysis / neuro_analysis: include the condition and
      neurodegenerative scorer groups
    """
    sample_rate: float = FS_EXPECTED
    tick_interval_ms: int = 100
    buffer_size: int = 500
    channels: List[str] = None
    amplitude_range: Tuple[float, float] = DEFAULT_AMPLITUDE_RANGE
    frequency_range: Tuple[float, float] = DEFAULT_FREQUENCY_RANGE
    anomaly_check_every: int = ANOMALY_CHECK_EVERY
    analysis_every: int = ANALYSIS_EVERY
    spectrum_window: int = SPECTRUM_WINDOW_SAMPLES
    integrated_mode: bool = False
    auto_analysis: bool = False
    analysis_interval_s: float = 5.0
    ai_analysis: bool = False
    neuro_analysis: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if self.channels is None:
            self.channels = list(DEFAULT_CHANNELS)


def validate_config(config: StreamConfig) -> None:
    """
    Validate streaming parameters before a session starts

    Args:
        config: Configuration to validate

    Raises:
        InvalidInputError: If a parameter is out of range
    """
    if config.sample_rate <= 0:
        raise InvalidInputError(f"Sample rate must be positive, got {config.sample_rate}")

    low, high = TICK_INTERVAL_RANGE_MS
    if not low <= config.tick_interval_ms <= high:
        raise InvalidInputError(f"Tick interval must be within {low}-{high} ms, got {config.tick_interval_ms}")

    low, high = BUFFER_SIZE_RANGE
    if not low <= config.buffer_size <= high:
        raise InvalidInputError(f"Buffer size must be within {low}-{high}, got {config.buffer_size}")

    low, high = ANALYSIS_INTERVAL_RANGE_SEC
    if not low <= config.analysis_interval_s <= high:
        raise InvalidInputError(f"Analysis interval must be within {low}-{high} s, got {config.analysis_interval_s}")

    if not config.channels:
        raise InvalidInputError("At least one channel must be selected")

    unknown = [ch for ch in config.channels if ch not in ALL_CHANNELS]
    if unknown:
        raise InvalidInputError(f"Unknown channels: {unknown}")

    if config.amplitude_range[0] >= config.amplitude_range[1]:
        raise InvalidInputError(f"Amplitude range must be (min, max), got {config.amplitude_range}")

    if config.frequency_range[0] >= config.frequency_range[1]:
        raise InvalidInputError(f"Frequency range must be (min, max), got {config.frequency_range}")

    if config.anomaly_check_every <= 0 or config.analysis_every <= 0:
        raise InvalidInputError("Check cadences must be positive")

    if config.spectrum_window <= 0:
        raise InvalidInputError(f"Spectrum window must be positive, got {config.spectrum_window}")
