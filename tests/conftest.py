import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure repository root is on sys.path so tests can import the local package
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eeg_biomarkers.core.config import ALL_CHANNELS
from eeg_biomarkers.core.data_types import Recording, StreamSample


def sine(freq, n, fs=100.0, amplitude=1.0, offset=0.0):
    t = np.arange(n) / fs
    return offset + amplitude * np.sin(2 * np.pi * freq * t)


def make_recording(signals, fs=100.0):
    """Build a Recording from a {channel: samples} mapping"""
    return Recording(channel_names=list(signals), sample_rate=fs, samples=dict(signals))


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubSource:
    """
    Deterministic sample source

    `value_fn(i, channel)` gives each channel's value for sample i;
    `anomalies` maps sample indices to an anomaly description.
    """

    def __init__(self, value_fn=None, anomalies=None, fs=100.0):
        self.value_fn = value_fn or (lambda i, channel: 0.0)
        self.anomalies = anomalies or {}
        self.fs = fs
        self.count = 0

    def next_sample(self):
        i = self.count
        self.count += 1
        values = {ch: float(self.value_fn(i, ch)) for ch in ALL_CHANNELS}
        return StreamSample(values=values, time=i / self.fs, anomaly=self.anomalies.get(i))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def alpha_recording():
    """Four channels of 10 Hz alpha with weaker right hemisphere, plus theta and beta"""
    n = 500
    return make_recording({
        "Channel1": sine(10, n) + 0.5 * sine(6, n),
        "Channel2": 0.5 * sine(10, n) + 0.5 * sine(6, n),
        "Channel3": sine(10, n) + sine(20, n),
        "Channel4": sine(10, n) + 0.8 * sine(20, n),
    })


@pytest.fixture
def noisy_recording():
    """Eight channels of seeded noise around a few rhythms"""
    gen = np.random.default_rng(3)
    n = 600
    freqs = [10, 20, 5, 3, 15, 8, 40, 12]
    return make_recording({
        ch: sine(f, n) + 0.3 * gen.standard_normal(n) for ch, f in zip(ALL_CHANNELS, freqs)
    })
