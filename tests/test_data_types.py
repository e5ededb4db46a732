import dataclasses

import numpy as np
import pytest

from eeg_biomarkers.core.config import (
    StreamConfig, validate_config, ChannelLayout, DEFAULT_LAYOUT, DEFAULT_CHANNELS,
)
from eeg_biomarkers.core.data_types import Recording, HFOResult
from eeg_biomarkers.core.exceptions import InvalidInputError
from conftest import make_recording


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def test_recording_converts_samples_to_arrays():
    recording = make_recording({"Channel1": [1, 2, 3], "Channel2": [4, 5, 6]})
    assert isinstance(recording.samples["Channel1"], np.ndarray)
    assert recording.n_samples == 3
    assert recording.duration == pytest.approx(0.03)


@pytest.mark.parametrize("signals", [
    {},
    {"Channel1": [1, 2], "Channel2": [1, 2, 3]},
    {"Channel1": []},
    {f"Channel{i}": [0.0] for i in range(1, 10)},
])
def test_recording_rejects_malformed_input(signals):
    with pytest.raises(InvalidInputError):
        make_recording(signals)


def test_recording_rejects_missing_channel_and_bad_rate():
    with pytest.raises(InvalidInputError):
        Recording(channel_names=["Channel1", "Channel2"], sample_rate=100, samples={"Channel1": [1.0]})
    with pytest.raises(InvalidInputError):
        make_recording({"Channel1": [1.0]}, fs=0)


def test_recording_rejects_mismatched_time_axis():
    with pytest.raises(InvalidInputError):
        Recording(channel_names=["Channel1"], sample_rate=100, samples={"Channel1": [1.0, 2.0]}, time=[0.0])


def test_tail_and_select():
    recording = make_recording({"Channel1": np.arange(10), "Channel2": np.arange(10, 20)})
    tail = recording.tail(3)
    assert tail.n_samples == 3
    assert list(tail.channel("Channel2")) == [17, 18, 19]
    assert recording.tail(None) is recording
    assert recording.tail(50) is recording

    selected = recording.select(["Channel2"])
    assert selected.channel_names == ["Channel2"]
    with pytest.raises(InvalidInputError):
        recording.select(["Channel5"])


def test_hfo_computable_follows_ratio():
    assert not HFOResult(detected=False).computable
    assert HFOResult(detected=False, ratio=0.0).computable


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def test_default_layout_resolves_pairs():
    assert DEFAULT_LAYOUT.resolve_pairs(DEFAULT_LAYOUT.asymmetry_pairs) == {
        "frontal": ("Channel1", "Channel2"),
        "central": ("Channel5", "Channel6"),
    }
    assert DEFAULT_LAYOUT.channels_for(DEFAULT_LAYOUT.motor_rhythm_roles) == ["Channel3", "Channel4"]


def test_layout_drops_pairs_with_unassigned_roles():
    layout = ChannelLayout(roles={"Channel1": "left_frontal", "Channel2": "right_frontal"})
    assert layout.resolve_pairs(layout.asymmetry_pairs) == {"frontal": ("Channel1", "Channel2")}
    assert layout.channel_for("left_central") is None


# ---------------------------------------------------------------------------
# StreamConfig
# ---------------------------------------------------------------------------

def test_default_config_is_valid():
    config = StreamConfig()
    validate_config(config)
    assert config.channels == DEFAULT_CHANNELS
    assert config.channels is not DEFAULT_CHANNELS


@pytest.mark.parametrize("changes", [
    {"tick_interval_ms": 5},
    {"tick_interval_ms": 1001},
    {"buffer_size": 99},
    {"buffer_size": 1001},
    {"analysis_interval_s": 0.5},
    {"analysis_interval_s": 31},
    {"channels": []},
    {"channels": ["Channel9"]},
    {"amplitude_range": (2.0, -2.0)},
    {"frequency_range": (30.0, 30.0)},
    {"sample_rate": 0},
    {"analysis_every": 0},
    {"spectrum_window": 0},
])
def test_invalid_config_rejected(changes):
    with pytest.raises(InvalidInputError):
        validate_config(dataclasses.replace(StreamConfig(), **changes))


@pytest.mark.parametrize("changes", [
    {"tick_interval_ms": 10},
    {"tick_interval_ms": 1000},
    {"buffer_size": 100},
    {"buffer_size": 1000},
    {"analysis_interval_s": 1},
    {"analysis_interval_s": 30},
])
def test_config_range_bounds_are_inclusive(changes):
    validate_config(dataclasses.replace(StreamConfig(), **changes))
