import numpy as np
import pytest

from eeg_biomarkers.core.config import ALL_CHANNELS
from eeg_biomarkers.core.exceptions import InvalidInputError
from eeg_biomarkers.acquisition.sources import SimulatedEEGSource, BoardSampleSource


class FakeBoard:
    """Minimal stand-in for a BrainFlow BoardShim"""

    def __init__(self, chunks, fail_prepare=False):
        self.chunks = list(chunks)
        self.fail_prepare = fail_prepare
        self.calls = []

    def prepare_session(self):
        self.calls.append("prepare_session")
        if self.fail_prepare:
            raise RuntimeError("unable to open port")

    def start_stream(self):
        self.calls.append("start_stream")

    def get_board_data(self):
        if self.chunks:
            return self.chunks.pop(0)
        return np.empty((4, 0))

    def stop_stream(self):
        self.calls.append("stop_stream")

    def release_session(self):
        self.calls.append("release_session")


# ---------------------------------------------------------------------------
# Simulated source
# ---------------------------------------------------------------------------

def test_simulated_sample_covers_all_channels():
    source = SimulatedEEGSource(rng=np.random.default_rng(0), anomaly_prob=0.0)
    sample = source.next_sample()
    assert set(sample.values) == set(ALL_CHANNELS)
    assert sample.time == 0.0
    assert sample.anomaly is None
    assert source.next_sample().time == pytest.approx(0.01)


def test_simulated_values_stay_bounded_without_anomalies():
    source = SimulatedEEGSource(rng=np.random.default_rng(1), anomaly_prob=0.0)
    for _ in range(300):
        values = source.next_sample().values
        assert all(abs(v) <= 1.225 for v in values.values())


def test_simulated_anomalies_are_described():
    source = SimulatedEEGSource(rng=np.random.default_rng(2), anomaly_prob=1.0)
    for _ in range(50):
        sample = source.next_sample()
        assert sample.anomaly.startswith(("Abnormally high amplitude on", "Flatline on"))
        if sample.anomaly.startswith("Flatline on"):
            channel = sample.anomaly.split()[-1]
            assert sample.values[channel] == 0.0


def test_simulated_source_is_reproducible():
    first = SimulatedEEGSource(rng=np.random.default_rng(3)).generate_recording(1)
    second = SimulatedEEGSource(rng=np.random.default_rng(3)).generate_recording(1)
    assert first.n_samples == 100
    assert np.array_equal(first.channel("Channel5"), second.channel("Channel5"))


def test_simulated_recording_of_subset():
    source = SimulatedEEGSource(channels=["Channel1", "Channel2"], rng=np.random.default_rng(0))
    recording = source.generate_recording(2.5)
    assert recording.channel_names == ["Channel1", "Channel2"]
    assert recording.n_samples == 250
    assert recording.time[-1] == pytest.approx(2.49)


def test_simulated_rejects_unknown_channel_and_short_duration():
    with pytest.raises(InvalidInputError):
        SimulatedEEGSource(channels=["Channel9"])
    with pytest.raises(InvalidInputError):
        SimulatedEEGSource().generate_recording(0.001)


# ---------------------------------------------------------------------------
# Board source
# ---------------------------------------------------------------------------

def test_board_source_streams_eeg_rows():
    chunk = np.array([
        [0, 1, 2],
        [10.0, 11.0, 12.0],
        [20.0, 21.0, 22.0],
        [99, 99, 99],
    ])
    board = FakeBoard([chunk])
    source = BoardSampleSource(board=board, eeg_rows=[1, 2], fs=250)

    assert source.next_sample() is None
    assert source.connect()
    assert source.channels == ["Channel1", "Channel2"]
    assert board.calls == ["prepare_session", "start_stream"]

    samples = [source.next_sample() for _ in range(3)]
    assert [s.values for s in samples] == [
        {"Channel1": 10.0, "Channel2": 20.0},
        {"Channel1": 11.0, "Channel2": 21.0},
        {"Channel1": 12.0, "Channel2": 22.0},
    ]
    assert samples[2].time == pytest.approx(2 / 250)
    assert source.next_sample() is None

    source.disconnect()
    assert board.calls[-2:] == ["stop_stream", "release_session"]
    assert not source.is_connected


def test_board_source_keeps_at_most_eight_channels():
    board = FakeBoard([np.zeros((12, 1))])
    source = BoardSampleSource(board=board, eeg_rows=list(range(10)), fs=250)
    assert source.connect()
    assert source.channels == ALL_CHANNELS
    assert len(source.next_sample().values) == 8


class FastBoard(FakeBoard):
    """Board that produces a fixed number of samples per poll, numbered in row 1"""

    def __init__(self, per_poll):
        super().__init__([])
        self.per_poll = per_poll
        self.produced = 0

    def get_board_data(self):
        start = self.produced
        self.produced += self.per_poll
        return np.vstack([np.zeros(self.per_poll), np.arange(start, self.produced, dtype=float)])


def test_board_source_latency_stays_bounded_when_board_outpaces_ticks():
    # 250 Hz board polled every 100 ms
    board = FastBoard(per_poll=25)
    source = BoardSampleSource(board=board, eeg_rows=[1], fs=250, max_pending=250)
    assert source.connect()

    lags = []
    for _ in range(2000):
        sample = source.next_sample()
        lags.append(board.produced - 1 - sample.values["Channel1"])

    assert max(lags) <= 250
    assert len(source.pending) <= 250
    assert source.dropped_count > 0
    # Time follows the board stream position across dropped samples
    assert sample.time == pytest.approx(sample.values["Channel1"] / 250)


def test_board_source_delivers_every_sample_when_keeping_up():
    board = FastBoard(per_poll=1)
    source = BoardSampleSource(board=board, eeg_rows=[1], fs=250)
    assert source.connect()
    values = [source.next_sample().values["Channel1"] for _ in range(10)]
    assert values == [float(i) for i in range(10)]
    assert source.dropped_count == 0


def test_board_source_connection_failure():
    source = BoardSampleSource(board=FakeBoard([], fail_prepare=True), eeg_rows=[1])
    assert not source.connect()
    assert not source.is_connected
