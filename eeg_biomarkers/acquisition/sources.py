"""
EEG sample sources

This module provides sample-by-sample sources for the streaming scheduler:
a simulated montage with injected demo anomalies for development, and a
BrainFlow board source for OpenBCI hardware or the BrainFlow synthetic board.
"""

import logging
from collections import deque
from typing import List, Optional, Sequence

import numpy as np

from ..core.config import (
    SERIAL_PORT, BOARD_MAX_PENDING, FS_EXPECTED, ALL_CHANNELS, MAX_CHANNELS,
    SIMULATED_BASE_FREQS, SIMULATED_ANOMALY_PROB,
)
from ..core.data_types import Recording, StreamSample
from ..core.exceptions import InvalidInputError

# Optional imports with fallbacks
try:
    from brainflow.board_shim import BoardShim, BrainFlowInputParams, BoardIds
    BRAINFLOW_AVAILABLE = True
except ImportError:
    BRAINFLOW_AVAILABLE = False
    logging.warning("BrainFlow not available - use the simulated source instead")


class SimulatedEEGSource:
    """
    Generate a synthetic 8-channel EEG stream

    Each channel carries a dominant rhythm at its base frequency, a weaker
    component at half that frequency and uniform noise. About 3% of samples
    carry an injected anomaly (a spike or a flatline on a random channel)
    that the scheduler reports as a critical alert.
    """

    def __init__(self, fs: float = FS_EXPECTED, channels: Sequence[str] = ALL_CHANNELS,
                 rng: Optional[np.random.Generator] = None,
                 anomaly_prob: float = SIMULATED_ANOMALY_PROB):
        unknown = [ch for ch in channels if ch not in SIMULATED_BASE_FREQS]
        if unknown:
            raise InvalidInputError(f"No simulated rhythm for channels: {unknown}")
        self.fs = fs
        self.channels = list(channels)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.anomaly_prob = anomaly_prob
        self.sample_count = 0

    def next_sample(self) -> StreamSample:
        """
        Generate the next sample for every channel

        Returns:
            StreamSample: Channel values, time and optional anomaly description
        """
        t = self.sample_count / self.fs
        self.sample_count += 1

        values = {}
        for channel in self.channels:
            base = SIMULATED_BASE_FREQS[channel]
            values[channel] = (0.8 * np.sin(2 * np.pi * base * t)
                               + 0.3 * np.sin(2 * np.pi * (base / 2) * t)
                               + (self.rng.random() - 0.5) * 0.25)

        anomaly = None
        if self.rng.random() < self.anomaly_prob:
            channel = self.channels[int(self.rng.integers(len(self.channels)))]
            if self.rng.random() < 0.5:
                sign = 1 if self.rng.random() < 0.5 else -1
                values[channel] = sign * (2 + self.rng.random() * 1.5)
                anomaly = f"Abnormally high amplitude on {channel} ({values[channel]:.2f})"
            else:
                values[channel] = 0.0
                anomaly = f"Flatline on {channel}"

        return StreamSample(values={ch: float(v) for ch, v in values.items()}, time=t, anomaly=anomaly)

    def generate_recording(self, duration_sec: float) -> Recording:
        """
        Generate a batch recording from the stream

        Args:
            duration_sec: Recording length in seconds

        Returns:
            Recording: All source channels at the source sample rate
        """
        n_samples = int(duration_sec * self.fs)
        if n_samples <= 0:
            raise InvalidInputError(f"Duration too short for a recording: {duration_sec} s")

        samples = {channel: np.empty(n_samples) for channel in self.channels}
        times = np.empty(n_samples)
        for i in range(n_samples):
            sample = self.next_sample()
            times[i] = sample.time
            for channel, value in sample.values.items():
                samples[channel][i] = value

        logging.info(f"Generated {duration_sec} s simulated recording ({n_samples} samples)")
        return Recording(channel_names=self.channels, sample_rate=self.fs, samples=samples, time=times)


class BoardSampleSource:
    """
    Stream samples from a BrainFlow board

    Board data is pulled on every call and handed out one sample at a time.
    When the board produces faster than the caller consumes, only the newest
    max_pending samples are kept, so latency stays bounded. The first eight
    EEG rows are exposed as Channel1..Channel8. A pre-built board object can
    be injected together with its EEG rows and sample rate.
    """

    def __init__(self, serial_port: str = SERIAL_PORT, board_id: Optional[int] = None,
                 board=None, eeg_rows: Optional[List[int]] = None, fs: Optional[float] = None,
                 max_pending: int = BOARD_MAX_PENDING):
        self.serial_port = serial_port
        self.board_id = board_id
        self.board = board
        self.eeg_rows = list(eeg_rows) if eeg_rows is not None else []
        self.fs = fs if fs is not None else FS_EXPECTED
        self.channels: List[str] = []
        self.received_count = 0      # Samples read from the board, dropped ones included
        self.dropped_count = 0
        self.pending = deque(maxlen=max_pending)
        self.is_connected = False

    def connect(self) -> bool:
        """
        Prepare the board session and start streaming

        Returns:
            bool: True if connection successful, False otherwise
        """
        try:
            if self.board is None:
                if not self._create_board():
                    return False

            self.eeg_rows = self.eeg_rows[:MAX_CHANNELS]
            self.channels = ALL_CHANNELS[:len(self.eeg_rows)]
            logging.info(f"BrainFlow EEG rows: {self.eeg_rows}")
            logging.info(f"Sampling rate: {self.fs} Hz")

            self.board.prepare_session()
            self.board.start_stream()

            self.is_connected = True
            logging.info(f"Connected to board on {self.serial_port}")
            return True

        except Exception as e:
            logging.error(f"BrainFlow connection failed: {e}")
            logging.error("Hint: Check the serial port, ensure the board is on, and no other software is using it")
            return False

    def _create_board(self) -> bool:
        if not BRAINFLOW_AVAILABLE:
            logging.error("BrainFlow not available. Install with: pip install brainflow")
            return False

        params = BrainFlowInputParams()
        params.serial_port = self.serial_port

        board_id = self.board_id if self.board_id is not None else BoardIds.SYNTHETIC_BOARD
        self.board = BoardShim(board_id, params)
        self.eeg_rows = BoardShim.get_eeg_channels(board_id)
        self.fs = BoardShim.get_sampling_rate(board_id)
        return True

    def next_sample(self) -> Optional[StreamSample]:
        """
        Return the oldest unread sample, or None if the board has none yet

        The sample time is its position in the board stream, so dropped
        samples show up as a gap in time.
        """
        if not self.is_connected:
            return None

        try:
            data = self.board.get_board_data()
        except Exception as e:
            logging.error(f"Failed to get data: {e}")
            data = None

        if data is not None:
            for column in np.asarray(data)[self.eeg_rows, :].T:
                if len(self.pending) == self.pending.maxlen:
                    self.dropped_count += 1
                self.pending.append((self.received_count, column))
                self.received_count += 1

        if not self.pending:
            return None

        index, column = self.pending.popleft()
        return StreamSample(values={ch: float(v) for ch, v in zip(self.channels, column)}, time=index / self.fs)

    def disconnect(self):
        """Clean disconnect from the board"""
        try:
            if self.board is not None and self.is_connected:
                self.board.stop_stream()
                self.board.release_session()
                logging.info("BrainFlow disconnected")
        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.is_connected = False
            self.pending.clear()
