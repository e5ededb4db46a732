"""
Sliding sample buffer for streaming sessions
"""

from collections import deque
from typing import Dict, Optional, Sequence

import numpy as np

from ..core.data_types import Recording, StreamSample
from ..core.exceptions import InvalidInputError


class StreamBuffer:
    """
    Per-channel sliding window of the most recent samples

    The buffer is trimmed to its size on every append, so it never holds
    more than `size` samples per channel.
    """

    def __init__(self, channels: Sequence[str], size: int, sample_rate: float):
        if size <= 0:
            raise InvalidInputError(f"Buffer size must be positive, got {size}")
        self.channels = list(channels)
        self.size = size
        self.sample_rate = sample_rate
        self.time = deque()
        self.data: Dict[str, deque] = {ch: deque() for ch in self.channels}

    def __len__(self) -> int:
        return len(self.time)

    def append(self, sample: StreamSample):
        """Append one sample and drop the oldest beyond the buffer size"""
        self.time.append(sample.time)
        for channel in self.channels:
            self.data[channel].append(sample.values.get(channel, 0.0))
        self._trim()

    def resize(self, size: int):
        """Change the buffer size, trimming immediately"""
        if size <= 0:
            raise InvalidInputError(f"Buffer size must be positive, got {size}")
        self.size = size
        self._trim()

    def clear(self):
        self.time.clear()
        for values in self.data.values():
            values.clear()

    def _trim(self):
        while len(self.time) > self.size:
            self.time.popleft()
            for values in self.data.values():
                values.popleft()

    def to_recording(self, channels: Optional[Sequence[str]] = None) -> Recording:
        """
        Snapshot the buffer as a Recording

        Raises:
            InvalidInputError: If the buffer is empty or a channel is not buffered
        """
        channels = list(channels) if channels is not None else self.channels
        missing = [ch for ch in channels if ch not in self.data]
        if missing:
            raise InvalidInputError(f"Channels not buffered: {missing}")
        return Recording(
            channel_names=channels,
            sample_rate=self.sample_rate,
            samples={ch: np.array(self.data[ch], dtype=float) for ch in channels},
            time=np.array(self.time, dtype=float),
        )
