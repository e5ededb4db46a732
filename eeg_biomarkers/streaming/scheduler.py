"""
Streaming analysis scheduler

This module drives the biomarker pipeline over a sliding buffer: one
tick() per incoming sample with sample-level threshold checks and a
periodic spectrum snapshot, plus the slower integrated analysis that runs
the depression, epilepsy and optional condition scorer groups.
"""

import dataclasses
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import (
    ALL_CHANNELS, DEFAULT_LAYOUT, ChannelLayout, StreamConfig, validate_config,
    TICK_INTERVAL_RANGE_MS, BUFFER_SIZE_RANGE, ANALYSIS_INTERVAL_RANGE_SEC, INTEGRATED_THROTTLE_SEC,
)
from ..core.data_types import Alert, AnalysisSnapshot, IntegratedResult, StreamSample
from ..core.exceptions import InvalidInputError
from ..acquisition.sources import SimulatedEEGSource
from ..processing.features import channel_statistics
from ..processing.spectrum import compute_spectrum, dominant_frequency
from ..detection.depression import analyze_depression_features
from ..detection.epilepsy import analyze_epilepsy_features
from ..detection.mental_state import analyze_conditions
from ..detection.neurodegenerative import analyze_neurodegenerative_features
from .alerts import AlertQueue
from .buffer import StreamBuffer

IDLE = "idle"
RUNNING = "running"


class StreamScheduler:
    """
    Step-driven streaming session

    All entry points take one re-entrant lock, so a sample tick and an
    integrated analysis never interleave. Time comes from an injectable
    clock so the scheduler can be driven deterministically.

    Callbacks:
    - on_alert(alert): every pushed alert
    - on_result(snapshot): every periodic AnalysisSnapshot
    - on_integrated(result): every IntegratedResult

    A callback that raises is logged and skipped.
    """

    def __init__(self, source=None, config: Optional[StreamConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[np.random.Generator] = None,
                 layout: ChannelLayout = DEFAULT_LAYOUT):
        self.config = dataclasses.replace(config) if config is not None else StreamConfig()
        self.clock = clock
        self.layout = layout
        self.source = source
        self.rng = rng
        self._own_source = source is None
        self._own_rng = rng is None

        self._lock = threading.RLock()
        self._state = IDLE
        self.sample_count = 0
        self._last_integrated: Optional[float] = None
        self.buffer = StreamBuffer(ALL_CHANNELS, self.config.buffer_size, self.config.sample_rate)
        self.alert_queue = AlertQueue()

        self._alert_callbacks: List[Callable] = []
        self._result_callbacks: List[Callable] = []
        self._integrated_callbacks: List[Callable] = []

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, config: Optional[StreamConfig] = None):
        """
        Validate the configuration and start a fresh session

        Buffer, alerts and the sample counter are reset. Without an injected
        source a simulated source is created, seeded from config.seed.

        Raises:
            InvalidInputError: If the configuration is invalid
        """
        config = dataclasses.replace(config if config is not None else self.config)
        validate_config(config)

        with self._lock:
            self.config = config
            source_seed, score_seed = np.random.SeedSequence(config.seed).spawn(2)
            if self._own_source:
                self.source = SimulatedEEGSource(config.sample_rate, rng=np.random.default_rng(source_seed))
            if self._own_rng:
                self.rng = np.random.default_rng(score_seed)

            self.buffer = StreamBuffer(ALL_CHANNELS, config.buffer_size, config.sample_rate)
            self.alert_queue.clear()
            self.sample_count = 0
            self._last_integrated = None
            self._state = RUNNING

        logging.info(f"Streaming session started: channels={config.channels}, "
                     f"tick={config.tick_interval_ms} ms, buffer={config.buffer_size}")

    def stop_session(self):
        """Stop the session and clear buffer and alerts; later ticks are no-ops"""
        with self._lock:
            self._state = IDLE
            self.buffer.clear()
            self.alert_queue.clear()
        logging.info(f"Streaming session stopped after {self.sample_count} samples")

    @property
    def state(self) -> str:
        return self._state

    @property
    def alerts(self) -> List[Alert]:
        with self._lock:
            return self.alert_queue.alerts

    @property
    def buffer_length(self) -> int:
        with self._lock:
            return len(self.buffer)

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_alert(self, callback: Callable[[Alert], None]):
        self._alert_callbacks.append(callback)

    def on_result(self, callback: Callable[[AnalysisSnapshot], None]):
        self._result_callbacks.append(callback)

    def on_integrated(self, callback: Callable[[IntegratedResult], None]):
        self._integrated_callbacks.append(callback)

    def _emit(self, callbacks: List[Callable], payload):
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logging.error(f"Callback {getattr(callback, '__name__', callback)} failed: {e}")

    def _push_alert(self, message: str, severity: str, now: float) -> Alert:
        alert = self.alert_queue.push(message, severity, now)
        self._emit(self._alert_callbacks, alert)
        return alert

    # ------------------------------------------------------------------
    # Sample tick
    # ------------------------------------------------------------------

    def tick(self) -> Optional[StreamSample]:
        """
        Process one sample from the source

        Due alerts expire on every running tick, including ticks where the
        source has nothing to deliver. A source that raises becomes a warning
        alert.

        Returns:
            StreamSample: The processed sample, or None when idle or when
            the source had nothing to deliver
        """
        with self._lock:
            if self._state != RUNNING:
                return None

            now = self.clock()
            try:
                sample = self.source.next_sample()
            except Exception as e:
                logging.error(f"Sample source failed: {e}")
                self._push_alert(f"Source error: {e}", "warning", now)
                sample = None

            if sample is None:
                self.alert_queue.expire(now)
                return None

            count = self.sample_count
            config = self.config

            if sample.anomaly:
                self._push_alert(sample.anomaly, "critical", now)

            self.buffer.append(sample)

            try:
                if not sample.anomaly and count % config.anomaly_check_every == 0:
                    self._check_amplitudes(sample, now)
                if count % config.analysis_every == 0:
                    snapshot = self._analyze_window(count, now)
                    self._emit(self._result_callbacks, snapshot)
            except Exception as e:
                logging.error(f"Streaming analysis failed at sample {count}: {e}")
                self._push_alert(f"Analysis error: {e}", "warning", now)

            self.sample_count += 1
            self.alert_queue.expire(now)
            return sample

    def _check_amplitudes(self, sample: StreamSample, now: float):
        low, high = self.config.amplitude_range
        for channel in self.config.channels:
            value = sample.values.get(channel)
            if value is None:
                continue
            if value > high:
                self._push_alert(f"{channel} amplitude above limit ({value:.2f} > {high})", "warning", now)
            elif value < low:
                self._push_alert(f"{channel} amplitude below limit ({value:.2f} < {low})", "warning", now)

    def _analyze_window(self, count: int, now: float) -> AnalysisSnapshot:
        """Statistics over the buffer and spectrum of the latest window for each selected channel"""
        config = self.config
        recording = self.buffer.to_recording(config.channels)
        window = recording.tail(config.spectrum_window)
        low, high = config.frequency_range

        statistics, spectra, dominant = {}, {}, {}
        for channel in config.channels:
            statistics[channel] = channel_statistics(recording.channel(channel))
            spectra[channel] = compute_spectrum(window.channel(channel), recording.sample_rate)
            dominant[channel] = dominant_frequency(spectra[channel])

            freq = dominant[channel]
            if freq > high:
                self._push_alert(f"{channel} dominant frequency abnormal ({freq:.1f} Hz > {high} Hz)", "warning", now)
            elif freq < low and freq > 0.5:
                self._push_alert(f"{channel} dominant frequency abnormally low ({freq:.1f} Hz < {low} Hz)",
                                 "warning", now)

        return AnalysisSnapshot(
            sample_count=count,
            timestamp=now,
            statistics=statistics,
            spectra=spectra,
            dominant_frequency=dominant,
        )

    # ------------------------------------------------------------------
    # Integrated analysis
    # ------------------------------------------------------------------

    def integrated_tick(self) -> Optional[IntegratedResult]:
        """
        Timer-driven integrated analysis

        Runs only while the session is running with integrated mode and
        auto analysis enabled, the buffer holds data and the previous run is
        at least the throttle interval old.
        """
        with self._lock:
            config = self.config
            if self._state != RUNNING:
                return None
            now = self.clock()
            self.alert_queue.expire(now)
            if not (config.integrated_mode and config.auto_analysis):
                return None
            if len(self.buffer) == 0:
                return None
            if self._last_integrated is not None and now - self._last_integrated < INTEGRATED_THROTTLE_SEC:
                logging.debug("Integrated analysis throttled")
                return None
            return self.run_integrated_analysis()

    def run_integrated_analysis(self) -> Optional[IntegratedResult]:
        """
        Run every enabled analysis group on the buffer now

        A failing group becomes a warning alert and leaves the other groups
        unaffected.

        Returns:
            IntegratedResult: Results of the groups that succeeded, or None
            if the buffer is empty
        """
        with self._lock:
            if len(self.buffer) == 0:
                logging.warning("Integrated analysis requested with an empty buffer")
                return None

            now = self.clock()
            self._last_integrated = now
            config = self.config
            channels = config.channels
            recording = self.buffer.to_recording(channels)

            result = IntegratedResult(timestamp=now)
            result.depression = self._run_group(
                "Depression", now, analyze_depression_features, recording, channels, self.layout)
            result.epilepsy = self._run_group(
                "Epilepsy", now, analyze_epilepsy_features, recording, channels, self.layout)
            if config.ai_analysis:
                result.conditions = self._run_group(
                    "Condition", now, analyze_conditions, recording, channels, self.rng, self.layout)
            if config.neuro_analysis:
                result.neurodegenerative = self._run_group(
                    "Neurodegenerative", now, analyze_neurodegenerative_features,
                    recording, channels, self.rng, self.layout)

            self._emit(self._integrated_callbacks, result)
            self._push_alert("Integrated analysis complete", "info", now)
            return result

    def _run_group(self, name: str, now: float, analysis: Callable, *args):
        try:
            return analysis(*args)
        except Exception as e:
            logging.error(f"{name} analysis failed: {e}")
            self._push_alert(f"{name} analysis failed: {e}", "warning", now)
            return None

    # ------------------------------------------------------------------
    # Host controls
    # ------------------------------------------------------------------

    def set_tick_interval(self, interval_ms: int):
        low, high = TICK_INTERVAL_RANGE_MS
        if not low <= interval_ms <= high:
            raise InvalidInputError(f"Tick interval must be within {low}-{high} ms, got {interval_ms}")
        with self._lock:
            self.config.tick_interval_ms = interval_ms

    def set_buffer_size(self, size: int):
        """Change the buffer size, trimming the current buffer immediately"""
        low, high = BUFFER_SIZE_RANGE
        if not low <= size <= high:
            raise InvalidInputError(f"Buffer size must be within {low}-{high}, got {size}")
        with self._lock:
            self.config.buffer_size = size
            self.buffer.resize(size)

    def set_analysis_interval(self, interval_s: float):
        """Change the integrated analysis interval and reset the throttle"""
        low, high = ANALYSIS_INTERVAL_RANGE_SEC
        if not low <= interval_s <= high:
            raise InvalidInputError(f"Analysis interval must be within {low}-{high} s, got {interval_s}")
        with self._lock:
            self.config.analysis_interval_s = interval_s
            self._last_integrated = None

    def set_auto_analysis(self, enabled: bool):
        with self._lock:
            self.config.auto_analysis = enabled

    def set_integrated_mode(self, enabled: bool):
        with self._lock:
            self.config.integrated_mode = enabled

    def set_analysis_groups(self, ai: Optional[bool] = None, neuro: Optional[bool] = None):
        """Enable or disable the condition and neurodegenerative scorer groups"""
        with self._lock:
            if ai is not None:
                self.config.ai_analysis = ai
            if neuro is not None:
                self.config.neuro_analysis = neuro

    def set_thresholds(self, amplitude: Optional[Tuple[float, float]] = None,
                       frequency: Optional[Tuple[float, float]] = None):
        """
        Update the amplitude and dominant frequency limits

        Args:
            amplitude: (min, max) sample amplitude
            frequency: (min, max) dominant frequency in Hz
        """
        for name, limits in (("Amplitude", amplitude), ("Frequency", frequency)):
            if limits is not None and limits[0] >= limits[1]:
                raise InvalidInputError(f"{name} range must be (min, max), got {limits}")
        with self._lock:
            if amplitude is not None:
                self.config.amplitude_range = tuple(amplitude)
            if frequency is not None:
                self.config.frequency_range = tuple(frequency)

    def set_channels(self, channels: Sequence[str]):
        channels = list(channels)
        if not channels:
            raise InvalidInputError("At least one channel must be selected")
        unknown = [ch for ch in channels if ch not in ALL_CHANNELS]
        if unknown:
            raise InvalidInputError(f"Unknown channels: {unknown}")
        with self._lock:
            self.config.channels = channels

    def remove_alert(self, alert_id: int) -> Optional[Alert]:
        with self._lock:
            return self.alert_queue.remove(alert_id)
