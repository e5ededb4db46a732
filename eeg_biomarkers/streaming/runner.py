"""
Threaded session driver

This module runs a StreamScheduler in real time with two repeating timers:
one for sample ticks and one for integrated analysis.
"""

import logging
import threading
import time
from typing import Callable, Optional

from ..core.config import StreamConfig
from .scheduler import StreamScheduler


class RepeatingTimer(threading.Thread):
    """
    Call a function every `interval` seconds until cancelled

    The next call is always scheduled from the time of the last call, so
    changing the interval reschedules the pending call without dropping or
    duplicating one.
    """

    def __init__(self, interval: float, function: Callable[[], object], name: Optional[str] = None):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.function = function
        self.fire_count = 0
        self.last_fire: Optional[float] = None
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._cancelled = threading.Event()

    def run(self):
        with self._lock:
            self.last_fire = time.monotonic()

        while not self._cancelled.is_set():
            with self._lock:
                deadline = self.last_fire + self.interval
            remaining = deadline - time.monotonic()
            if remaining > 0:
                self._wake.wait(remaining)
                self._wake.clear()
                continue

            with self._lock:
                self.last_fire = time.monotonic()
            self.fire_count += 1
            try:
                self.function()
            except Exception as e:
                logging.error(f"Timer {self.name} callback failed: {e}")

    def set_interval(self, interval: float):
        """Change the interval; the pending call is rescheduled from the last call"""
        with self._lock:
            self.interval = interval
        self._wake.set()

    def cancel(self):
        self._cancelled.set()
        self._wake.set()

    def stop(self, timeout: Optional[float] = None):
        """Cancel and wait for the thread to finish"""
        self.cancel()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)


class SessionRunner:
    """
    Drive a StreamScheduler with real timers

    The tick timer runs for the whole session. The integrated timer runs
    only while both integrated mode and auto analysis are enabled and is
    restarted whenever the analysis interval changes. Starting it runs one
    integrated analysis straight away.

    Example:
        with SessionRunner(scheduler) as runner:
            runner.start(StreamConfig(seed=1))
            time.sleep(10)
    """

    def __init__(self, scheduler: StreamScheduler):
        self.scheduler = scheduler
        self.tick_timer: Optional[RepeatingTimer] = None
        self.integrated_timer: Optional[RepeatingTimer] = None

    @property
    def is_running(self) -> bool:
        return self.tick_timer is not None

    def start(self, config: Optional[StreamConfig] = None):
        """Start a scheduler session and its timers"""
        if self.is_running:
            self.stop()
        self.scheduler.start_session(config)
        self.tick_timer = RepeatingTimer(
            self.scheduler.config.tick_interval_ms / 1000, self.scheduler.tick, name="sample-tick"
        )
        self.tick_timer.start()
        self._sync_integrated_timer(restart=False)

    def stop(self):
        """Stop both timers, then clear the scheduler session"""
        for timer in (self.tick_timer, self.integrated_timer):
            if timer is not None:
                timer.stop()
        self.tick_timer = None
        self.integrated_timer = None
        self.scheduler.stop_session()

    def set_tick_interval(self, interval_ms: int):
        self.scheduler.set_tick_interval(interval_ms)
        if self.tick_timer is not None:
            self.tick_timer.set_interval(interval_ms / 1000)

    def set_analysis_interval(self, interval_s: float):
        self.scheduler.set_analysis_interval(interval_s)
        self._sync_integrated_timer(restart=True)

    def set_auto_analysis(self, enabled: bool):
        self.scheduler.set_auto_analysis(enabled)
        self._sync_integrated_timer(restart=False)

    def set_integrated_mode(self, enabled: bool):
        self.scheduler.set_integrated_mode(enabled)
        self._sync_integrated_timer(restart=False)

    def _sync_integrated_timer(self, restart: bool):
        config = self.scheduler.config
        wanted = self.is_running and config.integrated_mode and config.auto_analysis

        if self.integrated_timer is not None and (restart or not wanted):
            self.integrated_timer.stop()
            self.integrated_timer = None

        if wanted and self.integrated_timer is None:
            # First run happens now, not one interval later
            self.scheduler.integrated_tick()
            self.integrated_timer = RepeatingTimer(
                config.analysis_interval_s, self.scheduler.integrated_tick, name="integrated-analysis"
            )
            self.integrated_timer.start()
            logging.info(f"Integrated analysis every {config.analysis_interval_s} s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.is_running:
            self.stop()
        return False
