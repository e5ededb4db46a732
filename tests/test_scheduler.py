import numpy as np
import pytest

from eeg_biomarkers.core.config import StreamConfig, ALL_CHANNELS
from eeg_biomarkers.core.exceptions import InvalidInputError
from eeg_biomarkers.streaming.scheduler import StreamScheduler, IDLE, RUNNING
from conftest import StubSource

FREQS = {ch: f for ch, f in zip(ALL_CHANNELS, [10, 20, 5, 3, 15, 8, 12, 6])}


def rhythm(i, channel):
    return np.sin(2 * np.pi * FREQS[channel] * i / 100)


def make_scheduler(clock, source=None, **config):
    scheduler = StreamScheduler(source=source or StubSource(rhythm), clock=clock, rng=np.random.default_rng(0))
    scheduler.start_session(StreamConfig(**config))
    return scheduler


def run(scheduler, n):
    for _ in range(n):
        scheduler.tick()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_tick_is_noop_when_idle(clock):
    scheduler = StreamScheduler(source=StubSource(), clock=clock)
    assert scheduler.state == IDLE
    assert scheduler.tick() is None
    assert scheduler.buffer_length == 0


def test_start_stop_restart(clock):
    scheduler = make_scheduler(clock)
    assert scheduler.state == RUNNING
    run(scheduler, 10)
    assert scheduler.buffer_length == 10
    assert scheduler.sample_count == 10

    scheduler.stop_session()
    assert scheduler.state == IDLE
    assert scheduler.buffer_length == 0
    assert scheduler.alerts == []
    assert scheduler.tick() is None

    scheduler.start_session()
    assert scheduler.sample_count == 0
    assert scheduler.tick() is not None


def test_invalid_config_does_not_start(clock):
    scheduler = StreamScheduler(source=StubSource(), clock=clock)
    with pytest.raises(InvalidInputError):
        scheduler.start_session(StreamConfig(tick_interval_ms=5))
    assert scheduler.state == IDLE


def test_buffer_is_bounded(clock):
    scheduler = make_scheduler(clock, buffer_size=100)
    run(scheduler, 150)
    assert scheduler.buffer_length == 100


def test_simulated_source_is_seeded(clock):
    first = StreamScheduler(clock=clock)
    second = StreamScheduler(clock=clock)
    first.start_session(StreamConfig(seed=5))
    second.start_session(StreamConfig(seed=5))
    a, b = first.tick(), second.tick()
    assert set(a.values) == set(ALL_CHANNELS)
    assert a.values == b.values


# ---------------------------------------------------------------------------
# Sample-level checks
# ---------------------------------------------------------------------------

def test_amplitude_outside_range_raises_warning(clock):
    source = StubSource(lambda i, ch: 3.0 if ch == "Channel1" else -2.5 if ch == "Channel8" else 0.0)
    scheduler = make_scheduler(clock, source=source)
    scheduler.tick()
    alerts = scheduler.alerts
    # Channel8 is not selected
    assert len(alerts) == 1
    assert alerts[0].severity == "warning"
    assert "Channel1 amplitude above limit" in alerts[0].message


def test_amplitude_checked_every_twentieth_sample(clock):
    source = StubSource(lambda i, ch: 3.0 if ch == "Channel1" else 0.0)
    scheduler = make_scheduler(clock, source=source)
    run(scheduler, 41)
    assert len([a for a in scheduler.alerts if "amplitude" in a.message]) == 3


def test_anomaly_raises_critical_alert(clock):
    source = StubSource(lambda i, ch: 0.0, anomalies={0: "Flatline on Channel2"})
    scheduler = make_scheduler(clock, source=source)
    sample = scheduler.tick()
    assert sample.anomaly == "Flatline on Channel2"
    assert [(a.severity, a.message) for a in scheduler.alerts] == [("critical", "Flatline on Channel2")]


def test_critical_alert_expires(clock):
    source = StubSource(lambda i, ch: 0.0, anomalies={0: "Flatline on Channel2"})
    scheduler = make_scheduler(clock, source=source)
    scheduler.tick()
    clock.advance(9.9)
    scheduler.tick()
    assert len(scheduler.alerts) == 1
    clock.advance(0.1)
    scheduler.tick()
    assert scheduler.alerts == []


class StalledSource(StubSource):
    """Delivers a fixed number of samples, then nothing"""

    def __init__(self, delivered, **kwargs):
        super().__init__(**kwargs)
        self.delivered = delivered

    def next_sample(self):
        if self.count >= self.delivered:
            return None
        return super().next_sample()


def test_alerts_expire_while_source_is_stalled(clock):
    source = StalledSource(1, anomalies={0: "Flatline on Channel1"})
    scheduler = make_scheduler(clock, source=source)
    assert scheduler.tick() is not None
    assert len(scheduler.alerts) == 1

    clock.advance(60.0)
    assert scheduler.tick() is None
    assert scheduler.alerts == []


def test_integrated_tick_expires_alerts(clock):
    source = StalledSource(1, anomalies={0: "Flatline on Channel1"})
    scheduler = make_scheduler(clock, source=source)
    scheduler.tick()
    clock.advance(10.0)
    assert scheduler.integrated_tick() is None
    assert scheduler.alerts == []


def test_source_error_becomes_warning(clock):
    class BrokenSource:
        def next_sample(self):
            raise OSError("board unplugged")

    scheduler = make_scheduler(clock, source=BrokenSource())
    assert scheduler.tick() is None
    assert scheduler.sample_count == 0
    assert [(a.severity, a.message) for a in scheduler.alerts] == [("warning", "Source error: board unplugged")]


def test_frequency_snapshot_and_warning(clock):
    source = StubSource(lambda i, ch: np.sin(2 * np.pi * 40 * i / 100))
    scheduler = make_scheduler(clock, source=source)
    snapshots = []
    scheduler.on_result(snapshots.append)

    run(scheduler, 101)

    assert [s.sample_count for s in snapshots] == [0, 100]
    latest = snapshots[-1]
    assert set(latest.dominant_frequency) == {"Channel1", "Channel2", "Channel3", "Channel4"}
    assert latest.dominant_frequency["Channel1"] == pytest.approx(40)
    assert len(latest.spectra["Channel1"]) == 50
    warnings = [a for a in scheduler.alerts if "dominant frequency abnormal" in a.message]
    assert len(warnings) == 4


def test_analysis_error_becomes_warning(clock, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("transform unavailable")

    monkeypatch.setattr("eeg_biomarkers.streaming.scheduler.compute_spectrum", broken)
    scheduler = make_scheduler(clock)
    assert scheduler.tick() is not None
    assert scheduler.sample_count == 1
    assert [a.message for a in scheduler.alerts] == ["Analysis error: transform unavailable"]


def test_failing_callback_does_not_stop_others(clock):
    source = StubSource(lambda i, ch: 0.0, anomalies={0: "Flatline on Channel1"})
    scheduler = make_scheduler(clock, source=source)
    received = []

    def broken(alert):
        raise ValueError("display gone")

    scheduler.on_alert(broken)
    scheduler.on_alert(received.append)
    scheduler.tick()
    assert [a.message for a in received] == ["Flatline on Channel1"]


def test_remove_alert(clock):
    source = StubSource(lambda i, ch: 0.0, anomalies={0: "Flatline on Channel1"})
    scheduler = make_scheduler(clock, source=source)
    scheduler.tick()
    alert = scheduler.alerts[0]
    assert scheduler.remove_alert(alert.id) == alert
    assert scheduler.alerts == []


# ---------------------------------------------------------------------------
# Integrated analysis
# ---------------------------------------------------------------------------

def test_integrated_tick_requires_mode_and_auto(clock):
    scheduler = make_scheduler(clock, integrated_mode=True)
    run(scheduler, 50)
    assert scheduler.integrated_tick() is None
    scheduler.set_auto_analysis(True)
    assert scheduler.integrated_tick() is not None


def test_integrated_tick_skips_empty_buffer(clock):
    scheduler = make_scheduler(clock, integrated_mode=True, auto_analysis=True)
    assert scheduler.integrated_tick() is None
    assert scheduler.run_integrated_analysis() is None


def test_integrated_tick_is_throttled(clock):
    scheduler = make_scheduler(clock, integrated_mode=True, auto_analysis=True)
    results = []
    scheduler.on_integrated(results.append)
    run(scheduler, 50)

    first = scheduler.integrated_tick()
    clock.advance(0.5)
    assert scheduler.integrated_tick() is None
    clock.advance(1.0)
    second = scheduler.integrated_tick()

    assert first is not None and second is not None
    assert results == [first, second]
    assert second.timestamp == pytest.approx(1.5)


def test_integrated_result_groups(clock):
    scheduler = make_scheduler(clock, integrated_mode=True, auto_analysis=True)
    run(scheduler, 150)
    result = scheduler.run_integrated_analysis()

    assert result.depression is not None
    assert result.epilepsy is not None
    assert result.conditions is None
    assert result.neurodegenerative is None
    assert scheduler.alerts[0].message == "Integrated analysis complete"
    assert scheduler.alerts[0].severity == "info"

    scheduler.set_analysis_groups(ai=True, neuro=True)
    result = scheduler.run_integrated_analysis()
    assert [c.name for c in result.conditions][-2:] == ["cognitive", "alertness"]
    assert result.neurodegenerative.parkinsons.name == "parkinsons"


def test_failing_group_is_isolated(clock):
    scheduler = make_scheduler(clock, channels=["Channel1"], ai_analysis=True)
    run(scheduler, 50)
    result = scheduler.run_integrated_analysis()

    assert result.depression is None
    assert result.epilepsy is None
    assert result.conditions is not None
    messages = [a.message for a in scheduler.alerts]
    assert any(m.startswith("Depression analysis failed") for m in messages)
    assert any(m.startswith("Epilepsy analysis failed") for m in messages)
    assert messages[0] == "Integrated analysis complete"


# ---------------------------------------------------------------------------
# Host controls
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("setter,value", [
    ("set_tick_interval", 5),
    ("set_tick_interval", 2000),
    ("set_buffer_size", 50),
    ("set_analysis_interval", 0),
    ("set_analysis_interval", 60),
    ("set_channels", []),
    ("set_channels", ["Channel9"]),
])
def test_setters_validate(clock, setter, value):
    scheduler = make_scheduler(clock)
    with pytest.raises(InvalidInputError):
        getattr(scheduler, setter)(value)


def test_set_buffer_size_trims(clock):
    scheduler = make_scheduler(clock, buffer_size=500)
    run(scheduler, 300)
    scheduler.set_buffer_size(100)
    assert scheduler.buffer_length == 100
    assert scheduler.config.buffer_size == 100


def test_set_thresholds(clock):
    scheduler = make_scheduler(clock)
    scheduler.set_thresholds(amplitude=(-0.5, 0.5), frequency=(1.0, 20.0))
    assert scheduler.config.amplitude_range == (-0.5, 0.5)
    assert scheduler.config.frequency_range == (1.0, 20.0)
    with pytest.raises(InvalidInputError):
        scheduler.set_thresholds(amplitude=(1.0, -1.0))


def test_set_analysis_interval_resets_throttle(clock):
    scheduler = make_scheduler(clock, integrated_mode=True, auto_analysis=True)
    run(scheduler, 50)
    assert scheduler.integrated_tick() is not None
    scheduler.set_analysis_interval(2)
    assert scheduler.integrated_tick() is not None


def test_setters_leave_caller_config_untouched(clock):
    config = StreamConfig(tick_interval_ms=100)
    scheduler = StreamScheduler(source=StubSource(), config=config, clock=clock)
    scheduler.set_tick_interval(50)
    scheduler.set_thresholds(amplitude=(-0.5, 0.5))
    assert config.tick_interval_ms == 100
    assert config.amplitude_range != (-0.5, 0.5)
    assert scheduler.config.tick_interval_ms == 50


def test_set_channels_changes_checked_channels(clock):
    source = StubSource(lambda i, ch: 3.0 if ch == "Channel8" else 0.0)
    scheduler = make_scheduler(clock, source=source)
    scheduler.set_channels(["Channel8"])
    scheduler.tick()
    assert "Channel8 amplitude above limit" in scheduler.alerts[0].message
