import numpy as np
import pytest

from eeg_biomarkers.core.data_types import Spike
from eeg_biomarkers.processing.spectrum import compute_spectrum
from eeg_biomarkers.processing.biomarkers import (
    asymmetry_index, alpha_asymmetry, band_ratio, alpha_theta_ratios, theta_powers, power_ratios,
    front_posterior_ratio, slow_wave_ratio, detect_spikes, spike_frequency, detect_hfo,
    channel_coherence, pairwise_coherence, phase_coherence, spectral_entropy, signal_complexity,
    amplitude_modulation,
)
from conftest import sine


def bands(delta=0.0, theta=0.0, alpha=0.0, beta=0.0, gamma=0.0):
    return {"delta": delta, "theta": theta, "alpha": alpha, "beta": beta, "gamma": gamma}


# ---------------------------------------------------------------------------
# Band power derivatives
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("left,right", [(1.0, 3.0), (0.2, 0.1), (5.0, 5.0), (0.0, 2.0)])
def test_asymmetry_is_antisymmetric(left, right):
    assert asymmetry_index(left, right) == pytest.approx(-asymmetry_index(right, left))


def test_asymmetry_values():
    assert asymmetry_index(1.0, 3.0) == pytest.approx(0.5)
    assert asymmetry_index(0.0, 0.0) == 0.0


def test_alpha_asymmetry_omits_missing_and_silent_pairs():
    powers = {
        "Channel1": bands(alpha=1.0),
        "Channel2": bands(alpha=3.0),
        "Channel5": bands(alpha=0.0),
        "Channel6": bands(alpha=0.0),
    }
    pairs = {
        "frontal": ("Channel1", "Channel2"),
        "central": ("Channel5", "Channel6"),
        "occipital": ("Channel7", "Channel8"),
    }
    result = alpha_asymmetry(powers, pairs)
    assert result == {"frontal": pytest.approx(0.5)}


def test_band_ratio_with_degenerate_denominator():
    assert band_ratio(2.0, 4.0) == 0.5
    assert band_ratio(2.0, 0.0) == 0.0
    assert band_ratio(2.0, -1.0) == 0.0


def test_alpha_theta_ratios_skip_channels_without_theta():
    powers = {"Channel1": bands(alpha=1.0, theta=2.0), "Channel2": bands(alpha=1.0)}
    assert alpha_theta_ratios(powers) == {"Channel1": 0.5}
    assert theta_powers(powers) == {"Channel1": 2.0, "Channel2": 0.0}


def test_power_ratios_flag_high_beta_gamma():
    powers = {
        "Channel1": bands(theta=1.0, beta=3.0, gamma=1.0),
        "Channel2": bands(theta=1.0, beta=1.0, gamma=1.0),
        "Channel3": bands(theta=1.0),
    }
    ratios = power_ratios(powers)
    assert ratios["Channel1"].beta_gamma == pytest.approx(3.0)
    assert ratios["Channel1"].theta_beta == pytest.approx(1 / 3)
    assert ratios["Channel1"].abnormal
    assert not ratios["Channel2"].abnormal
    assert ratios["Channel3"].beta_gamma == 0.0
    assert ratios["Channel3"].theta_beta == 0.0


def test_front_posterior_ratio():
    powers = {
        "Channel1": bands(alpha=2.0, theta=1.0),
        "Channel3": bands(alpha=1.0, theta=0.0),
    }
    pairs = {"left": ("Channel1", "Channel3"), "right": ("Channel2", "Channel4")}
    result = front_posterior_ratio(powers, pairs, ["alpha", "theta"])
    assert result == {"left": {"alpha": 2.0, "theta": 0.0}}


def test_slow_wave_ratio():
    assert slow_wave_ratio(bands(1, 1, 1, 1)) == pytest.approx(1.0)
    assert slow_wave_ratio(bands(delta=1, theta=1)) == 0.0


# ---------------------------------------------------------------------------
# Spikes and HFO
# ---------------------------------------------------------------------------

def test_flat_signal_has_no_spikes():
    assert detect_spikes(np.zeros(500), 100) == []
    assert detect_spikes([], 100) == []


def test_isolated_spike_detected_once_at_its_index():
    signal = np.zeros(500)
    signal[250] = 200.0
    spikes = detect_spikes(signal, 100)
    assert spikes == [Spike(sample_index=250, amplitude=200.0, time_seconds=2.5)]


def test_negative_spike_detected():
    signal = np.zeros(500)
    signal[120] = -200.0
    spikes = detect_spikes(signal, 100)
    assert [s.sample_index for s in spikes] == [120]
    assert spikes[0].amplitude == -200.0


def test_refractory_period_suppresses_close_spikes():
    signal = np.zeros(500)
    signal[[100, 105, 130]] = 200.0
    spikes = detect_spikes(signal, 100)
    assert [s.sample_index for s in spikes] == [100, 130]


def test_spikes_at_window_edges_are_not_candidates():
    signal = np.zeros(500)
    signal[[1, 498]] = 200.0
    assert detect_spikes(signal, 100) == []


def test_adaptive_threshold_follows_signal_spread():
    # Large background activity raises the threshold above the spike
    gen = np.random.default_rng(0)
    signal = 100 * gen.standard_normal(1000)
    signal[500] = 150.0
    assert all(s.sample_index != 500 for s in detect_spikes(signal, 100))


def test_spike_frequency():
    spikes = [Spike(0, 100.0, 0.0), Spike(3000, 100.0, 30.0)]
    assert spike_frequency(spikes) == pytest.approx(4.0)
    assert spike_frequency(spikes[:1]) == 0.0
    assert spike_frequency([Spike(0, 1.0, 5.0), Spike(1, 1.0, 5.0)]) == 0.0


def test_hfo_not_computable_at_low_sample_rate():
    result = detect_hfo(sine(10, 100), 100)
    assert not result.detected
    assert not result.computable
    assert result.ratio is None
    assert result.message


def test_hfo_ratio_for_high_frequency_tone():
    result = detect_hfo(sine(100, 250, fs=250), 250)
    # 80-124 Hz holds 45 bins, the spectrum 125
    assert result.computable
    assert result.ratio == pytest.approx(125 / 45)
    assert result.detected


def test_hfo_upper_edge_is_just_below_nyquist():
    # At 200 Hz the band is 80..99 Hz, so a 99 Hz tone is still inside it
    result = detect_hfo(sine(99, 200, fs=200), 200)
    assert result.ratio == pytest.approx(100 / 20)
    assert result.detected


def test_hfo_ratio_zero_for_silent_signal():
    result = detect_hfo(np.zeros(400), 400)
    assert result.ratio == 0.0
    assert not result.detected


# ---------------------------------------------------------------------------
# Coherence
# ---------------------------------------------------------------------------

def test_self_coherence_is_one():
    gen = np.random.default_rng(1)
    x = gen.standard_normal(300)
    assert channel_coherence(x, x) == pytest.approx(1.0)
    assert channel_coherence(x, -2 * x + 3) == pytest.approx(1.0)


def test_coherence_of_constant_window_is_zero():
    assert channel_coherence(np.ones(100), sine(10, 100)) == 0.0
    assert channel_coherence([], []) == 0.0


def test_coherence_uses_common_length():
    x = sine(10, 200)
    assert channel_coherence(x, x[:150]) == pytest.approx(1.0)


def test_pairwise_coherence_names_every_pair():
    x = sine(10, 100)
    signals = {"Channel1": x, "Channel2": x, "Channel3": sine(7, 100)}
    result = pairwise_coherence(signals, ["Channel1", "Channel2", "Channel3"])
    assert set(result) == {"Channel1-Channel2", "Channel1-Channel3", "Channel2-Channel3"}
    assert result["Channel1-Channel2"] == pytest.approx(1.0)


def test_phase_coherence_is_alpha_magnitude_product():
    x = sine(10, 100)
    assert phase_coherence(x, x, 100) == pytest.approx(0.25 / 6)


def test_phase_coherence_without_alpha_bins_is_zero():
    assert phase_coherence(np.ones(10), np.ones(10), 10) == 0.0


# ---------------------------------------------------------------------------
# Signal shape
# ---------------------------------------------------------------------------

def test_entropy_of_pure_tone_is_near_zero():
    tone = compute_spectrum(sine(10, 200), 100)
    assert spectral_entropy(tone) == pytest.approx(0.0, abs=1e-6)


def test_entropy_of_noise_exceeds_tone():
    gen = np.random.default_rng(5)
    noise = gen.standard_normal(200)
    tone = np.sqrt(2) * np.std(noise) * np.sin(2 * np.pi * 10 * np.arange(200) / 100)
    assert spectral_entropy(compute_spectrum(noise, 100)) > spectral_entropy(compute_spectrum(tone, 100))


def test_entropy_without_power_is_zero():
    assert spectral_entropy(compute_spectrum(np.zeros(100), 100)) == 0.0


def test_signal_complexity():
    assert signal_complexity([0, 1]) == 0.0
    assert signal_complexity([0, 1, 0, 1, 0, 1]) == pytest.approx(1.0)
    assert signal_complexity(np.arange(50)) == 0.0


def test_amplitude_modulation_short_or_flat_signal():
    assert amplitude_modulation(sine(10, 99)) == 0.0
    assert amplitude_modulation(np.ones(200)) == 0.0


def test_amplitude_modulation_steady_vs_modulated():
    steady = sine(10, 300)
    modulated = np.linspace(0.1, 2.0, 300) * sine(10, 300)
    assert amplitude_modulation(steady) == pytest.approx(0.0, abs=1e-9)
    assert amplitude_modulation(modulated) > 0.1
