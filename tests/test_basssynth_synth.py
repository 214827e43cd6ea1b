from __future__ import annotations

import math

import numpy as np
import pytest

from basssynth.errors import InvalidParameterError
from basssynth.synth import (
    apply_envelope,
    detuned_oscillators,
    drive,
    envelope_gain,
    filter_coefficient,
    limiter,
    lowpass_filter,
    sawtooth_oscillator,
)

SR = 44_100


class TestSawtoothOscillator:
    @pytest.mark.parametrize("freq", [27.5, 55.0, 100.0, 333.3, 1_000.0])
    def test_output_stays_in_range(self, freq: float) -> None:
        wave = sawtooth_oscillator(freq, SR, SR)
        assert wave.shape == (SR,)
        assert np.all(wave >= -1.0 - 1e-12)
        assert np.all(wave < 1.0)

    def test_is_periodic_for_integer_period(self) -> None:
        period = 441
        wave = sawtooth_oscillator(100.0, 4 * period, SR)
        assert np.allclose(wave[:-period], wave[period:], atol=1e-9)

    def test_single_period_ramps_and_wraps_once(self) -> None:
        wave = sawtooth_oscillator(100.0, 441, SR)

        assert wave[0] == 0.0
        assert np.all(np.diff(wave[:221]) > 0)
        drops = np.flatnonzero(np.diff(wave) < 0)
        assert drops.tolist() == [220]
        assert wave[220] == pytest.approx(1.0, abs=0.01)
        assert wave[221] == pytest.approx(-1.0, abs=0.01)
        assert abs(wave[-1]) < 0.01

    def test_zero_length_is_empty(self) -> None:
        assert sawtooth_oscillator(55.0, 0, SR).size == 0
        assert sawtooth_oscillator(55.0, -3, SR).size == 0

    @pytest.mark.parametrize("freq", [0.0, -55.0])
    def test_non_positive_frequency_is_silence(self, freq: float) -> None:
        wave = sawtooth_oscillator(freq, 64, SR)
        assert wave.shape == (64,)
        assert not np.any(wave)

    @pytest.mark.parametrize("sample_rate", [0, -8_000, math.nan, math.inf])
    def test_rejects_invalid_sample_rate(self, sample_rate: float) -> None:
        with pytest.raises(InvalidParameterError):
            sawtooth_oscillator(55.0, 10, sample_rate)  # type: ignore[arg-type]

    @pytest.mark.parametrize("freq", [math.nan, math.inf])
    def test_rejects_non_finite_frequency(self, freq: float) -> None:
        with pytest.raises(InvalidParameterError):
            sawtooth_oscillator(freq, 10, SR)


class TestDetunedOscillators:
    def test_single_centred_voice_equals_plain_oscillator(self) -> None:
        bank = detuned_oscillators(55.0, [0.0], 2_000, SR)
        assert np.array_equal(bank, sawtooth_oscillator(55.0, 2_000, SR))

    def test_output_is_mean_of_voices(self) -> None:
        bank = detuned_oscillators(110.0, (-0.01, 0.01), 4_000, SR)
        expected = (
            sawtooth_oscillator(110.0 * 0.99, 4_000, SR)
            + sawtooth_oscillator(110.0 * 1.01, 4_000, SR)
        ) / 2
        assert np.allclose(bank, expected)

    def test_detune_is_relative_not_additive(self) -> None:
        bank = detuned_oscillators(200.0, [0.5], 1_000, SR)
        assert np.allclose(bank, sawtooth_oscillator(300.0, 1_000, SR))

    def test_level_does_not_grow_with_voice_count(self) -> None:
        detune = np.linspace(-0.02, 0.02, 9)
        bank = detuned_oscillators(55.0, detune, SR, SR)
        assert np.max(np.abs(bank)) <= 1.0

    def test_empty_detune_set_is_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            detuned_oscillators(55.0, [], 100, SR)


class TestEnvelope:
    def test_starts_silent_and_peaks_at_attack(self) -> None:
        gain = envelope_gain(SR, 0.1, 0.4, 0.6, 0.7, SR)
        assert gain[0] == 0.0
        assert gain[4_410] == pytest.approx(1.0)
        assert gain[2_205] == pytest.approx(0.5)

    def test_sustain_region_is_exact(self) -> None:
        gain = envelope_gain(2 * SR, 0.1, 0.4, 0.6, 0.7, SR)
        # flat between 0.5s and 1.3s
        assert gain[SR] == 0.6
        assert np.all(gain[int(0.6 * SR) : int(1.2 * SR)] == 0.6)

    def test_decay_ramps_down_to_sustain(self) -> None:
        gain = envelope_gain(2 * SR, 0.1, 0.4, 0.6, 0.7, SR)
        assert gain[int(0.3 * SR)] == pytest.approx(0.8)
        assert np.all(np.diff(gain[4_411 : int(0.5 * SR) - 1]) < 0)

    def test_release_falls_to_zero(self) -> None:
        gain = envelope_gain(2 * SR, 0.1, 0.4, 0.6, 0.7, SR)
        assert gain[int(1.65 * SR)] == pytest.approx(0.3, abs=1e-4)
        assert gain[-1] == pytest.approx(0.0, abs=1e-4)

    def test_overlapping_regions_jump_at_decay_end(self) -> None:
        # 1s buffer: release would start at 0.3s, but decay wins until 0.5s.
        gain = envelope_gain(SR, 0.1, 0.4, 0.6, 0.7, SR)
        before = gain[22_040]
        after = gain[22_060]
        assert before == pytest.approx(0.6, abs=1e-3)
        t_after = 22_060 / SR
        assert after == pytest.approx(0.6 * (1 - (t_after - 0.3) / 0.7))
        assert before - after > 0.15

    def test_apply_multiplies_without_mutating(self) -> None:
        signal = np.ones(1_000)
        original = signal.copy()
        shaped = apply_envelope(signal, 0.005, 0.005, 0.5, 0.005, SR)
        assert np.array_equal(signal, original)
        assert np.allclose(shaped, envelope_gain(1_000, 0.005, 0.005, 0.5, 0.005, SR))

    def test_empty_buffer(self) -> None:
        assert apply_envelope([], 0.1, 0.1, 0.5, 0.1, SR).size == 0

    @pytest.mark.parametrize(
        ("attack", "decay", "release"),
        [
            (0.0, 0.4, 0.7),
            (0.1, 0.0, 0.7),
            (0.1, 0.4, 0.0),
            (-0.1, 0.4, 0.7),
            (math.nan, 0.4, 0.7),
            (0.1, math.inf, 0.7),
            (0.1, 0.4, math.nan),
        ],
    )
    def test_non_positive_durations_are_rejected(
        self, attack: float, decay: float, release: float
    ) -> None:
        with pytest.raises(InvalidParameterError):
            apply_envelope(np.ones(10), attack, decay, 0.6, release, SR)


class TestLowPassFilter:
    def test_coefficient(self) -> None:
        assert filter_coefficient(200.0, SR) == pytest.approx(2 * math.pi * 200.0 / SR)

    def test_matches_sequential_recurrence(self) -> None:
        rng = np.random.default_rng(7)
        signal = rng.uniform(-1.0, 1.0, 512)
        alpha = filter_coefficient(200.0, SR)

        expected = np.empty_like(signal)
        prev = 0.0
        for i, sample in enumerate(signal):
            prev = prev + alpha * (sample - prev)
            expected[i] = prev

        assert np.allclose(lowpass_filter(signal, 200.0, SR), expected)

    def test_starts_from_zero_state(self) -> None:
        out = lowpass_filter([1.0, 1.0], 200.0, SR)
        alpha = filter_coefficient(200.0, SR)
        assert out[0] == pytest.approx(alpha)

    def test_step_response_rises_monotonically(self) -> None:
        out = lowpass_filter(np.ones(200), 200.0, SR)
        assert np.all(np.diff(out) > 0)
        assert out[-1] < 1.0

    def test_tiny_cutoff_smooths_heavily(self) -> None:
        signal = sawtooth_oscillator(55.0, SR, SR)
        out = lowpass_filter(signal, 0.5, SR)
        assert np.std(out) < 0.05 * np.std(signal)

    def test_zero_cutoff_holds_initial_state(self) -> None:
        assert not np.any(lowpass_filter(np.ones(32), 0.0, SR))

    def test_cutoff_at_unity_alpha_is_identity(self) -> None:
        signal = np.random.default_rng(3).uniform(-1.0, 1.0, 256)
        out = lowpass_filter(signal, SR / (2 * math.pi), SR)
        assert np.allclose(out, signal)

    @pytest.mark.parametrize("cutoff", [-1.0, math.nan, math.inf])
    def test_rejects_invalid_cutoff(self, cutoff: float) -> None:
        with pytest.raises(InvalidParameterError):
            lowpass_filter(np.ones(4), cutoff, SR)

    def test_empty_buffer(self) -> None:
        assert lowpass_filter([], 200.0, SR).size == 0


def test_drive_clips_after_gain() -> None:
    assert drive([2.0, -2.0, 0.5], gain=1.0).tolist() == [1.0, -1.0, 0.5]
    assert drive([0.3, -0.8], gain=2.0).tolist() == pytest.approx([0.6, -1.0])


def test_limiter_clips_without_gain() -> None:
    assert limiter([1.5, -1.5, 0.3]).tolist() == [1.0, -1.0, 0.3]


def test_limiter_is_idempotent() -> None:
    signal = np.random.default_rng(11).uniform(-3.0, 3.0, 1_000)
    once = limiter(drive(signal, 1.0))
    assert np.array_equal(limiter(once), once)
    assert np.array_equal(once, limiter(signal))


def test_dynamics_do_not_mutate_input() -> None:
    signal = np.array([2.0, -0.5, 0.25])
    drive(signal, 3.0)
    limiter(signal)
    assert signal.tolist() == [2.0, -0.5, 0.25]


def test_envelope_rejects_nan_sustain() -> None:
    with pytest.raises(InvalidParameterError):
        envelope_gain(100, 0.1, 0.1, math.nan, 0.1, SR)


def test_drive_rejects_non_finite_gain() -> None:
    with pytest.raises(InvalidParameterError):
        drive([0.1, 0.2], math.nan)


def test_detune_offsets_must_be_finite() -> None:
    with pytest.raises(InvalidParameterError):
        detuned_oscillators(55.0, [0.0, math.inf], 100, SR)


@pytest.mark.parametrize(
    "stage",
    [
        limiter,
        lambda buf: drive(buf, 1.0),
        lambda buf: lowpass_filter(buf, 200.0, SR),
        lambda buf: apply_envelope(buf, 0.1, 0.1, 0.5, 0.1, SR),
    ],
)
def test_stages_reject_multichannel_buffers(stage) -> None:
    stereo = np.zeros((2, 64))
    with pytest.raises(InvalidParameterError):
        stage(stereo)
