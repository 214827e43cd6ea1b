"""
Synthesis primitives for the bass voice.

1. Oscillators: naive sawtooth and a detuned, averaged bank of them
2. Shaping: ADSR envelope
3. Tone: one-pole low-pass filter
4. Dynamics: drive (gain + hard clip) and limiter (hard clip)

Every function takes a buffer by value and returns a new float64 array.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import NDArray
from scipy.signal import lfilter  # type: ignore[import]

from .errors import InvalidParameterError

FloatArray: TypeAlias = NDArray[np.float64]
SampleBuffer: TypeAlias = NDArray[np.floating[Any]] | Sequence[float]


def _as_buffer(samples: SampleBuffer) -> FloatArray:
    signal = np.asarray(samples, dtype=np.float64)
    if signal.ndim > 1:
        raise InvalidParameterError(f"expected a mono buffer, got shape {signal.shape}")
    return signal.reshape(-1)


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")


def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise InvalidParameterError(f"{name} must be positive and finite, got {value!r}")


def _require_sample_rate(sample_rate: float) -> None:
    _require_positive("sample_rate", sample_rate)


# =============================================================================
# OSCILLATORS
# =============================================================================


def sawtooth_oscillator(freq: float, length: int, sample_rate: int) -> FloatArray:
    """Generate a naive (band-unlimited) sawtooth in [-1, 1).

    Starts at 0 on sample 0, rises linearly and wraps to -1 half way
    through each period.
    """
    _require_sample_rate(sample_rate)
    _require_finite("freq", freq)
    if length <= 0:
        return np.zeros(0, dtype=np.float64)
    if freq <= 0:
        return np.zeros(length, dtype=np.float64)

    phase = np.arange(length, dtype=np.float64) * freq / sample_rate
    return 2.0 * (phase - np.floor(phase + 0.5))


def detuned_oscillators(
    freq: float, detune: Sequence[float], length: int, sample_rate: int
) -> FloatArray:
    """Average one sawtooth per detune offset.

    Offsets are relative: ``-0.01`` plays 1% below ``freq``. The result is
    the mean of the voices, so adding voices does not raise the level.
    """
    offsets = tuple(float(d) for d in detune)
    if not offsets:
        raise InvalidParameterError("detune must contain at least one offset")

    voices = np.stack(
        [sawtooth_oscillator(freq * (1.0 + d), length, sample_rate) for d in offsets]
    )
    return np.sum(voices, axis=0) / len(offsets)


# =============================================================================
# ENVELOPE
# =============================================================================


def envelope_gain(
    length: int,
    attack: float,
    decay: float,
    sustain: float,
    release: float,
    sample_rate: int,
) -> FloatArray:
    """Return the ADSR gain curve for a buffer of ``length`` samples.

    Regions are picked in priority order (attack, decay, sustain, release)
    using the sample's own time, so when ``attack + decay + release`` is
    longer than the buffer the later regions are cut short and the curve
    jumps at the boundary instead of being rescaled.
    """
    _require_sample_rate(sample_rate)
    for name, value in (("attack", attack), ("decay", decay), ("release", release)):
        _require_positive(name, value)
    _require_finite("sustain", sustain)
    if length <= 0:
        return np.zeros(0, dtype=np.float64)

    t = np.arange(length, dtype=np.float64) / sample_rate
    total = length / sample_rate
    release_start = total - release

    conditions = [
        t < attack,
        t < attack + decay,
        t < release_start,
    ]
    choices = [
        t / attack,
        1.0 - (t - attack) / decay * (1.0 - sustain),
        np.full(length, sustain, dtype=np.float64),
    ]
    release_gain = sustain * (1.0 - (t - release_start) / release)
    return np.select(conditions, choices, default=release_gain)


def apply_envelope(
    samples: SampleBuffer,
    attack: float,
    decay: float,
    sustain: float,
    release: float,
    sample_rate: int,
) -> FloatArray:
    """Apply an ADSR envelope to the signal."""
    signal = _as_buffer(samples)
    gain = envelope_gain(signal.size, attack, decay, sustain, release, sample_rate)
    return signal * gain


# =============================================================================
# FILTER
# =============================================================================


def filter_coefficient(cutoff: float, sample_rate: int) -> float:
    """Smoothing coefficient ``alpha`` of the one-pole low-pass."""
    _require_sample_rate(sample_rate)
    if not math.isfinite(cutoff) or cutoff < 0:
        raise InvalidParameterError(f"cutoff must be finite and not negative, got {cutoff!r}")
    return 2.0 * math.pi * cutoff / sample_rate


def lowpass_filter(samples: SampleBuffer, cutoff: float, sample_rate: int) -> FloatArray:
    """One-pole low-pass: ``y[i] = y[i-1] + alpha * (x[i] - y[i-1])``, ``y[-1] = 0``.

    Cutoffs approaching ``sample_rate / (2*pi)`` push alpha towards 1 and
    above; the filter then overshoots, which is left as is.
    """
    alpha = filter_coefficient(cutoff, sample_rate)
    signal = _as_buffer(samples)
    if signal.size == 0:
        return signal.copy()
    # lfilter runs the recurrence in index order: y[i] = alpha*x[i] + (1-alpha)*y[i-1]
    filtered = lfilter([alpha], [1.0, alpha - 1.0], signal)
    return np.asarray(filtered, dtype=np.float64)


# =============================================================================
# DYNAMICS
# =============================================================================


def drive(samples: SampleBuffer, gain: float) -> FloatArray:
    """Scale by ``gain`` then hard-clip to [-1, 1]."""
    _require_finite("gain", gain)
    return np.clip(_as_buffer(samples) * gain, -1.0, 1.0)


def limiter(samples: SampleBuffer) -> FloatArray:
    """Hard-clip to [-1, 1] without any gain stage."""
    return np.clip(_as_buffer(samples), -1.0, 1.0)
