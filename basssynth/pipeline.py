"""Fixed render chain: Bank -> Envelope -> Filter -> Drive -> Limiter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .audio import PcmSink, WavSink, to_pcm16
from .config import SynthConfig, buffer_length
from .synth import (
    FloatArray,
    apply_envelope,
    detuned_oscillators,
    drive,
    limiter,
    lowpass_filter,
)

_LOGGER = logging.getLogger("basssynth.pipeline")


@dataclass(frozen=True, slots=True)
class RenderedStages:
    """Every intermediate buffer of one render, in stage order."""

    oscillators: FloatArray
    enveloped: FloatArray
    filtered: FloatArray
    driven: FloatArray
    limited: FloatArray

    @property
    def output(self) -> FloatArray:
        return self.limited


def render_stages(config: SynthConfig) -> RenderedStages:
    sr = config.sample_rate
    length = buffer_length(sr, config.duration)
    env = config.envelope
    _LOGGER.debug(
        "Rendering %d samples at %d Hz (freq=%.3f, voices=%d)",
        length,
        sr,
        config.freq,
        len(config.detune),
    )

    oscillators = detuned_oscillators(config.freq, config.detune, length, sr)
    enveloped = apply_envelope(oscillators, env.attack, env.decay, env.sustain, env.release, sr)
    filtered = lowpass_filter(enveloped, config.cutoff, sr)
    driven = drive(filtered, config.drive_gain)
    limited = limiter(driven)

    _LOGGER.debug("Render finished: %d samples", limited.size)
    return RenderedStages(
        oscillators=oscillators,
        enveloped=enveloped,
        filtered=filtered,
        driven=driven,
        limited=limited,
    )


def render(config: SynthConfig) -> FloatArray:
    """Run the whole chain and return the final, limited buffer."""
    return render_stages(config).output


def render_to_sink(config: SynthConfig, sink: PcmSink) -> int:
    """Render, convert to 16-bit PCM and hand the buffer to ``sink`` once."""
    samples = to_pcm16(render(config))
    sink.write(samples, sample_rate=config.sample_rate)
    return int(samples.size)


def render_to_file(config: SynthConfig, path: str | Path) -> Path:
    sink = WavSink(path)
    render_to_sink(config, sink)
    return sink.path
