from __future__ import annotations

from .audio import MemorySink, PcmSink, WavSink, to_pcm16, write_wav
from .config import EnvelopeSettings, SynthConfig, load_config, parse_duration
from .errors import BassSynthError, EncoderError, InvalidParameterError
from .logging_utils import configure_logging as _configure_logging
from .pipeline import (
    RenderedStages,
    buffer_length,
    render,
    render_stages,
    render_to_file,
    render_to_sink,
)
from .synth import (
    apply_envelope,
    detuned_oscillators,
    drive,
    envelope_gain,
    filter_coefficient,
    limiter,
    lowpass_filter,
    sawtooth_oscillator,
)

__all__ = [
    "BassSynthError",
    "EncoderError",
    "EnvelopeSettings",
    "InvalidParameterError",
    "MemorySink",
    "PcmSink",
    "RenderedStages",
    "SynthConfig",
    "WavSink",
    "apply_envelope",
    "buffer_length",
    "detuned_oscillators",
    "drive",
    "envelope_gain",
    "filter_coefficient",
    "limiter",
    "load_config",
    "lowpass_filter",
    "parse_duration",
    "render",
    "render_stages",
    "render_to_file",
    "render_to_sink",
    "sawtooth_oscillator",
    "to_pcm16",
    "write_wav",
]

__version__ = "1.0.0"

_configure_logging()
del _configure_logging
