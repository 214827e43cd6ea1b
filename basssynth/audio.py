from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, TypeAlias

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .errors import EncoderError, InvalidParameterError

_LOGGER = logging.getLogger("basssynth.audio")

IntArray: TypeAlias = NDArray[np.int16]
AudioNumbers: TypeAlias = NDArray[np.floating[Any]] | Sequence[float]

PCM16_MAX = 32_767
CHANNELS = 1
BIT_DEPTH = 16


def to_pcm16(samples: AudioNumbers) -> IntArray:
    """Scale [-1, 1] floats to signed 16-bit integers, truncating toward zero."""

    mono = np.asarray(samples, dtype=np.float64).reshape(-1)
    if not np.all(np.isfinite(mono)):
        raise InvalidParameterError("cannot convert NaN or infinite samples to PCM")
    # Out-of-range values would wrap around once cast to int16.
    clipped = np.clip(mono, -1.0, 1.0)
    return (clipped * PCM16_MAX).astype(np.int16)


class PcmSink(Protocol):
    """Anything that accepts a finished buffer of integer PCM samples."""

    def write(
        self,
        samples: IntArray,
        *,
        sample_rate: int,
        channels: int = CHANNELS,
        bit_depth: int = BIT_DEPTH,
    ) -> None: ...


def _check_format(sample_rate: int, channels: int, bit_depth: int) -> None:
    if sample_rate <= 0:
        raise InvalidParameterError(f"sample_rate must be positive, got {sample_rate!r}")
    if channels != CHANNELS:
        raise InvalidParameterError(f"only mono output is supported, got {channels} channels")
    if bit_depth != BIT_DEPTH:
        raise InvalidParameterError(f"only 16-bit output is supported, got {bit_depth} bits")


class WavSink:
    """Writes mono 16-bit PCM WAV files through soundfile."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(
        self,
        samples: IntArray,
        *,
        sample_rate: int,
        channels: int = CHANNELS,
        bit_depth: int = BIT_DEPTH,
    ) -> None:
        _check_format(sample_rate, channels, bit_depth)
        data = np.asarray(samples, dtype=np.int16).reshape(-1)
        try:
            sf.write(self.path, data, sample_rate, subtype="PCM_16", format="WAV")
        except (OSError, RuntimeError) as exc:
            raise EncoderError(f"error writing wav file {self.path}: {exc}") from exc
        _LOGGER.info("Wrote %d samples at %d Hz to %s", data.size, sample_rate, self.path)


@dataclass
class MemorySink:
    """Keeps the last buffer it was handed; useful for embedding and tests."""

    samples: IntArray | None = None
    sample_rate: int | None = None
    writes: int = 0
    formats: list[tuple[int, int, int]] = field(default_factory=list)

    def write(
        self,
        samples: IntArray,
        *,
        sample_rate: int,
        channels: int = CHANNELS,
        bit_depth: int = BIT_DEPTH,
    ) -> None:
        _check_format(sample_rate, channels, bit_depth)
        self.samples = np.array(samples, dtype=np.int16, copy=True).reshape(-1)
        self.sample_rate = sample_rate
        self.writes += 1
        self.formats.append((sample_rate, channels, bit_depth))


def write_wav(path: str | Path, samples: AudioNumbers, *, sample_rate: int) -> Path:
    """Convert a float buffer to 16-bit PCM and write it as a WAV file."""

    sink = WavSink(path)
    sink.write(to_pcm16(samples), sample_rate=sample_rate)
    return sink.path
