from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidParameterError

_LOGGER = logging.getLogger("basssynth.config")

DEFAULT_SAMPLE_RATE = 44_100
DEFAULT_DURATION = 10.0
DEFAULT_FREQ = 55.0
DEFAULT_DETUNE: tuple[float, ...] = (-0.01, -0.005, 0.0, 0.005, 0.01)
DEFAULT_CUTOFF = 200.0
DEFAULT_DRIVE_GAIN = 1.2

# Seconds per unit, as accepted by Go's time.ParseDuration
_DURATION_UNITS: Mapping[str, float] = MappingProxyType(
    {
        "ns": 1e-9,
        "us": 1e-6,
        "µs": 1e-6,
        "μs": 1e-6,
        "ms": 1e-3,
        "s": 1.0,
        "m": 60.0,
        "h": 3600.0,
    }
)
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def buffer_length(sample_rate: int, duration: float) -> int:
    """Samples in a render of ``duration`` seconds (truncated)."""
    return int(sample_rate * duration)


def parse_duration(text: str) -> float:
    """Parse a duration such as ``"10s"``, ``"1m30s"`` or ``"250ms"`` into seconds.

    A bare number is read as seconds. Negative durations are rejected.
    """

    raw = text.strip()
    if not raw:
        raise InvalidParameterError("duration must not be empty")

    body = raw
    negative = False
    if body[0] in "+-":
        negative = body[0] == "-"
        body = body[1:]

    if _BARE_NUMBER.fullmatch(body):
        seconds = float(body)
    else:
        seconds = 0.0
        pos = 0
        while pos < len(body):
            match = _DURATION_PART.match(body, pos)
            if match is None:
                raise InvalidParameterError(f"invalid duration: {text!r}")
            number, unit = match.groups()
            seconds += float(number) * _DURATION_UNITS[unit]
            pos = match.end()
        if pos == 0:
            raise InvalidParameterError(f"invalid duration: {text!r}")

    if negative and seconds != 0.0:
        raise InvalidParameterError(f"duration must not be negative: {text!r}")
    return seconds


class EnvelopeSettings(BaseModel):
    """ADSR envelope; times in seconds, sustain as a gain in [0, 1]."""

    attack: float = Field(default=0.1, gt=0)
    decay: float = Field(default=0.4, gt=0)
    sustain: float = Field(default=0.6, ge=0, le=1)
    release: float = Field(default=0.7, gt=0)

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)


class SynthConfig(BaseModel):
    """Immutable parameters for one render, threaded through every stage."""

    sample_rate: int = Field(default=DEFAULT_SAMPLE_RATE, gt=0)
    duration: float = Field(default=DEFAULT_DURATION, gt=0)
    freq: float = Field(default=DEFAULT_FREQ, gt=0)
    detune: tuple[float, ...] = Field(default=DEFAULT_DETUNE, min_length=1)
    envelope: EnvelopeSettings = Field(default_factory=EnvelopeSettings)
    cutoff: float = Field(default=DEFAULT_CUTOFF, ge=0)
    drive_gain: float = DEFAULT_DRIVE_GAIN

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration_string(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @property
    def length(self) -> int:
        """Number of samples every buffer of this render holds."""
        return buffer_length(self.sample_rate, self.duration)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SynthConfig":
        return load_config(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "SynthConfig":
        target = Path(path)
        try:
            raw = json.loads(target.read_text(encoding="utf-8"))
        except OSError as exc:
            raise InvalidParameterError(f"cannot read config {target}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise InvalidParameterError(f"config {target} is not valid JSON: {exc}") from exc
        if not isinstance(raw, Mapping):
            raise InvalidParameterError(f"config {target} must contain a JSON object")
        return load_config(raw)


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "config"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def load_config(
    data: Mapping[str, Any] | None = None, **overrides: Any
) -> SynthConfig:
    """Validate ``data`` plus ``overrides`` into a :class:`SynthConfig`.

    ``None`` overrides are skipped so unset CLI flags keep the base value.
    """

    merged: dict[str, Any] = dict(data or {})
    merged.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return SynthConfig.model_validate(merged)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse synth config: %s", exc, exc_info=True)
        raise InvalidParameterError(f"invalid synth config: {_describe(exc)}") from exc
