from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console

from . import __version__
from .config import DEFAULT_FREQ, DEFAULT_SAMPLE_RATE, SynthConfig, load_config
from .logging_utils import configure_logging, log_exception
from .pipeline import render_to_file
from .spinner import Spinner, render_error

DEFAULT_OUTPUT = "bass_output.wav"
_LOGGER = logging.getLogger("basssynth.cli")
_CONSOLE = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bass-synth",
        description="Render a detuned sawtooth bass note to a 16-bit mono WAV file.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-help", "--help", "-h", action="help", help="Show help information and exit."
    )
    parser.add_argument(
        "-version",
        "--version",
        action="version",
        version=f"Bass Synth Generator, version {__version__}",
        help="Show version information and exit.",
    )
    parser.add_argument(
        "-samplerate",
        "--samplerate",
        dest="sample_rate",
        type=int,
        help=f"Sample rate in Hz (default {DEFAULT_SAMPLE_RATE}).",
    )
    parser.add_argument(
        "-duration",
        "--duration",
        type=str,
        help="Duration of the audio, e.g. 10s, 5m, 1m30s (default 10s).",
    )
    parser.add_argument(
        "-freq",
        "--freq",
        type=float,
        help=f"Base frequency of the bass sound in Hz (default {DEFAULT_FREQ}).",
    )
    parser.add_argument(
        "-output",
        "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT),
        help=f"Output WAV path (default {DEFAULT_OUTPUT}).",
    )
    parser.add_argument(
        "-config",
        "--config",
        type=Path,
        help="JSON file with base synth settings; explicit flags override it.",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> SynthConfig:
    base: dict[str, Any] = {}
    if args.config is not None:
        base = SynthConfig.from_file(args.config).model_dump()
    return load_config(
        base,
        sample_rate=args.sample_rate,
        duration=args.duration,
        freq=args.freq,
    )


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = resolve_config(args)
        with Spinner(f"Rendering {config.duration:g}s of bass at {config.freq:g} Hz"):
            path = render_to_file(config, args.output)
        _CONSOLE.print(f"Successfully generated '{path}'", markup=False, soft_wrap=True)
        return 0
    except Exception as exc:
        debug = bool(os.environ.get("BASSSYNTH_DEBUG"))
        _LOGGER.warning("bass-synth failed: %s", exc, exc_info=debug)
        log_exception("bass-synth", exc)
        render_error("bass-synth", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
