from __future__ import annotations


class BassSynthError(Exception):
    """Base error for the bass synthesiser."""


class InvalidParameterError(BassSynthError, ValueError):
    """Raised when a synthesis parameter violates its precondition."""


class EncoderError(BassSynthError, OSError):
    """Raised when the output file cannot be created or written."""
