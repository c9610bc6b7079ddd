"""
Exception types raised by the magstripe codec.
"""

from typing import Optional


class MagstripeError(Exception):
    """Base class for all codec errors."""


class InvalidArgument(MagstripeError, ValueError):
    """Encode input violates a length or character set constraint."""


class DecodeError(MagstripeError):
    """No valid track could be decoded from the bitstream."""


class ParityError(DecodeError):
    """A character row failed its odd parity check."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class LrcError(DecodeError):
    """The column LRC character or its parity bit did not match."""


class InsufficientData(DecodeError):
    """Too few flux transitions to extract bits from."""
