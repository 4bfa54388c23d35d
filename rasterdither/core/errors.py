"""Exceptions raised by the buffer and codec layers.

Out-of-bounds pixel access is never an error: reads return zeros and writes
are dropped, so there is no bounds exception here.
"""

from __future__ import annotations


class DecodeError(ValueError):
    """Source samples or image bytes could not be turned into a buffer."""


class DivideByZero(ZeroDivisionError):
    """A buffer was normalized while its maximum sample is exactly 0."""
