"""Raw single-channel output.

The sink format is one unsigned byte per pixel in raster order, taken from
the red channel, with no header or framing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

import numpy as np

from rasterdither.core.buffer import PixelBuffer
from rasterdither.core.codec import to_uint8

logger = logging.getLogger(__name__)


def greyscale_samples(buffer: PixelBuffer) -> bytes:
    """Return one clamped 8-bit sample per pixel."""
    red = buffer.pixels[:: buffer.channels]
    return to_uint8(np.asarray(red)).tobytes()


def write_greyscale(buffer: PixelBuffer, stream: BinaryIO) -> int:
    """Write the samples to ``stream`` and return the byte count."""
    data = greyscale_samples(buffer)
    stream.write(data)
    logger.debug("Sent %d bytes to %r", len(data), stream)
    return len(data)


def save_greyscale(buffer: PixelBuffer, path: str | Path) -> Path:
    path = Path(path)
    with path.open("wb") as f:
        write_greyscale(buffer, f)
    return path
