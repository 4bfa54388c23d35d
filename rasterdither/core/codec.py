"""Conversion between 8-bit image data and normalized PixelBuffers.

Raw samples are interleaved, row-major and unpadded. File formats are
handled by Pillow; this module only maps its modes onto 1, 3 or 4 channels.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from rasterdither.core.buffer import SUPPORTED_CHANNELS, PixelBuffer
from rasterdither.core.errors import DecodeError

logger = logging.getLogger(__name__)

_MODES = {1: "L", 3: "RGB", 4: "RGBA"}

# Samples that left decode() as k / 255 come back slightly under k after the
# multiply; this keeps them on k without moving any other truncation.
_ROUNDING_SLACK = 1e-9


def decode(samples: bytes, width: int, height: int, channels: int) -> PixelBuffer:
    """Turn raw 8-bit samples into a buffer with values in [0, 1]."""
    if channels not in SUPPORTED_CHANNELS:
        raise DecodeError(f"Unsupported channel count: {channels}")
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid dimensions: {width}x{height}")

    expected = width * height * channels
    if len(samples) != expected:
        raise DecodeError(
            f"Expected {expected} samples for {width}x{height}x{channels}, "
            f"got {len(samples)}"
        )

    raw = np.frombuffer(samples, dtype=np.uint8)
    return PixelBuffer(width, height, channels, raw / 255.0)


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Scale normalized samples to 0-255, clamp, and truncate."""
    scaled = np.clip(np.asarray(values, dtype=np.float64) * 255.0, 0.0, 255.0)
    return np.floor(scaled + _ROUNDING_SLACK).clip(0, 255).astype(np.uint8)


def encode(buffer: PixelBuffer) -> bytes:
    """Return the buffer as interleaved 8-bit samples."""
    return to_uint8(buffer.pixels).tobytes()


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in ("L", "RGB", "RGBA"):
        return img
    if img.mode == "LA" or (img.mode == "P" and "transparency" in img.info):
        return img.convert("RGBA")
    return img.convert("RGB")


def from_image(img: Image.Image) -> PixelBuffer:
    """Convert a Pillow image into a buffer."""
    img = _normalize_mode(img)
    channels = len(img.getbands())
    return decode(img.tobytes(), img.width, img.height, channels)


def to_image(buffer: PixelBuffer) -> Image.Image:
    """Convert a buffer into a Pillow image (L, RGB or RGBA)."""
    return Image.frombytes(
        _MODES[buffer.channels], (buffer.width, buffer.height), encode(buffer)
    )


def decode_image_bytes(data: bytes) -> PixelBuffer:
    """Decode an encoded image file (PNG, JPEG, ...) held in memory."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return from_image(img)
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Cannot decode image data: {e}") from e


def load_image(path: str | Path) -> PixelBuffer:
    """Read an image file into a buffer.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        DecodeError: if Pillow cannot read the file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with Image.open(path) as img:
            img.load()
            buffer = from_image(img)
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Cannot decode {path}: {e}") from e

    logger.debug("Loaded %s as %r", path, buffer)
    return buffer


def save_image(buffer: PixelBuffer, path: str | Path) -> Path:
    """Write the buffer to ``path``; the format follows the file extension."""
    path = Path(path)
    to_image(buffer).save(path)
    logger.debug("Wrote %r to %s", buffer, path)
    return path
