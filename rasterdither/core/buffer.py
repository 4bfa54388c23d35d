"""Normalized floating-point pixel storage.

A PixelBuffer owns one flat float64 array laid out row-major with the
channels of a pixel stored next to each other. Samples are nominally in
[0.0, 1.0] but nothing here clamps them; error diffusion pushes values past
either end and the codec clamps on the way out.

Pixel access is lenient at the edges: reads outside the image return zeros
and writes outside it are ignored, so kernels can be applied without
special-casing borders.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from rasterdither.core.errors import DivideByZero

Pixel = tuple[float, ...]

SUPPORTED_CHANNELS = (1, 3, 4)


class PixelBuffer:
    """A width x height image with 1 (grey), 3 (RGB) or 4 (RGBA) channels."""

    def __init__(
        self,
        width: int,
        height: int,
        channels: int = 3,
        pixels: Sequence[float] | np.ndarray | None = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid dimensions: {width}x{height}")
        if channels not in SUPPORTED_CHANNELS:
            raise ValueError(f"Unsupported channel count: {channels}")

        size = width * height * channels
        if pixels is None:
            data = np.zeros(size, dtype=np.float64)
        else:
            data = np.array(pixels, dtype=np.float64).ravel()
            if data.size != size:
                raise ValueError(
                    f"Expected {size} samples for {width}x{height}x{channels}, "
                    f"got {data.size}"
                )

        self.width = width
        self.height = height
        self.channels = channels
        self._data = data

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Build a buffer from a (height, width) or (height, width, channels) array."""
        arr = np.asarray(array, dtype=np.float64)
        if arr.ndim == 2:
            height, width = arr.shape
            channels = 1
        elif arr.ndim == 3:
            height, width, channels = arr.shape
        else:
            raise ValueError(f"Expected a 2D or 3D array, got shape {arr.shape}")
        return cls(width, height, channels, arr)

    def to_array(self) -> np.ndarray:
        """Return a copy shaped (height, width) for grey, else (height, width, channels)."""
        if self.channels == 1:
            return self._data.reshape(self.height, self.width).copy()
        return self._data.reshape(self.height, self.width, self.channels).copy()

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.width, self.height, self.channels, self._data)

    def copy_from(self, other: PixelBuffer) -> None:
        """Overwrite every sample with those of a buffer of the same shape."""
        if (self.width, self.height, self.channels) != (
            other.width,
            other.height,
            other.channels,
        ):
            raise ValueError(f"Buffer mismatch: {other!r} vs {self!r}")
        self._data[:] = other._data

    @property
    def size(self) -> int:
        """Total number of samples (width * height * channels)."""
        return self._data.size

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the flat sample array."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int, c: int = 0) -> int:
        return (y * self.channels) * self.width + x * self.channels + c

    # --- raw access ---

    def get(self, x: int, y: int) -> Pixel:
        """Return the pixel's samples; zeros when (x, y) is outside the image."""
        if not self.in_bounds(x, y):
            return (0.0,) * self.channels
        i = self.index(x, y)
        return tuple(self._data[i : i + self.channels].tolist())

    def set(self, x: int, y: int, pixel: Sequence[float]) -> None:
        """Write exactly `channels` samples; ignored outside the image."""
        if len(pixel) != self.channels:
            raise ValueError(
                f"Pixel has {len(pixel)} samples, buffer has {self.channels} channels"
            )
        if not self.in_bounds(x, y):
            return
        i = self.index(x, y)
        self._data[i : i + self.channels] = pixel

    # --- colour access ---

    def get_rgb(self, x: int, y: int) -> Pixel:
        if not self.in_bounds(x, y):
            return (0.0, 0.0, 0.0)
        i = self.index(x, y)
        if self.channels == 1:
            grey = float(self._data[i])
            return (grey, grey, grey)
        return tuple(self._data[i : i + 3].tolist())

    def get_rgba(self, x: int, y: int) -> Pixel:
        """Return (r, g, b, a). Alpha reads 1.0 unless the buffer stores one."""
        if not self.in_bounds(x, y):
            return (0.0, 0.0, 0.0, 0.0)
        if self.channels == 4:
            i = self.index(x, y)
            return tuple(self._data[i : i + 4].tolist())
        return self.get_rgb(x, y) + (1.0,)

    def set_rgb(self, x: int, y: int, rgb: Sequence[float]) -> None:
        """Write the colour part of a pixel. Grey buffers keep the red sample."""
        if not self.in_bounds(x, y):
            return
        i = self.index(x, y)
        if self.channels == 1:
            self._data[i] = rgb[0]
        else:
            self._data[i : i + 3] = rgb[:3]

    def set_rgba(self, x: int, y: int, pixel: Sequence[float]) -> None:
        """Write a 3- or 4-sample pixel.

        Alpha is only stored when the buffer has an alpha channel and the
        pixel carries one; otherwise it is dropped.
        """
        if len(pixel) not in (3, 4):
            raise ValueError(f"Expected an RGB or RGBA pixel, got {len(pixel)} samples")
        if not self.in_bounds(x, y):
            return
        self.set_rgb(x, y, pixel)
        if self.channels == 4 and len(pixel) == 4:
            self._data[self.index(x, y, 3)] = pixel[3]

    # --- whole-buffer operations ---

    def flip_vertical(self) -> None:
        """Swap rows top-to-bottom in place."""
        grid = self._data.reshape(self.height, self.width, self.channels)
        grid[:] = grid[::-1].copy()

    def flip_horizontal(self) -> None:
        """Swap columns left-to-right in place."""
        grid = self._data.reshape(self.height, self.width, self.channels)
        grid[:] = grid[:, ::-1].copy()

    def normalize(self) -> None:
        """Divide every sample by the largest one.

        Raises:
            DivideByZero: if the largest sample is exactly 0.
        """
        peak = float(self._data.max())
        if peak == 0.0:
            raise DivideByZero(f"Cannot normalize {self!r}: maximum sample is 0")
        self._data /= peak

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.channels == other.channels
            and np.array_equal(self._data, other._data)
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return (
            f"PixelBuffer(width={self.width}, height={self.height}, "
            f"channels={self.channels}, size={self.size})"
        )
