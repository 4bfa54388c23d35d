"""Raster-order scans over a PixelBuffer.

Every scan visits each coordinate once, rows top to bottom and pixels left
to right within a row. Callbacks receive positions as (x, y) tuples and
pixels as RGBA tuples; returned pixels may be RGB or RGBA and are stored
with ``PixelBuffer.set_rgba``.

In-place scans read each pixel just before writing it, so a callback that
writes ahead of the scan (as error diffusion does) sees its own earlier
writes when the scan reaches them. Exceptions raised by a callback
propagate unchanged and leave the buffer partially written.
"""

from __future__ import annotations

from typing import Callable, Iterator

from rasterdither.core.buffer import Pixel, PixelBuffer

Position = tuple[int, int]

RenderFn = Callable[[Position], Pixel]
SampleFn = Callable[[Position, Pixel], Pixel]
TransformFn = Callable[[Pixel], Pixel]
VisitFn = Callable[[Position, Pixel], None]


def raster_positions(width: int, height: int) -> Iterator[Position]:
    """Yield (x, y) in raster order."""
    for y in range(height):
        for x in range(width):
            yield x, y


def generate(buffer: PixelBuffer, fn: RenderFn) -> None:
    """Overwrite every pixel with ``fn(pos)``."""
    for pos in raster_positions(buffer.width, buffer.height):
        buffer.set_rgba(pos[0], pos[1], fn(pos))


def map_sample(buffer: PixelBuffer, fn: SampleFn) -> None:
    """Overwrite every pixel with ``fn(pos, current_pixel)``."""
    for x, y in raster_positions(buffer.width, buffer.height):
        buffer.set_rgba(x, y, fn((x, y), buffer.get_rgba(x, y)))


def visit(buffer: PixelBuffer, fn: VisitFn) -> None:
    """Call ``fn(pos, pixel)`` for every pixel without writing."""
    for x, y in raster_positions(buffer.width, buffer.height):
        fn((x, y), buffer.get_rgba(x, y))


def transform(source: PixelBuffer, destination: PixelBuffer, fn: TransformFn) -> None:
    """Write ``fn(pixel)`` of each source pixel into destination.

    ``source`` and ``destination`` may be the same buffer.
    """
    for x, y in raster_positions(source.width, source.height):
        destination.set_rgba(x, y, fn(source.get_rgba(x, y)))


def transform_sample(
    source: PixelBuffer, destination: PixelBuffer, fn: SampleFn
) -> None:
    """Like ``transform`` but the callback also receives the position."""
    for x, y in raster_positions(source.width, source.height):
        destination.set_rgba(x, y, fn((x, y), source.get_rgba(x, y)))
