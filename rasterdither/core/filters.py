"""Simple filters built on the pipeline scans."""

from __future__ import annotations

from rasterdither.core.buffer import Pixel, PixelBuffer
from rasterdither.core.pipeline import Position, transform, transform_sample

# Rec. 709 luma
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def luminance(pixel: Pixel) -> float:
    r, g, b = pixel[:3]
    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


def greyscale(buffer: PixelBuffer) -> None:
    """Replace each pixel's colour with its luminance, in place. Alpha is kept."""

    def to_grey(pixel: Pixel) -> Pixel:
        grey = luminance(pixel)
        return (grey, grey, grey, pixel[3])

    transform(buffer, buffer, to_grey)


def box_blur(buffer: PixelBuffer, radius: int = 1) -> PixelBuffer:
    """Return a new buffer where each pixel is the mean of its (2r+1)^2 window.

    Window taps outside the image read as zeros and still count towards the
    mean, so borders darken slightly.
    """
    if radius < 0:
        raise ValueError(f"Blur radius must be >= 0, got {radius}")

    output = PixelBuffer(buffer.width, buffer.height, buffer.channels)
    taps = [
        (dx, dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
    ]
    denom = float(len(taps))

    def average(pos: Position, _pixel: Pixel) -> Pixel:
        x, y = pos
        total = [0.0, 0.0, 0.0, 0.0]
        for dx, dy in taps:
            sample = buffer.get_rgba(x + dx, y + dy)
            for c in range(4):
                total[c] += sample[c]
        return tuple(t / denom for t in total)

    transform_sample(buffer, output, average)
    return output
