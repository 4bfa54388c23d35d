"""Error diffusion dithering.

One algorithm, parameterised by a DiffusionKernel. Kernels are plain data:
integer weights over a divisor, each tap an (dx, dy) offset from the pixel
being quantised.

    Floyd-Steinberg (/16):        Minimized average error (/48):
            [*] [7]                       [*] [7] [5]
        [3] [5] [1]               [3] [5] [7] [5] [3]
                                  [1] [3] [5] [3] [1]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from rasterdither.core.buffer import Pixel, PixelBuffer
from rasterdither.core.pipeline import Position, map_sample

logger = logging.getLogger(__name__)

Offset = tuple[int, int]
QuantiseFn = Callable[[Pixel], Pixel]


@dataclass(frozen=True)
class DiffusionKernel:
    """Taps that spread quantisation error to pixels ahead of the scan.

    Every offset must point strictly forward in raster order: to the right
    on the current row, or anywhere on a later row.
    """

    name: str
    divisor: int
    taps: tuple[tuple[Offset, int], ...]

    def __post_init__(self) -> None:
        if self.divisor <= 0:
            raise ValueError(f"Kernel {self.name!r}: divisor must be positive")
        for (dx, dy), _ in self.taps:
            if dy < 0 or (dy == 0 and dx <= 0):
                raise ValueError(
                    f"Kernel {self.name!r}: offset ({dx}, {dy}) is not ahead of the scan"
                )

    @property
    def weights(self) -> tuple[tuple[Offset, float], ...]:
        return tuple((offset, n / self.divisor) for offset, n in self.taps)

    @property
    def total(self) -> float:
        """Fraction of the error the kernel passes on."""
        return sum(n for _, n in self.taps) / self.divisor


FLOYD_STEINBERG = DiffusionKernel(
    name="floyd-steinberg",
    divisor=16,
    taps=(
        ((1, 0), 7),
        ((-1, 1), 3),
        ((0, 1), 5),
        ((1, 1), 1),
    ),
)

MINIMIZED_AVERAGE_ERROR = DiffusionKernel(
    name="minimized-average-error",
    divisor=48,
    taps=(
        ((1, 0), 7),
        ((2, 0), 5),
        ((-2, 1), 3),
        ((-1, 1), 5),
        ((0, 1), 7),
        ((1, 1), 5),
        ((2, 1), 3),
        ((-2, 2), 1),
        ((-1, 2), 3),
        ((0, 2), 5),
        ((1, 2), 3),
        ((2, 2), 1),
    ),
)

STUCKI = DiffusionKernel(
    name="stucki",
    divisor=42,
    taps=(
        ((1, 0), 8),
        ((2, 0), 4),
        ((-2, 1), 2),
        ((-1, 1), 4),
        ((0, 1), 8),
        ((1, 1), 4),
        ((2, 1), 2),
        ((-2, 2), 1),
        ((-1, 2), 2),
        ((0, 2), 4),
        ((1, 2), 2),
        ((2, 2), 1),
    ),
)

# Passes on 6/8 of the error.
ATKINSON = DiffusionKernel(
    name="atkinson",
    divisor=8,
    taps=(
        ((1, 0), 1),
        ((2, 0), 1),
        ((-1, 1), 1),
        ((0, 1), 1),
        ((1, 1), 1),
        ((0, 2), 1),
    ),
)


class KernelName(str, Enum):
    FLOYD_STEINBERG = "floyd-steinberg"
    MINIMIZED_AVERAGE_ERROR = "minimized-average-error"
    STUCKI = "stucki"
    ATKINSON = "atkinson"


KERNELS: dict[KernelName, DiffusionKernel] = {
    KernelName.FLOYD_STEINBERG: FLOYD_STEINBERG,
    KernelName.MINIMIZED_AVERAGE_ERROR: MINIMIZED_AVERAGE_ERROR,
    KernelName.STUCKI: STUCKI,
    KernelName.ATKINSON: ATKINSON,
}


def threshold_quantiser(threshold: float = 0.5) -> QuantiseFn:
    """1-bit quantiser: red >= threshold becomes white, anything else black."""

    def quantise(pixel: Pixel) -> Pixel:
        if pixel[0] < threshold:
            return (0.0, 0.0, 0.0, 1.0)
        return (1.0, 1.0, 1.0, 1.0)

    return quantise


def levels_quantiser(levels: int) -> QuantiseFn:
    """Snap each colour channel to the nearest of `levels` evenly spaced values."""
    if levels < 2:
        raise ValueError(f"Need at least 2 levels, got {levels}")
    step = 1.0 / (levels - 1)

    def quantise(pixel: Pixel) -> Pixel:
        snapped = tuple(max(0.0, min(1.0, round(v / step) * step)) for v in pixel[:3])
        return snapped + (1.0,)

    return quantise


def error_diffuse(
    source: PixelBuffer,
    destination: PixelBuffer,
    quantise: QuantiseFn,
    kernel: DiffusionKernel = FLOYD_STEINBERG,
) -> None:
    """Dither ``source`` into ``destination`` in place.

    ``destination`` is first overwritten with a copy of ``source``. The scan
    then quantises each pixel and adds ``error * weight`` to every kernel
    target. Targets are read back from ``destination`` itself, so a pixel
    collects error from every earlier pixel before its own turn. Only the
    colour channels carry error; alpha is written as 1.0.
    """
    destination.copy_from(source)
    logger.debug("Error diffusion with %s over %r", kernel.name, source)
    weights = kernel.weights

    def step(pos: Position, pixel: Pixel) -> Pixel:
        x, y = pos
        q = quantise(pixel)
        err = (pixel[0] - q[0], pixel[1] - q[1], pixel[2] - q[2])

        for (dx, dy), weight in weights:
            tx, ty = x + dx, y + dy
            r, g, b, _ = destination.get_rgba(tx, ty)
            destination.set_rgba(
                tx,
                ty,
                (r + err[0] * weight, g + err[1] * weight, b + err[2] * weight, 1.0),
            )

        return (q[0], q[1], q[2], 1.0)

    map_sample(destination, step)


def dither(
    source: PixelBuffer,
    quantise: QuantiseFn | None = None,
    kernel: DiffusionKernel = FLOYD_STEINBERG,
) -> PixelBuffer:
    """Return a dithered copy of ``source``. Defaults to a 1-bit threshold at 0.5."""
    destination = source.copy()
    error_diffuse(source, destination, quantise or threshold_quantiser(), kernel)
    return destination
