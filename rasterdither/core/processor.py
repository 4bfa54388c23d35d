"""Image processing pipeline.

Flip → blur → normalize → greyscale → quantise / dither.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from rasterdither.core.buffer import PixelBuffer
from rasterdither.core.dither import (
    KERNELS,
    KernelName,
    QuantiseFn,
    error_diffuse,
    levels_quantiser,
    threshold_quantiser,
)
from rasterdither.core.filters import box_blur, greyscale
from rasterdither.core.pipeline import transform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Processing settings that affect output."""

    kernel: KernelName = KernelName.FLOYD_STEINBERG
    levels: int = 2  # 2 = black/white
    threshold: float = 0.5  # only used when levels == 2
    blur: int = 0  # box blur radius, 0 = off
    flip_horizontal: bool = False
    flip_vertical: bool = False
    normalize: bool = False

    def hash(self) -> str:
        """Deterministic hash for naming and caching outputs."""
        data = (
            f"{self.kernel}:{self.levels}:{self.threshold}:{self.blur}:"
            f"{self.flip_horizontal}:{self.flip_vertical}:{self.normalize}"
        )
        return hashlib.md5(data.encode()).hexdigest()[:12]

    def quantiser(self) -> QuantiseFn:
        if self.levels == 2:
            return threshold_quantiser(self.threshold)
        return levels_quantiser(self.levels)


@dataclass
class ProcessedImage:
    """The three stages written out by the CLI."""

    greyscale: PixelBuffer
    quantised: PixelBuffer  # plain quantisation, no error diffusion
    dithered: PixelBuffer
    settings: Settings


def _prepare(source: PixelBuffer, settings: Settings) -> PixelBuffer:
    img = source.copy()

    if settings.flip_horizontal:
        img.flip_horizontal()
    if settings.flip_vertical:
        img.flip_vertical()

    if settings.blur > 0:
        img = box_blur(img, settings.blur)

    # Raises DivideByZero on an all-black image
    if settings.normalize:
        img.normalize()

    greyscale(img)
    return img


def process_image(source: PixelBuffer, settings: Settings) -> ProcessedImage:
    """Run a buffer through the full pipeline. ``source`` is not modified."""
    quantise = settings.quantiser()
    kernel = KERNELS[settings.kernel]

    grey = _prepare(source, settings)

    quantised = PixelBuffer(grey.width, grey.height, grey.channels)
    transform(grey, quantised, quantise)

    dithered = grey.copy()
    error_diffuse(grey, dithered, quantise, kernel)

    logger.debug("Processed %r with settings %s", source, settings.hash())
    return ProcessedImage(
        greyscale=grey,
        quantised=quantised,
        dithered=dithered,
        settings=settings,
    )
