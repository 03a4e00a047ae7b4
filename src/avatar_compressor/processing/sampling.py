"""Grid sampling of large pixel buffers before analysis."""

from __future__ import annotations

import logging
import math

import numpy as np

from avatar_compressor.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_SAMPLED_PIXELS = 512 * 512
MIN_SAMPLED_DIMENSION = 32


def sampled_dimensions(width: int, height: int, max_pixels: int = MAX_SAMPLED_PIXELS) -> tuple[int, int]:
    """Return the buffer size used for analysis of a ``width`` x ``height`` image.

    Args:
        width: Source width.
        height: Source height.
        max_pixels: Pixel budget for the sampled buffer.

    Returns:
        ``(width, height)`` unchanged when within budget, otherwise a
        proportionally reduced size whose sides are at least
        ``MIN_SAMPLED_DIMENSION`` (or the source side, if smaller).
    """
    if width * height <= max_pixels:
        return width, height
    scale = math.sqrt(max_pixels / (width * height))
    new_width = min(width, max(MIN_SAMPLED_DIMENSION, int(width * scale)))
    new_height = min(height, max(MIN_SAMPLED_DIMENSION, int(height * scale)))
    return new_width, new_height


def sample_if_needed(pixels: np.ndarray, max_pixels: int = MAX_SAMPLED_PIXELS) -> np.ndarray:
    """Point-sample *pixels* on an even grid when it exceeds the pixel budget.

    Buffers already within budget are returned as the same object.

    Args:
        pixels: ``(H, W)`` or ``(H, W, C)`` array.
        max_pixels: Pixel budget for the sampled buffer.

    Returns:
        The original array, or a sampled copy.

    Raises:
        ValidationError: If *pixels* is not a 2-D or 3-D array.
    """
    if pixels.ndim not in (2, 3):
        msg = f"Expected a (H, W) or (H, W, C) pixel buffer, got shape {pixels.shape}"
        raise ValidationError(msg)

    height, width = pixels.shape[:2]
    new_width, new_height = sampled_dimensions(width, height, max_pixels)
    if (new_width, new_height) == (width, height):
        return pixels

    rows = (np.arange(new_height) * height) // new_height
    cols = (np.arange(new_width) * width) // new_width
    logger.debug("Sampling %dx%d buffer down to %dx%d", width, height, new_width, new_height)
    return pixels[rows[:, None], cols[None, :]]
