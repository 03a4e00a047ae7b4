"""Fast analyzer — gradient, spatial frequency and colour variance on a coarse grid."""

from __future__ import annotations

from avatar_compressor.analyzers import _image_math as im
from avatar_compressor.analyzers import constants as c
from avatar_compressor.core.base_analyzer import BaseAnalyzer
from avatar_compressor.core.datatypes import ProcessedPixelData


class FastAnalyzer(BaseAnalyzer):
    """Cheap single-pass estimate intended for large batches.

    Textures whose sides are both at least ``FAST_SUBSAMPLE_MIN_DIMENSION``
    are read on every second row and column.
    """

    name = "fast"
    display_name = "Fast"
    description = "Gradient, spatial frequency and colour variance on a coarse grid"

    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        gray, pixels = data.grayscale, data.pixels
        if min(data.width, data.height) >= c.FAST_SUBSAMPLE_MIN_DIMENSION:
            gray, pixels = gray[::2, ::2], pixels[::2, ::2]

        gradient = im.sobel_gradient(gray)
        frequency = im.spatial_frequency(gray)
        variance = im.color_variance(pixels, gray >= 0.0)

        score = (
            c.FAST_GRADIENT_WEIGHT * im.normalize(gradient, c.GRADIENT_LOW, c.GRADIENT_HIGH)
            + c.FAST_SPATIAL_FREQUENCY_WEIGHT
            * im.normalize(frequency, c.SPATIAL_FREQUENCY_LOW, c.SPATIAL_FREQUENCY_HIGH)
            + c.FAST_COLOR_VARIANCE_WEIGHT * im.normalize(variance, c.COLOR_VARIANCE_LOW, c.COLOR_VARIANCE_HIGH)
        )
        summary = f"gradient={gradient:.3f} frequency={frequency:.3f} variance={variance:.4f}"
        return score, summary
