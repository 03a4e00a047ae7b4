"""Perceptual analyzer — scores the detail a viewer would notice losing."""

from __future__ import annotations

from avatar_compressor.analyzers import _image_math as im
from avatar_compressor.analyzers import constants as c
from avatar_compressor.core.base_analyzer import BaseAnalyzer
from avatar_compressor.core.datatypes import ProcessedPixelData


class PerceptualAnalyzer(BaseAnalyzer):
    """Contrast-sensitivity weighted estimate.

    Mid-frequency detail (a difference-of-Gaussians band) carries the
    largest weight; structure finer than the band aliases away on
    downsampling and smooth shading survives it, so both count for less.
    Local block variance and edge density complete the score.
    """

    name = "perceptual"
    display_name = "Perceptual"
    description = "Band-pass detail, block variance and edge density"

    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        gray = data.grayscale
        variance = im.block_variance(gray)
        edges = im.edge_density(gray, c.EDGE_THRESHOLD)
        detail = im.detail_energy(gray, c.DETAIL_FINE_SIGMA, c.DETAIL_COARSE_SIGMA)

        score = (
            c.PERCEPTUAL_VARIANCE_WEIGHT * im.normalize(variance, c.VARIANCE_LOW, c.VARIANCE_HIGH)
            + c.PERCEPTUAL_EDGE_WEIGHT * im.normalize(edges, c.EDGE_LOW, c.EDGE_HIGH)
            + c.PERCEPTUAL_DETAIL_WEIGHT * im.normalize(detail, c.DETAIL_LOW, c.DETAIL_HIGH)
        )
        summary = f"variance={variance:.4f} edges={edges:.3f} detail={detail:.4f}"
        return score, summary
