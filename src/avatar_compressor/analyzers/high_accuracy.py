"""High-accuracy analyzer — DCT frequency content, co-occurrence texture and entropy."""

from __future__ import annotations

from avatar_compressor.analyzers import _image_math as im
from avatar_compressor.analyzers import constants as c
from avatar_compressor.core.base_analyzer import BaseAnalyzer
from avatar_compressor.core.datatypes import ProcessedPixelData


class HighAccuracyAnalyzer(BaseAnalyzer):
    """Full-resolution multi-metric estimate, used as the reference score.

    Combines the high-frequency share of 8x8 DCT energy, GLCM contrast,
    homogeneity and energy over horizontal and vertical neighbours, and
    histogram entropy.
    """

    name = "high_accuracy"
    display_name = "High Accuracy"
    description = "DCT high-frequency ratio, GLCM texture features and entropy"

    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        gray = data.grayscale
        dct_ratio = im.dct_high_frequency_ratio(gray)
        contrast, homogeneity, energy = im.glcm_features(gray)
        bits = im.entropy(gray)

        score = (
            c.HIGH_ACCURACY_DCT_WEIGHT * im.normalize(dct_ratio, c.DCT_RATIO_LOW, c.DCT_RATIO_HIGH)
            + c.HIGH_ACCURACY_CONTRAST_WEIGHT * im.normalize(contrast, c.CONTRAST_LOW, c.CONTRAST_HIGH)
            + c.HIGH_ACCURACY_HOMOGENEITY_WEIGHT * (1.0 - homogeneity)
            + c.HIGH_ACCURACY_ENERGY_WEIGHT * (1.0 - energy)
            + c.HIGH_ACCURACY_ENTROPY_WEIGHT * im.normalize(bits, c.ENTROPY_LOW, c.ENTROPY_HIGH)
        )
        summary = (
            f"dct={dct_ratio:.3f} contrast={contrast:.2f} homogeneity={homogeneity:.3f} "
            f"energy={energy:.3f} entropy={bits:.2f}"
        )
        return score, summary
