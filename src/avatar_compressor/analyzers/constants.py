"""Weights and normalisation bounds shared by the complexity analyzers.

Each raw metric is mapped onto ``[0, 1]`` with ``normalize(value, low, high)``
using the ``*_LOW`` / ``*_HIGH`` pairs below.  Within a strategy the metric
weights sum to 1.
"""

from __future__ import annotations

from avatar_compressor.core.base_analyzer import (
    DEFAULT_COMPLEXITY_SCORE,
    MIN_ANALYSIS_DIMENSION,
    MIN_OPAQUE_PIXELS_FOR_ANALYSIS,
)

__all__ = [
    "DEFAULT_COMPLEXITY_SCORE",
    "MIN_ANALYSIS_DIMENSION",
    "MIN_OPAQUE_PIXELS_FOR_ANALYSIS",
]

DCT_BLOCK_SIZE = 8
HISTOGRAM_BINS = 256
GLCM_LEVELS = 16

# Weights below this contribute nothing and their analyzer is not run.
ZERO_WEIGHT_THRESHOLD = 1e-4

# ── Fast ──────────────────────────────────────────────────────────────────

FAST_GRADIENT_WEIGHT = 0.4
FAST_SPATIAL_FREQUENCY_WEIGHT = 0.35
FAST_COLOR_VARIANCE_WEIGHT = 0.25
# The coarse grid only kicks in when both sides are at least this long.
FAST_SUBSAMPLE_MIN_DIMENSION = 64

GRADIENT_LOW, GRADIENT_HIGH = 0.02, 0.6
SPATIAL_FREQUENCY_LOW, SPATIAL_FREQUENCY_HIGH = 0.01, 0.2
COLOR_VARIANCE_LOW, COLOR_VARIANCE_HIGH = 0.001, 0.06

# ── High accuracy ─────────────────────────────────────────────────────────

HIGH_ACCURACY_DCT_WEIGHT = 0.35
HIGH_ACCURACY_CONTRAST_WEIGHT = 0.2
HIGH_ACCURACY_HOMOGENEITY_WEIGHT = 0.15
HIGH_ACCURACY_ENERGY_WEIGHT = 0.1
HIGH_ACCURACY_ENTROPY_WEIGHT = 0.2

DCT_RATIO_LOW, DCT_RATIO_HIGH = 0.0, 0.3
CONTRAST_LOW, CONTRAST_HIGH = 0.5, 20.0
ENTROPY_LOW, ENTROPY_HIGH = 1.0, 7.0

# ── Perceptual ────────────────────────────────────────────────────────────

PERCEPTUAL_VARIANCE_WEIGHT = 0.3
PERCEPTUAL_EDGE_WEIGHT = 0.3
PERCEPTUAL_DETAIL_WEIGHT = 0.4

VARIANCE_LOW, VARIANCE_HIGH = 0.0005, 0.03
EDGE_LOW, EDGE_HIGH = 0.02, 0.3
EDGE_THRESHOLD = 0.1
DETAIL_LOW, DETAIL_HIGH = 0.003, 0.06
# Gaussian sigmas of the band-pass filter: detail finer than the first is
# treated as invisible, coarser than the second as flat shading.
DETAIL_FINE_SIGMA = 1.0
DETAIL_COARSE_SIGMA = 3.0

# ── Normal maps ───────────────────────────────────────────────────────────

NORMAL_MAP_VARIATION_MULTIPLIER = 10.0
NORMAL_MAP_LOCAL_WEIGHT = 0.7
NORMAL_MAP_GLOBAL_WEIGHT = 0.3

# ── Combined defaults ─────────────────────────────────────────────────────

COMBINED_DEFAULT_FAST_WEIGHT = 0.3
COMBINED_DEFAULT_HIGH_ACCURACY_WEIGHT = 0.5
COMBINED_DEFAULT_PERCEPTUAL_WEIGHT = 0.2

# ── Texture-level adjustments ─────────────────────────────────────────────

# Textures with fewer opaque pixels get LOW_OPAQUE_SCORE without analysis.
MIN_OPAQUE_PIXELS_FOR_STANDARD_ANALYSIS = 256
LOW_OPAQUE_SCORE = DEFAULT_COMPLEXITY_SCORE * 0.2
# Emission maps are scored as if this much more complex (score / factor).
EMISSION_BOOST_FACTOR = 0.9
