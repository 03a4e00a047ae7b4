"""Normal-map analyzer — directional variation of decoded normals."""

from __future__ import annotations

import numpy as np

from avatar_compressor.analyzers import constants as c
from avatar_compressor.core.base_analyzer import BaseAnalyzer
from avatar_compressor.core.datatypes import ProcessedPixelData
from avatar_compressor.core.exceptions import AnalysisError


class NormalMapAnalyzer(BaseAnalyzer):
    """Scores normal maps by how much neighbouring normals disagree.

    The local term is the mean angular deviation ``1 - dot(n, n')`` between
    horizontal and vertical neighbours, amplified by
    ``NORMAL_MAP_VARIATION_MULTIPLIER``; the global term is the spread of
    all normals (``1 - |mean normal|``).  A flat map scores 0.
    """

    name = "normal_map"
    display_name = "Normal Map"
    description = "Neighbour angular variation and global spread of unit normals"

    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        normals = data.normals
        if normals is None:
            msg = "Normal map analysis needs decoded normals"
            raise AnalysisError(msg)

        horizontal = 1.0 - np.sum(normals[:, 1:] * normals[:, :-1], axis=-1)
        vertical = 1.0 - np.sum(normals[1:, :] * normals[:-1, :], axis=-1)
        local = float((horizontal.sum() + vertical.sum()) / (horizontal.size + vertical.size))
        spread = 1.0 - float(np.linalg.norm(normals.reshape(-1, 3).mean(axis=0)))

        local_score = min(1.0, max(0.0, local * c.NORMAL_MAP_VARIATION_MULTIPLIER))
        global_score = min(1.0, max(0.0, spread))
        score = c.NORMAL_MAP_LOCAL_WEIGHT * local_score + c.NORMAL_MAP_GLOBAL_WEIGHT * global_score
        return score, f"local={local:.4f} spread={spread:.4f}"
