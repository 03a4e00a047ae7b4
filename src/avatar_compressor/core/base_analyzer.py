"""BaseAnalyzer ABC — the contract every complexity analyzer implements."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

import cv2

from avatar_compressor.core.datatypes import ProcessedPixelData, TextureComplexityResult
from avatar_compressor.core.exceptions import AnalysisError

logger = logging.getLogger(__name__)

DEFAULT_COMPLEXITY_SCORE = 0.5
# Below either limit there is too little signal to score.
MIN_ANALYSIS_DIMENSION = 8
MIN_OPAQUE_PIXELS_FOR_ANALYSIS = 64


class BaseAnalyzer(ABC):
    """Template Method base for every complexity analyzer.

    ``analyze()`` applies the shared guard rails (tiny images, too few
    opaque pixels), delegates to ``_do_analyze()`` and clamps the score
    into ``[0, 1]``.  Analyzers hold no per-call state, so one instance may
    score many textures, from several threads.
    """

    # ── metadata (override in subclass) ────────────────────────
    name: str
    display_name: str
    description: str

    # ── lifecycle (Template Method skeleton) ───────────────────
    def analyze(self, data: ProcessedPixelData) -> TextureComplexityResult:
        """Score *data* — public entry point, do NOT override.

        Args:
            data: Preprocessed pixels of one texture.

        Returns:
            A result whose score lies in ``[0, 1]``.

        Raises:
            AnalysisError: If the analyzer cannot produce a finite score.
        """
        if min(data.width, data.height) < MIN_ANALYSIS_DIMENSION:
            return TextureComplexityResult(DEFAULT_COMPLEXITY_SCORE, self.name, "Image too small for analysis")
        if data.opaque_count < MIN_OPAQUE_PIXELS_FOR_ANALYSIS:
            return TextureComplexityResult(DEFAULT_COMPLEXITY_SCORE, self.name, "Too few opaque pixels for analysis")

        try:
            score, summary = self._do_analyze(data)
        except (cv2.error, ValueError, ArithmeticError) as exc:
            msg = f"{self.display_name} analysis failed: {exc}"
            raise AnalysisError(msg) from exc

        if not math.isfinite(score):
            msg = f"{self.display_name} analysis produced a non-finite score"
            raise AnalysisError(msg)
        return TextureComplexityResult(min(1.0, max(0.0, float(score))), self.name, summary)

    @abstractmethod
    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        """Core scoring — MUST override.  Pure computation on *data*.

        Args:
            data: Preprocessed pixels that passed the guard rails.

        Returns:
            ``(raw_score, summary)``; the score is clamped by ``analyze()``.
        """
        ...
