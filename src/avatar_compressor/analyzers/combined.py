"""Combined analyzer and the strategy factory."""

from __future__ import annotations

import logging

from avatar_compressor.analyzers import constants as c
from avatar_compressor.analyzers.fast import FastAnalyzer
from avatar_compressor.analyzers.high_accuracy import HighAccuracyAnalyzer
from avatar_compressor.analyzers.perceptual import PerceptualAnalyzer
from avatar_compressor.core.base_analyzer import BaseAnalyzer
from avatar_compressor.core.datatypes import AnalysisStrategyType, ProcessedPixelData
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.core.registry import AnalyzerRegistry

logger = logging.getLogger(__name__)

Weights = tuple[float, float, float]

DEFAULT_WEIGHTS: Weights = (
    c.COMBINED_DEFAULT_FAST_WEIGHT,
    c.COMBINED_DEFAULT_HIGH_ACCURACY_WEIGHT,
    c.COMBINED_DEFAULT_PERCEPTUAL_WEIGHT,
)


class CombinedAnalyzer(BaseAnalyzer):
    """Blends the fast, high-accuracy and perceptual scores by weight.

    ``score = fast_weight * fast + high_accuracy_weight * high_accuracy
    + perceptual_weight * perceptual``.  The weights are independent and
    are not renormalised; the sum is clamped to ``[0, 1]`` by ``analyze()``.
    Analyzers whose weight is below ``ZERO_WEIGHT_THRESHOLD`` are not run.

    Args:
        fast_weight: Weight of the fast score.
        high_accuracy_weight: Weight of the high-accuracy score.
        perceptual_weight: Weight of the perceptual score.
    """

    name = "combined"
    display_name = "Combined"
    description = "Weighted sum of the fast, high-accuracy and perceptual scores"

    def __init__(
        self,
        fast_weight: float = c.COMBINED_DEFAULT_FAST_WEIGHT,
        high_accuracy_weight: float = c.COMBINED_DEFAULT_HIGH_ACCURACY_WEIGHT,
        perceptual_weight: float = c.COMBINED_DEFAULT_PERCEPTUAL_WEIGHT,
    ) -> None:
        """Store the weights and build the component analyzers."""
        self.weights: Weights = (fast_weight, high_accuracy_weight, perceptual_weight)
        self._components: tuple[BaseAnalyzer, ...] = (FastAnalyzer(), HighAccuracyAnalyzer(), PerceptualAnalyzer())

    def _do_analyze(self, data: ProcessedPixelData) -> tuple[float, str]:
        total = 0.0
        parts = []
        for analyzer, weight in zip(self._components, self.weights, strict=True):
            if weight < c.ZERO_WEIGHT_THRESHOLD:
                continue
            result = analyzer.analyze(data)
            total += weight * result.score
            parts.append(f"{analyzer.name}={result.score:.3f}x{weight:g}")
        if not parts:
            return 0.0, "all weights are zero"
        return total, " ".join(parts)


# ── Factory ───────────────────────────────────────────────────────────────


def create_analyzer(strategy: AnalysisStrategyType | str, weights: Weights = DEFAULT_WEIGHTS) -> BaseAnalyzer:
    """Instantiate the analyzer for *strategy*.

    Args:
        strategy: Strategy type (or its string value).
        weights: ``(fast, high_accuracy, perceptual)`` weights, used by ``COMBINED`` only.

    Returns:
        A ready analyzer.

    Raises:
        ValidationError: If *strategy* is unknown.
    """
    try:
        strategy = AnalysisStrategyType(strategy)
    except ValueError as exc:
        msg = f"Unknown analysis strategy '{strategy}'"
        raise ValidationError(msg) from exc

    analyzer_cls = AnalyzerRegistry().get(strategy.value)
    if analyzer_cls is None:
        msg = f"No analyzer registered for strategy '{strategy}'"
        raise ValidationError(msg)
    if strategy is AnalysisStrategyType.COMBINED:
        return analyzer_cls(*weights)  # type: ignore[call-arg]
    return analyzer_cls()


def create_normal_map_analyzer() -> BaseAnalyzer:
    """Instantiate the analyzer used for every normal map."""
    analyzer_cls = AnalyzerRegistry().get("normal_map")
    if analyzer_cls is None:
        msg = "No normal map analyzer registered"
        raise ValidationError(msg)
    return analyzer_cls()
