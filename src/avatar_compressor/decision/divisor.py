"""Complexity-to-divisor mapping and divisor validation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avatar_compressor.core.config import CompressorConfig

logger = logging.getLogger(__name__)

VALID_DIVISORS: tuple[int, ...] = (1, 2, 4, 8, 16)


def is_valid_divisor(divisor: int) -> bool:
    """Return ``True`` when *divisor* is one of 1, 2, 4, 8 or 16."""
    return divisor in VALID_DIVISORS


def closest_valid_divisor(divisor: float) -> int:
    """Snap *divisor* to the nearest valid divisor.

    Candidates are scanned in ascending order and only a strictly smaller
    distance replaces the current best, so ties go to the smaller divisor
    (``3 -> 2``, ``6 -> 4``).

    Args:
        divisor: Any number, including out-of-range values.

    Returns:
        The closest member of ``VALID_DIVISORS``.
    """
    return _closest_of(divisor, VALID_DIVISORS)


def _closest_of(value: float, candidates: tuple[int, ...]) -> int:
    best = candidates[0]
    best_distance = abs(value - best)
    for candidate in candidates[1:]:
        distance = abs(value - candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


class ComplexityCalculator:
    """Maps a complexity score onto a resolution divisor.

    At or above ``high_threshold`` the minimum divisor is used (keep detail),
    at or below ``low_threshold`` the maximum divisor (shrink aggressively).
    In between the divisor is interpolated linearly from ``max_divisor``
    down to ``min_divisor`` and snapped to the closest valid divisor that
    lies inside the bounds, so the result never increases as complexity
    rises.

    Args:
        high_threshold: Complexity at which full resolution is kept.
        low_threshold: Complexity at which the maximum reduction applies.
        min_divisor: Smallest divisor to return.
        max_divisor: Largest divisor to return.
    """

    def __init__(self, high_threshold: float, low_threshold: float, min_divisor: int, max_divisor: int) -> None:
        """Store thresholds and precompute the allowed divisors."""
        self.high_threshold = high_threshold
        self.low_threshold = low_threshold
        self.min_divisor = min_divisor
        self.max_divisor = max_divisor
        allowed = tuple(d for d in VALID_DIVISORS if min_divisor <= d <= max_divisor)
        self._allowed = allowed or (closest_valid_divisor(min_divisor),)

    @classmethod
    def from_config(cls, config: CompressorConfig) -> ComplexityCalculator:
        """Build a calculator from the thresholds and bounds of *config*."""
        return cls(
            config.high_complexity_threshold,
            config.low_complexity_threshold,
            config.min_divisor,
            config.max_divisor,
        )

    @property
    def allowed_divisors(self) -> tuple[int, ...]:
        """Return the valid divisors inside ``[min_divisor, max_divisor]``."""
        return self._allowed

    def recommended_divisor(self, complexity: float) -> int:
        """Return the divisor for *complexity*.

        Equal thresholds leave no interpolation range; a score exactly on
        the shared threshold then lands halfway between the bounds.

        Args:
            complexity: Score in ``[0, 1]``; values outside are tolerated.

        Returns:
            A member of ``allowed_divisors``.
        """
        lowest, highest = self._allowed[0], self._allowed[-1]
        if self.high_threshold == self.low_threshold and complexity == self.high_threshold:
            t = 0.5
        elif complexity >= self.high_threshold:
            return lowest
        elif complexity <= self.low_threshold:
            return highest
        else:
            t = (complexity - self.low_threshold) / (self.high_threshold - self.low_threshold)

        raw = self.max_divisor + t * (self.min_divisor - self.max_divisor)
        divisor = _closest_of(raw, self._allowed)
        logger.debug("Complexity %.3f -> raw divisor %.2f -> %d", complexity, raw, divisor)
        return divisor
