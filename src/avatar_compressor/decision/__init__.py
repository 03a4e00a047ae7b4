"""Decision stage: divisor, resolution, compression format and memory estimates."""

from avatar_compressor.decision.divisor import (
    VALID_DIVISORS,
    ComplexityCalculator,
    closest_valid_divisor,
    is_valid_divisor,
)
from avatar_compressor.decision.formats import FormatSelector, has_significant_alpha, resolve_platform
from avatar_compressor.decision.memory import bits_per_pixel, calculate_compressed_memory, format_bytes
from avatar_compressor.decision.resolution import calculate_new_dimensions

__all__ = [
    "VALID_DIVISORS",
    "ComplexityCalculator",
    "FormatSelector",
    "bits_per_pixel",
    "calculate_compressed_memory",
    "calculate_new_dimensions",
    "closest_valid_divisor",
    "format_bytes",
    "has_significant_alpha",
    "is_valid_divisor",
    "resolve_platform",
]
