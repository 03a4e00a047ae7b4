"""Target resolution calculation."""

from __future__ import annotations


def closest_power_of_two(value: int) -> int:
    """Return the power of two nearest to *value*; exact midpoints round up.

    Args:
        value: A positive integer.  Values below 1 yield 1.

    Returns:
        The nearest power of two.
    """
    if value <= 1:
        return 1
    lower = 1 << (value.bit_length() - 1)
    upper = lower << 1
    return lower if value - lower < upper - value else upper


def floor_power_of_two(value: int) -> int:
    """Return the largest power of two not above *value* (at least 1)."""
    if value <= 1:
        return 1
    return 1 << (value.bit_length() - 1)


def calculate_new_dimensions(
    width: int,
    height: int,
    divisor: int,
    *,
    min_resolution: int,
    max_resolution: int,
    force_power_of_two: bool,
) -> tuple[int, int]:
    """Compute the size a texture is reduced to.

    Each side is divided (integer division), raised to ``min_resolution``
    and capped at ``max_resolution``.  With ``force_power_of_two`` each side
    is then moved to its closest power of two; a side that overshoots the
    maximum drops to the largest power of two within it.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        divisor: Resolution divisor (1, 2, 4, 8 or 16).
        min_resolution: Lower bound per side.
        max_resolution: Upper bound per side.
        force_power_of_two: Snap each side to a power of two.

    Returns:
        ``(new_width, new_height)``.
    """
    divisor = max(1, divisor)
    sides = []
    for side in (width, height):
        new_side = min(max(side // divisor, min_resolution), max_resolution)
        if force_power_of_two:
            new_side = closest_power_of_two(new_side)
            if new_side > max_resolution:
                new_side = floor_power_of_two(max_resolution)
        sides.append(new_side)
    return sides[0], sides[1]
