"""GPU memory estimates for textures."""

from __future__ import annotations

from avatar_compressor.core.datatypes import TextureFormat

DEFAULT_BITS_PER_PIXEL = 32.0

_BITS_PER_PIXEL: dict[TextureFormat, float] = {
    # DXT/BC (desktop)
    TextureFormat.DXT1: 4.0,
    TextureFormat.DXT1_CRUNCHED: 4.0,
    TextureFormat.DXT5: 8.0,
    TextureFormat.DXT5_CRUNCHED: 8.0,
    TextureFormat.BC4: 4.0,
    TextureFormat.BC5: 8.0,
    TextureFormat.BC6H: 8.0,
    TextureFormat.BC7: 8.0,
    # ASTC (mobile), by block size
    TextureFormat.ASTC_4X4: 8.0,
    TextureFormat.ASTC_5X5: 5.12,
    TextureFormat.ASTC_6X6: 3.56,
    TextureFormat.ASTC_8X8: 2.0,
    TextureFormat.ASTC_10X10: 1.28,
    TextureFormat.ASTC_12X12: 0.89,
    # Uncompressed
    TextureFormat.RGBA32: 32.0,
    TextureFormat.ARGB32: 32.0,
    TextureFormat.BGRA32: 32.0,
    TextureFormat.RGB24: 24.0,
    TextureFormat.RGB565: 16.0,
    TextureFormat.RGBA4444: 16.0,
    TextureFormat.ARGB4444: 16.0,
}


def bits_per_pixel(fmt: TextureFormat | str) -> float:
    """Return the storage cost of *fmt* in bits per pixel.

    Formats outside the lookup table (including unrecognised names) are
    assumed to be uncompressed RGBA.
    """
    try:
        fmt = TextureFormat(fmt)
    except ValueError:
        return DEFAULT_BITS_PER_PIXEL
    return _BITS_PER_PIXEL.get(fmt, DEFAULT_BITS_PER_PIXEL)


def calculate_compressed_memory(width: int, height: int, fmt: TextureFormat | str, mip_count: int) -> int:
    """Estimate the bytes a texture occupies including its mip chain.

    Level ``i`` holds ``(width * height) >> 2i`` pixels; each level's byte
    count is rounded on its own before summing.

    Args:
        width: Width of mip level 0.
        height: Height of mip level 0.
        fmt: Storage format.
        mip_count: Number of mip levels (0 yields 0 bytes).

    Returns:
        The estimated size in bytes.
    """
    bpp = bits_per_pixel(fmt)
    pixels = width * height
    total = 0
    for level in range(max(0, mip_count)):
        total += round((pixels >> (2 * level)) * bpp / 8)
    return total


def full_mip_count(width: int, height: int) -> int:
    """Return the number of levels in a complete mip chain for the given size."""
    return max(1, max(width, height)).bit_length()


def format_bytes(num_bytes: int) -> str:
    """Render a byte count as ``"N B"``, ``"x.xx KB"`` or ``"x.xx MB"``."""
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / 1024 / 1024:.2f} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes} B"
