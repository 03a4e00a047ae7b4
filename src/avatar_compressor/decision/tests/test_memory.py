"""Tests for GPU memory estimation."""

from __future__ import annotations

from avatar_compressor.core.datatypes import TextureFormat
from avatar_compressor.decision.memory import (
    bits_per_pixel,
    calculate_compressed_memory,
    format_bytes,
    full_mip_count,
)


class TestBitsPerPixel:
    """Tests for the bits-per-pixel table."""

    def test_known_formats(self) -> None:
        """Common formats report their documented cost."""
        assert bits_per_pixel(TextureFormat.DXT1) == 4.0
        assert bits_per_pixel(TextureFormat.BC7) == 8.0
        assert bits_per_pixel(TextureFormat.ASTC_6X6) == 3.56
        assert bits_per_pixel(TextureFormat.RGB24) == 24.0

    def test_string_names_accepted(self) -> None:
        """Format names are accepted as plain strings."""
        assert bits_per_pixel("DXT5") == 8.0

    def test_unknown_formats_default_to_rgba32(self) -> None:
        """Formats outside the table, and unknown names, cost 32 bpp."""
        assert bits_per_pixel(TextureFormat.ETC2_RGB) == 32.0
        assert bits_per_pixel("NotAFormat") == 32.0


class TestCalculateCompressedMemory:
    """Tests for ``calculate_compressed_memory``."""

    def test_dxt1_single_level(self) -> None:
        """A 4x4 DXT1 block occupies 8 bytes."""
        assert calculate_compressed_memory(4, 4, TextureFormat.DXT1, 1) == 8

    def test_rgba32_single_level(self) -> None:
        """A 2x2 RGBA32 texture occupies 16 bytes."""
        assert calculate_compressed_memory(2, 2, TextureFormat.RGBA32, 1) == 16

    def test_mip_chain_sums_levels(self) -> None:
        """Each mip level holds a quarter of the previous level's pixels."""
        assert calculate_compressed_memory(4, 4, TextureFormat.RGBA32, 3) == 64 + 16 + 4

    def test_zero_mips_is_zero(self) -> None:
        """No mip levels means no memory."""
        assert calculate_compressed_memory(256, 256, TextureFormat.DXT1, 0) == 0

    def test_full_mip_count(self) -> None:
        """A complete chain runs down to 1 pixel on the longer side."""
        assert full_mip_count(1024, 512) == 11
        assert full_mip_count(1, 1) == 1


class TestFormatBytes:
    """Tests for human-readable byte counts."""

    def test_units(self) -> None:
        """Bytes, kilobytes and megabytes are rendered with their unit."""
        assert format_bytes(512) == "512 B"
        assert format_bytes(2048) == "2.00 KB"
        assert format_bytes(3 * 1024 * 1024) == "3.00 MB"
