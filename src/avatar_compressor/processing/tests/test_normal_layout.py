"""Tests for normal-map channel layout detection."""

from __future__ import annotations

import numpy as np

from avatar_compressor.core.datatypes import NormalMapLayout, TextureFormat
from avatar_compressor.processing.normal_layout import detect_dxtnm_like, resolve_layout


def _solid(r: int, g: int, b: int, a: int, size: int = 16) -> np.ndarray:
    """Return a solid ``(size, size, 4)`` float RGBA buffer from 8-bit values."""
    colour = np.array([r, g, b, a], dtype=np.float32) / 255.0
    return np.tile(colour, (size, size, 1))


class TestResolveLayout:
    """Tests for format-driven layout resolution."""

    def test_bc5_is_rg(self) -> None:
        """BC5 always stores XY in RG."""
        assert resolve_layout(TextureFormat.BC5) is NormalMapLayout.RG

    def test_uncompressed_is_rgb(self) -> None:
        """Formats without a packing convention are read as RGB."""
        assert resolve_layout(TextureFormat.RGBA32) is NormalMapLayout.RGB
        assert resolve_layout(TextureFormat.DXT1) is NormalMapLayout.RGB

    def test_dxt5_without_pixels_defaults_to_ag(self) -> None:
        """Ambiguous formats without pixels fall back to DXTnm."""
        assert resolve_layout(TextureFormat.DXT5) is NormalMapLayout.AG


class TestDetectDxtnmLike:
    """Tests for pixel-based layout detection."""

    def test_dxtnm_signature(self) -> None:
        """R and B pinned at 255 with XY in AG is DXTnm."""
        assert detect_dxtnm_like(_solid(255, 128, 255, 128)) is NormalMapLayout.AG

    def test_rg_packing(self) -> None:
        """Opaque alpha with valid XY in RG and unused B is RG."""
        assert detect_dxtnm_like(_solid(128, 128, 128, 255)) is NormalMapLayout.RG

    def test_full_rgb(self) -> None:
        """Consistent Z in blue means a plain RGB normal map."""
        assert detect_dxtnm_like(_solid(128, 128, 255, 255)) is NormalMapLayout.RGB

    def test_bc7_routes_through_detection(self) -> None:
        """BC7 sources are classified from their pixels."""
        assert resolve_layout(TextureFormat.BC7, _solid(128, 128, 255, 255)) is NormalMapLayout.RGB

    def test_empty_buffer_defaults_to_ag(self) -> None:
        """No usable pixels means the DXTnm default."""
        assert detect_dxtnm_like(np.zeros((0, 0, 4), dtype=np.float32)) is NormalMapLayout.AG
