"""Tests for compression format selection."""

from __future__ import annotations

import numpy as np
import pytest

from avatar_compressor.core.config import CompressorConfig
from avatar_compressor.core.datatypes import CompressionPlatform, FrozenTextureFormat, TextureFormat
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.decision.formats import (
    FormatSelector,
    convert_frozen_format,
    has_significant_alpha,
    is_compressed_format,
    resolve_platform,
)

# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture()
def desktop() -> FormatSelector:
    """Desktop selector with the high-quality format enabled."""
    return FormatSelector(CompressionPlatform.DESKTOP, True, 0.7)


@pytest.fixture()
def mobile() -> FormatSelector:
    """Mobile selector with the high-quality format enabled."""
    return FormatSelector(CompressionPlatform.MOBILE, True, 0.7)


# ── Platform resolution ───────────────────────────────────


class TestResolvePlatform:
    """Tests for resolving the ``AUTO`` platform."""

    def test_explicit_platform_kept(self) -> None:
        """A concrete platform is never changed by the build target."""
        assert resolve_platform(CompressionPlatform.DESKTOP, "android") is CompressionPlatform.DESKTOP

    def test_auto_android_is_mobile(self) -> None:
        """Android build targets resolve to mobile, case-insensitively."""
        assert resolve_platform(CompressionPlatform.AUTO, "Android") is CompressionPlatform.MOBILE

    def test_auto_without_target_is_desktop(self) -> None:
        """Without a build target ``AUTO`` resolves to desktop."""
        assert resolve_platform(CompressionPlatform.AUTO) is CompressionPlatform.DESKTOP
        assert resolve_platform(CompressionPlatform.AUTO, "windows") is CompressionPlatform.DESKTOP


# ── Prediction ────────────────────────────────────────────


class TestDesktopPrediction:
    """Tests for desktop format rules."""

    def test_normal_maps(self, desktop: FormatSelector) -> None:
        """Normal maps use BC5, or BC7 when they carry alpha."""
        assert desktop.predict_format(True, 0.1, False) is TextureFormat.BC5
        assert desktop.predict_format(True, 0.1, True) is TextureFormat.BC7

    def test_high_complexity_uses_bc7(self, desktop: FormatSelector) -> None:
        """Complex colour textures use BC7."""
        assert desktop.predict_format(False, 0.8, False) is TextureFormat.BC7

    def test_alpha_and_opaque(self, desktop: FormatSelector) -> None:
        """Lower complexity picks DXT5 with alpha and DXT1 without."""
        assert desktop.predict_format(False, 0.3, True) is TextureFormat.DXT5
        assert desktop.predict_format(False, 0.3, False) is TextureFormat.DXT1

    def test_high_quality_disabled(self) -> None:
        """With the high-quality format off, complexity alone never selects BC7."""
        selector = FormatSelector(CompressionPlatform.DESKTOP, False, 0.7)
        assert selector.predict_format(False, 0.95, False) is TextureFormat.DXT1


class TestMobilePrediction:
    """Tests for mobile format rules."""

    def test_normal_maps_use_astc_4x4(self, mobile: FormatSelector) -> None:
        """Normal maps always use ASTC 4x4."""
        assert mobile.predict_format(True, 0.0, False) is TextureFormat.ASTC_4X4

    def test_high_complexity(self, mobile: FormatSelector) -> None:
        """Complex textures use ASTC 4x4."""
        assert mobile.predict_format(False, 0.9, False) is TextureFormat.ASTC_4X4

    def test_alpha_or_medium_complexity(self, mobile: FormatSelector) -> None:
        """Alpha or medium complexity uses ASTC 6x6."""
        assert mobile.predict_format(False, 0.1, True) is TextureFormat.ASTC_6X6
        assert mobile.predict_format(False, 0.4, False) is TextureFormat.ASTC_6X6

    def test_low_complexity_opaque(self, mobile: FormatSelector) -> None:
        """Simple opaque textures use ASTC 8x8."""
        assert mobile.predict_format(False, 0.1, False) is TextureFormat.ASTC_8X8


# ── Selection ─────────────────────────────────────────────


class TestSelectFormat:
    """Tests for override and preservation precedence."""

    def test_frozen_override_wins(self, desktop: FormatSelector) -> None:
        """An explicit frozen format beats every rule."""
        fmt = desktop.select_format(
            TextureFormat.DXT1,
            is_normal_map=False,
            complexity=0.1,
            has_alpha=False,
            format_override=FrozenTextureFormat.BC7,
        )
        assert fmt is TextureFormat.BC7

    def test_auto_override_falls_through(self, desktop: FormatSelector) -> None:
        """An ``AUTO`` frozen format defers to the normal rules."""
        fmt = desktop.select_format(
            TextureFormat.RGBA32,
            is_normal_map=False,
            complexity=0.1,
            has_alpha=False,
            format_override=FrozenTextureFormat.AUTO,
        )
        assert fmt is TextureFormat.DXT1

    def test_compressed_source_preserved(self, desktop: FormatSelector) -> None:
        """Already-compressed sources keep their format by default."""
        fmt = desktop.select_format(TextureFormat.DXT5, is_normal_map=False, complexity=0.9, has_alpha=False)
        assert fmt is TextureFormat.DXT5

    def test_preservation_can_be_disabled(self, desktop: FormatSelector) -> None:
        """Without preservation the predicted format is used."""
        fmt = desktop.select_format(
            TextureFormat.DXT5, is_normal_map=False, complexity=0.9, has_alpha=False, preserve_compressed=False
        )
        assert fmt is TextureFormat.BC7

    def test_from_config(self) -> None:
        """``from_config`` resolves the platform with the build target."""
        selector = FormatSelector.from_config(CompressorConfig(), "android")
        assert selector.platform is CompressionPlatform.MOBILE
        assert selector.high_quality_threshold == 0.7


class TestFormatHelpers:
    """Tests for the format helper functions."""

    def test_convert_frozen_format(self) -> None:
        """Explicit frozen formats map onto texture formats."""
        assert convert_frozen_format(FrozenTextureFormat.ASTC_6X6) is TextureFormat.ASTC_6X6

    def test_convert_auto_raises(self) -> None:
        """``AUTO`` has no fixed format."""
        with pytest.raises(ValidationError):
            convert_frozen_format(FrozenTextureFormat.AUTO)

    def test_is_compressed_format(self) -> None:
        """Block formats are compressed; raw formats are not."""
        assert is_compressed_format(TextureFormat.BC7)
        assert not is_compressed_format(TextureFormat.RGBA32)


class TestHasSignificantAlpha:
    """Tests for alpha detection."""

    def test_missing_pixels_count_as_alpha(self) -> None:
        """A missing buffer is treated as transparent."""
        assert has_significant_alpha(None)

    def test_rgb_has_no_alpha(self) -> None:
        """Three-channel buffers are opaque."""
        assert not has_significant_alpha(np.zeros((8, 8, 3), dtype=np.uint8))

    def test_opaque_rgba(self) -> None:
        """Fully opaque RGBA is not significant alpha."""
        pixels = np.full((8, 8, 4), 255, dtype=np.uint8)
        assert not has_significant_alpha(pixels)

    def test_transparent_pixel_detected(self) -> None:
        """A single transparent pixel in a small buffer is detected."""
        pixels = np.full((8, 8, 4), 255, dtype=np.uint8)
        pixels[3, 5, 3] = 0
        assert has_significant_alpha(pixels)

    def test_float_pixels_scaled(self) -> None:
        """Float alpha in ``[0, 1]`` is compared on the 0-255 scale."""
        pixels = np.ones((4, 4, 4), dtype=np.float32)
        assert not has_significant_alpha(pixels)
        pixels[..., 3] = 0.5
        assert has_significant_alpha(pixels)

    def test_uint16_pixels_scaled(self) -> None:
        """16-bit alpha is compared relative to its full range."""
        pixels = np.full((4, 4, 4), 65535, dtype=np.uint16)
        assert not has_significant_alpha(pixels)
        pixels[..., 3] = 30000
        assert has_significant_alpha(pixels)

    def test_uint16_alpha_selects_alpha_format(self) -> None:
        """A half-transparent 16-bit texture gets DXT5 rather than DXT1 on Desktop."""
        selector = FormatSelector(CompressionPlatform.DESKTOP, False, 0.7)
        pixels = np.full((4, 4, 4), 65535, dtype=np.uint16)
        pixels[..., 3] = 30000

        fmt = selector.predict_format(False, 0.9, has_significant_alpha(pixels))

        assert fmt is TextureFormat.DXT5
