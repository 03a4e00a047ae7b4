"""Compression format selection per platform."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from avatar_compressor.core.datatypes import CompressionPlatform, FrozenTextureFormat, TextureFormat
from avatar_compressor.core.exceptions import ValidationError

if TYPE_CHECKING:
    from avatar_compressor.core.config import CompressorConfig

logger = logging.getLogger(__name__)

# Alpha below this (0-255 scale) counts as real transparency.
SIGNIFICANT_ALPHA_THRESHOLD = 250
MAX_ALPHA_SAMPLES = 10_000
# Fraction of the high threshold above which mobile opaque textures use ASTC 6x6.
MEDIUM_COMPLEXITY_RATIO = 0.5

MOBILE_BUILD_TARGETS = frozenset({"android"})

COMPRESSED_FORMATS: frozenset[TextureFormat] = frozenset(
    {
        TextureFormat.DXT1,
        TextureFormat.DXT1_CRUNCHED,
        TextureFormat.DXT5,
        TextureFormat.DXT5_CRUNCHED,
        TextureFormat.BC4,
        TextureFormat.BC5,
        TextureFormat.BC6H,
        TextureFormat.BC7,
        TextureFormat.ASTC_4X4,
        TextureFormat.ASTC_5X5,
        TextureFormat.ASTC_6X6,
        TextureFormat.ASTC_8X8,
        TextureFormat.ASTC_10X10,
        TextureFormat.ASTC_12X12,
        TextureFormat.ETC_RGB4,
        TextureFormat.ETC2_RGB,
        TextureFormat.ETC2_RGBA1,
        TextureFormat.ETC2_RGBA8,
        TextureFormat.PVRTC_RGB2,
        TextureFormat.PVRTC_RGB4,
        TextureFormat.PVRTC_RGBA2,
        TextureFormat.PVRTC_RGBA4,
    }
)


def is_compressed_format(fmt: TextureFormat) -> bool:
    """Return ``True`` for GPU block-compressed formats."""
    return fmt in COMPRESSED_FORMATS


def resolve_platform(setting: CompressionPlatform, build_target: str | None = None) -> CompressionPlatform:
    """Resolve ``AUTO`` to a concrete platform using the caller's build target.

    Args:
        setting: Configured platform.
        build_target: Active build target name supplied by the host
            (e.g. ``"android"``, ``"windows"``).  Case-insensitive.

    Returns:
        ``DESKTOP`` or ``MOBILE``.
    """
    if setting is not CompressionPlatform.AUTO:
        return setting
    if build_target is not None and build_target.strip().lower() in MOBILE_BUILD_TARGETS:
        return CompressionPlatform.MOBILE
    return CompressionPlatform.DESKTOP


def convert_frozen_format(fmt: FrozenTextureFormat) -> TextureFormat:
    """Map an explicit frozen format onto its texture format.

    Raises:
        ValidationError: If *fmt* is ``AUTO``, which has no fixed format.
    """
    if fmt is FrozenTextureFormat.AUTO:
        msg = "Frozen format 'auto' has no fixed texture format"
        raise ValidationError(msg)
    return TextureFormat(fmt.value)


def has_significant_alpha(pixels: np.ndarray | None) -> bool:
    """Return ``True`` when any sampled pixel is noticeably transparent.

    At most ``MAX_ALPHA_SAMPLES`` pixels are inspected at an even stride.
    A missing buffer counts as having alpha so quality is never lost.

    Args:
        pixels: ``(H, W)``, ``(H, W, 3)`` or ``(H, W, 4)`` array; full-range integers or float in ``[0, 1]``.
    """
    if pixels is None:
        return True
    if pixels.ndim != 3 or pixels.shape[2] < 4 or pixels.size == 0:
        return False

    alpha = pixels[..., 3].reshape(-1)
    if np.issubdtype(alpha.dtype, np.floating):
        alpha = alpha * 255.0
    elif np.issubdtype(alpha.dtype, np.integer) and alpha.dtype != np.uint8:
        alpha = alpha.astype(np.float32) / float(np.iinfo(alpha.dtype).max) * 255.0
    sample_count = min(alpha.size, MAX_ALPHA_SAMPLES)
    step = max(1, alpha.size // sample_count)
    return bool(np.any(alpha[::step] < SIGNIFICANT_ALPHA_THRESHOLD))


class FormatSelector:
    """Chooses the target compression format for a texture.

    Args:
        target_platform: Configured platform; ``AUTO`` is resolved with *build_target*.
        use_high_quality_format: Use BC7 / ASTC 4x4 for high-complexity textures.
        high_quality_threshold: Complexity at which the high-quality format applies.
        build_target: Host build target used to resolve ``AUTO``.
    """

    def __init__(
        self,
        target_platform: CompressionPlatform = CompressionPlatform.AUTO,
        use_high_quality_format: bool = True,
        high_quality_threshold: float = 0.7,
        build_target: str | None = None,
    ) -> None:
        """Resolve the platform once for the selector's lifetime."""
        self.platform = resolve_platform(target_platform, build_target)
        self.use_high_quality_format = use_high_quality_format
        self.high_quality_threshold = high_quality_threshold

    @classmethod
    def from_config(cls, config: CompressorConfig, build_target: str | None = None) -> FormatSelector:
        """Build a selector from the format-related fields of *config*."""
        return cls(
            config.target_platform,
            config.use_high_quality_format_for_high_complexity,
            config.high_complexity_threshold,
            build_target,
        )

    def _is_high_quality(self, complexity: float) -> bool:
        return self.use_high_quality_format and complexity >= self.high_quality_threshold

    def predict_format(self, is_normal_map: bool, complexity: float, has_alpha: bool) -> TextureFormat:
        """Return the format the platform rules pick for these properties.

        Args:
            is_normal_map: Whether the texture stores normals.
            complexity: Complexity score in ``[0, 1]``.
            has_alpha: Whether the texture carries significant alpha.

        Returns:
            The predicted ``TextureFormat``.
        """
        match self.platform:
            case CompressionPlatform.MOBILE:
                return self._select_mobile(is_normal_map, complexity, has_alpha)
            case _:
                return self._select_desktop(is_normal_map, complexity, has_alpha)

    def _select_desktop(self, is_normal_map: bool, complexity: float, has_alpha: bool) -> TextureFormat:
        if is_normal_map:
            return TextureFormat.BC7 if has_alpha else TextureFormat.BC5
        if self._is_high_quality(complexity):
            return TextureFormat.BC7
        if has_alpha:
            return TextureFormat.DXT5
        return TextureFormat.DXT1

    def _select_mobile(self, is_normal_map: bool, complexity: float, has_alpha: bool) -> TextureFormat:
        if is_normal_map:
            return TextureFormat.ASTC_4X4
        if self._is_high_quality(complexity):
            return TextureFormat.ASTC_4X4
        # Alpha edges need at least 6x6 blocks.
        if has_alpha or complexity >= self.high_quality_threshold * MEDIUM_COMPLEXITY_RATIO:
            return TextureFormat.ASTC_6X6
        return TextureFormat.ASTC_8X8

    def select_format(
        self,
        source_format: TextureFormat,
        *,
        is_normal_map: bool,
        complexity: float,
        has_alpha: bool,
        format_override: FrozenTextureFormat | None = None,
        preserve_compressed: bool = True,
    ) -> TextureFormat:
        """Return the final target format, honouring overrides.

        Precedence: an explicit frozen format, then an already-compressed
        source format (when *preserve_compressed*), then ``predict_format``.

        Args:
            source_format: Current storage format of the texture.
            is_normal_map: Whether the texture stores normals.
            complexity: Complexity score in ``[0, 1]``.
            has_alpha: Whether the texture carries significant alpha.
            format_override: Frozen format, or ``None``.
            preserve_compressed: Keep block-compressed source formats.

        Returns:
            The chosen ``TextureFormat``.
        """
        if format_override is not None and format_override is not FrozenTextureFormat.AUTO:
            return convert_frozen_format(format_override)
        if preserve_compressed and is_compressed_format(source_format):
            return source_format
        return self.predict_format(is_normal_map, complexity, has_alpha)
