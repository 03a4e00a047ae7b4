"""Shared value objects used across the analysis and decision stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

# ── Enumerations ──────────────────────────────────────────────────────────


class TextureRole(StrEnum):
    """How a texture is used by its materials."""

    MAIN = "main"
    NORMAL = "normal"
    EMISSION = "emission"
    OTHER = "other"


class AnalysisStrategyType(StrEnum):
    """Complexity analysis strategy selected by the configuration."""

    FAST = "fast"
    HIGH_ACCURACY = "high_accuracy"
    PERCEPTUAL = "perceptual"
    COMBINED = "combined"


class CompressionPlatform(StrEnum):
    """Target platform family for compression format selection."""

    AUTO = "auto"
    DESKTOP = "desktop"
    MOBILE = "mobile"


class TextureFormat(StrEnum):
    """GPU texture formats known to the format selector and memory estimator."""

    # Desktop block formats
    DXT1 = "DXT1"
    DXT1_CRUNCHED = "DXT1Crunched"
    DXT5 = "DXT5"
    DXT5_CRUNCHED = "DXT5Crunched"
    BC4 = "BC4"
    BC5 = "BC5"
    BC6H = "BC6H"
    BC7 = "BC7"
    # Mobile ASTC block sizes
    ASTC_4X4 = "ASTC_4x4"
    ASTC_5X5 = "ASTC_5x5"
    ASTC_6X6 = "ASTC_6x6"
    ASTC_8X8 = "ASTC_8x8"
    ASTC_10X10 = "ASTC_10x10"
    ASTC_12X12 = "ASTC_12x12"
    # Legacy mobile formats
    ETC_RGB4 = "ETC_RGB4"
    ETC2_RGB = "ETC2_RGB"
    ETC2_RGBA1 = "ETC2_RGBA1"
    ETC2_RGBA8 = "ETC2_RGBA8"
    PVRTC_RGB2 = "PVRTC_RGB2"
    PVRTC_RGB4 = "PVRTC_RGB4"
    PVRTC_RGBA2 = "PVRTC_RGBA2"
    PVRTC_RGBA4 = "PVRTC_RGBA4"
    # Uncompressed
    RGBA32 = "RGBA32"
    ARGB32 = "ARGB32"
    BGRA32 = "BGRA32"
    RGB24 = "RGB24"
    RGB565 = "RGB565"
    RGBA4444 = "RGBA4444"
    ARGB4444 = "ARGB4444"


class FrozenTextureFormat(StrEnum):
    """Format choices available to a frozen (manually pinned) texture."""

    AUTO = "auto"
    DXT1 = "DXT1"
    DXT5 = "DXT5"
    BC5 = "BC5"
    BC7 = "BC7"
    ASTC_4X4 = "ASTC_4x4"
    ASTC_6X6 = "ASTC_6x6"
    ASTC_8X8 = "ASTC_8x8"


class NormalMapLayout(StrEnum):
    """Channel layout a normal map is stored in."""

    AUTO = "auto"
    RG = "rg"
    AG = "ag"
    RGB = "rgb"


class SkipReason(StrEnum):
    """Why a texture was left out of the analysis pipeline."""

    RUNTIME_GENERATED = "runtime_generated"
    EXCLUDED_PATH = "excluded_path"
    FROZEN_SKIP = "frozen_skip"
    TOO_SMALL = "too_small"
    FILTERED_BY_TYPE = "filtered_by_type"
    NO_PIXEL_DATA = "no_pixel_data"
    ANALYSIS_FAILED = "analysis_failed"


# ── Input records ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextureReference:
    """One place a texture is bound: material property plus owning object."""

    material: str
    property_name: str
    owner: str = ""


@dataclass(frozen=True)
class TextureRecord:
    """A texture handed to the engine by the host, with its pixels resident.

    ``pixels`` is an ``(H, W)``, ``(H, W, 3)`` or ``(H, W, 4)`` array of
    either ``uint8`` (0-255) or floats in ``[0, 1]``.  ``None`` or an empty
    array means the host could not read the texture.
    """

    path: str
    width: int
    height: int
    source_format: TextureFormat = TextureFormat.RGBA32
    mip_count: int = 1
    role: TextureRole = TextureRole.MAIN
    is_normal_map: bool = False
    pixels: np.ndarray | None = field(default=None, repr=False, compare=False)
    references: tuple[TextureReference, ...] = ()

    @property
    def max_dimension(self) -> int:
        """Return the longer side of the texture in pixels."""
        return max(self.width, self.height)

    @property
    def is_emission(self) -> bool:
        """Return ``True`` when the texture is used as an emission map."""
        return self.role is TextureRole.EMISSION


# ── Analysis values ───────────────────────────────────────────────────────


@dataclass(frozen=True, eq=False)
class ProcessedPixelData:
    """Read-only, analysis-ready view over a texture's pixels.

    Attributes:
        pixels: ``(H, W, 4)`` float32 RGBA in ``[0, 1]``.
        grayscale: ``(H, W)`` float32 luminance; transparent pixels hold ``-1``.
        width: Width of the (possibly sampled) buffer.
        height: Height of the (possibly sampled) buffer.
        opaque_count: Number of pixels that take part in the analysis.
        is_normal_map: Whether ``normals`` holds decoded vectors.
        is_emission: Whether the texture is an emission map.
        normals: ``(H, W, 3)`` float32 unit vectors for normal maps, else ``None``.
    """

    pixels: np.ndarray
    grayscale: np.ndarray
    width: int
    height: int
    opaque_count: int
    is_normal_map: bool = False
    is_emission: bool = False
    normals: np.ndarray | None = None

    @property
    def opaque_mask(self) -> np.ndarray:
        """Return a boolean ``(H, W)`` mask of pixels that take part in analysis."""
        return self.grayscale >= 0.0


@dataclass(frozen=True)
class TextureComplexityResult:
    """A complexity score in ``[0, 1]`` and the strategy that produced it."""

    score: float
    strategy: str
    summary: str = ""


# ── Frozen overrides ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class FrozenTextureSettings:
    """User-pinned compression outcome for one texture path.

    Attributes:
        path: Stable texture path (the key).
        divisor: Resolution divisor; one of 1, 2, 4, 8, 16 once stored.
        format: Explicit format, or ``AUTO`` for automatic selection.
        max_resolution: Optional cap applied on top of the configured maximum.
        skip: Leave the texture out of compression entirely.
    """

    path: str
    divisor: int = 1
    format: FrozenTextureFormat = FrozenTextureFormat.AUTO
    max_resolution: int | None = None
    skip: bool = False


# ── Results ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PreviewEntry:
    """Per-texture decision reported by one analysis pass."""

    path: str
    role: TextureRole
    skip_reason: SkipReason | None
    complexity_score: float | None
    divisor: int
    source_resolution: tuple[int, int]
    target_resolution: tuple[int, int]
    target_format: TextureFormat | None
    estimated_bytes_before: int
    estimated_bytes_after: int
    is_frozen: bool = False
    strategy: str | None = None

    @property
    def is_processed(self) -> bool:
        """Return ``True`` when the texture went through complexity analysis."""
        return self.skip_reason is None and not self.is_frozen

    @property
    def saved_bytes(self) -> int:
        """Return the estimated memory saving in bytes."""
        return self.estimated_bytes_before - self.estimated_bytes_after


@dataclass(frozen=True)
class PreviewResult:
    """Aggregate output of one batch analysis pass."""

    entries: tuple[PreviewEntry, ...]
    processed_count: int
    skipped_count: int
    frozen_count: int
    settings_hash: str

    @property
    def total_bytes_before(self) -> int:
        """Return the summed memory estimate before compression."""
        return sum(entry.estimated_bytes_before for entry in self.entries)

    @property
    def total_bytes_after(self) -> int:
        """Return the summed memory estimate after compression."""
        return sum(entry.estimated_bytes_after for entry in self.entries)

    def get(self, path: str) -> PreviewEntry | None:
        """Look up the entry for *path*, or ``None`` if it is not in the batch."""
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None
