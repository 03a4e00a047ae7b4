"""Pixel preprocessing: buffer normalisation, alpha extraction and normal-map decoding."""

from __future__ import annotations

import logging

import numpy as np

from avatar_compressor.core.datatypes import NormalMapLayout, ProcessedPixelData, TextureFormat
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.processing.normal_layout import resolve_layout

logger = logging.getLogger(__name__)

# Pixels with alpha below this take no part in analysis.
ALPHA_THRESHOLD = 0.1
# Vectors shorter than this are replaced by DEFAULT_NORMAL.
DEGENERATE_NORMAL_LENGTH = 1e-4
DEFAULT_NORMAL = (0.0, 0.0, 1.0)
TRANSPARENT_GRAYSCALE = -1.0

_LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


# ── Buffer normalisation ──────────────────────────────────────────────────


def to_float_rgba(pixels: np.ndarray) -> np.ndarray:
    """Convert a pixel buffer into ``(H, W, 4)`` float32 RGBA in ``[0, 1]``.

    Grayscale buffers are replicated into RGB; missing alpha is opaque.

    Args:
        pixels: ``(H, W)``, ``(H, W, 1)``, ``(H, W, 3)`` or ``(H, W, 4)`` array,
            integer (full-range) or float in ``[0, 1]``.

    Returns:
        A new float32 array.

    Raises:
        ValidationError: If the buffer is empty or has an unsupported shape or dtype.
    """
    if pixels.size == 0:
        msg = "Pixel buffer is empty"
        raise ValidationError(msg)

    if np.issubdtype(pixels.dtype, np.integer):
        scale = float(np.iinfo(pixels.dtype).max)
        data = pixels.astype(np.float32) / scale
    elif np.issubdtype(pixels.dtype, np.floating):
        data = np.clip(pixels.astype(np.float32), 0.0, 1.0)
    else:
        msg = f"Unsupported pixel dtype: {pixels.dtype}"
        raise ValidationError(msg)

    if data.ndim == 2:
        data = data[..., None]
    if data.ndim != 3:
        msg = f"Pixel buffer must be 2-D or 3-D, got shape {pixels.shape}"
        raise ValidationError(msg)

    height, width, channels = data.shape
    match channels:
        case 1:
            rgb = np.repeat(data, 3, axis=2)
            alpha = np.ones((height, width, 1), dtype=np.float32)
        case 3:
            rgb = data
            alpha = np.ones((height, width, 1), dtype=np.float32)
        case 4:
            return np.ascontiguousarray(data)
        case _:
            msg = f"Unsupported channel count: {channels}"
            raise ValidationError(msg)
    return np.concatenate([rgb, alpha], axis=2)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Return Rec. 709 luminance of an ``(..., 3)`` float array."""
    return np.asarray(rgb[..., :3] @ _LUMINANCE_WEIGHTS, dtype=np.float32)


# ── Normal maps ───────────────────────────────────────────────────────────


def renormalize(vectors: np.ndarray) -> np.ndarray:
    """Scale vectors to unit length, replacing degenerate ones with ``(0, 0, 1)``.

    Args:
        vectors: ``(..., 3)`` float array.

    Returns:
        A new float32 array of unit vectors with the same shape.
    """
    vectors = np.asarray(vectors, dtype=np.float32)
    lengths = np.linalg.norm(vectors, axis=-1, keepdims=True)
    degenerate = lengths[..., 0] < DEGENERATE_NORMAL_LENGTH
    safe_lengths = np.where(lengths < DEGENERATE_NORMAL_LENGTH, 1.0, lengths)
    result = vectors / safe_lengths
    result[degenerate] = DEFAULT_NORMAL
    return result.astype(np.float32, copy=False)


def decode_normals(rgba: np.ndarray, layout: NormalMapLayout) -> np.ndarray:
    """Decode stored colours into unit normal vectors.

    Each used channel maps ``c -> c * 2 - 1``.  Two-channel layouts (RG, AG)
    rebuild Z from the unit-sphere constraint and are therefore never
    back-facing.  RGB keeps the stored, signed Z so object-space maps
    survive intact.

    Args:
        rgba: ``(H, W, 4)`` float RGBA in ``[0, 1]``.
        layout: Concrete channel layout (not ``AUTO``).

    Returns:
        ``(H, W, 3)`` float32 unit vectors.

    Raises:
        ValidationError: If *layout* is ``AUTO``.
    """
    encoded = rgba.astype(np.float32) * 2.0 - 1.0
    match layout:
        case NormalMapLayout.RG | NormalMapLayout.AG:
            x = encoded[..., 0] if layout is NormalMapLayout.RG else encoded[..., 3]
            y = encoded[..., 1]
            z = np.sqrt(np.maximum(0.0, 1.0 - x * x - y * y))
            vectors = np.stack([x, y, z], axis=-1)
        case NormalMapLayout.RGB:
            vectors = encoded[..., :3]
        case _:
            msg = "Normal map layout must be resolved before decoding"
            raise ValidationError(msg)
    return renormalize(vectors)


# ── Entry point ───────────────────────────────────────────────────────────


def preprocess_pixels(
    pixels: np.ndarray,
    *,
    is_normal_map: bool = False,
    is_emission: bool = False,
    source_format: TextureFormat = TextureFormat.RGBA32,
    layout: NormalMapLayout = NormalMapLayout.AUTO,
) -> ProcessedPixelData:
    """Turn a raw pixel buffer into analysis-ready data.

    Colour textures keep every channel untouched; pixels with alpha below
    ``ALPHA_THRESHOLD`` are marked ``-1`` in the grayscale buffer.  Normal
    maps use every pixel and additionally carry decoded unit vectors.

    Args:
        pixels: Raw buffer (see ``to_float_rgba``).
        is_normal_map: Decode the buffer as normals.
        is_emission: Record that the texture is an emission map.
        source_format: Storage format, used to pick the normal-map layout.
        layout: Explicit normal-map layout; ``AUTO`` detects it.

    Returns:
        The immutable ``ProcessedPixelData``.

    Raises:
        ValidationError: If the buffer cannot be interpreted.
    """
    rgba = to_float_rgba(pixels)
    height, width = rgba.shape[:2]

    if is_normal_map:
        resolved = layout if layout is not NormalMapLayout.AUTO else resolve_layout(source_format, rgba)
        normals = decode_normals(rgba, resolved)
        logger.debug("Decoded %dx%d normal map using %s layout", width, height, resolved)
        return ProcessedPixelData(
            pixels=rgba,
            grayscale=luminance(rgba),
            width=width,
            height=height,
            opaque_count=width * height,
            is_normal_map=True,
            is_emission=False,
            normals=normals,
        )

    opaque = rgba[..., 3] >= ALPHA_THRESHOLD
    grayscale = luminance(rgba)
    grayscale[~opaque] = TRANSPARENT_GRAYSCALE
    return ProcessedPixelData(
        pixels=rgba,
        grayscale=grayscale,
        width=width,
        height=height,
        opaque_count=int(np.count_nonzero(opaque)),
        is_normal_map=False,
        is_emission=is_emission,
    )
