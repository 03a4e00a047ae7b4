"""Channel layout detection for normal-map sources."""

from __future__ import annotations

import logging

import numpy as np

from avatar_compressor.core.datatypes import NormalMapLayout, TextureFormat

logger = logging.getLogger(__name__)

MAX_LAYOUT_SAMPLES = 4096
_NEAR_ONE_8BIT = 250
_SIGNIFICANT_ALPHA_8BIT = 250


def resolve_layout(source_format: TextureFormat, rgba: np.ndarray | None = None) -> NormalMapLayout:
    """Return the channel layout a normal map in *source_format* is stored in.

    BC5 stores XY in RG.  DXT5 and BC7 are ambiguous (DXTnm AG, plain RG
    or full RGB), so their pixels are inspected.  Everything else is RGB.

    Args:
        source_format: Storage format of the source texture.
        rgba: ``(H, W, 4)`` float RGBA in ``[0, 1]`` used for detection.

    Returns:
        A concrete layout (never ``AUTO``).
    """
    match source_format:
        case TextureFormat.BC5:
            return NormalMapLayout.RG
        case TextureFormat.DXT5 | TextureFormat.DXT5_CRUNCHED | TextureFormat.BC7:
            return detect_dxtnm_like(rgba)
        case _:
            return NormalMapLayout.RGB


def detect_dxtnm_like(rgba: np.ndarray | None) -> NormalMapLayout:
    """Classify DXT5/BC7 normal-map pixels as AG, RG or RGB.

    Defaults to AG (the DXTnm convention) unless the pixel statistics
    clearly point at another layout.

    Args:
        rgba: ``(H, W, 4)`` float RGBA in ``[0, 1]``, or ``None``.

    Returns:
        The detected layout.
    """
    if rgba is None or rgba.size == 0 or rgba.ndim != 3 or rgba.shape[2] < 4:
        return NormalMapLayout.AG

    flat = rgba.reshape(-1, rgba.shape[2])
    step = max(1, flat.shape[0] // min(flat.shape[0], MAX_LAYOUT_SAMPLES))
    samples = np.round(np.clip(flat[::step, :4], 0.0, 1.0) * 255.0)
    r8, g8, b8, a8 = samples[:, 0], samples[:, 1], samples[:, 2], samples[:, 3]

    x_r = (r8 / 255.0) * 2.0 - 1.0
    y_g = (g8 / 255.0) * 2.0 - 1.0
    z_b = (b8 / 255.0) * 2.0 - 1.0
    x_a = (a8 / 255.0) * 2.0 - 1.0

    z_rg_sq = 1.0 - x_r * x_r - y_g * y_g
    z_rg = np.sqrt(np.maximum(z_rg_sq, 0.0))
    z_rg_valid = z_rg_sq >= -0.02

    valid_rg = float(np.mean(x_r * x_r + y_g * y_g <= 1.02))
    valid_ag = float(np.mean(x_a * x_a + y_g * y_g <= 1.02))
    rb_near_one = float(np.mean((r8 >= _NEAR_ONE_8BIT) & (b8 >= _NEAR_ONE_8BIT)))
    signed_consistent = float(np.mean(z_rg_valid & (np.abs(z_b - z_rg) <= 0.25)))
    abs_consistent = float(np.mean(z_rg_valid & (np.abs(np.abs(z_b) - z_rg) <= 0.2)))
    alpha_non_opaque = float(np.mean(a8 < _SIGNIFICANT_ALPHA_8BIT))
    alpha_near_one = 1.0 - alpha_non_opaque
    z_negative = float(np.mean(z_b <= -0.2))
    z_positive = float(np.mean(z_b >= 0.2))

    rg_advantage = valid_rg - valid_ag
    mixed_signed_z = z_negative >= 0.2 and z_positive >= 0.2
    single_negative_z = z_negative >= 0.9 and z_positive <= 0.05 and abs_consistent >= 0.9 and rg_advantage <= 0.05
    strong_rgb = rb_near_one < 0.9 and signed_consistent >= 0.85

    # R and B pinned near 1 is the DXTnm signature.
    if rb_near_one >= 0.9 and valid_ag >= 0.75:
        layout = NormalMapLayout.AG
    elif valid_ag >= 0.9 and rg_advantage <= -0.1:
        layout = NormalMapLayout.AG
    # Object-space data with Z of both signs in B.
    elif rb_near_one < 0.9 and mixed_signed_z and abs_consistent >= 0.7 and rg_advantage <= 0.05:
        layout = NormalMapLayout.RGB
    elif rb_near_one < 0.9 and single_negative_z:
        layout = NormalMapLayout.RGB
    elif alpha_near_one >= 0.9 and valid_rg >= 0.75 and rg_advantage >= -0.05 and not strong_rgb:
        layout = NormalMapLayout.RG
    elif valid_rg >= 0.85 and rg_advantage >= 0.12:
        layout = NormalMapLayout.RG
    elif rb_near_one < 0.9 and signed_consistent >= 0.7:
        layout = NormalMapLayout.RGB
    else:
        layout = NormalMapLayout.AG

    logger.debug(
        "Normal layout %s (rg=%.2f ag=%.2f rb1=%.2f z-consistent=%.2f)",
        layout,
        valid_rg,
        valid_ag,
        rb_near_one,
        signed_consistent,
    )
    return layout
