"""Image statistics used by the complexity analyzers.

All functions take a float32 grayscale buffer in ``[0, 1]`` where
transparent pixels hold a negative value (``-1``) and are ignored.  Empty
inputs yield the neutral value documented on each function.
"""

from __future__ import annotations

import cv2
import numpy as np

from avatar_compressor.analyzers.constants import DCT_BLOCK_SIZE, GLCM_LEVELS, HISTOGRAM_BINS
from avatar_compressor.processing.preprocessor import ALPHA_THRESHOLD


def normalize(value: float, low: float, high: float) -> float:
    """Map *value* linearly from ``[low, high]`` onto ``[0, 1]``, clamping outside."""
    if high <= low:
        return 1.0 if value >= high else 0.0
    return min(1.0, max(0.0, (value - low) / (high - low)))


# ── Helpers ───────────────────────────────────────────────────────────────


def _filled(gray: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(buffer, mask)`` with transparent pixels set to the opaque mean.

    Filling keeps filters from seeing a hard edge at every alpha border.
    """
    mask = gray >= 0.0
    buffer = np.ascontiguousarray(gray, dtype=np.float32).copy()
    if mask.any() and not mask.all():
        buffer[~mask] = float(buffer[mask].mean())
    return buffer, mask


def _sobel_magnitude(buffer: np.ndarray) -> np.ndarray:
    """Return per-pixel gradient magnitude scaled so a unit step edge reads 1."""
    gx = cv2.Sobel(buffer, cv2.CV_32F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(buffer, cv2.CV_32F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)
    return np.hypot(gx, gy) / 4.0


def _opaque_blocks(gray: np.ndarray, block_size: int) -> np.ndarray:
    """Return the fully opaque ``block_size`` tiles of *gray* as ``(N, b, b)``."""
    height, width = gray.shape
    rows, cols = height // block_size, width // block_size
    if rows == 0 or cols == 0:
        return np.empty((0, block_size, block_size), dtype=np.float32)
    tiles = (
        gray[: rows * block_size, : cols * block_size]
        .reshape(rows, block_size, cols, block_size)
        .swapaxes(1, 2)
        .reshape(-1, block_size, block_size)
    )
    opaque = (tiles >= 0.0).all(axis=(1, 2))
    return np.ascontiguousarray(tiles[opaque], dtype=np.float32)


# ── Gradient & frequency ──────────────────────────────────────────────────


def sobel_gradient(gray: np.ndarray) -> float:
    """Mean Sobel gradient magnitude over opaque pixels (0 for empty input)."""
    if gray.size == 0:
        return 0.0
    buffer, mask = _filled(gray)
    if not mask.any():
        return 0.0
    return float(_sobel_magnitude(buffer)[mask].mean())


def spatial_frequency(gray: np.ndarray) -> float:
    """Return ``sqrt(RF^2 + CF^2)`` from neighbouring opaque pixel differences."""
    if gray.size == 0:
        return 0.0
    mask = gray >= 0.0

    horizontal = np.diff(gray, axis=1)[mask[:, 1:] & mask[:, :-1]]
    vertical = np.diff(gray, axis=0)[mask[1:, :] & mask[:-1, :]]
    row_frequency = float(np.mean(horizontal**2)) if horizontal.size else 0.0
    column_frequency = float(np.mean(vertical**2)) if vertical.size else 0.0
    return float(np.sqrt(row_frequency + column_frequency))


def dct_high_frequency_ratio(gray: np.ndarray, block_size: int = DCT_BLOCK_SIZE) -> float:
    """Share of AC energy held by high-frequency DCT coefficients.

    Each fully opaque ``block_size`` tile is transformed with ``cv2.dct``;
    coefficients with ``u + v >= block_size`` count as high frequency.

    Returns:
        A ratio in ``[0, 1]``; 0 for images smaller than one block or with
        no AC energy.
    """
    blocks = _opaque_blocks(gray, block_size) if gray.ndim == 2 else np.empty((0,))
    if blocks.size == 0:
        return 0.0

    u, v = np.indices((block_size, block_size))
    high_band = (u + v) >= block_size
    ac_energy = 0.0
    high_energy = 0.0
    for block in blocks:
        energy = cv2.dct(block) ** 2
        ac_energy += float(energy.sum() - energy[0, 0])
        high_energy += float(energy[high_band].sum())
    if ac_energy <= 1e-12:
        return 0.0
    return high_energy / ac_energy


# ── Texture statistics ────────────────────────────────────────────────────


def color_variance(pixels: np.ndarray, mask: np.ndarray | None = None) -> float:
    """Mean per-channel RGB variance over opaque pixels.

    Args:
        pixels: ``(..., C)`` float array with at least three channels.
        mask: Boolean selection of pixels to include.  Defaults to alpha
            at or above the opacity threshold (all pixels without alpha).

    Returns:
        The variance, or 0 for empty input.
    """
    if pixels.size == 0:
        return 0.0
    if mask is None:
        mask = pixels[..., 3] >= ALPHA_THRESHOLD if pixels.shape[-1] >= 4 else np.ones(pixels.shape[:-1], dtype=bool)
    rgb = pixels[..., :3][mask]
    if rgb.shape[0] == 0:
        return 0.0
    return float(rgb.var(axis=0).mean())


def glcm_features(gray: np.ndarray, levels: int = GLCM_LEVELS) -> tuple[float, float, float]:
    """Gray-level co-occurrence contrast, homogeneity and energy.

    The buffer is quantised to *levels* grey levels and horizontal plus
    vertical neighbour pairs are counted symmetrically.

    Returns:
        ``(contrast, homogeneity, energy)``; ``(0, 1, 1)`` when no pair exists.
    """
    if gray.size == 0:
        return 0.0, 1.0, 1.0
    mask = gray >= 0.0
    quantised = np.minimum(levels - 1, (np.clip(gray, 0.0, 1.0) * levels).astype(np.int64))

    pairs = []
    for first, second, valid in (
        (quantised[:, :-1], quantised[:, 1:], mask[:, :-1] & mask[:, 1:]),
        (quantised[:-1, :], quantised[1:, :], mask[:-1, :] & mask[1:, :]),
    ):
        pairs.append(first[valid] * levels + second[valid])
        pairs.append(second[valid] * levels + first[valid])
    codes = np.concatenate(pairs)
    if codes.size == 0:
        return 0.0, 1.0, 1.0

    matrix = np.bincount(codes, minlength=levels * levels).reshape(levels, levels).astype(np.float64)
    matrix /= matrix.sum()
    i, j = np.indices((levels, levels))
    difference = i - j
    contrast = float(np.sum(matrix * difference**2))
    homogeneity = float(np.sum(matrix / (1.0 + np.abs(difference))))
    energy = float(np.sum(matrix**2))
    return contrast, homogeneity, energy


def entropy(gray: np.ndarray, bins: int = HISTOGRAM_BINS) -> float:
    """Shannon entropy in bits of the opaque grayscale histogram (0 when empty)."""
    values = gray[gray >= 0.0]
    if values.size == 0:
        return 0.0
    histogram, _edges = np.histogram(values, bins=bins, range=(0.0, 1.0))
    probabilities = histogram[histogram > 0] / values.size
    return float(-np.sum(probabilities * np.log2(probabilities)))


def block_variance(gray: np.ndarray, block_size: int = DCT_BLOCK_SIZE) -> float:
    """Mean variance of fully opaque ``block_size`` tiles (0 when there are none)."""
    blocks = _opaque_blocks(gray, block_size) if gray.ndim == 2 else np.empty((0,))
    if blocks.size == 0:
        return 0.0
    return float(blocks.reshape(blocks.shape[0], -1).var(axis=1).mean())


# ── Perceptual measures ───────────────────────────────────────────────────


def edge_density(gray: np.ndarray, threshold: float) -> float:
    """Fraction of opaque pixels whose gradient magnitude exceeds *threshold*."""
    if gray.size == 0:
        return 0.0
    buffer, mask = _filled(gray)
    if not mask.any():
        return 0.0
    return float(np.mean(_sobel_magnitude(buffer)[mask] > threshold))


def detail_energy(gray: np.ndarray, fine_sigma: float, coarse_sigma: float) -> float:
    """Mean absolute difference-of-Gaussians response over opaque pixels.

    The band-pass keeps mid-frequency detail, which the eye is most
    sensitive to, and discards both per-pixel noise and smooth gradients.
    """
    if gray.size == 0:
        return 0.0
    buffer, mask = _filled(gray)
    if not mask.any():
        return 0.0
    fine = cv2.GaussianBlur(buffer, (0, 0), fine_sigma, borderType=cv2.BORDER_REPLICATE)
    coarse = cv2.GaussianBlur(buffer, (0, 0), coarse_sigma, borderType=cv2.BORDER_REPLICATE)
    return float(np.abs(fine - coarse)[mask].mean())
