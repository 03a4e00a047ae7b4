"""Tests for pixel preprocessing and normal-map decoding."""

from __future__ import annotations

import numpy as np
import pytest

from avatar_compressor.core.datatypes import NormalMapLayout, TextureFormat
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.processing.preprocessor import (
    TRANSPARENT_GRAYSCALE,
    decode_normals,
    luminance,
    preprocess_pixels,
    renormalize,
    to_float_rgba,
)


class TestToFloatRgba:
    """Tests for buffer normalisation."""

    def test_uint8_scaled_to_unit_range(self) -> None:
        """8-bit values are divided by 255."""
        pixels = np.full((4, 4, 4), 255, dtype=np.uint8)
        result = to_float_rgba(pixels)

        assert result.dtype == np.float32
        assert np.allclose(result, 1.0)

    def test_uint16_scaled_to_unit_range(self) -> None:
        """16-bit values are divided by 65535."""
        pixels = np.full((2, 2, 3), 65535, dtype=np.uint16)
        assert np.allclose(to_float_rgba(pixels), 1.0)

    def test_grayscale_expanded(self) -> None:
        """A 2-D buffer becomes opaque RGBA with replicated channels."""
        pixels = np.full((3, 5), 0.25, dtype=np.float32)
        result = to_float_rgba(pixels)

        assert result.shape == (3, 5, 4)
        assert np.allclose(result[..., :3], 0.25)
        assert np.allclose(result[..., 3], 1.0)

    def test_float_values_clipped(self) -> None:
        """Floats outside ``[0, 1]`` are clipped."""
        pixels = np.array([[[-0.5, 2.0, 0.5, 1.0]]], dtype=np.float64)
        assert np.allclose(to_float_rgba(pixels), [[[0.0, 1.0, 0.5, 1.0]]])

    def test_empty_buffer_raises(self) -> None:
        """Empty buffers are rejected."""
        with pytest.raises(ValidationError, match="empty"):
            to_float_rgba(np.zeros((0, 4, 4), dtype=np.uint8))

    def test_two_channels_rejected(self) -> None:
        """Two-channel buffers have no defined meaning."""
        with pytest.raises(ValidationError, match="channel count"):
            to_float_rgba(np.zeros((4, 4, 2), dtype=np.uint8))

    def test_bool_dtype_rejected(self) -> None:
        """Non-numeric dtypes are rejected."""
        with pytest.raises(ValidationError, match="dtype"):
            to_float_rgba(np.ones((4, 4), dtype=bool))

    def test_luminance_of_white(self) -> None:
        """Rec. 709 weights sum to one."""
        assert np.allclose(luminance(np.ones((2, 2, 3), dtype=np.float32)), 1.0)


class TestRenormalize:
    """Tests for unit-vector normalisation."""

    def test_zero_vector_becomes_default(self) -> None:
        """Degenerate vectors are replaced by ``(0, 0, 1)``."""
        result = renormalize(np.zeros((1, 3)))
        assert np.allclose(result, [[0.0, 0.0, 1.0]])

    def test_long_vector_scaled_to_unit(self) -> None:
        """Direction is kept and length becomes one."""
        result = renormalize(np.array([[0.0, 0.0, 2.0], [3.0, 4.0, 0.0]]))

        assert np.allclose(result, [[0.0, 0.0, 1.0], [0.6, 0.8, 0.0]])
        assert np.allclose(np.linalg.norm(result, axis=-1), 1.0)


class TestDecodeNormals:
    """Tests for decoding stored colours into normals."""

    def test_flat_rgb(self) -> None:
        """Mid-grey RG with full blue decodes to straight up."""
        rgba = np.tile(np.array([0.5, 0.5, 1.0, 1.0], dtype=np.float32), (2, 2, 1))
        normals = decode_normals(rgba, NormalMapLayout.RGB)

        assert np.allclose(normals, [0.0, 0.0, 1.0], atol=1e-6)

    def test_rgb_keeps_negative_z(self) -> None:
        """Object-space RGB maps keep back-facing vectors."""
        rgba = np.tile(np.array([0.5, 0.5, 0.0, 1.0], dtype=np.float32), (2, 2, 1))
        normals = decode_normals(rgba, NormalMapLayout.RGB)

        assert np.allclose(normals, [0.0, 0.0, -1.0], atol=1e-6)

    def test_ag_reconstructs_z(self) -> None:
        """DXTnm layout reads X from alpha and rebuilds a non-negative Z."""
        rgba = np.tile(np.array([1.0, 0.5, 1.0, 0.5], dtype=np.float32), (2, 2, 1))
        normals = decode_normals(rgba, NormalMapLayout.AG)

        assert np.allclose(normals, [0.0, 0.0, 1.0], atol=1e-6)
        assert np.all(normals[..., 2] >= 0.0)

    def test_auto_layout_rejected(self) -> None:
        """The layout must be resolved first."""
        with pytest.raises(ValidationError):
            decode_normals(np.zeros((2, 2, 4), dtype=np.float32), NormalMapLayout.AUTO)


class TestPreprocessPixels:
    """Tests for ``preprocess_pixels``."""

    def test_transparent_pixels_marked(self) -> None:
        """Pixels below the alpha threshold are excluded from analysis."""
        pixels = np.full((4, 4, 4), 200, dtype=np.uint8)
        pixels[:2, :, 3] = 0

        data = preprocess_pixels(pixels)

        assert data.opaque_count == 8
        assert np.all(data.grayscale[:2] == TRANSPARENT_GRAYSCALE)
        assert np.all(data.grayscale[2:] >= 0.0)
        assert data.opaque_mask.sum() == 8

    def test_transparent_colour_untouched(self) -> None:
        """Colour channels of transparent pixels are kept as-is."""
        pixels = np.full((2, 2, 4), 200, dtype=np.uint8)
        pixels[0, 0, 3] = 0

        data = preprocess_pixels(pixels)

        assert data.pixels[0, 0, 0] == pytest.approx(200 / 255)

    def test_emission_flag_carried(self) -> None:
        """The emission flag is recorded for colour textures."""
        data = preprocess_pixels(np.zeros((4, 4, 3), dtype=np.uint8), is_emission=True)
        assert data.is_emission
        assert data.normals is None

    def test_normal_map_counts_every_pixel(self) -> None:
        """Normal maps use all pixels, whatever their alpha."""
        pixels = np.zeros((4, 6, 4), dtype=np.uint8)
        pixels[..., :2] = 128
        pixels[..., 2] = 255

        data = preprocess_pixels(pixels, is_normal_map=True, source_format=TextureFormat.RGBA32)

        assert data.is_normal_map
        assert data.opaque_count == 24
        assert data.normals is not None
        assert data.normals.shape == (4, 6, 3)
        assert np.allclose(np.linalg.norm(data.normals, axis=-1), 1.0, atol=1e-5)

    def test_explicit_layout_used(self) -> None:
        """An explicit layout skips detection."""
        pixels = np.full((4, 4, 4), 0.5, dtype=np.float32)
        data = preprocess_pixels(pixels, is_normal_map=True, layout=NormalMapLayout.RG)

        assert data.normals is not None
        assert np.allclose(data.normals, [0.0, 0.0, 1.0], atol=1e-6)
