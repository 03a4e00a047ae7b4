"""Processing stage: sampling, preprocessing, normal-map layouts and skip policy."""

from avatar_compressor.processing.filters import classify_texture, is_excluded_path, is_role_enabled
from avatar_compressor.processing.normal_layout import resolve_layout
from avatar_compressor.processing.preprocessor import decode_normals, preprocess_pixels, renormalize
from avatar_compressor.processing.sampling import sample_if_needed

__all__ = [
    "classify_texture",
    "decode_normals",
    "is_excluded_path",
    "is_role_enabled",
    "preprocess_pixels",
    "renormalize",
    "resolve_layout",
    "sample_if_needed",
]
