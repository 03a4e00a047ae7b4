"""Skip policy: decides which textures enter the analysis pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from avatar_compressor.core.datatypes import FrozenTextureSettings, SkipReason, TextureRecord, TextureRole

if TYPE_CHECKING:
    from avatar_compressor.core.config import CompressorConfig


def is_excluded_path(path: str, excluded_paths: tuple[str, ...]) -> bool:
    """Return ``True`` when *path* starts with any non-blank excluded prefix."""
    return any(prefix.strip() and path.startswith(prefix) for prefix in excluded_paths)


def is_role_enabled(role: TextureRole, config: CompressorConfig) -> bool:
    """Return ``True`` when the per-role toggle for *role* is on."""
    match role:
        case TextureRole.MAIN:
            return config.process_main_textures
        case TextureRole.NORMAL:
            return config.process_normal_maps
        case TextureRole.EMISSION:
            return config.process_emission_maps
        case _:
            return config.process_other_textures


def classify_texture(
    record: TextureRecord,
    config: CompressorConfig,
    frozen: FrozenTextureSettings | None = None,
) -> SkipReason | None:
    """Return why *record* is left out of the batch, or ``None`` to process it.

    Checks run in a fixed order and the first match wins: runtime-generated
    (no path), excluded path prefix, frozen skip, too small, role filtered.
    Pixel availability is checked later, only for textures that need analysis.

    Args:
        record: The texture under consideration.
        config: Active configuration.
        frozen: The texture's frozen settings, if any.

    Returns:
        A ``SkipReason`` or ``None``.
    """
    if not record.path:
        return SkipReason.RUNTIME_GENERATED
    if is_excluded_path(record.path, config.excluded_paths):
        return SkipReason.EXCLUDED_PATH
    if frozen is not None and frozen.skip:
        return SkipReason.FROZEN_SKIP

    max_dimension = record.max_dimension
    if max_dimension < config.min_source_size or max_dimension <= config.skip_if_smaller_than:
        return SkipReason.TOO_SMALL

    if not is_role_enabled(record.role, config):
        return SkipReason.FILTERED_BY_TYPE
    return None
