"""Image loading for the CLI host: turns files on disk into texture records."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from avatar_compressor.core.datatypes import TextureFormat, TextureRecord, TextureRole
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.decision.memory import full_mip_count

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".tga",
        ".bmp",
        ".tif",
        ".tiff",
        ".webp",
    }
)

# Filename suffixes (after the last underscore) that reveal a texture's role.
_ROLE_SUFFIXES: dict[str, TextureRole] = {
    "n": TextureRole.NORMAL,
    "nrm": TextureRole.NORMAL,
    "norm": TextureRole.NORMAL,
    "normal": TextureRole.NORMAL,
    "bump": TextureRole.NORMAL,
    "e": TextureRole.EMISSION,
    "emi": TextureRole.EMISSION,
    "emission": TextureRole.EMISSION,
    "emissive": TextureRole.EMISSION,
    "glow": TextureRole.EMISSION,
    "mask": TextureRole.OTHER,
    "ao": TextureRole.OTHER,
    "rough": TextureRole.OTHER,
    "roughness": TextureRole.OTHER,
    "metal": TextureRole.OTHER,
    "metallic": TextureRole.OTHER,
    "spec": TextureRole.OTHER,
    "height": TextureRole.OTHER,
    "matcap": TextureRole.OTHER,
}


def collect_image_paths(inputs: list[Path]) -> list[Path]:
    """Collect image file paths from a mix of files and directories.

    Individual files are included directly (if they have a recognised image
    extension).  Directories are scanned non-recursively for image files.

    Args:
        inputs: A list of file and/or directory paths.

    Returns:
        A sorted, deduplicated list of image file paths.

    Raises:
        ValidationError: If no image files are found after scanning all inputs.
    """
    found: set[Path] = set()
    for entry in inputs:
        entry = entry.resolve()
        if entry.is_file():
            if entry.suffix.lower() in IMAGE_EXTENSIONS:
                found.add(entry)
        elif entry.is_dir():
            for child in entry.iterdir():
                if child.is_file() and child.suffix.lower() in IMAGE_EXTENSIONS:
                    found.add(child)

    if not found:
        msg = "No image files found in the provided inputs"
        raise ValidationError(msg)

    return sorted(found)


def guess_role(path: Path) -> TextureRole:
    """Infer the texture role from a ``name_<suffix>`` file name (default ``MAIN``)."""
    stem = path.stem.lower()
    if "_" not in stem:
        return TextureRole.MAIN
    return _ROLE_SUFFIXES.get(stem.rsplit("_", 1)[1], TextureRole.MAIN)


def texture_key(path: Path, root: Path | None = None) -> str:
    """Return the stable key for *path*: POSIX-style, relative to *root* when inside it."""
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def load_texture(path: Path, *, root: Path | None = None, with_mipmaps: bool = True) -> TextureRecord:
    """Read an image file into a ``TextureRecord`` with RGBA uint8 pixels.

    Args:
        path: Image file to read.
        root: Directory the texture key is made relative to.
        with_mipmaps: Whether the texture is assumed to carry a mip chain.

    Returns:
        The populated record.

    Raises:
        ValidationError: If the file cannot be decoded as an image.
    """
    try:
        with Image.open(path) as img:
            has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
            pixels = np.asarray(img.convert("RGBA"))
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"Cannot read image '{path}': {exc}"
        raise ValidationError(msg) from exc

    role = guess_role(path)
    height, width = pixels.shape[:2]
    mip_count = full_mip_count(width, height) if with_mipmaps else 1
    logger.debug("Loaded %s (%dx%d, %s)", path, width, height, role)
    return TextureRecord(
        path=texture_key(path, root),
        width=width,
        height=height,
        source_format=TextureFormat.RGBA32 if has_alpha else TextureFormat.RGB24,
        mip_count=mip_count,
        role=role,
        is_normal_map=role is TextureRole.NORMAL,
        pixels=pixels,
    )
