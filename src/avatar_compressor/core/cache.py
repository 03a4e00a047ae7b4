"""Settings hash and the whole-batch preview cache."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from avatar_compressor.core.datatypes import FrozenTextureSettings, PreviewResult

if TYPE_CHECKING:
    from avatar_compressor.core.config import CompressorConfig

logger = logging.getLogger(__name__)


def compute_settings_hash(config: CompressorConfig, frozen: Iterable[FrozenTextureSettings] = ()) -> str:
    """Fingerprint a config plus its frozen settings.

    Every config field and every frozen entry (path, divisor, format,
    resolution cap, skip flag) feeds a SHA-256 digest over canonical JSON,
    so equal inputs always hash equally regardless of entry order.

    Args:
        config: The configuration snapshot.
        frozen: Frozen settings (a ``FrozenTextureStore`` works too).

    Returns:
        A hex digest.
    """
    frozen_payload = sorted(
        (
            {
                "path": entry.path,
                "divisor": entry.divisor,
                "format": entry.format.value,
                "max_resolution": entry.max_resolution,
                "skip": entry.skip,
            }
            for entry in frozen
        ),
        key=lambda item: item["path"],
    )
    payload = {"config": config.to_dict(), "frozen": frozen_payload}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class PreviewCache:
    """Keeps the last ``PreviewResult`` and reuses it while settings are unchanged.

    The cache is all-or-nothing: a hash mismatch recomputes the entire
    batch.  One caller owns the cache at a time.
    """

    def __init__(self) -> None:
        """Initialise an empty cache."""
        self._result: PreviewResult | None = None

    @property
    def result(self) -> PreviewResult | None:
        """Return the cached result, if any."""
        return self._result

    def is_stale(self, settings_hash: str) -> bool:
        """Return ``True`` when there is no result or it was built for other settings."""
        return self._result is None or self._result.settings_hash != settings_hash

    def get_or_compute(self, settings_hash: str, compute: Callable[[], PreviewResult]) -> PreviewResult:
        """Return the cached result, recomputing the whole batch if stale.

        Args:
            settings_hash: Hash of the current settings.
            compute: Produces a fresh result for the current settings.

        Returns:
            The cached or freshly computed result.
        """
        if self._result is not None and not self.is_stale(settings_hash):
            logger.debug("Preview cache hit (%s)", settings_hash[:12])
            return self._result

        logger.debug("Preview cache miss (%s); recomputing", settings_hash[:12])
        self._result = compute()
        return self._result

    def invalidate(self) -> None:
        """Drop the cached result."""
        self._result = None
