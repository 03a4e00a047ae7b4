"""FrozenTextureStore — user-pinned compression settings keyed by texture path."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from avatar_compressor.core.datatypes import FrozenTextureFormat, FrozenTextureSettings
from avatar_compressor.core.events import EventBus, report_warning
from avatar_compressor.core.exceptions import ValidationError
from avatar_compressor.decision.divisor import closest_valid_divisor, is_valid_divisor

logger = logging.getLogger(__name__)


class FrozenTextureStore:
    """Holds at most one ``FrozenTextureSettings`` per texture path.

    Every stored entry has a valid divisor: invalid ones are corrected to
    the closest valid divisor (ties toward the smaller) and reported as a
    warning.  The store has a single writer; readers may share it while
    no write is in progress.

    Args:
        entries: Initial settings, validated like ``set_frozen_settings``.
        event_bus: Bus that receives ``warning`` events for corrections.
    """

    def __init__(
        self,
        entries: Iterable[FrozenTextureSettings] = (),
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialise the store and add *entries*."""
        self._event_bus = event_bus
        self._entries: dict[str, FrozenTextureSettings] = {}
        for settings in entries:
            self.set_frozen_settings(settings)

    # ── mutation ───────────────────────────────────────────────
    def set_frozen_settings(self, settings: FrozenTextureSettings) -> FrozenTextureSettings:
        """Freeze a texture, replacing any previous settings for its path.

        Args:
            settings: The requested settings.

        Returns:
            The settings actually stored (after divisor correction).

        Raises:
            ValidationError: If the path is empty.
        """
        if not settings.path:
            msg = "Frozen settings need a texture path"
            raise ValidationError(msg)

        if not is_valid_divisor(settings.divisor):
            corrected = closest_valid_divisor(settings.divisor)
            report_warning(
                self._event_bus,
                f"Invalid frozen divisor {settings.divisor}; corrected to {corrected}",
                path=settings.path,
            )
            settings = dataclasses.replace(settings, divisor=corrected)

        if settings.max_resolution is not None and settings.max_resolution < 1:
            report_warning(
                self._event_bus,
                f"Invalid frozen max resolution {settings.max_resolution}; ignored",
                path=settings.path,
            )
            settings = dataclasses.replace(settings, max_resolution=None)

        self._entries[settings.path] = settings
        logger.debug("Froze %s: %s", settings.path, settings)
        return settings

    def unfreeze(self, path: str) -> bool:
        """Remove the settings for *path*.

        Returns:
            ``True`` if an entry was removed.
        """
        removed = self._entries.pop(path, None) is not None
        if removed:
            logger.debug("Unfroze %s", path)
        return removed

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    # ── queries ────────────────────────────────────────────────
    def get(self, path: str) -> FrozenTextureSettings | None:
        """Return the settings for *path*, or ``None`` if it is not frozen."""
        return self._entries.get(path)

    def is_frozen(self, path: str) -> bool:
        """Return ``True`` when *path* has frozen settings."""
        return path in self._entries

    def entries(self) -> tuple[FrozenTextureSettings, ...]:
        """Return all entries ordered by path."""
        return tuple(self._entries[path] for path in sorted(self._entries))

    def __len__(self) -> int:
        """Return the number of frozen textures."""
        return len(self._entries)

    def __iter__(self) -> Iterator[FrozenTextureSettings]:
        """Iterate over entries ordered by path."""
        return iter(self.entries())

    def __contains__(self, path: object) -> bool:
        """Return ``True`` when *path* has frozen settings."""
        return path in self._entries

    # ── persistence helpers ────────────────────────────────────
    def to_dicts(self) -> list[dict[str, Any]]:
        """Return the entries as plain dictionaries, ordered by path."""
        return [
            {
                "path": entry.path,
                "divisor": entry.divisor,
                "format": entry.format.value,
                "max_resolution": entry.max_resolution,
                "skip": entry.skip,
            }
            for entry in self.entries()
        ]

    @classmethod
    def from_dicts(
        cls,
        items: Iterable[Mapping[str, Any]],
        event_bus: EventBus | None = None,
    ) -> FrozenTextureStore:
        """Rebuild a store from ``to_dicts()`` output.

        Args:
            items: Dictionaries with ``path`` and optional ``divisor``,
                ``format``, ``max_resolution`` and ``skip`` keys.
            event_bus: Bus for correction warnings.

        Returns:
            The populated store.

        Raises:
            ValidationError: If an item lacks a path or names an unknown format.
        """
        store = cls(event_bus=event_bus)
        for item in items:
            if "path" not in item:
                msg = f"Frozen entry is missing 'path': {dict(item)}"
                raise ValidationError(msg)
            try:
                fmt = FrozenTextureFormat(item.get("format", FrozenTextureFormat.AUTO.value))
            except ValueError as exc:
                msg = f"Unknown frozen format '{item.get('format')}' for {item['path']}"
                raise ValidationError(msg) from exc
            max_resolution = item.get("max_resolution")
            store.set_frozen_settings(
                FrozenTextureSettings(
                    path=str(item["path"]),
                    divisor=int(item.get("divisor", 1)),
                    format=fmt,
                    max_resolution=int(max_resolution) if max_resolution is not None else None,
                    skip=bool(item.get("skip", False)),
                )
            )
        return store
