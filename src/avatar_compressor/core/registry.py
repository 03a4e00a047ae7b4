"""AnalyzerRegistry — singleton that auto-discovers complexity analyzers."""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avatar_compressor.core.base_analyzer import BaseAnalyzer

logger = logging.getLogger(__name__)

ANALYZERS_PACKAGE = "avatar_compressor.analyzers"


class AnalyzerRegistry:
    """Singleton registry of ``BaseAnalyzer`` subclasses keyed by ``name``.

    On first lookup the registry scans the modules of
    ``avatar_compressor.analyzers`` and records every concrete
    ``BaseAnalyzer`` subclass defined there.  Classes rather than
    instances are stored because some analyzers take constructor
    arguments (the combined analyzer's weights).
    """

    _instance: AnalyzerRegistry | None = None
    _analyzers: dict[str, type[BaseAnalyzer]]

    def __new__(cls) -> AnalyzerRegistry:
        """Return the singleton instance, creating it on first call."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._analyzers = {}
        return cls._instance

    def discover(self) -> None:
        """Scan ``avatar_compressor.analyzers`` and register all analyzers."""
        from avatar_compressor.core.base_analyzer import BaseAnalyzer

        package = importlib.import_module(ANALYZERS_PACKAGE)
        for _importer, module_name, is_pkg in pkgutil.iter_modules(package.__path__):
            if is_pkg or module_name.startswith("_"):
                continue
            module = importlib.import_module(f"{ANALYZERS_PACKAGE}.{module_name}")

            for _attr_name, attr in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(attr, BaseAnalyzer)
                    and attr.__module__ == module.__name__
                    and not inspect.isabstract(attr)
                ):
                    self.register(attr)

    def register(self, analyzer_cls: type[BaseAnalyzer]) -> None:
        """Add *analyzer_cls* under its ``name``, replacing any previous entry."""
        self._analyzers[analyzer_cls.name] = analyzer_cls
        logger.debug("Registered analyzer: %s", analyzer_cls.name)

    def get(self, name: str) -> type[BaseAnalyzer] | None:
        """Look up an analyzer class by its unique name.

        Args:
            name: The analyzer's ``name`` attribute (e.g. ``"fast"``).

        Returns:
            The analyzer class, or ``None`` if not found.
        """
        if not self._analyzers:
            self.discover()
        return self._analyzers.get(name)

    def all_analyzers(self) -> dict[str, type[BaseAnalyzer]]:
        """Return all registered analyzers as a name → class mapping."""
        if not self._analyzers:
            self.discover()
        return dict(self._analyzers)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton — intended for testing only."""
        cls._instance = None
