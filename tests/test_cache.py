"""Integration tests for the settings hash and the preview cache."""

from __future__ import annotations

from avatar_compressor.core.cache import PreviewCache, compute_settings_hash
from avatar_compressor.core.config import CompressorConfig
from avatar_compressor.core.datatypes import FrozenTextureSettings, PreviewResult


def _result(settings_hash: str) -> PreviewResult:
    return PreviewResult(entries=(), processed_count=0, skipped_count=0, frozen_count=0, settings_hash=settings_hash)


class TestComputeSettingsHash:
    """Tests for ``compute_settings_hash``."""

    def test_stable_for_equal_inputs(self) -> None:
        """Equal configs and frozen entries hash equally."""
        frozen = [FrozenTextureSettings(path="a", divisor=2)]
        assert compute_settings_hash(CompressorConfig(), frozen) == compute_settings_hash(CompressorConfig(), frozen)

    def test_frozen_order_irrelevant(self) -> None:
        """Frozen entry order does not change the hash."""
        a, b = FrozenTextureSettings(path="a"), FrozenTextureSettings(path="b", divisor=4)
        assert compute_settings_hash(CompressorConfig(), [a, b]) == compute_settings_hash(CompressorConfig(), [b, a])

    def test_config_change_changes_hash(self) -> None:
        """Any config field takes part in the hash."""
        base = compute_settings_hash(CompressorConfig())

        assert compute_settings_hash(CompressorConfig(max_divisor=16)) != base
        assert compute_settings_hash(CompressorConfig(excluded_paths=())) != base
        assert compute_settings_hash(CompressorConfig(preserve_compressed_format=False)) != base

    def test_frozen_change_changes_hash(self) -> None:
        """Adding or editing a frozen entry changes the hash."""
        config = CompressorConfig()
        empty = compute_settings_hash(config)
        frozen = compute_settings_hash(config, [FrozenTextureSettings(path="a", divisor=2)])
        edited = compute_settings_hash(config, [FrozenTextureSettings(path="a", divisor=4)])

        assert len({empty, frozen, edited}) == 3


class TestPreviewCache:
    """Tests for ``PreviewCache``."""

    def test_computes_on_first_use(self) -> None:
        """An empty cache is stale and computes."""
        cache = PreviewCache()
        calls: list[int] = []

        def compute() -> PreviewResult:
            calls.append(1)
            return _result("h1")

        assert cache.is_stale("h1")
        assert cache.get_or_compute("h1", compute).settings_hash == "h1"
        assert calls == [1]

    def test_reuses_while_hash_unchanged(self) -> None:
        """The same hash returns the cached result without recomputing."""
        cache = PreviewCache()
        first = cache.get_or_compute("h1", lambda: _result("h1"))

        second = cache.get_or_compute("h1", lambda: _result("other"))

        assert second is first
        assert not cache.is_stale("h1")

    def test_recomputes_on_hash_change(self) -> None:
        """A different hash recomputes the whole batch."""
        cache = PreviewCache()
        cache.get_or_compute("h1", lambda: _result("h1"))

        result = cache.get_or_compute("h2", lambda: _result("h2"))

        assert result.settings_hash == "h2"
        assert cache.result is result

    def test_invalidate(self) -> None:
        """``invalidate`` drops the cached result."""
        cache = PreviewCache()
        cache.get_or_compute("h1", lambda: _result("h1"))
        cache.invalidate()

        assert cache.result is None
        assert cache.is_stale("h1")
