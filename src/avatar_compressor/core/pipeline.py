"""CompressionPipeline — runs the per-texture decision chain over a batch."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from avatar_compressor.analyzers import constants as c
from avatar_compressor.analyzers.combined import create_analyzer, create_normal_map_analyzer
from avatar_compressor.core.cache import compute_settings_hash
from avatar_compressor.core.config import CompressorConfig, validate_config
from avatar_compressor.core.datatypes import (
    FrozenTextureSettings,
    PreviewEntry,
    PreviewResult,
    SkipReason,
    TextureComplexityResult,
    TextureFormat,
    TextureRecord,
)
from avatar_compressor.core.events import COMPLETED, EventBus, report_progress, report_warning
from avatar_compressor.core.exceptions import CompressorError
from avatar_compressor.core.frozen import FrozenTextureStore
from avatar_compressor.decision.divisor import ComplexityCalculator
from avatar_compressor.decision.formats import FormatSelector, has_significant_alpha
from avatar_compressor.decision.memory import calculate_compressed_memory, full_mip_count
from avatar_compressor.decision.resolution import calculate_new_dimensions
from avatar_compressor.processing.filters import classify_texture
from avatar_compressor.processing.preprocessor import preprocess_pixels
from avatar_compressor.processing.sampling import sample_if_needed

logger = logging.getLogger(__name__)


class CompressionPipeline:
    """Decides divisor, resolution and format for every texture in a batch.

    Per texture: skip policy, then either the frozen fast path or
    sampling, preprocessing, complexity analysis, divisor and format
    selection.  No single texture can abort the batch; failures become
    skipped entries plus a ``warning`` event.

    Args:
        config: Configuration snapshot; out-of-range values are corrected
                (and reported) for this pipeline only.
        frozen: Frozen settings store.  An empty store is used if omitted.
        build_target: Host build target used to resolve the ``AUTO`` platform.
        event_bus: Bus for ``progress``, ``warning`` and ``completed`` events.
        max_workers: Worker threads; 1 or less analyses sequentially.
        cancel_event: When set, textures not yet started are dropped.
    """

    def __init__(
        self,
        config: CompressorConfig,
        frozen: FrozenTextureStore | None = None,
        *,
        build_target: str | None = None,
        event_bus: EventBus | None = None,
        max_workers: int = 1,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Validate the config and build the per-batch collaborators."""
        self.event_bus = event_bus or EventBus()
        self.frozen = frozen if frozen is not None else FrozenTextureStore(event_bus=self.event_bus)
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()
        self._source_config = config

        self.config, warnings = validate_config(config)
        for warning in warnings:
            report_warning(self.event_bus, warning)

        weights = (self.config.fast_weight, self.config.high_accuracy_weight, self.config.perceptual_weight)
        self._analyzer = create_analyzer(self.config.strategy, weights)
        self._normal_analyzer = create_normal_map_analyzer()
        self._calculator = ComplexityCalculator.from_config(self.config)
        self._selector = FormatSelector.from_config(self.config, build_target)

    @property
    def settings_hash(self) -> str:
        """Return the hash of the caller's config and the current frozen settings."""
        return compute_settings_hash(self._source_config, self.frozen)

    # ── batch ──────────────────────────────────────────────────
    def run(self, records: Iterable[TextureRecord]) -> PreviewResult:
        """Evaluate every record and aggregate the preview.

        Entries are ordered processed, frozen, skipped, each group by path,
        independent of worker completion order.

        Args:
            records: Textures with resident pixel buffers.

        Returns:
            The ``PreviewResult`` for the batch (partial if cancelled).
        """
        batch = list(records)
        total = len(batch)
        settings_hash = self.settings_hash
        logger.info("Analysing %d textures (strategy=%s)", total, self.config.strategy)

        entries: list[PreviewEntry] = []
        if self.max_workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = pool.map(self._evaluate_unless_cancelled, batch)
                for index, entry in enumerate(results, start=1):
                    self._collect(entry, index, total, entries)
        else:
            for index, record in enumerate(batch, start=1):
                self._collect(self._evaluate_unless_cancelled(record), index, total, entries)

        processed = sorted((e for e in entries if e.is_processed), key=lambda e: e.path)
        frozen = sorted((e for e in entries if e.is_frozen and e.skip_reason is None), key=lambda e: e.path)
        skipped = sorted((e for e in entries if e.skip_reason is not None), key=lambda e: e.path)

        result = PreviewResult(
            entries=tuple(processed + frozen + skipped),
            processed_count=len(processed),
            skipped_count=len(skipped),
            frozen_count=len(frozen),
            settings_hash=settings_hash,
        )
        if self.cancel_event.is_set():
            logger.info("Analysis cancelled after %d of %d textures", len(entries), total)
        logger.info(
            "Analysis finished: %d processed, %d frozen, %d skipped",
            result.processed_count,
            result.frozen_count,
            result.skipped_count,
        )
        self.event_bus.emit(
            COMPLETED,
            message=f"Analysed {len(entries)} of {total} textures",
            processed=result.processed_count,
            skipped=result.skipped_count,
            frozen=result.frozen_count,
        )
        return result

    def _collect(self, entry: PreviewEntry | None, index: int, total: int, entries: list[PreviewEntry]) -> None:
        if entry is None:
            return
        entries.append(entry)
        report_progress(self.event_bus, index, total, entry.path)

    def _evaluate_unless_cancelled(self, record: TextureRecord) -> PreviewEntry | None:
        if self.cancel_event.is_set():
            return None
        return self.evaluate(record)

    # ── single texture ─────────────────────────────────────────
    def evaluate(self, record: TextureRecord) -> PreviewEntry:
        """Produce the decision for one texture.

        Args:
            record: The texture to evaluate.

        Returns:
            A processed, frozen or skipped ``PreviewEntry``.
        """
        frozen = self.frozen.get(record.path) if record.path else None
        bytes_before = calculate_compressed_memory(
            record.width, record.height, record.source_format, record.mip_count
        )

        reason = classify_texture(record, self.config, frozen)
        if reason is not None:
            return self._skipped(record, reason, bytes_before, is_frozen=frozen is not None)
        if frozen is not None:
            return self._frozen_entry(record, frozen, bytes_before)

        if record.pixels is None or record.pixels.size == 0:
            report_warning(self.event_bus, "No readable pixel data; texture skipped", path=record.path)
            return self._skipped(record, SkipReason.NO_PIXEL_DATA, bytes_before)

        try:
            complexity = self.score(record)
        except CompressorError as exc:
            report_warning(self.event_bus, f"Analysis failed: {exc}", path=record.path)
            return self._skipped(record, SkipReason.ANALYSIS_FAILED, bytes_before)

        divisor = self._calculator.recommended_divisor(complexity.score)
        width, height = calculate_new_dimensions(
            record.width,
            record.height,
            divisor,
            min_resolution=self.config.min_resolution,
            max_resolution=self.config.max_resolution,
            force_power_of_two=self.config.force_power_of_two,
        )
        target_format = self._selector.select_format(
            record.source_format,
            is_normal_map=record.is_normal_map,
            complexity=complexity.score,
            has_alpha=has_significant_alpha(record.pixels),
            preserve_compressed=self.config.preserve_compressed_format,
        )
        logger.debug(
            "%s: complexity %.3f (%s) -> /%d %dx%d %s",
            record.path,
            complexity.score,
            complexity.strategy,
            divisor,
            width,
            height,
            target_format,
        )
        return PreviewEntry(
            path=record.path,
            role=record.role,
            skip_reason=None,
            complexity_score=complexity.score,
            divisor=divisor,
            source_resolution=(record.width, record.height),
            target_resolution=(width, height),
            target_format=target_format,
            estimated_bytes_before=bytes_before,
            estimated_bytes_after=self._bytes_after(record, width, height, target_format),
            strategy=complexity.strategy,
        )

    def score(self, record: TextureRecord) -> TextureComplexityResult:
        """Run sampling, preprocessing and the matching analyzer on *record*.

        Normal maps always use the normal-map analyzer.  Colour textures
        with very few opaque pixels get a fixed low score, and emission
        maps receive a quality boost.

        Raises:
            CompressorError: If the pixels cannot be preprocessed or scored.
        """
        if record.pixels is None:
            msg = f"{record.path} has no pixel data"
            raise CompressorError(msg)

        data = preprocess_pixels(
            sample_if_needed(record.pixels),
            is_normal_map=record.is_normal_map,
            is_emission=record.is_emission,
            source_format=record.source_format,
        )
        if data.is_normal_map:
            return self._normal_analyzer.analyze(data)
        if data.opaque_count < c.MIN_OPAQUE_PIXELS_FOR_STANDARD_ANALYSIS:
            return TextureComplexityResult(c.LOW_OPAQUE_SCORE, self._analyzer.name, "Mostly transparent texture")

        result = self._analyzer.analyze(data)
        if data.is_emission:
            boosted = min(1.0, max(0.0, result.score / c.EMISSION_BOOST_FACTOR))
            result = TextureComplexityResult(boosted, result.strategy, f"{result.summary} (emission boost)".strip())
        return result

    # ── helpers ────────────────────────────────────────────────
    def _frozen_entry(self, record: TextureRecord, frozen: FrozenTextureSettings, bytes_before: int) -> PreviewEntry:
        max_resolution = self.config.max_resolution
        if frozen.max_resolution is not None:
            max_resolution = min(max_resolution, frozen.max_resolution)
        width, height = calculate_new_dimensions(
            record.width,
            record.height,
            frozen.divisor,
            min_resolution=min(self.config.min_resolution, max_resolution),
            max_resolution=max_resolution,
            force_power_of_two=self.config.force_power_of_two,
        )
        target_format = self._selector.select_format(
            record.source_format,
            is_normal_map=record.is_normal_map,
            complexity=c.DEFAULT_COMPLEXITY_SCORE,
            has_alpha=has_significant_alpha(record.pixels),
            format_override=frozen.format,
            preserve_compressed=True,
        )
        logger.debug("%s: frozen -> /%d %dx%d %s", record.path, frozen.divisor, width, height, target_format)
        return PreviewEntry(
            path=record.path,
            role=record.role,
            skip_reason=None,
            complexity_score=None,
            divisor=frozen.divisor,
            source_resolution=(record.width, record.height),
            target_resolution=(width, height),
            target_format=target_format,
            estimated_bytes_before=bytes_before,
            estimated_bytes_after=self._bytes_after(record, width, height, target_format),
            is_frozen=True,
        )

    @staticmethod
    def _bytes_after(record: TextureRecord, width: int, height: int, target_format: TextureFormat) -> int:
        mips = full_mip_count(width, height) if record.mip_count > 1 else 1
        return calculate_compressed_memory(width, height, target_format, mips)

    @staticmethod
    def _skipped(
        record: TextureRecord,
        reason: SkipReason,
        bytes_before: int,
        *,
        is_frozen: bool = False,
    ) -> PreviewEntry:
        logger.debug("%s: skipped (%s)", record.path or "<runtime>", reason)
        return PreviewEntry(
            path=record.path,
            role=record.role,
            skip_reason=reason,
            complexity_score=None,
            divisor=1,
            source_resolution=(record.width, record.height),
            target_resolution=(record.width, record.height),
            target_format=None,
            estimated_bytes_before=bytes_before,
            estimated_bytes_after=bytes_before,
            is_frozen=is_frozen,
        )
