"""CompressorConfig, presets, and the TOML-backed ConfigManager."""

from __future__ import annotations

import dataclasses
import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from avatar_compressor.core.datatypes import AnalysisStrategyType, CompressionPlatform
from avatar_compressor.core.exceptions import ConfigError
from avatar_compressor.decision.divisor import closest_valid_divisor, is_valid_divisor

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "avatar-compressor"

# ── Excluded path presets ─────────────────────────────────────────────────

EXCLUDED_PATH_PRESETS: dict[str, str] = {
    "VRCFury Temp": "Packages/com.vrcfury.temp/",
}

DEFAULT_EXCLUDED_PATHS: tuple[str, ...] = tuple(EXCLUDED_PATH_PRESETS.values())


# ── Configuration snapshot ────────────────────────────────────────────────


@dataclass(frozen=True)
class CompressorConfig:
    """Immutable snapshot of every tunable used by one analysis pass.

    Defaults match the ``balanced`` preset.
    """

    preset: str = "balanced"
    strategy: AnalysisStrategyType = AnalysisStrategyType.COMBINED
    fast_weight: float = 0.3
    high_accuracy_weight: float = 0.5
    perceptual_weight: float = 0.2
    high_complexity_threshold: float = 0.7
    low_complexity_threshold: float = 0.2
    min_divisor: int = 1
    max_divisor: int = 8
    max_resolution: int = 2048
    min_resolution: int = 64
    force_power_of_two: bool = True
    process_main_textures: bool = True
    process_normal_maps: bool = True
    process_emission_maps: bool = True
    process_other_textures: bool = True
    min_source_size: int = 256
    skip_if_smaller_than: int = 128
    excluded_paths: tuple[str, ...] = field(default=DEFAULT_EXCLUDED_PATHS)
    target_platform: CompressionPlatform = CompressionPlatform.AUTO
    use_high_quality_format_for_high_complexity: bool = True
    preserve_compressed_format: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CompressorConfig:
        """Build a config from a plain mapping (e.g. a parsed TOML table).

        Args:
            data: Field values keyed by field name; missing keys keep their defaults.

        Returns:
            A new ``CompressorConfig``.

        Raises:
            ConfigError: If a key is unknown or a value cannot be converted.
        """
        return cls().with_overrides(data)

    def with_overrides(self, data: Mapping[str, Any]) -> CompressorConfig:
        """Return a copy with the fields in *data* replaced.

        Raises:
            ConfigError: If a key is unknown or a value cannot be converted.
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown configuration keys: {unknown}"
            raise ConfigError(msg)

        values = dict(data)
        try:
            if "strategy" in values:
                values["strategy"] = AnalysisStrategyType(values["strategy"])
            if "target_platform" in values:
                values["target_platform"] = CompressionPlatform(values["target_platform"])
        except ValueError as exc:
            msg = f"Invalid configuration value: {exc}"
            raise ConfigError(msg) from exc
        if "excluded_paths" in values:
            values["excluded_paths"] = tuple(str(p) for p in values["excluded_paths"])
        return dataclasses.replace(self, **values)

    def to_dict(self) -> dict[str, Any]:
        """Return the config as plain, JSON/TOML-friendly values."""
        data = dataclasses.asdict(self)
        data["strategy"] = self.strategy.value
        data["target_platform"] = self.target_platform.value
        data["excluded_paths"] = list(self.excluded_paths)
        return data


# ── Presets ───────────────────────────────────────────────────────────────

PRESETS: dict[str, dict[str, Any]] = {
    "high_quality": {
        "strategy": AnalysisStrategyType.COMBINED,
        "fast_weight": 0.1,
        "high_accuracy_weight": 0.5,
        "perceptual_weight": 0.4,
        "high_complexity_threshold": 0.3,
        "low_complexity_threshold": 0.1,
        "min_divisor": 1,
        "max_divisor": 2,
        "max_resolution": 2048,
        "min_resolution": 256,
        "min_source_size": 1024,
        "skip_if_smaller_than": 512,
        "use_high_quality_format_for_high_complexity": True,
    },
    "quality": {
        "strategy": AnalysisStrategyType.COMBINED,
        "fast_weight": 0.2,
        "high_accuracy_weight": 0.5,
        "perceptual_weight": 0.3,
        "high_complexity_threshold": 0.5,
        "low_complexity_threshold": 0.15,
        "min_divisor": 1,
        "max_divisor": 4,
        "max_resolution": 2048,
        "min_resolution": 128,
        "min_source_size": 512,
        "skip_if_smaller_than": 256,
        "use_high_quality_format_for_high_complexity": True,
    },
    "balanced": {
        "strategy": AnalysisStrategyType.COMBINED,
        "fast_weight": 0.3,
        "high_accuracy_weight": 0.5,
        "perceptual_weight": 0.2,
        "high_complexity_threshold": 0.7,
        "low_complexity_threshold": 0.2,
        "min_divisor": 1,
        "max_divisor": 8,
        "max_resolution": 2048,
        "min_resolution": 64,
        "min_source_size": 256,
        "skip_if_smaller_than": 128,
        "use_high_quality_format_for_high_complexity": True,
    },
    "aggressive": {
        "strategy": AnalysisStrategyType.FAST,
        "fast_weight": 0.5,
        "high_accuracy_weight": 0.3,
        "perceptual_weight": 0.2,
        "high_complexity_threshold": 0.8,
        "low_complexity_threshold": 0.3,
        "min_divisor": 2,
        "max_divisor": 8,
        "max_resolution": 2048,
        "min_resolution": 32,
        "min_source_size": 128,
        "skip_if_smaller_than": 64,
        "use_high_quality_format_for_high_complexity": False,
    },
    "maximum": {
        "strategy": AnalysisStrategyType.FAST,
        "fast_weight": 0.6,
        "high_accuracy_weight": 0.3,
        "perceptual_weight": 0.1,
        "high_complexity_threshold": 0.9,
        "low_complexity_threshold": 0.4,
        "min_divisor": 2,
        "max_divisor": 16,
        "max_resolution": 2048,
        "min_resolution": 32,
        "min_source_size": 64,
        "skip_if_smaller_than": 32,
        "use_high_quality_format_for_high_complexity": False,
    },
}

CUSTOM_PRESET = "custom"


def apply_preset(config: CompressorConfig, preset: str) -> CompressorConfig:
    """Return *config* with the values of a built-in preset applied.

    ``custom`` only records the preset name and keeps every other value.

    Args:
        config: The config to start from.
        preset: A key of ``PRESETS`` or ``"custom"``.

    Returns:
        The updated config.

    Raises:
        ConfigError: If *preset* is unknown.
    """
    if preset == CUSTOM_PRESET:
        return dataclasses.replace(config, preset=CUSTOM_PRESET)
    if preset not in PRESETS:
        msg = f"Unknown preset '{preset}'. Choose from: {sorted([*PRESETS, CUSTOM_PRESET])}"
        raise ConfigError(msg)
    return config.with_overrides({**PRESETS[preset], "preset": preset})


# ── Validation ────────────────────────────────────────────────────────────


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def validate_config(config: CompressorConfig) -> tuple[CompressorConfig, list[str]]:
    """Correct out-of-range values instead of failing the whole batch.

    Args:
        config: The caller-supplied config.

    Returns:
        A ``(corrected_config, warnings)`` tuple.  ``warnings`` is empty
        when the config was already within its documented ranges.
    """
    warnings: list[str] = []
    changes: dict[str, Any] = {}

    for name in ("fast_weight", "high_accuracy_weight", "perceptual_weight"):
        value = getattr(config, name)
        clamped = _clamp01(value)
        if clamped != value:
            warnings.append(f"{name}={value} is outside [0, 1]; clamped to {clamped}")
            changes[name] = clamped

    high = _clamp01(config.high_complexity_threshold)
    low = _clamp01(config.low_complexity_threshold)
    if high != config.high_complexity_threshold or low != config.low_complexity_threshold:
        warnings.append("Complexity thresholds must lie within [0, 1]; clamped")
    if low > high:
        warnings.append(f"low_complexity_threshold ({low}) exceeds high_complexity_threshold ({high}); swapped")
        low, high = high, low
    if high != config.high_complexity_threshold:
        changes["high_complexity_threshold"] = high
    if low != config.low_complexity_threshold:
        changes["low_complexity_threshold"] = low

    min_div, max_div = config.min_divisor, config.max_divisor
    if not is_valid_divisor(min_div):
        min_div = closest_valid_divisor(min_div)
        warnings.append(f"min_divisor={config.min_divisor} is not a valid divisor; using {min_div}")
    if not is_valid_divisor(max_div):
        max_div = closest_valid_divisor(max_div)
        warnings.append(f"max_divisor={config.max_divisor} is not a valid divisor; using {max_div}")
    if min_div > max_div:
        warnings.append(f"min_divisor ({min_div}) exceeds max_divisor ({max_div}); swapped")
        min_div, max_div = max_div, min_div
    if min_div != config.min_divisor:
        changes["min_divisor"] = min_div
    if max_div != config.max_divisor:
        changes["max_divisor"] = max_div

    min_res, max_res = max(1, config.min_resolution), max(1, config.max_resolution)
    if min_res != config.min_resolution or max_res != config.max_resolution:
        warnings.append("Resolution bounds must be at least 1; raised")
    if min_res > max_res:
        warnings.append(f"min_resolution ({min_res}) exceeds max_resolution ({max_res}); swapped")
        min_res, max_res = max_res, min_res
    if min_res != config.min_resolution:
        changes["min_resolution"] = min_res
    if max_res != config.max_resolution:
        changes["max_resolution"] = max_res

    for name in ("min_source_size", "skip_if_smaller_than"):
        value = getattr(config, name)
        if value < 0:
            warnings.append(f"{name}={value} is negative; using 0")
            changes[name] = 0

    if changes:
        config = dataclasses.replace(config, **changes)
    return config, warnings


# ── ConfigManager ─────────────────────────────────────────────────────────


class ConfigManager:
    """Loads compressor settings and user presets from TOML files.

    Layout of ``config_dir``::

        config.toml          # [compressor] table: optional ``preset`` plus overrides
        presets/<name>.toml  # user presets, flat field tables

    Args:
        config_dir: Root directory for configuration files.
                    Defaults to ``~/.config/avatar-compressor/``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialise the config manager.

        Args:
            config_dir: Custom configuration directory.  Uses the
                        platform default if ``None``.
        """
        self._config_dir = config_dir or _DEFAULT_CONFIG_DIR
        self._compressor: dict[str, Any] = {}
        self._presets: dict[str, dict[str, Any]] = {}

    @property
    def config_dir(self) -> Path:
        """Return the configuration directory path."""
        return self._config_dir

    def load(self) -> None:
        """Load ``config.toml`` and user presets from ``config_dir``.

        Missing files are silently skipped.

        Raises:
            ConfigError: If a file exists but is not valid TOML.
        """
        global_file = self._config_dir / "config.toml"
        if global_file.is_file():
            data = self._read_toml(global_file)
            self._compressor = dict(data.get("compressor", {}))
            logger.info("Loaded compressor config from %s", global_file)

        presets_dir = self._config_dir / "presets"
        if presets_dir.is_dir():
            for toml_file in sorted(presets_dir.glob("*.toml")):
                self._presets[toml_file.stem] = self._read_toml(toml_file)
                logger.info("Loaded preset '%s'", toml_file.stem)

    def preset_names(self) -> list[str]:
        """Return built-in and user preset names, sorted."""
        return sorted({*PRESETS, *self._presets})

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a raw value from the ``[compressor]`` table.

        Args:
            key: The configuration key.
            default: Fallback value when the key is not found.

        Returns:
            The configuration value, or *default*.
        """
        return self._compressor.get(key, default)

    def build_config(self, preset: str | None = None, overrides: Mapping[str, Any] | None = None) -> CompressorConfig:
        """Assemble a ``CompressorConfig`` from preset, file, and explicit overrides.

        Precedence (lowest to highest): built-in defaults, the preset
        (argument, else the file's ``preset`` key), the file's other keys,
        then *overrides*.

        Args:
            preset: Preset name to start from.
            overrides: Field values that win over everything else.

        Returns:
            The assembled config (not yet validated).

        Raises:
            ConfigError: On unknown presets or keys.
        """
        file_values = dict(self._compressor)
        preset_name = preset or file_values.pop("preset", None)
        file_values.pop("preset", None)

        config = CompressorConfig()
        if preset_name is not None:
            if preset_name in self._presets:
                config = config.with_overrides({**self._presets[preset_name], "preset": preset_name})
            else:
                config = apply_preset(config, preset_name)

        if file_values:
            config = config.with_overrides(file_values)
        if overrides:
            config = config.with_overrides(overrides)
        return config

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        """Read and parse a TOML file.

        Args:
            path: Path to the TOML file.

        Returns:
            Parsed dictionary.

        Raises:
            ConfigError: If the file is not valid TOML.
        """
        try:
            with path.open("rb") as fh:
                return tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Config file '{path}' is not valid TOML"
            raise ConfigError(msg) from exc
