"""Integration tests for CompressorConfig, presets and the ConfigManager."""

from __future__ import annotations

from pathlib import Path

import pytest

from avatar_compressor.core.config import (
    PRESETS,
    CompressorConfig,
    ConfigManager,
    apply_preset,
    validate_config,
)
from avatar_compressor.core.datatypes import AnalysisStrategyType, CompressionPlatform
from avatar_compressor.core.exceptions import ConfigError


class TestCompressorConfig:
    """Tests for the configuration snapshot."""

    def test_defaults_match_balanced_preset(self) -> None:
        """Every balanced preset value is a default."""
        config = CompressorConfig()
        for key, value in PRESETS["balanced"].items():
            assert getattr(config, key) == value

    def test_default_excludes_vrcfury_temp(self) -> None:
        """The VRCFury temporary folder is excluded by default."""
        assert "Packages/com.vrcfury.temp/" in CompressorConfig().excluded_paths

    def test_with_overrides_converts_enums(self) -> None:
        """String values become the matching enums."""
        config = CompressorConfig().with_overrides({"strategy": "fast", "target_platform": "mobile"})

        assert config.strategy is AnalysisStrategyType.FAST
        assert config.target_platform is CompressionPlatform.MOBILE

    def test_with_overrides_rejects_unknown_keys(self) -> None:
        """Unknown keys raise ``ConfigError``."""
        with pytest.raises(ConfigError, match="Unknown configuration keys"):
            CompressorConfig().with_overrides({"colour": "blue"})

    def test_with_overrides_rejects_bad_enum(self) -> None:
        """Invalid enum values raise ``ConfigError``."""
        with pytest.raises(ConfigError):
            CompressorConfig.from_mapping({"strategy": "slowest"})

    def test_excluded_paths_become_tuple(self) -> None:
        """List values for excluded paths are stored as a tuple."""
        config = CompressorConfig.from_mapping({"excluded_paths": ["Assets/Temp/"]})
        assert config.excluded_paths == ("Assets/Temp/",)

    def test_to_dict_is_plain(self) -> None:
        """``to_dict`` returns plain values only."""
        data = CompressorConfig().to_dict()

        assert data["strategy"] == "combined"
        assert data["target_platform"] == "auto"
        assert isinstance(data["excluded_paths"], list)


class TestPresets:
    """Tests for built-in presets."""

    @pytest.mark.parametrize("preset", sorted(PRESETS))
    def test_apply_preset(self, preset: str) -> None:
        """Applying a preset sets its name and values."""
        config = apply_preset(CompressorConfig(), preset)

        assert config.preset == preset
        assert config.max_divisor == PRESETS[preset]["max_divisor"]

    def test_presets_are_valid(self) -> None:
        """No built-in preset needs correcting."""
        for preset in PRESETS:
            _, warnings = validate_config(apply_preset(CompressorConfig(), preset))
            assert warnings == []

    def test_custom_keeps_values(self) -> None:
        """The custom preset only records its name."""
        base = CompressorConfig(max_divisor=16)
        config = apply_preset(base, "custom")

        assert config.preset == "custom"
        assert config.max_divisor == 16

    def test_unknown_preset(self) -> None:
        """Unknown preset names raise ``ConfigError``."""
        with pytest.raises(ConfigError, match="Unknown preset"):
            apply_preset(CompressorConfig(), "ultra")


class TestValidateConfig:
    """Tests for configuration correction."""

    def test_valid_config_unchanged(self) -> None:
        """A valid config comes back without warnings."""
        config = CompressorConfig()
        corrected, warnings = validate_config(config)

        assert corrected == config
        assert warnings == []

    def test_weights_clamped(self) -> None:
        """Weights outside ``[0, 1]`` are clamped."""
        corrected, warnings = validate_config(CompressorConfig(fast_weight=1.5, perceptual_weight=-0.2))

        assert corrected.fast_weight == 1.0
        assert corrected.perceptual_weight == 0.0
        assert len(warnings) == 2

    def test_inverted_thresholds_swapped(self) -> None:
        """A low threshold above the high one is swapped."""
        corrected, warnings = validate_config(
            CompressorConfig(high_complexity_threshold=0.2, low_complexity_threshold=0.7)
        )

        assert (corrected.low_complexity_threshold, corrected.high_complexity_threshold) == (0.2, 0.7)
        assert any("swapped" in w for w in warnings)

    def test_invalid_divisors_snapped(self) -> None:
        """Divisors are snapped to valid values and reordered."""
        corrected, warnings = validate_config(CompressorConfig(min_divisor=12, max_divisor=3))

        assert (corrected.min_divisor, corrected.max_divisor) == (2, 8)
        assert len(warnings) == 3

    def test_resolution_bounds(self) -> None:
        """Resolutions are raised to at least 1 and reordered."""
        corrected, _ = validate_config(CompressorConfig(min_resolution=4096, max_resolution=0))
        assert (corrected.min_resolution, corrected.max_resolution) == (1, 4096)

    def test_negative_size_filters(self) -> None:
        """Negative size filters become 0."""
        corrected, _ = validate_config(CompressorConfig(min_source_size=-1, skip_if_smaller_than=-5))
        assert (corrected.min_source_size, corrected.skip_if_smaller_than) == (0, 0)


class TestConfigManagerToml:
    """Tests for TOML-based configuration loading."""

    def test_missing_dir_gives_defaults(self, tmp_path: Path) -> None:
        """Loading from a non-existent directory does not raise."""
        cfg = ConfigManager(config_dir=tmp_path / "nope")
        cfg.load()

        assert cfg.build_config() == CompressorConfig()
        assert cfg.get("preset", default="balanced") == "balanced"

    def test_file_preset_and_overrides(self, tmp_path: Path) -> None:
        """The file's preset applies first, then its other keys."""
        (tmp_path / "config.toml").write_text('[compressor]\npreset = "aggressive"\nmax_divisor = 16\n')

        cfg = ConfigManager(config_dir=tmp_path)
        cfg.load()
        config = cfg.build_config()

        assert config.preset == "aggressive"
        assert config.strategy is AnalysisStrategyType.FAST
        assert config.max_divisor == 16

    def test_explicit_preset_and_overrides_win(self, tmp_path: Path) -> None:
        """Arguments beat values from the file."""
        (tmp_path / "config.toml").write_text('[compressor]\npreset = "aggressive"\n')

        cfg = ConfigManager(config_dir=tmp_path)
        cfg.load()
        config = cfg.build_config("quality", {"strategy": "perceptual"})

        assert config.preset == "quality"
        assert config.max_divisor == 4
        assert config.strategy is AnalysisStrategyType.PERCEPTUAL

    def test_user_presets(self, tmp_path: Path) -> None:
        """TOML files under ``presets/`` are available by name."""
        presets_dir = tmp_path / "presets"
        presets_dir.mkdir()
        (presets_dir / "quest.toml").write_text('target_platform = "mobile"\nmax_resolution = 1024\n')

        cfg = ConfigManager(config_dir=tmp_path)
        cfg.load()
        config = cfg.build_config("quest")

        assert "quest" in cfg.preset_names()
        assert config.preset == "quest"
        assert config.target_platform is CompressionPlatform.MOBILE
        assert config.max_resolution == 1024

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Malformed TOML raises ``ConfigError``."""
        (tmp_path / "config.toml").write_text("[compressor\n")

        with pytest.raises(ConfigError, match="not valid TOML"):
            ConfigManager(config_dir=tmp_path).load()

    def test_config_dir_property(self, tmp_path: Path) -> None:
        """``config_dir`` returns the configured path."""
        assert ConfigManager(config_dir=tmp_path).config_dir == tmp_path
