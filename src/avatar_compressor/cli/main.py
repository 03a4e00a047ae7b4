"""CLI entry point — click group exposing the compression decision engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from avatar_compressor.core.config import PRESETS, ConfigManager
from avatar_compressor.core.datatypes import (
    AnalysisStrategyType,
    CompressionPlatform,
    FrozenTextureFormat,
    FrozenTextureSettings,
    PreviewEntry,
    PreviewResult,
    TextureFormat,
)
from avatar_compressor.core.exceptions import CompressorError
from avatar_compressor.decision.memory import calculate_compressed_memory, format_bytes

if TYPE_CHECKING:
    from avatar_compressor.core.events import EventBus
    from avatar_compressor.core.frozen import FrozenTextureStore


def _load_frozen_file(path: Path | None, bus: EventBus | None) -> FrozenTextureStore:
    """Read a JSON list of frozen settings into a ``FrozenTextureStore``."""
    from avatar_compressor.core.frozen import FrozenTextureStore

    if path is None or not path.is_file():
        return FrozenTextureStore(event_bus=bus)
    try:
        items = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Frozen settings file '{path}' is not valid JSON: {exc}"
        raise click.ClickException(msg) from exc
    if not isinstance(items, list):
        msg = f"Frozen settings file '{path}' must contain a JSON list"
        raise click.ClickException(msg)
    try:
        return FrozenTextureStore.from_dicts(items, event_bus=bus)
    except CompressorError as exc:
        raise click.ClickException(str(exc)) from exc


def _warning_line(message: str, path: str | None = None, **_kw: Any) -> str:
    return f"warning: {path}: {message}" if path else f"warning: {message}"


def _entry_line(entry: PreviewEntry) -> str:
    """Format one preview entry as a single output line."""
    source = f"{entry.source_resolution[0]}x{entry.source_resolution[1]}"
    if entry.skip_reason is not None:
        return f"  {entry.path}  {source}  skipped ({entry.skip_reason})"
    target = f"{entry.target_resolution[0]}x{entry.target_resolution[1]}"
    detail = "frozen" if entry.is_frozen else f"complexity={entry.complexity_score:.2f}"
    sizes = f"{format_bytes(entry.estimated_bytes_before)} -> {format_bytes(entry.estimated_bytes_after)}"
    return f"  {entry.path}  {source} -> {target} (/{entry.divisor}) {entry.target_format}  {detail}  {sizes}"


def _result_to_dict(result: PreviewResult) -> dict[str, Any]:
    """Convert a preview result into JSON-friendly data."""
    return {
        "settings_hash": result.settings_hash,
        "processed_count": result.processed_count,
        "skipped_count": result.skipped_count,
        "frozen_count": result.frozen_count,
        "total_bytes_before": result.total_bytes_before,
        "total_bytes_after": result.total_bytes_after,
        "entries": [
            {
                "path": entry.path,
                "role": entry.role.value,
                "skip_reason": entry.skip_reason.value if entry.skip_reason else None,
                "complexity_score": entry.complexity_score,
                "strategy": entry.strategy,
                "divisor": entry.divisor,
                "source_resolution": list(entry.source_resolution),
                "target_resolution": list(entry.target_resolution),
                "target_format": entry.target_format.value if entry.target_format else None,
                "estimated_bytes_before": entry.estimated_bytes_before,
                "estimated_bytes_after": entry.estimated_bytes_after,
                "is_frozen": entry.is_frozen,
            }
            for entry in result.entries
        ],
    }


@click.group()
@click.version_option(package_name="avatar-compressor")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """Avatar Compressor — texture complexity analysis and compression planning."""
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command(name="analyze")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, resolve_path=True))
@click.option(
    "-p",
    "--preset",
    default=None,
    type=click.Choice(sorted([*PRESETS, "custom"])),
    help="Preset to start from (default: config file, else balanced).",
)
@click.option(
    "-s",
    "--strategy",
    default=None,
    type=click.Choice([s.value for s in AnalysisStrategyType]),
    help="Complexity analysis strategy (overrides preset).",
)
@click.option(
    "--platform",
    default=None,
    type=click.Choice([p.value for p in CompressionPlatform]),
    help="Target platform (overrides preset).",
)
@click.option("--build-target", default=None, help="Host build target used to resolve 'auto' (e.g. android).")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Configuration directory (default: ~/.config/avatar-compressor).",
)
@click.option(
    "--frozen",
    "frozen_file",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=None,
    help="JSON file with frozen texture settings.",
)
@click.option("-j", "--workers", type=int, default=1, show_default=True, help="Worker threads.")
@click.option("--mipmaps/--no-mipmaps", default=True, show_default=True, help="Assume textures carry mip chains.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the preview as JSON.")
def analyze_cmd(
    inputs: tuple[str, ...],
    preset: str | None,
    strategy: str | None,
    platform: str | None,
    build_target: str | None,
    config_dir: str | None,
    frozen_file: str | None,
    workers: int,
    mipmaps: bool,
    as_json: bool,
) -> None:
    """Analyse textures and preview resolution, format and memory decisions.

    INPUTS can be image files, directories, or a mix of both.  Texture roles
    are guessed from file-name suffixes (_normal, _emission, _mask, ...).
    """
    from avatar_compressor.cli.loader import collect_image_paths, load_texture
    from avatar_compressor.core.events import EventBus
    from avatar_compressor.core.pipeline import CompressionPipeline

    bus = EventBus()
    bus.subscribe("warning", lambda **kw: click.echo(_warning_line(**kw), err=True))
    if not as_json:
        bus.subscribe("progress", lambda **kw: click.echo(f"  [{kw['current']:5d}/{kw['total']:5d}] {kw['message']}"))

    overrides: dict[str, Any] = {}
    if strategy is not None:
        overrides["strategy"] = strategy
    if platform is not None:
        overrides["target_platform"] = platform

    try:
        manager = ConfigManager(Path(config_dir) if config_dir else None)
        manager.load()
        config = manager.build_config(preset, overrides)
        paths = collect_image_paths([Path(p) for p in inputs])
    except CompressorError as exc:
        raise click.ClickException(str(exc)) from exc

    root = Path.cwd().resolve()
    records = []
    for path in paths:
        try:
            records.append(load_texture(path, root=root, with_mipmaps=mipmaps))
        except CompressorError as exc:
            click.echo(f"warning: {exc}", err=True)

    frozen = _load_frozen_file(Path(frozen_file) if frozen_file else None, bus)
    pipeline = CompressionPipeline(config, frozen, build_target=build_target, event_bus=bus, max_workers=workers)
    result = pipeline.run(records)

    if as_json:
        click.echo(json.dumps(_result_to_dict(result), indent=2))
        return

    for entry in result.entries:
        click.echo(_entry_line(entry))
    click.echo(
        f"Processed {result.processed_count}, frozen {result.frozen_count}, skipped {result.skipped_count} "
        f"(preset: {pipeline.config.preset}, strategy: {pipeline.config.strategy})"
    )
    saved = result.total_bytes_before - result.total_bytes_after
    click.echo(
        f"Memory: {format_bytes(result.total_bytes_before)} -> {format_bytes(result.total_bytes_after)} "
        f"(saved {format_bytes(max(0, saved))})"
    )


@cli.command(name="memory")
@click.argument("width", type=click.IntRange(min=1))
@click.argument("height", type=click.IntRange(min=1))
@click.argument("fmt", metavar="FORMAT", type=click.Choice([f.value for f in TextureFormat], case_sensitive=False))
@click.option("-m", "--mips", type=click.IntRange(min=1), default=1, show_default=True, help="Mip level count.")
def memory_cmd(width: int, height: int, fmt: str, mips: int) -> None:
    """Estimate the GPU memory of a WIDTH x HEIGHT texture in FORMAT."""
    num_bytes = calculate_compressed_memory(width, height, TextureFormat(fmt), mips)
    click.echo(f"{width}x{height} {fmt} ({mips} mips): {num_bytes} bytes ({format_bytes(num_bytes)})")


@cli.command(name="presets")
def presets_cmd() -> None:
    """List the built-in presets and their key values."""
    for name, values in PRESETS.items():
        click.echo(
            f"{name:13s} strategy={values['strategy']} thresholds={values['low_complexity_threshold']}"
            f"-{values['high_complexity_threshold']} divisors={values['min_divisor']}-{values['max_divisor']} "
            f"resolution={values['min_resolution']}-{values['max_resolution']}"
        )


@cli.command(name="freeze")
@click.argument("frozen_file", type=click.Path(dir_okay=False, resolve_path=True))
@click.argument("texture")
@click.option("-d", "--divisor", type=int, default=1, show_default=True, help="Resolution divisor (1, 2, 4, 8, 16).")
@click.option(
    "-f",
    "--format",
    "fmt",
    default=FrozenTextureFormat.AUTO.value,
    show_default=True,
    type=click.Choice([f.value for f in FrozenTextureFormat]),
    help="Target format, or 'auto'.",
)
@click.option("--max-resolution", type=int, default=None, help="Resolution cap for this texture.")
@click.option("--skip", is_flag=True, default=False, help="Exclude the texture from compression.")
def freeze_cmd(frozen_file: str, texture: str, divisor: int, fmt: str, max_resolution: int | None, skip: bool) -> None:
    """Pin TEXTURE's compression settings in FROZEN_FILE (created if missing)."""
    from avatar_compressor.core.events import EventBus

    bus = EventBus()
    bus.subscribe("warning", lambda **kw: click.echo(_warning_line(**kw), err=True))

    path = Path(frozen_file)
    store = _load_frozen_file(path, bus)
    stored = store.set_frozen_settings(
        FrozenTextureSettings(
            path=texture,
            divisor=divisor,
            format=FrozenTextureFormat(fmt),
            max_resolution=max_resolution,
            skip=skip,
        )
    )
    path.write_text(json.dumps(store.to_dicts(), indent=2), encoding="utf-8")
    click.echo(f"Froze {stored.path} (divisor {stored.divisor}, format {stored.format})")


@cli.command(name="unfreeze")
@click.argument("frozen_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.argument("texture")
def unfreeze_cmd(frozen_file: str, texture: str) -> None:
    """Remove TEXTURE from FROZEN_FILE."""
    path = Path(frozen_file)
    store = _load_frozen_file(path, None)
    if not store.unfreeze(texture):
        msg = f"'{texture}' is not frozen"
        raise click.ClickException(msg)
    path.write_text(json.dumps(store.to_dicts(), indent=2), encoding="utf-8")
    click.echo(f"Unfroze {texture}")
