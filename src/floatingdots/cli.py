"""
CLI entry point for Floating Dots.

Usage:
    floatingdots [play] [options]
    floatingdots record <output.mp4> [options]
    python -m floatingdots [options]
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import fields, replace
from pathlib import Path

from floatingdots.core.points import MAX_POINTS, MIN_POINTS
from floatingdots.engine import EngineConfig
from floatingdots.visualizers.scene import SceneConfig

# Map profile to defaults
PROFILES = {
    "low": {"width": 854, "height": 480, "fps": 30, "quality": "fast"},
    "medium": {"width": 1280, "height": 720, "fps": 60, "quality": "medium"},
    "high": {"width": 1920, "height": 1080, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def _point_count(value: str) -> int:
    count = int(value)
    if not MIN_POINTS <= count <= MAX_POINTS:
        raise argparse.ArgumentTypeError(f"must be between {MIN_POINTS} and {MAX_POINTS}")
    return count


def _apply_overrides(target, overrides: dict) -> list[str]:
    """Set dataclass fields from a dict; returns the keys that were unknown."""
    known = {f.name for f in fields(target)}
    unknown = []
    for key, value in overrides.items():
        if key not in known:
            unknown.append(key)
            continue
        if isinstance(getattr(target, key), tuple) and isinstance(value, list):
            value = tuple(value)
        setattr(target, key, value)
    return unknown


def load_config(path: Path, engine_config: EngineConfig, scene_config: SceneConfig):
    """
    Apply a JSON config file on top of the CLI-derived configs.

    The file may contain "engine" and "scene" objects whose keys are field
    names of EngineConfig and SceneConfig.
    """
    with open(path) as f:
        data = json.load(f)

    unknown = []
    unknown += [f"engine.{k}" for k in _apply_overrides(engine_config, data.get("engine", {}))]
    unknown += [f"scene.{k}" for k in _apply_overrides(scene_config, data.get("scene", {}))]
    if unknown:
        print(f"Warning: ignoring unknown config keys: {', '.join(unknown)}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="floatingdots",
        description="Floating dots: a drifting 3D sculpture with lightning lines and an ambient drone",
    )
    parser.add_argument(
        "command", nargs="?", default="play", choices=["play", "record"],
        help="play: open the interactive window (default); record: render to MP4",
    )
    parser.add_argument(
        "output", nargs="?", type=Path, default=None,
        help="Output MP4 path for record (default: floatingdots.mp4)",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=["low", "medium", "high"],
        help="Target profile (low: 480p 30fps, medium: 720p 60fps, high: 1080p 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Window/video width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Window/video height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")

    # Sculpture
    parser.add_argument(
        "-n", "--points", type=_point_count, default=8,
        help=f"Number of points, {MIN_POINTS}-{MAX_POINTS} (default: 8)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible sculpture")
    parser.add_argument(
        "--no-randomize", action="store_true",
        help="Start with the default line style (distance/normal) instead of a random one",
    )

    # Sound
    parser.add_argument("--sound", action="store_true", help="Start with sound enabled (play)")
    parser.add_argument("--no-audio", action="store_true", help="Record without an audio track")

    # Record
    parser.add_argument(
        "-d", "--duration", type=float, default=10.0,
        help="Recording length in seconds (default: 10)",
    )
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )

    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file with \"engine\" and \"scene\" overrides",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    p_cfg = PROFILES[args.profile]
    width = args.width or p_cfg["width"]
    height = args.height or p_cfg["height"]
    fps = args.fps or p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]

    engine_config = EngineConfig(
        width=width,
        height=height,
        point_count=args.points,
        seed=args.seed,
        randomize_on_start=not args.no_randomize,
    )
    scene_config = SceneConfig()

    if args.config:
        if not args.config.exists():
            print(f"Error: Config file not found: {args.config}", file=sys.stderr)
            sys.exit(1)
        try:
            load_config(args.config, engine_config, scene_config)
            # Re-run field validation on the overridden values
            engine_config = replace(engine_config)
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            print(f"Error: Invalid config file {args.config}: {e}", file=sys.stderr)
            sys.exit(1)

    if args.command == "play":
        from floatingdots.app import SculptureApp

        SculptureApp(engine_config, scene_config, fps=fps, sound=args.sound).run()
        return

    from floatingdots.io.recorder import record

    output = args.output or Path("floatingdots.mp4")
    if args.duration <= 0:
        print("Error: --duration must be positive", file=sys.stderr)
        sys.exit(1)

    print(f"\nRendering {args.duration:.1f}s at {width}x{height} @ {fps}fps")
    print(f"  Profile: {args.profile}, Points: {engine_config.point_count}, Quality: {quality}")
    t0 = time.time()

    try:
        record(
            output,
            args.duration,
            engine_config=engine_config,
            scene_config=scene_config,
            fps=fps,
            quality=quality,
            with_audio=not args.no_audio,
            progress_callback=_progress_bar,
        )
    except (RuntimeError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    elapsed = time.time() - t0
    file_size_mb = output.stat().st_size / 1024 / 1024
    print(f"\nDone! {file_size_mb:.1f} MB")
    print(f"  Render+encode took {elapsed:.1f}s")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
