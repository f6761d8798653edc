"""
Lightning line generator.

Turns the straight segment between two projected points into a jagged
polyline. The displacement envelope is sin(t * pi) along the line, so both
endpoints stay pinned and the midpoint carries the largest jitter. How strong
the jitter is depends on the line effect mode:

- distance: proportional to (normal) or falling with (inverse) line length
- center:   grows with the start point's distance from the viewport centre
- random:   fresh random factor per line
- wave:     travelling sine over time and screen position
"""

import math
from dataclasses import dataclass

import numpy as np

from floatingdots.core.projector import Viewport

MODES = ("distance", "center", "random", "wave")
DISTANCE_MODES = ("normal", "inverse")

DISTANCE_NORMALIZER = 500.0
CENTER_NORMALIZER = 400.0
WAVE_POSITION_SCALE = 0.01

MODE_DESCRIPTIONS = {
    ("distance", "normal"): "Distance Mode (Normal): Lines become more electric as dots move further apart.",
    ("distance", "inverse"): "Distance Mode (Inverse): Lines become more electric as dots move closer together.",
    "center": "Center Mode: Lines become more electric as dots move away from the center of the canvas.",
    "random": "Random Mode: Each line has a randomly assigned electric intensity.",
    "wave": "Wave Mode: Line intensity pulses over time, creating flowing electric patterns.",
}


@dataclass
class LineEffectConfig:
    """Line style shared by the scene renderer and the audio mapper."""
    mode: str = "distance"  # "distance", "center", "random", "wave"
    distance_mode: str = "normal"  # "normal", "inverse" (distance mode only)
    base_segments: int = 12
    base_intensity: float = 30.0
    speed_multiplier: float = 1.0

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"unknown line mode {self.mode!r}, expected one of {MODES}")
        if self.distance_mode not in DISTANCE_MODES:
            raise ValueError(
                f"unknown distance mode {self.distance_mode!r}, expected one of {DISTANCE_MODES}"
            )
        if int(self.base_segments) != self.base_segments or self.base_segments < 2:
            raise ValueError(f"base_segments must be an integer >= 2, got {self.base_segments}")
        if self.base_intensity < 0:
            raise ValueError(f"base_intensity must be >= 0, got {self.base_intensity}")
        if self.speed_multiplier <= 0:
            raise ValueError(f"speed_multiplier must be > 0, got {self.speed_multiplier}")
        self.base_segments = int(self.base_segments)

    @classmethod
    def randomized(cls, rng: np.random.Generator) -> "LineEffectConfig":
        """Fresh config with every field redrawn."""
        mode = MODES[int(rng.integers(len(MODES)))]
        distance_mode = "normal"
        if mode == "distance":
            distance_mode = DISTANCE_MODES[int(rng.integers(len(DISTANCE_MODES)))]
        return cls(
            mode=mode,
            distance_mode=distance_mode,
            base_segments=int(rng.integers(5, 20)),
            base_intensity=float(rng.uniform(10.0, 60.0)),
            speed_multiplier=float(rng.uniform(0.5, 2.5)),
        )

    @property
    def label(self) -> str:
        """Short button label, e.g. 'Lines: distance (inverse)'."""
        if self.mode == "distance":
            return f"Lines: {self.mode} ({self.distance_mode})"
        return f"Lines: {self.mode}"

    def describe(self) -> str:
        """One-sentence explanation of the active mode."""
        if self.mode == "distance":
            return MODE_DESCRIPTIONS[(self.mode, self.distance_mode)]
        return MODE_DESCRIPTIONS[self.mode]


def line_intensity(
    p1,
    p2,
    config: LineEffectConfig,
    viewport: Viewport,
    now_s: float,
    rng: np.random.Generator,
) -> float:
    """Displacement amplitude for one line under the configured mode."""
    intensity = config.base_intensity

    if config.mode == "distance":
        normalized = math.hypot(p2[0] - p1[0], p2[1] - p1[1]) / DISTANCE_NORMALIZER
        if config.distance_mode == "normal":
            intensity *= normalized
        else:
            intensity *= 1.0 - normalized * 0.5
    elif config.mode == "center":
        cx, cy = viewport.center
        intensity *= math.hypot(p1[0] - cx, p1[1] - cy) / CENTER_NORMALIZER
    elif config.mode == "random":
        intensity *= rng.uniform(0.5, 1.5)
    elif config.mode == "wave":
        phase = now_s * config.speed_multiplier + (p1[0] + p1[1]) * WAVE_POSITION_SCALE
        intensity *= (1.0 + math.sin(phase)) / 2.0

    return intensity


def generate(
    p1,
    p2,
    config: LineEffectConfig,
    viewport: Viewport,
    now_s: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Build a lightning polyline between two screen points.

    Args:
        p1: Start point (x, y).
        p2: End point (x, y).
        config: Active line effect.
        viewport: Surface dimensions (used by the center mode).
        now_s: Current time in seconds (used by the wave mode).
        rng: Random source for the per-line factor and per-vertex jitter.

    Returns:
        (segments + 1, 2) float array; first row is p1 and last row is p2.
    """
    segments = config.base_segments
    start = np.array(p1[:2], dtype=float)
    end = np.array(p2[:2], dtype=float)

    intensity = line_intensity(start, end, config, viewport, now_s, rng)

    t = np.arange(segments + 1, dtype=float) / segments
    line = start + (end - start) * t[:, None]

    delta = end - start
    length = math.hypot(delta[0], delta[1])
    # Independent sign and size per vertex, drawn even for zero-length lines
    # so the random stream does not depend on geometry.
    jitter = rng.uniform(-0.5, 0.5, size=segments - 1)
    if length > 0.0:
        normal = np.array([-delta[1], delta[0]]) / length
        displacement = intensity * np.sin(t[1:-1] * math.pi) * jitter
        line[1:-1] += displacement[:, None] * normal

    line[0] = start
    line[-1] = end
    return line


def distance_intensity_factor(screen_points, config: LineEffectConfig) -> float:
    """
    Squared mean distance-mode line strength, relative to the base intensity.

    Zero outside distance mode and for fewer than two points. Above 1 only in
    normal mode, when lines average more than DISTANCE_NORMALIZER pixels.
    """
    if config.mode != "distance":
        return 0.0
    pts = np.asarray(screen_points, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return 0.0

    i, j = np.triu_indices(len(pts), k=1)
    normalized = np.hypot(*(pts[j] - pts[i]).T) / DISTANCE_NORMALIZER
    if config.distance_mode == "normal":
        strength = normalized
    else:
        strength = 1.0 - normalized * 0.5
    return float(np.mean(strength) ** 2)
