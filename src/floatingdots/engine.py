"""
Frame driver for the floating sculpture.

Owns the engine state (current sculpture, line style, viewport) and the
components acting on it. Each `on_frame` call runs one tick:

    simulation.advance -> analyzer.analyze -> audio.update -> renderer.draw

UI callbacks (restart, randomize, sound toggle, resize) run on the same thread
as the frame loop and replace state in single assignments, so a frame always
sees one complete sculpture generation.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np
import pygame

from floatingdots.audio.mapper import AudioMapper
from floatingdots.core.analyzer import SculptureAnalyzer, SculptureStats
from floatingdots.core.lightning import LineEffectConfig, distance_intensity_factor
from floatingdots.core.points import (
    MAX_POINTS,
    MIN_POINTS,
    SPREAD_DURATION_MS,
    PointSimulation,
    Sculpture,
)
from floatingdots.core.projector import Viewport, project_many
from floatingdots.visualizers.scene import SceneConfig, SceneRenderer

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    """Monotonic wall-clock time in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass
class EngineConfig:
    """Configuration for the sculpture engine."""
    width: int = 1280
    height: int = 720
    point_count: int = 8
    seed: int | None = None
    spread_duration_ms: float = SPREAD_DURATION_MS
    randomize_on_start: bool = True

    def __post_init__(self):
        if not MIN_POINTS <= self.point_count <= MAX_POINTS:
            raise ValueError(
                f"point_count must be in [{MIN_POINTS}, {MAX_POINTS}], got {self.point_count}"
            )
        if self.spread_duration_ms < 0:
            raise ValueError(f"spread_duration_ms must be >= 0, got {self.spread_duration_ms}")


@dataclass
class EngineState:
    """Mutable state shared by the frame loop and the UI callbacks."""
    sculpture: Sculpture
    line_config: LineEffectConfig
    viewport: Viewport


class SculptureEngine:
    """Public surface of the sculpture: the UI glue only talks to this."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], float] | None = None,
        audio: AudioMapper | None = None,
        scene_config: SceneConfig | None = None,
    ):
        self.cfg = config or EngineConfig()
        self.clock = clock or wall_clock_ms

        # Independent streams so neither drawing nor restyling changes how points move
        sim_seed, line_seed, audio_seed, style_seed = np.random.SeedSequence(self.cfg.seed).spawn(4)
        self.rng = np.random.default_rng(sim_seed)
        self.line_rng = np.random.default_rng(line_seed)
        self.style_rng = np.random.default_rng(style_seed)

        self.simulation = PointSimulation(self.rng)
        self.analyzer = SculptureAnalyzer()
        self.audio = audio or AudioMapper(rng=np.random.default_rng(audio_seed))
        self.renderer = SceneRenderer(scene_config)

        line_config = LineEffectConfig()
        if self.cfg.randomize_on_start:
            line_config = LineEffectConfig.randomized(self.style_rng)

        self.state = EngineState(
            sculpture=self._new_sculpture(self.cfg.point_count),
            line_config=line_config,
            viewport=Viewport(self.cfg.width, self.cfg.height),
        )
        self.stats = SculptureStats()
        self.frame_count = 0

    def _new_sculpture(self, count: int) -> Sculpture:
        return Sculpture.create(
            count, self.clock(), self.rng, spread_duration=self.cfg.spread_duration_ms
        )

    # ── UI operations ───────────────────────────────────────────────────

    @property
    def sculpture(self) -> Sculpture:
        return self.state.sculpture

    @property
    def line_config(self) -> LineEffectConfig:
        return self.state.line_config

    @property
    def viewport(self) -> Viewport:
        return self.state.viewport

    @property
    def sound_enabled(self) -> bool:
        return self.audio.enabled

    def restart(self, point_count: int | None = None) -> Sculpture:
        """
        Start a new sculpture generation.

        Args:
            point_count: Number of points in [3, 55]; random when omitted.

        Raises:
            ValueError: If point_count is out of range.
        """
        if point_count is None:
            point_count = int(self.rng.integers(MIN_POINTS, MAX_POINTS + 1))
        sculpture = self._new_sculpture(point_count)
        self.state.sculpture = sculpture
        logger.info("New sculpture with %d points", point_count)
        return sculpture

    def randomize_line_effect(self) -> LineEffectConfig:
        """Replace the line style wholesale; returns the new config."""
        line_config = LineEffectConfig.randomized(self.style_rng)
        self.state.line_config = line_config
        logger.debug("Line effect: %s", line_config)
        return line_config

    def set_sound_enabled(self, enabled: bool) -> bool:
        """Returns whether sound actually ended up enabled."""
        return self.audio.set_enabled(enabled)

    def toggle_sound(self) -> bool:
        return self.set_sound_enabled(not self.sound_enabled)

    def resize(self, width: int, height: int):
        self.state.viewport = Viewport(max(1, int(width)), max(1, int(height)))

    # ── Frame tick ──────────────────────────────────────────────────────

    def projected_points(self) -> np.ndarray:
        positions = np.array([p.position for p in self.state.sculpture.points], dtype=float)
        if len(positions) == 0:
            return np.zeros((0, 2))
        return project_many(positions, self.state.viewport)

    def on_frame(self, surface: pygame.Surface | None = None) -> SculptureStats:
        """
        Advance one tick and optionally draw it.

        Args:
            surface: Surface to render onto; skip rendering when None.

        Returns:
            Analyzer output for this frame.
        """
        now = self.clock()
        state = self.state

        self.simulation.advance(state.sculpture, now)
        self.stats = self.analyzer.analyze(state.sculpture.points)

        screen_points = None
        if self.audio.enabled:
            screen_points = self.projected_points()
            self.audio.update(
                self.stats,
                state.line_config,
                now / 1000.0,
                intensity_factor=distance_intensity_factor(screen_points, state.line_config),
            )

        if surface is not None:
            if screen_points is None:
                screen_points = self.projected_points()
            self.renderer.draw(
                surface,
                screen_points,
                state.line_config,
                state.viewport,
                now / 1000.0,
                self.line_rng,
            )

        self.frame_count += 1
        return self.stats

    def close(self):
        self.audio.close()
