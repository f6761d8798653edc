"""
Scene renderer for the floating sculpture.

Draws every pairwise lightning connection between projected points, then a
marker on top of each point. Rendering reads the simulation but never
writes to it.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pygame

from floatingdots.core.lightning import LineEffectConfig, generate
from floatingdots.core.projector import Viewport


@dataclass
class SceneConfig:
    """Configuration for the scene renderer."""

    background_color: tuple[int, int, int] = (0, 0, 0)
    line_color: tuple[int, int, int] = (255, 255, 255)
    line_alpha: float = 0.5  # 0-1, blended against the background
    line_width: int = 1
    point_color: tuple[int, int, int] = (255, 255, 255)
    point_radius: float = 3.0
    antialias: bool = True


class SceneRenderer:
    """Renders one frame of the sculpture onto a pygame Surface."""

    def __init__(self, config: SceneConfig | None = None):
        self.config = config or SceneConfig()

    def _blend(self, color: tuple[int, int, int], alpha: float) -> tuple[int, int, int]:
        """Pre-blend a colour over the background."""
        bg = self.config.background_color
        alpha = min(max(alpha, 0.0), 1.0)
        return tuple(int(round(bg[i] + (color[i] - bg[i]) * alpha)) for i in range(3))

    def _stroke(self, surface: pygame.Surface, color, polyline: np.ndarray):
        points = [tuple(p) for p in polyline.tolist()]
        if self.config.antialias and self.config.line_width <= 1:
            pygame.draw.aalines(surface, color, False, points)
        else:
            pygame.draw.lines(surface, color, False, points, self.config.line_width)

    def draw(
        self,
        surface: pygame.Surface,
        screen_points: Sequence[Sequence[float]],
        line_config: LineEffectConfig,
        viewport: Viewport,
        now_s: float,
        rng: np.random.Generator,
    ) -> int:
        """
        Render a frame.

        Args:
            surface: Target surface, cleared first.
            screen_points: Projected (x, y) of every point, in sculpture order.
            line_config: Active line effect.
            viewport: Surface dimensions for the center mode.
            now_s: Current time in seconds for the wave mode.
            rng: Random source for the lightning jitter.

        Returns:
            Number of lines drawn.
        """
        cfg = self.config
        surface.fill(cfg.background_color)

        line_color = self._blend(cfg.line_color, cfg.line_alpha)
        n = len(screen_points)
        lines = 0
        for i in range(n):
            for j in range(i + 1, n):
                polyline = generate(
                    screen_points[i], screen_points[j],
                    line_config, viewport, now_s, rng,
                )
                self._stroke(surface, line_color, polyline)
                lines += 1

        for x, y in screen_points:
            pygame.draw.circle(surface, cfg.point_color, (x, y), cfg.point_radius)

        return lines

    def surface_to_array(self, surface: pygame.Surface) -> np.ndarray:
        """Convert pygame surface to numpy array for video encoding."""
        # pygame uses (width, height) but numpy expects (height, width)
        arr = pygame.surfarray.array3d(surface)
        return np.ascontiguousarray(np.transpose(arr, (1, 0, 2)))
