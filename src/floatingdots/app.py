"""
Interactive window for the floating sculpture.

Thin pygame glue around `SculptureEngine`: a title, three buttons, an info
box, keyboard shortcuts and a frame loop capped at the display rate.

Keys:  L lines  |  N new sculpture  |  S sound  |  ESC quit
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

import pygame

from floatingdots.engine import EngineConfig, SculptureEngine
from floatingdots.visualizers.scene import SceneConfig

logger = logging.getLogger(__name__)

TITLE = "Floating Dots"

# Colors
FG = (255, 255, 255)
BG = (0, 0, 0)
HOVER_BG = (51, 51, 51)


def layout_for_width(width: int) -> dict[str, float]:
    """Responsive sizes for mobile / tablet / desktop widths."""
    if width < 480:
        return {"padding": 15, "title_size": 16, "text_size": 11, "gap": 10, "point_radius": 2.0}
    if width < 768:
        return {"padding": 20, "title_size": 18, "text_size": 12, "gap": 15, "point_radius": 2.5}
    return {"padding": 30, "title_size": 20, "text_size": 14, "gap": 20, "point_radius": 3.0}


@dataclass
class Button:
    label: str
    action: Callable[[], None]
    rect: pygame.Rect = field(default_factory=lambda: pygame.Rect(0, 0, 0, 0))

    def draw(self, surface: pygame.Surface, font: pygame.font.Font, hovered: bool):
        text = font.render(self.label, True, FG)
        self.rect.size = (text.get_width() + 40, text.get_height() + 24)
        pygame.draw.rect(surface, HOVER_BG if hovered else BG, self.rect)
        pygame.draw.rect(surface, FG, self.rect, 1)
        surface.blit(text, (self.rect.x + 20, self.rect.y + 12))


class SculptureApp:
    """Runs the engine inside a resizable pygame window."""

    def __init__(
        self,
        engine_config: EngineConfig | None = None,
        scene_config: SceneConfig | None = None,
        fps: int = 60,
        sound: bool = False,
    ):
        self.engine_config = engine_config or EngineConfig()
        self.scene_config = scene_config or SceneConfig()
        self.fps = fps
        self.start_with_sound = sound
        self.engine: SculptureEngine | None = None
        self.running = False

        self.lines_button = Button("Lines: random", self.on_randomize)
        self.restart_button = Button("New Sculpture", self.on_restart)
        self.sound_button = Button("Sound: OFF", self.on_toggle_sound)
        self.buttons = [self.lines_button, self.restart_button, self.sound_button]
        self.info_text = ""

    # ── Button callbacks ────────────────────────────────────────────────

    def on_randomize(self):
        line_config = self.engine.randomize_line_effect()
        self._sync_line_labels(line_config)

    def on_restart(self):
        self.engine.restart()

    def on_toggle_sound(self):
        enabled = self.engine.toggle_sound()
        self.sound_button.label = "Sound: ON" if enabled else "Sound: OFF"

    def _sync_line_labels(self, line_config):
        self.lines_button.label = line_config.label
        self.info_text = line_config.describe()

    # ── Layout & drawing ────────────────────────────────────────────────

    def _apply_layout(self, width: int):
        layout = layout_for_width(width)
        self.layout = layout
        self.engine.renderer.config.point_radius = layout["point_radius"]
        self.title_font = pygame.font.SysFont("monospace", int(layout["title_size"]), bold=True)
        self.font = pygame.font.SysFont("monospace", int(layout["text_size"]))

    def _draw_overlay(self, screen: pygame.Surface):
        pad = int(self.layout["padding"])
        gap = int(self.layout["gap"])
        mouse = pygame.mouse.get_pos()

        title = self.title_font.render(TITLE, True, FG)
        screen.blit(title, (pad, pad))

        y = pad + title.get_height() + gap
        for button in self.buttons:
            button.rect.topleft = (pad, y)
            button.draw(screen, self.font, button.rect.collidepoint(mouse))
            y += button.rect.height + gap

        if self.info_text:
            self._draw_info_box(screen, pad)

    def _draw_info_box(self, screen: pygame.Surface, pad: int):
        max_width = min(300, screen.get_width() - pad * 2)
        lines = _wrap(self.info_text, self.font, max_width - 40)
        line_h = self.font.get_linesize()
        box = pygame.Rect(0, 0, max_width, line_h * len(lines) + 24)
        box.bottomleft = (pad, screen.get_height() - pad)
        pygame.draw.rect(screen, BG, box)
        pygame.draw.rect(screen, FG, box, 1)
        for i, line in enumerate(lines):
            screen.blit(self.font.render(line, True, FG), (box.x + 20, box.y + 12 + i * line_h))

    # ── Main loop ───────────────────────────────────────────────────────

    def _handle_event(self, event):
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.VIDEORESIZE:
            self.engine.resize(event.w, event.h)
            self._apply_layout(event.w)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            for button in self.buttons:
                if button.rect.collidepoint(event.pos):
                    button.action()
                    break
        elif event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self.running = False
            elif event.key == pygame.K_l:
                self.on_randomize()
            elif event.key == pygame.K_n:
                self.on_restart()
            elif event.key == pygame.K_s:
                self.on_toggle_sound()

    def run(self):
        pygame.init()
        cfg = self.engine_config
        screen = pygame.display.set_mode((cfg.width, cfg.height), pygame.RESIZABLE)
        pygame.display.set_caption(TITLE)
        clock = pygame.time.Clock()

        self.engine = SculptureEngine(cfg, scene_config=self.scene_config)
        self._apply_layout(cfg.width)
        self._sync_line_labels(self.engine.line_config)
        if self.start_with_sound:
            self.on_toggle_sound()

        self.running = True
        try:
            while self.running:
                for event in pygame.event.get():
                    self._handle_event(event)
                screen = pygame.display.get_surface()
                self.engine.on_frame(screen)
                self._draw_overlay(screen)
                pygame.display.flip()
                clock.tick(self.fps)
        finally:
            self.engine.close()
            pygame.quit()


def _wrap(text: str, font: pygame.font.Font, width: int) -> list[str]:
    """Greedy word wrap to a pixel width."""
    lines, current = [], ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if current and font.size(candidate)[0] > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines
