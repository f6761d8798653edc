"""Visualization modules for the sculpture."""

from floatingdots.visualizers.scene import SceneConfig, SceneRenderer

__all__ = ["SceneConfig", "SceneRenderer"]
