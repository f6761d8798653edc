"""Simulation, projection, line generation and analysis."""

from floatingdots.core.analyzer import SculptureAnalyzer, SculptureStats
from floatingdots.core.lightning import LineEffectConfig, generate
from floatingdots.core.points import Point, PointSimulation, Sculpture
from floatingdots.core.projector import Viewport, project, project_many

__all__ = [
    "LineEffectConfig",
    "Point",
    "PointSimulation",
    "Sculpture",
    "SculptureAnalyzer",
    "SculptureStats",
    "Viewport",
    "generate",
    "project",
    "project_many",
]
