"""Floating Dots: a drifting point sculpture with lightning lines and a noise drone."""

from floatingdots.core.lightning import LineEffectConfig
from floatingdots.engine import EngineConfig, SculptureEngine

__version__ = "0.1.0"
__all__ = [
    "EngineConfig",
    "LineEffectConfig",
    "SculptureEngine",
]
