"""Procedural noise drone driven by the sculpture."""

from floatingdots.audio.mapper import AudioMapper, AudioState, compute_targets
from floatingdots.audio.synth import AudioParam, NoiseChain, SynthConfig

__all__ = [
    "AudioMapper",
    "AudioParam",
    "AudioState",
    "NoiseChain",
    "SynthConfig",
    "compute_targets",
]
