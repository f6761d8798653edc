"""Offline export: ffmpeg encoding and simulated-clock recording."""

from floatingdots.io.encoder import encode_video
from floatingdots.io.recorder import SimulatedClock, record

__all__ = ["SimulatedClock", "encode_video", "record"]
