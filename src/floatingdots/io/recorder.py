"""
Offline recording of the sculpture to video.

Runs the engine on a simulated clock so every frame is exactly 1/fps apart,
independent of how fast the machine renders. Sound is rendered in a first
pass from the same seed (the simulation is deterministic per seed), written
to a WAV file, and muxed in while the second pass pipes frames to ffmpeg.
"""

import logging
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterator

import numpy as np
import pygame
import soundfile as sf

from floatingdots.audio.mapper import AudioMapper
from floatingdots.audio.synth import NoiseChain, SynthConfig
from floatingdots.engine import EngineConfig, SculptureEngine
from floatingdots.io.encoder import encode_video
from floatingdots.visualizers.scene import SceneConfig

logger = logging.getLogger(__name__)


class SimulatedClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float):
        self.now_ms += ms


def _offline_engine(
    engine_config: EngineConfig,
    scene_config: SceneConfig | None,
    synth_config: SynthConfig | None = None,
) -> tuple[SculptureEngine, SimulatedClock, NoiseChain | None]:
    clock = SimulatedClock()
    chain = None
    audio = None
    if synth_config is not None:
        seed_rng = np.random.default_rng(engine_config.seed)
        chain = NoiseChain(synth_config, rng=seed_rng, stream_factory=None)
        audio = AudioMapper(chain_factory=lambda: chain, rng=seed_rng)
    engine = SculptureEngine(engine_config, clock=clock, audio=audio, scene_config=scene_config)
    return engine, clock, chain


def render_audio(
    engine_config: EngineConfig,
    n_frames: int,
    fps: int,
    synth_config: SynthConfig | None = None,
) -> np.ndarray:
    """
    Render the drone that accompanies `n_frames` frames.

    Returns:
        Mono float32 samples at the synth sample rate.
    """
    synth_config = synth_config or SynthConfig()
    engine, clock, chain = _offline_engine(engine_config, None, synth_config)
    engine.set_sound_enabled(True)

    sr = synth_config.sample_rate
    blocks = []
    rendered = 0
    for i in range(n_frames):
        engine.on_frame()
        target = int(round((i + 1) * sr / fps))
        blocks.append(chain.render(target - rendered))
        rendered = target
        clock.advance(1000.0 / fps)

    if not blocks:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(blocks)


def render_frames(
    engine_config: EngineConfig,
    n_frames: int,
    fps: int,
    scene_config: SceneConfig | None = None,
) -> Iterator[np.ndarray]:
    """Yield (H, W, 3) uint8 frames on a simulated clock."""
    engine, clock, _ = _offline_engine(engine_config, scene_config)
    surface = pygame.Surface((engine_config.width, engine_config.height))
    for _ in range(n_frames):
        engine.on_frame(surface)
        yield engine.renderer.surface_to_array(surface)
        clock.advance(1000.0 / fps)


def record(
    output_path: Path,
    duration: float,
    engine_config: EngineConfig | None = None,
    scene_config: SceneConfig | None = None,
    fps: int = 60,
    quality: str = "medium",
    with_audio: bool = True,
    progress_callback: Callable[[int, int], None] | None = None,
) -> Path:
    """
    Record `duration` seconds of the sculpture to an MP4 file.

    Args:
        output_path: Output MP4 path.
        duration: Length in seconds.
        engine_config: Engine settings; set `seed` for reproducible output.
        scene_config: Renderer settings.
        fps: Frames per second.
        quality: Encoder quality preset.
        with_audio: Render and mux the drone.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the written file.
    """
    engine_config = engine_config or EngineConfig()
    if engine_config.seed is None:
        # Both passes must replay the same sculpture
        engine_config = replace(
            engine_config, seed=int(np.random.SeedSequence().entropy % (2**32))
        )

    n_frames = max(1, int(round(duration * fps)))
    frames = render_frames(engine_config, n_frames, fps, scene_config)

    if not with_audio:
        return encode_video(
            frames, output_path,
            width=engine_config.width, height=engine_config.height, fps=fps,
            quality=quality, total_frames=n_frames, progress_callback=progress_callback,
        )

    synth_config = SynthConfig()
    samples = render_audio(engine_config, n_frames, fps, synth_config)
    with tempfile.TemporaryDirectory(prefix="floatingdots_") as tmp:
        wav_path = Path(tmp) / "drone.wav"
        sf.write(wav_path, samples, synth_config.sample_rate)
        logger.info("Rendered %.1fs of audio to %s", len(samples) / synth_config.sample_rate, wav_path)
        return encode_video(
            frames, output_path,
            width=engine_config.width, height=engine_config.height, fps=fps,
            quality=quality, audio_path=wav_path, duration=duration,
            total_frames=n_frames, progress_callback=progress_callback,
        )
