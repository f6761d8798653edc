"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from floatingdots.audio.mapper import AudioMapper
from floatingdots.audio.synth import NoiseChain, SynthConfig
from floatingdots.io.recorder import SimulatedClock

# Small sample rate keeps offline audio renders fast
TEST_SR = 8000


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random source so failures reproduce."""
    return np.random.default_rng(1234)


@pytest.fixture
def clock() -> SimulatedClock:
    """Millisecond clock starting at 0 that only moves on `advance`."""
    return SimulatedClock()


@pytest.fixture
def synth_config() -> SynthConfig:
    return SynthConfig(sample_rate=TEST_SR, block_size=256, buffer_seconds=0.25)


class FakeStream:
    """Stands in for a sounddevice OutputStream."""

    def __init__(self, config, callback):
        self.config = config
        self.callback = callback
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True

    def pull(self, frames: int) -> np.ndarray:
        """Run one device callback and return what it wrote."""
        out = np.zeros((frames, self.config.channels), dtype=np.float32)
        self.callback(out, frames, None, None)
        return out


@pytest.fixture
def stream_factory():
    """Factory recording every FakeStream it opens."""
    opened = []

    def factory(config, callback):
        stream = FakeStream(config, callback)
        opened.append(stream)
        return stream

    factory.opened = opened
    return factory


@pytest.fixture
def offline_mapper(synth_config, rng) -> AudioMapper:
    """AudioMapper whose chain renders offline instead of opening a device."""
    return AudioMapper(
        chain_factory=lambda: NoiseChain(synth_config, rng=rng, stream_factory=None),
        rng=rng,
    )


@pytest.fixture
def broken_mapper() -> AudioMapper:
    """AudioMapper whose output device cannot be opened."""

    def factory():
        raise OSError("PortAudio library not found")

    return AudioMapper(chain_factory=factory)
