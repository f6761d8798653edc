"""
Noise drone signal chain: looping noise buffer -> resonant lowpass -> gain.

Parameters follow a ramp schedule on the chain's own sample clock, so the
frame loop only has to retarget them; the audio callback evaluates the ramps
block by block. The chain renders the same way whether it feeds a live
sounddevice stream or an offline buffer.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy.signal import lfilter

logger = logging.getLogger(__name__)

# Floor for exponential ramps, which cannot cross or touch zero
_EXP_FLOOR = 1e-4

# Crackle pulse shape: held, then decaying with this time constant
PULSE_HOLD = 0.01
PULSE_DECAY = 0.01
PULSE_SPACING = 0.02
_PULSE_LIFETIME = PULSE_HOLD + 20 * PULSE_DECAY


@dataclass
class SynthConfig:
    """Configuration for the noise drone."""
    sample_rate: int = 44100
    block_size: int = 512
    channels: int = 1
    buffer_seconds: float = 0.5
    noise_amplitude: float = 0.5
    initial_cutoff: float = 400.0
    initial_q: float = 1.5
    initial_gain: float = 0.0
    latency: str = "low"


class AudioParam:
    """
    A scalar parameter with one active ramp.

    Each retarget starts from the value the parameter has at the moment of
    the call, so overlapping ramps chain smoothly instead of jumping. Short
    additive pulses can be layered on top without disturbing the ramp.
    """

    def __init__(self, value: float):
        self._from_value = float(value)
        self._to_value = float(value)
        self._from_time = 0.0
        self._to_time = 0.0
        self._exponential = False
        self._pulses: list[tuple[float, float]] = []  # (start, amount)

    @property
    def target(self) -> float:
        return self._to_value

    def value_at(self, t: float) -> float:
        return self._ramp_value(t) + float(self._pulse_sum(np.array([t]))[0])

    def values(self, times: np.ndarray) -> np.ndarray:
        """Vectorized `value_at` for a block of sample times."""
        t = np.asarray(times, dtype=float)
        if self._to_time <= self._from_time:
            out = np.full(t.shape, self._to_value)
        else:
            frac = np.clip((t - self._from_time) / (self._to_time - self._from_time), 0.0, 1.0)
            if self._exponential:
                out = self._from_value * (self._to_value / self._from_value) ** frac
            else:
                out = self._from_value + (self._to_value - self._from_value) * frac
            out = np.where(t >= self._to_time, self._to_value, out)
        return out + self._pulse_sum(t)

    def add_pulse(self, amount: float, t: float):
        """Jump up by `amount` at `t`, hold briefly, then decay back."""
        self._pulses = [p for p in self._pulses if t - p[0] < _PULSE_LIFETIME]
        self._pulses.append((t, float(amount)))

    def _pulse_sum(self, t: np.ndarray) -> np.ndarray:
        total = np.zeros(t.shape)
        for start, amount in self._pulses:
            age = t - start
            decay = np.exp(-np.maximum(age - PULSE_HOLD, 0.0) / PULSE_DECAY)
            total += np.where(age >= 0.0, amount * decay, 0.0)
        return total

    def _ramp_value(self, t: float) -> float:
        if t >= self._to_time or self._to_time <= self._from_time:
            return self._to_value
        if t <= self._from_time:
            return self._from_value
        frac = (t - self._from_time) / (self._to_time - self._from_time)
        if self._exponential:
            return self._from_value * (self._to_value / self._from_value) ** frac
        return self._from_value + (self._to_value - self._from_value) * frac

    def set_value(self, value: float, t: float):
        self._from_value = self._to_value = float(value)
        self._from_time = self._to_time = t
        self._exponential = False
        self._pulses = []

    def linear_ramp_to(self, value: float, t: float, duration: float):
        self._schedule(float(value), t, duration, exponential=False)

    def exponential_ramp_to(self, value: float, t: float, duration: float):
        value = max(float(value), _EXP_FLOOR)
        self._schedule(value, t, duration, exponential=True)

    def _schedule(self, value: float, t: float, duration: float, exponential: bool):
        current = self._ramp_value(t)
        if exponential:
            current = max(current, _EXP_FLOOR)
        self._from_value = current
        self._to_value = value
        self._from_time = t
        self._to_time = t + max(duration, 0.0)
        self._exponential = exponential


def lowpass_coefficients(cutoff: float, q: float, sample_rate: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Resonant second-order lowpass (RBJ audio EQ cookbook).

    Returns:
        (b, a) normalized so that a[0] == 1, ready for scipy's lfilter.
    """
    cutoff = min(max(cutoff, 1.0), sample_rate * 0.49)
    q = max(q, 1e-3)
    w0 = 2.0 * math.pi * cutoff / sample_rate
    cos_w0 = math.cos(w0)
    alpha = math.sin(w0) / (2.0 * q)

    b = np.array([(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0])
    a = np.array([1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha])
    return b / a[0], a / a[0]


def open_output_stream(config: SynthConfig, callback: Callable):
    """Open a sounddevice output stream feeding `callback`."""
    # PortAudio is loaded on import; a missing library surfaces as OSError here
    import sounddevice as sd

    return sd.OutputStream(
        samplerate=config.sample_rate,
        channels=config.channels,
        dtype="float32",
        blocksize=config.block_size,
        callback=callback,
        latency=config.latency,
    )


class NoiseChain:
    """
    Owned noise -> lowpass -> gain chain.

    Acquire with `start()` (opens the output stream) and release with
    `close()`. Without a stream the chain can still be pulled with `render()`.
    """

    def __init__(
        self,
        config: SynthConfig | None = None,
        rng: np.random.Generator | None = None,
        stream_factory: Callable | None = open_output_stream,
    ):
        self.cfg = config or SynthConfig()
        rng = rng if rng is not None else np.random.default_rng()

        n = max(1, int(self.cfg.sample_rate * self.cfg.buffer_seconds))
        self.noise = (rng.uniform(-1.0, 1.0, n) * self.cfg.noise_amplitude).astype(np.float32)

        self.frequency = AudioParam(self.cfg.initial_cutoff)
        self.q = AudioParam(self.cfg.initial_q)
        self.gain = AudioParam(self.cfg.initial_gain)

        self._stream_factory = stream_factory
        self._stream = None
        self._lock = threading.Lock()
        self._frames_rendered = 0
        self._read_pos = 0
        self._zi = np.zeros(2)

    @property
    def current_time(self) -> float:
        """Seconds of audio rendered so far (the chain's own clock)."""
        return self._frames_rendered / self.cfg.sample_rate

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self):
        if self._stream is not None or self._stream_factory is None:
            return
        stream = self._stream_factory(self.cfg, self._callback)
        try:
            stream.start()
        except Exception:
            stream.close()
            raise
        self._stream = stream
        logger.info(
            "Audio stream started (%d Hz, block %d)",
            self.cfg.sample_rate, self.cfg.block_size,
        )

    def close(self):
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Audio stream closed")

    # ── Parameter scheduling (frame thread) ─────────────────────────────

    def ramp_frequency(self, value: float, duration: float):
        with self._lock:
            self.frequency.exponential_ramp_to(value, self.current_time, duration)

    def ramp_q(self, value: float, duration: float):
        with self._lock:
            self.q.linear_ramp_to(value, self.current_time, duration)

    def ramp_gain(self, value: float, duration: float):
        with self._lock:
            self.gain.linear_ramp_to(value, self.current_time, duration)

    def crackle(self, amount: float, pulses: int = 3):
        """Schedule a burst of short gain pulses starting now."""
        with self._lock:
            now = self.current_time
            for i in range(pulses):
                self.gain.add_pulse(amount, now + i * PULSE_SPACING)

    # ── Rendering (audio thread) ────────────────────────────────────────

    def render(self, frames: int) -> np.ndarray:
        """Pull `frames` mono samples and advance the chain clock."""
        sr = self.cfg.sample_rate
        with self._lock:
            t0 = self.current_time
            cutoff = self.frequency.value_at(t0)
            q = self.q.value_at(t0)
            # Gain is evaluated per sample so ramps and pulses land on the right sample
            gains = self.gain.values((self._frames_rendered + np.arange(frames)) / sr)

        idx = (self._read_pos + np.arange(frames)) % len(self.noise)
        block = self.noise[idx].astype(np.float64)
        self._read_pos = int((self._read_pos + frames) % len(self.noise))

        b, a = lowpass_coefficients(cutoff, q, sr)
        filtered, self._zi = lfilter(b, a, block, zi=self._zi)

        out = np.clip(filtered * gains, -1.0, 1.0).astype(np.float32)

        self._frames_rendered += frames
        return out

    def _callback(self, outdata, frames, time_info, status):
        if status:
            logger.debug("Audio callback status: %s", status)
        outdata[:] = self.render(frames)[:, None]
