"""
Maps sculpture state to the noise drone.

Spatial spread opens the resonance and raises the level, compact shapes and
fast motion brighten the filter. The line style bends the cutoff, and long
distance-mode lines add bursts of crackle. The mapping itself (`compute_targets`) is
pure so it can be tested without an audio device; `AudioMapper` owns the
chain and the DISABLED/ENABLED state machine.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from floatingdots.audio.synth import NoiseChain, SynthConfig
from floatingdots.core.analyzer import SculptureStats
from floatingdots.core.lightning import LineEffectConfig

logger = logging.getLogger(__name__)

MIN_CUTOFF = 80.0
MAX_CUTOFF = 800.0
SIZE_NORMALIZER = 400.0
CUTOFF_CURVE = 1.5
MOVEMENT_CUTOFF_GAIN = 200.0

MIN_Q = 0.5
MAX_Q = 4.0

BASE_GAIN = 0.05
MAX_GAIN = 0.3
MOVEMENT_GAIN = 0.2
SPREAD_GAIN = 0.1

RAMP_SECONDS = 0.05
FADE_IN_SECONDS = 0.5
FADE_OUT_SECONDS = 0.15

# Distance-mode lines stronger than their base intensity crackle
CRACKLE_THRESHOLD = 1.0
CRACKLE_GAIN = 0.2
MAX_CRACKLE = 0.3


class AudioState(enum.Enum):
    DISABLED = 0
    ENABLED = 1


@dataclass
class AudioTargets:
    """Filter and level targets for one frame."""
    cutoff: float
    q: float
    gain: float
    crackle: float = 0.0


def frequency_modulation(
    line_config: LineEffectConfig,
    now_s: float,
    rng: np.random.Generator,
    intensity_factor: float = 0.0,
) -> float:
    """
    Cutoff multiplier contributed by the active line mode.

    `intensity_factor` is the squared mean distance-mode line strength (see
    `distance_intensity_factor`); stronger lines brighten the filter in normal
    mode and darken it in inverse mode.
    """
    if line_config.mode == "wave":
        return 1.0 + math.sin(now_s * line_config.speed_multiplier) * 0.5
    if line_config.mode == "random":
        return float(rng.uniform(0.5, 1.5))
    if line_config.mode == "distance":
        if line_config.distance_mode == "normal":
            return 1.0 + intensity_factor * 0.5
        return 1.0 / (1.0 + intensity_factor * 0.3)
    return 1.0


def crackle_amount(intensity_factor: float) -> float:
    """Gain added by each crackle pulse; zero at or below the threshold."""
    if intensity_factor <= CRACKLE_THRESHOLD:
        return 0.0
    return min(MAX_CRACKLE, (intensity_factor - CRACKLE_THRESHOLD) ** 2 * CRACKLE_GAIN)


def compute_targets(
    stats: SculptureStats,
    line_config: LineEffectConfig | None = None,
    now_s: float = 0.0,
    rng: np.random.Generator | None = None,
    intensity_factor: float = 0.0,
) -> AudioTargets:
    """
    Derive filter cutoff, resonance and gain from sculpture statistics.

    Args:
        stats: Analyzer output for the current frame.
        line_config: Active line style; modulates the cutoff in wave, random
            and distance mode.
        now_s: Current time in seconds (wave modulation phase).
        rng: Random source for random-mode modulation.
        intensity_factor: Distance-mode line strength for this frame.

    Returns:
        Targets clamped to their audible ranges; never NaN.
    """
    size = _finite(stats.average_distance_from_centroid)
    movement = max(_finite(stats.average_movement), 0.0)
    spread = max(_finite(stats.spread_ratio), 0.0)
    intensity_factor = max(_finite(intensity_factor), 0.0)

    compactness = max(0.0, 1.0 - size / SIZE_NORMALIZER)
    cutoff = (
        MIN_CUTOFF
        + (MAX_CUTOFF - MIN_CUTOFF) * compactness ** CUTOFF_CURVE
        + movement * MOVEMENT_CUTOFF_GAIN
    )
    crackle = 0.0
    if line_config is not None:
        rng = rng if rng is not None else np.random.default_rng()
        cutoff *= frequency_modulation(line_config, now_s, rng, intensity_factor)
        if line_config.mode == "distance":
            crackle = crackle_amount(intensity_factor)
    cutoff = min(max(cutoff, MIN_CUTOFF), MAX_CUTOFF)

    # Only the resonance saturates; the level is capped by MAX_GAIN alone
    q = MIN_Q + (MAX_Q - MIN_Q) * min(spread, 1.0)
    gain = min(MAX_GAIN, BASE_GAIN + movement * MOVEMENT_GAIN + spread * SPREAD_GAIN)

    return AudioTargets(cutoff=cutoff, q=q, gain=gain, crackle=crackle)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _default_chain_factory() -> NoiseChain:
    chain = NoiseChain(SynthConfig())
    chain.start()
    return chain


class AudioMapper:
    """
    Two-state sound controller.

    The chain is built lazily on the first enable. Any failure while doing so
    leaves the mapper DISABLED; the caller keeps animating.
    """

    def __init__(
        self,
        chain_factory: Callable[[], NoiseChain] | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.chain_factory = chain_factory or _default_chain_factory
        self.rng = rng if rng is not None else np.random.default_rng()
        self.chain: NoiseChain | None = None
        self.state = AudioState.DISABLED
        self.last_targets: AudioTargets | None = None

    @property
    def enabled(self) -> bool:
        return self.state is AudioState.ENABLED

    def set_enabled(self, enabled: bool) -> bool:
        """Drive the state machine; returns the resulting enabled flag."""
        if enabled:
            return self.enable()
        self.disable()
        return False

    def enable(self) -> bool:
        if self.enabled:
            return True

        if self.chain is None:
            try:
                self.chain = self.chain_factory()
            except Exception:
                logger.warning("Audio unavailable, continuing without sound", exc_info=True)
                self.chain = None
                return False

        self.chain.ramp_gain(BASE_GAIN, FADE_IN_SECONDS)
        self.state = AudioState.ENABLED
        logger.info("Sound enabled")
        return True

    def disable(self):
        if not self.enabled:
            return
        self.chain.ramp_gain(0.0, FADE_OUT_SECONDS)
        self.state = AudioState.DISABLED
        logger.info("Sound disabled")

    def update(
        self,
        stats: SculptureStats,
        line_config: LineEffectConfig | None = None,
        now_s: float = 0.0,
        intensity_factor: float = 0.0,
    ) -> AudioTargets | None:
        """Retarget the chain for this frame. No-op while disabled."""
        if not self.enabled:
            return None

        targets = compute_targets(stats, line_config, now_s, self.rng, intensity_factor)
        self.chain.ramp_frequency(targets.cutoff, RAMP_SECONDS)
        self.chain.ramp_q(targets.q, RAMP_SECONDS)
        self.chain.ramp_gain(targets.gain, RAMP_SECONDS)
        if targets.crackle > 0.0:
            self.chain.crackle(targets.crackle)
        self.last_targets = targets
        return targets

    def close(self):
        """Release the output stream."""
        self.state = AudioState.DISABLED
        chain, self.chain = self.chain, None
        if chain is not None:
            chain.close()
