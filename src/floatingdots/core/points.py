"""
Point simulation for the floating sculpture.

Two phases per sculpture generation:
- Spread: every point eases from the shared start position to its own target.
- Free roam: persistent-direction random walk with inelastic, diffusing bounces
  off the walls of the bounding volume.
"""

from dataclasses import dataclass

import numpy as np

# Bounding volume (world units)
XY_LIMIT = 400.0
Z_MIN = 0.0
Z_MAX = 400.0

SPREAD_DURATION_MS = 3000.0

MIN_SPEED = 0.5
MAX_SPEED = 2.0
MIN_CHANGE_MS = 2000.0
MAX_CHANGE_MS = 7000.0
DIRECTION_BLEND = 0.05  # weight of the freshly drawn direction
BOUNCE_JITTER = 0.1

MIN_POINTS = 3
MAX_POINTS = 55

_LOWER = np.array([-XY_LIMIT, -XY_LIMIT, Z_MIN])
_UPPER = np.array([XY_LIMIT, XY_LIMIT, Z_MAX])


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in-out on [0, 1]."""
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


def random_position(rng: np.random.Generator) -> np.ndarray:
    """Uniform position inside the bounding volume."""
    return np.array([
        rng.uniform(-XY_LIMIT, XY_LIMIT),
        rng.uniform(-XY_LIMIT, XY_LIMIT),
        rng.uniform(Z_MIN, Z_MAX),
    ])


def random_unit_vector(rng: np.random.Generator) -> np.ndarray:
    """Uniformly distributed direction on the unit sphere."""
    while True:
        v = rng.normal(size=3)
        norm = np.linalg.norm(v)
        if norm > 1e-9:
            return v / norm


def _normalize(v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    norm = np.linalg.norm(v)
    if norm < 1e-9:
        # Degenerate blend (opposite directions cancelled out)
        return random_unit_vector(rng)
    return v / norm


@dataclass
class MovementState:
    """Free-roam state, allocated once a point leaves the spread phase."""
    direction: np.ndarray
    speed: float
    next_change: float  # wall-clock ms


@dataclass
class Point:
    """A single sculpture vertex."""
    position: np.ndarray
    target: np.ndarray
    movement: MovementState | None = None
    last_position: np.ndarray | None = None

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.target = np.array(self.target, dtype=float)

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    @property
    def z(self) -> float:
        return float(self.position[2])


@dataclass
class Sculpture:
    """One generation of points sharing a start position and start time."""
    points: list[Point]
    start_position: np.ndarray
    start_time: float  # wall-clock ms
    spread_duration: float = SPREAD_DURATION_MS

    @classmethod
    def create(
        cls,
        count: int,
        now: float,
        rng: np.random.Generator,
        spread_duration: float = SPREAD_DURATION_MS,
    ) -> "Sculpture":
        """
        Build a fresh generation.

        Args:
            count: Number of points, in [MIN_POINTS, MAX_POINTS].
            now: Current wall-clock time in ms (becomes the start time).
            rng: Random source for the start position and targets.
            spread_duration: Length of the spread phase in ms; 0 starts at the targets.

        Raises:
            ValueError: If count is out of range or spread_duration is negative.
        """
        if spread_duration < 0:
            raise ValueError(f"spread_duration must be >= 0, got {spread_duration}")
        if not MIN_POINTS <= count <= MAX_POINTS:
            raise ValueError(
                f"point count must be in [{MIN_POINTS}, {MAX_POINTS}], got {count}"
            )
        start = random_position(rng)
        points = [
            Point(position=start.copy(), target=random_position(rng))
            for _ in range(count)
        ]
        return cls(
            points=points,
            start_position=start,
            start_time=now,
            spread_duration=spread_duration,
        )


class PointSimulation:
    """Advances every point of a sculpture once per frame."""

    def __init__(self, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def advance(self, sculpture: Sculpture, now: float):
        elapsed = now - sculpture.start_time
        duration = sculpture.spread_duration
        if elapsed <= duration:
            progress = 1.0
            if duration > 0:
                progress = ease_in_out_cubic(min(max(elapsed / duration, 0.0), 1.0))
            start = sculpture.start_position
            for point in sculpture.points:
                point.position = start + (point.target - start) * progress
            return

        for point in sculpture.points:
            if point.movement is None:
                # Spread phase finished: settle on the target before roaming
                point.position = point.target.copy()
                point.movement = self._new_movement(now)
            self._roam(point, now)

    def _new_movement(self, now: float) -> MovementState:
        return MovementState(
            direction=random_unit_vector(self.rng),
            speed=self.rng.uniform(MIN_SPEED, MAX_SPEED),
            next_change=now + self.rng.uniform(MIN_CHANGE_MS, MAX_CHANGE_MS),
        )

    def _roam(self, point: Point, now: float):
        move = point.movement

        if now > move.next_change:
            # Exponential smoothing towards a new heading, never a hard snap
            blended = (
                move.direction * (1.0 - DIRECTION_BLEND)
                + random_unit_vector(self.rng) * DIRECTION_BLEND
            )
            move.direction = _normalize(blended, self.rng)
            move.speed = self.rng.uniform(MIN_SPEED, MAX_SPEED)
            move.next_change = now + self.rng.uniform(MIN_CHANGE_MS, MAX_CHANGE_MS)

        position = point.position + move.direction * move.speed

        bounced = False
        for axis in range(3):
            if position[axis] < _LOWER[axis] or position[axis] > _UPPER[axis]:
                position[axis] = min(max(position[axis], _LOWER[axis]), _UPPER[axis])
                move.direction[axis] = -move.direction[axis]
                for other in range(3):
                    if other != axis:
                        move.direction[other] += self.rng.uniform(
                            -BOUNCE_JITTER, BOUNCE_JITTER
                        )
                bounced = True

        if bounced:
            move.direction = _normalize(move.direction, self.rng)

        point.position = position
