"""
Perspective projection from sculpture space to screen space.
"""

from dataclasses import dataclass

import numpy as np

FOCAL_LENGTH = 400.0


@dataclass(frozen=True)
class Viewport:
    """Drawing surface dimensions in pixels."""
    width: int = 1280
    height: int = 720

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)


def project(position, viewport: Viewport) -> tuple[float, float]:
    """
    Project a 3D position to screen coordinates.

    Args:
        position: Sequence of (x, y, z). z must stay above -FOCAL_LENGTH.
        viewport: Target surface dimensions.

    Returns:
        (screen_x, screen_y) with the origin mapped to the viewport centre.
    """
    x, y, z = float(position[0]), float(position[1]), float(position[2])
    factor = FOCAL_LENGTH / (FOCAL_LENGTH + z)
    return (x * factor + viewport.width / 2, y * factor + viewport.height / 2)


def project_many(positions: np.ndarray, viewport: Viewport) -> np.ndarray:
    """Vectorized `project` over an (n, 3) array; returns (n, 2)."""
    positions = np.asarray(positions, dtype=float).reshape(-1, 3)
    factor = FOCAL_LENGTH / (FOCAL_LENGTH + positions[:, 2])
    screen = positions[:, :2] * factor[:, None]
    screen[:, 0] += viewport.width / 2
    screen[:, 1] += viewport.height / 2
    return screen
