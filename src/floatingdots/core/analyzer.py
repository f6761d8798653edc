"""
Descriptive statistics of the sculpture's point cloud.

The audio mapper consumes these once per frame, so everything here must stay
finite: empty sculptures produce all-zero stats instead of NaNs.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from floatingdots.core.points import Point, XY_LIMIT


@dataclass
class BoundingBox:
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0


@dataclass
class SculptureStats:
    """Per-frame summary of the point cloud."""
    bounding_box: BoundingBox = field(default_factory=BoundingBox)
    average_distance_from_centroid: float = 0.0
    spread_ratio: float = 0.0
    average_movement: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "width": self.bounding_box.width,
            "height": self.bounding_box.height,
            "depth": self.bounding_box.depth,
            "average_distance_from_centroid": self.average_distance_from_centroid,
            "spread_ratio": self.spread_ratio,
            "average_movement": self.average_movement,
        }


class SculptureAnalyzer:
    """
    Computes bounding box, spread and motion energy of a point set.

    Movement is measured against the snapshot stored on each point by the
    previous call, so `analyze` must run exactly once per frame.
    """

    def __init__(self, spread_normalizer: float = XY_LIMIT):
        self.spread_normalizer = spread_normalizer

    def analyze(self, points: Sequence[Point]) -> SculptureStats:
        if not points:
            return SculptureStats()

        positions = np.array([p.position for p in points], dtype=float)

        extent = positions.max(axis=0) - positions.min(axis=0)
        bbox = BoundingBox(
            width=float(extent[0]),
            height=float(extent[1]),
            depth=float(extent[2]),
        )

        centroid = positions.mean(axis=0)
        avg_distance = float(np.linalg.norm(positions - centroid, axis=1).mean())

        # Points without a snapshot (first frame of a generation) count as still
        displacements = [
            float(np.linalg.norm(p.position - p.last_position))
            if p.last_position is not None else 0.0
            for p in points
        ]
        avg_movement = float(np.mean(displacements))

        for p in points:
            p.last_position = p.position.copy()

        return SculptureStats(
            bounding_box=bbox,
            average_distance_from_centroid=avg_distance,
            spread_ratio=avg_distance / self.spread_normalizer,
            average_movement=avg_movement,
        )
