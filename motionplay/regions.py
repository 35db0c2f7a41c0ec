"""
Explicit play-field geometry used to classify a point as forbidden,
permitted or goal.
"""
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .types import Point, RegionKind

EDGE_TOLERANCE = 1e-9


def segment_distance(p: Point, a: Point, b: Point) -> float:
    """Distance from point p to the segment a-b."""
    cx, cy = b[0] - a[0], b[1] - a[1]
    len_sq = cx * cx + cy * cy
    t = ((p[0] - a[0]) * cx + (p[1] - a[1]) * cy) / len_sq if len_sq != 0 else -1.0

    if t < 0:
        nx, ny = a
    elif t > 1:
        nx, ny = b
    else:
        nx, ny = a[0] + t * cx, a[1] + t * cy

    return math.hypot(p[0] - nx, p[1] - ny)


@dataclass(frozen=True)
class Rect:
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    def contains(self, p: Point) -> bool:
        return self.x_min <= p[0] <= self.x_max and self.y_min <= p[1] <= self.y_max


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    radius: float

    def contains(self, p: Point) -> bool:
        return math.hypot(p[0] - self.cx, p[1] - self.cy) <= self.radius


@dataclass(frozen=True)
class Polygon:
    """Simple polygon, even-odd rule. Points on an edge or vertex are inside."""
    vertices: Tuple[Point, ...]

    def contains(self, p: Point) -> bool:
        n = len(self.vertices)
        if any(segment_distance(p, self.vertices[i - 1], self.vertices[i]) <= EDGE_TOLERANCE for i in range(n)):
            return True

        x, y = p
        inside = False
        j = n - 1
        for i in range(n):
            xi, yi = self.vertices[i]
            xj, yj = self.vertices[j]
            if (yi > y) != (yj > y):
                x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
                if x < x_cross:
                    inside = not inside
            j = i
        return inside


@dataclass(frozen=True)
class Band:
    """All points within half_width of a polyline (e.g. a road corridor)."""
    path: Tuple[Point, ...]
    half_width: float

    def contains(self, p: Point) -> bool:
        if len(self.path) == 1:
            return math.hypot(p[0] - self.path[0][0], p[1] - self.path[0][1]) <= self.half_width
        return any(segment_distance(p, a, b) <= self.half_width
                   for a, b in zip(self.path, self.path[1:]))


class RegionMap:
    """
    Ordered list of (shape, kind); the first shape containing a point decides
    its kind, anything else gets the default kind.
    """

    def __init__(self, regions: Sequence[Tuple[object, RegionKind]],
                 default: RegionKind = RegionKind.FORBIDDEN):
        self.regions: List[Tuple[object, RegionKind]] = list(regions)
        self.default = default

    def classify(self, p: Point) -> RegionKind:
        for shape, kind in self.regions:
            if shape.contains(p):
                return kind
        return self.default
