#!/usr/bin/env python3
"""
Geometry Primitives
Points, circles and hit testing in image pixel space (origin top-left, y down)
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

DEFAULT_HIT_TOLERANCE_PX = 5.0


@dataclass(frozen=True)
class Point:
    """A position in image pixel coordinates"""
    x: float
    y: float


@dataclass(frozen=True)
class Circle:
    """A detected or manually placed shot hole"""
    x: float
    y: float
    radius: float
    circle_id: int = 0

    @property
    def center(self) -> Point:
        return Point(self.x, self.y)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'id': int(self.circle_id),
            'x': float(self.x),
            'y': float(self.y),
            'radius': float(self.radius),
        }


def distance(p1, p2) -> float:
    """Euclidean distance between two points (anything with .x and .y)"""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def within_circle(point, circle: Circle, tolerance_px: float = DEFAULT_HIT_TOLERANCE_PX) -> bool:
    """True if point falls inside the circle grown by tolerance_px"""
    return distance(point, circle) < circle.radius + tolerance_px


def find_hit(point, circles: Iterable[Circle],
             tolerance_px: float = DEFAULT_HIT_TOLERANCE_PX) -> Optional[Circle]:
    """
    Return the first circle containing point, in the given order.

    Overlapping circles are not ranked by distance: the earliest one wins,
    so detected circles shadow manual ones placed on top of them.
    """
    for circle in circles:
        if within_circle(point, circle, tolerance_px):
            return circle
    return None
