#!/usr/bin/env python3
"""
Group Statistics Engine
Extreme spread, per-axis standard deviation and mean radius of a shot group

All math runs in pixel space; results are divided by the scale on output.
"""

from typing import Optional, Sequence

import numpy as np

from .calibration import pixels_to_mm
from .geometry import Circle, distance


class GroupMetrics:
    """Derived statistics for one governing set of shots (mm unless noted)"""

    def __init__(self, std_dev_x: float, std_dev_y: float, mean_radius: float,
                 extreme_spread: float, count: int, centroid=(0.0, 0.0)):
        self.std_dev_x = std_dev_x
        self.std_dev_y = std_dev_y
        self.mean_radius = mean_radius
        self.extreme_spread = extreme_spread
        self.count = count
        self.centroid = centroid  # (x, y) in pixels, for overlays

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'std_dev': {'x': float(self.std_dev_x), 'y': float(self.std_dev_y)},
            'mean_radius': float(self.mean_radius),
            'extreme_spread': float(self.extreme_spread),
            'count': int(self.count),
            'centroid_px': {'x': float(self.centroid[0]), 'y': float(self.centroid[1])},
        }

    def __repr__(self):
        return (f"GroupMetrics(count={self.count}, es={self.extreme_spread:.3f}mm, "
                f"mr={self.mean_radius:.3f}mm, sd=({self.std_dev_x:.3f}, {self.std_dev_y:.3f})mm)")


def max_pairwise_distance(points: np.ndarray) -> float:
    """
    Exact maximum distance over all unordered pairs of an (n, 2) array

    Squared distances are compared and a single sqrt is taken at the end.
    """
    if len(points) < 2:
        return 0.0
    diffs = points[:, np.newaxis, :] - points[np.newaxis, :, :]
    squared = np.einsum('ijk,ijk->ij', diffs, diffs)
    return float(np.sqrt(squared.max()))


def compute_group_metrics(circles: Sequence[Circle], scale: Optional[float]) -> Optional[GroupMetrics]:
    """
    Compute group statistics for the given circles

    Args:
        circles: Governing set of shots (anything with .x and .y)
        scale: Pixels per mm, or None when uncalibrated

    Returns:
        GroupMetrics, or None when uncalibrated or fewer than 2 shots
    """
    if scale is None or len(circles) < 2:
        return None

    points = np.array([[c.x, c.y] for c in circles], dtype=np.float64)
    n = len(points)

    centroid = points.mean(axis=0)
    deviations = points - centroid

    variance = (deviations ** 2).sum(axis=0) / n
    std_dev = np.sqrt(variance) / scale

    radial = np.sqrt((deviations ** 2).sum(axis=1))
    mean_radius = radial.mean() / scale

    extreme_spread = max_pairwise_distance(points) / scale

    return GroupMetrics(
        std_dev_x=float(std_dev[0]),
        std_dev_y=float(std_dev[1]),
        mean_radius=float(mean_radius),
        extreme_spread=float(extreme_spread),
        count=n,
        centroid=(float(centroid[0]), float(centroid[1])),
    )


def compute_distance(c1, c2, scale: Optional[float]) -> Optional[float]:
    """Centre-to-centre distance in mm, or None when uncalibrated"""
    return pixels_to_mm(distance(c1, c2), scale)


def edge_distance(center_distance_mm: float, bullet_diameter_mm: float) -> float:
    """Gap between hole edges: centre distance minus one calibre, floored at 0"""
    return max(0.0, center_distance_mm - bullet_diameter_mm)
