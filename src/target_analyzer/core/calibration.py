#!/usr/bin/env python3
"""
Calibration
Converts pixel distances to millimetres using a pixels-per-mm scale
"""

import math
from typing import Optional


def pixels_to_mm(pixel_distance: float, scale: Optional[float]) -> Optional[float]:
    """Convert a pixel distance to mm, or None when uncalibrated"""
    if scale is None:
        return None
    return pixel_distance / scale


class Calibration:
    """Holds the pixels-per-mm scale for the currently loaded image"""

    def __init__(self):
        self.scale = None  # pixels per mm, None = no image loaded

    @property
    def is_calibrated(self) -> bool:
        return self.scale is not None

    def calibrate(self, pixels_per_mm: float):
        """
        Set the scale for a freshly loaded image

        Args:
            pixels_per_mm: Conversion factor, must be a positive finite number

        Raises:
            ValueError: If the scale is not usable
        """
        try:
            value = float(pixels_per_mm)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid scale: {pixels_per_mm!r}")

        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"Scale must be a positive number of pixels per mm, got {pixels_per_mm!r}")

        self.scale = value

    def clear(self):
        """Drop calibration (image removed)"""
        self.scale = None

    def to_mm(self, pixel_distance: float) -> Optional[float]:
        return pixels_to_mm(pixel_distance, self.scale)

    def status(self) -> str:
        return 'calibrated' if self.is_calibrated else 'uncalibrated'

    def to_dict(self) -> dict:
        return {
            'status': self.status(),
            'pixels_per_mm': self.scale,
        }
