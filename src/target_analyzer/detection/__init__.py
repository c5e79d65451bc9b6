"""Detection algorithms for bullet holes"""

from .hough_detector import HoughHoleDetector
from .detection_runner import DetectionRunner

__all__ = ['HoughHoleDetector', 'DetectionRunner']
