#!/usr/bin/env python3
"""
Analyze a target image from the command line
Detects holes and prints group statistics for all of them

Usage: analyze_image.py <image> [config.yaml] [--debug]
"""

import os
import sys

import cv2

from target_analyzer.core.analyzer import TargetAnalyzer
from target_analyzer.detection.detection_runner import DetectionRunner
from target_analyzer.detection.hough_detector import HoughHoleDetector
from target_analyzer.utils.config import AnalyzerConfig
from target_analyzer.utils.results_report import build_results_report, format_results_report


def main():
    args = [a for a in sys.argv[1:] if not a.startswith('--')]
    debug = '--debug' in sys.argv

    if not args:
        print(__doc__)
        sys.exit(1)

    image_path = args[0]
    config = AnalyzerConfig(args[1], create=False) if len(args) > 1 else AnalyzerConfig(create=False)

    if not os.path.exists(image_path):
        print(f"❌ Image not found: {image_path}")
        sys.exit(1)

    image = cv2.imread(image_path)
    if image is None:
        print(f"❌ Could not load image: {image_path}")
        sys.exit(1)

    print("🎯 Target Group Analysis")
    print("=" * 50)
    print(f"Image: {image_path}")
    print(f"Resolution: {image.shape[1]}x{image.shape[0]}")
    print()

    analyzer = TargetAnalyzer(config.hit_tolerance_px, config.default_radius_px)
    detector = HoughHoleDetector(config.detection_params)
    detector.debug_mode = debug

    analyzer.on_image_ready(config.pixels_per_mm)
    DetectionRunner(analyzer, detector).run(image)
    print(analyzer.last_notice.message)

    for i, circle in enumerate(analyzer.points.all_circles):
        print(f"  Hole #{i + 1}: ({circle.x:.1f}, {circle.y:.1f}) r={circle.radius:.1f}px")
    print()

    report = build_results_report(analyzer, config.bullet_diameter_mm)
    print(format_results_report(report))

    if debug:
        detector.save_debug_frames()


if __name__ == "__main__":
    main()
