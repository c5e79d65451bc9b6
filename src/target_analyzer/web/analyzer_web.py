#!/usr/bin/env python3
"""
Target Analyzer Web Server
Serves the group analyzer as a JSON API over HTTP
"""

import math
import sys
import threading
from functools import partial
from http.server import HTTPServer
from socketserver import ThreadingMixIn

import cv2

from target_analyzer.core.analyzer import TargetAnalyzer
from target_analyzer.core.geometry import Point
from target_analyzer.detection.detection_runner import DetectionRunner
from target_analyzer.detection.hough_detector import HoughHoleDetector
from target_analyzer.utils.config import AnalyzerConfig
from target_analyzer.utils.image_store import (
    decode_image,
    load_default_image,
    reset_default_image,
    save_default_image,
)
from target_analyzer.utils.results_report import build_results_report
from target_analyzer.web.analyzer_handler import AnalyzerHandler


class AnalyzerController:
    """Owns the current image, the analyzer and the detector"""

    def __init__(self, config: AnalyzerConfig, background_detection: bool = True):
        self.config = config
        self.background_detection = background_detection

        self.analyzer = TargetAnalyzer(
            hit_tolerance_px=config.hit_tolerance_px,
            default_radius_px=config.default_radius_px,
            on_notice=self._print_notice,
        )
        self.detector = HoughHoleDetector(config.detection_params)
        self.runner = DetectionRunner(self.analyzer, self.detector)

        self.image = None
        self.bullet_diameter_mm = config.bullet_diameter_mm
        self.lock = threading.Lock()

    def _print_notice(self, notice):
        print(f"[{notice.kind}] {notice.message}")

    # Image lifecycle

    def load_image(self, image):
        """Make image current, calibrate and detect holes"""
        if image is None:
            return False, "Could not decode image"

        with self.lock:
            self.image = image

        if not self.analyzer.on_image_ready(self.config.pixels_per_mm):
            return False, self.analyzer.last_notice.message

        self.detect()
        height, width = image.shape[:2]
        return True, f"Image loaded ({width}x{height})"

    def load_image_bytes(self, data: bytes):
        return self.load_image(decode_image(data))

    def load_startup_image(self):
        """Load the saved default image if there is one"""
        image = load_default_image(self.config.default_image_path)
        if image is None:
            print(f"No default image at {self.config.default_image_path}")
            return False, "No default image"
        return self.load_image(image)

    def clear_image(self):
        with self.lock:
            self.image = None
        self.analyzer.on_image_cleared()
        return True, "Image cleared"

    def detect(self):
        """(Re)run hole detection on the current image"""
        with self.lock:
            image = None if self.image is None else self.image.copy()

        if image is None:
            return False, "No image loaded"

        if self.background_detection:
            generation = self.runner.submit(image)
            return True, f"Detection started (generation {generation})"

        self.runner.run(image)
        return True, self.analyzer.last_notice.message

    # Interaction

    def click(self, x, y):
        try:
            point = Point(float(x), float(y))
        except (TypeError, ValueError):
            return False, f"Invalid click position: {x}, {y}"
        if not (math.isfinite(point.x) and math.isfinite(point.y)):
            return False, f"Invalid click position: {x}, {y}"
        self.analyzer.on_pointer_click(point)
        notice = self.analyzer.last_notice
        return True, notice.message if notice else ""

    def set_mode(self, mode):
        if self.analyzer.set_mode(mode):
            return True, f"Mode set to {mode}"
        return False, self.analyzer.last_notice.message

    def clear_selection(self):
        self.analyzer.clear_selection()
        return True, "Selection cleared"

    def set_bullet_diameter(self, diameter):
        try:
            value = float(diameter)
        except (TypeError, ValueError):
            return False, f"Invalid bullet diameter: {diameter}"
        if value < 0:
            return False, "Bullet diameter must not be negative"
        self.bullet_diameter_mm = value
        return True, f"Bullet diameter set to {value:.2f} mm"

    # Default image

    def save_default(self):
        with self.lock:
            image = self.image
        return save_default_image(image, self.config.default_image_path)

    def reset_default(self):
        reset_default_image(self.config.default_image_path)
        self.clear_image()
        return True, "Restored factory default image."

    # Views

    def get_state(self):
        state = self.analyzer.snapshot()
        state['has_image'] = self.image is not None
        state['bullet_diameter_mm'] = self.bullet_diameter_mm
        return state

    def get_results(self):
        return build_results_report(self.analyzer, self.bullet_diameter_mm)

    def get_overlay_jpeg(self):
        """Current image with holes, selection and centroid drawn, as JPEG bytes"""
        with self.lock:
            if self.image is None:
                return None
            image = self.image.copy()

        with self.analyzer.lock:
            circles = self.analyzer.points.all_circles
            selected = self.analyzer.points.selected_ids
            metrics = self.analyzer.group_metrics()

        overlay = self.detector.draw_overlay(
            image, circles, selected, metrics.centroid if metrics else None
        )
        ok, buffer = cv2.imencode('.jpg', overlay, [cv2.IMWRITE_JPEG_QUALITY, 85])
        return buffer.tobytes() if ok else None


class ThreadingHTTPServer(ThreadingMixIn, HTTPServer):
    allow_reuse_address = True
    daemon_threads = True


def main():
    print("🎯 Starting Target Analyzer...")

    config_file = sys.argv[1] if len(sys.argv) > 1 else "analyzer_config.yaml"
    config = AnalyzerConfig(config_file)

    controller = AnalyzerController(config)
    controller.load_startup_image()

    host, port = config.server_address
    handler_factory = partial(AnalyzerHandler, controller)
    server = ThreadingHTTPServer((host, port), handler_factory)
    print(f"🌐 Server starting on port {port}...")
    print(f"🔧 API endpoints: http://localhost:{port}/api/")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n🛑 Shutting down...")
        server.shutdown()


if __name__ == "__main__":
    main()
