#!/usr/bin/env python3
"""
Hough Circle Hole Detection
Finds bullet holes in a single scanned target image with cv2.HoughCircles
"""

import os
from datetime import datetime

import cv2
import numpy as np


class HoughHoleDetector:
    """Detects round bullet holes in one image"""

    def __init__(self, params: dict = None):
        self.debug_mode = False
        self.debug_frames = {}

        # Detection parameters
        self.blur_kernel = 9  # Gaussian kernel size (odd)
        self.blur_sigma = 2
        self.dp = 1  # Inverse accumulator resolution
        self.min_dist = 15  # Minimum distance between hole centres
        self.param1 = 100  # Canny upper threshold
        self.param2 = 20  # Accumulator threshold (lower finds more circles)
        self.min_radius = 5
        self.max_radius = 25

        if params:
            self.set_params(params)

    def set_params(self, params: dict):
        """Override detection parameters from a config mapping"""
        for key in ('blur_kernel', 'blur_sigma', 'dp', 'min_dist', 'param1',
                    'param2', 'min_radius', 'max_radius'):
            if key in params and params[key] is not None:
                setattr(self, key, params[key])

        if int(self.blur_kernel) % 2 == 0:
            raise ValueError(f"blur_kernel must be odd, got {self.blur_kernel}")

    def get_params(self) -> dict:
        return {
            'blur_kernel': self.blur_kernel,
            'blur_sigma': self.blur_sigma,
            'dp': self.dp,
            'min_dist': self.min_dist,
            'param1': self.param1,
            'param2': self.param2,
            'min_radius': self.min_radius,
            'max_radius': self.max_radius,
        }

    def _to_gray(self, image):
        if image.ndim == 2:
            return image
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    def detect(self, image):
        """
        Detect bullet holes in an image

        Args:
            image: Target image (numpy array, BGR/BGRA/gray, or file path)

        Returns:
            List of detected holes: [(x, y, radius), ...] in pixels

        Raises:
            ValueError: If the image is missing or cannot be loaded
        """
        if isinstance(image, str):
            path = image
            image = cv2.imread(path)
            if image is None:
                raise ValueError(f"Could not load image: {path}")

        if image is None:
            raise ValueError("No image to detect on")

        gray = self._to_gray(image)
        k = int(self.blur_kernel)
        blurred = cv2.GaussianBlur(gray, (k, k), self.blur_sigma, self.blur_sigma)

        circles = cv2.HoughCircles(
            blurred,
            cv2.HOUGH_GRADIENT,
            self.dp,
            self.min_dist,
            param1=self.param1,
            param2=self.param2,
            minRadius=int(self.min_radius),
            maxRadius=int(self.max_radius),
        )

        holes = []
        if circles is not None:
            for x, y, radius in circles[0]:
                holes.append((float(x), float(y), float(radius)))

        if self.debug_mode:
            self._create_debug_frames(image, blurred, holes)

        return holes

    def draw_overlay(self, frame, circles, selected_ids=None, centroid=None):
        """
        Draw hole markers on a copy of frame

        Args:
            frame: Image to draw on
            circles: Circles to draw (objects with x, y, radius, circle_id)
            selected_ids: Ids to highlight
            centroid: Optional (x, y) group centre in pixels

        Returns:
            Frame with overlays drawn
        """
        overlay_frame = frame.copy()
        if overlay_frame.ndim == 2:
            overlay_frame = cv2.cvtColor(overlay_frame, cv2.COLOR_GRAY2BGR)

        selected_ids = set(selected_ids or [])

        for i, circle in enumerate(circles):
            x, y, radius = int(round(circle.x)), int(round(circle.y)), int(round(circle.radius))

            if circle.circle_id in selected_ids:
                color = (0, 255, 255)  # Yellow for selected
                thickness = 3
            else:
                color = (0, 255, 0)  # Green for others
                thickness = 2

            cv2.circle(overlay_frame, (x, y), radius, color, thickness)
            cv2.circle(overlay_frame, (x, y), 2, color, -1)

            label = f"#{i + 1}"
            label_pos = (x - 10, y - radius - 8)
            cv2.putText(overlay_frame, label, label_pos, cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)

        if centroid is not None:
            cx, cy = int(round(centroid[0])), int(round(centroid[1]))
            cross_size = 10
            cv2.line(overlay_frame, (cx - cross_size, cy), (cx + cross_size, cy), (0, 0, 255), 2)
            cv2.line(overlay_frame, (cx, cy - cross_size), (cx, cy + cross_size), (0, 0, 255), 2)

        return overlay_frame

    def _create_debug_frames(self, image, blurred, holes):
        """Create debug visualization frames"""
        result_img = image.copy()
        if result_img.ndim == 2:
            result_img = cv2.cvtColor(result_img, cv2.COLOR_GRAY2BGR)
        elif result_img.shape[2] == 4:
            result_img = cv2.cvtColor(result_img, cv2.COLOR_BGRA2BGR)

        for i, (x, y, radius) in enumerate(holes):
            center = (int(x), int(y))
            cv2.circle(result_img, center, int(radius), (0, 255, 0), 2)
            cv2.putText(result_img, f"#{i + 1} r:{radius:.1f}", (center[0] - 20, center[1] - int(radius) - 6),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 255, 0), 1)

        edges = cv2.Canny(blurred, self.param1 / 2, self.param1)

        self.debug_frames = {
            'blurred': cv2.cvtColor(blurred, cv2.COLOR_GRAY2BGR),
            'edges': cv2.cvtColor(edges, cv2.COLOR_GRAY2BGR),
            'result': result_img,
            'combined': np.hstack([cv2.cvtColor(edges, cv2.COLOR_GRAY2BGR), result_img]),
        }

    def get_debug_frame(self, frame_type="combined"):
        """Get debug visualization frame"""
        return self.debug_frames.get(frame_type)

    def save_debug_frames(self, output_dir="test_outputs"):
        """Save all debug frames to disk"""
        os.makedirs(output_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        for frame_type, frame in self.debug_frames.items():
            filename = f"hough_detection_{frame_type}_{timestamp}.jpg"
            filepath = os.path.join(output_dir, filename)
            cv2.imwrite(filepath, frame)
            print(f"Saved debug frame: {filepath}")
