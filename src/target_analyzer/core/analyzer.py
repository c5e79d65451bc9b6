#!/usr/bin/env python3
"""
Target Analyzer
Mode state machine, click interpretation and detection bookkeeping on top of
the point set, calibration and group statistics.

Public operations never raise: failures become a no-op, an absent result or
a user-visible notice.
"""

import math
import threading
from collections import deque
from datetime import datetime
from typing import Callable, List, Optional

from .calibration import Calibration
from .geometry import DEFAULT_HIT_TOLERANCE_PX, Point, find_hit
from .group_stats import GroupMetrics, compute_distance, compute_group_metrics
from .point_set import DEFAULT_RADIUS_PX, PointSetManager

MODE_EDIT = 'edit'
MODE_DISTANCE = 'distance'
MODE_STDDEV = 'stddev'
MODES = [MODE_EDIT, MODE_DISTANCE, MODE_STDDEV]

DISTANCE_MAX_SELECTED = 2

STATUS_OK = 'ok'
STATUS_UNCALIBRATED = 'uncalibrated'
STATUS_INSUFFICIENT_POINTS = 'insufficient_points'


class Notice:
    """A short user-facing message (success, error or info)"""

    def __init__(self, message: str, kind: str = 'info'):
        self.message = message
        self.kind = kind
        self.timestamp = datetime.now()

    def to_dict(self) -> dict:
        return {
            'message': self.message,
            'type': self.kind,
            'timestamp': self.timestamp.isoformat(),
        }

    def __repr__(self):
        return f"Notice({self.kind}: {self.message})"


class TargetAnalyzer:
    """Shot group analysis state for a single target image"""

    def __init__(self, hit_tolerance_px: float = DEFAULT_HIT_TOLERANCE_PX,
                 default_radius_px: float = DEFAULT_RADIUS_PX,
                 on_notice: Optional[Callable[[Notice], None]] = None,
                 max_notices: int = 50):
        self.hit_tolerance_px = hit_tolerance_px
        self.points = PointSetManager(default_radius_px)
        self.calibration = Calibration()
        self.mode = MODE_EDIT

        self.notices = deque(maxlen=max_notices)
        self.on_notice = on_notice

        # Detection requests: only the latest generation may apply its result
        self.detection_generation = 0
        self.is_processing = False

        self.lock = threading.RLock()

    # ------------------------------------------------------------------
    # Notices

    def notify(self, message: str, kind: str = 'info'):
        notice = Notice(message, kind)
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)
        return notice

    @property
    def last_notice(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None

    # ------------------------------------------------------------------
    # Image lifecycle

    def on_image_ready(self, pixels_per_mm: float) -> bool:
        """New image loaded: reset all points and calibrate"""
        with self.lock:
            self._reset_points()
            # Any in-flight detection targets the previous image
            self.detection_generation += 1
            self.is_processing = False
            try:
                self.calibration.calibrate(pixels_per_mm)
            except ValueError as e:
                self.calibration.clear()
                self.notify(f"Calibration failed: {e}", 'error')
                return False
            return True

    def on_image_cleared(self):
        """Image removed: decalibrate and reset everything"""
        with self.lock:
            self.calibration.clear()
            self._reset_points()
            # Any in-flight detection targets the old image
            self.detection_generation += 1
            self.is_processing = False

    def _reset_points(self):
        self.points.clear_all()

    # ------------------------------------------------------------------
    # Mode state machine

    def set_mode(self, mode: str) -> bool:
        """Switch mode; the selection is always cleared, even for the same mode"""
        with self.lock:
            if mode not in MODES:
                self.notify(f"Invalid mode: {mode}", 'error')
                return False
            self.mode = mode
            self.points.clear_selection()
            return True

    def clear_selection(self):
        with self.lock:
            self.points.clear_selection()

    def on_pointer_click(self, point: Point):
        """
        Interpret a click at point (image pixels) according to the current mode

        edit: hit removes that circle, miss adds a manual point.
        distance/stddev: hit toggles selection, miss does nothing.
        """
        with self.lock:
            if not (math.isfinite(point.x) and math.isfinite(point.y)):
                self.notify(f"Invalid click position: {point.x}, {point.y}", 'error')
                return

            hit = find_hit(point, self.points.all_circles, self.hit_tolerance_px)

            if self.mode == MODE_EDIT:
                if hit is not None:
                    self.points.remove_circle(hit.circle_id)
                    self.notify('Point removed.', 'success')
                else:
                    self.points.add_manual_point(point)
                    self.notify('Manual point added.', 'success')
                return

            if hit is None:
                return

            if (self.mode == MODE_DISTANCE
                    and not self.points.is_selected(hit.circle_id)
                    and len(self.points.selected_circles) >= DISTANCE_MAX_SELECTED):
                self.notify('Max 2 points for distance. Clear selection to choose others.', 'info')
                return

            self.points.toggle_select(hit.circle_id)

    # ------------------------------------------------------------------
    # Detection generations

    def begin_detection(self) -> int:
        """Start a detection request; supersedes any request still running"""
        with self.lock:
            self.detection_generation += 1
            self.is_processing = True
            self.points.clear_detected()
            return self.detection_generation

    def complete_detection(self, generation: int, circles) -> bool:
        """
        Apply a detection result

        Args:
            generation: Value returned by begin_detection
            circles: Iterable of (x, y, radius) in pixels

        Returns:
            False if the result was superseded and discarded
        """
        with self.lock:
            if generation != self.detection_generation:
                return False
            detected = self.points.replace_detected(circles)
            self.is_processing = False
            self.notify(f"Detected {len(detected)} potential holes.", 'success')
            return True

    def fail_detection(self, generation: int, error=None) -> bool:
        """Detection raised: keep manual points, leave detected empty"""
        with self.lock:
            if generation != self.detection_generation:
                return False
            self.points.clear_detected()
            self.is_processing = False
            self.notify('Failed to process image.', 'error')
            return True

    # ------------------------------------------------------------------
    # Derived results (recomputed on every read)

    @property
    def scale(self) -> Optional[float]:
        return self.calibration.scale

    def governing_set(self) -> Optional[list]:
        """Circles used for group statistics in the current mode, None in distance mode"""
        if self.mode == MODE_EDIT:
            return self.points.all_circles
        if self.mode == MODE_STDDEV:
            return self.points.selected_circles
        return None

    def group_metrics(self) -> Optional[GroupMetrics]:
        with self.lock:
            circles = self.governing_set()
            if circles is None:
                return None
            return compute_group_metrics(circles, self.scale)

    def distance(self) -> Optional[float]:
        """Selected pair distance in mm (distance mode only)"""
        with self.lock:
            if self.mode != MODE_DISTANCE:
                return None
            selected = self.points.selected_circles
            if len(selected) != 2:
                return None
            return compute_distance(selected[0], selected[1], self.scale)

    def scale_status(self) -> str:
        return self.calibration.status()

    def results_status(self) -> str:
        """Why results are absent: uncalibrated vs. not enough points"""
        with self.lock:
            if not self.calibration.is_calibrated:
                return STATUS_UNCALIBRATED
            if self.mode == MODE_DISTANCE:
                return STATUS_OK if self.distance() is not None else STATUS_INSUFFICIENT_POINTS
            return STATUS_OK if self.group_metrics() is not None else STATUS_INSUFFICIENT_POINTS

    def snapshot(self) -> dict:
        """Current state for presentation, JSON serializable"""
        with self.lock:
            metrics = self.group_metrics()
            last = self.last_notice
            return {
                'mode': self.mode,
                'circles': [c.to_dict() for c in self.points.all_circles],
                'detected_count': len(self.points.detected),
                'manual_count': len(self.points.manual),
                'selected_ids': [c.circle_id for c in self.points.selected_circles],
                'calibration': self.calibration.to_dict(),
                'scale_status': self.scale_status(),
                'results_status': self.results_status(),
                'group_metrics': metrics.to_dict() if metrics else None,
                'distance_mm': self.distance(),
                'is_processing': self.is_processing,
                'last_notice': last.to_dict() if last else None,
            }

    def recent_notices(self, count: int = 10) -> List[Notice]:
        return list(self.notices)[-count:]
