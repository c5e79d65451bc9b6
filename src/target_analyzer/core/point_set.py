#!/usr/bin/env python3
"""
Point Set Manager
Keeps detected and manual shot holes plus the active selection.

Every circle gets a stable id when it is created, and the selection stores
ids rather than positions. Mutations that reorder or drop circles still clear
the selection, and lookups skip ids that no longer resolve.
"""

from typing import Iterable, List, Optional, Tuple

from .geometry import Circle, Point

DEFAULT_RADIUS_PX = 10.0


class PointSetManager:
    """Canonical set of shot points and the selection subset"""

    def __init__(self, default_radius_px: float = DEFAULT_RADIUS_PX):
        self.default_radius_px = default_radius_px

        self.detected: List[Circle] = []
        self.manual: List[Circle] = []
        self.selected_ids: List[int] = []  # click order
        self.next_circle_id = 1

    def _new_circle(self, x: float, y: float, radius: float) -> Circle:
        circle = Circle(float(x), float(y), float(radius), self.next_circle_id)
        self.next_circle_id += 1
        return circle

    @property
    def all_circles(self) -> List[Circle]:
        """Detected circles first, then manual ones"""
        return self.detected + self.manual

    def __len__(self):
        return len(self.detected) + len(self.manual)

    def get(self, circle_id: int) -> Optional[Circle]:
        for circle in self.all_circles:
            if circle.circle_id == circle_id:
                return circle
        return None

    def mean_radius(self) -> float:
        """Mean radius of all circles, or the default radius if there are none"""
        circles = self.all_circles
        if not circles:
            return self.default_radius_px
        return sum(c.radius for c in circles) / len(circles)

    def add_manual_point(self, point: Point) -> Circle:
        """Add a manual hole at point, sized like the existing holes"""
        circle = self._new_circle(point.x, point.y, self.mean_radius())
        self.manual.append(circle)
        return circle

    def remove_circle(self, circle_id: int) -> Optional[Circle]:
        """
        Remove a circle from whichever collection holds it

        Returns:
            The removed circle, or None if the id is unknown
        """
        circle = self.get(circle_id)
        if circle is None:
            return None

        if circle in self.detected:
            self.detected = [c for c in self.detected if c.circle_id != circle_id]
        else:
            self.manual = [c for c in self.manual if c.circle_id != circle_id]

        self.clear_selection()
        return circle

    def remove_circle_at(self, index: int) -> Optional[Circle]:
        """Remove by position in all_circles"""
        circles = self.all_circles
        if index < 0 or index >= len(circles):
            return None
        return self.remove_circle(circles[index].circle_id)

    def replace_detected(self, circles: Iterable[Tuple[float, float, float]]) -> List[Circle]:
        """
        Replace all detected circles with a new detection result

        Args:
            circles: Iterable of (x, y, radius) tuples in pixels
        """
        self.detected = [self._new_circle(x, y, r) for x, y, r in circles]
        self.clear_selection()
        return list(self.detected)

    def is_selected(self, circle_id: int) -> bool:
        return circle_id in self.selected_ids

    def toggle_select(self, circle_id: int, max_selected: Optional[int] = None) -> bool:
        """
        Toggle selection membership of a circle

        Returns:
            False if the id is unknown or the selection is already full,
            True otherwise
        """
        if self.get(circle_id) is None:
            return False

        if circle_id in self.selected_ids:
            self.selected_ids.remove(circle_id)
            return True

        if max_selected is not None and len(self.selected_circles) >= max_selected:
            return False

        self.selected_ids.append(circle_id)
        return True

    def clear_selection(self):
        self.selected_ids = []

    @property
    def selected_circles(self) -> List[Circle]:
        """Selected circles in click order, skipping ids that no longer exist"""
        by_id = {c.circle_id: c for c in self.all_circles}
        return [by_id[i] for i in self.selected_ids if i in by_id]

    def clear_detected(self):
        self.detected = []
        self.clear_selection()

    def clear_all(self):
        """Drop all circles and the selection (ids keep counting up)"""
        self.detected = []
        self.manual = []
        self.clear_selection()
