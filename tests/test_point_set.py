#!/usr/bin/env python3
"""
Point Set Manager Tests
"""

import pytest

from target_analyzer.core.geometry import Point
from target_analyzer.core.point_set import PointSetManager


def make_points():
    points = PointSetManager()
    points.replace_detected([(10, 10, 4), (50, 50, 6)])
    points.add_manual_point(Point(90, 90))
    return points


def test_all_circles_detected_before_manual():
    points = make_points()
    circles = points.all_circles

    assert [(c.x, c.y) for c in circles] == [(10, 10), (50, 50), (90, 90)]
    assert len(points) == 3


def test_ids_are_unique_and_increasing():
    points = make_points()
    ids = [c.circle_id for c in points.all_circles]

    assert ids == sorted(ids)
    assert len(set(ids)) == 3

    points.replace_detected([(1, 1, 1)])
    assert points.detected[0].circle_id > max(ids)


def test_manual_point_radius_is_mean_of_existing():
    points = PointSetManager()
    points.replace_detected([(0, 0, 4), (10, 0, 8)])

    circle = points.add_manual_point(Point(5, 5))

    assert circle.radius == pytest.approx(6.0)


def test_manual_point_default_radius_when_empty():
    points = PointSetManager()
    circle = points.add_manual_point(Point(5, 5))
    assert circle.radius == pytest.approx(10.0)


def test_manual_add_keeps_selection():
    points = make_points()
    first = points.all_circles[0].circle_id
    points.toggle_select(first)

    points.add_manual_point(Point(200, 200))

    assert points.selected_ids == [first]


def test_remove_circle_from_either_collection_clears_selection():
    points = make_points()
    detected_id = points.detected[0].circle_id
    manual_id = points.manual[0].circle_id
    points.toggle_select(detected_id)
    points.toggle_select(manual_id)

    removed = points.remove_circle(manual_id)

    assert removed.circle_id == manual_id
    assert points.manual == []
    assert points.selected_ids == []

    points.remove_circle(detected_id)
    assert len(points.detected) == 1
    assert detected_id not in [c.circle_id for c in points.all_circles]


def test_remove_circle_at_resolves_position():
    points = make_points()
    manual_id = points.manual[0].circle_id

    removed = points.remove_circle_at(2)

    assert removed.circle_id == manual_id
    assert points.remove_circle_at(5) is None
    assert points.remove_circle_at(-1) is None


def test_remove_unknown_id_is_noop():
    points = make_points()
    assert points.remove_circle(9999) is None
    assert len(points) == 3


def test_toggle_select_on_and_off_in_click_order():
    points = make_points()
    a, b, c = [circle.circle_id for circle in points.all_circles]

    points.toggle_select(c)
    points.toggle_select(a)
    assert points.selected_ids == [c, a]

    points.toggle_select(c)
    assert points.selected_ids == [a]


def test_toggle_select_respects_cap():
    points = make_points()
    a, b, c = [circle.circle_id for circle in points.all_circles]

    assert points.toggle_select(a, max_selected=2)
    assert points.toggle_select(b, max_selected=2)
    assert not points.toggle_select(c, max_selected=2)
    assert points.selected_ids == [a, b]

    # Deselecting is always allowed
    assert points.toggle_select(b, max_selected=2)
    assert points.selected_ids == [a]


def test_toggle_select_unknown_id():
    points = make_points()
    assert not points.toggle_select(12345)
    assert points.selected_ids == []


def test_replace_detected_clears_selection_and_keeps_manual():
    points = make_points()
    points.toggle_select(points.detected[0].circle_id)
    manual = list(points.manual)

    points.replace_detected([(300, 300, 5)])

    assert points.selected_ids == []
    assert points.manual == manual
    assert [(c.x, c.y) for c in points.detected] == [(300, 300)]


def test_selected_circles_skips_stale_ids():
    points = make_points()
    a = points.detected[0].circle_id
    points.selected_ids = [a, 424242]

    assert [c.circle_id for c in points.selected_circles] == [a]


def test_clear_all():
    points = make_points()
    points.toggle_select(points.detected[0].circle_id)

    points.clear_all()

    assert points.all_circles == []
    assert points.selected_ids == []
