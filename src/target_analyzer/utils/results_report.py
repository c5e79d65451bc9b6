#!/usr/bin/env python3
"""
Results Report
Turns analyzer state into the figures shown in the results panel
"""

from typing import Dict

from target_analyzer.core.analyzer import (
    MODE_DISTANCE,
    MODE_STDDEV,
    TargetAnalyzer,
)
from target_analyzer.core.group_stats import edge_distance


def _hint(mode: str, total_points: int) -> str:
    if mode == MODE_DISTANCE:
        return 'Select 2 points to measure distance.'
    if mode == MODE_STDDEV:
        return 'Select 2 or more points for group analysis.'
    if total_points < 2:
        return 'At least 2 points needed for analysis.'
    return 'Analysis of all points shown here.'


def build_results_report(analyzer: TargetAnalyzer, bullet_diameter_mm: float) -> Dict:
    """
    Build the results panel content

    Returns:
        Dict with scale, total shots, optional distance block, optional group
        block and a hint message when nothing could be computed
    """
    with analyzer.lock:
        scale = analyzer.scale
        mode = analyzer.mode
        total_points = len(analyzer.points)
        selected_count = len(analyzer.points.selected_circles)

        report = {
            'scale_px_per_mm': round(scale, 2) if scale is not None else None,
            'total_shots': total_points,
            'calibrated': scale is not None,
            'distance': None,
            'group': None,
            'message': None,
        }

        if scale is None:
            report['message'] = 'Not Calibrated. Load an image to calibrate.'
            return report

        distance = analyzer.distance()
        if distance is not None:
            report['distance'] = {
                'title': 'Distance (2 selected)',
                'center_distance_mm': round(distance, 2),
                'edge_distance_mm': round(edge_distance(distance, bullet_diameter_mm), 2),
            }

        metrics = analyzer.group_metrics()
        if metrics is not None:
            if mode == MODE_STDDEV and selected_count > 0:
                title = f"Group ({selected_count} selected)"
            else:
                title = f"Group ({total_points} total)"
            report['group'] = {
                'title': title,
                'extreme_spread_mm': round(metrics.extreme_spread, 2),
                'mean_radius_mm': round(metrics.mean_radius, 2),
                'std_dev_x_mm': round(metrics.std_dev_x, 2),
                'std_dev_y_mm': round(metrics.std_dev_y, 2),
                'count': metrics.count,
            }

        if distance is None and metrics is None:
            report['message'] = _hint(mode, total_points)

        return report


def format_results_report(report: Dict) -> str:
    """Plain text rendering of a results report"""
    scale = report['scale_px_per_mm']
    lines = [
        f"Scale:       {scale:.2f} px/mm" if scale is not None else "Scale:       -",
        f"Total Shots: {report['total_shots']}",
    ]

    if report['distance']:
        d = report['distance']
        lines.append(d['title'])
        lines.append(f"  Center Distance: {d['center_distance_mm']:.2f} mm")
        lines.append(f"  Edge Distance:   {d['edge_distance_mm']:.2f} mm")

    if report['group']:
        g = report['group']
        lines.append(g['title'])
        lines.append(f"  Extreme Spread:  {g['extreme_spread_mm']:.2f} mm")
        lines.append(f"  Mean Radius:     {g['mean_radius_mm']:.2f} mm")
        lines.append(f"  Std. Dev. (X):   {g['std_dev_x_mm']:.2f} mm")
        lines.append(f"  Std. Dev. (Y):   {g['std_dev_y_mm']:.2f} mm")

    if report['message']:
        lines.append(report['message'])

    return "\n".join(lines)


