#!/usr/bin/env python3
"""
Analyzer Configuration
Loads and saves analyzer settings (scale, hit tolerance, detection parameters)
from a YAML file
"""

import copy
import os

import yaml

DEFAULT_CONFIG = {
    'calibration': {
        # Pixels per mm for the standard scanned target
        'pixels_per_mm': 4.3165467625899280575539568345324,
    },
    'hit_tolerance_px': 5.0,
    'default_radius_px': 10.0,
    'bullet_diameter_mm': 5.56,
    'detection': {
        'blur_kernel': 9,
        'blur_sigma': 2,
        'dp': 1,
        'min_dist': 15,
        'param1': 100,
        'param2': 20,
        'min_radius': 5,
        'max_radius': 25,
    },
    'server': {
        'host': '0.0.0.0',
        'port': 8088,
    },
    'default_image_path': 'data/default_target.jpg',
}


def _merge(defaults: dict, overrides: dict) -> dict:
    """Recursively overlay known keys from overrides onto defaults"""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if key not in merged:
            continue
        if isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        elif value is not None:
            merged[key] = value
    return merged


class AnalyzerConfig:
    """Analyzer settings backed by a YAML file"""

    def __init__(self, config_file: str = "analyzer_config.yaml", create: bool = True):
        self.config_file = config_file
        self.data = copy.deepcopy(DEFAULT_CONFIG)
        self.load_config(create=create)

    def load_config(self, create: bool = True):
        """Load settings from config file, writing defaults if it is missing"""
        if os.path.exists(self.config_file):
            with open(self.config_file, 'r') as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {self.config_file} must contain a mapping")
            self.data = _merge(DEFAULT_CONFIG, loaded)
            print(f"Analyzer config loaded from {self.config_file}")
        elif create:
            self.save_config()
            print(f"No config found, wrote defaults to {self.config_file}")

    def save_config(self):
        """Save settings to config file"""
        directory = os.path.dirname(self.config_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.config_file, 'w') as f:
            yaml.dump(self.data, f, default_flow_style=False)

    @property
    def pixels_per_mm(self) -> float:
        return float(self.data['calibration']['pixels_per_mm'])

    @property
    def hit_tolerance_px(self) -> float:
        return float(self.data['hit_tolerance_px'])

    @property
    def default_radius_px(self) -> float:
        return float(self.data['default_radius_px'])

    @property
    def bullet_diameter_mm(self) -> float:
        return float(self.data['bullet_diameter_mm'])

    @bullet_diameter_mm.setter
    def bullet_diameter_mm(self, value: float):
        self.data['bullet_diameter_mm'] = float(value)

    @property
    def detection_params(self) -> dict:
        return dict(self.data['detection'])

    @property
    def server_address(self):
        server = self.data['server']
        return server['host'], int(server['port'])

    @property
    def default_image_path(self) -> str:
        return self.data['default_image_path']
