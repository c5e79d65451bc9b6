"""Core group geometry, calibration and point-set state"""
