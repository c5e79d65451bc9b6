"""Target group analyzer: bullet hole detection and shot group statistics"""
