"""Configuration, reporting and image persistence helpers"""
