#!/usr/bin/env python3
"""
Default Image Store
Persists the startup target image as a downscaled JPEG
"""

import os

import cv2
import numpy as np

MAX_DIMENSION = 1280
JPEG_QUALITY = 70


def downscale_image(image, max_dim: int = MAX_DIMENSION):
    """Shrink image so its longest side is at most max_dim (never enlarges)"""
    height, width = image.shape[:2]
    if width <= max_dim and height <= max_dim:
        return image

    ratio = min(max_dim / width, max_dim / height)
    new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
    return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)


def save_default_image(image, path: str, max_dim: int = MAX_DIMENSION, quality: int = JPEG_QUALITY):
    """
    Save image as the startup default

    Returns:
        (success, message)
    """
    if image is None:
        return False, "No image loaded"

    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        resized = downscale_image(image, max_dim)
        if not cv2.imwrite(path, resized, [cv2.IMWRITE_JPEG_QUALITY, int(quality)]):
            return False, f"Failed to write {path}"

        print(f"Default image saved to {path} ({resized.shape[1]}x{resized.shape[0]})")
        return True, "Current image saved as startup default."
    except cv2.error as e:
        error_msg = f"Failed to save default image: {e}"
        print(error_msg)
        return False, error_msg


def load_default_image(path: str):
    """Load the saved default image, or None if missing or unreadable"""
    if not path or not os.path.exists(path):
        return None

    image = cv2.imread(path)
    if image is None:
        print(f"WARNING: Failed to load saved default image {path}, removing it")
        reset_default_image(path)
    return image


def reset_default_image(path: str) -> bool:
    """Remove the saved default image; True if a file was removed"""
    if path and os.path.exists(path):
        os.remove(path)
        return True
    return False


def decode_image(data: bytes):
    """Decode encoded image bytes (JPEG, PNG, ...) into a BGR array, or None"""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    return cv2.imdecode(buffer, cv2.IMREAD_COLOR)
