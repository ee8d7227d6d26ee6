"""
Performance helpers for the radial blur.
Working-resolution resizing, pixel buffer validation and resource monitoring.
"""

import numpy as np
import cv2
from typing import Tuple
import gc
import math
import psutil
import os


class PerformanceMonitor:
    """Monitor system performance and memory usage."""

    def __init__(self):
        self.process = psutil.Process(os.getpid())

    def get_memory_usage(self) -> float:
        """Get current memory usage in MB."""
        return self.process.memory_info().rss / 1024 / 1024

    def get_cpu_usage(self) -> float:
        """Get current CPU usage percentage."""
        return self.process.cpu_percent()

    def cleanup_memory(self):
        """Force garbage collection to free memory."""
        gc.collect()


def optimize_image_for_processing(image: np.ndarray, max_dimension: int,
                                  scale_up: bool = False) -> np.ndarray:
    """
    Resize an image so its longer side equals ``max_dimension``.

    Args:
        image: Input image array (H, W, C)
        max_dimension: Target length of the longer side
        scale_up: Also enlarge images smaller than ``max_dimension``

    Returns:
        Resized image array, or the input itself when no resize is needed
    """
    height, width = image.shape[:2]
    longest = max(height, width)

    if longest == max_dimension or (longest < max_dimension and not scale_up):
        return image

    # One single-precision scale factor for both sides; halves round up
    scale = np.float32(max_dimension) / np.float32(longest)
    if width >= height:
        new_width = max_dimension
        new_height = max(1, int(math.floor(float(np.float32(height) * scale) + 0.5)))
    else:
        new_height = max_dimension
        new_width = max(1, int(math.floor(float(np.float32(width) * scale) + 0.5)))

    interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_CUBIC
    resized = cv2.resize(image, (new_width, new_height), interpolation=interpolation)
    return resized


def estimate_processing_time(image_size: Tuple[int, int], blur_size: int,
                             taps_per_second: float = 20_000_000.0) -> float:
    """
    Estimate convolution time at a given working resolution.

    Args:
        image_size: (height, width) of the working image
        blur_size: Kernel diameter
        taps_per_second: Throughput of the convolution loop

    Returns:
        Estimated processing time in seconds
    """
    height, width = image_size
    taps = height * width * blur_size * blur_size
    return taps / taps_per_second


def validate_image_requirements(image: np.ndarray) -> Tuple[bool, str]:
    """
    Validate that an array is a usable RGBA pixel buffer.

    Args:
        image: Image array to validate

    Returns:
        (is_valid, error_message)
    """
    if image is None:
        return False, "Image is None"

    if not isinstance(image, np.ndarray):
        return False, f"Image must be a numpy array, got {type(image).__name__}"

    if image.ndim != 3 or image.shape[2] != 4:
        return False, f"Image must be RGBA (H, W, 4), got shape {image.shape}"

    if image.dtype != np.uint8:
        return False, f"Image must be 8-bit per channel, got {image.dtype}"

    height, width = image.shape[:2]
    if height == 0 or width == 0:
        return False, "Image is empty"

    return True, ""
