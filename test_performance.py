"""
Tests for working-resolution resizing and buffer validation.
"""

import numpy as np
import pytest

from utils.performance import (PerformanceMonitor, estimate_processing_time,
                               optimize_image_for_processing, validate_image_requirements)


def test_validate_accepts_rgba():
    assert validate_image_requirements(np.zeros((5, 5, 4), dtype=np.uint8)) == (True, "")


@pytest.mark.parametrize("image, fragment", [
    (None, "None"),
    ([[0, 0, 0, 0]], "numpy array"),
    (np.zeros((5, 5, 3), dtype=np.uint8), "RGBA"),
    (np.zeros((5, 5), dtype=np.uint8), "RGBA"),
    (np.zeros((5, 5, 4), dtype=np.float32), "8-bit"),
    (np.zeros((0, 5, 4), dtype=np.uint8), "empty"),
])
def test_validate_rejects(image, fragment):
    is_valid, error = validate_image_requirements(image)
    assert not is_valid
    assert fragment in error


def test_resize_only_shrinks_by_default():
    image = np.zeros((40, 80, 4), dtype=np.uint8)
    assert optimize_image_for_processing(image, 80) is image
    assert optimize_image_for_processing(image, 100) is image
    assert optimize_image_for_processing(image, 50).shape == (25, 50, 4)


def test_resize_portrait_uses_height():
    image = np.zeros((300, 120, 4), dtype=np.uint8)
    assert optimize_image_for_processing(image, 60).shape == (60, 24, 4)


def test_resize_rounds_half_up():
    image = np.zeros((45, 180, 4), dtype=np.uint8)
    assert optimize_image_for_processing(image, 90).shape == (23, 90, 4)


def test_resize_never_collapses_short_side():
    image = np.zeros((2, 400, 4), dtype=np.uint8)
    assert optimize_image_for_processing(image, 50).shape == (1, 50, 4)


def test_estimate_scales_with_kernel_area():
    small = estimate_processing_time((50, 50), 3)
    large = estimate_processing_time((50, 50), 9)
    assert large == pytest.approx(small * 9)


def test_performance_monitor_reports_memory():
    monitor = PerformanceMonitor()
    assert monitor.get_memory_usage() > 0
    assert monitor.get_cpu_usage() >= 0.0
    monitor.cleanup_memory()
