"""
Radial blur convolution.
Shrinks the source to the kernel's working resolution, then replaces every
pixel with the kernel-weighted average of its in-bounds neighbours.
"""

import numpy as np
from typing import Optional

from kernel_builder import Kernel
from utils.performance import optimize_image_for_processing, validate_image_requirements

# Channel layout of a pixel buffer (H, W, 4)
COLOR_CHANNELS = slice(0, 3)
ALPHA_CHANNEL = 3

NORMALIZATION_MODES = ("count", "weight")


class Convolver:
    """Applies a radial kernel as a sliding weighted average."""

    def __init__(self, clamp_channels: bool = False, normalization: str = "count"):
        """
        Initialize the convolver.

        Args:
            clamp_channels: Clip out-of-range channel values to [0, 255]
                instead of wrapping them like an 8-bit store
            normalization: "count" divides each weighted sum by the number of
                in-bounds taps using integer arithmetic; "weight" divides by
                the sum of the in-bounds weights
        """
        if normalization not in NORMALIZATION_MODES:
            raise ValueError(f"Unknown normalization '{normalization}', "
                             f"expected one of {NORMALIZATION_MODES}")
        self.clamp_channels = clamp_channels
        self.normalization = normalization

    def blur(self, image: Optional[np.ndarray], kernel: Kernel) -> Optional[np.ndarray]:
        """
        Blur an image at the kernel's working resolution.

        The result is a new buffer at the downsampled size; it is not scaled
        back to the source size. For kernels of size 1 or less the input
        buffer itself is returned, not a copy, and callers must treat it as
        shared.

        Args:
            image: RGBA pixel buffer (H, W, 4) uint8, or None
            kernel: Kernel captured for this pass

        Returns:
            Blurred RGBA buffer, the input itself, or None for absent input
        """
        if image is None or (isinstance(image, np.ndarray) and image.size == 0):
            return image

        if kernel.size <= 1:
            return image

        working = self.downsample(image, kernel.resize_dimension)
        return self.convolve(working, kernel)

    def downsample(self, image: np.ndarray, max_dimension: int,
                   scale_up: bool = False) -> np.ndarray:
        """
        Shrink an image so its longer side is at most ``max_dimension``.

        Args:
            image: RGBA pixel buffer
            max_dimension: Target length of the longer side
            scale_up: Also enlarge smaller images

        Returns:
            Resized buffer, or the input when already small enough
        """
        self._validate(image)
        return optimize_image_for_processing(image, max_dimension, scale_up=scale_up)

    def convolve(self, image: np.ndarray, kernel: Kernel) -> np.ndarray:
        """
        Convolve the kernel over every pixel of an image.

        Taps falling outside the image are skipped and left out of the
        normalization, so border pixels average over fewer neighbours.
        Alpha is copied from the source pixel.

        Args:
            image: RGBA pixel buffer (H, W, 4) uint8
            kernel: Kernel to apply

        Returns:
            New RGBA buffer of the same size
        """
        self._validate(image)
        height, width = image.shape[:2]
        size = kernel.size
        offset = (size - 1) // 2
        weights = kernel.weights

        exact = self.normalization == "weight"
        color = image[..., COLOR_CHANNELS].astype(np.float64 if exact else np.float32)
        totals = np.zeros((height, width, 3), dtype=color.dtype)
        tap_counts = np.zeros((height, width), dtype=np.int64)
        weight_sums = np.zeros((height, width), dtype=np.float64)

        # Same tap order as a per-pixel loop over kx, then ky
        for kx in range(size):
            dx = kx - offset
            dst_x, src_x = _overlap(width, dx)
            if dst_x is None:
                continue
            for ky in range(size):
                dy = ky - offset
                dst_y, src_y = _overlap(height, dy)
                if dst_y is None:
                    continue

                weight = weights[kx, ky]
                contribution = color[src_y, src_x] * weight
                if exact:
                    totals[dst_y, dst_x] += contribution
                else:
                    # Integer running total: truncate toward zero after every tap
                    totals[dst_y, dst_x] = np.trunc(totals[dst_y, dst_x] + contribution)
                tap_counts[dst_y, dst_x] += 1
                weight_sums[dst_y, dst_x] += float(weight)

        if exact:
            values = self._divide_by_weights(totals, weight_sums)
        else:
            values = self._divide_by_counts(totals, tap_counts)

        blurred = np.empty_like(image)
        blurred[..., COLOR_CHANNELS] = self._to_channel(values)
        blurred[..., ALPHA_CHANNEL] = image[..., ALPHA_CHANNEL]
        return blurred

    def _divide_by_counts(self, totals: np.ndarray, tap_counts: np.ndarray) -> np.ndarray:
        totals = totals.astype(np.int64)
        counts = tap_counts[..., np.newaxis]
        # Integer division truncating toward zero, not flooring
        return np.sign(totals) * (np.abs(totals) // counts)

    def _divide_by_weights(self, totals: np.ndarray, weight_sums: np.ndarray) -> np.ndarray:
        sums = weight_sums[..., np.newaxis]
        with np.errstate(divide="ignore", invalid="ignore"):
            values = np.where(sums != 0.0, totals / sums, 0.0)
        return np.rint(values).astype(np.int64)

    def _to_channel(self, values: np.ndarray) -> np.ndarray:
        if self.clamp_channels:
            return np.clip(values, 0, 255).astype(np.uint8)
        return np.mod(values, 256).astype(np.uint8)

    @staticmethod
    def _validate(image: np.ndarray):
        is_valid, error = validate_image_requirements(image)
        if not is_valid:
            raise ValueError(error)


def _overlap(length: int, shift: int):
    """
    Get matching destination and source slices along one axis.

    Destination index ``i`` reads source index ``i + shift``.

    Returns:
        (destination_slice, source_slice), or (None, None) if nothing overlaps
    """
    start = max(0, -shift)
    stop = min(length, length - shift)
    if start >= stop:
        return None, None
    return slice(start, stop), slice(start + shift, stop + shift)
