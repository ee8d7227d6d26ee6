"""
Radial kernel construction for the radial blur.
Builds a square weight table whose influence is constant inside the inscribed
circle and falls off linearly outside it, and caches the last kernel built.
"""

import math
import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np


def normalize_blur_size(blur_size: int) -> int:
    """
    Normalize a requested kernel diameter to an odd value.

    Args:
        blur_size: Requested kernel diameter in pixels

    Returns:
        The diameter itself when odd, otherwise the next odd value
    """
    blur_size = int(blur_size)
    if blur_size < 0:
        raise ValueError(f"Blur size must be non-negative, got {blur_size}")
    if blur_size % 2 == 0:
        blur_size += 1
    return blur_size


def get_resize_dimension(blur_size: int) -> int:
    """
    Get the maximum working dimension for a kernel size.

    Larger kernels cost more per pixel, so the image is shrunk further
    before filtering.

    Args:
        blur_size: Kernel diameter

    Returns:
        Maximum length in pixels of the longer image side
    """
    if blur_size >= 12:
        return 50
    elif blur_size >= 8:
        return 60
    elif blur_size >= 5:
        return 75
    return 90


@dataclass(frozen=True, eq=False)
class Kernel:
    """Immutable radial weight table plus the working size it was built for."""

    size: int
    weights: np.ndarray
    resize_dimension: int

    def __eq__(self, other):
        if not isinstance(other, Kernel):
            return NotImplemented
        return (self.size == other.size
                and self.resize_dimension == other.resize_dimension
                and np.array_equal(self.weights, other.weights))

    def __hash__(self):
        return hash((self.size, self.resize_dimension))

    @property
    def radius(self) -> int:
        return self.size // 2


def build_kernel(blur_size: int) -> Kernel:
    """
    Build a radial falloff kernel.

    Every tap within ``radius`` of the center weighs 1.0. Taps further out
    weigh ``1 - (distance - radius)``, which is left unclamped and goes
    negative in the corners of larger kernels.

    Args:
        blur_size: Kernel diameter, normalized to the next odd value if even

    Returns:
        Read-only Kernel of shape (size, size)
    """
    size = normalize_blur_size(blur_size)
    center = size // 2
    # Falloff is evaluated in single precision; truncating taps depend on the last bit
    radius = np.float32(center)
    one = np.float32(1.0)

    # weights[x][y], x and y both measured from the top-left tap
    weights = np.empty((size, size), dtype=np.float32)
    for x in range(size):
        for y in range(size):
            dx = abs(x - center)
            dy = abs(y - center)
            distance = np.float32(math.sqrt(dx * dx + dy * dy))
            weights[x, y] = one if distance <= radius else one - (distance - radius)

    weights.setflags(write=False)
    return Kernel(size=size, weights=weights, resize_dimension=get_resize_dimension(size))


class KernelCache:
    """Holds the most recently built kernel, rebuilding only on a size change."""

    def __init__(self):
        self._kernel: Optional[Kernel] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Kernel]:
        return self._kernel

    def get(self, blur_size: int) -> Kernel:
        """
        Get the kernel for a diameter, building it if the cached one differs.

        The returned kernel is immutable. A caller that keeps the reference
        is unaffected when another request replaces the cached entry.

        Args:
            blur_size: Requested kernel diameter

        Returns:
            Kernel for the normalized diameter
        """
        size = normalize_blur_size(blur_size)
        with self._lock:
            if self._kernel is None or self._kernel.size != size:
                self._kernel = build_kernel(size)
                print(f"🔄 Built radial kernel: size={size}, "
                      f"working dimension={self._kernel.resize_dimension}px")
            return self._kernel

    def clear(self):
        """Drop the cached kernel."""
        with self._lock:
            self._kernel = None
