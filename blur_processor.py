"""
Radial blur processing service.
Runs kernel construction and convolution on a worker pool and hands the
result back through a future and an optional completion callback.
"""

import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

import numpy as np

from convolver import Convolver
from kernel_builder import KernelCache, normalize_blur_size


class BlurProcessor:
    """Handles radial blur requests, one worker per request."""

    def __init__(self, max_workers: int = 4, clamp_channels: bool = False,
                 normalization: str = "count"):
        """
        Initialize the blur processor.

        Args:
            max_workers: Maximum number of threads for concurrent requests
            clamp_channels: Clip channel values to [0, 255] instead of wrapping
            normalization: "count" or "weight", see Convolver
        """
        self.max_workers = max_workers
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.kernel_cache = KernelCache()
        self.convolver = Convolver(clamp_channels=clamp_channels, normalization=normalization)
        print(f"BlurProcessor initialized with {max_workers} workers "
              f"(normalization={normalization}, clamp={clamp_channels})")

    @classmethod
    def from_preferences(cls, preferences) -> "BlurProcessor":
        """
        Create a processor from stored preferences.

        Args:
            preferences: PreferencesManager instance

        Returns:
            Configured BlurProcessor
        """
        return cls(
            max_workers=int(preferences.get_preference('processing', 'max_workers', 4)),
            clamp_channels=bool(preferences.get_preference('blur', 'clamp_channels', False)),
            normalization=str(preferences.get_preference('blur', 'normalization', 'count')),
        )

    def blur(self, image: Optional[np.ndarray], blur_size: int) -> Optional[np.ndarray]:
        """
        Blur an image synchronously on the calling thread.

        Args:
            image: RGBA pixel buffer (H, W, 4) uint8, or None
            blur_size: Kernel diameter

        Returns:
            Blurred buffer at working resolution, the input itself for
            blur sizes of 1 or less, or None for absent input
        """
        # Hold this kernel for the whole pass; a concurrent rebuild only
        # replaces the cache entry
        kernel = self.kernel_cache.get(blur_size)
        return self.convolver.blur(image, kernel)

    def blur_async(self, image: Optional[np.ndarray], blur_size: int,
                   callback: Optional[Callable[[Optional[np.ndarray]], Any]] = None) -> Future:
        """
        Blur an image on the worker pool.

        Requests are never cancelled once started. The callback runs exactly
        once, on the worker thread (or on the caller's thread if the work has
        already finished), with the result or None. A failed pass delivers
        None to the callback and keeps the exception on the future.

        Args:
            image: RGBA pixel buffer (H, W, 4) uint8, or None
            blur_size: Kernel diameter
            callback: Optional completion callback

        Returns:
            Future resolving to the blurred buffer
        """
        normalize_blur_size(blur_size)
        future = self.executor.submit(self.blur, image, blur_size)
        if callback is not None:
            future.add_done_callback(lambda done: self._deliver(done, callback))
        return future

    def _deliver(self, future: Future, callback: Callable[[Optional[np.ndarray]], Any]):
        """Pass a finished future's result to the completion callback."""
        try:
            result = future.result()
        except Exception as e:
            print(f"❌ Error in radial blur worker: {e}")
            traceback.print_exc()
            result = None
        callback(result)

    def get_settings(self) -> Dict[str, Any]:
        """Get the processor's current settings."""
        kernel = self.kernel_cache.current
        return {
            'max_workers': self.max_workers,
            'clamp_channels': self.convolver.clamp_channels,
            'normalization': self.convolver.normalization,
            'blur_size': kernel.size if kernel is not None else None,
        }

    def cleanup(self):
        """Clean up thread pool executor."""
        self.executor.shutdown(wait=True)
