#!/usr/bin/env python3
"""
Radial blur command line entry point.
Blurs an image file headlessly, or launches the viewer when no input is given.
"""

import argparse
import sys
import time
from typing import List, Optional

from blur_processor import BlurProcessor
from kernel_builder import get_resize_dimension, normalize_blur_size
from preferences import PreferencesManager
from utils.image_loader import load_image, save_image, resize_to_size
from utils.performance import PerformanceMonitor, estimate_processing_time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply a radial blur to an image.")
    parser.add_argument("--input", "-i", help="Image to blur; launches the viewer if omitted")
    parser.add_argument("--output", "-o", help="Where to write the blurred image")
    parser.add_argument("--size", "-s", type=int, help="Kernel diameter (even values round up)")
    parser.add_argument("--clamp", action="store_true", default=None,
                        help="Clip channel values to [0, 255] instead of wrapping")
    parser.add_argument("--normalization", choices=("count", "weight"),
                        help="Divide by in-bounds tap count or by in-bounds weight sum")
    parser.add_argument("--upscale", action="store_true",
                        help="Resize the result back to the source dimensions")
    parser.add_argument("--preferences", default="preferences.ini",
                        help="Preferences file (default: preferences.ini)")
    return parser


def run_headless(args: argparse.Namespace, preferences: PreferencesManager) -> int:
    """
    Blur one file and write the result.

    Returns:
        Process exit code
    """
    if not args.output:
        print("❌ --output is required with --input")
        return 2

    image, error = load_image(args.input)
    if error:
        print(f"❌ {error}")
        return 1

    if args.size is not None:
        preferences.set_preference('blur', 'blur_size', args.size)
    if args.clamp is not None:
        preferences.set_preference('blur', 'clamp_channels', args.clamp)
    if args.normalization is not None:
        preferences.set_preference('blur', 'normalization', args.normalization)

    blur_size = int(preferences.get_preference('blur', 'blur_size', 13))
    kernel_size = normalize_blur_size(blur_size)
    height, width = image.shape[:2]
    working = get_resize_dimension(kernel_size)
    print(f"Blurring {width}x{height} image, kernel {kernel_size}, working dimension {working}px "
          f"(estimated {estimate_processing_time((working, working), kernel_size):.2f}s)")

    monitor = PerformanceMonitor()
    processor = BlurProcessor.from_preferences(preferences)
    try:
        started = time.perf_counter()
        blurred = processor.blur_async(image, blur_size).result()
        elapsed = time.perf_counter() - started
    finally:
        processor.cleanup()

    if args.upscale:
        blurred = resize_to_size(blurred, (width, height))

    error = save_image(blurred, args.output)
    if error:
        print(f"❌ {error}")
        return 1

    out_height, out_width = blurred.shape[:2]
    print(f"✅ Wrote {out_width}x{out_height} image to {args.output} in {elapsed:.3f}s "
          f"({monitor.get_memory_usage():.1f} MB resident, {monitor.get_cpu_usage():.0f}% CPU)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.size is not None and args.size < 0:
        parser.error("--size must be non-negative")
    preferences = PreferencesManager(args.preferences)

    if args.input:
        return run_headless(args, preferences)

    from viewer import run_viewer
    return run_viewer(preferences)


if __name__ == "__main__":
    sys.exit(main())
