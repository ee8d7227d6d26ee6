"""
Image loading and saving for the radial blur tools.
Decodes files into RGBA pixel buffers and encodes buffers back to disk.
"""

import os
from PIL import Image, UnidentifiedImageError
import numpy as np
from typing import Tuple, Optional

SUPPORTED_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp')

# EXIF orientation tag value -> rotation in degrees (counter-clockwise)
_ORIENTATION_ROTATIONS = {3: 180, 6: 270, 8: 90}


def apply_exif_orientation(image: Image.Image) -> Image.Image:
    """
    Apply EXIF orientation to the image if present.

    Args:
        image: PIL Image object

    Returns:
        PIL Image with correct orientation applied
    """
    orientation = image.getexif().get(274)  # Orientation tag
    rotation = _ORIENTATION_ROTATIONS.get(orientation)
    if rotation:
        image = image.rotate(rotation, expand=True)
    return image


def load_image(file_path: str) -> Tuple[Optional[np.ndarray], str]:
    """
    Load an image file as an RGBA pixel buffer.

    Args:
        file_path: Path to a PNG, JPEG or BMP file

    Returns:
        Tuple of (image_array, error_message)
        image_array: RGBA uint8 array (H, W, 4) if successful, None if failed
        error_message: Empty string if successful, error description if failed
    """
    if not os.path.exists(file_path):
        return None, f"File not found: {file_path}"

    if not file_path.lower().endswith(SUPPORTED_EXTENSIONS):
        return None, f"Unsupported file type, expected one of {', '.join(SUPPORTED_EXTENSIONS)}"

    try:
        with Image.open(file_path) as pil_image:
            pil_image = apply_exif_orientation(pil_image)
            if pil_image.mode != 'RGBA':
                pil_image = pil_image.convert('RGBA')
            image_array = np.array(pil_image, dtype=np.uint8)

        return image_array, ""

    except (OSError, UnidentifiedImageError) as e:
        return None, f"Error loading image: {str(e)}"


def save_image(image_array: np.ndarray, file_path: str, quality: int = 95) -> str:
    """
    Save an RGBA pixel buffer to disk.

    PNG keeps the alpha channel; JPEG files are written as RGB.

    Args:
        image_array: RGBA uint8 array (H, W, 4)
        file_path: Output file path
        quality: JPEG quality (1-100)

    Returns:
        Error message (empty string if successful)
    """
    try:
        pil_image = Image.fromarray(image_array.astype(np.uint8))

        if file_path.lower().endswith(('.jpg', '.jpeg')):
            pil_image.convert('RGB').save(file_path, 'JPEG', quality=quality, optimize=True)
        else:
            pil_image.save(file_path)

        return ""

    except (OSError, ValueError) as e:
        return f"Error saving image: {str(e)}"


def resize_to_size(image_array: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """
    Resize a pixel buffer to an exact (width, height).

    Used to bring a working-resolution result back to the source size.

    Args:
        image_array: RGBA uint8 array
        size: Target (width, height)

    Returns:
        Resized array
    """
    height, width = image_array.shape[:2]
    if (width, height) == tuple(size):
        return image_array

    pil_image = Image.fromarray(image_array)
    resized = pil_image.resize(tuple(size), Image.Resampling.LANCZOS)
    return np.array(resized)
