"""
Image I/O utilities using PIL (Pillow).

Images are exchanged as float arrays with values in [0, 1].
"""

import numpy as np
from PIL import Image


def read_image(filepath):
    """
    Read image from file.

    Args:
        filepath: Path to image file

    Returns:
        Image as float array (H x W x 3) for color or (H x W) for grayscale
    """
    try:
        with Image.open(filepath) as img:
            if img.mode != 'RGB' and img.mode != 'L':
                img = img.convert('RGB')
            img_array = np.array(img)
    except Exception as e:
        raise IOError(f"Failed to read image from {filepath}: {e}") from e

    return img_array.astype(np.float64) / 255.0


def write_image(filepath, image):
    """
    Write image to file.

    Args:
        filepath: Path to save image
        image: Float image in [0, 1] or uint8 image
    """
    image = np.asarray(image)
    if image.dtype != np.uint8:
        image = np.rint(np.clip(image, 0.0, 1.0) * 255.0).astype(np.uint8)

    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]

    try:
        Image.fromarray(image).save(filepath)
    except Exception as e:
        raise IOError(f"Failed to write image to {filepath}: {e}") from e


def read_images(filepaths):
    """Read multiple images."""
    return [read_image(filepath) for filepath in filepaths]
