"""
Raster helpers used by the corner and descriptor stages.

Images are NumPy arrays of shape (H, W) or (H, W, C) holding float values
in [0, 1]. Filtering is done with scipy.ndimage; every filter replicates
the edge pixel ("nearest") so results near the border are stable.
"""

import numpy as np
from scipy import ndimage

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

# Gaussian kernels are cut at 3 sigma
GAUSSIAN_TRUNCATE = 3.0

EDGE_MODE = 'nearest'


def as_float_image(image):
    """
    Convert an image to float64.

    uint8 images are rescaled to [0, 1]; anything else is cast as is.
    """
    image = np.asarray(image)

    if image.ndim not in (2, 3):
        raise ValueError(f"Expected a 2D or 3D image array, got shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError("Image has zero area")

    if image.dtype == np.uint8:
        return image.astype(np.float64) / 255.0
    return image.astype(np.float64)


def lumi_chromi(image):
    """
    Split an image into luminance and chrominance.

    Args:
        image: Grayscale (H x W) or color (H x W x C) image

    Returns:
        lumi: Luminance (H x W)
        chromi: Chrominance, image divided by its luminance
    """
    image = as_float_image(image)

    if image.ndim == 2:
        return image.copy(), np.ones_like(image)
    if image.shape[2] == 1:
        return image[:, :, 0].copy(), np.ones_like(image)

    lumi = np.dot(image[..., :3], LUMA_WEIGHTS)
    safe = np.where(lumi == 0, 1.0, lumi)
    chromi = image / safe[:, :, np.newaxis]
    chromi[lumi == 0] = 0.0

    return lumi, chromi


def gaussian_blur(image, sigma):
    """
    Separable Gaussian blur over the two spatial axes.

    Channels of a 3D image are blurred independently.
    """
    image = as_float_image(image)

    if sigma <= 0:
        return image.copy()

    if image.ndim == 3:
        sigmas = (sigma, sigma, 0)
    else:
        sigmas = sigma

    return ndimage.gaussian_filter(image, sigma=sigmas, mode=EDGE_MODE,
                                   truncate=GAUSSIAN_TRUNCATE)


def gradient_x(image):
    """Horizontal Sobel derivative."""
    return ndimage.sobel(as_float_image(image), axis=1, mode=EDGE_MODE)


def gradient_y(image):
    """Vertical Sobel derivative."""
    return ndimage.sobel(as_float_image(image), axis=0, mode=EDGE_MODE)


def maximum_filter(image, diameter):
    """Per-pixel maximum over a square window of the given diameter."""
    diameter = max(1, int(round(diameter)))
    return ndimage.maximum_filter(as_float_image(image), size=diameter,
                                  mode=EDGE_MODE)


def blurred_luminance(image, sigma):
    """Luminance of an image, blurred by sigma."""
    lumi, _ = lumi_chromi(image)
    return gaussian_blur(lumi, sigma)
