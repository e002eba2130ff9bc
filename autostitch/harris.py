"""
Harris corner detection on the structure tensor of an image.

The detector follows the classic recipe:
1. Blur the luminance and take its x/y derivatives
2. Accumulate the per-pixel outer product into a blurred structure tensor
3. Score each pixel with det(M) - k * trace(M)^2
4. Keep the local maxima of the score away from the image border
"""

import logging

import numpy as np

from .features import Point
from .image_ops import (
    as_float_image,
    blurred_luminance,
    gaussian_blur,
    gradient_x,
    gradient_y,
    maximum_filter,
)

logger = logging.getLogger(__name__)


class HarrisDetector:
    """
    Harris corner detector.

    Corners are returned as integer pixel locations in raster order
    (row by row), not sorted by strength.
    """

    def __init__(self, k=0.15, sigma_g=1.0, factor_sigma=4.0,
                 maxi_diam=7, boundary_size=5):
        """
        Initialize Harris detector.

        Args:
            k: Harris sensitivity constant
            sigma_g: Blur applied to the luminance before differentiation
            factor_sigma: Tensor smoothing, as a multiple of sigma_g
            maxi_diam: Diameter of the non-maximum suppression window
            boundary_size: Width of the border where corners are ignored
        """
        if maxi_diam < 1:
            raise ValueError("maxi_diam must be at least 1")
        if boundary_size < 0:
            raise ValueError("boundary_size must be non-negative")

        self.k = k
        self.sigma_g = sigma_g
        self.factor_sigma = factor_sigma
        self.maxi_diam = maxi_diam
        self.boundary_size = boundary_size

    def compute_tensor(self, image):
        """
        Compute the blurred structure tensor of an image.

        Args:
            image: Grayscale or color image

        Returns:
            tensor: H x W x 3 array holding (Ix^2, Ix*Iy, Iy^2)
        """
        lumi = blurred_luminance(image, self.sigma_g)
        ix = gradient_x(lumi)
        iy = gradient_y(lumi)

        tensor = np.stack([ix * ix, ix * iy, iy * iy], axis=2)

        return gaussian_blur(tensor, self.sigma_g * self.factor_sigma)

    def corner_response(self, image):
        """
        Harris response map, zero wherever the score is not positive.
        """
        tensor = self.compute_tensor(image)
        ixx = tensor[:, :, 0]
        ixy = tensor[:, :, 1]
        iyy = tensor[:, :, 2]

        det = ixx * iyy - ixy * ixy
        trace = ixx + iyy
        response = det - self.k * trace ** 2

        return np.where(response > 0, response, 0.0)

    def detect(self, image):
        """
        Detect Harris corners.

        Args:
            image: Grayscale or color image

        Returns:
            corners: List of Point in raster order
        """
        image = as_float_image(image)
        response = self.corner_response(image)
        corners = local_maxima(response, self.maxi_diam, self.boundary_size)

        logger.info("Detected %d Harris corners in %dx%d image",
                    len(corners), image.shape[1], image.shape[0])
        return corners


def local_maxima(response, maxi_diam, boundary_size):
    """
    Non-maximum suppression of a response map.

    A pixel is kept when its response is positive and equals the maximum of
    its maxi_diam neighborhood. Equal neighbors are all kept. Columns
    [boundary_size, W - boundary_size) and rows [boundary_size,
    H - boundary_size) are eligible.

    Returns:
        corners: List of Point in raster order
    """
    response = np.asarray(response, dtype=np.float64)
    h, w = response.shape
    b = int(boundary_size)

    neighborhood_max = maximum_filter(response, maxi_diam)
    is_corner = (neighborhood_max > 0) & (response == neighborhood_max)

    inside = np.zeros_like(is_corner)
    inside[b:h - b, b:w - b] = True
    is_corner &= inside

    return [Point(x, y) for y, x in np.argwhere(is_corner)]
