"""
Normalized patch descriptors around corner locations.
"""

import logging

import numpy as np

from .errors import DegenerateDescriptorError, OutOfBoundsError
from .features import Feature, Point
from .image_ops import blurred_luminance

logger = logging.getLogger(__name__)

# Patches whose variance falls below this are treated as flat
MIN_PATCH_VARIANCE = 1e-12


class DescriptorBuilder:
    """
    Extracts a (2r+1) x (2r+1) luminance patch around each corner and
    normalizes it to zero mean and unit variance.
    """

    def __init__(self, sigma_blur_descriptor=0.5, radius_descriptor=4):
        """
        Initialize descriptor builder.

        Args:
            sigma_blur_descriptor: Blur applied to the luminance before sampling
            radius_descriptor: Patch radius r, giving (2r+1) x (2r+1) patches
        """
        if radius_descriptor < 0:
            raise ValueError("radius_descriptor must be non-negative")

        self.sigma_blur_descriptor = sigma_blur_descriptor
        self.radius_descriptor = int(radius_descriptor)

    def fits(self, point, shape):
        """Whether the descriptor window around point lies inside an image of this shape."""
        h, w = shape[:2]
        r = self.radius_descriptor
        x, y = point
        return r <= x < w - r and r <= y < h - r

    def filter_corners(self, corners, shape):
        """Drop corners whose descriptor window would leave the image."""
        kept = [p for p in corners if self.fits(p, shape)]
        if len(kept) < len(corners):
            logger.debug("Dropped %d corners too close to the border",
                         len(corners) - len(kept))
        return kept

    def descriptor(self, blurred_lumi, point):
        """
        Normalized patch of blurred_lumi centered on point.

        Raises:
            OutOfBoundsError: If the window extends past the image
            DegenerateDescriptorError: If the patch is flat
        """
        if not self.fits(point, blurred_lumi.shape):
            raise OutOfBoundsError(
                f"Descriptor window of radius {self.radius_descriptor} around "
                f"({point[0]}, {point[1]}) leaves the "
                f"{blurred_lumi.shape[1]}x{blurred_lumi.shape[0]} image")

        r = self.radius_descriptor
        x, y = point
        patch = blurred_lumi[y - r:y + r + 1, x - r:x + r + 1]

        patch = patch - patch.mean()
        variance = np.mean(patch ** 2)

        if variance < MIN_PATCH_VARIANCE:
            raise DegenerateDescriptorError(
                f"Flat patch around ({x}, {y}) cannot be normalized")

        return patch / np.sqrt(variance)

    def compute_features(self, image, corners, skip_flat=False):
        """
        Build one feature per corner.

        Args:
            image: Grayscale or color image
            corners: Sequence of corner locations
            skip_flat: Drop corners whose patch is flat instead of raising

        Returns:
            features: List of Feature in the order of corners
        """
        blurred_lumi = blurred_luminance(image, self.sigma_blur_descriptor)

        features = []
        for corner in corners:
            point = Point(*corner)
            try:
                desc = self.descriptor(blurred_lumi, point)
            except DegenerateDescriptorError:
                if not skip_flat:
                    raise
                logger.debug("Dropped corner (%d, %d) on a flat patch", point.x, point.y)
                continue
            features.append(Feature(point, desc))

        return features
