"""
Two-image panorama pipeline: Harris corners, patch descriptors,
ratio-test matching, RANSAC homography and compositing.
"""

import logging

import numpy as np

from .compositor import Compositor
from .descriptor import DescriptorBuilder
from .errors import InsufficientCorrespondencesError
from .harris import HarrisDetector
from .homography import MIN_CORRESPONDENCES, HomographyEstimator
from .image_ops import as_float_image
from .matcher import FeatureMatcher

logger = logging.getLogger(__name__)


class PanoramaStitcher:
    """
    Complete panorama stitching pipeline.

    This class coordinates all components:
    1. Harris corner detection
    2. Descriptor extraction
    3. Feature matching
    4. Homography estimation with RANSAC
    5. Compositing onto a shared canvas
    """

    def __init__(self,
                 corner_params=None,
                 descriptor_params=None,
                 matcher_params=None,
                 ransac_params=None,
                 compositor_params=None):
        """
        Initialize Panorama Stitcher.

        Args:
            corner_params: Parameters for HarrisDetector
            descriptor_params: Parameters for DescriptorBuilder
            matcher_params: Parameters for FeatureMatcher
            ransac_params: Parameters for HomographyEstimator
            compositor_params: Parameters for Compositor
        """
        self.detector = HarrisDetector(**(corner_params or {}))
        self.descriptor_builder = DescriptorBuilder(**(descriptor_params or {}))
        self.matcher = FeatureMatcher(**(matcher_params or {}))
        self.homography_estimator = HomographyEstimator(**(ransac_params or {}))
        self.compositor = Compositor(**(compositor_params or {}))

    def extract_features(self, image):
        """
        Detect corners and describe them.

        Corners whose descriptor window leaves the image or covers a flat
        patch get no feature.
        """
        corners = self.detector.detect(image)
        corners = self.descriptor_builder.filter_corners(corners, image.shape)
        features = self.descriptor_builder.compute_features(image, corners,
                                                            skip_flat=True)
        return corners, features

    def stitch_pair(self, img1, img2, return_debug_info=False):
        """
        Stitch two images together.

        Args:
            img1: First image, warped into the frame of img2
            img2: Second image, the reference frame
            return_debug_info: If True, return additional debug information

        Returns:
            result: Stitched panorama image
            debug_info: (Optional) Dictionary with debug information

        Raises:
            InsufficientCorrespondencesError: If fewer than four matches survive
        """
        img1 = as_float_image(img1)
        img2 = as_float_image(img2)

        corners1, features1 = self.extract_features(img1)
        corners2, features2 = self.extract_features(img2)
        logger.info("Features: %d in image 1, %d in image 2",
                    len(features1), len(features2))

        correspondences = self.matcher.find_correspondences(features1, features2)
        logger.info("Found %d correspondences", len(correspondences))

        if len(correspondences) < MIN_CORRESPONDENCES:
            raise InsufficientCorrespondencesError(
                f"Not enough matches between images: {len(correspondences)}")

        H, inliers = self.homography_estimator.find_homography(correspondences)
        num_inliers = int(np.sum(inliers))

        result, canvas_size = self.compositor.composite(img1, img2, H)

        if return_debug_info:
            debug_info = {
                'corners1': corners1,
                'corners2': corners2,
                'features1': features1,
                'features2': features2,
                'correspondences': correspondences,
                'homography': H,
                'inliers': inliers,
                'num_inliers': num_inliers,
                'canvas_size': canvas_size
            }
            return result, debug_info

        return result


def autostitch(img1, img2, blur_descriptor=0.5, radius_descriptor=4, seed=None):
    """Stitch two images with default detector, matcher and RANSAC settings."""
    stitcher = PanoramaStitcher(
        descriptor_params={
            'sigma_blur_descriptor': blur_descriptor,
            'radius_descriptor': radius_descriptor,
        },
        ransac_params={'seed': seed},
    )
    return stitcher.stitch_pair(img1, img2)
