"""
Compositing of an image pair onto a shared panorama canvas.
"""

import logging
from collections import namedtuple

import numpy as np

from .homography import transform_points, warp_into

logger = logging.getLogger(__name__)


BoundingBox = namedtuple('BoundingBox', ['x1', 'y1', 'x2', 'y2'])

# Projected corners are rounded to this many decimals before floor/ceil
BBOX_DECIMALS = 6


def compute_transformed_bbox(width, height, H):
    """
    Integer bounding box of a width x height image after applying H.
    """
    corners = np.array([
        [0, 0],
        [width, 0],
        [width, height],
        [0, height]
    ], dtype=np.float64)

    transformed = transform_points(corners, H)
    if not np.all(np.isfinite(transformed)):
        raise ValueError("Homography sends an image corner to infinity")

    transformed = np.round(transformed, BBOX_DECIMALS)

    return BoundingBox(
        int(np.floor(np.min(transformed[:, 0]))),
        int(np.floor(np.min(transformed[:, 1]))),
        int(np.ceil(np.max(transformed[:, 0]))),
        int(np.ceil(np.max(transformed[:, 1]))),
    )


def bbox_union(a, b):
    return BoundingBox(min(a.x1, b.x1), min(a.y1, b.y1),
                       max(a.x2, b.x2), max(a.y2, b.y2))


def make_translation(bbox):
    """Translation moving the top-left corner of bbox to the origin."""
    return np.array([
        [1, 0, -bbox.x1],
        [0, 1, -bbox.y1],
        [0, 0, 1]
    ], dtype=np.float64)


class Compositor:
    """
    Places two images on one canvas using the homography between them.

    The second image is only translated; the first one is warped by the
    homography into the second image's frame. Overlapping pixels take the
    value of the first image (last writer wins, no blending).
    """

    def __init__(self, bilinear=True):
        """
        Initialize Compositor.

        Args:
            bilinear: Bilinear resampling if True, nearest neighbour otherwise
        """
        self.bilinear = bilinear

    def canvas_bbox(self, img1, img2, H):
        h1, w1 = img1.shape[:2]
        h2, w2 = img2.shape[:2]
        bbox1 = compute_transformed_bbox(w1, h1, H)
        bbox2 = compute_transformed_bbox(w2, h2, np.eye(3))
        return bbox_union(bbox1, bbox2)

    def composite(self, img1, img2, H):
        """
        Composite two images.

        Args:
            img1: First image, warped by H
            img2: Second image, defines the reference frame
            H: Homography mapping img1 coordinates into img2's frame

        Returns:
            panorama: Composited image
            canvas_size: Size of the canvas (height, width)
        """
        if img1.shape[2:] != img2.shape[2:]:
            raise ValueError(f"Channel mismatch: {img1.shape} vs {img2.shape}")

        bbox = self.canvas_bbox(img1, img2, H)
        T = make_translation(bbox)

        canvas_height = bbox.y2 - bbox.y1
        canvas_width = bbox.x2 - bbox.x1
        logger.info("Canvas is %dx%d", canvas_width, canvas_height)

        dtype = np.result_type(img1.dtype, img2.dtype, np.float32)
        canvas = np.zeros((canvas_height, canvas_width) + img1.shape[2:], dtype=dtype)

        warp_into(img2, T, canvas, bilinear=self.bilinear)
        warp_into(img1, T @ H, canvas, bilinear=self.bilinear)

        return canvas, (canvas_height, canvas_width)
