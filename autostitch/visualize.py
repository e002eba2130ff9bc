"""
Diagnostic drawings for corners, descriptors and correspondences.

All functions work on float images in [0, 1] and return new RGB images;
inputs are never modified.
"""

import numpy as np

from .errors import OutOfBoundsError
from .features import correspondence_arrays
from .homography import transform_points
from .image_ops import as_float_image

RED = (1.0, 0.0, 0.0)
GREEN = (0.0, 1.0, 0.0)
BLUE = (0.0, 0.0, 1.0)
YELLOW = (1.0, 1.0, 0.0)


def to_rgb(image):
    """Float RGB copy of an image."""
    image = as_float_image(image)
    if image.ndim == 2:
        return np.stack([image] * 3, axis=2)
    if image.shape[2] == 1:
        return np.concatenate([image] * 3, axis=2)
    return image[:, :, :3].copy()


def normalize_for_display(response):
    """Rescale a response map to [0, 1]."""
    response = np.asarray(response, dtype=np.float64)
    peak = np.max(response) if response.size else 0.0
    if peak <= 0:
        return np.zeros_like(response)
    return np.clip(response / peak, 0.0, 1.0)


def visualize_corners(image, points, radius=2, color=GREEN):
    """Draw a filled disc at every point."""
    vis = to_rgb(image)
    for x, y in points:
        _draw_circle(vis, (int(round(x)), int(round(y))), radius, color)
    return vis


def visualize_features(image, features, radius_descriptor):
    """
    Paint each descriptor window: green where the normalized patch is
    positive, red where it is negative, black where it is zero.
    """
    vis = to_rgb(image)
    h, w = vis.shape[:2]
    r = int(radius_descriptor)

    for feature in features:
        x, y = feature.point
        if x - r < 0 or y - r < 0 or x + r >= w or y + r >= h:
            raise OutOfBoundsError(
                f"Feature window around ({x}, {y}) leaves the {w}x{h} image")

        desc = feature.descriptor
        window = np.zeros((2 * r + 1, 2 * r + 1, 3))
        window[desc > 0] = GREEN
        window[desc < 0] = RED
        vis[y - r:y + r + 1, x - r:x + r + 1] = window

    return vis


def visualize_pairs(img1, img2, correspondences, inlier_mask=None):
    """
    Place both images side by side and join matched points with lines.

    Without a mask every line is green; with one, inliers are green and
    outliers red.
    """
    vis = _side_by_side(img1, img2)
    offset = img1.shape[1]

    for i, corr in enumerate(correspondences):
        p1 = corr.feature1.point
        p2 = corr.feature2.point
        if inlier_mask is None or inlier_mask[i]:
            color = GREEN
        else:
            color = RED
        _draw_line(vis, (p1.x, p1.y), (p2.x + offset, p2.y), color)

    return vis


def visualize_reprojection(img1, img2, H, correspondences, inlier_mask):
    """
    Show detected and reprojected points in both images.

    Inliers: detected points in green, reprojections in red.
    Outliers: detected points in yellow, reprojections in blue.

    Returns:
        vis1, vis2: Annotated copies of img1 and img2
    """
    src_pts, dst_pts = correspondence_arrays(correspondences)
    inlier_mask = np.asarray(inlier_mask, dtype=bool)

    projected_in_2 = transform_points(src_pts, H)
    projected_in_1 = transform_points(dst_pts, np.linalg.inv(H))

    vis1 = to_rgb(img1)
    vis2 = to_rgb(img2)

    for vis, detected, projected in ((vis1, src_pts, projected_in_1),
                                     (vis2, dst_pts, projected_in_2)):
        finite = np.all(np.isfinite(projected), axis=1)
        _draw_points(vis, detected[inlier_mask], 2, GREEN)
        _draw_points(vis, projected[inlier_mask & finite], 1, RED)
        _draw_points(vis, detected[~inlier_mask], 2, YELLOW)
        _draw_points(vis, projected[~inlier_mask & finite], 1, BLUE)

    return vis1, vis2


def _side_by_side(img1, img2):
    left = to_rgb(img1)
    right = to_rgb(img2)
    h = max(left.shape[0], right.shape[0])
    w1 = left.shape[1]

    vis = np.zeros((h, w1 + right.shape[1], 3))
    vis[:left.shape[0], :w1] = left
    vis[:right.shape[0], w1:] = right
    return vis


def _draw_points(image, points, radius, color):
    for x, y in points:
        _draw_circle(image, (int(round(x)), int(round(y))), radius, color)


def _draw_line(image, pt1, pt2, color):
    """Draw line on image using Bresenham's algorithm."""
    x1, y1 = pt1
    x2, y2 = pt2

    steep = abs(y2 - y1) > abs(x2 - x1)
    if steep:
        x1, y1 = y1, x1
        x2, y2 = y2, x2
    if x1 > x2:
        x1, x2 = x2, x1
        y1, y2 = y2, y1

    dx = x2 - x1
    dy = abs(y2 - y1)
    error = dx / 2
    ystep = 1 if y1 < y2 else -1
    y = y1

    for x in range(int(x1), int(x2) + 1):
        row, col = (x, y) if steep else (y, x)
        if 0 <= row < image.shape[0] and 0 <= col < image.shape[1]:
            image[row, col] = color

        error -= dy
        if error < 0:
            y += ystep
            error += dx


def _draw_circle(image, center, radius, color):
    """Draw filled circle on image, clipped to its extent."""
    cx, cy = center

    for y in range(max(0, cy - radius), min(image.shape[0], cy + radius + 1)):
        for x in range(max(0, cx - radius), min(image.shape[1], cx + radius + 1)):
            if (x - cx) ** 2 + (y - cy) ** 2 <= radius ** 2:
                image[y, x] = color
