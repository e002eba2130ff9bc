"""
Homography fitting, RANSAC estimation and image warping.
"""

import logging

import numpy as np

from .errors import InsufficientCorrespondencesError
from .features import correspondence_arrays

logger = logging.getLogger(__name__)

MIN_CORRESPONDENCES = 4


def compute_homography(src_pts, dst_pts):
    """
    Compute the homography mapping src_pts onto dst_pts.

    Uses the normalized Direct Linear Transform. For each correspondence
    (x, y) -> (x', y') we have:
    x' = (h11*x + h12*y + h13) / (h31*x + h32*y + h33)
    y' = (h21*x + h22*y + h23) / (h31*x + h32*y + h33)

    which gives two rows of a homogeneous system A h = 0 per pair.

    Args:
        src_pts: Source points (N x 2), N >= 4
        dst_pts: Destination points (N x 2)

    Returns:
        H: Homography matrix (3 x 3), scaled so H[2, 2] = 1 when possible,
           or None if the linear solve fails
    """
    src_pts = np.asarray(src_pts, dtype=np.float64)
    dst_pts = np.asarray(dst_pts, dtype=np.float64)

    if len(src_pts) < MIN_CORRESPONDENCES or len(src_pts) != len(dst_pts):
        return None

    src_norm, T_src = normalize_points(src_pts)
    dst_norm, T_dst = normalize_points(dst_pts)

    x, y = src_norm[:, 0], src_norm[:, 1]
    xp, yp = dst_norm[:, 0], dst_norm[:, 1]
    zeros = np.zeros_like(x)
    ones = np.ones_like(x)

    rows_x = np.stack([-x, -y, -ones, zeros, zeros, zeros, x * xp, y * xp, xp], axis=1)
    rows_y = np.stack([zeros, zeros, zeros, -x, -y, -ones, x * yp, y * yp, yp], axis=1)
    A = np.empty((2 * len(x), 9))
    A[0::2] = rows_x
    A[1::2] = rows_y

    try:
        _, _, Vt = np.linalg.svd(A)
        H = Vt[-1].reshape(3, 3)
        H = np.linalg.inv(T_dst) @ H @ T_src
    except np.linalg.LinAlgError:
        return None

    if H[2, 2] != 0:
        H = H / H[2, 2]

    return H


def normalize_points(points):
    """
    Hartley normalization.

    Translates points so the centroid is at the origin and scales them so
    the average distance from the origin is sqrt(2).

    Returns:
        normalized: Normalized points (N x 2)
        T: Similarity transform applied (3 x 3)
    """
    points = np.asarray(points, dtype=np.float64)

    centroid = np.mean(points, axis=0)
    avg_dist = np.mean(np.linalg.norm(points - centroid, axis=1))
    if avg_dist < 1e-10:
        avg_dist = 1.0

    scale = np.sqrt(2) / avg_dist
    T = np.array([
        [scale, 0, -scale * centroid[0]],
        [0, scale, -scale * centroid[1]],
        [0, 0, 1]
    ])

    return (points - centroid) * scale, T


def transform_points(points, H):
    """
    Apply a homography to points.

    Args:
        points: Points to transform (N x 2)
        H: Homography matrix (3 x 3)

    Returns:
        Transformed points (N x 2). Points sent to infinity come back as inf.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    projected = (H @ homogeneous.T).T

    w = projected[:, 2:3]
    with np.errstate(divide='ignore', invalid='ignore'):
        result = np.where(w != 0, projected[:, :2] / np.where(w != 0, w, 1.0), np.inf)

    return result


class HomographyEstimator:
    """
    Homography estimation with random sample consensus.

    Each trial fits a homography to four randomly drawn correspondences and
    scores it by its inlier count. The best-scoring homography wins; on equal
    counts the later trial wins. If no trial finds an inlier the identity
    is returned.

    The random generator is created once and shared by every call, so a
    seeded estimator is reproducible as a whole sequence of calls, not per
    call. Pass rng to ransac or find_homography to pin a single call.
    """

    def __init__(self, n_iter=500, epsilon=4.0, rng=None, seed=None,
                 score_full_set=True, refine=False):
        """
        Initialize Homography Estimator.

        Args:
            n_iter: Number of RANSAC trials
            epsilon: Inlier distance tolerance in pixels
            rng: numpy.random.Generator used to draw samples
            seed: Seed for a fresh generator when rng is not given
            score_full_set: Count inliers over every correspondence. When
                False only the four sampled correspondences are scored.
            refine: Re-fit the winning model on all of its inliers
        """
        if n_iter < 1:
            raise ValueError("n_iter must be at least 1")
        if epsilon < 0:
            raise ValueError("epsilon must be non-negative")

        self.n_iter = int(n_iter)
        self.epsilon = epsilon
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.score_full_set = score_full_set
        self.refine = refine

    def inliers(self, H, correspondences):
        """
        Inlier mask of correspondences under H.

        Returns:
            mask: Boolean array, same length and order as correspondences
        """
        src_pts, dst_pts = correspondence_arrays(correspondences)
        return self._get_inliers(src_pts, dst_pts, H)

    def ransac(self, correspondences, rng=None):
        """Best homography found over n_iter trials."""
        H, _ = self._run(correspondences, rng)
        return H

    def find_homography(self, correspondences, rng=None):
        """
        Estimate the homography mapping the first image onto the second.

        Args:
            correspondences: Sequence of FeatureCorrespondence
            rng: Generator for this call only, instead of the estimator's own

        Returns:
            H: Homography matrix (3 x 3)
            mask: Inlier mask over all correspondences

        Raises:
            InsufficientCorrespondencesError: With fewer than four correspondences
        """
        H, (src_pts, dst_pts) = self._run(correspondences, rng)
        mask = self._get_inliers(src_pts, dst_pts, H)

        if self.refine and np.sum(mask) >= MIN_CORRESPONDENCES:
            refined = self._fit(src_pts[mask], dst_pts[mask])
            refined_mask = self._get_inliers(src_pts, dst_pts, refined)
            if np.sum(refined_mask) >= np.sum(mask):
                H, mask = refined, refined_mask

        logger.info("Homography supported by %d of %d correspondences",
                    int(np.sum(mask)), len(mask))
        return H, mask

    def _run(self, correspondences, rng=None):
        rng = rng if rng is not None else self.rng
        n_points = len(correspondences)
        if n_points < MIN_CORRESPONDENCES:
            raise InsufficientCorrespondencesError(
                f"Need at least {MIN_CORRESPONDENCES} correspondences, got {n_points}")

        src_pts, dst_pts = correspondence_arrays(correspondences)

        best_H = np.eye(3)
        best_num_inliers = 0

        for iteration in range(self.n_iter):
            indices = rng.choice(n_points, MIN_CORRESPONDENCES, replace=False)
            H = self._fit(src_pts[indices], dst_pts[indices])

            if self.score_full_set:
                inliers = self._get_inliers(src_pts, dst_pts, H)
            else:
                inliers = self._get_inliers(src_pts[indices], dst_pts[indices], H)
            num_inliers = int(np.sum(inliers))

            # Trials without inliers never replace the identity default
            if num_inliers > 0 and num_inliers >= best_num_inliers:
                best_num_inliers = num_inliers
                best_H = H

        logger.debug("Best of %d trials has %d inliers", self.n_iter, best_num_inliers)
        return best_H, (src_pts, dst_pts)

    def _fit(self, src_pts, dst_pts):
        """Fit a homography, falling back to identity for singular fits."""
        H = compute_homography(src_pts, dst_pts)

        if H is None or not np.all(np.isfinite(H)) or np.linalg.det(H) == 0:
            return np.eye(3)
        return H

    def _get_inliers(self, src_pts, dst_pts, H):
        """
        Inliers are points whose projection lands within epsilon of their match.

        The projection of each source point is normalized to w = 1 and compared
        with the homogeneous destination point.
        """
        projected = transform_points(src_pts, H)
        errors = np.linalg.norm(dst_pts - projected, axis=1)
        return errors < self.epsilon


def warp_into(source, H, out, bilinear=True):
    """
    Warp source into out in place.

    H maps source coordinates to out coordinates. Every pixel of out whose
    pre-image falls inside source is overwritten; the rest is left untouched.

    Args:
        source: Source image (H x W) or (H x W x C)
        H: Homography matrix (3 x 3)
        out: Destination image, same number of channels as source
        bilinear: Bilinear interpolation if True, nearest neighbour otherwise
    """
    h, w = out.shape[:2]

    try:
        H_inv = np.linalg.inv(H)
    except np.linalg.LinAlgError:
        logger.warning("Cannot invert homography; nothing warped")
        return out

    y_coords, x_coords = np.meshgrid(np.arange(h), np.arange(w), indexing='ij')
    coords = np.stack([x_coords.ravel(), y_coords.ravel()], axis=1)
    src_coords = transform_points(coords, H_inv)

    src_x = src_coords[:, 0].reshape(h, w)
    src_y = src_coords[:, 1].reshape(h, w)

    if bilinear:
        values, mask = bilinear_interpolate(source, src_x, src_y)
    else:
        values, mask = nearest_interpolate(source, src_x, src_y)

    out[mask] = values[mask]
    return out


def _source_mask(image, x, y):
    h, w = image.shape[:2]
    return (x >= 0) & (x <= w - 1) & (y >= 0) & (y <= h - 1)


def bilinear_interpolate(image, x, y):
    """
    Bilinear interpolation for image warping.

    Args:
        image: Input image (H x W) or (H x W x C)
        x: X coordinates (h x w)
        y: Y coordinates (h x w)

    Returns:
        values: Interpolated values, (h x w) or (h x w x C)
        mask: Where (x, y) lies inside the image
    """
    h, w = image.shape[:2]
    mask = _source_mask(image, x, y)

    xs = np.where(mask, x, 0.0)
    ys = np.where(mask, y, 0.0)

    x0 = np.floor(xs).astype(int)
    y0 = np.floor(ys).astype(int)
    x1 = np.clip(x0 + 1, 0, w - 1)
    y1 = np.clip(y0 + 1, 0, h - 1)

    fx = xs - x0
    fy = ys - y0
    if image.ndim == 3:
        fx = fx[:, :, np.newaxis]
        fy = fy[:, :, np.newaxis]

    values = ((1 - fx) * (1 - fy) * image[y0, x0] +
              (1 - fx) * fy * image[y1, x0] +
              fx * (1 - fy) * image[y0, x1] +
              fx * fy * image[y1, x1])

    return values, mask


def nearest_interpolate(image, x, y):
    """Nearest-neighbour lookup with the same contract as bilinear_interpolate."""
    h, w = image.shape[:2]
    xi = np.rint(np.where(np.isfinite(x), x, -1.0))
    yi = np.rint(np.where(np.isfinite(y), y, -1.0))
    mask = (xi >= 0) & (xi <= w - 1) & (yi >= 0) & (yi <= h - 1)

    xi = np.where(mask, xi, 0).astype(int)
    yi = np.where(mask, yi, 0).astype(int)

    return image[yi, xi], mask
