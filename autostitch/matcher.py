"""
Feature matching using squared L2 distance between descriptor patches.
"""

import logging

import numpy as np

from .features import FeatureCorrespondence

logger = logging.getLogger(__name__)


class FeatureMatcher:
    """
    Brute-force matcher with a second-best ratio test.

    Matching is directional: every feature of the first list looks for its
    nearest neighbour in the second list. Several features may end up
    matched to the same target.
    """

    def __init__(self, threshold=1.0):
        """
        Initialize feature matcher.

        Args:
            threshold: Ratio test threshold. A match is kept when
                second_best / best >= threshold**2 (squared distances).
        """
        if threshold < 0:
            raise ValueError("threshold must be non-negative")

        self.threshold = threshold

    def l2_features(self, f1, f2):
        """Squared Euclidean distance between the descriptors of two features."""
        d1, d2 = f1.descriptor, f2.descriptor
        if d1.shape != d2.shape:
            raise ValueError(f"Descriptor shapes differ: {d1.shape} vs {d2.shape}")
        return float(np.sum((d1 - d2) ** 2))

    def find_correspondences(self, features1, features2):
        """
        Match features1 against features2.

        Args:
            features1: Features of the first image
            features2: Features of the second image

        Returns:
            correspondences: List of FeatureCorrespondence, in features1 order
        """
        if len(features1) == 0 or len(features2) == 0:
            return []

        desc2 = self._stack(features2)
        threshold_squared = self.threshold ** 2

        correspondences = []
        for f1 in features1:
            d1 = f1.descriptor.reshape(-1)
            if d1.shape[0] != desc2.shape[1]:
                raise ValueError("Descriptor shapes differ between the two feature lists")

            # One row at a time keeps the distances exact
            distances = np.sum((desc2 - d1) ** 2, axis=1)
            best_idx, best, second = self._two_nearest(distances)

            if self._passes_ratio_test(best, second, threshold_squared):
                correspondences.append(FeatureCorrespondence(f1, features2[best_idx]))

        logger.info("Kept %d of %d features after the ratio test",
                    len(correspondences), len(features1))
        return correspondences

    def _stack(self, features):
        """Stack descriptors into an N x D matrix."""
        return np.array([f.descriptor.reshape(-1) for f in features])

    def _two_nearest(self, distances):
        """
        Index and distance of the nearest neighbour plus the second-best distance.

        Ties keep the earliest index. With a single candidate the second-best
        distance is infinite.
        """
        best_idx = int(np.argmin(distances))
        best = distances[best_idx]

        if len(distances) < 2:
            return best_idx, best, np.inf

        others = np.delete(distances, best_idx)
        return best_idx, best, np.min(others)

    def _passes_ratio_test(self, best, second, threshold_squared):
        if best == 0:
            return second > 0
        return second / best >= threshold_squared
