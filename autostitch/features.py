"""
Value types shared by the detection, matching and estimation stages.
"""

from collections import namedtuple

import numpy as np


class Point(namedtuple('Point', ['x', 'y'])):
    """Integer pixel location; x is the column, y the row."""

    __slots__ = ()

    def __new__(cls, x, y):
        return super().__new__(cls, int(x), int(y))

    def to_homogeneous(self):
        return np.array([self.x, self.y, 1.0])


class Feature:
    """A corner location together with its descriptor patch."""

    __slots__ = ('_point', '_descriptor')

    def __init__(self, point, descriptor):
        descriptor = np.array(descriptor, dtype=np.float64)
        descriptor.flags.writeable = False

        self._point = Point(*point)
        self._descriptor = descriptor

    @property
    def point(self):
        return self._point

    @property
    def descriptor(self):
        return self._descriptor

    def __repr__(self):
        return f"Feature(point=({self._point.x}, {self._point.y}), descriptor_shape={self._descriptor.shape})"


class FeatureCorrespondence:
    """
    A directional match between two features.

    feature1 always comes from the first image handed to the matcher,
    feature2 from the second one.
    """

    __slots__ = ('_feature1', '_feature2')

    def __init__(self, feature1, feature2):
        self._feature1 = feature1
        self._feature2 = feature2

    @property
    def feature1(self):
        return self._feature1

    @property
    def feature2(self):
        return self._feature2

    def features(self):
        return [self._feature1, self._feature2]

    def feature(self, i):
        return self._feature1 if i == 0 else self._feature2

    def to_correspondence_pair(self):
        """Return the two locations as homogeneous 3-vectors."""
        return (self._feature1.point.to_homogeneous(),
                self._feature2.point.to_homogeneous())

    def __repr__(self):
        p1, p2 = self._feature1.point, self._feature2.point
        return f"FeatureCorrespondence(({p1.x}, {p1.y}) -> ({p2.x}, {p2.y}))"


def correspondence_arrays(correspondences):
    """
    Convert correspondences to point arrays.

    Returns:
        src_pts: Points in the first image (N x 2)
        dst_pts: Points in the second image (N x 2)
    """
    src_pts = np.array([c.feature1.point for c in correspondences],
                       dtype=np.float64).reshape(-1, 2)
    dst_pts = np.array([c.feature2.point for c in correspondences],
                       dtype=np.float64).reshape(-1, 2)
    return src_pts, dst_pts
