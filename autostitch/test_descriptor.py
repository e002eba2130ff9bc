"""
Tests for patch descriptors.
"""

import numpy as np
import pytest

from autostitch.descriptor import DescriptorBuilder
from autostitch.errors import DegenerateDescriptorError, OutOfBoundsError
from autostitch.features import Point


@pytest.fixture
def textured_image():
    return np.random.default_rng(7).uniform(size=(50, 60))


class TestComputeFeatures:

    def test_patches_are_normalized(self, textured_image):
        corners = [Point(10, 10), Point(30, 20), Point(55, 45)]
        features = DescriptorBuilder().compute_features(textured_image, corners)

        for feature in features:
            assert feature.descriptor.shape == (9, 9)
            assert abs(feature.descriptor.mean()) < 1e-10
            assert abs(feature.descriptor.var() - 1.0) < 1e-10

    def test_order_follows_corners(self, textured_image):
        corners = [Point(40, 30), Point(5, 5), Point(20, 12)]
        features = DescriptorBuilder().compute_features(textured_image, corners)
        assert [f.point for f in features] == corners

    def test_radius_sets_patch_size(self, textured_image):
        builder = DescriptorBuilder(radius_descriptor=2)
        features = builder.compute_features(textured_image, [Point(10, 10)])
        assert features[0].descriptor.shape == (5, 5)

    def test_invariant_to_gain_and_offset(self, textured_image):
        builder = DescriptorBuilder()
        corners = [Point(25, 25)]
        plain = builder.compute_features(textured_image, corners)[0]
        scaled = builder.compute_features(0.5 * textured_image + 0.2, corners)[0]
        assert np.allclose(plain.descriptor, scaled.descriptor)

    def test_color_image(self, textured_image):
        color = np.stack([textured_image] * 3, axis=2)
        builder = DescriptorBuilder()
        gray_features = builder.compute_features(textured_image, [Point(20, 20)])
        color_features = builder.compute_features(color, [Point(20, 20)])
        assert np.allclose(gray_features[0].descriptor, color_features[0].descriptor)

    def test_descriptor_is_read_only(self, textured_image):
        feature = DescriptorBuilder().compute_features(textured_image, [Point(20, 20)])[0]
        with pytest.raises(ValueError):
            feature.descriptor[0, 0] = 1.0

    def test_no_corners(self, textured_image):
        assert DescriptorBuilder().compute_features(textured_image, []) == []


class TestFailures:

    def test_window_past_left_edge(self, textured_image):
        with pytest.raises(OutOfBoundsError):
            DescriptorBuilder().compute_features(textured_image, [Point(3, 20)])

    def test_window_past_right_edge(self, textured_image):
        with pytest.raises(OutOfBoundsError):
            DescriptorBuilder().compute_features(textured_image, [Point(56, 20)])

    def test_window_touching_edges_is_valid(self, textured_image):
        corners = [Point(4, 4), Point(55, 45)]
        features = DescriptorBuilder().compute_features(textured_image, corners)
        assert len(features) == 2

    def test_out_of_bounds_is_an_index_error(self, textured_image):
        with pytest.raises(IndexError):
            DescriptorBuilder().compute_features(textured_image, [Point(20, 48)])

    def test_flat_patch(self):
        with pytest.raises(DegenerateDescriptorError):
            DescriptorBuilder().compute_features(np.full((30, 30), 0.4), [Point(15, 15)])

    def test_flat_patch_can_be_skipped(self):
        image = np.full((40, 40), 0.4)
        image[8:14, 8:14] = 0.9
        corners = [Point(30, 30), Point(8, 8), Point(20, 30)]

        features = DescriptorBuilder().compute_features(image, corners, skip_flat=True)

        assert [f.point for f in features] == [Point(8, 8)]

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            DescriptorBuilder(radius_descriptor=-1)


class TestFilterCorners:

    def test_drops_corners_near_the_border(self):
        builder = DescriptorBuilder(radius_descriptor=4)
        corners = [Point(3, 10), Point(4, 10), Point(10, 26), Point(10, 25)]
        assert builder.filter_corners(corners, (30, 40)) == [Point(4, 10), Point(10, 25)]
