"""
End-to-end tests for the two-image stitching pipeline and its CLI.

The translation scenario crops a texture of random gray blocks twice, so
that the second crop is a pure horizontal shift of the first. A regular
checkerboard does not work for this: its corner patches repeat, so every
match ties with its runner-up at distance zero and the ratio test rejects
it (see test_checkerboard_corners_are_ambiguous).
"""

import os

import numpy as np
import pytest

from autostitch.descriptor import DescriptorBuilder
from autostitch.errors import InsufficientCorrespondencesError
from autostitch.features import Point
from autostitch.image_io import write_image
from autostitch.matcher import FeatureMatcher
from autostitch.panorama_cli import main
from autostitch.panorama_stitcher import PanoramaStitcher, autostitch

SHIFT = 10


def block_texture(height, width, block=10, seed=0):
    rng = np.random.default_rng(seed)
    blocks = rng.uniform(0.1, 0.9, size=(height // block + 1, width // block + 1))
    return np.kron(blocks, np.ones((block, block)))[:height, :width]


@pytest.fixture(scope='module')
def translated_pair():
    """Image 1 content appears SHIFT pixels further right in image 2."""
    texture = block_texture(100, 100 + SHIFT)
    return texture[:, SHIFT:], texture[:, :100]


@pytest.fixture(scope='module')
def stitched(translated_pair):
    stitcher = PanoramaStitcher(ransac_params={'epsilon': 2.0, 'seed': 0})
    return stitcher.stitch_pair(*translated_pair, return_debug_info=True)


class TestTranslatedPair:

    def test_corners_align_after_matching(self, stitched):
        _, debug = stitched
        displacements = [
            (c.feature2.point.x - c.feature1.point.x,
             c.feature2.point.y - c.feature1.point.y)
            for c in debug['correspondences']
        ]
        aligned = [c for c, d in zip(debug['correspondences'], displacements)
                   if d == (SHIFT, 0)]

        # Corners near the crop edges see different context in each image
        assert len(aligned) >= 8
        assert len(aligned) >= len(debug['correspondences']) // 2
        targets = [c.feature2.point for c in aligned]
        assert len(set(targets)) == len(targets)

    def test_homography_is_a_translation(self, stitched):
        _, debug = stitched
        H = debug['homography']

        assert abs(H[0, 2] - SHIFT) < 1.0
        assert abs(H[1, 2]) < 1.0
        assert abs(H[0, 0] - 1) < 0.02
        assert abs(H[1, 1] - 1) < 0.02
        assert abs(H[0, 1]) < 0.02
        assert abs(H[1, 0]) < 0.02
        assert abs(H[2, 0]) < 1e-3
        assert abs(H[2, 1]) < 1e-3

    def test_aligned_matches_are_inliers(self, stitched):
        _, debug = stitched
        corrs = debug['correspondences']
        aligned = [i for i, c in enumerate(corrs)
                   if (c.feature2.point.x - c.feature1.point.x,
                       c.feature2.point.y - c.feature1.point.y) == (SHIFT, 0)]

        assert len(debug['inliers']) == len(corrs)
        assert all(debug['inliers'][i] for i in aligned)
        assert debug['num_inliers'] >= len(aligned)

    def test_panorama_spans_both_images(self, stitched):
        result, debug = stitched
        assert result.shape == (100, 100 + SHIFT)
        assert debug['canvas_size'] == result.shape

    def test_color_input(self, translated_pair):
        img1, img2 = (np.stack([img] * 3, axis=2) for img in translated_pair)
        result = autostitch(img1, img2, seed=0)
        assert result.shape[2] == 3
        assert abs(result.shape[1] - (100 + SHIFT)) <= 1


def squares_on_flat_background():
    image = np.full((120, 120), 0.5)
    image[20:28, 30:38] = 0.9
    image[70:75, 60:65] = 0.2
    image[40:52, 85:97] = 0.8
    return image


class TestFailures:

    def test_flat_images_have_no_correspondences(self):
        flat = np.full((40, 40), 0.5)
        with pytest.raises(InsufficientCorrespondencesError):
            PanoramaStitcher().stitch_pair(flat, flat)

    def test_corners_on_flat_patches_are_dropped(self, monkeypatch):
        stitcher = PanoramaStitcher()
        corners = [Point(30, 20), Point(100, 10), Point(10, 110)]
        monkeypatch.setattr(stitcher.detector, 'detect', lambda image: corners)

        found, features = stitcher.extract_features(squares_on_flat_background())

        assert found == corners
        assert [f.point for f in features] == [Point(30, 20)]

    def test_mostly_flat_image(self):
        image = squares_on_flat_background()
        stitcher = PanoramaStitcher()

        corners, features = stitcher.extract_features(image)
        assert len(features) <= len(corners)
        for feature in features:
            assert np.isclose(np.mean(feature.descriptor ** 2), 1.0)

        corrs = stitcher.matcher.find_correspondences(features, features)
        assert all(c.feature1 is c.feature2 for c in corrs)

    def test_checkerboard_corners_are_ambiguous(self):
        ys, xs = np.mgrid[0:100, 0:100]
        board = ((xs // 10 + ys // 10) % 2).astype(np.float64)
        junctions = [Point(30, 30), Point(50, 50), Point(30, 40), Point(40, 30)]

        features = DescriptorBuilder().compute_features(board, junctions)

        assert FeatureMatcher().find_correspondences(features, features) == []


class TestCli:

    @pytest.fixture
    def image_paths(self, tmp_path, translated_pair):
        paths = []
        for i, img in enumerate(translated_pair, start=1):
            path = str(tmp_path / f'image{i}.png')
            write_image(path, img)
            paths.append(path)
        return paths

    def test_writes_panorama_and_diagnostics(self, tmp_path, image_paths):
        output = str(tmp_path / 'out' / 'panorama.png')
        matched = str(tmp_path / 'out' / 'matches.png')
        debug_dir = str(tmp_path / 'debug')

        code = main(image_paths + [
            '-o', output,
            '--epsilon', '2',
            '--seed', '0',
            '--visualize', '--matched-output', matched,
            '--debug-dir', debug_dir,
        ])

        assert code == 0
        assert os.path.exists(output)
        assert os.path.exists(matched)
        for name in ('corner_response_1.png', 'corners_2.png',
                     'pairs_inliers.png', 'reprojection_1.png'):
            assert os.path.exists(os.path.join(debug_dir, name))

    def test_needs_two_images(self, image_paths):
        assert main(image_paths[:1]) == 1

    def test_missing_image(self, tmp_path, image_paths):
        assert main([image_paths[0], str(tmp_path / 'nope.png')]) == 1

    def test_stitching_failure_is_reported(self, tmp_path):
        paths = []
        for i in range(2):
            path = str(tmp_path / f'flat{i}.png')
            write_image(path, np.full((30, 30), 0.5))
            paths.append(path)
        assert main(paths + ['-o', str(tmp_path / 'out.png')]) == 1
