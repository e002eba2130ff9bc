"""
Tests for reading and writing images with Pillow.
"""

import numpy as np
import pytest

from autostitch.image_io import read_image, read_images, write_image


def test_color_round_trip(tmp_path):
    image = np.random.default_rng(0).uniform(size=(12, 16, 3))
    path = str(tmp_path / 'color.png')

    write_image(path, image)
    loaded = read_image(path)

    assert loaded.shape == (12, 16, 3)
    assert loaded.dtype == np.float64
    assert np.max(np.abs(loaded - image)) <= 0.5 / 255 + 1e-9


def test_grayscale_stays_2d(tmp_path):
    image = np.linspace(0, 1, 50).reshape(5, 10)
    path = str(tmp_path / 'gray.png')

    write_image(path, image)

    assert read_image(path).shape == (5, 10)


def test_out_of_range_values_are_clipped(tmp_path):
    path = str(tmp_path / 'clipped.png')
    write_image(path, np.array([[-0.5, 0.5, 1.5]]))
    assert np.allclose(read_image(path), [[0.0, 128 / 255, 1.0]])


def test_read_images_keeps_order(tmp_path):
    paths = []
    for i, value in enumerate((0.0, 1.0)):
        path = str(tmp_path / f'{i}.png')
        write_image(path, np.full((4, 4), value))
        paths.append(path)

    first, second = read_images(paths)
    assert np.all(first == 0.0)
    assert np.all(second == 1.0)


def test_missing_file(tmp_path):
    with pytest.raises(IOError):
        read_image(str(tmp_path / 'missing.png'))
