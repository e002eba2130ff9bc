"""
Two-image panorama stitching with Harris corners.

This package locates Harris corners in a pair of overlapping images,
describes them with normalized luminance patches, matches them with a
second-best ratio test and estimates the homography between the images
with RANSAC, using only NumPy, SciPy and Pillow.

Main components:
- HarrisDetector: Structure tensor, corner response and corner extraction
- DescriptorBuilder: Zero-mean, unit-variance patch descriptors
- FeatureMatcher: Directional nearest-neighbour matching with ratio test
- HomographyEstimator: RANSAC homography estimation
- Compositor: Canvas computation and warping of both images

Example usage:
    from autostitch.image_io import read_images, write_image
    from autostitch.panorama_stitcher import PanoramaStitcher

    images = read_images(['img1.jpg', 'img2.jpg'])
    stitcher = PanoramaStitcher(ransac_params={'seed': 0})
    panorama = stitcher.stitch_pair(images[0], images[1])
    write_image('output.png', panorama)
"""

__version__ = '1.0.0'

from .errors import (
    StitchingError,
    OutOfBoundsError,
    DegenerateDescriptorError,
    InsufficientCorrespondencesError,
)
from .features import Point, Feature, FeatureCorrespondence
from .harris import HarrisDetector
from .descriptor import DescriptorBuilder
from .matcher import FeatureMatcher
from .homography import HomographyEstimator, compute_homography, warp_into
from .compositor import Compositor
from .panorama_stitcher import PanoramaStitcher, autostitch
from .image_io import read_image, write_image, read_images

__all__ = [
    'StitchingError',
    'OutOfBoundsError',
    'DegenerateDescriptorError',
    'InsufficientCorrespondencesError',
    'Point',
    'Feature',
    'FeatureCorrespondence',
    'HarrisDetector',
    'DescriptorBuilder',
    'FeatureMatcher',
    'HomographyEstimator',
    'compute_homography',
    'warp_into',
    'Compositor',
    'PanoramaStitcher',
    'autostitch',
    'read_image',
    'write_image',
    'read_images',
]
