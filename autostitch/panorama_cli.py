#!/usr/bin/env python3
"""
Autostitch CLI
Command-line interface for stitching a pair of overlapping images.

Usage:
    python -m autostitch.panorama_cli image1.jpg image2.jpg [options]
"""

import argparse
import logging
import os
import sys
import time

from .errors import StitchingError
from .image_io import read_images, write_image
from .panorama_stitcher import PanoramaStitcher
from .visualize import (
    normalize_for_display,
    visualize_corners,
    visualize_pairs,
    visualize_reprojection,
)


def print_banner():
    """Print banner."""
    banner = """
    _         _            _   _ _       _
   / \\  _   _| |_ ___  ___| |_(_) |_ ___| |__
  / _ \\| | | | __/ _ \\/ __| __| | __/ __| '_ \\
 / ___ \\ |_| | || (_) \\__ \\ |_| | || (__| | | |
/_/   \\_\\__,_|\\__\\___/|___/\\__|_|\\__\\___|_| |_|

Harris corners + RANSAC homography
    """
    print(banner)


def build_parser():
    parser = argparse.ArgumentParser(
        description='Stitch two overlapping images into a panorama'
    )

    parser.add_argument('images', nargs='+',
                        help='Two input images; the first is warped onto the second')
    parser.add_argument('-o', '--output', default='outputs/panorama_image.png',
                        help='Output panorama path (default: outputs/panorama_image.png)')
    parser.add_argument('--visualize', action='store_true',
                        help='Write a matched features visualization')
    parser.add_argument('--matched-output', default='outputs/matched_features.png',
                        help='Matched features visualization path (default: outputs/matched_features.png)')
    parser.add_argument('--debug-dir', default=None,
                        help='Directory for diagnostic images (response maps, corners, reprojections)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log pipeline progress')

    corners = parser.add_argument_group('corner detection')
    corners.add_argument('--k', type=float, default=0.15,
                         help='Harris sensitivity constant (default: 0.15)')
    corners.add_argument('--sigma-g', type=float, default=1.0,
                         help='Luminance blur before differentiation (default: 1.0)')
    corners.add_argument('--factor-sigma', type=float, default=4.0,
                         help='Tensor blur as a multiple of sigma-g (default: 4.0)')
    corners.add_argument('--maxi-diam', type=int, default=7,
                         help='Non-maximum suppression diameter (default: 7)')
    corners.add_argument('--boundary-size', type=int, default=5,
                         help='Border width without corners (default: 5)')

    descriptors = parser.add_argument_group('descriptors and matching')
    descriptors.add_argument('--sigma-descriptor', type=float, default=0.5,
                             help='Luminance blur before patch sampling (default: 0.5)')
    descriptors.add_argument('--radius-descriptor', type=int, default=4,
                             help='Descriptor patch radius (default: 4)')
    descriptors.add_argument('--threshold', type=float, default=1.0,
                             help='Second-best ratio threshold (default: 1.0)')

    ransac = parser.add_argument_group('RANSAC')
    ransac.add_argument('--n-iter', type=int, default=500,
                        help='Number of RANSAC trials (default: 500)')
    ransac.add_argument('--epsilon', type=float, default=4.0,
                        help='Inlier tolerance in pixels (default: 4.0)')
    ransac.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducible results')
    ransac.add_argument('--sample-scoring', action='store_true',
                        help='Score each trial on its own four samples only')
    ransac.add_argument('--refine', action='store_true',
                        help='Re-fit the homography on all inliers')

    parser.add_argument('--nearest', action='store_true',
                        help='Nearest-neighbour resampling instead of bilinear')

    return parser


def make_stitcher(args):
    return PanoramaStitcher(
        corner_params={
            'k': args.k,
            'sigma_g': args.sigma_g,
            'factor_sigma': args.factor_sigma,
            'maxi_diam': args.maxi_diam,
            'boundary_size': args.boundary_size,
        },
        descriptor_params={
            'sigma_blur_descriptor': args.sigma_descriptor,
            'radius_descriptor': args.radius_descriptor,
        },
        matcher_params={
            'threshold': args.threshold,
        },
        ransac_params={
            'n_iter': args.n_iter,
            'epsilon': args.epsilon,
            'seed': args.seed,
            'score_full_set': not args.sample_scoring,
            'refine': args.refine,
        },
        compositor_params={
            'bilinear': not args.nearest,
        },
    )


def write_debug_images(debug_dir, stitcher, images, debug_info):
    """Write response maps, corners, pairs and reprojections to debug_dir."""
    os.makedirs(debug_dir, exist_ok=True)
    img1, img2 = images

    for i, img in enumerate(images, start=1):
        response = stitcher.detector.corner_response(img)
        write_image(os.path.join(debug_dir, f'corner_response_{i}.png'),
                    normalize_for_display(response))
        write_image(os.path.join(debug_dir, f'corners_{i}.png'),
                    visualize_corners(img, debug_info[f'corners{i}']))

    correspondences = debug_info['correspondences']
    inliers = debug_info['inliers']
    write_image(os.path.join(debug_dir, 'pairs_inliers.png'),
                visualize_pairs(img1, img2, correspondences, inliers))

    vis1, vis2 = visualize_reprojection(img1, img2, debug_info['homography'],
                                        correspondences, inliers)
    write_image(os.path.join(debug_dir, 'reprojection_1.png'), vis1)
    write_image(os.path.join(debug_dir, 'reprojection_2.png'), vis2)


def main(argv=None):
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s %(name)s: %(message)s')

    print_banner()

    if len(args.images) != 2:
        print("Error: Exactly 2 images are needed")
        return 1

    for img_path in args.images:
        if not os.path.exists(img_path):
            print(f"Error: Image not found: {img_path}")
            return 1

    output_dir = os.path.dirname(args.output)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    print("\nReading images...")
    try:
        images = read_images(args.images)
    except IOError as e:
        print(f"Error reading images: {e}")
        return 1
    for i, img in enumerate(images):
        print(f"  Image {i+1}: {img.shape}")

    try:
        stitcher = make_stitcher(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    start_time = time.time()

    try:
        result, debug_info = stitcher.stitch_pair(images[0], images[1],
                                                  return_debug_info=True)
    except StitchingError as e:
        print(f"\nError during stitching: {e}")
        return 1

    elapsed_time = time.time() - start_time

    print(f"  Corners: {len(debug_info['corners1'])} + {len(debug_info['corners2'])}")
    print(f"  Correspondences: {len(debug_info['correspondences'])}")
    print(f"  Inliers: {debug_info['num_inliers']}")

    if args.visualize:
        vis = visualize_pairs(images[0], images[1],
                              debug_info['correspondences'],
                              debug_info['inliers'])
        matched_dir = os.path.dirname(args.matched_output)
        if matched_dir:
            os.makedirs(matched_dir, exist_ok=True)
        write_image(args.matched_output, vis)
        print(f"  Matched features saved to: {args.matched_output}")

    if args.debug_dir:
        write_debug_images(args.debug_dir, stitcher, images, debug_info)
        print(f"  Diagnostic images saved to: {args.debug_dir}")

    write_image(args.output, result)

    print("\nDone!")
    print(f"  Panorama saved to: {args.output}")
    print(f"  Final size: {result.shape}")
    print(f"  Processing time: {elapsed_time:.2f} seconds")

    return 0


if __name__ == '__main__':
    sys.exit(main())
