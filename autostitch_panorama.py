#!/usr/bin/env python3
"""
Wrapper script for two-image panorama stitching.
Makes it easier to run without the -m flag.

Usage:
    python autostitch_panorama.py image1.jpg image2.jpg
"""

import sys
from autostitch.panorama_cli import main

if __name__ == '__main__':
    sys.exit(main())
