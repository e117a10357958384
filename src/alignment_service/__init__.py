"""
Alignment Service - point correspondences and similarity transforms.

Keeps bijective keypoint pairings between two images, filters automatic
matches with RANSAC and estimates the scale + rotation + translation that
maps the right image onto the left one.
"""

__version__ = "0.1.0"
