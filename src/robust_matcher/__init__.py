"""
Robust Matcher - ratio, symmetry and epipolar validation of feature matches.

Recovers the fundamental matrix relating two views from ORB or SIFT
correspondences, as a library and as an HTTP service.
"""

__version__ = "0.1.0"
