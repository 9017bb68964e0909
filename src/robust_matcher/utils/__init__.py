"""Utility functions for the robust matcher."""

from robust_matcher.utils.image import decode_base64_image, decode_image, encode_descriptors
from robust_matcher.utils.timing import StageTimer

__all__ = ["StageTimer", "decode_base64_image", "decode_image", "encode_descriptors"]
