"""Image and descriptor encoding utilities."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING

import cv2
import numpy as np

from robust_matcher.core.exceptions import ServiceError

if TYPE_CHECKING:
    from numpy.typing import NDArray


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode base64 string to bytes.

    Accepts data URLs ("data:image/png;base64,...").

    Raises:
        ServiceError: If base64 decoding fails
    """
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        return base64.b64decode(base64_string, validate=True)
    except binascii.Error as e:
        raise ServiceError(
            error="decode_error",
            message=f"Invalid Base64 encoding: {e}",
            status_code=400,
            details=None,
        ) from e


def decode_image(image_bytes: bytes) -> NDArray[np.uint8]:
    """
    Decode encoded image bytes (JPEG, PNG, WebP) to a grayscale array.

    Raises:
        ServiceError: If the bytes are not a decodable image
    """
    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_GRAYSCALE) if nparr.size else None

    if image is None:
        raise ServiceError(
            error="invalid_image",
            message="Failed to decode image data",
            status_code=400,
            details=None,
        )
    return image


def encode_descriptors(descriptors: NDArray | None) -> tuple[str, str, list[int]]:
    """
    Encode a descriptor matrix for JSON transport.

    Returns:
        Tuple of (base64 data, dtype name, shape)
    """
    if descriptors is None:
        return "", "uint8", [0, 0]
    data = base64.b64encode(np.ascontiguousarray(descriptors).tobytes()).decode("ascii")
    return data, str(descriptors.dtype), list(descriptors.shape)
