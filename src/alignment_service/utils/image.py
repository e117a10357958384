"""Image payload helpers."""

from __future__ import annotations

import base64
import binascii

from alignment_service.core.exceptions import ServiceError


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode a base64 image payload, with or without a data URL prefix.

    Args:
        base64_string: Base64-encoded image data

    Returns:
        Raw image bytes

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
