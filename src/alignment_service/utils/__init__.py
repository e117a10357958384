"""Utility functions for the alignment service."""

from alignment_service.utils.image import decode_base64_image

__all__ = ["decode_base64_image"]
