"""API routers for the alignment service."""

from alignment_service.routers import alignment, detection, health, info, sessions

__all__ = ["alignment", "detection", "health", "info", "sessions"]
