"""Core infrastructure components."""

from alignment_service.core.exceptions import (
    DegenerateEstimateError,
    InsufficientPairsError,
    InvalidIndexError,
    ServiceError,
    WaitingForOtherSideError,
)

__all__ = [
    "DegenerateEstimateError",
    "InsufficientPairsError",
    "InvalidIndexError",
    "ServiceError",
    "WaitingForOtherSideError",
]
