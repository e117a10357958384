"""Service layer components."""

from alignment_service.services.correspondence_store import (
    CorrespondenceStore,
    Pairing,
    Point,
    PointPair,
    Side,
)
from alignment_service.services.match_filter import RANSACMatchFilter
from alignment_service.services.similarity import Transform, estimate_similarity

__all__ = [
    "CorrespondenceStore",
    "Pairing",
    "Point",
    "PointPair",
    "RANSACMatchFilter",
    "Side",
    "Transform",
    "estimate_similarity",
]
