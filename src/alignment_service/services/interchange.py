"""
Export and import of session pairings as a matching document.

Manual documents are replayed point by point so pairing order and the
half-open invariant survive the round trip; automatic documents are bulk
loaded.
"""

from __future__ import annotations

from datetime import UTC, datetime

from alignment_service.schemas import (
    ExportedMatch,
    MatchingDocument,
    MatchingMetadata,
    MatchingMode,
    PointData,
)
from alignment_service.services.correspondence_store import (
    CorrespondenceStore,
    Pairing,
    Point,
    Side,
)


def export_document(
    store: CorrespondenceStore,
    matching: MatchingMode,
    left_image: str | None = None,
    right_image: str | None = None,
) -> MatchingDocument:
    """
    Serialize every pairing of the store in pairing order.

    Args:
        store: Store to export
        matching: Matching mode recorded in the metadata
        left_image: Left image name
        right_image: Right image name

    Returns:
        Matching document; a half-open pairing exports its unset side as null
    """
    left_points = store.points(Side.LEFT)
    right_points = store.points(Side.RIGHT)

    matches = []
    for position, pairing in enumerate(store.pairings):
        left = right = None
        if pairing.left_idx is not None:
            kp = left_points[pairing.left_idx]
            left = PointData(x=kp.x, y=kp.y)
        if pairing.right_idx is not None:
            kp = right_points[pairing.right_idx]
            right = PointData(x=kp.x, y=kp.y)
        matches.append(ExportedMatch(id=position, left=left, right=right))

    metadata = MatchingMetadata(
        matching=matching,
        left_image=left_image,
        right_image=right_image,
        export_date=datetime.now(UTC).isoformat(),
    )
    return MatchingDocument(metadata=metadata, matches=matches)


def import_document(store: CorrespondenceStore, document: MatchingDocument) -> int:
    """
    Replace the store content with the pairings of a document.

    Args:
        store: Store to load into; left untouched when the document is rejected
        document: Parsed matching document

    Returns:
        Number of pairings loaded

    Raises:
        WaitingForOtherSideError: If a manual document has a half-open entry
            before its last entry
    """
    if document.metadata.matching == "manual":
        # A dry run raises before the live store is touched.
        _replay_manual(CorrespondenceStore(), document)
        store.reset()
        _replay_manual(store, document)
        return len(store.pairings)

    left_points: list[Point] = []
    right_points: list[Point] = []
    pairings: list[Pairing] = []
    for match in document.matches:
        # Automatic pairings are always complete; skip anything else.
        if match.left is None or match.right is None:
            continue
        left_points.append(Point(x=match.left.x, y=match.left.y))
        right_points.append(Point(x=match.right.x, y=match.right.y))
        pairings.append(Pairing(left_idx=len(left_points) - 1, right_idx=len(right_points) - 1))

    store.reset()
    store.bulk_load(left_points, right_points, pairings)
    return len(pairings)


def _replay_manual(store: CorrespondenceStore, document: MatchingDocument) -> None:
    for match in document.matches:
        if match.left is not None:
            store.add_point(Side.LEFT, match.left.x, match.left.y)
        if match.right is not None:
            store.add_point(Side.RIGHT, match.right.x, match.right.y)
