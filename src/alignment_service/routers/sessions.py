"""
Session endpoints: lifecycle, manual point placement, events and interchange.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response

from alignment_service.core.state import get_app_state
from alignment_service.logging import get_logger
from alignment_service.schemas import (
    AddPointRequest,
    AddPointResponse,
    CreateSessionRequest,
    EventsResponse,
    KeypointData,
    MatchingDocument,
    PairingData,
    SessionResponse,
    SetModeRequest,
    StoreEventData,
    UpdatePointRequest,
)
from alignment_service.services.correspondence_store import Side
from alignment_service.services.interchange import export_document, import_document
from alignment_service.services.sessions import Session

router = APIRouter(prefix="/sessions")


def session_response(session: Session) -> SessionResponse:
    """Snapshot the state of a session."""
    store = session.store

    def keypoints(side: Side) -> list[KeypointData]:
        return [
            KeypointData(
                x=p.x,
                y=p.y,
                size=p.size,
                is_matched=p.is_matched,
                is_good_match=p.is_good_match,
            )
            for p in store.points(side)
        ]

    return SessionResponse(
        session_id=session.session_id,
        mode=session.mode,
        left_image=session.left_image,
        right_image=session.right_image,
        pending_side=store.pending_side,
        left_points=keypoints(Side.LEFT),
        right_points=keypoints(Side.RIGHT),
        pairings=[
            PairingData(left_idx=p.left_idx, right_idx=p.right_idx, distance=p.distance)
            for p in store.pairings
        ],
        last_sequence=session.events.last_sequence,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(request: CreateSessionRequest) -> SessionResponse:
    """Open a new alignment session."""
    session = get_app_state().sessions.create(
        mode=request.mode,
        left_image=request.left_image,
        right_image=request.right_image,
    )
    get_logger().info(
        "Session created",
        extra={"session_id": session.session_id, "mode": session.mode},
    )
    return session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str) -> SessionResponse:
    """Get the points and pairings of a session."""
    return session_response(get_app_state().sessions.get(session_id))


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str) -> Response:
    """Close a session."""
    get_app_state().sessions.delete(session_id)
    get_logger().info("Session deleted", extra={"session_id": session_id})
    return Response(status_code=204)


@router.put("/{session_id}/mode", response_model=SessionResponse)
async def set_mode(session_id: str, request: SetModeRequest) -> SessionResponse:
    """Switch between manual and automatic matching; clears the session."""
    session = get_app_state().sessions.get(session_id)
    session.switch_mode(request.mode)
    get_logger().info(
        "Session mode switched",
        extra={"session_id": session_id, "mode": request.mode},
    )
    return session_response(session)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session_id: str) -> SessionResponse:
    """Drop every point and pairing of a session."""
    session = get_app_state().sessions.get(session_id)
    session.store.reset()
    return session_response(session)


@router.post("/{session_id}/points", response_model=AddPointResponse, status_code=201)
async def add_point(session_id: str, request: AddPointRequest) -> AddPointResponse:
    """Place a manual keypoint, opening or completing a pairing."""
    session = get_app_state().sessions.get(session_id)
    session.require_mode("manual")

    index = session.store.add_point(request.side, request.x, request.y)

    get_logger().debug(
        "Keypoint added",
        extra={"session_id": session_id, "side": request.side.value, "index": index},
    )
    return AddPointResponse(
        side=request.side,
        index=index,
        pending_side=session.store.pending_side,
    )


@router.patch("/{session_id}/points/{side}/{index}", response_model=KeypointData)
async def update_point(
    session_id: str,
    side: Side,
    index: int,
    request: UpdatePointRequest,
) -> KeypointData:
    """Move a keypoint."""
    store = get_app_state().sessions.get(session_id).store
    store.update_point(side, index, request.x, request.y)
    point = store.point(side, index)
    return KeypointData(
        x=point.x,
        y=point.y,
        size=point.size,
        is_matched=point.is_matched,
        is_good_match=point.is_good_match,
    )


@router.delete("/{session_id}/points/{side}/{index}", response_model=SessionResponse)
async def remove_point(session_id: str, side: Side, index: int) -> SessionResponse:
    """Remove a keypoint together with its paired counterpart."""
    session = get_app_state().sessions.get(session_id)
    session.store.remove_point(side, index)

    get_logger().debug(
        "Keypoint removed",
        extra={"session_id": session_id, "side": side.value, "index": index},
    )
    return session_response(session)


@router.get("/{session_id}/events", response_model=EventsResponse)
async def list_events(session_id: str, after: int = Query(default=0, ge=0)) -> EventsResponse:
    """List store events recorded after a sequence number."""
    events = get_app_state().sessions.get(session_id).events
    return EventsResponse(
        events=[
            StoreEventData(sequence=seq, type=event.type, side=event.side, index=event.index)
            for seq, event in events.since(after)
        ],
        last_sequence=events.last_sequence,
    )


@router.get("/{session_id}/export", response_model=MatchingDocument)
async def export_matching(session_id: str) -> MatchingDocument:
    """Export the pairings of a session as a matching document."""
    session = get_app_state().sessions.get(session_id)
    document = export_document(
        session.store,
        matching=session.mode,
        left_image=session.left_image,
        right_image=session.right_image,
    )
    get_logger().info(
        "Matching exported",
        extra={"session_id": session_id, "matches": len(document.matches)},
    )
    return document


@router.post("/{session_id}/import", response_model=SessionResponse)
async def import_matching(session_id: str, document: MatchingDocument) -> SessionResponse:
    """Replace the session content with an imported matching document."""
    session = get_app_state().sessions.get(session_id)
    loaded = import_document(session.store, document)

    session.mode = document.metadata.matching
    if document.metadata.left_image is not None:
        session.left_image = document.metadata.left_image
    if document.metadata.right_image is not None:
        session.right_image = document.metadata.right_image

    get_logger().info(
        "Matching imported",
        extra={"session_id": session_id, "mode": session.mode, "pairings": loaded},
    )
    return session_response(session)
