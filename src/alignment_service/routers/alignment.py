"""
Transform estimation endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query

from alignment_service.config import get_settings
from alignment_service.core.state import get_app_state
from alignment_service.logging import get_logger
from alignment_service.schemas import (
    DriftVector,
    ErrorFieldResponse,
    EstimateRequest,
    ResidualData,
    TransformData,
    TransformResponse,
)
from alignment_service.services.correspondence_store import Point, PointPair
from alignment_service.services.similarity import (
    estimate_similarity,
    pair_residuals,
    rms_error,
    sample_error_field,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

router = APIRouter()


def transform_response(pairs: Sequence[PointPair], min_pairs: int) -> TransformResponse:
    """Estimate a transform and report its residuals."""
    transform = estimate_similarity(pairs, min_pairs=min_pairs)
    residuals = pair_residuals(pairs, transform)

    return TransformResponse(
        transform=TransformData(
            scale=transform.scale,
            angle_deg=transform.angle_deg,
            tx=transform.tx,
            ty=transform.ty,
            matrix=transform.to_matrix(),
        ),
        pairs=len(pairs),
        residuals=[ResidualData(dx=r.dx, dy=r.dy, magnitude=r.magnitude) for r in residuals],
        rms_error=rms_error(residuals),
    )


@router.post("/estimate", response_model=TransformResponse)
async def estimate(request: EstimateRequest) -> TransformResponse:
    """Estimate the similarity transform of caller-supplied pairs."""
    pairs = [
        PointPair(left=Point(x=p.left.x, y=p.left.y), right=Point(x=p.right.x, y=p.right.y))
        for p in request.pairs
    ]
    return transform_response(pairs, min_pairs=2)


@router.get("/sessions/{session_id}/transform", response_model=TransformResponse)
async def session_transform(session_id: str) -> TransformResponse:
    """Estimate the transform mapping the right image onto the left image."""
    settings = get_settings()
    session = get_app_state().sessions.get(session_id)

    response = transform_response(
        session.store.resolved_pairings(),
        min_pairs=settings.estimation.min_pairs,
    )

    get_logger().info(
        "Transform estimated",
        extra={
            "session_id": session_id,
            "pairs": response.pairs,
            "scale": response.transform.scale,
            "angle_deg": response.transform.angle_deg,
            "rms_error": round(response.rms_error, 4),
        },
    )
    return response


@router.get("/sessions/{session_id}/error-field", response_model=ErrorFieldResponse)
async def error_field(
    session_id: str,
    width: float = Query(..., gt=0),
    height: float = Query(..., gt=0),
    spacing: float = Query(default=40.0, gt=0),
) -> ErrorFieldResponse:
    """Interpolate residual drift over a grid covering the left image."""
    settings = get_settings()
    pairs = get_app_state().sessions.get(session_id).store.resolved_pairings()
    transform = estimate_similarity(pairs, min_pairs=settings.estimation.min_pairs)

    vectors = sample_error_field(pairs, transform, width, height, spacing)
    return ErrorFieldResponse(
        spacing=spacing,
        vectors=[DriftVector(x=x, y=y, dx=dx, dy=dy) for x, y, dx, dy in vectors],
    )
