"""
Service information endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

from alignment_service.config import get_settings
from alignment_service.schemas import AlgorithmInfo, InfoResponse

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """Get service information and configuration."""
    settings = get_settings()

    algorithm = AlgorithmInfo(
        feature_detector="ORB",
        max_features=settings.orb.max_features,
        matcher="BFMatcher",
        cross_check=settings.matching.cross_check,
        filter="RANSAC",
        filter_model="scale+translation",
        ransac_iterations=settings.ransac.iterations,
        inlier_threshold=settings.ransac.inlier_threshold,
        candidate_limit=settings.ransac.candidate_limit,
        estimator="similarity",
        min_pairs=settings.estimation.min_pairs,
    )

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        algorithm=algorithm,
    )
