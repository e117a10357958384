"""
Automatic matching endpoints: keypoint detection and RANSAC filtering.
"""

from __future__ import annotations

import time

import numpy as np
from fastapi import APIRouter

from alignment_service.config import get_settings
from alignment_service.core.state import get_app_state
from alignment_service.logging import get_logger
from alignment_service.schemas import (
    DetectRequest,
    DetectResponse,
    FilterRequest,
    FilterResponse,
    ImageSize,
    PairingData,
    StatelessFilterRequest,
)
from alignment_service.services.correspondence_store import (
    Pairing,
    Point,
    Side,
    check_pairings,
)
from alignment_service.services.feature_extractor import ORBFeatureExtractor
from alignment_service.services.feature_matcher import BFFeatureMatcher
from alignment_service.services.match_filter import RANSACMatchFilter, top_candidates
from alignment_service.utils.image import decode_base64_image

router = APIRouter()


def build_match_filter(seed: int | None) -> RANSACMatchFilter:
    """Create a RANSAC filter from configuration, optionally seeded."""
    settings = get_settings()
    return RANSACMatchFilter(
        iterations=settings.ransac.iterations,
        inlier_threshold=settings.ransac.inlier_threshold,
        min_pair_distance=settings.ransac.min_pair_distance,
        scale_range=(settings.ransac.min_scale, settings.ransac.max_scale),
        rng=np.random.default_rng(seed),
    )


def filter_response(
    candidates: list[Pairing],
    inliers: list[Pairing],
    processing_time_ms: float,
) -> FilterResponse:
    ratio = len(inliers) / len(candidates) if candidates else 0.0
    return FilterResponse(
        candidates=len(candidates),
        inliers=[
            PairingData(left_idx=p.left_idx, right_idx=p.right_idx, distance=p.distance)
            for p in inliers
        ],
        inlier_ratio=round(ratio, 4),
        processing_time_ms=round(processing_time_ms, 2),
    )


@router.post("/sessions/{session_id}/detect", response_model=DetectResponse)
async def detect(session_id: str, request: DetectRequest) -> DetectResponse:
    """Detect and match keypoints in both images, replacing the session content."""
    logger = get_logger()
    start_time = time.perf_counter()

    settings = get_settings()
    session = get_app_state().sessions.get(session_id)
    session.require_mode("automatic")

    extractor = ORBFeatureExtractor(
        max_features=request.max_features or settings.orb.max_features,
        scale_factor=settings.orb.scale_factor,
        n_levels=settings.orb.n_levels,
        edge_threshold=settings.orb.edge_threshold,
        patch_size=settings.orb.patch_size,
        fast_threshold=settings.orb.fast_threshold,
    )
    left_kp, left_desc, left_size = extractor.extract(decode_base64_image(request.left_image))
    right_kp, right_desc, right_size = extractor.extract(decode_base64_image(request.right_image))

    matcher = BFFeatureMatcher(
        cross_check=settings.matching.cross_check,
        max_matches=settings.matching.max_matches,
    )
    candidates = matcher.match(left_desc, right_desc)

    session.store.bulk_load(left_kp, right_kp, candidates)

    processing_time_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Detection completed",
        extra={
            "session_id": session_id,
            "left_features": len(left_kp),
            "right_features": len(right_kp),
            "candidates": len(candidates),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return DetectResponse(
        left_features=len(left_kp),
        right_features=len(right_kp),
        left_image_size=ImageSize(width=left_size[0], height=left_size[1]),
        right_image_size=ImageSize(width=right_size[0], height=right_size[1]),
        candidates=len(candidates),
        processing_time_ms=round(processing_time_ms, 2),
    )


@router.post("/sessions/{session_id}/filter", response_model=FilterResponse)
async def filter_session(session_id: str, request: FilterRequest) -> FilterResponse:
    """Keep the RANSAC inliers among the most similar candidate pairings."""
    logger = get_logger()
    start_time = time.perf_counter()

    settings = get_settings()
    session = get_app_state().sessions.get(session_id)
    session.require_mode("automatic")
    store = session.store

    complete = [p for p in store.pairings if p.is_complete]
    candidates = top_candidates(complete, settings.ransac.candidate_limit)
    inliers = build_match_filter(request.seed).filter(
        candidates,
        store.points(Side.LEFT),
        store.points(Side.RIGHT),
    )
    store.mark_good_matches(inliers)

    processing_time_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Filtering completed",
        extra={
            "session_id": session_id,
            "candidates": len(candidates),
            "inliers": len(inliers),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return filter_response(candidates, inliers, processing_time_ms)


@router.post("/filter", response_model=FilterResponse)
async def filter_candidates(request: StatelessFilterRequest) -> FilterResponse:
    """Run RANSAC on caller-supplied points and candidate pairings."""
    logger = get_logger()
    start_time = time.perf_counter()

    left_points = [Point(x=p.x, y=p.y) for p in request.left_points]
    right_points = [Point(x=p.x, y=p.y) for p in request.right_points]
    candidates = [
        Pairing(left_idx=c.left_idx, right_idx=c.right_idx, distance=c.distance)
        for c in request.candidates
    ]
    check_pairings(candidates, len(left_points), len(right_points), bijective=False)

    inliers = build_match_filter(request.seed).filter(candidates, left_points, right_points)

    processing_time_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Filtering completed",
        extra={
            "candidates": len(candidates),
            "inliers": len(inliers),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return filter_response(candidates, inliers, processing_time_ms)

