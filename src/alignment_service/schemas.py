"""
Pydantic request/response models for the alignment service API.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alignment_service.services.correspondence_store import Side, StoreEventType

MatchingMode = Literal["manual", "automatic"]
Index = Annotated[int, Field(ge=0)]

# === Helper Models ===


class PointData(BaseModel):
    """Point in image coordinates."""

    model_config = ConfigDict(extra="forbid")

    x: float
    y: float


class KeypointData(BaseModel):
    """Stored keypoint with its rendering tags."""

    model_config = ConfigDict(extra="forbid")

    x: float
    y: float
    size: float = 10.0

    is_matched: bool | None = None
    """Whether a candidate pairing uses the point (automatic mode)."""

    is_good_match: bool | None = None
    """Whether an inlier pairing uses the point (after filtering)."""


class PairingData(BaseModel):
    """Pairing of a left and a right point index."""

    model_config = ConfigDict(extra="forbid")

    left_idx: Index | None
    """Left point index, null while the left point is awaited."""

    right_idx: Index | None
    """Right point index, null while the right point is awaited."""

    distance: float = 0.0
    """Descriptor distance (0 for manual pairings)."""


class PairData(BaseModel):
    """Resolved pair of coordinates."""

    model_config = ConfigDict(extra="forbid")

    left: PointData
    right: PointData


class TransformData(BaseModel):
    """Similarity transform mapping right-image points into left-image space."""

    scale: float
    angle_deg: float
    tx: float
    ty: float

    matrix: list[list[float]]
    """Equivalent 2x3 affine matrix rows."""


class ResidualData(BaseModel):
    """Displacement of a transformed right point from its left partner."""

    dx: float
    dy: float
    magnitude: float


class StoreEventData(BaseModel):
    """Recorded store change, for incremental redraws."""

    sequence: int
    type: StoreEventType
    side: Side | None = None
    index: int | None = None


class DriftVector(BaseModel):
    """Interpolated residual drift at a grid node."""

    x: float
    y: float
    dx: float
    dy: float


class ImageSize(BaseModel):
    """Image dimensions in pixels."""

    model_config = ConfigDict(extra="forbid")

    width: int
    height: int


# === Interchange Document ===


class MatchingMetadata(BaseModel):
    """Metadata block of an exported matching document."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    matching: MatchingMode
    left_image: str | None = Field(default=None, alias="leftImage")
    right_image: str | None = Field(default=None, alias="rightImage")
    export_date: str | None = Field(default=None, alias="exportDate")

    @field_validator("matching", mode="before")
    @classmethod
    def _detector_name_means_automatic(cls, value: Any) -> Any:
        # Automatic exports may name the detector, e.g. "ORB".
        if isinstance(value, str) and value != "manual":
            return "automatic"
        return value


class ExportedMatch(BaseModel):
    """One pairing of an exported document; an unset side is null."""

    id: int
    left: PointData | None = None
    right: PointData | None = None


class MatchingDocument(BaseModel):
    """Import/export document for the pairings of a session."""

    metadata: MatchingMetadata
    matches: list[ExportedMatch]


# === Request Models ===


class CreateSessionRequest(BaseModel):
    """Request model for POST /sessions."""

    model_config = ConfigDict(extra="forbid")

    mode: MatchingMode = "manual"
    left_image: str | None = None
    """Optional left image name, echoed in exports."""

    right_image: str | None = None
    """Optional right image name, echoed in exports."""


class SetModeRequest(BaseModel):
    """Request model for PUT /sessions/{id}/mode."""

    model_config = ConfigDict(extra="forbid")

    mode: MatchingMode


class AddPointRequest(BaseModel):
    """Request model for POST /sessions/{id}/points."""

    model_config = ConfigDict(extra="forbid")

    side: Side
    x: float
    y: float


class UpdatePointRequest(BaseModel):
    """Request model for PATCH /sessions/{id}/points/{side}/{index}."""

    model_config = ConfigDict(extra="forbid")

    x: float
    y: float


class DetectRequest(BaseModel):
    """Request model for POST /sessions/{id}/detect."""

    model_config = ConfigDict(extra="forbid")

    left_image: str = Field(..., min_length=1)
    """Base64-encoded left image data."""

    right_image: str = Field(..., min_length=1)
    """Base64-encoded right image data."""

    max_features: int | None = Field(default=None, gt=0)
    """Optional override for maximum features per image."""


class FilterRequest(BaseModel):
    """Request model for POST /sessions/{id}/filter."""

    model_config = ConfigDict(extra="forbid")

    seed: int | None = None
    """Optional seed for a reproducible RANSAC run."""


class EstimateRequest(BaseModel):
    """Request model for POST /estimate."""

    model_config = ConfigDict(extra="forbid")

    pairs: list[PairData]


class StatelessFilterRequest(BaseModel):
    """Request model for POST /filter."""

    model_config = ConfigDict(extra="forbid")

    left_points: list[PointData]
    right_points: list[PointData]
    candidates: list[PairingData]
    seed: int | None = None


# === Response Models ===


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"]
    uptime_seconds: float
    uptime: str
    """Human-readable uptime (e.g., "2d 3h 15m 42s")."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""

    active_sessions: int


class AlgorithmInfo(BaseModel):
    """Algorithm configuration for /info endpoint."""

    feature_detector: str
    max_features: int
    matcher: str
    cross_check: bool
    filter: str
    filter_model: str
    ransac_iterations: int
    inlier_threshold: float
    candidate_limit: int
    estimator: str
    min_pairs: int


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    version: str
    algorithm: AlgorithmInfo


class SessionResponse(BaseModel):
    """Full state of an alignment session."""

    session_id: str
    mode: MatchingMode
    left_image: str | None
    right_image: str | None
    pending_side: Side | None
    left_points: list[KeypointData]
    right_points: list[KeypointData]
    pairings: list[PairingData]
    last_sequence: int


class AddPointResponse(BaseModel):
    """Response model for POST /sessions/{id}/points."""

    side: Side
    index: int
    pending_side: Side | None


class EventsResponse(BaseModel):
    """Response model for GET /sessions/{id}/events."""

    events: list[StoreEventData]
    last_sequence: int


class DetectResponse(BaseModel):
    """Response model for POST /sessions/{id}/detect."""

    left_features: int
    right_features: int
    left_image_size: ImageSize
    right_image_size: ImageSize
    candidates: int
    processing_time_ms: float


class FilterResponse(BaseModel):
    """Response model for both filter endpoints."""

    candidates: int
    """Number of candidates fed to RANSAC."""

    inliers: list[PairingData]
    inlier_ratio: float
    processing_time_ms: float


class TransformResponse(BaseModel):
    """Response model for transform estimation."""

    transform: TransformData
    pairs: int
    residuals: list[ResidualData]
    rms_error: float


class ErrorFieldResponse(BaseModel):
    """Response model for GET /sessions/{id}/error-field."""

    spacing: float
    vectors: list[DriftVector]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    message: str
    details: dict[str, Any]
