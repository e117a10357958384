"""
Unit tests for request/response schemas.

Tests Pydantic model validation for the API schemas.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from alignment_service.schemas import (
    AddPointRequest,
    CreateSessionRequest,
    DetectRequest,
    ErrorResponse,
    MatchingDocument,
    MatchingMetadata,
    PairingData,
    SetModeRequest,
    StatelessFilterRequest,
    StoreEventData,
)
from alignment_service.services.correspondence_store import Side, StoreEventType


@pytest.mark.unit
class TestAddPointRequest:
    """Tests for manual point placement requests."""

    def test_valid_request(self) -> None:
        """Side strings are parsed into the Side enum."""
        request = AddPointRequest(side="left", x=1.5, y=2.5)  # type: ignore[arg-type]

        assert request.side is Side.LEFT

    def test_invalid_side(self) -> None:
        """Unknown sides are rejected."""
        with pytest.raises(ValidationError):
            AddPointRequest(side="top", x=1.0, y=1.0)  # type: ignore[arg-type]

    def test_extra_field_raises_error(self) -> None:
        """Extra field raises ValidationError (extra='forbid')."""
        with pytest.raises(ValidationError):
            AddPointRequest(side="left", x=1.0, y=1.0, size=3.0)  # type: ignore[arg-type, call-arg]


@pytest.mark.unit
class TestSessionRequests:
    """Tests for session lifecycle requests."""

    def test_create_defaults_to_manual(self) -> None:
        """Sessions are manual unless requested otherwise."""
        request = CreateSessionRequest()

        assert request.mode == "manual"
        assert request.left_image is None

    def test_invalid_mode(self) -> None:
        """Only manual and automatic modes exist."""
        with pytest.raises(ValidationError):
            SetModeRequest(mode="semi")  # type: ignore[arg-type]


@pytest.mark.unit
class TestPairingData:
    """Tests for pairing data."""

    def test_half_open(self) -> None:
        """Either index may be null."""
        pairing = PairingData(left_idx=3, right_idx=None)

        assert pairing.right_idx is None
        assert pairing.distance == 0.0

    def test_negative_index_rejected(self) -> None:
        """Indices are non-negative."""
        with pytest.raises(ValidationError):
            PairingData(left_idx=-1, right_idx=0)


@pytest.mark.unit
class TestDetectRequest:
    """Tests for detection requests."""

    def test_empty_image_rejected(self) -> None:
        """Images must not be empty."""
        with pytest.raises(ValidationError):
            DetectRequest(left_image="", right_image="abc")

    def test_max_features_positive(self) -> None:
        """Feature override must be positive."""
        with pytest.raises(ValidationError):
            DetectRequest(left_image="abc", right_image="abc", max_features=0)


@pytest.mark.unit
class TestStatelessFilterRequest:
    """Tests for stateless filter requests."""

    def test_valid_request(self) -> None:
        """Points, candidates and an optional seed."""
        request = StatelessFilterRequest.model_validate(
            {
                "left_points": [{"x": 0, "y": 0}],
                "right_points": [{"x": 1, "y": 1}],
                "candidates": [{"left_idx": 0, "right_idx": 0, "distance": 4}],
                "seed": 5,
            }
        )

        assert request.candidates[0].distance == 4.0
        assert request.seed == 5


@pytest.mark.unit
class TestMatchingDocument:
    """Tests for the interchange document."""

    def test_aliases_round_trip(self) -> None:
        """Metadata is written with camelCase keys and read back by name."""
        metadata = MatchingMetadata(matching="manual", left_image="a.png")

        dumped = metadata.model_dump(by_alias=True)

        assert dumped["leftImage"] == "a.png"
        assert MatchingMetadata.model_validate(dumped).left_image == "a.png"

    def test_unknown_metadata_kept(self) -> None:
        """Metadata from other tools may carry additional fields."""
        document = MatchingDocument.model_validate(
            {"metadata": {"matching": "automatic", "version": 2}, "matches": []}
        )

        assert document.metadata.model_extra == {"version": 2}

    @pytest.mark.parametrize("name", ["ORB", "AKAZE", "automatic"])
    def test_detector_name_read_as_automatic(self, name: str) -> None:
        """Any matching value other than manual means automatic."""
        document = MatchingDocument.model_validate(
            {"metadata": {"matching": name}, "matches": []}
        )

        assert document.metadata.matching == "automatic"

    def test_manual_kept(self) -> None:
        """The manual marker is kept as is."""
        metadata = MatchingMetadata.model_validate({"matching": "manual"})

        assert metadata.matching == "manual"

    @pytest.mark.parametrize("value", [None, 3])
    def test_invalid_matching_mode(self, value: object) -> None:
        """A matching value that is not a string is rejected."""
        with pytest.raises(ValidationError):
            MatchingDocument.model_validate({"metadata": {"matching": value}, "matches": []})


@pytest.mark.unit
class TestResponseModels:
    """Tests for response models."""

    def test_store_event_serializes_enums(self) -> None:
        """Event type and side serialize as strings."""
        event = StoreEventData(
            sequence=1, type=StoreEventType.POINT_REMOVED, side=Side.RIGHT, index=2
        )

        assert event.model_dump(mode="json") == {
            "sequence": 1,
            "type": "point_removed",
            "side": "right",
            "index": 2,
        }

    def test_error_response(self) -> None:
        """Error responses carry code, message and details."""
        error = ErrorResponse(error="invalid_index", message="No left point", details={"index": 3})

        assert error.details["index"] == 3
