"""Pytest fixtures for router unit tests."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _clear_module_cache() -> None:
    """Clear cached alignment_service modules before each test.

    This ensures that mocking works correctly when importing modules
    inside the test's patch context.
    """
    modules_to_remove = [key for key in sys.modules if key.startswith("alignment_service")]
    for module in modules_to_remove:
        del sys.modules[module]


@pytest.fixture
def settings() -> MagicMock:
    """Mock settings mirroring the shipped config.yaml."""
    settings = MagicMock()
    settings.service.name = "alignment"
    settings.service.version = "0.1.0"
    settings.orb.max_features = 500
    settings.orb.scale_factor = 1.2
    settings.orb.n_levels = 8
    settings.orb.edge_threshold = 31
    settings.orb.patch_size = 31
    settings.orb.fast_threshold = 20
    settings.matching.cross_check = True
    settings.matching.max_matches = 200
    settings.ransac.iterations = 400
    settings.ransac.inlier_threshold = 5.0
    settings.ransac.min_pair_distance = 5.0
    settings.ransac.min_scale = 0.1
    settings.ransac.max_scale = 10.0
    settings.ransac.candidate_limit = 100
    settings.estimation.min_pairs = 3
    settings.sessions.max_events = 100
    return settings


@pytest.fixture
def client(settings: MagicMock) -> Iterator[TestClient]:
    """
    Test client over an app built with mocked settings.

    Lifespan is skipped; application state is initialized directly.
    """
    with (
        patch("alignment_service.config.get_settings") as mock_settings,
        patch("alignment_service.app.lifespan"),
    ):
        mock_settings.return_value = settings

        from alignment_service.app import create_app  # noqa: PLC0415
        from alignment_service.core.state import init_app_state  # noqa: PLC0415

        init_app_state(max_events=settings.sessions.max_events)
        app = create_app()
        yield TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def manual_session(client: TestClient) -> str:
    """Id of a fresh manual session."""
    return client.post("/sessions", json={"mode": "manual"}).json()["session_id"]


@pytest.fixture
def automatic_session(client: TestClient) -> str:
    """Id of a fresh automatic session."""
    return client.post("/sessions", json={"mode": "automatic"}).json()["session_id"]
