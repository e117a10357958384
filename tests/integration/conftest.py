"""
Fixtures for integration tests.

These tests use the real application with actual OpenCV processing.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from alignment_service.app import create_app
from alignment_service.config import clear_settings_cache
from alignment_service.core.state import reset_app_state

if TYPE_CHECKING:
    from collections.abc import Iterator

CONFIG_FILE = Path(__file__).resolve().parents[2] / "config.yaml"


@pytest.fixture(scope="module")
def integration_client() -> Iterator[TestClient]:
    """
    Create test client with the real application.

    Uses context manager to trigger lifespan events (state initialization).
    This client is shared across all tests in the module to avoid
    repeated initialization.
    """
    previous = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(CONFIG_FILE)
    clear_settings_cache()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    # Clean up after all tests in this module
    clear_settings_cache()
    reset_app_state()
    if previous is None:
        del os.environ["CONFIG_PATH"]
    else:
        os.environ["CONFIG_PATH"] = previous


@pytest.fixture
def client(integration_client: TestClient) -> TestClient:
    """Alias for integration_client."""
    return integration_client
