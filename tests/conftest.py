"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any app import so that the global
settings object is built from them.
"""

import os

os.environ["APP_ENV"] = "testing"

os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("VIDEO_PROVIDER", "veo")
os.environ.setdefault("VIDEO_API_KEY", "test-video-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402

from tests.fakes import FakeVideoClient  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Controllable UNIX clock starting at a fixed instant."""
    return Mock(return_value=1_700_000_000.0)


@pytest.fixture
def fake_video_client() -> FakeVideoClient:
    return FakeVideoClient()


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}
