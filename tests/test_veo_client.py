"""Tests for the Veo video client adapter using httpx.MockTransport."""

import base64
import json

import httpx
import pytest

from app.adapters.video.base import VideoGenerationJob
from app.adapters.video.factory import create_video_client, is_video_provider_configured
from app.adapters.video.veo_client import VeoClient, parse_operation
from app.core.config import VideoSettings
from app.core.errors import ValidationAppError, VideoProviderAppError

OPERATION = "models/veo-3.1-generate-preview/operations/abc123"


def _job() -> VideoGenerationJob:
    return VideoGenerationJob(
        prompt="A talking dog",
        image_bytes=b"\x89PNG\r\n\x1a\nDATA",
        mime_type="image/png",
        duration_seconds=6,
        aspect_ratio="9:16",
    )


def _client(handler) -> VeoClient:
    return VeoClient(
        api_key="secret-key",
        model="veo-3.1-generate-preview",
        base_url="https://example.test/v1beta",
        transport=httpx.MockTransport(handler),
    )


class TestStartGeneration:
    @pytest.mark.asyncio
    async def test_sends_expected_request(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"name": OPERATION})

        client = _client(handler)
        operation = await client.start_generation(_job())
        await client.aclose()

        assert operation == OPERATION
        assert captured["path"] == "/v1beta/models/veo-3.1-generate-preview:predictLongRunning"
        assert captured["headers"]["x-goog-api-key"] == "secret-key"

        instance = captured["body"]["instances"][0]
        assert instance["prompt"] == "A talking dog"
        assert base64.b64decode(instance["image"]["bytesBase64Encoded"]) == _job().image_bytes
        assert instance["image"]["mimeType"] == "image/png"

        parameters = captured["body"]["parameters"]
        assert parameters["durationSeconds"] == 6
        assert parameters["aspectRatio"] == "9:16"
        assert parameters["generateAudio"] is True

    @pytest.mark.asyncio
    async def test_provider_error_message_is_surfaced(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"error": {"message": "The prompt contains sensitive words"}},
            )

        client = _client(handler)
        with pytest.raises(VideoProviderAppError) as exc_info:
            await client.start_generation(_job())

        assert exc_info.value.code == "video_provider_error"
        assert "sensitive words" in exc_info.value.message
        assert exc_info.value.details["http_status"] == 400

    @pytest.mark.asyncio
    async def test_transport_failure_raises_provider_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        client = _client(handler)
        with pytest.raises(VideoProviderAppError) as exc_info:
            await client.start_generation(_job())

        assert exc_info.value.code == "video_provider_unreachable"

    @pytest.mark.asyncio
    async def test_missing_operation_name(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))

        with pytest.raises(VideoProviderAppError) as exc_info:
            await client.start_generation(_job())

        assert exc_info.value.code == "video_provider_invalid_response"


class TestGetStatus:
    @pytest.mark.asyncio
    async def test_polls_operation_path(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"name": OPERATION, "done": False})

        client = _client(handler)
        status = await client.get_status(OPERATION)

        assert seen == [f"/v1beta/{OPERATION}"]
        assert status.status == "processing"


class TestParseOperation:
    def test_completed_with_video(self) -> None:
        data = {
            "done": True,
            "response": {
                "generateVideoResponse": {
                    "generatedSamples": [{"video": {"uri": "https://files.test/video.mp4"}}]
                }
            },
        }

        status = parse_operation(OPERATION, data)

        assert status.status == "completed"
        assert status.video_uri == "https://files.test/video.mp4"

    def test_operation_error(self) -> None:
        status = parse_operation(OPERATION, {"done": True, "error": {"message": "quota exceeded"}})

        assert status.status == "failed"
        assert status.error == "quota exceeded"

    def test_filtered_by_safety(self) -> None:
        data = {
            "done": True,
            "response": {"generateVideoResponse": {"raiMediaFilteredReasons": ["Filtered: people"]}},
        }

        status = parse_operation(OPERATION, data)

        assert status.status == "failed"
        assert status.error == "Filtered: people"


class TestFactory:
    def test_creates_veo_client(self) -> None:
        client = create_video_client(VideoSettings(provider="veo", api_key="k"))

        assert isinstance(client, VeoClient)

    def test_missing_api_key(self) -> None:
        cfg = VideoSettings(provider="veo", api_key=None)

        assert is_video_provider_configured(cfg) is False
        with pytest.raises(ValidationAppError) as exc_info:
            create_video_client(cfg)
        assert exc_info.value.code == "video_missing_api_key"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_video_client(VideoSettings(provider="sora", api_key="k"))

        assert exc_info.value.code == "video_unknown_provider"
