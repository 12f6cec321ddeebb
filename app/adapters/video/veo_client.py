"""Google Veo video client adapter."""

import base64
import logging
from typing import Any

import httpx

from app.adapters.video.base import AbstractVideoClient, VideoGenerationJob, VideoStatus
from app.core.errors import VideoProviderAppError

logger = logging.getLogger(__name__)


class VeoClient(AbstractVideoClient):
    """Client for Veo image-to-video generation over the REST API.

    Generations are long-running operations: ``start_generation`` returns the
    operation name, and ``get_status`` polls it.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 60.0,
        generate_audio: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            api_key: Provider API key.
            model: Model name (e.g., "veo-3.1-generate-preview").
            base_url: API root.
            timeout_seconds: Timeout for requests in seconds.
            generate_audio: Whether the model should synthesize speech.
            transport: Optional transport override (used in tests).
        """
        self.model = model
        self.generate_audio = generate_audio
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers={"x-goog-api-key": api_key},
            timeout=timeout_seconds,
            transport=transport,
        )

    def _build_payload(self, job: VideoGenerationJob) -> dict[str, Any]:
        return {
            "instances": [
                {
                    "prompt": job.prompt,
                    "image": {
                        "bytesBase64Encoded": base64.b64encode(job.image_bytes).decode("ascii"),
                        "mimeType": job.mime_type,
                    },
                }
            ],
            "parameters": {
                "aspectRatio": job.aspect_ratio,
                "durationSeconds": job.duration_seconds,
                "generateAudio": self.generate_audio,
                "sampleCount": 1,
            },
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise VideoProviderAppError(
                code="video_provider_unreachable",
                message="Video provider could not be reached",
                details={"provider": "veo", "model": self.model},
            ) from exc

        if response.is_error:
            raise VideoProviderAppError(
                code="video_provider_error",
                message=_extract_error_message(response),
                details={"provider": "veo", "model": self.model, "http_status": response.status_code},
            )

        try:
            return response.json()
        except ValueError as exc:
            raise VideoProviderAppError(
                code="video_provider_invalid_response",
                message="Video provider returned invalid JSON",
                details={"provider": "veo", "model": self.model},
            ) from exc

    async def start_generation(self, job: VideoGenerationJob) -> str:
        data = await self._request(
            "POST",
            f"models/{self.model}:predictLongRunning",
            json=self._build_payload(job),
        )

        operation_name = data.get("name")
        if not operation_name:
            raise VideoProviderAppError(
                code="video_provider_invalid_response",
                message="Video provider did not return an operation name",
                details={"provider": "veo", "model": self.model},
            )

        logger.info(
            "video.generation_started",
            extra={
                "operation": operation_name,
                "model": self.model,
                "duration_s": job.duration_seconds,
                "aspect_ratio": job.aspect_ratio,
            },
        )
        return operation_name

    async def get_status(self, operation_name: str) -> VideoStatus:
        data = await self._request("GET", operation_name.lstrip("/"))
        return parse_operation(operation_name, data)

    async def aclose(self) -> None:
        await self.client.aclose()


def parse_operation(operation_name: str, data: dict[str, Any]) -> VideoStatus:
    """Translate a long-running operation payload into a VideoStatus."""
    if not data.get("done"):
        return VideoStatus(operation_name=operation_name, status="processing")

    if "error" in data:
        message = (data.get("error") or {}).get("message") or "Video generation failed"
        return VideoStatus(operation_name=operation_name, status="failed", error=message)

    response = data.get("response") or {}
    generated = response.get("generateVideoResponse") or response
    samples = generated.get("generatedSamples") or generated.get("videos") or []
    for sample in samples:
        video = sample.get("video") or sample
        uri = video.get("uri") or video.get("gcsUri")
        if uri:
            return VideoStatus(operation_name=operation_name, status="completed", video_uri=uri)

    reasons = generated.get("raiMediaFilteredReasons") or []
    error = reasons[0] if reasons else "Video generation finished without a video"
    return VideoStatus(operation_name=operation_name, status="failed", error=error)


def _extract_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Video provider request failed with status {response.status_code}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Video provider request failed with status {response.status_code}"
