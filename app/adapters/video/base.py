from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

VideoJobStatus = Literal["processing", "completed", "failed"]


@dataclass(frozen=True)
class VideoGenerationJob:
	"""Everything a provider needs to start one image-to-video generation."""

	prompt: str
	image_bytes: bytes
	mime_type: str
	duration_seconds: int
	aspect_ratio: str = "16:9"


@dataclass(frozen=True)
class VideoStatus:
	"""Provider-neutral view of a long-running generation."""

	operation_name: str
	status: VideoJobStatus
	video_uri: str | None = None
	error: str | None = None


class AbstractVideoClient(ABC):
	"""Interface for video generation providers with long-running operations."""

	@abstractmethod
	async def start_generation(self, job: VideoGenerationJob) -> str:
		"""Start a generation.

		Args:
			job: Prompt, source image and output parameters.

		Returns:
			str: Provider operation name used to poll for the result.

		Raises:
			VideoProviderAppError: If the provider rejects the request or is unreachable.
		"""
		...

	@abstractmethod
	async def get_status(self, operation_name: str) -> VideoStatus:
		"""Fetch the current state of a generation.

		Raises:
			VideoProviderAppError: If the provider call fails.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
