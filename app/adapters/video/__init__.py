"""Video adapter layer - abstracts over video generation providers."""

from app.adapters.video.base import AbstractVideoClient, VideoGenerationJob, VideoStatus
from app.adapters.video.factory import create_video_client, is_video_provider_configured
from app.adapters.video.veo_client import VeoClient

__all__ = [
    "AbstractVideoClient",
    "VeoClient",
    "VideoGenerationJob",
    "VideoStatus",
    "create_video_client",
    "is_video_provider_configured",
]
