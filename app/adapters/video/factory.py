"""Factory pattern for creating video client instances."""

from app.adapters.video.base import AbstractVideoClient
from app.adapters.video.veo_client import VeoClient
from app.core.config import VideoSettings, settings
from app.core.errors import ValidationAppError


def is_video_provider_configured(video_settings: VideoSettings | None = None) -> bool:
    cfg = video_settings or settings.video
    return cfg.provider.lower() == "veo" and bool(cfg.api_key)


def create_video_client(video_settings: VideoSettings | None = None) -> AbstractVideoClient:
    """Instantiate the video client for the configured provider.

    Returns:
        AbstractVideoClient: Configured client instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    cfg = video_settings or settings.video
    provider = cfg.provider.lower()

    if provider == "veo":
        if not cfg.api_key:
            raise ValidationAppError(
                code="video_missing_api_key",
                message="Veo provider requires VIDEO_API_KEY environment variable",
            )
        return VeoClient(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
            generate_audio=cfg.generate_audio,
        )

    raise ValidationAppError(
        code="video_unknown_provider",
        message=f"Unknown video provider: '{provider}'. Supported providers: veo",
    )
