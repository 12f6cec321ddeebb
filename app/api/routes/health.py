from __future__ import annotations

from fastapi import APIRouter

from app.adapters.video.factory import is_video_provider_configured

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service
    health. Also reports whether the video provider has credentials, since
    the service cannot generate anything without them.

    Returns:
        dict: ``status`` ("ok") and ``video_provider_configured``.
    """

    return {
        "status": "ok",
        "video_provider_configured": is_video_provider_configured(),
    }
