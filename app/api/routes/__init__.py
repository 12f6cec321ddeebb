from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.video import router as video_router

__all__ = ["health_router", "video_router"]
