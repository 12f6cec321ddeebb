import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from pydantic import ValidationError

from app.adapters.rate_limit.base import AbstractGenerationLimiter
from app.adapters.video.base import AbstractVideoClient, VideoGenerationJob
from app.adapters.video.factory import create_video_client
from app.core.auth import verify_api_key
from app.core.config import settings
from app.core.errors import CooldownAppError, ValidationAppError, VideoProviderAppError
from app.core.file_validation import read_upload_file_limited, resolve_image_type
from app.core.logging import hash_identifier
from app.core.rate_limit import enforce_rate_limit, get_client_ip, get_generation_limiter
from app.schemas.video import (
    DurationInfo,
    GenerateVideoResponse,
    RateLimitStatusResponse,
    VideoGenerationRequest,
    VideoStatusResponse,
)
from app.services.duration_service import DurationEstimator
from app.services.prompt_service import build_video_prompt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Videos"], dependencies=[Depends(verify_api_key)])


def get_duration_estimator(request: Request) -> DurationEstimator:
    return request.app.state.duration_estimator


def get_video_client(request: Request) -> AbstractVideoClient:
    """Return the application's video client, creating it on first use."""
    client = getattr(request.app.state, "video_client", None)
    if client is not None:
        return client

    try:
        client = create_video_client()
    except ValidationAppError as exc:
        raise VideoProviderAppError(
            code="video_provider_not_configured",
            message="Video generation is not available right now",
            details={"hint": exc.message},
        ) from exc

    request.app.state.video_client = client
    return client


def _parse_request(**fields) -> VideoGenerationRequest:
    try:
        return VideoGenerationRequest(**fields)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationAppError(
            code="invalid_input",
            message="Invalid input data",
            details={"context": {"errors": errors}},
        ) from exc


@router.post(
    "/videos",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=GenerateVideoResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def generate_video(
    request: Request,
    image: UploadFile = File(..., description="Dog photo (JPEG or PNG)"),
    dialogue: str = Form(..., description="What the dog should say"),
    tone: str | None = Form(None),
    intent: str | None = Form(None),
    background: str | None = Form(None),
    aspect_ratio: str = Form("16:9"),
    paid: bool = Form(False, description="Payment verified by the web tier"),
    limiter: AbstractGenerationLimiter = Depends(get_generation_limiter),
    estimator: DurationEstimator = Depends(get_duration_estimator),
    video_client: AbstractVideoClient = Depends(get_video_client),
) -> GenerateVideoResponse:
    """Start a talking-dog video generation.

    Unpaid requests from an IP that generated within the cooldown window are
    refused with 429 before the image is read. The generation is recorded
    against the IP only after the provider accepted it.
    """
    payload = _parse_request(
        dialogue=dialogue,
        tone=tone,
        intent=intent,
        background=background,
        aspect_ratio=aspect_ratio,
        paid=paid,
    )

    ip = get_client_ip(request)
    ip_hash = hash_identifier(ip)

    decision = limiter.can_generate(ip, payload.paid)
    if not decision.allowed:
        wait_minutes = decision.remaining_wait_minutes or 1
        logger.info(
            "generation_limit.refused",
            extra={"ip_hash": ip_hash, "remaining_wait_minutes": wait_minutes},
        )
        raise CooldownAppError(
            code="generation_cooldown",
            message=(
                f"Free generations are limited. Please wait {wait_minutes} minutes "
                "or pay to skip the line."
            ),
            details={"remaining_wait_minutes": wait_minutes, "retry_after": wait_minutes * 60},
        )

    image_bytes = await read_upload_file_limited(image)
    _, mime_type = resolve_image_type(image, image_bytes)

    estimate = estimator.estimate(payload.dialogue)
    prompt = build_video_prompt(
        payload.dialogue,
        duration_seconds=estimate.duration_seconds,
        tone=payload.tone,
        intent=payload.intent,
        background=payload.background,
    )

    operation_id = await video_client.start_generation(
        VideoGenerationJob(
            prompt=prompt,
            image_bytes=image_bytes,
            mime_type=mime_type,
            duration_seconds=estimate.duration_seconds,
            aspect_ratio=payload.aspect_ratio,
        )
    )

    limiter.record_generation(ip)
    logger.info(
        "generation.accepted",
        extra={
            "ip_hash": ip_hash,
            "paid": payload.paid,
            "word_count": estimate.word_count,
            "duration_s": estimate.duration_seconds,
            "generation_count": limiter.get_stats(ip).generation_count,
        },
    )

    return GenerateVideoResponse(
        operation_id=operation_id,
        duration=DurationInfo(
            word_count=estimate.word_count,
            estimated_seconds=round(estimate.estimated_seconds, 2),
            duration_seconds=estimate.duration_seconds,
            truncated=estimate.truncated,
        ),
        paid=payload.paid,
    )


@router.get("/videos/{operation_id:path}", response_model=VideoStatusResponse)
async def get_video_status(
    operation_id: str,
    video_client: AbstractVideoClient = Depends(get_video_client),
) -> VideoStatusResponse:
    """Poll a generation started by ``POST /videos``."""
    result = await video_client.get_status(operation_id)
    return VideoStatusResponse(
        operation_id=result.operation_name,
        status=result.status,
        video_uri=result.video_uri,
        error=result.error,
    )


@router.get("/rate-limit", response_model=RateLimitStatusResponse)
async def get_rate_limit_status(
    request: Request,
    limiter: AbstractGenerationLimiter = Depends(get_generation_limiter),
) -> RateLimitStatusResponse:
    """Report whether the calling IP may generate for free right now."""
    ip = get_client_ip(request)
    decision = limiter.can_generate(ip, False)
    stats = limiter.get_stats(ip)
    return RateLimitStatusResponse(
        allowed=decision.allowed,
        remaining_wait_minutes=decision.remaining_wait_minutes,
        generation_count=stats.generation_count,
        last_generation_at=stats.last_generation_at,
        cooldown_hours=settings.app.generation_cooldown_hours,
    )
