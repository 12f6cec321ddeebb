"""Pydantic schemas for video generation requests and responses."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.services.prompt_service import Intent, Tone

MIN_DIALOGUE_CHARS = 5
MAX_DIALOGUE_CHARS = 500
MAX_BACKGROUND_CHARS = 100

AspectRatio = Literal["16:9", "9:16", "1:1"]

_DOG_LABEL = re.compile(r"Dog\s+\d+:", re.IGNORECASE)


class VideoGenerationRequest(BaseModel):
    """Text fields of a generate request (the image travels separately)."""

    dialogue: str = Field(
        ...,
        min_length=MIN_DIALOGUE_CHARS,
        max_length=MAX_DIALOGUE_CHARS,
        description='What the dog says. Multiple dogs: "Dog 1: ... Dog 2: ...".',
    )
    tone: Tone | None = Field(default=None, description="Speaking tone.")
    intent: Intent | None = Field(default=None, description="Purpose of the video.")
    background: str | None = Field(
        default=None,
        max_length=MAX_BACKGROUND_CHARS,
        description="Optional scene description.",
    )
    aspect_ratio: AspectRatio = Field(default="16:9", description="Output aspect ratio.")
    paid: bool = Field(
        default=False,
        description="True when the user paid to skip the cooldown (verified by the web tier).",
    )

    @field_validator("tone", "intent", "background", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("dialogue")
    @classmethod
    def _validate_dialogue(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Dialogue cannot be empty or only whitespace")
        if _DOG_LABEL.search(value):
            sections = _DOG_LABEL.split(value)[1:]
            if not all(section.strip() for section in sections):
                raise ValueError('Each dog must have dialogue. Format: "Dog 1: [dialogue] Dog 2: [dialogue]"')
        return value


class DurationInfo(BaseModel):
    word_count: int = Field(..., description="Words counted in the dialogue.")
    estimated_seconds: float = Field(..., description="Speaking time at the assumed pace.")
    duration_seconds: int = Field(..., description="Video length requested from the provider.")
    truncated: bool = Field(
        ...,
        description="True when the dialogue is longer than the longest permitted video.",
    )


class GenerateVideoResponse(BaseModel):
    """Accepted generation, to be polled by operation id."""

    operation_id: str = Field(..., description="Provider operation name to poll.")
    status: Literal["processing"] = "processing"
    duration: DurationInfo
    paid: bool = Field(..., description="Whether the cooldown was bypassed by payment.")
    message: str = "Video generation started. Use operation_id to check status."


class VideoStatusResponse(BaseModel):
    operation_id: str
    status: Literal["processing", "completed", "failed"]
    video_uri: str | None = None
    error: str | None = None


class RateLimitStatusResponse(BaseModel):
    """Cooldown state for the calling IP."""

    allowed: bool = Field(..., description="Whether an unpaid generation may start now.")
    remaining_wait_minutes: int | None = Field(
        default=None,
        description="Minutes until the cooldown ends (present only when not allowed).",
    )
    generation_count: int = Field(..., description="Generations recorded for this IP.")
    last_generation_at: datetime | None = Field(
        default=None,
        description="When the most recent generation was recorded.",
    )
    cooldown_hours: float = Field(..., description="Configured cooldown between unpaid generations.")
