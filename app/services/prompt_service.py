"""Prompt construction for talking-dog video generation."""

from __future__ import annotations

from typing import Literal

Tone = Literal["friendly", "calm", "excited", "sad", "funny", "professional"]
Intent = Literal["adoption", "apology", "celebration", "funny", "business", "memorial"]

TONE_MODIFIERS: dict[str, str] = {
    "friendly": "in a cheerful and playful tone",
    "calm": "in a calm and sincere tone",
    "excited": "in an excited and energetic tone",
    "sad": "in a sad and emotional tone",
    "funny": "in a funny and sarcastic tone",
    "professional": "in a professional and clear tone",
}

INTENT_CONTEXT: dict[str, str] = {
    "adoption": "The video has a warm, hopeful feeling suitable for adoption or rescue.",
    "apology": "The video conveys sincerity and heartfelt emotion.",
    "celebration": "The video is joyful and celebratory.",
    "funny": "The video is humorous and entertaining.",
    "business": "The video is professional and clear for promotional purposes.",
    "memorial": "The video is respectful and touching, suitable for a tribute.",
}

DEFAULT_TONE_MODIFIER = "in a friendly tone"

STYLE_DIRECTIVES = (
    "Preserve the exact visual style, lighting, and quality of the input image. "
    "If the image is photorealistic, maintain photorealism. If it's a cartoon or "
    "illustration, maintain that style. Use natural lip-sync and realistic movements."
)


def build_video_prompt(
    dialogue: str,
    *,
    duration_seconds: int,
    tone: str | None = None,
    intent: str | None = None,
    background: str | None = None,
) -> str:
    """Build the text prompt sent to the video model.

    Unknown or empty tone/intent values fall back to the defaults instead of
    failing; request validation happens at the API layer.

    Args:
        dialogue: Exact words the dog should say.
        duration_seconds: Video length chosen by the duration heuristic.
        tone: Optional speaking tone.
        intent: Optional purpose of the video.
        background: Optional scene description.

    Returns:
        Prompt text.
    """
    tone_modifier = TONE_MODIFIERS.get(tone or "", DEFAULT_TONE_MODIFIER)

    parts = [
        "A talking dog video that exactly matches the visual style of the input image. "
        f'The dog should appear to be speaking {tone_modifier}, saying: "{dialogue.strip()}".'
    ]

    if background and background.strip():
        parts.append(f"The scene is set in {background.strip()}.")

    context = INTENT_CONTEXT.get(intent or "")
    if context:
        parts.append(context)

    parts.append(STYLE_DIRECTIVES)
    parts.append(f"The video should be {duration_seconds} seconds long.")

    return " ".join(parts)
