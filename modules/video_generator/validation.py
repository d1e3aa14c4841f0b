"""Request validation for the video endpoints."""

from __future__ import annotations

import math
from typing import Any

from modules.video_generator.storage import DEFAULT_EXPIRES_IN, clamp_expires_in
from shared.errors import ValidationError
from shared.models.video import MAX_PROMPT_LENGTH
from shared.schemas.videos import GenerateVideoRequest


def validate_generation_request(body: Any) -> GenerateVideoRequest:
    """Check a raw JSON body and return the normalized request.

    Raises:
        ValidationError: If the body or prompt is unusable.
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body is required")

    prompt = body.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("Prompt is required and must be a non-empty string")

    prompt = prompt.strip()
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(f"Prompt must be at most {MAX_PROMPT_LENGTH} characters")

    duration = body.get("duration")
    if duration is not None and (isinstance(duration, bool) or not isinstance(duration, (int, float))):
        raise ValidationError("Duration must be a number of seconds")
    if duration is not None and (not math.isfinite(duration) or duration < 0):
        raise ValidationError("Duration must be a non-negative, finite number of seconds")

    quality = body.get("quality")
    if quality is not None and not isinstance(quality, str):
        raise ValidationError("Quality must be a string")

    user_id = body.get("userId")
    if user_id is not None and not isinstance(user_id, str):
        raise ValidationError("userId must be a string")

    return GenerateVideoRequest(
        prompt=prompt,
        duration=duration,
        quality=quality,
        user_id=user_id.strip() if user_id else None,
    )


def parse_expires_in(raw: str | None) -> int:
    """Turn the ``expiresIn`` query value into a clamped lifetime in seconds.

    Absent or non-numeric values fall back to the default.
    """
    if raw is None or not str(raw).strip():
        return DEFAULT_EXPIRES_IN
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_EXPIRES_IN
    if math.isnan(value):
        return DEFAULT_EXPIRES_IN
    return clamp_expires_in(value)
