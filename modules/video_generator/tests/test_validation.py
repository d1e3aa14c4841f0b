"""Tests for request validation and expiresIn parsing."""

from __future__ import annotations

import pytest

from modules.video_generator.validation import parse_expires_in, validate_generation_request
from shared.errors import ValidationError


def test_valid_request_is_normalized():
    req = validate_generation_request(
        {"prompt": "  A cat surfing  ", "duration": 8, "quality": "high", "userId": " u-1 "}
    )
    assert req.prompt == "A cat surfing"
    assert req.duration == 8
    assert req.quality == "high"
    assert req.user_id == "u-1"


def test_minimal_request():
    req = validate_generation_request({"prompt": "x"})
    assert req.prompt == "x"
    assert req.duration is None
    assert req.quality is None
    assert req.user_id is None


@pytest.mark.parametrize("body", [None, [], "prompt", 42])
def test_body_must_be_object(body):
    with pytest.raises(ValidationError, match="Request body is required"):
        validate_generation_request(body)


@pytest.mark.parametrize("prompt", [None, "", "   ", 123, ["a"]])
def test_prompt_required(prompt):
    body = {} if prompt is None else {"prompt": prompt}
    with pytest.raises(ValidationError) as exc_info:
        validate_generation_request(body)
    assert exc_info.value.message == "Prompt is required and must be a non-empty string"
    assert exc_info.value.status_code == 400


def test_prompt_length_limit():
    assert validate_generation_request({"prompt": "a" * 1000}).prompt == "a" * 1000
    # Surrounding whitespace does not count
    assert len(validate_generation_request({"prompt": " " + "a" * 1000 + " "}).prompt) == 1000

    with pytest.raises(ValidationError, match="at most 1000 characters"):
        validate_generation_request({"prompt": "a" * 1001})


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("duration", "8s", "Duration must be a number"),
        ("duration", True, "Duration must be a number"),
        ("quality", 3, "Quality must be a string"),
        ("userId", 7, "userId must be a string"),
    ],
)
def test_optional_field_types(field, value, message):
    with pytest.raises(ValidationError, match=message):
        validate_generation_request({"prompt": "x", field: value})


@pytest.mark.parametrize("duration", [-1, float("inf"), float("nan")])
def test_duration_must_be_non_negative_and_finite(duration):
    with pytest.raises(ValidationError, match="non-negative, finite"):
        validate_generation_request({"prompt": "x", "duration": duration})


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 3600),
        ("", 3600),
        ("  ", 3600),
        ("abc", 3600),
        ("nan", 3600),
        ("10", 60),
        ("-5", 60),
        ("7200", 7200),
        ("999999", 86400),
        ("inf", 86400),
        ("90.9", 90),
    ],
)
def test_parse_expires_in(raw, expected):
    assert parse_expires_in(raw) == expected
