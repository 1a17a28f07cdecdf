"""Failure taxonomy for the model path.

Generation errors originate in the generation client, schedule validation
errors in the schedule validator. The orchestrator converts all of them into
a fallback plan; none of them reaches an HTTP caller.
"""
from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """Base class for failures while talking to the text-generation service."""

    kind = "generation"


class TransportError(GenerationError):
    """Network, auth, rate-limit or configuration failure reaching the service."""

    kind = "transport"


class SafetyFilteredError(GenerationError):
    """The service refused to answer or filtered its output."""

    kind = "safety_filtered"


class EmptyResponseError(GenerationError):
    """The service answered with no usable text."""

    kind = "empty_response"


class MalformedOutputError(GenerationError):
    """The response text could not be parsed as JSON."""

    kind = "malformed_json"

    def __init__(self, message: str, *, raw_excerpt: str = "") -> None:
        super().__init__(message)
        self.raw_excerpt = raw_excerpt


class ScheduleValidationError(Exception):
    """A parsed payload is structurally unusable as a schedule."""

    NOT_AN_ARRAY = "not_an_array"
    MISSING_FIELD = "missing_field"

    def __init__(self, reason: str, message: str, *, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.index = index
