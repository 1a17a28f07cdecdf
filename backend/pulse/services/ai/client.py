"""Thin wrapper around the external text-generation service."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Literal, Optional, Sequence

import openai

from pulse.core.config import Settings
from pulse.observability.metrics import log_metric
from pulse.services.ai.errors import (
    EmptyResponseError,
    MalformedOutputError,
    SafetyFilteredError,
    TransportError,
)

logger = logging.getLogger(__name__)

RAW_EXCERPT_LENGTH = 500


@dataclass(frozen=True)
class ConversationTurn:
    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class GenerationResponse:
    text: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class GenerationClient:
    """
    Single request/response calls against an OpenAI-compatible chat endpoint.

    Every failure is raised as a GenerationError subclass. There are no retries
    here: the SDK is built with max_retries=0 and callers fall back instead.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        top_p: float = 0.95,
        top_k: int | None = None,
        max_output_tokens: int = 2048,
        timeout_seconds: float = 30.0,
        sdk_client: Any = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._temperature = temperature
        self._top_p = top_p
        self._top_k = top_k
        self._max_output_tokens = max_output_tokens
        self._timeout_seconds = timeout_seconds
        self._sdk_client = sdk_client

    @classmethod
    def from_settings(cls, source: Settings) -> "GenerationClient":
        return cls(
            api_key=source.openai_api_key,
            model=source.generation_model,
            base_url=source.openai_base_url,
            temperature=source.generation_temperature,
            top_p=source.generation_top_p,
            top_k=source.generation_top_k,
            max_output_tokens=source.generation_max_output_tokens,
            timeout_seconds=source.generation_timeout_seconds,
        )

    @property
    def model_name(self) -> str:
        return self._model

    def is_configured(self) -> bool:
        return self._sdk_client is not None or bool(self._api_key)

    def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        history: Optional[Sequence[ConversationTurn]] = None,
        *,
        json_mode: bool = False,
    ) -> GenerationResponse:
        """Send one prompt and return the raw response text."""
        sdk = self._get_sdk_client()
        messages = _build_messages(prompt, system_instruction, history)
        request: Dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "top_p": self._top_p,
            "max_tokens": self._max_output_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        if self._top_k is not None:
            request["extra_body"] = {"top_k": self._top_k}

        start = perf_counter()
        try:
            completion = sdk.chat.completions.create(**request)
        except openai.BadRequestError as exc:
            if getattr(exc, "code", None) == "content_filter":
                raise SafetyFilteredError(f"Prompt rejected by content filter: {exc}") from exc
            raise TransportError(f"Generation request rejected: {exc}") from exc
        except openai.OpenAIError as exc:
            latency_ms = (perf_counter() - start) * 1000
            logger.warning("Generation call failed after %.0fms: %s", latency_ms, exc)
            raise TransportError(f"Generation call failed: {exc}") from exc

        response = _read_completion(completion)
        latency_ms = (perf_counter() - start) * 1000
        logger.info(
            "Generation call succeeded (model=%s, latency_ms=%.0f, prompt_tokens=%s, completion_tokens=%s)",
            self._model,
            latency_ms,
            response.prompt_tokens,
            response.completion_tokens,
        )
        log_metric(
            "generation.call.latency_ms",
            latency_ms,
            metadata={
                "model": self._model,
                "prompt_length": len(prompt),
                "response_length": len(response.text),
                "prompt_tokens": response.prompt_tokens,
                "completion_tokens": response.completion_tokens,
            },
        )
        return response

    def generate_json(
        self,
        prompt: str,
        system_instruction: str | None = None,
        history: Optional[Sequence[ConversationTurn]] = None,
    ) -> Any:
        """Send one prompt and parse the response as JSON."""
        response = self.generate(prompt, system_instruction, history, json_mode=True)
        return parse_json_payload(response.text)

    def _get_sdk_client(self):
        if self._sdk_client is not None:
            return self._sdk_client
        if not self._api_key:
            raise TransportError("OPENAI_API_KEY is not configured")
        self._sdk_client = openai.OpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            max_retries=0,
        )
        return self._sdk_client


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""
    stripped = text.strip()
    if stripped.startswith("```json"):
        stripped = stripped[7:]
    elif stripped.startswith("```"):
        stripped = stripped[3:]
    if stripped.endswith("```"):
        stripped = stripped[:-3]
    return stripped.strip()


def parse_json_payload(text: str) -> Any:
    """Parse model output as JSON, raising MalformedOutputError on failure."""
    candidate = strip_code_fence(text)
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as exc:
        excerpt = text[:RAW_EXCERPT_LENGTH]
        logger.warning("Failed to parse generation output as JSON: %s | raw=%r", exc, excerpt)
        raise MalformedOutputError(
            f"Failed to parse generation output as JSON: {exc}",
            raw_excerpt=excerpt,
        ) from exc


def _build_messages(
    prompt: str,
    system_instruction: str | None,
    history: Optional[Sequence[ConversationTurn]],
) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    for turn in history or ():
        role = "assistant" if turn.role == "model" else "user"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": prompt})
    return messages


def _read_completion(completion: Any) -> GenerationResponse:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        raise EmptyResponseError("Generation service returned no choices")

    choice = choices[0]
    if getattr(choice, "finish_reason", None) == "content_filter":
        raise SafetyFilteredError("Generation output was blocked by the content filter")

    message = getattr(choice, "message", None)
    refusal = getattr(message, "refusal", None)
    if refusal:
        raise SafetyFilteredError(f"Generation service refused: {refusal}")

    content = getattr(message, "content", None) or ""
    if not content.strip():
        raise EmptyResponseError("Generation service returned an empty message")

    usage = getattr(completion, "usage", None)
    return GenerationResponse(
        text=content,
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
    )
