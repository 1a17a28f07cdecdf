from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import httpx
import openai
import pytest

from pulse.services.ai.client import (
    ConversationTurn,
    GenerationClient,
    parse_json_payload,
    strip_code_fence,
)
from pulse.services.ai.errors import (
    EmptyResponseError,
    MalformedOutputError,
    SafetyFilteredError,
    TransportError,
)


def _completion(content: str | None, finish_reason: str = "stop", refusal: str | None = None):
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=11, completion_tokens=7),
    )


class _FakeCompletions:
    def __init__(self, result: Any):
        self.result = result
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _client(result: Any, **kwargs) -> tuple[GenerationClient, _FakeCompletions]:
    completions = _FakeCompletions(result)
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = GenerationClient(api_key=None, model="test-model", sdk_client=sdk, **kwargs)
    return client, completions


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def test_strip_code_fence_variants() -> None:
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_parse_json_payload_accepts_fenced_output() -> None:
    assert parse_json_payload('```json\n{"schedule": []}\n```') == {"schedule": []}


def test_parse_json_payload_keeps_bounded_excerpt() -> None:
    raw = "not json " * 200

    with pytest.raises(MalformedOutputError) as excinfo:
        parse_json_payload(raw)

    assert excinfo.value.kind == "malformed_json"
    assert len(excinfo.value.raw_excerpt) == 500
    assert raw.startswith(excinfo.value.raw_excerpt)


def test_generate_json_sends_system_history_and_json_mode() -> None:
    client, completions = _client(_completion('{"ok": true}'), top_k=40)
    history = [ConversationTurn(role="user", text="hi"), ConversationTurn(role="model", text="hello")]

    result = client.generate_json("plan my day", "be helpful", history)

    assert result == {"ok": True}
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    assert call["extra_body"] == {"top_k": 40}
    assert [m["role"] for m in call["messages"]] == ["system", "user", "assistant", "user"]
    assert call["messages"][-1]["content"] == "plan my day"


def test_generate_returns_usage() -> None:
    client, completions = _client(_completion("plain text"))

    response = client.generate("hello")

    assert response.text == "plain text"
    assert response.prompt_tokens == 11
    assert response.completion_tokens == 7
    assert "extra_body" not in completions.calls[0]
    assert "response_format" not in completions.calls[0]


def test_empty_message_raises_empty_response() -> None:
    client, _ = _client(_completion("   "))

    with pytest.raises(EmptyResponseError):
        client.generate("hello")


def test_no_choices_raises_empty_response() -> None:
    client, _ = _client(SimpleNamespace(choices=[], usage=None))

    with pytest.raises(EmptyResponseError):
        client.generate("hello")


@pytest.mark.parametrize(
    "completion",
    [_completion("{}", finish_reason="content_filter"), _completion(None, refusal="cannot help")],
)
def test_filtered_output_raises_safety_error(completion) -> None:
    client, _ = _client(completion)

    with pytest.raises(SafetyFilteredError):
        client.generate("hello")


def test_content_filter_rejection_maps_to_safety_error() -> None:
    error = openai.BadRequestError(
        "blocked",
        response=httpx.Response(400, request=_request()),
        body={"code": "content_filter", "message": "blocked"},
    )
    client, _ = _client(error)

    with pytest.raises(SafetyFilteredError):
        client.generate("hello")


def test_connection_failure_maps_to_transport_error() -> None:
    client, _ = _client(openai.APIConnectionError(request=_request()))

    with pytest.raises(TransportError) as excinfo:
        client.generate("hello")

    assert excinfo.value.kind == "transport"


def test_missing_api_key_is_transport_error() -> None:
    client = GenerationClient(api_key=None, model="test-model")

    assert client.is_configured() is False
    with pytest.raises(TransportError):
        client.generate("hello")
