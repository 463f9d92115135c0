# pyright: reportPrivateUsage=false
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pytest
from openai import OpenAIError

from xml_ai.domain import Message, ResponseFormat, Role, Settings
from xml_ai.exceptions import CompletionError
from xml_ai.infrastructure.completion_client import DEFAULT_MODEL, OpenAICompletionClient
from xml_ai.infrastructure.utility_services import ResponseParser


class DummyElapsed:
    def __init__(self, seconds: float) -> None:
        self._seconds = seconds

    def total_seconds(self) -> float:
        return self._seconds


class DummyHTTPResponse:
    def __init__(self, elapsed: Optional[float]) -> None:
        self.status_code = 200
        self.elapsed = DummyElapsed(elapsed) if elapsed is not None else None


class DummyCompletion:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self._payload = payload

    def model_dump(self) -> Dict[str, Any]:
        return self._payload


class DummyRawResponse:
    def __init__(self, payload: Dict[str, Any], elapsed: Optional[float]) -> None:
        self._payload = payload
        self.http_response = DummyHTTPResponse(elapsed)

    def parse(self) -> DummyCompletion:
        return DummyCompletion(self._payload)


class DummyChatCompletions:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self._payload = payload
        self.raise_error: Optional[Exception] = None
        self.elapsed: Optional[float] = 0.01
        self.requests: List[Dict[str, Any]] = []

    @property
    def with_raw_response(self) -> DummyChatCompletions:
        return self

    async def create(self, **kwargs: Any) -> DummyRawResponse:
        self.requests.append(kwargs)
        if self.raise_error is not None:
            raise self.raise_error
        return DummyRawResponse(self._payload, self.elapsed)


class DummyChat:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self.completions = DummyChatCompletions(payload)


class DummyAsyncOpenAI:
    instances: List[DummyAsyncOpenAI] = []

    def __init__(self, *, payload: Dict[str, Any], **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.chat = DummyChat(payload)
        DummyAsyncOpenAI.instances.append(self)


class DummyAsyncHTTPClient:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


def _install(monkeypatch: pytest.MonkeyPatch, payload: Dict[str, Any]) -> None:
    DummyAsyncOpenAI.instances = []

    def factory(**kwargs: Any) -> DummyAsyncOpenAI:
        return DummyAsyncOpenAI(payload=payload, **kwargs)

    monkeypatch.setattr("xml_ai.infrastructure.completion_client.AsyncOpenAI", factory)
    monkeypatch.setattr("xml_ai.infrastructure.completion_client.httpx.AsyncClient", DummyAsyncHTTPClient)


MESSAGES = [Message(Role.SYSTEM, "Be brief."), Message(Role.USER, "Hi")]


def test_complete_returns_text_of_first_choice(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"choices": [{"message": {"content": "Hello"}}, {"message": {"content": "ignored"}}]})
    client = OpenAICompletionClient(api_key="key", base_url="http://example.com", max_retries=2)

    text = asyncio.run(client.complete(MESSAGES, Settings(model="m", temperature=0.3)))

    assert text == "Hello"
    (sdk,) = DummyAsyncOpenAI.instances
    assert sdk.kwargs["api_key"] == "key"
    assert sdk.kwargs["base_url"] == "http://example.com"
    assert sdk.kwargs["max_retries"] == 2
    assert isinstance(sdk.kwargs["http_client"], DummyAsyncHTTPClient)
    assert sdk.kwargs["http_client"].kwargs["http2"] is True
    (request,) = sdk.chat.completions.requests
    assert request == {
        "model": "m",
        "messages": [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Hi"}],
        "temperature": 0.3,
    }


def test_complete_joins_structured_content(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"choices": [{"message": {"content": [{"text": "Hello "}, "world", {"type": "x"}]}}]})
    client = OpenAICompletionClient(api_key="key")
    assert asyncio.run(client.complete(MESSAGES, Settings())) == "Hello world"


def test_client_is_created_once_and_closed(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"choices": [{"message": {"content": "ok"}}]})

    async def scenario() -> DummyAsyncHTTPClient:
        async with OpenAICompletionClient(api_key="key") as client:
            await client.complete(MESSAGES, Settings())
            await client.complete(MESSAGES, Settings())
            http_client = client._http_client
            assert isinstance(http_client, DummyAsyncHTTPClient)
        assert client._client is None
        return http_client

    http_client = asyncio.run(scenario())
    assert http_client.closed
    assert len(DummyAsyncOpenAI.instances) == 1


def test_missing_elapsed_is_logged_as_unknown(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    _install(monkeypatch, {"choices": [{"message": {"content": "ok"}}]})
    client = OpenAICompletionClient(api_key="key")
    client._ensure_client()
    DummyAsyncOpenAI.instances[0].chat.completions.elapsed = None

    with caplog.at_level(logging.DEBUG, logger="xml_ai.infrastructure.completion_client"):
        asyncio.run(client.complete(MESSAGES, Settings()))

    assert "latency=unknown" in caplog.text


def test_sdk_errors_become_completion_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {})
    client = OpenAICompletionClient(api_key="key")
    client._ensure_client()
    DummyAsyncOpenAI.instances[0].chat.completions.raise_error = OpenAIError("boom")

    with pytest.raises(CompletionError) as excinfo:
        asyncio.run(client.complete(MESSAGES, Settings(model="m")))

    assert excinfo.value.status_code is None
    assert excinfo.value.context == {"model": "m"}
    assert isinstance(excinfo.value.__cause__, OpenAIError)


def test_response_without_choices_is_an_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"choices": []})
    client = OpenAICompletionClient(api_key="key")

    with pytest.raises(CompletionError, match="no choices"):
        asyncio.run(client.complete(MESSAGES, Settings()))


def test_build_request_maps_every_setting() -> None:
    client = OpenAICompletionClient(api_key="key")
    settings = Settings(
        name="ignored",
        temperature=0.1,
        n=2,
        max_tokens=64,
        top_p=0.9,
        frequency_penalty=0.5,
        presence_penalty=-0.5,
        logprobs=True,
        top_logprobs=4,
        response_format=ResponseFormat.JSON_OBJECT,
    )

    request = client.build_request([Message(Role.USER, "x")], settings)

    assert request == {
        "model": DEFAULT_MODEL,
        "messages": [{"role": "user", "content": "x"}],
        "temperature": 0.1,
        "n": 2,
        "max_tokens": 64,
        "top_p": 0.9,
        "frequency_penalty": 0.5,
        "presence_penalty": -0.5,
        "logprobs": True,
        "top_logprobs": 4,
        "response_format": {"type": "json_object"},
    }


def test_response_parser_fallbacks() -> None:
    parser = ResponseParser()
    assert not parser.has_choice({})
    assert parser.has_choice({"choices": [{}]})
    assert parser.extract_text({"choices": [{}]}) == ""
    assert parser.extract_text({"choices": [{"message": {"content": None}}]}) == ""
    assert parser.extract_text({"choices": ["bad"]}) == ""
