"""OpenAI-compatible completion service implementation."""

import logging
from typing import Any, Dict, Optional, Sequence, cast

import httpx
from openai import AsyncOpenAI, OpenAIError

from ..domain import Message, Settings
from ..exceptions import CompletionError
from ..services import ICompletionService
from .utility_services import ResponseParser

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4"


class OpenAICompletionClient(ICompletionService):
    """Chat-completions client with a persistent HTTP/2 connection pool.

    Only choice 0 of each response is used. Retries are left to the SDK and
    default to none.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 120,
        connect_timeout: float = 10,
        max_retries: int = 0,
        logger: Optional[logging.Logger] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._default_model = default_model
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._max_retries = max_retries
        self._logger = logger or logging.getLogger(__name__)
        self._parser = ResponseParser()
        self._client: Optional[AsyncOpenAI] = None
        self._http_client: Optional[httpx.AsyncClient] = None

    def _ensure_client(self) -> AsyncOpenAI:
        """Lazily create and cache the OpenAI client."""
        if self._client is None:
            self._http_client = httpx.AsyncClient(
                http2=True, timeout=httpx.Timeout(self._timeout, connect=self._connect_timeout)
            )
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                http_client=self._http_client,
                max_retries=self._max_retries,
            )
            self._logger.debug("Initialized completion client for %s", self._base_url)
        return self._client

    def build_request(self, messages: Sequence[Message], settings: Settings) -> Dict[str, Any]:
        """Translate effective settings into chat-completion request parameters."""
        request: Dict[str, Any] = {
            "model": settings.model or self._default_model,
            "messages": [message.to_payload() for message in messages],
        }
        optional = {
            "temperature": settings.temperature,
            "n": settings.n,
            "max_tokens": settings.max_tokens,
            "top_p": settings.top_p,
            "frequency_penalty": settings.frequency_penalty,
            "presence_penalty": settings.presence_penalty,
            "logprobs": settings.logprobs,
            "top_logprobs": settings.top_logprobs,
        }
        request.update({key: value for key, value in optional.items() if value is not None})
        if settings.response_format is not None:
            request["response_format"] = {"type": settings.response_format.value}
        return request

    async def complete(self, messages: Sequence[Message], settings: Settings) -> str:
        """Execute a chat completion request and return the text of choice 0."""
        client = self._ensure_client()
        request = self.build_request(messages, settings)

        self._logger.debug(
            "POST %s/chat/completions model=%s messages=%d temperature=%s",
            self._base_url,
            request["model"],
            len(request["messages"]),
            request.get("temperature", "default"),
        )

        try:
            client_any = cast(Any, client)
            raw_response = await client_any.chat.completions.with_raw_response.create(**request)
            completion = raw_response.parse()
        except OpenAIError as exc:
            self._logger.error("Completion request failed: %s", exc, exc_info=True)
            raise CompletionError(
                f"completion request failed: {exc}",
                status_code=getattr(exc, "status_code", None),
                context={"model": request["model"]},
            ) from exc

        payload = cast(Dict[str, Any], completion.model_dump())
        http_response = raw_response.http_response
        elapsed = http_response.elapsed.total_seconds() if http_response.elapsed else None
        self._logger.debug(
            "Received response status=%s latency=%s model=%s",
            http_response.status_code,
            f"{elapsed:.3f}s" if elapsed is not None else "unknown",
            request["model"],
        )

        if not self._parser.has_choice(payload):
            raise CompletionError("completion response contained no choices", context={"model": request["model"]})
        return self._parser.extract_text(payload)

    async def aclose(self) -> None:
        """Close connections and cleanup resources."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        self._client = None
        self._logger.debug("Closed completion client connections")

    async def __aenter__(self) -> "OpenAICompletionClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_MODEL", "OpenAICompletionClient"]
