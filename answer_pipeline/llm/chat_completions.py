"""Shared client for OpenAI-compatible chat completion endpoints."""

import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field

from answer_pipeline.errors import (
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    PipelineError,
    ProviderTimeoutError,
    RateLimitedError,
    UnknownProviderError,
)
from answer_pipeline.llm.base import ChatProvider, ProviderOutcome

logger = logging.getLogger(__name__)


class ChatCompletionsConfig(BaseModel):
    """Configuration shared by OpenAI-compatible providers."""

    api_key: str
    base_url: str
    model: str
    max_tokens: int = 1024
    temperature: float = 0.7
    timeout: float = 90.0
    extra_headers: dict[str, str] = Field(default_factory=dict)


class ChatCompletionsProvider(ChatProvider):
    """Provider speaking the `/chat/completions` wire format over httpx.

    Subclasses only differ in their endpoint, credential and default model.
    The provider never retries; every transport or HTTP failure is converted
    into a PipelineError before it leaves `send`.
    """

    name = "chat-completions"
    display_name = "Chat completions"
    config_class: type[ChatCompletionsConfig] = ChatCompletionsConfig

    def __init__(
        self,
        config: ChatCompletionsConfig | None = None,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration
            client: Pre-built httpx client, mainly for tests
            **kwargs: Configuration options used when `config` is omitted
        """
        self.config = config or self.config_class(**kwargs)
        self.client = client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
        )

    @property
    def default_model(self) -> str:
        return self.config.model

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            **self.config.extra_headers,
        }

    def build_payload(self, question_text: str, model: str) -> dict[str, Any]:
        """Build the single-turn request body."""
        return {
            "model": model,
            "messages": [{"role": "user", "content": question_text}],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    async def send(
        self,
        question_text: str,
        model: str | None = None,
        timeout: float | None = None,
    ) -> ProviderOutcome:
        model = model or self.config.model
        timeout = timeout or self.config.timeout
        start = time.perf_counter()

        logger.info(f"Calling {self.display_name} with model: {model}")

        try:
            response = await self.client.post(
                "/chat/completions",
                json=self.build_payload(question_text, model),
                headers=self._headers(),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"{self.display_name} request timed out after {timeout}s")
            raise ProviderTimeoutError(
                f"{self.display_name} request timed out", provider=self.name
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{self.display_name} network error: {type(e).__name__}")
            raise NetworkError(
                f"{self.display_name} network error: {type(e).__name__}", provider=self.name
            ) from e

        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{self.display_name} responded with status {response.status_code} "
            f"in {latency_ms:.0f}ms"
        )

        if not response.is_success:
            raise self._status_error(response.status_code)

        raw_text, finish_reason, token_count = self._parse_completion(response)
        logger.info(f"{self.display_name} response valid ({len(raw_text)} chars)")

        return ProviderOutcome(
            provider_name=self.name,
            raw_text=raw_text,
            model=model,
            latency_ms=latency_ms,
            token_count=token_count,
            finish_reason=finish_reason,
        )

    def _status_error(self, status_code: int) -> PipelineError:
        """Map a non-2xx status code to a typed error."""
        if status_code == 429:
            return RateLimitedError(
                f"{self.display_name} rate limited", status_code=429, provider=self.name
            )
        if status_code in (401, 403):
            return AuthenticationError(
                f"{self.display_name} authentication failed",
                status_code=status_code,
                provider=self.name,
            )
        return UnknownProviderError(
            f"{self.display_name} error: HTTP {status_code}",
            status_code=status_code,
            provider=self.name,
        )

    def _parse_completion(self, response: httpx.Response) -> tuple[str, str | None, int | None]:
        """Extract the first choice's text, rejecting malformed payloads."""
        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"{self.display_name} returned a non-JSON body")
            raise InvalidResponseError(
                f"Malformed response structure from {self.display_name}", provider=self.name
            ) from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            logger.warning(f"{self.display_name} returned no completion choices")
            raise InvalidResponseError(
                f"Malformed response structure from {self.display_name}", provider=self.name
            )

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            logger.warning(f"{self.display_name} returned empty content")
            raise InvalidResponseError(
                f"Empty response from {self.display_name}", provider=self.name
            )

        usage = data.get("usage") or {}
        token_count = usage.get("total_tokens") if isinstance(usage, dict) else None
        return content, first.get("finish_reason"), token_count

    async def health_check(self) -> bool:
        try:
            response = await self.client.get("/models", headers=self._headers())
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"{self.display_name} health check failed: {type(e).__name__}")
            return False

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
