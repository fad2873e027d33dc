"""Base chat provider interface and factory pattern."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class ProviderOutcome(BaseModel):
    """Successful result of a single provider call."""

    provider_name: str
    raw_text: str
    model: str
    latency_ms: float
    token_count: int | None = None
    finish_reason: str | None = None


class ChatProvider(ABC):
    """Abstract base class for chat completion providers."""

    name: str = "provider"

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model identifier used when the caller does not pick one."""

    @abstractmethod
    async def send(
        self,
        question_text: str,
        model: str | None = None,
        timeout: float | None = None,
    ) -> ProviderOutcome:
        """Send one single-turn chat completion request.

        Args:
            question_text: The learner's question, sent as the only user message
            model: Model identifier, defaults to the provider's default model
            timeout: Per-call timeout in seconds, defaults to the configured timeout

        Returns:
            ProviderOutcome with the raw completion text

        Raises:
            PipelineError: One of the provider failure kinds
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is reachable with the configured credential.

        Returns:
            True if healthy, False otherwise
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class LLMProviderFactory:
    """Factory for creating chat providers."""

    _providers: dict[str, type[ChatProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type[ChatProvider]) -> None:
        """Register a provider class.

        Args:
            name: Provider name (e.g., "openrouter", "groq")
            provider_class: Provider class to register
        """
        cls._providers[name] = provider_class

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> ChatProvider:
        """Create a provider instance.

        Args:
            name: Provider name
            **kwargs: Provider-specific configuration

        Returns:
            ChatProvider instance

        Raises:
            ValueError: If provider name is not registered
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown provider '{name}'. Available: {available}")

        return cls._providers[name](**kwargs)

    @classmethod
    def list_providers(cls) -> list[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
