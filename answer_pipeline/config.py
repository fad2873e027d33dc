"""Configuration management using pydantic-settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Primary provider (OpenRouter)
    openrouter_api_key: str | None = Field(
        default=None,
        description="OpenRouter API key for the primary provider",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )
    app_referer: str = Field(
        default="https://aurikrex.tech",
        description="HTTP-Referer attribution header sent to OpenRouter",
    )
    app_title: str = Field(
        default="Aurikrex Academy",
        description="X-Title attribution header sent to OpenRouter",
    )

    # Model tiers served by the primary provider
    model_fast: str = Field(default="google/gemma-3-12b-it:free")
    model_balanced: str = Field(default="google/gemma-3-12b-it:free")
    model_smart: str = Field(default="nvidia/llama-3.1-nemotron-nano-12b-v1:free")
    model_expert: str = Field(default="nvidia/llama-3.1-nemotron-nano-12b-v1:free")

    # Fallback provider (Groq)
    groq_api_key: str | None = Field(
        default=None,
        description="Groq API key for the fallback provider",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq OpenAI-compatible API base URL",
    )
    groq_fallback_model: str = Field(
        default="mixtral-8x7b-32768",
        description="Fixed model used on the fallback provider",
    )

    # Completion parameters
    request_timeout: float = Field(
        default=90.0,
        gt=0,
        description="Per-call provider timeout in seconds",
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, gt=0)
    max_question_length: int = Field(
        default=10_000,
        gt=0,
        description="Maximum accepted question length in characters",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    port: int = Field(
        default=3000,
        description="Port for the HTTP chat endpoint",
    )

    @property
    def is_configured(self) -> bool:
        """Whether at least one provider credential is available."""
        return bool(self.openrouter_api_key or self.groq_api_key)

    def validate_provider_config(self) -> None:
        """Validate that at least one provider credential is set."""
        if not self.is_configured:
            raise ValueError(
                "No AI providers configured. Set OPENROUTER_API_KEY and/or GROQ_API_KEY"
            )


# Global settings instance - lazy loaded
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
