"""Factory for creating chat providers from configuration."""

from answer_pipeline.config import Settings, get_settings
from answer_pipeline.llm.base import ChatProvider, LLMProviderFactory
from answer_pipeline.llm.selector import ModelTier


def tier_models(settings: Settings | None = None) -> dict[ModelTier, str]:
    """Model identifier configured for each tier."""
    settings = settings or get_settings()
    return {
        ModelTier.FAST: settings.model_fast,
        ModelTier.BALANCED: settings.model_balanced,
        ModelTier.SMART: settings.model_smart,
        ModelTier.EXPERT: settings.model_expert,
    }


def create_primary_provider(settings: Settings | None = None) -> ChatProvider | None:
    """Create the model-selectable primary provider.

    Returns:
        Configured provider, or None when no OpenRouter key is set
    """
    settings = settings or get_settings()
    if not settings.openrouter_api_key:
        return None

    from answer_pipeline.llm.openrouter import OpenRouterConfig

    config = OpenRouterConfig(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        model=settings.model_balanced,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
        referer=settings.app_referer,
        title=settings.app_title,
    )
    return LLMProviderFactory.create("openrouter", config=config)


def create_fallback_provider(settings: Settings | None = None) -> ChatProvider | None:
    """Create the fixed-model fallback provider.

    Returns:
        Configured provider, or None when no Groq key is set
    """
    settings = settings or get_settings()
    if not settings.groq_api_key:
        return None

    from answer_pipeline.llm.groq import GroqConfig

    config = GroqConfig(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        model=settings.groq_fallback_model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
    )
    return LLMProviderFactory.create("groq", config=config)
