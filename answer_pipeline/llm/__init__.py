"""Chat providers and question analysis."""

from answer_pipeline.llm.base import ChatProvider, LLMProviderFactory, ProviderOutcome
from answer_pipeline.llm.chat_completions import ChatCompletionsConfig, ChatCompletionsProvider
from answer_pipeline.llm.factory import create_fallback_provider, create_primary_provider, tier_models
from answer_pipeline.llm.groq import GroqConfig, GroqProvider
from answer_pipeline.llm.openrouter import OpenRouterConfig, OpenRouterProvider
from answer_pipeline.llm.selector import (
    AUDIENCE_RULES,
    MODEL_RULES,
    ModelTier,
    SelectedModel,
    detect_audience_mode,
    select_model,
)

# Register all providers
LLMProviderFactory.register("openrouter", OpenRouterProvider)
LLMProviderFactory.register("groq", GroqProvider)

__all__ = [
    "AUDIENCE_RULES",
    "ChatCompletionsConfig",
    "ChatCompletionsProvider",
    "ChatProvider",
    "GroqConfig",
    "GroqProvider",
    "LLMProviderFactory",
    "MODEL_RULES",
    "ModelTier",
    "OpenRouterConfig",
    "OpenRouterProvider",
    "ProviderOutcome",
    "SelectedModel",
    "create_fallback_provider",
    "create_primary_provider",
    "detect_audience_mode",
    "select_model",
    "tier_models",
]
