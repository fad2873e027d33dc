"""Groq provider implementation (fallback, fixed model)."""

from answer_pipeline.llm.chat_completions import ChatCompletionsConfig, ChatCompletionsProvider


class GroqConfig(ChatCompletionsConfig):
    """Configuration for Groq provider."""

    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "mixtral-8x7b-32768"


class GroqProvider(ChatCompletionsProvider):
    """Groq chat provider, always called with its configured fallback model."""

    name = "groq"
    display_name = "Groq"
    config_class = GroqConfig
