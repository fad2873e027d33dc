"""OpenRouter provider implementation (primary, model-selectable)."""

from typing import Any

from answer_pipeline.llm.chat_completions import ChatCompletionsConfig, ChatCompletionsProvider


class OpenRouterConfig(ChatCompletionsConfig):
    """Configuration for OpenRouter provider."""

    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemma-3-12b-it:free"
    referer: str | None = None
    title: str | None = None

    def model_post_init(self, __context: Any) -> None:
        # OpenRouter uses these two headers for app attribution
        if self.referer:
            self.extra_headers.setdefault("HTTP-Referer", self.referer)
        if self.title:
            self.extra_headers.setdefault("X-Title", self.title)


class OpenRouterProvider(ChatCompletionsProvider):
    """OpenRouter chat provider; the model is picked per request."""

    name = "openrouter"
    display_name = "OpenRouter"
    config_class = OpenRouterConfig
