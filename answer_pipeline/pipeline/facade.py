"""Entry point used by the chat HTTP handler."""

import logging
from typing import Any, Mapping

from answer_pipeline.config import Settings, get_settings
from answer_pipeline.errors import ValidationError
from answer_pipeline.formatting import AudienceMode, ResponseFormatter
from answer_pipeline.llm.factory import create_fallback_provider, create_primary_provider, tier_models
from answer_pipeline.llm.selector import detect_audience_mode
from .models import AnswerRequest, PipelineAnswer, RequestContext
from .orchestrator import AnswerOrchestrator

logger = logging.getLogger(__name__)


class AnswerPipeline:
    """Accepts a learner question and returns a formatted answer."""

    def __init__(self, orchestrator: AnswerOrchestrator):
        self.orchestrator = orchestrator

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AnswerPipeline":
        """Build the pipeline and its providers from configuration."""
        settings = settings or get_settings()
        orchestrator = AnswerOrchestrator(
            primary=create_primary_provider(settings),
            fallback=create_fallback_provider(settings),
            formatter=ResponseFormatter(),
            tier_models=tier_models(settings),
            timeout=settings.request_timeout,
            max_question_length=settings.max_question_length,
        )

        logger.info(
            "Answer pipeline initialized "
            f"(primary configured: {orchestrator.primary is not None}, "
            f"fallback configured: {orchestrator.fallback is not None}, "
            f"timeout: {settings.request_timeout}s)"
        )
        if not orchestrator.is_configured:
            logger.warning(
                "No AI providers configured. Set OPENROUTER_API_KEY and/or GROQ_API_KEY"
            )
        return cls(orchestrator)

    @property
    def is_configured(self) -> bool:
        return self.orchestrator.is_configured

    async def submit_question(
        self,
        question_text: str,
        context: RequestContext | Mapping[str, Any],
        audience_mode: AudienceMode | str | None = None,
    ) -> PipelineAnswer:
        """Answer a question.

        Args:
            question_text: The learner's free-text question
            context: Who is asking; a RequestContext or a camelCase payload dict
            audience_mode: Answer layout, detected from the question if omitted

        Returns:
            PipelineAnswer wrapping the FormattedAnswer

        Raises:
            PipelineError: A typed error from the closed error taxonomy
        """
        if not isinstance(context, RequestContext):
            context = RequestContext.from_dict(context or {})

        if audience_mode is None:
            mode = AudienceMode.EXPLANATION
            if isinstance(question_text, str):
                mode = detect_audience_mode(question_text)
        else:
            try:
                mode = AudienceMode(audience_mode)
            except ValueError as e:
                valid = ", ".join(m.value for m in AudienceMode)
                raise ValidationError(f"Invalid requestType. Must be one of: {valid}") from e

        if isinstance(question_text, str):
            question_text = question_text.strip()

        request = AnswerRequest(
            question_text=question_text,
            context=context,
            audience_mode=mode,
        )

        logger.info(
            f"Processing AI chat request from {context.page_context or 'unknown page'} "
            f"(user {context.user_id}, {len(question_text or '')} chars, mode {mode.value})"
        )
        return await self.orchestrator.submit(request)

    def health(self) -> dict[str, Any]:
        """Configuration and queue status for monitoring."""
        return {
            "configured": self.orchestrator.is_configured,
            "primary_configured": self.orchestrator.primary is not None,
            "fallback_configured": self.orchestrator.fallback is not None,
            "queue_depth": self.orchestrator.queue_depth,
            "processing": self.orchestrator.processing,
        }

    async def aclose(self) -> None:
        await self.orchestrator.aclose()
