"""Single-flight request queue with primary/fallback provider execution."""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass

from answer_pipeline.errors import (
    NotConfiguredError,
    PipelineError,
    ServiceUnavailableError,
    ValidationError,
)
from answer_pipeline.formatting import ResponseFormatter
from answer_pipeline.llm.base import ChatProvider, ProviderOutcome
from answer_pipeline.llm.selector import ModelTier, SelectedModel, select_model
from .models import AnswerRequest, PipelineAnswer

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUESTION_LENGTH = 10_000


@dataclass
class _QueuedRequest:
    request: AnswerRequest
    future: asyncio.Future


class AnswerOrchestrator:
    """Runs answer requests one at a time, in submission order.

    The queue and the processing flag are only touched from the event loop
    thread, by `submit` and the worker task, so no lock is needed. One
    instance is expected per process.
    """

    def __init__(
        self,
        primary: ChatProvider | None,
        fallback: ChatProvider | None,
        formatter: ResponseFormatter | None = None,
        tier_models: dict[ModelTier, str] | None = None,
        timeout: float | None = None,
        max_question_length: int = DEFAULT_MAX_QUESTION_LENGTH,
    ):
        """Initialize the orchestrator.

        Args:
            primary: Model-selectable provider tried first
            fallback: Fixed-model provider tried when the primary fails
            formatter: Formatter applied to the winning provider's text
            tier_models: Model identifier per tier for the primary provider
            timeout: Per-call timeout in seconds, providers' own default if None
            max_question_length: Longest accepted question, in characters
        """
        self.primary = primary
        self.fallback = fallback
        self.formatter = formatter or ResponseFormatter()
        self.tier_models = tier_models
        self.timeout = timeout
        self.max_question_length = max_question_length

        self._queue: deque[_QueuedRequest] = deque()
        self._processing = False
        self._worker: asyncio.Future | None = None

    @property
    def is_configured(self) -> bool:
        return self.primary is not None or self.fallback is not None

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def processing(self) -> bool:
        return self._processing

    def validate(self, request: AnswerRequest) -> None:
        """Reject malformed requests before they reach the queue.

        Raises:
            ValidationError: If the question or context is unusable
        """
        question = request.question_text
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Message is required and must be a non-empty string")
        if len(question) > self.max_question_length:
            raise ValidationError(
                f"Message must be at most {self.max_question_length} characters"
            )

        context = request.context
        if context is None or not context.user_id or not context.display_name:
            raise ValidationError("Context with userId and username is required")

    async def submit(self, request: AnswerRequest) -> PipelineAnswer:
        """Queue a request and wait for its answer.

        Raises:
            NotConfiguredError: If neither provider is configured
            ValidationError: If the request is malformed
            ServiceUnavailableError: If both providers fail
        """
        if not self.is_configured:
            logger.error("Answer pipeline not configured: no provider credentials")
            raise NotConfiguredError("AI service is not available. No providers are configured.")

        self.validate(request)

        future = asyncio.get_running_loop().create_future()
        self._queue.append(_QueuedRequest(request, future))
        logger.info(
            f"Request queued for user {request.context.user_id}. Queue length: {self.queue_depth}"
        )

        if not self._processing:
            self._processing = True
            self._worker = asyncio.ensure_future(self._process_queue())

        # Abandoning the wait does not cancel the queued work
        return await asyncio.shield(future)

    async def _process_queue(self) -> None:
        item = None
        try:
            while self._queue:
                item = self._queue.popleft()
                await self._run(item)
        finally:
            self._processing = False
            # Only non-empty if the worker was cancelled
            stranded = ([item] if item else []) + list(self._queue)
            self._queue.clear()
            for entry in stranded:
                self._reject(
                    entry.future,
                    ServiceUnavailableError("Answer queue stopped before the request was processed"),
                )

    async def _run(self, item: _QueuedRequest) -> None:
        try:
            result = await self._execute(item.request)
        except Exception as e:
            if not isinstance(e, PipelineError):
                logger.exception("Unexpected error while answering request")
            self._reject(item.future, e)
            return

        if not item.future.done():
            item.future.set_result(result)

    @staticmethod
    def _reject(future: asyncio.Future, error: BaseException) -> None:
        if future.done():
            return
        future.set_exception(error)
        # Keep asyncio quiet if the caller already walked away
        future.add_done_callback(lambda f: f.exception())

    async def _execute(self, request: AnswerRequest) -> PipelineAnswer:
        start = time.perf_counter()
        question = request.question_text

        selected = select_model(question, self.tier_models)
        logger.info(f"Question analysis suggests {selected.tier.value} model: {selected.human_label}")

        outcome, primary_error = await self._attempt(
            self.primary, "Primary", question, selected.model_identifier
        )
        used_fallback = outcome is None
        fallback_error = None

        if outcome is None:
            logger.warning(f"Primary provider failed ({primary_error.message}), trying fallback")
            outcome, fallback_error = await self._attempt(self.fallback, "Fallback", question, None)

        if outcome is None:
            logger.error(
                f"All AI providers failed. Primary: {primary_error.message}, "
                f"Fallback: {fallback_error.message}"
            )
            raise ServiceUnavailableError(
                f"All AI providers failed. Primary: {primary_error.message}, "
                f"Fallback: {fallback_error.message}",
                primary_error=primary_error,
                fallback_error=fallback_error,
            )

        answer = self.formatter.format(outcome.raw_text, request.audience_mode)
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Answer ready in {latency_ms:.0f}ms from {outcome.provider_name} "
            f"({'fallback' if used_fallback else 'primary'})"
        )

        return PipelineAnswer(
            answer=answer,
            provider=outcome.provider_name,
            model=outcome.model,
            model_label=self._label(selected, outcome, used_fallback),
            tier=None if used_fallback else selected.tier,
            used_fallback=used_fallback,
            latency_ms=latency_ms,
            audience_mode=request.audience_mode,
        )

    async def _attempt(
        self,
        provider: ChatProvider | None,
        role: str,
        question: str,
        model: str | None,
    ) -> tuple[ProviderOutcome | None, PipelineError | None]:
        """Call one provider, returning either its outcome or its error."""
        if provider is None:
            return None, NotConfiguredError(f"{role} provider not configured")
        try:
            return await provider.send(question, model=model, timeout=self.timeout), None
        except PipelineError as e:
            return None, e

    @staticmethod
    def _label(selected: SelectedModel, outcome: ProviderOutcome, used_fallback: bool) -> str:
        if used_fallback:
            return f"{outcome.model} (Fallback)"
        return selected.human_label

    async def aclose(self) -> None:
        """Wait for queued work, then close both providers."""
        if self._worker is not None and not self._worker.done():
            await self._worker
        for provider in (self.primary, self.fallback):
            if provider is not None:
                await provider.aclose()
