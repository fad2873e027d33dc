"""Tests for the single-flight answer orchestrator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from answer_pipeline.errors import (
    ErrorKind,
    NetworkError,
    NotConfiguredError,
    ProviderTimeoutError,
    RateLimitedError,
    ServiceUnavailableError,
    ValidationError,
)
from answer_pipeline.formatting import AudienceMode
from answer_pipeline.llm.base import ChatProvider, ProviderOutcome
from answer_pipeline.llm.selector import DEFAULT_TIER_MODELS, ModelTier
from answer_pipeline.pipeline import AnswerOrchestrator, AnswerRequest, RequestContext

CONTEXT = RequestContext(user_id="u-1", display_name="ana", page_context="/lessons/1")


def outcome(provider_name="openrouter", text="## Answer\n42", model="google/gemma-3-12b-it:free"):
    return ProviderOutcome(provider_name=provider_name, raw_text=text, model=model, latency_ms=5.0)


def mock_provider(name, **send_kwargs):
    provider = MagicMock(spec=ChatProvider)
    provider.name = name
    provider.send = AsyncMock(**send_kwargs)
    provider.aclose = AsyncMock()
    return provider


def request(question="Why is the sky blue?", context=CONTEXT, mode=AudienceMode.QUESTION):
    return AnswerRequest(question_text=question, context=context, audience_mode=mode)


class RecordingProvider(ChatProvider):
    """Provider that records call overlap."""

    name = "recording"

    def __init__(self):
        self.calls = []
        self.active = 0
        self.max_active = 0

    @property
    def default_model(self):
        return "recording-model"

    async def send(self, question_text, model=None, timeout=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.calls.append(question_text)
        await asyncio.sleep(0.01)
        self.active -= 1
        return ProviderOutcome(
            provider_name=self.name,
            raw_text=f"Answer to {question_text}",
            model=model or self.default_model,
            latency_ms=10.0,
        )

    async def health_check(self):
        return True


class BlockingProvider(RecordingProvider):
    """Provider whose calls never finish."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()

    async def send(self, question_text, model=None, timeout=None):
        self.calls.append(question_text)
        self.started.set()
        await asyncio.Event().wait()


class TestValidation:
    """Test request validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   ", None, 42])
    async def test_rejects_bad_question(self, question):
        """Test empty or non-string questions never reach a provider."""
        primary = mock_provider("openrouter", return_value=outcome())
        orchestrator = AnswerOrchestrator(primary, None)

        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.submit(request(question))

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.http_status == 400
        primary.send.assert_not_awaited()
        assert orchestrator.queue_depth == 0

    @pytest.mark.asyncio
    async def test_rejects_long_question(self):
        """Test questions over the length limit are rejected."""
        primary = mock_provider("openrouter", return_value=outcome())
        orchestrator = AnswerOrchestrator(primary, None, max_question_length=10)

        with pytest.raises(ValidationError, match="at most 10 characters"):
            await orchestrator.submit(request("x" * 11))

        primary.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "context",
        [
            RequestContext(user_id="", display_name="ana"),
            RequestContext(user_id="u-1", display_name=""),
            None,
        ],
    )
    async def test_rejects_incomplete_context(self, context):
        """Test missing user id or display name is rejected."""
        primary = mock_provider("openrouter", return_value=outcome())
        orchestrator = AnswerOrchestrator(primary, None)

        with pytest.raises(ValidationError):
            await orchestrator.submit(request(context=context))

        primary.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_configured(self):
        """Test submitting with no providers configured."""
        orchestrator = AnswerOrchestrator(None, None)

        assert orchestrator.is_configured is False
        with pytest.raises(NotConfiguredError) as exc_info:
            await orchestrator.submit(request())

        assert exc_info.value.http_status == 503


class TestExecution:
    """Test provider selection and fallback."""

    @pytest.mark.asyncio
    async def test_primary_success(self):
        """Test the primary answers with the selected tier model."""
        primary = mock_provider("openrouter", return_value=outcome())
        fallback = mock_provider("groq", return_value=outcome("groq"))
        orchestrator = AnswerOrchestrator(primary, fallback, timeout=12.0)

        answer = await orchestrator.submit(request("Why is the sky blue?"))

        primary.send.assert_awaited_once_with(
            "Why is the sky blue?", model=DEFAULT_TIER_MODELS[ModelTier.SMART], timeout=12.0
        )
        fallback.send.assert_not_awaited()
        assert answer.provider == "openrouter"
        assert answer.used_fallback is False
        assert answer.tier == ModelTier.SMART
        assert answer.model_label.endswith("(Smart)")
        assert answer.answer.markdown == "## Answer\n\n42\n"
        assert answer.raw_text == "## Answer\n42"
        assert answer.audience_mode == AudienceMode.QUESTION

    @pytest.mark.asyncio
    async def test_uses_configured_tier_models(self):
        """Test the configured tier mapping overrides the defaults."""
        primary = mock_provider("openrouter", return_value=outcome(model="coder"))
        models = {tier: f"{tier.value}-model" for tier in ModelTier}
        orchestrator = AnswerOrchestrator(primary, None, tier_models=models)

        await orchestrator.submit(request("Help me debug this loop"))

        assert primary.send.await_args.kwargs["model"] == "expert-model"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            RateLimitedError("OpenRouter rate limited", status_code=429),
            ProviderTimeoutError("OpenRouter request timed out"),
            NetworkError("OpenRouter network error: ConnectError"),
        ],
    )
    async def test_fallback_after_primary_failure(self, error):
        """Test the fallback answers when the primary fails."""
        primary = mock_provider("openrouter", side_effect=error)
        fallback = mock_provider(
            "groq", return_value=outcome("groq", text="Because of scattering.", model="mixtral-8x7b-32768")
        )
        orchestrator = AnswerOrchestrator(primary, fallback)

        answer = await orchestrator.submit(request())

        fallback.send.assert_awaited_once_with("Why is the sky blue?", model=None, timeout=None)
        assert answer.provider == "groq"
        assert answer.used_fallback is True
        assert answer.tier is None
        assert answer.model_label == "mixtral-8x7b-32768 (Fallback)"
        assert answer.answer.plain_text == "Because of scattering."

    @pytest.mark.asyncio
    async def test_fallback_only(self):
        """Test a missing primary goes straight to the fallback."""
        fallback = mock_provider("groq", return_value=outcome("groq"))
        orchestrator = AnswerOrchestrator(None, fallback)

        answer = await orchestrator.submit(request())

        assert answer.provider == "groq"
        assert answer.used_fallback is True

    @pytest.mark.asyncio
    async def test_both_providers_fail(self):
        """Test the combined error when both providers fail."""
        primary = mock_provider("openrouter", side_effect=RateLimitedError("OpenRouter rate limited"))
        fallback = mock_provider("groq", side_effect=ProviderTimeoutError("Groq request timed out"))
        orchestrator = AnswerOrchestrator(primary, fallback)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await orchestrator.submit(request())

        error = exc_info.value
        assert "OpenRouter rate limited" in error.message
        assert "Groq request timed out" in error.message
        assert error.primary_error.kind == ErrorKind.RATE_LIMITED
        assert error.fallback_error.kind == ErrorKind.TIMEOUT
        assert error.http_status == 503
        assert error.to_dict()["code"] == "SERVICE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_primary_fails_without_fallback(self):
        """Test a missing fallback is reported in the combined error."""
        primary = mock_provider("openrouter", side_effect=NetworkError("OpenRouter network error"))
        orchestrator = AnswerOrchestrator(primary, None)

        with pytest.raises(ServiceUnavailableError, match="Fallback provider not configured"):
            await orchestrator.submit(request())


class TestQueue:
    """Test single-flight FIFO processing."""

    @pytest.mark.asyncio
    async def test_requests_run_one_at_a_time_in_order(self):
        """Test concurrent submissions are answered serially in FIFO order."""
        provider = RecordingProvider()
        orchestrator = AnswerOrchestrator(provider, None)
        questions = [f"Question number {i}" for i in range(4)]

        answers = await asyncio.gather(*(orchestrator.submit(request(q)) for q in questions))

        assert provider.calls == questions
        assert provider.max_active == 1
        assert [a.raw_text for a in answers] == [f"Answer to {q}" for q in questions]

    @pytest.mark.asyncio
    async def test_failure_does_not_block_queue(self):
        """Test a failed request does not stall the ones behind it."""
        primary = mock_provider(
            "openrouter",
            side_effect=[
                RateLimitedError("OpenRouter rate limited"),
                outcome(text="Second answer"),
            ],
        )
        fallback = mock_provider("groq", side_effect=ProviderTimeoutError("Groq request timed out"))
        orchestrator = AnswerOrchestrator(primary, fallback)

        first, second = await asyncio.gather(
            orchestrator.submit(request("First question")),
            orchestrator.submit(request("Second question")),
            return_exceptions=True,
        )

        assert isinstance(first, ServiceUnavailableError)
        assert second.raw_text == "Second answer"

    @pytest.mark.asyncio
    async def test_abandoned_request_still_runs(self):
        """Test a cancelled caller does not cancel the queued work."""
        provider = RecordingProvider()
        orchestrator = AnswerOrchestrator(provider, None)

        task = asyncio.ensure_future(orchestrator.submit(request("Abandoned question")))
        await asyncio.sleep(0)
        task.cancel()

        await orchestrator.aclose()

        assert provider.calls == ["Abandoned question"]
        assert orchestrator.processing is False
        assert orchestrator.queue_depth == 0

    @pytest.mark.asyncio
    async def test_aclose_closes_providers(self):
        """Test aclose waits for the worker and closes both providers."""
        primary = mock_provider("openrouter", return_value=outcome())
        fallback = mock_provider("groq", return_value=outcome("groq"))
        orchestrator = AnswerOrchestrator(primary, fallback)

        await orchestrator.submit(request())
        await orchestrator.aclose()

        primary.aclose.assert_awaited_once()
        fallback.aclose.assert_awaited_once()
        assert orchestrator.processing is False

    @pytest.mark.asyncio
    async def test_stopped_worker_rejects_pending_requests(self):
        """Test cancelling the worker fails the in-flight and queued requests."""
        provider = BlockingProvider()
        orchestrator = AnswerOrchestrator(provider, None)

        first = asyncio.ensure_future(orchestrator.submit(request("First question")))
        second = asyncio.ensure_future(orchestrator.submit(request("Second question")))
        await provider.started.wait()

        orchestrator._worker.cancel()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(r, ServiceUnavailableError) for r in results)
        assert provider.calls == ["First question"]
        assert orchestrator.queue_depth == 0
        assert orchestrator.processing is False
