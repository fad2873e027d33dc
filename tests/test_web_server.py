"""Tests for the HTTP chat endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from answer_pipeline.errors import NotConfiguredError, ServiceUnavailableError, ValidationError
from answer_pipeline.formatting import AudienceMode, format_response
from answer_pipeline.llm.selector import ModelTier
from answer_pipeline.pipeline import AnswerPipeline, PipelineAnswer
from answer_pipeline.web_server import WebServer

CONTEXT = {"userId": "u-1", "username": "ana", "page": "/lessons/1"}


@pytest.fixture
def pipeline():
    pipeline = MagicMock(spec=AnswerPipeline)
    pipeline.submit_question = AsyncMock()
    pipeline.health.return_value = {
        "configured": True,
        "primary_configured": True,
        "fallback_configured": True,
        "queue_depth": 0,
        "processing": False,
    }
    return pipeline


def client_for(pipeline):
    return TestClient(TestServer(WebServer(pipeline).app))


@pytest.mark.asyncio
async def test_health(pipeline):
    """Test the health endpoint."""
    async with client_for(pipeline) as client:
        response = await client.get("/health")
        data = await response.json()

    assert response.status == 200
    assert data["status"] == "ok"
    assert data["queue_depth"] == 0


@pytest.mark.asyncio
async def test_health_unconfigured(pipeline):
    """Test the health endpoint without providers."""
    pipeline.health.return_value = {**pipeline.health.return_value, "configured": False}

    async with client_for(pipeline) as client:
        response = await client.get("/")
        data = await response.json()

    assert data["status"] == "unconfigured"


@pytest.mark.asyncio
async def test_chat_success(pipeline):
    """Test a successful chat request."""
    pipeline.submit_question.return_value = PipelineAnswer(
        answer=format_response("## Answer\n42", AudienceMode.QUESTION),
        provider="openrouter",
        model="google/gemma-3-12b-it:free",
        model_label="google/gemma-3-12b-it:free (Fast)",
        tier=ModelTier.FAST,
        used_fallback=False,
        latency_ms=850.0,
        audience_mode=AudienceMode.QUESTION,
    )

    async with client_for(pipeline) as client:
        response = await client.post(
            "/api/ai/chat",
            json={"message": "What is 6 x 7?", "context": CONTEXT, "requestType": "question"},
        )
        data = await response.json()

    assert response.status == 200
    assert data["reply"] == "## Answer\n\n42\n"
    assert data["modelType"] == "fast"
    assert data["usedFallback"] is False
    pipeline.submit_question.assert_awaited_once_with("What is 6 x 7?", CONTEXT, "question")


@pytest.mark.asyncio
async def test_chat_invalid_json(pipeline):
    """Test a malformed JSON body is a 400."""
    async with client_for(pipeline) as client:
        response = await client.post(
            "/api/ai/chat", data="not json", headers={"Content-Type": "application/json"}
        )

    assert response.status == 400
    pipeline.submit_question.assert_not_awaited()


@pytest.mark.asyncio
async def test_chat_missing_context(pipeline):
    """Test a missing context object is a 400."""
    async with client_for(pipeline) as client:
        response = await client.post("/api/ai/chat", json={"message": "Hello"})
        data = await response.json()

    assert response.status == 400
    assert data["message"] == "Context object is required"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,status,code",
    [
        (ValidationError("Message is required and must be a non-empty string"), 400, "VALIDATION_ERROR"),
        (NotConfiguredError("AI service is not available. No providers are configured."), 503, "NOT_CONFIGURED"),
        (ServiceUnavailableError("All AI providers failed. Primary: a, Fallback: b"), 503, "SERVICE_UNAVAILABLE"),
    ],
)
async def test_chat_pipeline_errors(pipeline, error, status, code):
    """Test pipeline errors map to their HTTP status and code."""
    pipeline.submit_question.side_effect = error

    async with client_for(pipeline) as client:
        response = await client.post("/api/ai/chat", json={"message": "Hello", "context": CONTEXT})
        data = await response.json()

    assert response.status == status
    assert data == {"status": "error", "message": error.message, "code": code}


@pytest.mark.asyncio
async def test_chat_body_not_utf8(pipeline):
    """Test a body that is not valid UTF-8 is a 400, not a server error."""
    async with client_for(pipeline) as client:
        response = await client.post(
            "/api/ai/chat",
            data=b'{"message": "\xff\xfe"}',
            headers={"Content-Type": "application/json"},
        )
        data = await response.json()

    assert response.status == 400
    assert data == {"status": "error", "message": "Request body must be JSON"}
    pipeline.submit_question.assert_not_awaited()
