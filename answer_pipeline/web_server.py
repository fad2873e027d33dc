"""Web server exposing the answer pipeline over HTTP."""

import logging
from datetime import datetime, timezone

from aiohttp import web

from answer_pipeline.errors import PipelineError
from answer_pipeline.pipeline import AnswerPipeline

logger = logging.getLogger(__name__)


class WebServer:
    """HTTP server for the chat endpoint."""

    def __init__(self, pipeline: AnswerPipeline, port: int = 3000):
        """Initialize web server."""
        self.port = port
        self.pipeline = pipeline
        self.app = web.Application()
        self._setup_routes()
        logger.info(f"Web server initialized on port {port}")

    def _setup_routes(self):
        """Set up HTTP routes."""
        self.app.router.add_get("/", self._handle_health)
        self.app.router.add_get("/health", self._handle_health)
        self.app.router.add_post("/api/ai/chat", self._handle_chat)
        logger.info("Routes configured: /, /health, /api/ai/chat")

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        health = self.pipeline.health()
        return web.json_response(
            {
                "status": "ok" if health["configured"] else "unconfigured",
                "service": "answer-pipeline",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **health,
            }
        )

    async def _handle_chat(self, request: web.Request) -> web.Response:
        """
        Answer a learner question.

        Expects JSON: {"message": "...", "context": {"userId", "username", "page", "course"},
        "requestType": "teach" | "question" | "hint" | "review" | "explanation"}
        """
        try:
            data = await request.json()
        except ValueError:
            # Invalid JSON or a body that is not valid UTF-8
            return web.json_response(
                {"status": "error", "message": "Request body must be JSON"}, status=400
            )

        if not isinstance(data, dict) or not isinstance(data.get("context"), dict):
            return web.json_response(
                {"status": "error", "message": "Context object is required"}, status=400
            )

        try:
            answer = await self.pipeline.submit_question(
                data.get("message"),
                data["context"],
                data.get("requestType"),
            )
        except PipelineError as e:
            logger.error(f"AI chat request failed: {e.kind.value}: {e.message}")
            return web.json_response(e.to_dict(), status=e.http_status)

        return web.json_response(answer.to_dict())

    async def start(self):
        """Start the web server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, "0.0.0.0", self.port)
        await site.start()
        logger.info(f"Web server started on port {self.port}")
        return runner

    async def stop(self, runner):
        """Stop the web server."""
        await runner.cleanup()
        await self.pipeline.aclose()
        logger.info("Web server stopped")
