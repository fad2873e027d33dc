"""Main entry point for the answer pipeline service."""

import asyncio
import logging

from dotenv import load_dotenv

from answer_pipeline.config import get_settings
from answer_pipeline.pipeline import AnswerPipeline
from answer_pipeline.web_server import WebServer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


async def main() -> None:
    """Main application entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting answer pipeline in {settings.environment.value} mode")

    try:
        settings.validate_provider_config()
    except ValueError as e:
        # Still serve /health; chat requests will report NOT_CONFIGURED
        logger.warning(f"Configuration error: {e}")

    pipeline = AnswerPipeline.from_settings(settings)
    web_server = WebServer(pipeline, port=settings.port)
    runner = await web_server.start()

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down...")
        await web_server.stop(runner)


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
