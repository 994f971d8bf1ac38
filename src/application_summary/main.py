"""
Main entry point for the application summary service.

Builds the AWS collaborators and the PDF renderer from environment settings
and polls the source queue until SIGINT or SIGTERM.
"""

import asyncio
import signal
import sys

from .config import PipelineSettings
from .generators import SummaryPdfGenerator, get_style
from .processors import ApplicationPipeline
from .services.aws import S3ObjectStore, SqsMessageQueue
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def build_pipeline(settings: PipelineSettings) -> ApplicationPipeline:
    """Wire the pipeline with aioboto3 collaborators."""
    object_store = S3ObjectStore(
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    )
    message_queue = SqsMessageQueue(
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    )
    renderer = SummaryPdfGenerator(get_style(settings.summary_style))
    return ApplicationPipeline(object_store, message_queue, renderer=renderer, settings=settings)


async def serve(settings: PipelineSettings) -> None:
    stop_event = asyncio.Event()

    def shutdown_handler():
        logger.info("Shutdown requested, finishing current batch...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_handler)

    pipeline = build_pipeline(settings)
    await pipeline.run(stop_event)


def main() -> int:
    settings = PipelineSettings.from_env()
    setup_logging(settings.log_level, settings.log_file)

    errors = settings.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    logger.info("Starting application summary service")
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        pass
    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
