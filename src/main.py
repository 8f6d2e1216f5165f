"""AWS Instance Creator - Main Entry Point.

Listens for instance creation requests on the message channel, provisions
the requested EC2 instances and publishes the outcome of each request.
"""

import asyncio
import logging
import signal

from application.services.instance_creator_hosted_service import InstanceCreatorHostedService
from application.settings import Settings, configure_logging
from integration.services.redis_message_channel import RedisMessageChannel

logger = logging.getLogger(__name__)


class InstanceCreatorApplication:
    """Main worker application."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.shutdown_event = asyncio.Event()
        self.hosted_service: InstanceCreatorHostedService | None = None

    async def start_async(self):
        """Start the worker and serve requests until shutdown is requested."""
        logger.info(f"Starting {self.settings.app_name} v{self.settings.app_version} ({self.settings.environment})")

        message_channel = RedisMessageChannel(url=self.settings.resolve_message_channel_url())
        self.hosted_service = InstanceCreatorHostedService.create(self.settings, message_channel)

        await self.hosted_service.start_async()

        await self.shutdown_event.wait()

    async def stop_async(self):
        """Stop the worker application."""
        logger.info(f"Stopping {self.settings.app_name}...")

        if self.hosted_service:
            await self.hosted_service.stop_async()

        self.shutdown_event.set()
        logger.info(f"{self.settings.app_name} stopped")


def main():
    """Main entry point."""
    settings = Settings()
    configure_logging(log_level=settings.log_level)
    app = InstanceCreatorApplication(settings)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        loop.create_task(app.stop_async())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(app.start_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
