import asyncio
import logging

from neuroglia.hosting.abstractions import HostedService

from application.events.integration.create_instance_event_handler import CreateInstanceEventHandler
from application.services.instance_event_reporter import InstanceEventReporter
from application.services.instance_provisioning_service import InstanceProvisioningService
from application.settings import Settings
from integration.services.message_channel import MessageChannel

logger = logging.getLogger(__name__)


class InstanceCreatorHostedService(HostedService):
    """Hosted service subscribing the instance creation handler to the message channel.

    Every inbound message is handled in its own task so that a slow provider
    call only delays the request it belongs to. Stopping waits for the
    requests already in flight before closing the channel.
    """

    def __init__(self, message_channel: MessageChannel, handler: CreateInstanceEventHandler, create_topic: str):
        self._message_channel = message_channel
        self._handler = handler
        self._create_topic = create_topic
        self._tasks: set[asyncio.Task] = set()
        self._started = False

    @property
    def in_flight_count(self) -> int:
        return len(self._tasks)

    async def start_async(self):
        if self._started:
            return
        logger.info("Starting InstanceCreatorHostedService")
        await self._message_channel.connect_async()
        await self._message_channel.subscribe_async(self._create_topic, self._on_message_async)
        self._started = True
        logger.info(f"listening for {self._create_topic}")

    async def stop_async(self):
        if not self._started:
            return
        logger.info("Stopping InstanceCreatorHostedService")
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} in-flight request(s)")
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self._message_channel.close_async()
        self._started = False

    async def _on_message_async(self, data: bytes) -> None:
        task = asyncio.create_task(self._handle_async(data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle_async(self, data: bytes) -> None:
        try:
            await self._handler.handle_async(data)
        except Exception as e:
            # Outcome could not be reported; keep serving other requests
            logger.critical(f"Unrecoverable failure while handling instance creation request: {e}", exc_info=True)

    @staticmethod
    def create(settings: Settings, message_channel: MessageChannel) -> "InstanceCreatorHostedService":
        """Wire the handler and its collaborators from the settings.

        Args:
            settings: Application settings
            message_channel: The channel shared by every request
        """
        reporter = InstanceEventReporter(
            message_channel=message_channel,
            done_topic=settings.done_topic,
            error_topic=settings.error_topic,
            field_naming_contract=settings.field_naming_contract,
        )
        provisioning_service = InstanceProvisioningService(
            terminate_on_failure=settings.terminate_on_provisioning_failure,
        )
        handler = CreateInstanceEventHandler(
            reporter=reporter,
            provisioning_service=provisioning_service,
            field_naming_contract=settings.field_naming_contract,
        )
        return InstanceCreatorHostedService(message_channel, handler, settings.create_topic)
