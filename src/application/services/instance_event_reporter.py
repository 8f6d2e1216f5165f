import logging

from domain.enums import FieldNamingContract
from domain.exceptions import EventSerializationException
from domain.models.instance_create_event import InstanceCreateEvent
from integration.services.message_channel import MessageChannel

log = logging.getLogger(__name__)


class InstanceEventReporter:
    """Publishes the terminal outcome of instance creation requests."""

    def __init__(
        self,
        message_channel: MessageChannel,
        done_topic: str,
        error_topic: str,
        field_naming_contract: FieldNamingContract = FieldNamingContract.AWS,
    ):
        self.message_channel = message_channel
        self.done_topic = done_topic
        self.error_topic = error_topic
        self.field_naming_contract = field_naming_contract

    async def report_decode_error_async(self, data: bytes) -> None:
        """Republish an undecodable payload, byte for byte, on the error topic."""
        await self.message_channel.publish_async(self.error_topic, data)

    async def report_error_async(self, event: InstanceCreateEvent, error: Exception) -> InstanceCreateEvent:
        """Record the error on the event and publish it on the error topic.

        Returns:
            The event as published.

        Raises:
            EventSerializationException: If the event cannot be encoded. Nothing is published.
        """
        log.error(f"Error: {error}")
        failed_event = event.with_error(str(error))

        try:
            payload = failed_event.serialize(self.field_naming_contract)
        except EventSerializationException as e:
            log.critical(f"Unable to report failure of request {event.id}: {e}")
            raise

        await self.message_channel.publish_async(self.error_topic, payload)
        return failed_event

    async def report_success_async(self, event: InstanceCreateEvent) -> InstanceCreateEvent:
        """Publish the completed event on the done topic.

        Falls back to an error report if the event cannot be encoded.

        Returns:
            The event as published.
        """
        try:
            payload = event.serialize(self.field_naming_contract)
        except EventSerializationException as e:
            return await self.report_error_async(event, e)

        await self.message_channel.publish_async(self.done_topic, payload)
        log.info(f"Request {event.id} completed: instance {event.instance_id}")
        return event
