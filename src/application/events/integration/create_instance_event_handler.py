"""Integration event handler for instance creation requests.

Each inbound message goes through:
1. Decode -> undecodable payloads are republished unchanged on the error topic
2. Validate -> missing required fields are reported as errors
3. Provision -> provider failures are reported with the results obtained so far
4. Report -> the completed event is published on the done topic

Every message ends with exactly one publish.
"""

import asyncio
import logging

from opentelemetry import trace

from application.exceptions import InstanceProvisioningException
from application.services.instance_event_reporter import InstanceEventReporter
from application.services.instance_provisioning_service import InstanceProvisioningService
from domain.enums import FieldNamingContract
from domain.exceptions import EventDecodeException, EventValidationException
from domain.models.instance_create_event import InstanceCreateEvent

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class CreateInstanceEventHandler:
    """Handle one instance creation request from the message channel."""

    def __init__(
        self,
        reporter: InstanceEventReporter,
        provisioning_service: InstanceProvisioningService,
        field_naming_contract: FieldNamingContract = FieldNamingContract.AWS,
    ):
        self.reporter = reporter
        self.provisioning_service = provisioning_service
        self.field_naming_contract = field_naming_contract

    async def handle_async(self, data: bytes) -> None:
        try:
            event = InstanceCreateEvent.parse(data, self.field_naming_contract)
        except EventDecodeException as e:
            log.error(f"Error: {e}")
            await self.reporter.report_decode_error_async(e.data)
            return

        with tracer.start_as_current_span("create_instance_request") as span:
            span.set_attribute("request.id", event.id)
            span.set_attribute("request.batch_id", event.batch_id)
            span.set_attribute("ec2.region", event.datacenter_region)
            span.set_attribute("ec2.instance_name", event.instance_name)

            try:
                event.validate_request()
            except EventValidationException as e:
                span.set_attribute("request.outcome", "invalid")
                await self.reporter.report_error_async(event, e)
                return

            log.info(f"Creating instance {event.instance_name} for request {event.id} in {event.datacenter_region}")

            try:
                instance = await asyncio.to_thread(self.provisioning_service.provision, event)
            except InstanceProvisioningException as e:
                span.set_attribute("request.outcome", "failed")
                await self.reporter.report_error_async(event.with_provisioned_instance(e.instance), e)
                return
            except Exception as e:
                log.error(f"Unexpected provisioning failure for request {event.id}: {e}", exc_info=True)
                span.set_attribute("request.outcome", "failed")
                await self.reporter.report_error_async(event, e)
                return

            span.set_attribute("request.outcome", "done")
            await self.reporter.report_success_async(event.with_provisioned_instance(instance))
