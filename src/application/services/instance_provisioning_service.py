"""Provisioning of EC2 instances for instance creation requests.

Runs the provider calls for one request in sequence:
1. Launch the instance
2. Wait until it is running
3. Optionally allocate and associate an elastic IP
4. Read back its public address

Nothing is retried. A failure after the launch leaves the instance in place
unless termination on failure is enabled.
"""

import logging
from collections.abc import Callable

from opentelemetry import trace

from application.exceptions import InstanceProvisioningException
from domain.models.instance_create_event import InstanceCreateEvent
from domain.value_object.provisioned_instance import ProvisionedInstance
from integration.exceptions import IntegrationException
from integration.services.aws_ec2_api_client import (
    AwsAccountCredentials,
    AwsEc2Client,
    Ec2InstanceLaunchSpec,
)

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

AwsEc2ClientFactory = Callable[[AwsAccountCredentials, str], AwsEc2Client]


class InstanceProvisioningService:
    """Turns a validated instance creation event into a running EC2 instance."""

    def __init__(
        self,
        aws_ec2_client_factory: AwsEc2ClientFactory = AwsEc2Client,
        terminate_on_failure: bool = False,
    ):
        self.aws_ec2_client_factory = aws_ec2_client_factory
        self.terminate_on_failure = terminate_on_failure

    def provision(self, event: InstanceCreateEvent) -> ProvisionedInstance:
        """Create and configure the instance described by the event.

        Blocks for the whole provisioning sequence; callers on an event loop
        should run it in a worker thread.

        Args:
            event: A validated instance creation event.

        Returns:
            The identifiers and addresses of the running instance.

        Raises:
            InstanceProvisioningException: If any provider call fails; carries the
                results obtained before the failure.
        """
        aws_ec2_client = self.aws_ec2_client_factory(
            AwsAccountCredentials(
                aws_access_key_id=event.datacenter_access_key,
                aws_secret_access_key=event.datacenter_access_token,
            ),
            event.datacenter_region,
        )
        instance = ProvisionedInstance()

        with tracer.start_as_current_span("provision_ec2_instance") as span:
            span.set_attribute("ec2.region", event.datacenter_region)
            span.set_attribute("ec2.instance_type", event.instance_type)

            try:
                instance_id = aws_ec2_client.run_instance(self._build_launch_spec(event))
            except IntegrationException as e:
                raise InstanceProvisioningException(e, instance) from e

            instance = instance.with_instance_id(instance_id)
            span.set_attribute("ec2.instance_id", instance_id)

            try:
                aws_ec2_client.wait_until_running(instance_id)

                if event.instance_assign_elastic_ip:
                    instance = instance.with_elastic_ip(aws_ec2_client.assign_elastic_ip(instance_id))

                descriptor = aws_ec2_client.get_instance_by_id(instance_id)
                if descriptor.public_ip:
                    instance = instance.with_public_ip(descriptor.public_ip)
            except Exception as e:
                # The instance exists from here on
                log.error(f"Provisioning of EC2 instance {instance_id} failed after launch: {e}")
                if self.terminate_on_failure:
                    self._terminate_quietly(aws_ec2_client, instance_id)
                raise InstanceProvisioningException(e, instance) from e

        log.info(
            f"EC2 instance {instance.instance_id} provisioned for request {event.id} "
            f"(public_ip={instance.public_ip}, elastic_ip={instance.elastic_ip})"
        )
        return instance

    @staticmethod
    def _build_launch_spec(event: InstanceCreateEvent) -> Ec2InstanceLaunchSpec:
        return Ec2InstanceLaunchSpec(
            image_id=event.instance_image,
            instance_type=event.instance_type,
            subnet_id=event.network_id,
            security_group_ids=list(event.security_group_ids),
            private_ip=event.instance_ip or None,
            key_name=event.instance_key_pair or None,
            user_data=event.instance_user_data or None,
        )

    @staticmethod
    def _terminate_quietly(aws_ec2_client: AwsEc2Client, instance_id: str) -> None:
        try:
            aws_ec2_client.terminate_instance(instance_id)
        except Exception as e:
            log.error(f"Failed to terminate EC2 instance {instance_id} after provisioning failure: {e}")
