import logging
from dataclasses import dataclass, field
from typing import Any

import boto3  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError, WaiterError  # type: ignore

from domain.enums import Ec2InstanceState
from integration.exceptions import (
    EC2AddressAssignmentException,
    EC2AuthenticationException,
    EC2Exception,
    EC2InstanceCreationException,
    EC2InstanceNotFoundException,
    EC2InstanceOperationException,
    EC2InvalidParameterException,
    EC2QuotaExceededException,
    EC2WaiterException,
    IntegrationException,
)

log = logging.getLogger(__name__)


@dataclass
class AwsAccountCredentials:
    aws_access_key_id: str

    aws_secret_access_key: str = field(repr=False)


@dataclass
class Ec2InstanceLaunchSpec:
    """Parameters of a single instance launch."""

    image_id: str

    instance_type: str

    subnet_id: str

    security_group_ids: list[str] = field(default_factory=list)

    private_ip: str | None = None

    key_name: str | None = None

    user_data: str | None = field(default=None, repr=False)


@dataclass
class Ec2InstanceDescriptor:
    id: str

    state: str

    instance_type: str | None = None

    public_ip: str | None = None

    private_ip: str | None = None


class AwsEc2Client:
    """Thin wrapper around the boto3 EC2 client of one account and region.

    The underlying boto3 client is created lazily and owned by this object, so
    instances must not be shared between requests carrying different credentials.
    """

    aws_account_credentials: AwsAccountCredentials

    region_name: str

    def __init__(self, aws_account_credentials: AwsAccountCredentials, region_name: str):
        self.aws_account_credentials = aws_account_credentials
        self.region_name = region_name
        self._ec2_client: Any = None

    @property
    def ec2_client(self) -> Any:
        if self._ec2_client is None:
            try:
                self._ec2_client = boto3.client(
                    "ec2",
                    aws_access_key_id=self.aws_account_credentials.aws_access_key_id,
                    aws_secret_access_key=self.aws_account_credentials.aws_secret_access_key,
                    region_name=self.region_name,
                )
            except (ValueError, BotoCoreError) as e:
                log.error(f"Unable to create EC2 client for region {self.region_name}: {e}")
                raise EC2InvalidParameterException(str(e))
        return self._ec2_client

    def _parse_aws_error(self, error: ClientError, fallback: type[EC2Exception]) -> EC2Exception:
        """Pick the exception type matching an AWS ClientError.

        The exception message is the provider's error text, unchanged.

        Args:
            error: The boto3 ClientError
            fallback: Exception type used when the error code is not recognised

        Returns:
            Specific exception type based on error code
        """
        error_code = error.response.get("Error", {}).get("Code", "")

        # Authentication/Authorization errors
        if error_code in (
            "AuthFailure",
            "UnauthorizedOperation",
            "InvalidClientTokenId",
            "SignatureDoesNotMatch",
            "AccessDenied",
        ):
            return EC2AuthenticationException(str(error))

        # Instance not found
        if error_code in ("InvalidInstanceID.NotFound", "InvalidInstanceId.NotFound"):
            return EC2InstanceNotFoundException(str(error))

        # Quota/Limit errors
        if error_code in (
            "InstanceLimitExceeded",
            "InsufficientInstanceCapacity",
            "RequestLimitExceeded",
            "AddressLimitExceeded",
        ):
            return EC2QuotaExceededException(str(error))

        # Invalid parameters
        if error_code in (
            "InvalidParameterValue",
            "InvalidParameter",
            "InvalidAMIID.NotFound",
            "InvalidAMIID.Malformed",
            "InvalidGroup.NotFound",
            "InvalidSubnetID.NotFound",
            "InvalidKeyPair.NotFound",
        ):
            return EC2InvalidParameterException(str(error))

        return fallback(str(error))

    def run_instance(self, launch_spec: Ec2InstanceLaunchSpec) -> str:
        """Launches exactly one EC2 instance.

        User data is handed over as text: botocore base64-encodes the UserData
        parameter of RunInstances before sending it.

        Args:
            launch_spec: The image, type, network and optional settings of the instance.

        Returns:
            The AWS identifier of the new instance.

        Raises:
            EC2Exception: If the launch request fails.
        """
        params: dict[str, Any] = {
            "ImageId": launch_spec.image_id,
            "InstanceType": launch_spec.instance_type,
            "SubnetId": launch_spec.subnet_id,
            "SecurityGroupIds": list(launch_spec.security_group_ids),
            "MinCount": 1,
            "MaxCount": 1,
        }
        if launch_spec.private_ip:
            params["PrivateIpAddress"] = launch_spec.private_ip
        if launch_spec.key_name:
            params["KeyName"] = launch_spec.key_name
        if launch_spec.user_data:
            params["UserData"] = launch_spec.user_data

        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/run_instances.html
            response = self.ec2_client.run_instances(**params)
        except ParamValidationError as e:
            log.error(f"Error launching EC2 instance - invalid parameters: {e}")
            raise EC2InvalidParameterException(str(e))
        except ClientError as e:
            log.error(f"Error launching EC2 instance in region {self.region_name}: {e}")
            raise self._parse_aws_error(e, EC2InstanceCreationException)
        except BotoCoreError as e:
            log.error(f"Error launching EC2 instance in region {self.region_name}: {e}")
            raise EC2InstanceCreationException(str(e))

        instances = response.get("Instances", [])
        if not instances:
            raise EC2InstanceCreationException("RunInstances returned no instances")

        instance_id = instances[0]["InstanceId"]
        log.info(
            f"New EC2 instance launched in region {self.region_name}: id={instance_id}, instance_type={launch_spec.instance_type}"
        )
        return instance_id

    def wait_until_running(self, instance_id: str) -> None:
        """Blocks until the instance is reported as running.

        Polling cadence and the number of attempts are those of the boto3
        `instance_running` waiter.

        Raises:
            EC2WaiterException: If the waiter gives up or the instance reaches a failure state.
        """
        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/waiter/InstanceRunning.html
            waiter = self.ec2_client.get_waiter("instance_running")
            waiter.wait(InstanceIds=[instance_id])
        except WaiterError as e:
            log.error(f"EC2 instance {instance_id} did not reach the running state: {e}")
            raise EC2WaiterException(str(e))
        except ClientError as e:
            raise self._parse_aws_error(e, EC2WaiterException)
        except BotoCoreError as e:
            raise EC2WaiterException(str(e))
        log.info(f"EC2 instance {instance_id} is running")

    def assign_elastic_ip(self, instance_id: str) -> str:
        """Allocates a new elastic IP and associates it with the instance.

        Returns:
            The allocated public IP address.

        Raises:
            EC2Exception: If the allocation or the association fails.
        """
        try:
            allocation = self.ec2_client.allocate_address(Domain="vpc")
            self.ec2_client.associate_address(
                InstanceId=instance_id,
                AllocationId=allocation["AllocationId"],
            )
        except ClientError as e:
            log.error(f"Error assigning elastic IP to EC2 instance {instance_id}: {e}")
            raise self._parse_aws_error(e, EC2AddressAssignmentException)
        except BotoCoreError as e:
            log.error(f"Error assigning elastic IP to EC2 instance {instance_id}: {e}")
            raise EC2AddressAssignmentException(str(e))

        public_ip = allocation["PublicIp"]
        log.info(f"Elastic IP {public_ip} associated with EC2 instance {instance_id}")
        return public_ip

    def get_instance_by_id(self, instance_id: str) -> Ec2InstanceDescriptor:
        """Describes a single instance.

        Raises:
            EC2InstanceNotFoundException: If the response does not hold exactly one matching instance.
            EC2Exception: If the describe request fails.
        """
        try:
            response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            raise self._parse_aws_error(e, EC2InstanceOperationException)
        except BotoCoreError as e:
            raise EC2InstanceOperationException(str(e))

        reservations = response.get("Reservations", [])
        if len(reservations) != 1:
            raise EC2InstanceNotFoundException("Could not find any instance reservations")

        instances = reservations[0].get("Instances", [])
        if len(instances) != 1:
            raise EC2InstanceNotFoundException("Could not find an instance with that ID")

        instance = instances[0]
        return Ec2InstanceDescriptor(
            id=instance["InstanceId"],
            state=instance.get("State", {}).get("Name", Ec2InstanceState.PENDING.value),
            instance_type=instance.get("InstanceType"),
            public_ip=instance.get("PublicIpAddress"),
            private_ip=instance.get("PrivateIpAddress"),
        )

    def terminate_instance(self, instance_id: str) -> None:
        """Requests termination of an instance without waiting for it.

        Raises:
            IntegrationException: If the termination request fails.
        """
        try:
            self.ec2_client.terminate_instances(InstanceIds=[instance_id])
        except ClientError as e:
            raise self._parse_aws_error(e, EC2InstanceOperationException)
        except BotoCoreError as e:
            raise IntegrationException(f"Terminate EC2 instance {instance_id}: {e}")
        log.info(f"Termination requested for EC2 instance {instance_id}")
