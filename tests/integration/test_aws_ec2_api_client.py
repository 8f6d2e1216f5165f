"""Tests for the AwsEc2Client boto3 wrapper."""

from base64 import b64decode

import pytest
from botocore.awsrequest import AWSResponse
from botocore.stub import Stubber

from integration.exceptions import (
    EC2AddressAssignmentException,
    EC2AuthenticationException,
    EC2InstanceCreationException,
    EC2InstanceNotFoundException,
    EC2InvalidParameterException,
    EC2QuotaExceededException,
    EC2WaiterException,
)
from integration.services.aws_ec2_api_client import (
    AwsAccountCredentials,
    AwsEc2Client,
    Ec2InstanceLaunchSpec,
)


@pytest.fixture
def aws_client():
    return AwsEc2Client(
        AwsAccountCredentials(aws_access_key_id="AKIAEXAMPLE", aws_secret_access_key="secret"),
        "us-east-1",
    )


@pytest.fixture
def launch_spec():
    return Ec2InstanceLaunchSpec(
        image_id="ami-123",
        instance_type="t3.micro",
        subnet_id="subnet-123",
        security_group_ids=["sg-2", "sg-1"],
    )


def described(instance_id="i-1", state="running", public_ip=None):
    instance = {"InstanceId": instance_id, "State": {"Code": 16, "Name": state}}
    if public_ip:
        instance["PublicIpAddress"] = public_ip
    return {"Reservations": [{"Instances": [instance]}]}


class TestRunInstance:
    def test_run_instance_launches_exactly_one(self, aws_client, launch_spec):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response(
                "run_instances",
                {"Instances": [{"InstanceId": "i-1"}]},
                expected_params={
                    "ImageId": "ami-123",
                    "InstanceType": "t3.micro",
                    "SubnetId": "subnet-123",
                    "SecurityGroupIds": ["sg-2", "sg-1"],
                    "MinCount": 1,
                    "MaxCount": 1,
                },
            )

            assert aws_client.run_instance(launch_spec) == "i-1"
            stubber.assert_no_pending_responses()

    def test_run_instance_passes_optional_parameters(self, aws_client, launch_spec):
        launch_spec.private_ip = "10.0.0.10"
        launch_spec.key_name = "deploy"

        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response(
                "run_instances",
                {"Instances": [{"InstanceId": "i-1"}]},
                expected_params={
                    "ImageId": "ami-123",
                    "InstanceType": "t3.micro",
                    "SubnetId": "subnet-123",
                    "SecurityGroupIds": ["sg-2", "sg-1"],
                    "MinCount": 1,
                    "MaxCount": 1,
                    "PrivateIpAddress": "10.0.0.10",
                    "KeyName": "deploy",
                },
            )

            assert aws_client.run_instance(launch_spec) == "i-1"

    def test_run_instance_transmits_base64_user_data(self, aws_client, launch_spec):
        user_data = "#!/bin/bash\necho 'héllo' > /tmp/greeting\n"
        launch_spec.user_data = user_data
        sent = {}

        def capture_request(params, **kwargs):
            sent.update(params["body"])
            return AWSResponse(None, 200, {}, None), {"Instances": [{"InstanceId": "i-1"}]}

        aws_client.ec2_client.meta.events.register("before-call.ec2.RunInstances", capture_request)

        assert aws_client.run_instance(launch_spec) == "i-1"
        assert sent["UserData"] != user_data
        assert b64decode(sent["UserData"]).decode("utf-8") == user_data

    def test_run_instance_keeps_provider_message(self, aws_client, launch_spec):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_client_error(
                "run_instances",
                service_error_code="InvalidAMIID.NotFound",
                service_message="The image id '[ami-123]' does not exist",
            )

            with pytest.raises(EC2InvalidParameterException) as exc_info:
                aws_client.run_instance(launch_spec)

        assert str(exc_info.value) == (
            "An error occurred (InvalidAMIID.NotFound) when calling the RunInstances operation: "
            "The image id '[ami-123]' does not exist"
        )

    @pytest.mark.parametrize(
        "error_code, expected_exception",
        [
            ("AuthFailure", EC2AuthenticationException),
            ("UnauthorizedOperation", EC2AuthenticationException),
            ("InstanceLimitExceeded", EC2QuotaExceededException),
            ("InvalidGroup.NotFound", EC2InvalidParameterException),
            ("InternalError", EC2InstanceCreationException),
        ],
    )
    def test_run_instance_error_types(self, aws_client, launch_spec, error_code, expected_exception):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_client_error("run_instances", service_error_code=error_code, service_message="failed")

            with pytest.raises(expected_exception):
                aws_client.run_instance(launch_spec)

    def test_run_instance_without_instances_in_response(self, aws_client, launch_spec):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("run_instances", {"Instances": []})

            with pytest.raises(EC2InstanceCreationException):
                aws_client.run_instance(launch_spec)


class TestWaitUntilRunning:
    def test_returns_once_running(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("describe_instances", described(), expected_params={"InstanceIds": ["i-1"]})

            aws_client.wait_until_running("i-1")
            stubber.assert_no_pending_responses()

    def test_terminated_instance_fails_the_wait(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("describe_instances", described(state="terminated"))

            with pytest.raises(EC2WaiterException) as exc_info:
                aws_client.wait_until_running("i-1")

        assert "InstanceRunning" in str(exc_info.value)


class TestAssignElasticIp:
    def test_allocates_and_associates(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response(
                "allocate_address",
                {"PublicIp": "52.1.2.3", "AllocationId": "eipalloc-1", "Domain": "vpc"},
                expected_params={"Domain": "vpc"},
            )
            stubber.add_response(
                "associate_address",
                {"AssociationId": "eipassoc-1"},
                expected_params={"InstanceId": "i-1", "AllocationId": "eipalloc-1"},
            )

            assert aws_client.assign_elastic_ip("i-1") == "52.1.2.3"
            stubber.assert_no_pending_responses()

    def test_association_failure(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("allocate_address", {"PublicIp": "52.1.2.3", "AllocationId": "eipalloc-1"})
            stubber.add_client_error(
                "associate_address",
                service_error_code="Gateway.NotAttached",
                service_message="Network vpc-123 is not attached to any internet gateway",
            )

            with pytest.raises(EC2AddressAssignmentException) as exc_info:
                aws_client.assign_elastic_ip("i-1")

        assert "is not attached to any internet gateway" in str(exc_info.value)

    def test_allocation_limit(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_client_error("allocate_address", service_error_code="AddressLimitExceeded")

            with pytest.raises(EC2QuotaExceededException):
                aws_client.assign_elastic_ip("i-1")


class TestGetInstanceById:
    def test_describes_instance(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response(
                "describe_instances",
                described(public_ip="3.3.3.3"),
                expected_params={"InstanceIds": ["i-1"]},
            )

            descriptor = aws_client.get_instance_by_id("i-1")

        assert descriptor.id == "i-1"
        assert descriptor.state == "running"
        assert descriptor.public_ip == "3.3.3.3"

    def test_instance_without_public_address(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("describe_instances", described())

            assert aws_client.get_instance_by_id("i-1").public_ip is None

    def test_no_reservation(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("describe_instances", {"Reservations": []})

            with pytest.raises(EC2InstanceNotFoundException, match="Could not find any instance reservations"):
                aws_client.get_instance_by_id("i-1")

    def test_no_instance_in_reservation(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("describe_instances", {"Reservations": [{"Instances": []}]})

            with pytest.raises(EC2InstanceNotFoundException, match="Could not find an instance with that ID"):
                aws_client.get_instance_by_id("i-1")


class TestTerminateInstance:
    def test_terminates(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_response("terminate_instances", {}, expected_params={"InstanceIds": ["i-1"]})

            aws_client.terminate_instance("i-1")
            stubber.assert_no_pending_responses()

    def test_missing_instance(self, aws_client):
        with Stubber(aws_client.ec2_client) as stubber:
            stubber.add_client_error("terminate_instances", service_error_code="InvalidInstanceID.NotFound")

            with pytest.raises(EC2InstanceNotFoundException):
                aws_client.terminate_instance("i-1")


def test_invalid_region_is_reported_as_invalid_parameter():
    aws_client = AwsEc2Client(
        AwsAccountCredentials(aws_access_key_id="AKIAEXAMPLE", aws_secret_access_key="secret"),
        "not a region!",
    )

    with pytest.raises(EC2InvalidParameterException):
        aws_client.ec2_client
