from enum import Enum


class FieldNamingContract(str, Enum):
    """Revisions of the wire keys used by instance creation requests."""
    AWS = "aws"  # Provider-suffixed keys (network_aws_id, security_group_aws_ids, instance_aws_id)
    GENERIC = "generic"  # Provider-neutral keys (network_id, security_group_ids, instance_id)


class Ec2InstanceState(str, Enum):
    """AWS EC2 instance states as reported by DescribeInstances."""
    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"
