class IntegrationException(Exception):
    """Base exception for integration layer errors."""
    pass


class MessageChannelException(IntegrationException):
    """Raised when the message channel cannot be reached or used."""
    pass


# AWS EC2 Specific Exceptions
# Messages carry the provider's error text unchanged.

class EC2Exception(IntegrationException):
    """Base exception for AWS EC2 related errors."""
    pass


class EC2InstanceNotFoundException(EC2Exception):
    """Raised when an EC2 instance is not found."""
    pass


class EC2InstanceCreationException(EC2Exception):
    """Raised when EC2 instance creation fails."""
    pass


class EC2InstanceOperationException(EC2Exception):
    """Raised when an EC2 instance operation (terminate, describe) fails."""
    pass


class EC2WaiterException(EC2Exception):
    """Raised when waiting for an EC2 instance to reach a state fails."""
    pass


class EC2AddressAssignmentException(EC2Exception):
    """Raised when allocating or associating an elastic IP fails."""
    pass


class EC2AuthenticationException(EC2Exception):
    """Raised when AWS credentials are invalid or insufficient permissions."""
    pass


class EC2QuotaExceededException(EC2Exception):
    """Raised when AWS resource quota/limit is exceeded."""
    pass


class EC2InvalidParameterException(EC2Exception):
    """Raised when invalid parameters are provided to AWS API."""
    pass
