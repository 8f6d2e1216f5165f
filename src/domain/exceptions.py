class DomainException(Exception):
    """Base exception for domain layer errors."""
    pass


class EventDecodeException(DomainException):
    """Raised when an inbound payload cannot be decoded into an instance creation event.

    The undecodable bytes are kept so they can be republished unchanged.
    """

    def __init__(self, data: bytes, reason: str):
        super().__init__(f"Unable to decode instance creation event: {reason}")
        self.data = data


class EventSerializationException(DomainException):
    """Raised when an instance creation event cannot be encoded for publishing."""
    pass


# Validation errors, listed in the order they are checked

class EventValidationException(DomainException):
    """Base exception for instance creation events missing a required field."""
    pass


class DatacenterIdInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Datacenter VPC ID invalid")


class DatacenterRegionInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Datacenter Region invalid")


class DatacenterCredentialsInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Datacenter credentials invalid")


class NetworkInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Network invalid")


class InstanceNameInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Instance name invalid")


class InstanceImageInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Instance image invalid")


class InstanceTypeInvalidException(EventValidationException):
    def __init__(self):
        super().__init__("Instance type invalid")
