from domain.value_object.provisioned_instance import ProvisionedInstance


class ApplicationException(Exception):
    """Base exception for application layer errors."""
    pass


class ConfigurationException(ApplicationException):
    """Raised when the service cannot start with the provided configuration."""
    pass


class InstanceProvisioningException(ApplicationException):
    """Raised when a provisioning step fails.

    The message is the one of the underlying failure, unchanged. The results
    produced before the failure travel with the exception, so callers can
    report e.g. the id of an instance that was created but never reached the
    running state.
    """

    def __init__(self, cause: Exception, instance: ProvisionedInstance):
        super().__init__(str(cause))
        self.cause = cause
        self.instance = instance
