from .instance_event_reporter import InstanceEventReporter
from .instance_provisioning_service import InstanceProvisioningService

__all__ = [
    "InstanceEventReporter",
    "InstanceProvisioningService",
]
