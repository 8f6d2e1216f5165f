from .provisioned_instance import ProvisionedInstance

__all__ = ["ProvisionedInstance"]
