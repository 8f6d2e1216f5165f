"""Value objects for instance provisioning results."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ProvisionedInstance:
    """Value object accumulating what provisioning has produced so far.

    Every field stays None until the step that produces it has succeeded, so a
    partially populated instance describes how far a failed attempt got.
    """

    instance_id: str | None = None
    public_ip: str | None = None
    elastic_ip: str | None = None

    def __post_init__(self) -> None:
        """Validate provisioning results."""
        if self.instance_id is None and (self.public_ip or self.elastic_ip):
            raise ValueError("addresses cannot be recorded without an instance_id")

    def with_instance_id(self, instance_id: str) -> "ProvisionedInstance":
        return replace(self, instance_id=instance_id)

    def with_public_ip(self, public_ip: str) -> "ProvisionedInstance":
        return replace(self, public_ip=public_ip)

    def with_elastic_ip(self, elastic_ip: str) -> "ProvisionedInstance":
        return replace(self, elastic_ip=elastic_ip)
