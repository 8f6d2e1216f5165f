"""Instance creation event exchanged on the message channel.

One event describes one request/response cycle: the datacenter credentials,
network and instance parameters supplied by the caller, and the result or
error fields filled in while the request is processed. Events are immutable;
each processing stage returns an updated copy.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from domain.enums import FieldNamingContract
from domain.exceptions import (
    DatacenterCredentialsInvalidException,
    DatacenterIdInvalidException,
    DatacenterRegionInvalidException,
    EventDecodeException,
    EventSerializationException,
    InstanceImageInvalidException,
    InstanceNameInvalidException,
    InstanceTypeInvalidException,
    NetworkInvalidException,
)
from domain.models.field_naming import from_wire_keys, to_wire_keys
from domain.value_object.provisioned_instance import ProvisionedInstance

# Result fields left out of the published payload while empty
_OMITTED_WHEN_EMPTY = ("instance_id", "error_message")


class InstanceCreateEvent(BaseModel):
    """A request to create a single compute instance."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Caller identifiers, passed through untouched
    id: str = ""
    batch_id: str = ""
    provider_type: str = ""

    # Datacenter
    datacenter_vpc_id: str = ""
    datacenter_region: str = ""
    datacenter_access_key: str = ""
    datacenter_access_token: str = Field("", repr=False)

    # Network
    network_id: str = ""
    network_is_public: bool = Field(False, strict=True)
    security_group_ids: list[str] = Field(default_factory=list)

    # Instance
    instance_name: str = ""
    instance_image: str = ""
    instance_type: str = ""
    instance_ip: str = ""
    instance_key_pair: str = ""
    instance_user_data: str = ""
    instance_assign_elastic_ip: bool = Field(False, strict=True)

    # Results
    instance_id: str = ""
    instance_public_ip: str = ""
    instance_elastic_ip: str = ""
    error_message: str = ""

    @model_validator(mode="before")
    @classmethod
    def _drop_null_values(cls, data: Any) -> Any:
        # Explicit nulls fall back to the field defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def parse(cls, data: bytes, contract: FieldNamingContract = FieldNamingContract.AWS) -> "InstanceCreateEvent":
        """Decode a raw channel payload into an event.

        Args:
            data: The JSON payload as received from the channel.
            contract: The field naming contract the producer uses.

        Returns:
            The decoded event.

        Raises:
            EventDecodeException: If the payload is not a JSON object of the expected shape.
        """
        try:
            payload = json.loads(data)
        except ValueError as e:
            raise EventDecodeException(data, str(e)) from e

        if not isinstance(payload, dict):
            raise EventDecodeException(data, f"expected a JSON object, got {type(payload).__name__}")

        try:
            return cls.model_validate(from_wire_keys(payload, contract))
        except ValidationError as e:
            raise EventDecodeException(data, str(e)) from e

    def validate_request(self) -> None:
        """Check that every required field is set.

        Fields are checked in a fixed order and the first violation is raised,
        so a request missing several fields always reports the same error.

        Raises:
            EventValidationException: The specific violation found.
        """
        if not self.datacenter_vpc_id:
            raise DatacenterIdInvalidException()

        if not self.datacenter_region:
            raise DatacenterRegionInvalidException()

        if not self.datacenter_access_key or not self.datacenter_access_token:
            raise DatacenterCredentialsInvalidException()

        if not self.network_id:
            raise NetworkInvalidException()

        if not self.instance_name:
            raise InstanceNameInvalidException()

        if not self.instance_image:
            raise InstanceImageInvalidException()

        if not self.instance_type:
            raise InstanceTypeInvalidException()

    def serialize(self, contract: FieldNamingContract = FieldNamingContract.AWS) -> bytes:
        """Encode the event as a JSON channel payload using the contract's wire keys.

        Raises:
            EventSerializationException: If the event cannot be encoded.
        """
        attributes = self.model_dump()
        for name in _OMITTED_WHEN_EMPTY:
            if not attributes[name]:
                del attributes[name]

        try:
            return json.dumps(to_wire_keys(attributes, contract)).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EventSerializationException(f"Unable to encode instance creation event {self.id}: {e}") from e

    def with_error(self, message: str) -> "InstanceCreateEvent":
        return self.model_copy(update={"error_message": message})

    def with_provisioned_instance(self, instance: ProvisionedInstance) -> "InstanceCreateEvent":
        """Copy the results produced so far onto the event, leaving unset ones untouched."""
        update = {}
        if instance.instance_id:
            update["instance_id"] = instance.instance_id
        if instance.public_ip:
            update["instance_public_ip"] = instance.public_ip
        if instance.elastic_ip:
            update["instance_elastic_ip"] = instance.elastic_ip
        return self.model_copy(update=update)
