"""Wire key mapping for the revisions of the instance creation event schema.

Requests from different producer revisions carry the same attributes under
different keys. Each contract maps the event attribute names to the keys used
on the wire; attributes not listed keep their own name.
"""

from typing import Any

from domain.enums import FieldNamingContract

_SHARED_WIRE_KEYS: dict[str, str] = {
    "id": "_uuid",
    "batch_id": "_batch_id",
    "provider_type": "_type",
    "error_message": "error",
}

FIELD_NAMING_CONTRACTS: dict[FieldNamingContract, dict[str, str]] = {
    FieldNamingContract.AWS: {
        **_SHARED_WIRE_KEYS,
        "network_id": "network_aws_id",
        "security_group_ids": "security_group_aws_ids",
        "instance_id": "instance_aws_id",
    },
    FieldNamingContract.GENERIC: {
        **_SHARED_WIRE_KEYS,
        "datacenter_access_token": "datacenter_secret",
    },
}


def to_wire_keys(attributes: dict[str, Any], contract: FieldNamingContract) -> dict[str, Any]:
    """Rename event attributes to the wire keys of the given contract."""
    wire_keys = FIELD_NAMING_CONTRACTS[contract]
    return {wire_keys.get(name, name): value for name, value in attributes.items()}


def from_wire_keys(payload: dict[str, Any], contract: FieldNamingContract) -> dict[str, Any]:
    """Rename wire keys of the given contract back to event attribute names.

    Attribute names the contract puts under another key are dropped, so a
    producer cannot set them by their internal name. Other keys are passed
    through untouched.
    """
    wire_keys = FIELD_NAMING_CONTRACTS[contract]
    attribute_names = {key: name for name, key in wire_keys.items()}
    return {
        attribute_names.get(key, key): value
        for key, value in payload.items()
        if key in attribute_names or key not in wire_keys
    }
