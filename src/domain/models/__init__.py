from .field_naming import FIELD_NAMING_CONTRACTS, from_wire_keys, to_wire_keys
from .instance_create_event import InstanceCreateEvent

__all__ = [
    "FIELD_NAMING_CONTRACTS",
    "InstanceCreateEvent",
    "from_wire_keys",
    "to_wire_keys",
]
