from enum import Enum

from pydantic import BaseModel


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "use_enum_values": True,
    }

class DiscoveryMode(str, Enum):
    FIRST_MATCH = "first_match" # Return as soon as one bridge is confirmed
    EXHAUSTIVE = "exhaustive" # Wait for every source to finish or go quiet

class DiscoverySource(str, Enum):
    SSDP = "ssdp"
    CLOUD = "cloud"
    SCAN = "scan"

class DiscoveryState(str, Enum):
    SEARCHING = "searching"
    SCAN_ESCALATED = "scan_escalated"
    DONE_SUCCESS = "done_success"
    DONE_FAILURE = "done_failure"
