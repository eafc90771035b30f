"""
Bridge discovery: SSDP multicast probe, cloud registry lookup, subnet scan
escalation and description-based confirmation.
"""

from .confirmer import CandidateConfirmer
from .discovery_service import BridgeDiscoveryService, discover_bridges
from .network import LocalSubnetScanner
from .nupnp import CloudRegistryProber
from .ssdp import MulticastProber
from .validator import validate_ssdp_response

__all__ = [
    "BridgeDiscoveryService",
    "CandidateConfirmer",
    "CloudRegistryProber",
    "LocalSubnetScanner",
    "MulticastProber",
    "discover_bridges",
    "validate_ssdp_response",
]
