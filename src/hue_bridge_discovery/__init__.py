"""Hue Bridge Discovery - finds Philips Hue bridges on the local network.

Combines SSDP, the vendor cloud registry and a local subnet scan, and confirms
every candidate against the bridge's UPnP description.
"""

__version__ = "0.1.0"

from .config import Config
from .discovery import BridgeDiscoveryService, discover_bridges
from .exceptions import DiscoveryFailed
from .models import ConfirmedBridge, DiscoveryMode

__all__ = [
    "BridgeDiscoveryService",
    "Config",
    "ConfirmedBridge",
    "DiscoveryFailed",
    "DiscoveryMode",
    "discover_bridges",
]
