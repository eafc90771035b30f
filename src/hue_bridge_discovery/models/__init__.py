"""
Pydantic models for Hue bridge discovery.
"""
from .bridge import CloudRegistryEntry, ConfirmedBridge, SSDPValidationResult
from .common import (
    BasePydanticModel,
    DiscoveryMode,
    DiscoverySource,
    DiscoveryState,
)

__all__ = [
    "BasePydanticModel",
    "CloudRegistryEntry",
    "ConfirmedBridge",
    "DiscoveryMode",
    "DiscoverySource",
    "DiscoveryState",
    "SSDPValidationResult",
]
