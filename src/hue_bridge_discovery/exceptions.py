"""
Custom exceptions for Hue bridge discovery.
"""


class HueDiscoveryError(Exception):
    """Base class for all discovery errors."""
    pass

class TransportError(HueDiscoveryError):
    """Raised when a socket, connect, DNS or HTTP round-trip fails.
    Always recoverable at the probe level, never fatal to a discovery run."""
    pass

class TransportTimeoutError(TransportError):
    """Raised when a connection or request times out."""
    pass

class ProtocolError(TransportError):
    """Raised when a peer answers but the payload cannot be understood
    (unexpected status, malformed JSON, missing fields)."""
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status

class DiscoveryFailed(HueDiscoveryError):
    """Raised when no bridge could be confirmed after every strategy,
    including the subnet scan escalation, has been exhausted."""
    def __init__(self, message: str = "Bridge discovery failed", elapsed_seconds: float | None = None):
        super().__init__(message)
        self.elapsed_seconds = elapsed_seconds
