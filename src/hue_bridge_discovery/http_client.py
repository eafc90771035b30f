"""
aiohttp session setup shared by the cloud registry probe and the candidate confirmer.
"""
import aiohttp
import structlog

from .config import HTTPClientConfig

logger = structlog.get_logger(__name__)


def default_user_agent() -> str:
    from . import __version__
    return f"HueBridgeDiscovery/{__version__}"


def request_timeout(http_config: HTTPClientConfig) -> aiohttp.ClientTimeout:
    """Request-scoped deadline attached to every call."""
    return aiohttp.ClientTimeout(total=http_config.timeout_seconds, connect=http_config.connect_timeout_seconds)


def create_session(http_config: HTTPClientConfig) -> aiohttp.ClientSession:
    """
    Creates the aiohttp session used for discovery traffic.
    Must be called with a running event loop; the caller owns and closes it.
    """
    ssl_context = True
    if not http_config.ssl_verify:
        # Bridges present a self-signed certificate
        logger.debug("TLS verification disabled for discovery HTTP client.")
        ssl_context = False

    connector = aiohttp.TCPConnector(
        limit=http_config.max_connections,
        limit_per_host=http_config.max_connections_per_host,
        ssl=ssl_context,
    )
    return aiohttp.ClientSession(
        connector=connector,
        timeout=request_timeout(http_config),
        headers={"User-Agent": http_config.user_agent or default_user_agent()},
    )
