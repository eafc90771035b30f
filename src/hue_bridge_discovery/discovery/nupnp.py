"""
Cloud registry (N-UPnP) lookup of bridges known to the vendor portal for
the public address the request comes from.
"""
from collections.abc import AsyncGenerator

import aiohttp
import structlog
from pydantic import TypeAdapter, ValidationError

from ..config import DiscoveryConfig, HTTPClientConfig
from ..exceptions import ProtocolError, TransportError, TransportTimeoutError
from ..http_client import request_timeout
from ..models.bridge import CloudRegistryEntry

logger = structlog.get_logger(__name__)

_registry_adapter = TypeAdapter(list[CloudRegistryEntry])


class CloudRegistryProber:
    """Fetches the registry manifest and yields the internal address of every listed bridge."""

    def __init__(self, discovery_config: DiscoveryConfig, http_config: HTTPClientConfig, session: aiohttp.ClientSession):
        self.discovery_config = discovery_config
        self.http_config = http_config
        self.session = session
        self.logger = logger.bind(service="CloudRegistryProber", url=discovery_config.cloud_registry_url)

    async def fetch_entries(self) -> list[CloudRegistryEntry]:
        url = self.discovery_config.cloud_registry_url
        try:
            async with self.session.get(url, timeout=request_timeout(self.http_config)) as response:
                response_text = await response.text()
                if response.status != 200:
                    self.logger.warning("Cloud registry returned an error status", status=response.status, response_body=response_text[:200])
                    raise ProtocolError(f"Cloud registry returned HTTP {response.status}", status=response.status)
        except TimeoutError as e:
            self.logger.warning("Cloud registry request timed out", timeout=self.http_config.timeout_seconds)
            raise TransportTimeoutError(f"Request to {url} timed out.") from e
        except aiohttp.ClientError as e:
            self.logger.warning("Cloud registry request failed", error_type=type(e).__name__, error=str(e))
            raise TransportError(f"Request to {url} failed: {e}") from e

        try:
            entries = _registry_adapter.validate_json(response_text)
        except ValidationError as e:
            self.logger.warning("Failed to decode cloud registry response", error_count=e.error_count(), response_body=response_text[:200])
            raise ProtocolError(f"Malformed cloud registry response from {url}") from e

        self.logger.debug("Cloud registry answered", entries=len(entries))
        return entries

    async def probe(self) -> AsyncGenerator[str, None]:
        """Yields each registered address. Fails as a whole before yielding anything."""
        for entry in await self.fetch_entries():
            # The advertised port is the HTTPS API port; the description is fetched on port 80.
            self.logger.info("Cloud registry lists bridge", bridge_id=entry.id, address=entry.address, port=entry.port)
            yield entry.address
