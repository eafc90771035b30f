"""
SSDP multicast probe for bridges on the local network.
"""
import asyncio
import socket
from collections.abc import AsyncGenerator

import structlog

from ..config import DiscoveryConfig
from ..exceptions import TransportError
from .validator import validate_ssdp_response

logger = structlog.get_logger(__name__)

SSDP_MULTICAST_GROUP = "239.255.255.250"
SSDP_PORT = 1900

# Line breaks matter: CRLF terminated, blank line at the end.
SSDP_PAYLOAD = (
    "M-SEARCH * HTTP/1.1\r\n"
    f"HOST: {SSDP_MULTICAST_GROUP}:{SSDP_PORT}\r\n"
    "ST: ssdp:all\r\n"
    "MAN: ssdp:discover\r\n"
    "MX: 2\r\n"
    "\r\n"
).encode("ascii")


class SSDPResponseProtocol(asyncio.DatagramProtocol):
    """Forwards received datagrams and socket errors to a queue."""

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self._queue.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        self._queue.put_nowait(exc)


class MulticastProber:
    """
    Sends one M-SEARCH to the SSDP multicast group and yields the addresses
    of validated bridge responses until the listening deadline passes.
    """

    def __init__(self, discovery_config: DiscoveryConfig):
        self.discovery_config = discovery_config
        self.logger = logger.bind(service="MulticastProber")

    async def _open_endpoint(self, queue: asyncio.Queue) -> asyncio.DatagramTransport:
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: SSDPResponseProtocol(queue),
            local_addr=("0.0.0.0", 0),
            family=socket.AF_INET,
        )
        sock = transport.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.discovery_config.ssdp_multicast_ttl)
        return transport

    async def probe(self, timeout: float | None = None) -> AsyncGenerator[str, None]:
        """
        Yields the source address of every valid bridge response, each at most once.
        Ends quietly at the deadline; raises TransportError on any other socket error.
        """
        listen_seconds = timeout if timeout is not None else self.discovery_config.ssdp_timeout_seconds
        queue: asyncio.Queue = asyncio.Queue()

        try:
            transport = await self._open_endpoint(queue)
        except OSError as e:
            self.logger.warning("Could not open SSDP socket", error=str(e))
            raise TransportError(f"Could not open SSDP socket: {e}") from e

        origins: set[str] = set() # Each origin is reported once per probe
        loop = asyncio.get_running_loop()
        try:
            transport.sendto(SSDP_PAYLOAD, (SSDP_MULTICAST_GROUP, SSDP_PORT))
            self.logger.debug("M-SEARCH sent", timeout=listen_seconds)
            deadline = loop.time() + listen_seconds

            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    item = await asyncio.wait_for(queue.get(), timeout=remaining)
                except TimeoutError:
                    break

                if isinstance(item, Exception):
                    self.logger.warning("SSDP socket error", error=str(item))
                    raise TransportError(f"SSDP socket error: {item}") from item

                data, addr = item
                origin = addr[0]
                result = validate_ssdp_response(data.decode("utf-8", errors="replace"), origin)
                if not result.valid:
                    self.logger.debug("Ignoring SSDP response", origin=origin, reason=result.reason)
                    continue
                if origin in origins:
                    continue

                origins.add(origin)
                self.logger.info("SSDP response from bridge", origin=origin)
                yield origin
        finally:
            transport.close()
            self.logger.debug("SSDP probe finished", responders=len(origins))
